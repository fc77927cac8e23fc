"""
Savings Tracker - Configuration Module.

Settings are read from environment variables prefixed with ``SAVINGS_``
(for example ``SAVINGS_REFERENCE_TIMEZONE=Asia/Manila``) and fall back to
the defaults below.

Classes:
    PlannerSettings: Tunable heuristics, capacities and storage location.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TIMEZONE = "Asia/Manila"
DEFAULT_DATA_FILE = "savings_tracker_data.json"


class PlannerSettings(BaseSettings):
    """
    Tunable constants for the planning engine.

    Attributes:
        reference_timezone: IANA zone that defines the civil "today".
        indefinite_savings_rate: Share of the allowance suggested when a
            plan has no end date.
        surcharge_min_allowance: Allowance at or above which small targets
            receive a surcharge.
        surcharge_target_ceiling: Targets below this value are surcharged.
        surcharge_rate: Share of the allowance added as surcharge.
        history_capacity: Maximum entries kept in any history sequence.
        projection_max_days: Calendar days the projection walk may cover.
        data_file: JSON document location used by the CLI.
    """

    reference_timezone: str = DEFAULT_TIMEZONE
    indefinite_savings_rate: Decimal = Decimal("0.50")
    surcharge_min_allowance: Decimal = Decimal("80")
    surcharge_target_ceiling: Decimal = Decimal("50")
    surcharge_rate: Decimal = Decimal("0.20")
    history_capacity: int = 30
    projection_max_days: int = 10000
    data_file: Path = Path(DEFAULT_DATA_FILE)

    model_config = SettingsConfigDict(env_prefix="SAVINGS_", extra="ignore")


@lru_cache
def get_settings() -> PlannerSettings:
    """Load and cache planner settings."""
    return PlannerSettings()
