"""
Savings Tracker - Target Calculator Module.

This module computes how much of today's allowance should be saved for a
plan. All calculations use Decimal arithmetic with Banker's Rounding to
ensure financial precision.

Classes:
    TargetCalculator: Derives the daily savings target for a plan.
"""

from datetime import date
from decimal import Decimal, ROUND_HALF_EVEN
from typing import Optional

from savings_tracker.config import PlannerSettings, get_settings
from savings_tracker.date_logic import DateManager
from savings_tracker.schema import Plan, PlanMode

CENT = Decimal("0.01")
ZERO = Decimal("0")


class TargetCalculator:
    """
    Derives the daily savings target for a plan.

    Decision order:
    1. Excluded day: nothing to save.
    2. No end date: a share of the allowance (ESTIMATE) or the manual value.
    3. Fixed end date: (Goal - Total_Saved) / Qualifying_Days_Left, with a
       surcharge for small targets on generous allowances, and the whole
       allowance once no qualifying days are left.

    The result is always between 0 and the allowance.

    Example:
        >>> calculator = TargetCalculator(DateManager())
        >>> target = calculator.calculate_daily_target(plan, Decimal("100"))
    """

    def __init__(
        self,
        date_manager: DateManager,
        settings: Optional[PlannerSettings] = None
    ):
        """
        Initialises the TargetCalculator.

        Args:
            date_manager: DateManager instance for date calculations.
            settings: Heuristic constants. Defaults to loaded settings.
        """
        self._date_manager = date_manager
        self._settings = settings or get_settings()

    def calculate_daily_target(
        self,
        plan: Plan,
        allowance: Decimal,
        reference_date: Optional[date] = None,
        manual_target: Optional[Decimal] = None
    ) -> Decimal:
        """
        Calculates the amount that should be saved today.

        Args:
            plan: Plan to calculate for.
            allowance: Today's allowance.
            reference_date: Date for calculation. Defaults to today.
            manual_target: User-entered target for MANUAL plans.

        Returns:
            Target rounded to 2 decimal places, between 0 and allowance.
        """
        today = self._date_manager.resolve(reference_date)

        if self._date_manager.is_excluded(today, plan.exclusions):
            return ZERO

        if not plan.use_end_date:
            if plan.mode is PlanMode.MANUAL:
                target = manual_target if manual_target is not None else ZERO
            else:
                target = allowance * self._settings.indefinite_savings_rate
            return self._bound(target, allowance)

        if not plan.goal or plan.goal <= ZERO:
            return ZERO

        if today > plan.end_date:
            return ZERO

        days_left = self._date_manager.count_qualifying_days(
            today, plan.end_date, plan.exclusions
        )
        if days_left <= 0:
            return self._bound(allowance, allowance)

        remaining_needed = plan.goal - plan.total_saved
        target = max(ZERO, remaining_needed / Decimal(days_left))

        if plan.mode is PlanMode.ESTIMATE and self._needs_surcharge(target, allowance):
            target += allowance * self._settings.surcharge_rate

        return self._bound(target, allowance)

    def _needs_surcharge(self, target: Decimal, allowance: Decimal) -> bool:
        """
        Determines if a small target on a generous allowance is surcharged.

        Args:
            target: Goal-derived target before capping.
            allowance: Today's allowance.

        Returns:
            True if allowance >= minimum and target < ceiling.
        """
        return (
            allowance >= self._settings.surcharge_min_allowance
            and target < self._settings.surcharge_target_ceiling
        )

    def _bound(self, target: Decimal, allowance: Decimal) -> Decimal:
        """Caps target to the allowance, floors it at 0 and rounds it."""
        bounded = max(ZERO, min(target, allowance))
        return bounded.quantize(CENT, rounding=ROUND_HALF_EVEN)
