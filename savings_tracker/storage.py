"""
Savings Tracker - Document Storage Module.

This module provides JSON persistence for the savings document.
All Decimal values are converted to string representation to preserve
precision during serialisation and deserialisation.

Document Format:
    - camelCase keys, one JSON object per user
    - Dates as YYYY-MM-DD strings
    - Missing fields fall back to their defaults on load

Classes:
    DecimalEncoder: JSON encoder for Decimal, date and enum values.
    DocumentStore: Loads and saves the document as a whole.
"""

import json
import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union

from savings_tracker import __version__
from savings_tracker.config import PlannerSettings, get_settings
from savings_tracker.date_logic import merge_exclusions
from savings_tracker.schema import (
    BoundedHistory,
    Document,
    ExclusionRange,
    Plan,
    PlanMode,
    PlanSnapshot,
    Product,
    SavingsSnapshot,
)

logger = logging.getLogger(__name__)

LEGACY_DATE_FORMAT = "%a %b %d %Y"


class DecimalEncoder(json.JSONEncoder):
    """
    Custom JSON encoder that converts Decimal to string.

    Preserves full precision of Decimal values by encoding them
    as strings rather than floats.
    """

    def default(self, obj: Any) -> Any:
        """
        Encode Decimal, date and enum objects.

        Args:
            obj: Object to encode.

        Returns:
            JSON-serialisable representation.
        """
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, date):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        return super().default(obj)


class DocumentStore:
    """
    Loads and saves the savings document as a single JSON file.

    The document is always written whole; there is no partial or
    incremental persistence.

    Example:
        >>> store = DocumentStore("savings.json")
        >>> document = store.load()
        >>> store.save(document)
    """

    def __init__(
        self,
        file_path: Union[str, Path],
        settings: Optional[PlannerSettings] = None
    ):
        """
        Initialises the DocumentStore.

        Args:
            file_path: Location of the JSON document.
            settings: Provides the history capacity. Defaults to loaded
                      settings.
        """
        self._file_path = Path(file_path)
        self._settings = settings or get_settings()

    @property
    def file_path(self) -> Path:
        return self._file_path

    def load(self) -> Document:
        """
        Loads the document, or a default one if no file exists yet.

        Returns:
            Document with defaults filled in for missing fields.

        Raises:
            json.JSONDecodeError: If the file is malformed.
        """
        if not self._file_path.exists():
            logger.info("No document at %s, starting fresh", self._file_path)
            return self._new_document()

        json_str = self._file_path.read_text(encoding="utf-8")
        return self.deserialise_document(json_str)

    def save(self, document: Document) -> None:
        """
        Saves the whole document.

        Args:
            document: Document to persist.

        Raises:
            PermissionError: If the file cannot be written.
        """
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        self._file_path.write_text(
            self.serialise_document(document),
            encoding="utf-8"
        )
        logger.debug("Saved document to %s", self._file_path)

    def serialise_document(self, document: Document) -> str:
        """
        Serialises a Document to a JSON string.

        Args:
            document: Document to serialise.

        Returns:
            JSON string representation.
        """
        data = self._document_to_dict(document)
        return json.dumps(data, cls=DecimalEncoder, indent=2, ensure_ascii=False)

    def deserialise_document(self, json_str: str) -> Document:
        """
        Deserialises a JSON string to a Document.

        String and numeric money values are converted to Decimal. Fields
        that are absent take their default values.

        Args:
            json_str: JSON string to deserialise.

        Returns:
            Reconstructed Document.

        Raises:
            json.JSONDecodeError: If JSON is malformed.
            ValueError: If a money value or plan date is malformed.
        """
        data = json.loads(json_str)
        return self._dict_to_document(data)

    def _new_document(self) -> Document:
        return Document(history=self._history())

    def _history(self, entries=None) -> BoundedHistory:
        return BoundedHistory(entries, capacity=self._settings.history_capacity)

    def _read_history(self, entries, snapshot_type, amount_key: str) -> BoundedHistory:
        """
        Builds a bounded history from stored entries.

        Entries whose date cannot be read are dropped with a warning.

        Args:
            entries: Stored list of {"date", <amount_key>} objects, or None.
            snapshot_type: PlanSnapshot or SavingsSnapshot.
            amount_key: Key holding the amount of each entry.

        Returns:
            History holding the readable entries, oldest first.
        """
        snapshots = []
        for entry in entries or []:
            stamp = _to_legacy_date(entry.get("date"))
            if stamp is None:
                logger.warning(
                    "Dropping history entry with unreadable date %r",
                    entry.get("date")
                )
                continue
            snapshots.append(snapshot_type(stamp, _to_decimal(entry.get(amount_key))))
        return self._history(snapshots)

    def _document_to_dict(self, document: Document) -> Dict[str, Any]:
        """
        Converts Document to dictionary for JSON serialisation.

        Args:
            document: Document to convert.

        Returns:
            Dictionary representation.
        """
        return {
            "version": __version__,
            "tosAgreed": document.tos_agreed,
            "totalSavings": document.total_savings,
            "lastLoginDate": document.last_login_date,
            "history": [
                {"date": entry.date, "savings": entry.savings}
                for entry in document.history
            ],
            "plans": [self._plan_to_dict(plan) for plan in document.plans],
        }

    def _plan_to_dict(self, plan: Plan) -> Dict[str, Any]:
        """
        Converts Plan to dictionary.

        The mode is written as the two legacy boolean flags.

        Args:
            plan: Plan to convert.

        Returns:
            Dictionary representation.
        """
        return {
            "id": plan.id,
            "name": plan.name,
            "startDate": plan.start_date,
            "useEndDate": plan.use_end_date,
            "endDate": plan.end_date,
            "goal": plan.goal,
            "exclusions": [
                {"start": r.start, "end": r.end} for r in plan.exclusions
            ],
            "estimateMode": plan.mode is PlanMode.ESTIMATE,
            "manualSavingsMode": plan.mode is PlanMode.MANUAL,
            "penaltyMode": plan.penalty_mode,
            "dayActive": plan.day_active,
            "dailyAllowance": plan.daily_allowance,
            "dailySpent": plan.daily_spent,
            "dailySavingsGoal": plan.daily_savings_goal,
            "totalSaved": plan.total_saved,
            "totalSpent": plan.total_spent,
            "penaltyDebt": plan.penalty_debt,
            "history": [
                {"date": entry.date, "totalSaved": entry.total_saved}
                for entry in plan.history
            ],
            "products": [
                {"name": p.name, "price": p.price} for p in plan.products
            ],
        }

    def _dict_to_document(self, data: Dict[str, Any]) -> Document:
        """
        Converts dictionary to Document.

        Args:
            data: Dictionary from JSON.

        Returns:
            Reconstructed Document.
        """
        history = self._read_history(
            data.get("history"), SavingsSnapshot, "savings"
        )

        last_login = data.get("lastLoginDate")
        last_login_date = _to_legacy_date(last_login)
        if last_login and last_login_date is None:
            logger.warning("Ignoring unreadable lastLoginDate %r", last_login)

        return Document(
            plans=[self._dict_to_plan(p) for p in data.get("plans") or []],
            total_savings=_to_decimal(data.get("totalSavings")),
            history=history,
            last_login_date=last_login_date,
            tos_agreed=bool(data.get("tosAgreed", False)),
        )

    def _dict_to_plan(self, data: Dict[str, Any]) -> Plan:
        """
        Converts dictionary to Plan.

        Exclusions are merged on the way in.

        Args:
            data: Dictionary from JSON.

        Returns:
            Reconstructed Plan.
        """
        end_date = None
        if data.get("useEndDate", data.get("endDate") is not None):
            end_date = _to_optional_date(data.get("endDate"))

        mode = PlanMode.MANUAL if data.get("manualSavingsMode") else PlanMode.ESTIMATE

        exclusions = merge_exclusions(
            ExclusionRange(_to_date(r["start"]), _to_date(r["end"]))
            for r in data.get("exclusions") or []
        )

        history = self._read_history(
            data.get("history"), PlanSnapshot, "totalSaved"
        )

        return Plan(
            id=str(data["id"]),
            name=data.get("name", ""),
            start_date=_to_date(data["startDate"]),
            end_date=end_date,
            goal=_to_decimal(data.get("goal")),
            exclusions=exclusions,
            mode=mode,
            penalty_mode=bool(data.get("penaltyMode", False)),
            day_active=bool(data.get("dayActive", False)),
            daily_allowance=_to_decimal(data.get("dailyAllowance")),
            daily_spent=_to_decimal(data.get("dailySpent")),
            daily_savings_goal=_to_decimal(data.get("dailySavingsGoal")),
            total_saved=_to_decimal(data.get("totalSaved")),
            total_spent=_to_decimal(data.get("totalSpent")),
            penalty_debt=_to_decimal(data.get("penaltyDebt")),
            history=history,
            products=[
                Product(name=p["name"], price=_to_decimal(p.get("price")))
                for p in data.get("products") or []
            ],
        )


def _to_decimal(value: Any) -> Decimal:
    """
    Converts a stored number or string to Decimal, 0 when absent.

    Raises:
        ValueError: If the value is not numeric.
    """
    if value is None or value == "":
        return Decimal("0")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Invalid amount in document: '{value}'") from None


def _to_date(value: Any) -> date:
    return date.fromisoformat(str(value))


def _to_optional_date(value: Any) -> Optional[date]:
    if not value:
        return None
    return _to_date(value)


def _to_legacy_date(value: Any) -> Optional[date]:
    """
    Parses a stamp date written either as ISO or as "Mon Jan 01 2024".

    Older documents stamped history entries and lastLoginDate with the
    browser's date string. Returns None when neither format matches.
    """
    if not value:
        return None
    text = str(value).strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.strptime(text, LEGACY_DATE_FORMAT).date()
    except ValueError:
        return None
