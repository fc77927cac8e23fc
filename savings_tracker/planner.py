"""
Savings Tracker - Plan Manager Module.

This module exposes the user commands of the savings planner. Every
command names its plan explicitly, validates its input before touching
the document, and saves the whole document after a successful mutation.

Classes:
    PlanNotFoundError: Raised for an unknown plan id.
    PlanManager: Commands and queries over the persisted document.
"""

import logging
import time
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, List, Optional, Tuple, Union

from savings_tracker.calculator import TargetCalculator
from savings_tracker.config import PlannerSettings, get_settings
from savings_tracker.date_logic import DateManager, merge_exclusions
from savings_tracker.projection import ProjectionEstimator
from savings_tracker.rollover import DailyRolloverEngine
from savings_tracker.schema import (
    BoundedHistory,
    Document,
    ExclusionRange,
    Plan,
    PlanMode,
    PlanReport,
    PortfolioReport,
    Product,
    PurchaseResult,
    RolloverSummary,
)
from savings_tracker.storage import DocumentStore
from savings_tracker.validator import InputValidator, InvalidInputError, ValidationError

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")


class PlanNotFoundError(KeyError):
    """Raised when a command names a plan that does not exist."""

    def __init__(self, plan_id: str):
        self.plan_id = plan_id
        super().__init__(f"Plan not found: {plan_id}")

    def __str__(self) -> str:
        return self.args[0]


def _reject(field_name: str, value: Any, message: str) -> InvalidInputError:
    return InvalidInputError([ValidationError(
        field_name=field_name,
        value="" if value is None else str(value),
        message=message
    )])


class PlanManager:
    """
    Commands and queries over the savings document.

    The document is loaded once on construction and saved after every
    mutating command.

    Example:
        >>> manager = PlanManager(DocumentStore("savings.json"))
        >>> manager.refresh()
        >>> plan = manager.create_plan("Laptop", "2024-01-01", goal="30000",
        ...                            end_date="2024-06-28")
        >>> manager.start_day(plan.id, "500")
    """

    def __init__(
        self,
        store: DocumentStore,
        settings: Optional[PlannerSettings] = None,
        date_manager: Optional[DateManager] = None
    ):
        """
        Initialises the PlanManager and loads the document.

        Args:
            store: Persistence collaborator.
            settings: Planner settings. Defaults to loaded settings.
            date_manager: DateManager for "today". Defaults to one in the
                          configured reference timezone.
        """
        self._settings = settings or get_settings()
        self._store = store
        self._date_manager = date_manager or DateManager(
            self._settings.reference_timezone
        )
        self._validator = InputValidator()
        self._calculator = TargetCalculator(self._date_manager, self._settings)
        self._estimator = ProjectionEstimator(self._date_manager, self._settings)
        self._rollover = DailyRolloverEngine(self._date_manager)
        self._document = store.load()

    @property
    def document(self) -> Document:
        return self._document

    @property
    def date_manager(self) -> DateManager:
        return self._date_manager

    def refresh(self, reference_date: Optional[date] = None) -> RolloverSummary:
        """
        Runs the daily rollover and saves if anything changed.

        Args:
            reference_date: Current date. Defaults to today.

        Returns:
            RolloverSummary from the rollover engine.
        """
        previous = self._document.last_login_date
        summary = self._rollover.roll_over(self._document, reference_date)
        if summary.performed or previous != self._document.last_login_date:
            self._save()
        return summary

    def get_plan(self, plan_id: str) -> Plan:
        """
        Returns the plan with the given id.

        Raises:
            PlanNotFoundError: If no such plan exists.
        """
        plan = self._document.find_plan(plan_id)
        if plan is None:
            raise PlanNotFoundError(plan_id)
        return plan

    def create_plan(
        self,
        name: Any,
        start_date: Any,
        goal: Any = None,
        end_date: Any = None,
        exclusions: Optional[Iterable[Tuple[Any, Any]]] = None
    ) -> Plan:
        """
        Creates a plan in ESTIMATE mode with penalty mode on.

        Args:
            name: Plan name.
            start_date: First day of the plan.
            goal: Savings goal. Blank means no goal.
            end_date: Fixed end date, or None for an indefinite plan.
            exclusions: (start, end) pairs of off-day ranges.

        Returns:
            The new plan.

        Raises:
            InvalidInputError: If any input is invalid.
        """
        clean_name, start, end, parsed_goal = self._validator.validate_plan_fields(
            name, start_date, end_date, end_date is not None, goal
        )
        ranges = [
            ExclusionRange(*self._validator.validate_exclusion(s, e))
            for s, e in exclusions or []
        ]

        plan = Plan(
            id=self._new_plan_id(),
            name=clean_name,
            start_date=start,
            end_date=end,
            goal=parsed_goal,
            exclusions=merge_exclusions(ranges),
            history=BoundedHistory(capacity=self._settings.history_capacity),
        )
        self._document.plans.append(plan)
        self._save()
        logger.info("Created plan %s (%s)", plan.id, plan.name)
        return plan

    def update_plan(
        self,
        plan_id: str,
        name: Any,
        start_date: Any,
        goal: Any = None,
        end_date: Any = None
    ) -> Plan:
        """
        Replaces a plan's name, dates and goal.

        Passing end_date=None switches the plan to indefinite mode.

        Raises:
            PlanNotFoundError: If no such plan exists.
            InvalidInputError: If any input is invalid.
        """
        plan = self.get_plan(plan_id)
        clean_name, start, end, parsed_goal = self._validator.validate_plan_fields(
            name, start_date, end_date, end_date is not None, goal
        )

        plan.name = clean_name
        plan.start_date = start
        plan.end_date = end
        plan.goal = parsed_goal
        plan.exclusions = merge_exclusions(plan.exclusions)
        self._save()
        return plan

    def delete_plan(self, plan_id: str) -> None:
        """
        Removes a plan with no further bookkeeping.

        Raises:
            PlanNotFoundError: If no such plan exists.
        """
        plan = self.get_plan(plan_id)
        self._document.plans.remove(plan)
        self._save()
        logger.info("Deleted plan %s", plan_id)

    def set_mode(self, plan_id: str, mode: Union[PlanMode, str]) -> Plan:
        """
        Switches a plan between ESTIMATE and MANUAL targets.

        Raises:
            PlanNotFoundError: If no such plan exists.
            InvalidInputError: If mode is not a known mode name.
        """
        plan = self.get_plan(plan_id)
        if not isinstance(mode, PlanMode):
            try:
                mode = PlanMode(str(mode).upper())
            except ValueError:
                raise _reject("Mode", mode, "Mode must be ESTIMATE or MANUAL") from None

        plan.mode = mode
        self._save()
        return plan

    def set_penalty_mode(self, plan_id: str, enabled: bool) -> Plan:
        plan = self.get_plan(plan_id)
        plan.penalty_mode = bool(enabled)
        self._save()
        return plan

    def add_exclusion(self, plan_id: str, start: Any, end: Any) -> List[ExclusionRange]:
        """
        Adds an off-day range and re-merges the plan's exclusions.

        Returns:
            The plan's merged exclusions.

        Raises:
            PlanNotFoundError: If no such plan exists.
            InvalidInputError: If the range is invalid.
        """
        plan = self.get_plan(plan_id)
        start_date, end_date = self._validator.validate_exclusion(start, end)

        plan.exclusions = merge_exclusions(
            plan.exclusions + [ExclusionRange(start_date, end_date)]
        )
        self._save()
        return plan.exclusions

    def remove_exclusion(self, plan_id: str, index: int) -> List[ExclusionRange]:
        """
        Removes the exclusion at index from the merged list.

        Raises:
            PlanNotFoundError: If no such plan exists.
            InvalidInputError: If index is out of range.
        """
        plan = self.get_plan(plan_id)
        if not 0 <= index < len(plan.exclusions):
            raise _reject("Exclusion", index, "No exclusion at that position")

        remaining = plan.exclusions[:index] + plan.exclusions[index + 1:]
        plan.exclusions = merge_exclusions(remaining)
        self._save()
        return plan.exclusions

    def add_product(self, plan_id: str, name: Any, price: Any) -> Product:
        plan = self.get_plan(plan_id)
        clean_name, parsed_price = self._validator.validate_product(name, price)

        product = Product(name=clean_name, price=parsed_price)
        plan.products.append(product)
        self._save()
        return product

    def remove_product(self, plan_id: str, index: int) -> Product:
        plan = self.get_plan(plan_id)
        if not 0 <= index < len(plan.products):
            raise _reject("Product", index, "No product at that position")

        product = plan.products.pop(index)
        self._save()
        return product

    def start_day(
        self,
        plan_id: str,
        allowance: Any,
        manual_target: Any = None,
        reference_date: Optional[date] = None
    ) -> Plan:
        """
        Opens today's ledger for a plan.

        MANUAL plans take the manual target as entered (absent or
        unparseable input becomes 0). ESTIMATE plans use the
        TargetCalculator.

        Args:
            plan_id: Plan to start.
            allowance: Today's allowance (required, >= 0).
            manual_target: Target for MANUAL plans.
            reference_date: Current date. Defaults to today.

        Returns:
            The plan with its day open.

        Raises:
            PlanNotFoundError: If no such plan exists.
            InvalidInputError: If the allowance is missing or invalid, the
                plan has not started yet, or the day is already open.
        """
        today = self._date_manager.resolve(reference_date)
        plan = self.get_plan(plan_id)
        parsed_allowance = self._validator.parse_amount(allowance, "Allowance")

        self.refresh(today)
        if today < plan.start_date:
            raise _reject(
                "Start Date",
                plan.start_date,
                f"Plan starts on {plan.start_date.isoformat()}"
            )
        if plan.day_active:
            raise _reject("Day", today, "Today's allowance is already set")

        if plan.mode is PlanMode.MANUAL:
            target = self._validator.coerce_amount(manual_target)
        else:
            target = self._calculator.calculate_daily_target(
                plan, parsed_allowance, today
            )

        plan.day_active = True
        plan.daily_allowance = parsed_allowance
        plan.daily_savings_goal = target
        plan.daily_spent = ZERO
        self._save()
        logger.info(
            "Started day %s for plan %s: allowance %s, target %s",
            today, plan.id, parsed_allowance, target
        )
        return plan

    def record_purchase(
        self,
        plan_id: str,
        amount: Any,
        reference_date: Optional[date] = None
    ) -> Optional[PurchaseResult]:
        """
        Adds a purchase to the open day's spending.

        Overspending is allowed; the result reports it.

        Returns:
            PurchaseResult, or None if the amount was not positive.

        Raises:
            PlanNotFoundError: If no such plan exists.
            InvalidInputError: If the plan has no open day.
        """
        cost = self._validator.coerce_amount(amount)
        if cost <= ZERO:
            return None

        self.refresh(reference_date)
        plan = self.get_plan(plan_id)
        if not plan.day_active:
            raise _reject("Day", None, "Set today's allowance before buying")

        exceeded = cost > plan.remaining_allowance
        plan.daily_spent += cost
        self._save()
        if exceeded:
            logger.info("Purchase of %s exceeds plan %s allowance", cost, plan.id)
        return PurchaseResult(
            amount=cost,
            remaining=plan.remaining_allowance,
            exceeded_allowance=exceeded
        )

    def buy_product(
        self,
        plan_id: str,
        index: int,
        reference_date: Optional[date] = None
    ) -> Optional[PurchaseResult]:
        """
        Records a purchase of the catalog product at index.

        Raises:
            PlanNotFoundError: If no such plan exists.
            InvalidInputError: If index is out of range or no day is open.
        """
        plan = self.get_plan(plan_id)
        if not 0 <= index < len(plan.products):
            raise _reject("Product", index, "No product at that position")
        return self.record_purchase(plan_id, plan.products[index].price, reference_date)

    def agree_to_terms(self) -> None:
        self._document.tos_agreed = True
        self._save()

    def daily_target(
        self,
        plan_id: str,
        allowance: Any,
        manual_target: Any = None,
        reference_date: Optional[date] = None
    ) -> Decimal:
        """
        Previews the target for an allowance without starting the day.

        Raises:
            PlanNotFoundError: If no such plan exists.
            InvalidInputError: If the allowance is invalid.
        """
        plan = self.get_plan(plan_id)
        parsed_allowance = self._validator.parse_amount(allowance, "Allowance")
        manual = None
        if manual_target is not None:
            manual = self._validator.coerce_amount(manual_target)
        return self._calculator.calculate_daily_target(
            plan, parsed_allowance, reference_date, manual
        )

    def projected_completion(
        self,
        plan_id: str,
        reference_date: Optional[date] = None
    ) -> Union[date, str, None]:
        return self._estimator.projected_completion_date(
            self.get_plan(plan_id), reference_date
        )

    def plan_report(
        self,
        plan_id: str,
        reference_date: Optional[date] = None
    ) -> PlanReport:
        """
        Builds the reporting view of a plan.

        Raises:
            PlanNotFoundError: If no such plan exists.
        """
        plan = self.get_plan(plan_id)
        today = self._date_manager.resolve(reference_date)

        progress = ZERO
        if plan.goal > ZERO:
            progress = min(HUNDRED, plan.total_saved / plan.goal * HUNDRED)
            progress = max(ZERO, progress).quantize(Decimal("0.01"))

        calendar_days_left = None
        qualifying_days_left = None
        if plan.use_end_date:
            calendar_days_left = self._date_manager.get_calendar_days_left(
                plan.end_date, today
            )
            qualifying_days_left = self._date_manager.count_qualifying_days(
                today, plan.end_date, plan.exclusions
            )

        projection = None
        if not plan.use_end_date:
            projection = self._estimator.projected_completion_date(plan, today)

        return PlanReport(
            plan_id=plan.id,
            name=plan.name,
            goal=plan.goal,
            total_saved=plan.total_saved,
            total_spent=plan.total_spent,
            penalty_debt=plan.penalty_debt,
            progress_percentage=progress,
            calendar_days_left=calendar_days_left,
            qualifying_days_left=qualifying_days_left,
            todays_target=plan.daily_savings_goal if plan.day_active else None,
            projection=projection,
        )

    def portfolio_report(self, reference_date: Optional[date] = None) -> PortfolioReport:
        today = self._date_manager.resolve(reference_date)
        return PortfolioReport(
            generated_on=today,
            total_savings=self._document.total_savings,
            plans=[self.plan_report(p.id, today) for p in self._document.plans],
            history=self._document.history.to_list(),
        )

    def _new_plan_id(self) -> str:
        """Returns a millisecond timestamp id not yet used in the document."""
        candidate = int(time.time() * 1000)
        while self._document.find_plan(str(candidate)) is not None:
            candidate += 1
        return str(candidate)

    def _save(self) -> None:
        self._store.save(self._document)
