"""
Savings Tracker - Data Schema Module.

This module defines the core data models for the savings planner.
All monetary fields use Decimal type to ensure financial precision.

Persisted Document Layout:
    - One document per user holding every plan
    - Plans carry their own accumulators and daily working fields
    - History sequences are bounded ring buffers (oldest evicted first)

Classes:
    PlanMode: How a plan derives its daily savings target.
    ExclusionRange: Inclusive calendar range with no savings target.
    Product: Catalog item purchasable against the daily allowance.
    BoundedHistory: Fixed-capacity, append-only history sequence.
    PlanSnapshot: Per-plan history record.
    SavingsSnapshot: Document-level history record.
    Plan: A single savings goal with schedule and daily state.
    Document: Root persisted state.
    RolloverSummary: Outcome of a rollover attempt.
    ProjectionResult: Outcome of a completion-date projection.
    PurchaseResult: Outcome of a purchase against the allowance.
    PlanReport: Reporting view of a single plan.
    PortfolioReport: Reporting view across all plans.
"""

from collections import deque
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Deque, Generic, Iterable, Iterator, List, Optional, TypeVar, Union


# Maximum number of entries kept in any history sequence
HISTORY_CAPACITY = 30

# Sentinel returned by the projection when the goal is already reached
GOAL_MET = "Goal Met!"

ZERO = Decimal("0")

T = TypeVar("T")


class PlanMode(Enum):
    """
    Target derivation mode for a plan.

    Attributes:
        ESTIMATE: Target is computed from goal, savings and days left.
        MANUAL: Target is the value the user enters when starting a day.
    """

    ESTIMATE = "ESTIMATE"
    MANUAL = "MANUAL"


@dataclass(frozen=True, order=True)
class ExclusionRange:
    """
    Inclusive calendar range during which no savings target accrues.

    Attributes:
        start: First excluded date.
        end: Last excluded date.
    """

    start: date
    end: date

    def contains(self, day: date) -> bool:
        """Returns True if day falls within the range, inclusive."""
        return self.start <= day <= self.end


@dataclass
class Product:
    """
    Catalog item that can be bought against the day's allowance.

    Attributes:
        name: Display name.
        price: Cost deducted from the allowance when bought.
    """

    name: str
    price: Decimal


class BoundedHistory(Generic[T]):
    """
    Append-only history that evicts its oldest entries beyond capacity.

    Example:
        >>> history = BoundedHistory(capacity=2)
        >>> for value in (1, 2, 3):
        ...     history.push(value)
        >>> list(history)
        [2, 3]
    """

    def __init__(
        self,
        entries: Optional[Iterable[T]] = None,
        capacity: int = HISTORY_CAPACITY
    ):
        if capacity < 1:
            raise ValueError(f"History capacity must be positive, got {capacity}")
        self._entries: Deque[T] = deque(entries or (), maxlen=capacity)

    @property
    def capacity(self) -> int:
        """Maximum number of retained entries."""
        return self._entries.maxlen

    def push(self, entry: T) -> None:
        """Appends an entry, dropping the oldest one when full."""
        self._entries.append(entry)

    def latest(self) -> Optional[T]:
        """Returns the most recent entry, or None if empty."""
        return self._entries[-1] if self._entries else None

    def to_list(self) -> List[T]:
        return list(self._entries)

    def __iter__(self) -> Iterator[T]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> T:
        return self._entries[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BoundedHistory):
            return NotImplemented
        return self.to_list() == other.to_list()

    def __repr__(self) -> str:
        return f"BoundedHistory({self.to_list()!r}, capacity={self.capacity})"


@dataclass
class PlanSnapshot:
    """
    Per-plan history record written on rollover.

    Attributes:
        date: The day that was closed.
        total_saved: Plan total after closing that day.
    """

    date: date
    total_saved: Decimal


@dataclass
class SavingsSnapshot:
    """
    Document-level history record written on rollover.

    Attributes:
        date: The day that was closed.
        savings: Total savings across all plans after closing that day.
    """

    date: date
    savings: Decimal


@dataclass
class Plan:
    """
    A single savings goal with its schedule, accumulators and daily state.

    The daily working fields (daily_allowance, daily_spent,
    daily_savings_goal) are only meaningful while day_active is True and
    are zeroed when rollover closes the day.

    Attributes:
        id: Unique, stable identifier (time-derived).
        name: Display name.
        start_date: First day the plan can be worked.
        end_date: Fixed end date, or None for an indefinite plan.
        goal: Amount to save. Zero means no goal.
        exclusions: Merged, sorted, non-overlapping off-day ranges.
        mode: How the daily target is derived.
        penalty_mode: Whether shortfalls accrue as penalty debt.
        day_active: True between "start day" and the next rollover.
        daily_allowance: Allowance declared for the open day.
        daily_spent: Amount spent during the open day.
        daily_savings_goal: Target fixed when the day was started.
        total_saved: Cumulative savings (may go negative).
        total_spent: Cumulative spending.
        penalty_debt: Cumulative shortfall against targets.
        history: Bounded per-plan history.
        products: Purchasable catalog items.
    """

    id: str
    name: str
    start_date: date
    end_date: Optional[date] = None
    goal: Decimal = ZERO
    exclusions: List[ExclusionRange] = field(default_factory=list)
    mode: PlanMode = PlanMode.ESTIMATE
    penalty_mode: bool = True
    day_active: bool = False
    daily_allowance: Decimal = ZERO
    daily_spent: Decimal = ZERO
    daily_savings_goal: Decimal = ZERO
    total_saved: Decimal = ZERO
    total_spent: Decimal = ZERO
    penalty_debt: Decimal = ZERO
    history: BoundedHistory = field(default_factory=BoundedHistory)
    products: List[Product] = field(default_factory=list)

    @property
    def use_end_date(self) -> bool:
        """True when the plan works toward a fixed end date."""
        return self.end_date is not None

    @property
    def remaining_allowance(self) -> Decimal:
        """Allowance left for the open day (negative if overspent)."""
        return self.daily_allowance - self.daily_spent


@dataclass
class Document:
    """
    Root persisted state, one per user.

    Attributes:
        plans: Plans in creation order, unique by id.
        total_savings: Sum of actual savings of every closed day.
        history: Bounded document-level savings history.
        last_login_date: Reference-timezone date of the last rollover,
            or None for a document that has never been opened.
        tos_agreed: Whether the terms of service were accepted.
    """

    plans: List[Plan] = field(default_factory=list)
    total_savings: Decimal = ZERO
    history: BoundedHistory = field(default_factory=BoundedHistory)
    last_login_date: Optional[date] = None
    tos_agreed: bool = False

    def find_plan(self, plan_id: str) -> Optional[Plan]:
        """Returns the plan with the given id, or None."""
        for plan in self.plans:
            if plan.id == plan_id:
                return plan
        return None


@dataclass
class RolloverSummary:
    """
    Outcome of a rollover attempt.

    Attributes:
        performed: False when the stored date already equals today.
        previous_date: Stored last-login date before the attempt.
        current_date: Reference-timezone date of the attempt.
        closed_plan_ids: Ids of plans whose open day was closed.
    """

    performed: bool
    previous_date: Optional[date]
    current_date: date
    closed_plan_ids: List[str] = field(default_factory=list)


@dataclass
class ProjectionResult:
    """
    Outcome of a completion-date projection.

    Attributes:
        completion_date: Estimated completion date, if one was walked to.
        goal_met: True when the goal is already reached.
        exhausted: True when the walk hit its iteration ceiling; the
            completion date is then a best-effort estimate.
        days_needed: Qualifying days required to close the gap.
    """

    completion_date: Optional[date] = None
    goal_met: bool = False
    exhausted: bool = False
    days_needed: int = 0

    @property
    def value(self) -> Union[date, str, None]:
        """Returns the date, the GOAL_MET sentinel, or None."""
        if self.goal_met:
            return GOAL_MET
        return self.completion_date


@dataclass
class PurchaseResult:
    """
    Outcome of a purchase recorded against the day's allowance.

    Attributes:
        amount: Amount added to daily spending.
        remaining: Allowance left after the purchase.
        exceeded_allowance: True if the purchase cost more than was left.
    """

    amount: Decimal
    remaining: Decimal
    exceeded_allowance: bool


@dataclass
class PlanReport:
    """
    Reporting view of a single plan.

    Attributes:
        plan_id: Plan identifier.
        name: Plan name.
        goal: Savings goal (zero when none).
        total_saved: Cumulative savings.
        total_spent: Cumulative spending.
        penalty_debt: Accrued penalty debt.
        progress_percentage: Saved share of the goal (0-100).
        calendar_days_left: Calendar days until the end date, or None.
        qualifying_days_left: Business days left until the end date, or None.
        todays_target: Target of the open day, or None when closed.
        projection: Projected completion date, GOAL_MET, or None.
    """

    plan_id: str
    name: str
    goal: Decimal
    total_saved: Decimal
    total_spent: Decimal
    penalty_debt: Decimal
    progress_percentage: Decimal
    calendar_days_left: Optional[int]
    qualifying_days_left: Optional[int]
    todays_target: Optional[Decimal]
    projection: Union[date, str, None]


@dataclass
class PortfolioReport:
    """
    Reporting view across every plan in the document.

    Attributes:
        generated_on: Reference-timezone date the report was built.
        total_savings: Document-level savings total.
        plans: One report per plan.
        history: Document-level savings history, oldest first.
    """

    generated_on: date
    total_savings: Decimal
    plans: List[PlanReport]
    history: List[SavingsSnapshot]
