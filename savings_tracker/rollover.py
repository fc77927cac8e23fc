"""
Savings Tracker - Daily Rollover Module.

Closes the previous day's ledger for every plan with an open day when the
stored last-login date differs from today's reference-timezone date.

Only one day of accounting is applied per rollover, however many calendar
days have passed since the last one.

Classes:
    DailyRolloverEngine: Performs the end-of-day transition.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from savings_tracker.date_logic import DateManager
from savings_tracker.schema import (
    Document,
    Plan,
    PlanSnapshot,
    RolloverSummary,
    SavingsSnapshot,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class DailyRolloverEngine:
    """
    Performs the daily transition of every open plan to closed.

    For each open plan the day's actual savings (allowance - spent) are
    added to plan and document totals, any shortfall against the target
    accrues as penalty debt when penalty mode is on, a history snapshot is
    pushed and the day-scoped fields are reset.

    Example:
        >>> engine = DailyRolloverEngine(DateManager())
        >>> summary = engine.roll_over(document)
        >>> summary.performed
        True
    """

    def __init__(self, date_manager: DateManager):
        """
        Initialises the DailyRolloverEngine.

        Args:
            date_manager: DateManager instance for "today".
        """
        self._date_manager = date_manager

    def needs_rollover(
        self,
        document: Document,
        reference_date: Optional[date] = None
    ) -> bool:
        """Returns True if the stored last-login date is not today."""
        today = self._date_manager.resolve(reference_date)
        return document.last_login_date != today

    def roll_over(
        self,
        document: Document,
        reference_date: Optional[date] = None
    ) -> RolloverSummary:
        """
        Closes every open day if the calendar date has changed.

        Calling this again on the same date is a no-op.

        Args:
            document: Document to mutate in place.
            reference_date: Current date. Defaults to today.

        Returns:
            RolloverSummary describing what was done.
        """
        today = self._date_manager.resolve(reference_date)
        previous = document.last_login_date

        if previous == today:
            return RolloverSummary(
                performed=False,
                previous_date=previous,
                current_date=today
            )

        if previous is None:
            # Never opened before: nothing to close yet.
            logger.info("Initialising last login date to %s", today)
            document.last_login_date = today
            return RolloverSummary(
                performed=False,
                previous_date=None,
                current_date=today
            )

        closed = []
        for plan in document.plans:
            if plan.day_active:
                actual_savings = self.close_day(plan, previous)
                document.total_savings += actual_savings
                closed.append(plan.id)

        document.history.push(
            SavingsSnapshot(date=previous, savings=document.total_savings)
        )
        document.last_login_date = today

        logger.info(
            "Rolled over from %s to %s, closed %d plan(s)",
            previous,
            today,
            len(closed),
        )
        return RolloverSummary(
            performed=True,
            previous_date=previous,
            current_date=today,
            closed_plan_ids=closed
        )

    def close_day(self, plan: Plan, closed_on: date) -> Decimal:
        """
        Closes a plan's open day and resets its day-scoped fields.

        Args:
            plan: Plan with an open day.
            closed_on: Date recorded in the plan's history.

        Returns:
            The day's actual savings (negative if overspent).
        """
        actual_savings = plan.daily_allowance - plan.daily_spent
        target = plan.daily_savings_goal

        if plan.penalty_mode and actual_savings < target:
            shortfall = target - actual_savings
            plan.penalty_debt += shortfall
            logger.debug("Plan %s accrued %s penalty debt", plan.id, shortfall)

        plan.total_saved += actual_savings
        plan.total_spent += plan.daily_spent
        plan.history.push(
            PlanSnapshot(date=closed_on, total_saved=plan.total_saved)
        )

        plan.day_active = False
        plan.daily_allowance = ZERO
        plan.daily_spent = ZERO
        plan.daily_savings_goal = ZERO

        return actual_savings
