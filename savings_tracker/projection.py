"""
Savings Tracker - Projection Module.

Estimates when an open-ended plan will reach its goal by walking forward
over qualifying days at the current daily target.

Classes:
    ProjectionEstimator: Forward-simulates the goal completion date.
"""

import logging
import math
from datetime import date
from decimal import Decimal
from typing import Optional, Union

from savings_tracker.config import PlannerSettings, get_settings
from savings_tracker.date_logic import ONE_DAY, DateManager, merge_exclusions
from savings_tracker.schema import Plan, ProjectionResult

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class ProjectionEstimator:
    """
    Forward-simulates the date on which a plan's goal is met.

    The walk starts tomorrow and is capped at projection_max_days
    calendar days; a capped result is a best-effort estimate.

    Example:
        >>> estimator = ProjectionEstimator(DateManager())
        >>> estimator.projected_completion_date(plan, date(2024, 1, 1))
        datetime.date(2024, 1, 12)
    """

    def __init__(
        self,
        date_manager: DateManager,
        settings: Optional[PlannerSettings] = None
    ):
        self._date_manager = date_manager
        self._settings = settings or get_settings()

    def estimate(
        self,
        plan: Plan,
        reference_date: Optional[date] = None
    ) -> ProjectionResult:
        """
        Projects the completion date of a plan.

        Requires a goal and a positive target for the current day.

        Args:
            plan: Plan to project.
            reference_date: Date to project from. Defaults to today.

        Returns:
            ProjectionResult. Empty when the plan has no goal or no
            positive daily target.
        """
        if not plan.goal or plan.goal <= ZERO:
            return ProjectionResult()
        if not plan.daily_savings_goal or plan.daily_savings_goal <= ZERO:
            return ProjectionResult()

        remaining_needed = plan.goal - plan.total_saved
        if remaining_needed <= ZERO:
            return ProjectionResult(goal_met=True)

        days_needed = math.ceil(remaining_needed / plan.daily_savings_goal)
        exclusions = merge_exclusions(plan.exclusions)
        cursor = self._date_manager.resolve(reference_date)
        found = 0

        for _ in range(self._settings.projection_max_days):
            cursor += ONE_DAY
            if self._date_manager.is_qualifying_day(cursor, exclusions):
                found += 1
                if found >= days_needed:
                    return ProjectionResult(
                        completion_date=cursor,
                        days_needed=days_needed
                    )

        logger.warning(
            "Projection for plan %s stopped after %d days with %d of %d "
            "qualifying days found",
            plan.id,
            self._settings.projection_max_days,
            found,
            days_needed,
        )
        return ProjectionResult(
            completion_date=cursor,
            exhausted=True,
            days_needed=days_needed
        )

    def projected_completion_date(
        self,
        plan: Plan,
        reference_date: Optional[date] = None
    ) -> Union[date, str, None]:
        """
        Returns the projected date, the "Goal Met!" sentinel, or None.
        """
        return self.estimate(plan, reference_date).value
