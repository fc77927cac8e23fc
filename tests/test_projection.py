"""
Savings Tracker - Projection Tests.

Unit tests for ProjectionEstimator class.
Tests ensure applicability rules, the goal-met sentinel, the qualifying
day walk and the iteration ceiling.
"""

import logging
from datetime import date
from decimal import Decimal

from savings_tracker.config import PlannerSettings
from savings_tracker.date_logic import DateManager
from savings_tracker.projection import ProjectionEstimator
from savings_tracker.schema import GOAL_MET, ExclusionRange, Plan

MONDAY = date(2024, 1, 1)


def make_plan(goal: str, saved: str, daily_goal: str, exclusions=None) -> Plan:
    """Creates an indefinite plan with an open day."""
    return Plan(
        id="p1",
        name="Indefinite",
        start_date=MONDAY,
        goal=Decimal(goal),
        total_saved=Decimal(saved),
        day_active=True,
        daily_savings_goal=Decimal(daily_goal),
        exclusions=exclusions or [],
    )


class TestProjectionEstimatorUnit:
    """Unit tests for ProjectionEstimator."""

    def setup_method(self) -> None:
        """Initialise ProjectionEstimator for each test."""
        self.estimator = ProjectionEstimator(DateManager(), PlannerSettings())

    def test_no_goal_returns_none(self) -> None:
        """Verify plans without a goal have no projection."""
        plan = make_plan("0", "0", "50")

        assert self.estimator.projected_completion_date(plan, MONDAY) is None

    def test_no_daily_target_returns_none(self) -> None:
        """Verify a zero daily target has no projection."""
        plan = make_plan("1000", "0", "0")

        assert self.estimator.projected_completion_date(plan, MONDAY) is None

    def test_goal_met_sentinel(self) -> None:
        """Verify the sentinel once savings reach the goal."""
        plan = make_plan("1000", "1000", "50")

        assert self.estimator.projected_completion_date(plan, MONDAY) == GOAL_MET
        assert GOAL_MET == "Goal Met!"

    def test_walk_starts_tomorrow(self) -> None:
        """Verify one needed day from Monday lands on Tuesday."""
        plan = make_plan("100", "50", "50")

        assert self.estimator.projected_completion_date(plan, MONDAY) == date(2024, 1, 2)

    def test_walk_skips_weekend(self) -> None:
        """
        Verify 10 needed days from Monday 2024-01-01 end on Monday 2024-01-15.

        Tue-Fri (4), Mon-Fri (5), Mon (1).
        """
        plan = make_plan("1000", "0", "100")

        assert self.estimator.projected_completion_date(plan, MONDAY) == date(2024, 1, 15)

    def test_partial_day_rounds_up(self) -> None:
        """Verify 101 / 100 needs two qualifying days."""
        plan = make_plan("101", "0", "100")

        result = self.estimator.estimate(plan, MONDAY)

        assert result.days_needed == 2
        assert result.completion_date == date(2024, 1, 3)

    def test_walk_skips_exclusions(self) -> None:
        """Verify excluded days are not counted."""
        plan = make_plan(
            "200", "0", "100",
            exclusions=[ExclusionRange(date(2024, 1, 2), date(2024, 1, 3))]
        )

        assert self.estimator.projected_completion_date(plan, MONDAY) == date(2024, 1, 5)

    def test_ceiling_returns_best_effort(self, caplog) -> None:
        """Verify the walk stops at the ceiling and flags exhaustion."""
        estimator = ProjectionEstimator(
            DateManager(), PlannerSettings(projection_max_days=30)
        )
        plan = make_plan(
            "1000", "0", "1",
            exclusions=[ExclusionRange(date(2024, 1, 1), date(2030, 1, 1))]
        )

        with caplog.at_level(logging.WARNING):
            result = estimator.estimate(plan, MONDAY)

        assert result.exhausted is True
        assert result.completion_date == date(2024, 1, 31)
        assert "stopped after 30 days" in caplog.text

    def test_result_value_matches_contract(self) -> None:
        """Verify estimate().value equals projected_completion_date()."""
        plan = make_plan("300", "0", "100")

        assert self.estimator.estimate(plan, MONDAY).value == \
            self.estimator.projected_completion_date(plan, MONDAY)
