"""
Savings Tracker - Date Logic Tests.

Property-based and unit tests for exclusion merging and the DateManager.
Tests ensure minimal merged ranges, inclusive exclusion membership and
correct business-day counting.

**Feature: savings-tracker, Property 1: Exclusion Merge Normal Form**
**Feature: savings-tracker, Property 2: Qualifying Day Count Correctness**
"""

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfoNotFoundError

import pytest
from hypothesis import given, settings
from hypothesis.strategies import composite, dates, integers, lists

from savings_tracker.date_logic import DateManager, merge_exclusions
from savings_tracker.schema import ExclusionRange


@composite
def exclusion_ranges(draw):
    """Generate a valid range of up to 20 days within 2024."""
    start = draw(dates(min_value=date(2024, 1, 1), max_value=date(2024, 12, 31)))
    length = draw(integers(min_value=0, max_value=20))
    return ExclusionRange(start, start + timedelta(days=length))


class TestMergeExclusionsUnit:
    """Unit tests for merge_exclusions."""

    def test_merge_example(self) -> None:
        """Verify overlapping January ranges merge and February stays."""
        ranges = [
            ExclusionRange(date(2024, 1, 1), date(2024, 1, 5)),
            ExclusionRange(date(2024, 1, 4), date(2024, 1, 10)),
            ExclusionRange(date(2024, 2, 1), date(2024, 2, 2)),
        ]

        assert merge_exclusions(ranges) == [
            ExclusionRange(date(2024, 1, 1), date(2024, 1, 10)),
            ExclusionRange(date(2024, 2, 1), date(2024, 2, 2)),
        ]

    def test_empty_input_returns_empty(self) -> None:
        """Verify empty and None input yield an empty list."""
        assert merge_exclusions([]) == []
        assert merge_exclusions(None) == []

    def test_unsorted_input_is_sorted(self) -> None:
        """Verify output is sorted regardless of input order."""
        ranges = [
            ExclusionRange(date(2024, 3, 1), date(2024, 3, 2)),
            ExclusionRange(date(2024, 1, 1), date(2024, 1, 2)),
        ]

        merged = merge_exclusions(ranges)

        assert [r.start for r in merged] == [date(2024, 1, 1), date(2024, 3, 1)]

    def test_contained_range_is_absorbed(self) -> None:
        """Verify a range inside another does not shorten it."""
        ranges = [
            ExclusionRange(date(2024, 1, 1), date(2024, 1, 31)),
            ExclusionRange(date(2024, 1, 10), date(2024, 1, 12)),
        ]

        assert merge_exclusions(ranges) == [
            ExclusionRange(date(2024, 1, 1), date(2024, 1, 31))
        ]

    def test_duplicates_collapse(self) -> None:
        """Verify duplicated ranges collapse to one."""
        single = ExclusionRange(date(2024, 5, 1), date(2024, 5, 3))

        assert merge_exclusions([single, single, single]) == [single]

    def test_adjacent_days_stay_separate(self) -> None:
        """Verify a range starting the day after another ends is kept apart."""
        ranges = [
            ExclusionRange(date(2024, 1, 1), date(2024, 1, 5)),
            ExclusionRange(date(2024, 1, 6), date(2024, 1, 8)),
        ]

        assert len(merge_exclusions(ranges)) == 2

    def test_input_not_mutated(self) -> None:
        """Verify the input list keeps its order and content."""
        ranges = [
            ExclusionRange(date(2024, 1, 4), date(2024, 1, 10)),
            ExclusionRange(date(2024, 1, 1), date(2024, 1, 5)),
        ]
        original = list(ranges)

        merge_exclusions(ranges)

        assert ranges == original


class TestMergeExclusionsProperty:
    """
    Property-based tests for merge_exclusions.

    **Feature: savings-tracker, Property 1: Exclusion Merge Normal Form**
    """

    @given(lists(exclusion_ranges(), max_size=15))
    @settings(max_examples=200)
    def test_merge_is_idempotent(self, ranges) -> None:
        """Property: merging a merged list changes nothing."""
        merged = merge_exclusions(ranges)
        assert merge_exclusions(merged) == merged

    @given(lists(exclusion_ranges(), max_size=15))
    @settings(max_examples=200)
    def test_merged_ranges_sorted_and_disjoint(self, ranges) -> None:
        """Property: merged ranges are sorted and pairwise non-overlapping."""
        merged = merge_exclusions(ranges)
        for first, second in zip(merged, merged[1:]):
            assert first.end < second.start

    @given(
        lists(exclusion_ranges(), max_size=10),
        dates(min_value=date(2024, 1, 1), max_value=date(2025, 1, 31))
    )
    @settings(max_examples=200)
    def test_merge_preserves_coverage(self, ranges, day) -> None:
        """Property: a day is covered after merging iff it was before."""
        before = any(r.contains(day) for r in ranges)
        after = any(r.contains(day) for r in merge_exclusions(ranges))
        assert before == after


class TestDateManagerUnit:
    """Unit tests for DateManager edge cases."""

    def setup_method(self) -> None:
        """Initialise DateManager for each test."""
        self.dm = DateManager("Asia/Manila")

    def test_full_business_week(self) -> None:
        """Verify Mon 2024-01-01 to Fri 2024-01-05 counts 5 days."""
        assert self.dm.count_qualifying_days(
            date(2024, 1, 1), date(2024, 1, 5), []
        ) == 5

    def test_business_week_with_excluded_wednesday(self) -> None:
        """Verify excluding Wednesday 2024-01-03 leaves 4 days."""
        exclusions = [ExclusionRange(date(2024, 1, 3), date(2024, 1, 3))]

        assert self.dm.count_qualifying_days(
            date(2024, 1, 1), date(2024, 1, 5), exclusions
        ) == 4

    def test_weekend_not_counted(self) -> None:
        """Verify Saturday and Sunday do not qualify."""
        assert self.dm.count_qualifying_days(
            date(2024, 1, 6), date(2024, 1, 7)
        ) == 0

    def test_two_weeks(self) -> None:
        """Verify Mon 2024-01-01 to Sun 2024-01-14 counts 10 days."""
        assert self.dm.count_qualifying_days(
            date(2024, 1, 1), date(2024, 1, 14)
        ) == 10

    def test_start_after_end_returns_zero(self) -> None:
        """Verify a reversed range counts nothing."""
        assert self.dm.count_qualifying_days(
            date(2024, 1, 5), date(2024, 1, 1)
        ) == 0

    def test_single_day_range(self) -> None:
        """Verify a single weekday counts once."""
        assert self.dm.count_qualifying_days(
            date(2024, 1, 2), date(2024, 1, 2)
        ) == 1

    def test_overlapping_exclusions_not_double_counted(self) -> None:
        """Verify unmerged overlapping exclusions still remove each day once."""
        exclusions = [
            ExclusionRange(date(2024, 1, 2), date(2024, 1, 3)),
            ExclusionRange(date(2024, 1, 3), date(2024, 1, 4)),
        ]

        assert self.dm.count_qualifying_days(
            date(2024, 1, 1), date(2024, 1, 5), exclusions
        ) == 2

    def test_is_excluded_inclusive_bounds(self) -> None:
        """Verify both range ends are excluded and neighbours are not."""
        exclusions = [ExclusionRange(date(2024, 1, 10), date(2024, 1, 12))]

        assert self.dm.is_excluded(date(2024, 1, 10), exclusions) is True
        assert self.dm.is_excluded(date(2024, 1, 12), exclusions) is True
        assert self.dm.is_excluded(date(2024, 1, 9), exclusions) is False
        assert self.dm.is_excluded(date(2024, 1, 13), exclusions) is False

    def test_is_excluded_without_exclusions(self) -> None:
        """Verify no exclusions means nothing is excluded."""
        assert self.dm.is_excluded(date(2024, 1, 10), None) is False

    def test_today_uses_reference_timezone(self) -> None:
        """Verify 17:00 UTC is already the next day in Manila (UTC+8)."""
        instant = datetime(2024, 1, 1, 17, 0, tzinfo=timezone.utc)

        assert self.dm.today(instant) == date(2024, 1, 2)

    def test_today_naive_datetime_is_utc(self) -> None:
        """Verify naive datetimes are treated as UTC."""
        assert self.dm.today(datetime(2024, 1, 1, 15, 59)) == date(2024, 1, 1)
        assert self.dm.today(datetime(2024, 1, 1, 16, 0)) == date(2024, 1, 2)

    def test_resolve_prefers_reference_date(self) -> None:
        """Verify an explicit reference date is returned unchanged."""
        assert self.dm.resolve(date(2020, 2, 29)) == date(2020, 2, 29)

    def test_calendar_days_left(self) -> None:
        """Verify calendar days left counts whole days and floors at 0."""
        assert self.dm.get_calendar_days_left(
            date(2024, 1, 31), date(2024, 1, 1)
        ) == 30
        assert self.dm.get_calendar_days_left(
            date(2024, 1, 1), date(2024, 1, 31)
        ) == 0

    def test_unknown_timezone_raises(self) -> None:
        """Verify an unknown timezone name is rejected."""
        with pytest.raises(ZoneInfoNotFoundError):
            DateManager("Not/AZone")


class TestDateManagerProperty:
    """
    Property-based tests for business-day counting.

    **Feature: savings-tracker, Property 2: Qualifying Day Count Correctness**
    """

    def setup_method(self) -> None:
        """Initialise DateManager for each test."""
        self.dm = DateManager()

    @given(
        dates(min_value=date(2000, 1, 1), max_value=date(2030, 12, 31)),
        integers(min_value=0, max_value=400)
    )
    @settings(max_examples=200)
    def test_count_matches_weekday_filter(self, start: date, span: int) -> None:
        """Property: count equals the number of Mon-Fri dates in range."""
        end = start + timedelta(days=span)
        expected = sum(
            1 for offset in range(span + 1)
            if (start + timedelta(days=offset)).weekday() < 5
        )

        assert self.dm.count_qualifying_days(start, end) == expected

    @given(
        dates(min_value=date(2024, 1, 1), max_value=date(2024, 12, 31)),
        integers(min_value=0, max_value=60),
        lists(exclusion_ranges(), max_size=5)
    )
    @settings(max_examples=200)
    def test_exclusions_never_increase_count(self, start, span, ranges) -> None:
        """Property: adding exclusions never increases the count."""
        end = start + timedelta(days=span)
        without = self.dm.count_qualifying_days(start, end)
        with_exclusions = self.dm.count_qualifying_days(start, end, ranges)

        assert 0 <= with_exclusions <= without

    @given(dates(min_value=date(2000, 1, 1), max_value=date(2030, 12, 31)))
    @settings(max_examples=100)
    def test_full_week_has_five_days(self, start: date) -> None:
        """Property: any 7 consecutive days hold exactly 5 weekdays."""
        assert self.dm.count_qualifying_days(
            start, start + timedelta(days=6)
        ) == 5
