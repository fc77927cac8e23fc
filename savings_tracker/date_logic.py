"""
Savings Tracker - Date Logic Module.

This module provides the calendar calculations behind savings planning:
merging exclusion ranges, testing exclusion membership and counting
qualifying (Monday to Friday, non-excluded) days.

All "today" determinations use a fixed reference timezone so that day
boundaries do not depend on the host clock's local zone.

Functions:
    merge_exclusions: Normalises ranges into a minimal sorted set.

Classes:
    DateManager: Manages all date-related calculations for planning.
"""

from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional
from zoneinfo import ZoneInfo

from savings_tracker.config import DEFAULT_TIMEZONE
from savings_tracker.schema import ExclusionRange

ONE_DAY = timedelta(days=1)

# date.weekday() values for Saturday and Sunday
WEEKEND_DAYS = (5, 6)


def merge_exclusions(
    ranges: Optional[Iterable[ExclusionRange]]
) -> List[ExclusionRange]:
    """
    Merges exclusion ranges into a minimal, sorted, non-overlapping list.

    Ranges are sorted by start date and scanned once. A range whose start
    is on or before the current range's end is folded into it.

    Args:
        ranges: Ranges in any order, possibly overlapping or duplicated.

    Returns:
        New list of merged ranges. Empty if ranges is empty or None.

    Example:
        >>> merge_exclusions([
        ...     ExclusionRange(date(2024, 1, 4), date(2024, 1, 10)),
        ...     ExclusionRange(date(2024, 1, 1), date(2024, 1, 5)),
        ... ])
        [ExclusionRange(start=datetime.date(2024, 1, 1), end=datetime.date(2024, 1, 10))]
    """
    if not ranges:
        return []

    ordered = sorted(ranges, key=lambda r: r.start)
    merged: List[ExclusionRange] = []
    current = ordered[0]

    for candidate in ordered[1:]:
        if candidate.start <= current.end:
            current = ExclusionRange(current.start, max(current.end, candidate.end))
        else:
            merged.append(current)
            current = candidate

    merged.append(current)
    return merged


class DateManager:
    """
    Manages date calculations for savings planning.

    Handles reference-timezone "today", exclusion membership and
    business-day counting.

    Example:
        >>> dm = DateManager()
        >>> dm.count_qualifying_days(date(2024, 1, 1), date(2024, 1, 5))
        5
    """

    def __init__(self, timezone: str = DEFAULT_TIMEZONE):
        """
        Initialises the DateManager.

        Args:
            timezone: IANA name of the reference timezone.
        """
        self._timezone = ZoneInfo(timezone)

    @property
    def timezone(self) -> ZoneInfo:
        """Reference timezone used for "today"."""
        return self._timezone

    def today(self, now: Optional[datetime] = None) -> date:
        """
        Returns the civil date in the reference timezone.

        Args:
            now: Instant to convert. Defaults to the current time. Naive
                 values are taken as UTC.

        Returns:
            Calendar date in the reference timezone.
        """
        if now is None:
            return datetime.now(self._timezone).date()
        if now.tzinfo is None:
            now = now.replace(tzinfo=ZoneInfo("UTC"))
        return now.astimezone(self._timezone).date()

    def resolve(self, reference_date: Optional[date] = None) -> date:
        """Returns reference_date, or today in the reference timezone."""
        if reference_date is None:
            return self.today()
        return reference_date

    def is_excluded(
        self,
        day: date,
        exclusions: Optional[Iterable[ExclusionRange]]
    ) -> bool:
        """
        Determines if a date falls within any exclusion range.

        Args:
            day: Calendar date to test.
            exclusions: Exclusion ranges, merged or not.

        Returns:
            True if day lies within a range, inclusive on both ends.
        """
        return any(r.contains(day) for r in merge_exclusions(exclusions))

    def is_qualifying_day(
        self,
        day: date,
        exclusions: Optional[Iterable[ExclusionRange]] = None
    ) -> bool:
        """
        Determines if a date is a qualifying day.

        A qualifying day is Monday to Friday and not excluded.
        """
        if day.weekday() in WEEKEND_DAYS:
            return False
        return not self.is_excluded(day, exclusions)

    def count_qualifying_days(
        self,
        start: date,
        end: date,
        exclusions: Optional[Iterable[ExclusionRange]] = None
    ) -> int:
        """
        Counts qualifying days between two dates, inclusive of both.

        Args:
            start: First date of the range.
            end: Last date of the range.
            exclusions: Exclusion ranges to skip.

        Returns:
            Number of Monday to Friday dates not covered by an exclusion.
            Zero when start is after end.
        """
        merged = merge_exclusions(exclusions)
        count = 0
        cursor = start

        while cursor <= end:
            if cursor.weekday() not in WEEKEND_DAYS and not any(
                r.contains(cursor) for r in merged
            ):
                count += 1
            cursor += ONE_DAY

        return count

    def get_calendar_days_left(
        self,
        end: date,
        reference_date: Optional[date] = None
    ) -> int:
        """
        Calculates whole calendar days from the reference date to end.

        Args:
            end: Target end date.
            reference_date: Date to calculate from. Defaults to today.

        Returns:
            Calendar days remaining, minimum 0.
        """
        reference_date = self.resolve(reference_date)
        return max(0, (end - reference_date).days)
