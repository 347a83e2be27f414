"""Candidate generators for daily, weekly and monthly recurrence patterns.

Each generator is a restartable, lazy iterable of candidate start instants in
the meeting's timezone. Generators only apply ``end_date_time`` and their own
iteration safety cap; relevance filtering and result limits belong to the
consumer, which simply stops iterating once it has enough.

When the consumer knows that nothing before some instant can be relevant it
passes ``skip_before``; generation then starts at the last step before that
instant and the safety cap counts steps from there.
"""

import logging
from collections.abc import Iterator
from datetime import MAXYEAR, MINYEAR, datetime, timedelta
from itertools import count
from typing import Optional

from ..timezone_utils import to_utc
from .calendar_math import (
    DAYS_PER_WEEK,
    add_months,
    at_time_of,
    clamp_day_to_month,
    nth_weekday_of_month,
    parse_weekly_days,
    rule_day_to_weekday,
    start_of_week,
)
from .occurrence_models import Recurrence, RecurrenceType

logger = logging.getLogger(__name__)

MAX_DAYS_COUNT = 7300
MAX_WEEKS_COUNT = 1000
MAX_MONTHS_COUNT = 500


class PatternGenerator:
    """Base class for recurrence candidate generators.

    Attributes:
        anchor: Meeting start time expressed in the meeting's timezone
        recurrence: Rule being expanded
        max_steps: Iteration safety cap (days, weeks or months)
        skip_before: Optional instant before which no candidate is wanted
        truncated: True once iteration stopped because of the safety cap or
            because the cursor left the supported date range
    """

    def __init__(
        self,
        anchor: datetime,
        recurrence: Recurrence,
        end_date: Optional[datetime],
        max_steps: int,
        skip_before: Optional[datetime] = None,
    ):
        self.anchor = anchor
        self.recurrence = recurrence
        self.end_utc = to_utc(end_date) if end_date is not None else None
        self.max_steps = max_steps
        self.skip_before = skip_before
        self.truncated = False

    def __iter__(self) -> Iterator[datetime]:
        self.truncated = False
        return self._candidates()

    def _candidates(self) -> Iterator[datetime]:
        raise NotImplementedError

    def _first_step(self, origin: datetime, step_days: int) -> int:
        """Index of the last step of step_days from origin that starts before skip_before.

        One extra step is kept as margin for DST shifts between wall-clock
        and absolute time. Zero when there is nothing to skip.
        """
        if self.skip_before is None or step_days <= 0:
            return 0
        elapsed = to_utc(self.skip_before) - to_utc(origin)
        return max(0, elapsed.days // step_days - 1)

    def _reached_end(self, candidate: datetime) -> bool:
        """True if candidate is at or after the exclusive end date."""
        return self.end_utc is not None and to_utc(candidate) >= self.end_utc

    def _hit_cap(self) -> None:
        self.truncated = True
        logger.debug(
            "%s stopped at safety cap of %d steps (anchor=%s)",
            type(self).__name__,
            self.max_steps,
            self.anchor,
        )

    def _hit_date_limit(self, reason: object) -> None:
        self.truncated = True
        logger.debug(
            "%s stopped at the supported date range (anchor=%s): %s",
            type(self).__name__,
            self.anchor,
            reason,
        )


def _in_date_range(candidate: datetime) -> bool:
    # Boundary years are excluded so UTC conversion and duration math stay valid
    return MINYEAR < candidate.year < MAXYEAR


class DailyGenerator(PatternGenerator):
    """Every ``repeat_interval`` days at the anchor's wall-clock time."""

    def _candidates(self) -> Iterator[datetime]:
        interval = self.recurrence.repeat_interval
        first = self._first_step(self.anchor, interval)
        for index in count(first):
            if index - first >= self.max_steps:
                self._hit_cap()
                return
            try:
                candidate = self.anchor + timedelta(days=index * interval)
            except OverflowError as e:
                self._hit_date_limit(e)
                return
            if not _in_date_range(candidate):
                self._hit_date_limit(candidate.year)
                return
            if self._reached_end(candidate):
                return
            yield candidate


class WeeklyGenerator(PatternGenerator):
    """Selected weekdays of every ``repeat_interval``-th week.

    Weeks start on Sunday. Iteration begins with the week containing the
    first selected weekday on or after the anchor; within each visited week
    candidates come out in weekday order.
    """

    def __init__(
        self,
        anchor: datetime,
        recurrence: Recurrence,
        end_date: Optional[datetime],
        max_steps: int,
        skip_before: Optional[datetime] = None,
    ):
        super().__init__(anchor, recurrence, end_date, max_steps, skip_before)
        self.weekdays = parse_weekly_days(recurrence.weekly_days) or [anchor.weekday()]

    def first_occurrence(self) -> datetime:
        """First selected weekday on or after the anchor, at the anchor's time."""
        anchor_day = self.anchor.date()
        for offset in range(DAYS_PER_WEEK):
            day = anchor_day + timedelta(days=offset)
            if day.weekday() in self.weekdays:
                return at_time_of(day, self.anchor)
        return self.anchor

    def _week(self, week_start: datetime, week_count: int) -> Optional[list[datetime]]:
        """Candidates of one visited week, or None once the week starts past the end."""
        step_days = week_count * self.recurrence.repeat_interval * DAYS_PER_WEEK
        current_week = week_start + timedelta(days=step_days)
        if not _in_date_range(current_week):
            raise OverflowError(f"week starting in year {current_week.year}")
        if self._reached_end(current_week):
            return None
        days = []
        for weekday in self.weekdays:
            offset = (weekday - current_week.weekday()) % DAYS_PER_WEEK
            days.append(at_time_of(current_week.date() + timedelta(days=offset), self.anchor))
        return days

    def _candidates(self) -> Iterator[datetime]:
        try:
            week_start = start_of_week(self.first_occurrence())
        except OverflowError as e:
            self._hit_date_limit(e)
            return
        first = self._first_step(week_start, self.recurrence.repeat_interval * DAYS_PER_WEEK)

        for week_count in count(first):
            try:
                week = self._week(week_start, week_count)
            except OverflowError as e:
                self._hit_date_limit(e)
                return
            if week is None:
                return

            for candidate in week:
                # Later weekdays or weeks may still be valid, so skip rather than stop
                if self._reached_end(candidate):
                    continue
                yield candidate

            if week_count + 1 - first > self.max_steps:
                self._hit_cap()
                return


class MonthlyGenerator(PatternGenerator):
    """One candidate per ``repeat_interval``-th month.

    The day within each target month is chosen, in priority order, by the
    fixed ``monthly_day``, by the ``monthly_week`` / ``monthly_week_day``
    pair, or by the anchor's own day of month.
    """

    def occurrence_for_month(self, month_count: int) -> datetime:
        """Candidate for the month ``month_count`` steps after the anchor's month."""
        rule = self.recurrence
        target = add_months(self.anchor.date(), month_count * rule.repeat_interval)

        if rule.monthly_day > 0:
            day = clamp_day_to_month(target.year, target.month, rule.monthly_day)
        elif rule.monthly_week != 0 and 1 <= rule.monthly_week_day <= DAYS_PER_WEEK:
            day = nth_weekday_of_month(
                target.year,
                target.month,
                rule_day_to_weekday(rule.monthly_week_day),
                rule.monthly_week,
            )
        else:
            day = clamp_day_to_month(target.year, target.month, self.anchor.day)

        return at_time_of(day, self.anchor)

    def _first_month(self) -> int:
        interval = self.recurrence.repeat_interval
        if self.skip_before is None or interval <= 0:
            return 0
        skip = self.skip_before.astimezone(self.anchor.tzinfo)
        months_between = (skip.year - self.anchor.year) * 12 + skip.month - self.anchor.month
        return max(0, months_between // interval - 1)

    def _candidates(self) -> Iterator[datetime]:
        if self._reached_end(self.anchor):
            return

        first = self._first_month()
        for month_count in count(first):
            try:
                candidate = self.occurrence_for_month(month_count)
            except (OverflowError, ValueError) as e:
                self._hit_date_limit(e)
                return
            if not _in_date_range(candidate):
                self._hit_date_limit(candidate.year)
                return
            if self._reached_end(candidate):
                return
            yield candidate

            if month_count + 1 - first > self.max_steps:
                self._hit_cap()
                return


def create_generator(
    recurrence: Recurrence,
    anchor: datetime,
    *,
    max_days: int = MAX_DAYS_COUNT,
    max_weeks: int = MAX_WEEKS_COUNT,
    max_months: int = MAX_MONTHS_COUNT,
    skip_before: Optional[datetime] = None,
) -> Optional[PatternGenerator]:
    """Build the generator matching the rule type.

    Args:
        recurrence: Recurrence rule to expand
        anchor: Meeting start time already converted to the meeting's timezone
        max_days: Safety cap for daily rules
        max_weeks: Safety cap for weekly rules
        max_months: Safety cap for monthly rules
        skip_before: Instant before which candidates are not needed

    Returns:
        A PatternGenerator, or None for an unrecognized recurrence type
    """
    end_date = recurrence.end_date_time

    if recurrence.type == RecurrenceType.DAILY:
        return DailyGenerator(anchor, recurrence, end_date, max_days, skip_before)
    if recurrence.type == RecurrenceType.WEEKLY:
        return WeeklyGenerator(anchor, recurrence, end_date, max_weeks, skip_before)
    if recurrence.type == RecurrenceType.MONTHLY:
        return MonthlyGenerator(anchor, recurrence, end_date, max_months, skip_before)

    logger.debug("Unrecognized recurrence type %r, no occurrences generated", recurrence.type)
    return None
