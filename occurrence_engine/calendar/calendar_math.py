"""Calendar arithmetic helpers for recurrence expansion.

Recurrence rules number weekdays 1..7 starting from Sunday, independent of
locale. Python's ``date.weekday()`` numbers them 0..6 starting from Monday.
Every translation between the two goes through ``rule_day_to_weekday`` and
``weekday_to_rule_day``; nothing relies on the two schemes lining up.
"""

import calendar
import logging
from datetime import date, datetime, timedelta

from dateutil.relativedelta import relativedelta, weekday as rd_weekday

logger = logging.getLogger(__name__)

DAYS_PER_WEEK = 7

# Python weekday() value of the first day of the week (Sunday)
WEEK_START_WEEKDAY = calendar.SUNDAY


def rule_day_to_weekday(rule_day: int) -> int:
    """Translate a rule weekday (1=Sunday .. 7=Saturday) to ``date.weekday()``.

    Raises:
        ValueError: If rule_day is outside 1..7
    """
    if not 1 <= rule_day <= DAYS_PER_WEEK:
        raise ValueError(f"Rule weekday must be within 1..7, got {rule_day}")
    return (rule_day - 2) % DAYS_PER_WEEK


def weekday_to_rule_day(py_weekday: int) -> int:
    """Translate ``date.weekday()`` (0=Monday .. 6=Sunday) to a rule weekday."""
    if not 0 <= py_weekday < DAYS_PER_WEEK:
        raise ValueError(f"Weekday must be within 0..6, got {py_weekday}")
    return (py_weekday + 1) % DAYS_PER_WEEK + 1


def parse_weekly_days(weekly_days: str) -> list[int]:
    """Parse a weekly days string such as "2,4,6" into ``date.weekday()`` values.

    Entries that are not integers within 1..7 are dropped. The result is
    ordered by position in a Sunday-first week and free of duplicates.
    """
    if not weekly_days:
        return []

    rule_days: set[int] = set()
    for raw in weekly_days.split(","):
        raw = raw.strip()
        try:
            day = int(raw)
        except ValueError:
            logger.debug("Ignoring non-numeric weekly day %r", raw)
            continue
        if 1 <= day <= DAYS_PER_WEEK:
            rule_days.add(day)
        else:
            logger.debug("Ignoring out-of-range weekly day %d", day)

    return [rule_day_to_weekday(day) for day in sorted(rule_days)]


def days_since_week_start(day: date) -> int:
    """Number of days between the Sunday that starts day's week and day."""
    return (day.weekday() - WEEK_START_WEEKDAY) % DAYS_PER_WEEK


def start_of_week(dt: datetime) -> datetime:
    """Move dt back to the first day (Sunday) of its week, keeping wall time."""
    return dt - timedelta(days=days_since_week_start(dt))


def at_time_of(day: date, anchor: datetime) -> datetime:
    """Combine a calendar day with the anchor's wall-clock time and zone."""
    return datetime.combine(day, anchor.time(), tzinfo=anchor.tzinfo)


def add_months(day: date, months: int) -> date:
    """First day of the month that lies ``months`` after day's month."""
    return day.replace(day=1) + relativedelta(months=months)


def last_day_of_month(year: int, month: int) -> int:
    """Number of the last day of the given month."""
    return calendar.monthrange(year, month)[1]


def clamp_day_to_month(year: int, month: int, day: int) -> date:
    """Build a date, clamping day to the month's last valid day.

    Example: day 31 in February 2024 yields 2024-02-29.
    """
    return date(year, month, min(day, last_day_of_month(year, month)))


def nth_weekday_of_month(year: int, month: int, py_weekday: int, week: int) -> date:
    """Resolve the nth given weekday of a month.

    ``week == -1`` selects the last such weekday. Any other ordinal counts
    from the first matching day; a result that would leave the month
    degrades to the last such weekday of the month.
    """
    if week == -1:
        return last_weekday_of_month(year, month, py_weekday)

    first = date(year, month, 1) + relativedelta(weekday=rd_weekday(py_weekday))
    candidate = first + timedelta(weeks=week - 1)
    if (candidate.year, candidate.month) != (year, month):
        return last_weekday_of_month(year, month, py_weekday)
    return candidate


def last_weekday_of_month(year: int, month: int, py_weekday: int) -> date:
    """Resolve the last given weekday of a month."""
    last = date(year, month, last_day_of_month(year, month))
    return last + relativedelta(weekday=rd_weekday(py_weekday)(-1))
