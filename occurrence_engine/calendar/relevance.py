"""Relevance filtering and result windowing for generated occurrences."""

from collections.abc import Iterable
from datetime import datetime, timedelta
from itertools import islice
from typing import TypeVar

from ..timezone_utils import to_utc

# Grace period after an occurrence ends during which it is still shown
RELEVANCE_BUFFER_MINUTES = 40

T = TypeVar("T")


def is_occurrence_relevant(
    occurrence_start: datetime,
    duration: int,
    from_date: datetime,
    buffer_minutes: int = RELEVANCE_BUFFER_MINUTES,
) -> bool:
    """Check whether an occurrence should be shown relative to from_date.

    An occurrence is relevant if it starts on or after from_date, or if it is
    still ongoing or ended less than ``buffer_minutes`` before from_date.

    Args:
        occurrence_start: Start of the occurrence
        duration: Occurrence duration in minutes
        from_date: Reference instant
        buffer_minutes: Grace period after the occurrence ends

    Returns:
        True if the occurrence is relevant
    """
    start = to_utc(occurrence_start)
    reference = to_utc(from_date)
    end_with_buffer = start + timedelta(minutes=duration + buffer_minutes)
    return start >= reference or end_with_buffer > reference


def select_relevant(
    candidates: Iterable[datetime],
    duration: int,
    from_date: datetime,
    limit: int,
    buffer_minutes: int = RELEVANCE_BUFFER_MINUTES,
) -> list[datetime]:
    """Take the first ``limit`` relevant candidates, preserving order.

    Candidates are pulled lazily, so a generator is never advanced further
    than needed to fill the limit.
    """
    if limit <= 0:
        return []
    relevant = (
        start
        for start in candidates
        if is_occurrence_relevant(start, duration, from_date, buffer_minutes)
    )
    return list(islice(relevant, limit))


def cap_by_end_times(items: list[T], end_times: int) -> list[T]:
    """Cap the returned list length by a rule's ``end_times`` (0 = no cap).

    The cap applies to the already filtered list, not to the series as a
    whole: with a later from_date it does not mean "the Nth occurrence".
    """
    if end_times > 0 and len(items) > end_times:
        return items[:end_times]
    return items
