"""Validation of occurrence IDs supplied by callers (e.g. for registration)."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Protocol

from ..calendar.occurrence_models import MeetingBase, Occurrence
from ..exceptions import OccurrenceValidationError
from ..timezone_utils import now_utc, to_utc

logger = logging.getLogger(__name__)


class OccurrenceSource(Protocol):
    """Anything able to expand a meeting from its start time."""

    def calculate_occurrences(self, meeting: Optional[MeetingBase], limit: int) -> list[Occurrence]:
        ...


def validate_future_occurrence_id(
    source: OccurrenceSource,
    meeting: Optional[MeetingBase],
    occurrence_id: str,
    max_occurrences_to_check: int,
    now: Optional[datetime] = None,
) -> None:
    """Check that occurrence_id names a future occurrence of the meeting.

    The meeting is expanded from its start time, up to
    ``max_occurrences_to_check`` occurrences, and the ID looked up among them.

    Args:
        source: Occurrence calculator used for the expansion
        meeting: Meeting the occurrence should belong to
        occurrence_id: Caller-supplied occurrence ID
        max_occurrences_to_check: Expansion horizon
        now: Reference instant for "future" (defaults to the current time)

    Raises:
        OccurrenceValidationError: If any input is missing, the ID is unknown,
            or the occurrence already started
    """
    if meeting is None or not occurrence_id:
        raise OccurrenceValidationError("meeting and occurrence ID are required")

    if max_occurrences_to_check <= 0:
        raise OccurrenceValidationError("maxOccurrencesToCheck must be greater than 0")

    found: Optional[Occurrence] = None
    for occ in source.calculate_occurrences(meeting, max_occurrences_to_check):
        logger.debug("checking occurrence %s", occ.occurrence_id)
        if occ.occurrence_id == occurrence_id:
            found = occ
            break

    if found is None:
        raise OccurrenceValidationError(
            "invalid occurrence ID: occurrence not found for this meeting"
        )

    reference = to_utc(now) if now is not None else now_utc()
    if to_utc(found.start_time) < reference:
        raise OccurrenceValidationError(
            "invalid occurrence ID: cannot register for past occurrences"
        )
