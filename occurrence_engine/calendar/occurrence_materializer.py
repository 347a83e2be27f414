"""Build Occurrence values from candidate instants."""

import calendar
from datetime import datetime, timezone, tzinfo
from typing import Optional

from .occurrence_models import MeetingBase, Occurrence


def occurrence_id_for(start: datetime) -> str:
    """Stable identity of an occurrence: its start as Unix epoch seconds.

    The same absolute instant always yields the same ID, whatever timezone
    the datetime is expressed in.
    """
    return str(calendar.timegm(start.utctimetuple()))


def occurrence_start_from_id(occurrence_id: str, tz: Optional[tzinfo] = None) -> datetime:
    """Reverse an occurrence ID into its start instant, for display.

    Raises:
        ValueError: If the ID is not a decimal epoch-seconds string
    """
    seconds = int(occurrence_id.strip())
    start = datetime.fromtimestamp(seconds, tz=timezone.utc)
    return start.astimezone(tz) if tz is not None else start


class OccurrenceMaterializer:
    """Turns candidate instants into Occurrence values for one meeting.

    Per-instance cancellation is looked up by ID in the meeting's previously
    cached occurrences; generated occurrences keep no reference to them.
    """

    def __init__(self, meeting: MeetingBase):
        self.meeting = meeting
        self._cancelled = {occ.occurrence_id: occ.is_cancelled for occ in meeting.occurrences}

    def create(self, start_time: datetime) -> Occurrence:
        """Create the occurrence starting at start_time.

        Response counts start at zero; they are filled in from RSVPs elsewhere.
        """
        occurrence_id = occurrence_id_for(start_time)
        meeting = self.meeting
        return Occurrence(
            occurrence_id=occurrence_id,
            start_time=start_time,
            title=meeting.title,
            description=meeting.description,
            duration=meeting.duration,
            recurrence=None,
            registrant_count=meeting.registrant_count,
            response_count_no=0,
            response_count_yes=0,
            response_count_maybe=0,
            is_cancelled=self._cancelled.get(occurrence_id, False),
        )

    def create_all(self, start_times: list[datetime]) -> list[Occurrence]:
        return [self.create(start) for start in start_times]
