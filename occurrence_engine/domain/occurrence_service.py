"""Occurrence calculation for meetings with optional recurrence rules."""

from __future__ import annotations

import logging
from collections import deque
from datetime import datetime, timedelta
from itertools import islice
from typing import Optional

from dateutil.relativedelta import relativedelta

from ..calendar.occurrence_materializer import OccurrenceMaterializer, occurrence_id_for
from ..calendar.occurrence_models import MeetingBase, Occurrence, OccurrenceWindow, SeriesEnd
from ..calendar.pattern_generators import PatternGenerator, create_generator
from ..calendar.relevance import cap_by_end_times, is_occurrence_relevant, select_relevant
from ..config_loader import EngineConfig
from ..exceptions import OccurrenceConflictError, OccurrenceNotFoundError
from ..timezone_utils import ensure_timezone_aware, load_timezone, now_utc, to_utc
from .occurrence_validator import validate_future_occurrence_id

logger = logging.getLogger(__name__)


class OccurrenceService:
    """Computes concrete occurrences of meetings.

    The service is stateless apart from its configuration; every call reads
    only its arguments, so one instance can be shared freely.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()

    def calculate_occurrences(self, meeting: Optional[MeetingBase], limit: int) -> list[Occurrence]:
        """Calculate occurrences starting from the meeting's own start time."""
        if meeting is None:
            return []
        return self.calculate_occurrences_from_date(meeting, meeting.start_time, limit)

    def calculate_occurrences_from_date(
        self,
        meeting: Optional[MeetingBase],
        from_date: datetime,
        limit: int,
    ) -> list[Occurrence]:
        """Calculate up to ``limit`` occurrences relevant at or after from_date.

        Never raises for bad input: a missing meeting or a non-positive limit
        gives an empty list, and an unknown timezone falls back to UTC.
        """
        return self.calculate_occurrence_window(meeting, from_date, limit).occurrences

    def calculate_occurrence_window(
        self,
        meeting: Optional[MeetingBase],
        from_date: datetime,
        limit: int,
    ) -> OccurrenceWindow:
        """Same as calculate_occurrences_from_date, also reporting truncation.

        ``truncated`` is set when a generator hit its safety cap or the edge
        of the supported date range, which the plain list result cannot
        distinguish from the series ending.
        """
        if meeting is None or limit <= 0:
            return OccurrenceWindow()

        from_date = ensure_timezone_aware(from_date)
        materializer = OccurrenceMaterializer(meeting)
        buffer_minutes = self.config.relevance_buffer_minutes

        if meeting.recurrence is None:
            if is_occurrence_relevant(meeting.start_time, meeting.duration, from_date, buffer_minutes):
                return OccurrenceWindow(occurrences=[materializer.create(meeting.start_time)])
            return OccurrenceWindow()

        # Starts at or before this instant can no longer be relevant
        skip_before = from_date - timedelta(minutes=max(0, meeting.duration + buffer_minutes))
        generator = self._create_generator(meeting, skip_before)
        if generator is None:
            return OccurrenceWindow()

        starts = select_relevant(generator, meeting.duration, from_date, limit, buffer_minutes)
        starts = cap_by_end_times(starts, meeting.recurrence.end_times)

        logger.debug(
            "Calculated %d occurrences for meeting %s (type=%s, from=%s, limit=%d, truncated=%s)",
            len(starts),
            meeting.uid,
            meeting.recurrence.type,
            from_date,
            limit,
            generator.truncated,
        )
        return OccurrenceWindow(
            occurrences=materializer.create_all(starts),
            truncated=generator.truncated,
        )

    def _create_generator(
        self, meeting: MeetingBase, skip_before: Optional[datetime] = None
    ) -> Optional[PatternGenerator]:
        loc = load_timezone(meeting.timezone)
        return create_generator(
            meeting.recurrence,
            meeting.start_time.astimezone(loc),
            max_days=self.config.max_days_count,
            max_weeks=self.config.max_weeks_count,
            max_months=self.config.max_months_count,
            skip_before=skip_before,
        )

    def validate_future_occurrence_id(
        self,
        meeting: Optional[MeetingBase],
        occurrence_id: str,
        max_occurrences_to_check: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> None:
        """Check that occurrence_id names a future occurrence of the meeting.

        ``max_occurrences_to_check`` defaults to the configured validation
        horizon.

        Raises:
            OccurrenceValidationError: See occurrence_validator.validate_future_occurrence_id
        """
        if max_occurrences_to_check is None:
            max_occurrences_to_check = self.config.validation_horizon
        validate_future_occurrence_id(self, meeting, occurrence_id, max_occurrences_to_check, now)

    def upcoming_occurrences(
        self,
        meeting: Optional[MeetingBase],
        now: Optional[datetime] = None,
        limit: Optional[int] = None,
        include_cancelled: bool = False,
    ) -> list[Occurrence]:
        """Occurrences relevant from now on, as listed when a meeting is read.

        Cancelled occurrences are dropped unless include_cancelled is set.
        """
        reference = now if now is not None else now_utc()
        occurrences = self.calculate_occurrences_from_date(
            meeting, reference, limit if limit is not None else self.config.default_limit
        )
        if include_cancelled:
            return occurrences
        return [occ for occ in occurrences if not occ.is_cancelled]

    def calculate_series_end(self, meeting: Optional[MeetingBase]) -> SeriesEnd:
        """End time of the last occurrence of the meeting series.

        A bounded series is expanded from its anchor until the end condition
        stops it. If a safety cap or the supported date range stops it first,
        the result carries ``truncated`` and no end time.

        Returns:
            SeriesEnd with start + duration for a single meeting, the end of
            the final occurrence for a bounded series, or no end time for a
            series without an end condition (or one that produces no
            occurrences)
        """
        if meeting is None:
            return SeriesEnd()

        duration = timedelta(minutes=meeting.duration)
        rule = meeting.recurrence
        if rule is None:
            return SeriesEnd(end_time=meeting.start_time + duration)

        if rule.end_times <= 0 and rule.end_date_time is None:
            return SeriesEnd()

        generator = self._create_generator(meeting)
        if generator is None:
            return SeriesEnd()

        buffer_minutes = self.config.relevance_buffer_minutes
        starts = (
            start
            for start in generator
            if is_occurrence_relevant(start, meeting.duration, meeting.start_time, buffer_minutes)
        )
        if rule.end_times > 0:
            starts = islice(starts, rule.end_times)
        last = deque(starts, maxlen=1)

        if generator.truncated:
            logger.warning(
                "Series end of meeting %s not reached before expansion stopped (type=%s)",
                meeting.uid,
                rule.type,
            )
            return SeriesEnd(truncated=True)
        if not last:
            return SeriesEnd()

        last_start = last[0]
        return SeriesEnd(end_time=(to_utc(last_start) + duration).astimezone(last_start.tzinfo))

    def get_series_end_date(self, meeting: Optional[MeetingBase]) -> Optional[datetime]:
        """End time of the last occurrence of the series, or None when unknown.

        See calculate_series_end for the cases that yield None.
        """
        return self.calculate_series_end(meeting).end_time

    def find_closest_occurrence_id(self, meeting: MeetingBase, actual_start: datetime) -> str:
        """Map an observed start instant to the nearest scheduled occurrence ID.

        Used to attribute a "meeting started" notification to an occurrence.
        Recurring meetings are searched from one month before actual_start.
        Falls back to the anchor's ID when nothing is generated.
        """
        actual_start = ensure_timezone_aware(actual_start)
        if meeting.recurrence is None:
            return occurrence_id_for(meeting.start_time)

        search_start = actual_start - relativedelta(months=1)
        occurrences = self.calculate_occurrences_from_date(
            meeting, search_start, self.config.closest_match_limit
        )
        if not occurrences:
            logger.debug(
                "No occurrences found for meeting %s near %s; using scheduled start",
                meeting.uid,
                actual_start,
            )
            return occurrence_id_for(meeting.start_time)

        target = to_utc(actual_start)
        closest = min(occurrences, key=lambda occ: abs(to_utc(occ.start_time) - target))
        return closest.occurrence_id

    def cancel_occurrence(
        self,
        meeting: MeetingBase,
        occurrence_id: str,
        now: Optional[datetime] = None,
    ) -> list[Occurrence]:
        """Return the upcoming occurrences with one of them marked cancelled.

        The meeting itself is not modified; persisting the returned list is
        the caller's job.

        Raises:
            OccurrenceNotFoundError: If the ID is not among the upcoming occurrences
            OccurrenceConflictError: If the occurrence is already cancelled
        """
        occurrences = self.upcoming_occurrences(meeting, now=now, include_cancelled=True)

        for index, occ in enumerate(occurrences):
            if occ.occurrence_id != occurrence_id:
                continue
            if occ.is_cancelled:
                raise OccurrenceConflictError("occurrence is already cancelled")
            occurrences[index] = occ.model_copy(update={"is_cancelled": True})
            logger.info("Marked occurrence %s of meeting %s as cancelled", occurrence_id, meeting.uid)
            return occurrences

        raise OccurrenceNotFoundError("occurrence not found for this meeting")
