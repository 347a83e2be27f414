"""Data models for meeting recurrence and occurrence computation."""

from datetime import datetime
from enum import IntEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from ..timezone_utils import ensure_timezone_aware


class RecurrenceType(IntEnum):
    """Supported recurrence patterns."""

    DAILY = 1
    WEEKLY = 2
    MONTHLY = 3


class Recurrence(BaseModel):
    """How a meeting's anchor start time repeats.

    ``type`` is kept as a plain int so that unrecognized pattern values coming
    from stored data survive parsing; they simply produce no occurrences.
    """

    type: int = Field(..., description="Recurrence type: 1=daily, 2=weekly, 3=monthly")
    repeat_interval: int = Field(default=1, description="Every Nth day/week/month")

    # Weekly
    weekly_days: str = Field(
        default="",
        description="Comma-separated days 1..7 where 1=Sunday; empty means the anchor's weekday",
    )

    # Monthly
    monthly_day: int = Field(default=0, description="Day of month 1..31, takes precedence")
    monthly_week: int = Field(default=0, description="Week of month 1..4, or -1 for last")
    monthly_week_day: int = Field(default=0, description="Weekday 1..7 where 1=Sunday")

    # End conditions
    end_times: int = Field(default=0, description="Maximum number of occurrences, 0=unbounded")
    end_date_time: Optional[datetime] = Field(
        default=None, description="Exclusive upper bound for occurrence start times"
    )

    model_config = ConfigDict(frozen=True)

    @field_validator("end_date_time")
    @classmethod
    def _aware_end_date_time(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return None
        return ensure_timezone_aware(value)

    @field_serializer("end_date_time", when_used="unless-none")
    def serialize_datetime(self, dt: datetime) -> str:
        """Serialize datetime to ISO format."""
        return dt.isoformat()


class Occurrence(BaseModel):
    """A single concrete instance of a meeting."""

    occurrence_id: str = Field(..., description="Start instant as Unix epoch seconds")
    start_time: datetime = Field(..., description="Occurrence start time")
    title: str = Field(default="", description="Meeting title")
    description: str = Field(default="", description="Meeting description")
    duration: int = Field(default=0, description="Duration in minutes")

    # Individual instances never carry a sub-pattern
    recurrence: Optional[Recurrence] = None

    registrant_count: int = 0
    response_count_no: int = 0
    response_count_yes: int = 0
    response_count_maybe: int = 0
    is_cancelled: bool = Field(default=False, description="Cancellation status")

    @field_serializer("start_time")
    def serialize_datetime(self, dt: datetime) -> str:
        """Serialize datetime to ISO format."""
        return dt.isoformat()


class MeetingBase(BaseModel):
    """Snapshot of a meeting as consumed by the occurrence engine."""

    uid: Optional[str] = Field(default=None, description="Meeting UID")
    title: str = Field(default="", description="Meeting title")
    description: str = Field(default="", description="Meeting description")

    start_time: datetime = Field(..., description="Anchor start instant")
    duration: int = Field(default=0, description="Duration in minutes")
    timezone: str = Field(default="UTC", description="IANA timezone name")
    recurrence: Optional[Recurrence] = None

    registrant_count: int = 0

    # Previously computed occurrences; only consulted for per-instance cancellation
    occurrences: list[Occurrence] = Field(default_factory=list)

    @field_validator("start_time")
    @classmethod
    def _aware_start_time(cls, value: datetime) -> datetime:
        return ensure_timezone_aware(value)

    @field_serializer("start_time")
    def serialize_datetime(self, dt: datetime) -> str:
        """Serialize datetime to ISO format."""
        return dt.isoformat()


class OccurrenceWindow(BaseModel):
    """Result of a windowed expansion.

    ``truncated`` is True when a generator stopped at its iteration safety cap
    rather than because the series ended or the limit was reached.
    """

    occurrences: list[Occurrence] = Field(default_factory=list)
    truncated: bool = False

    @property
    def occurrence_ids(self) -> list[str]:
        """IDs of the occurrences in chronological order."""
        return [occ.occurrence_id for occ in self.occurrences]


class SeriesEnd(BaseModel):
    """End of a meeting series.

    ``end_time`` is None for a series without an end condition, one that
    produces no occurrences, or one whose expansion was ``truncated`` before
    reaching its end condition.
    """

    end_time: Optional[datetime] = None
    truncated: bool = False

    @field_serializer("end_time", when_used="unless-none")
    def serialize_datetime(self, dt: datetime) -> str:
        """Serialize datetime to ISO format."""
        return dt.isoformat()
