"""Timezone loading and clock utilities for occurrence_engine."""

from __future__ import annotations

import datetime
import logging
import os
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

TEST_TIME_ENV_VAR = "OCCURRENCE_ENGINE_TEST_TIME"


def load_timezone(name: str | None) -> datetime.tzinfo:
    """Load an IANA timezone, degrading to UTC when the name is unusable.

    An unknown or malformed zone is not an error for occurrence generation:
    display must keep working for meetings stored with bad timezone data.

    Args:
        name: IANA timezone identifier (e.g. "America/Los_Angeles")

    Returns:
        ZoneInfo for the name, or datetime.timezone.utc on failure
    """
    if not name:
        return datetime.timezone.utc

    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError) as e:
        logger.debug("Unknown timezone %r, falling back to UTC: %s", name, e)
        return datetime.timezone.utc


def ensure_timezone_aware(dt: datetime.datetime) -> datetime.datetime:
    """Return dt unchanged if aware, otherwise interpret it as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=datetime.timezone.utc)
    return dt


def to_utc(dt: datetime.datetime) -> datetime.datetime:
    """Normalize a datetime to an aware UTC datetime."""
    return ensure_timezone_aware(dt).astimezone(datetime.timezone.utc)


class TimeProvider:
    """Provides current time with test time override support."""

    def __init__(self, env_var: str = TEST_TIME_ENV_VAR):
        self.env_var = env_var

    def now_utc(self) -> datetime.datetime:
        """Return current UTC time with tzinfo.

        Can be overridden for testing via the OCCURRENCE_ENGINE_TEST_TIME
        environment variable (ISO 8601, e.g. "2025-10-27T08:20:00-07:00").
        Naive override values are taken as UTC.
        """
        test_time = os.environ.get(self.env_var)
        if test_time:
            try:
                dt = date_parser.isoparse(test_time)
            except (ValueError, OverflowError) as e:
                logger.warning("Failed to parse %s=%r: %s", self.env_var, test_time, e)
            else:
                return to_utc(dt)

        return datetime.datetime.now(datetime.timezone.utc)


# Singleton instance for global use
_time_provider = TimeProvider()


def now_utc() -> datetime.datetime:
    """Get current UTC time (convenience function).

    Returns:
        Current time in UTC
    """
    return _time_provider.now_utc()
