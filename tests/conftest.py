"""Shared fixtures for occurrence_engine tests."""

import logging
from collections.abc import Callable, Generator
from datetime import datetime, timezone
from typing import Any, Optional

import pytest

from occurrence_engine.calendar.occurrence_models import MeetingBase, Recurrence
from occurrence_engine.domain.occurrence_service import OccurrenceService
from occurrence_engine.engine_logging import ENGINE_MODULES


def pytest_configure(config: Any) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests")


@pytest.fixture
def service() -> OccurrenceService:
    """OccurrenceService with default configuration."""
    return OccurrenceService()


@pytest.fixture
def make_meeting() -> Callable[..., MeetingBase]:
    """Factory for MeetingBase snapshots with test-friendly defaults.

    Keyword arguments not consumed by the factory are passed through to
    MeetingBase; ``recurrence`` may be a dict of Recurrence fields.
    """

    def _make(
        start_time: datetime = datetime(2024, 6, 1, 10, 0, tzinfo=timezone.utc),
        duration: int = 60,
        tz: str = "UTC",
        recurrence: Optional[dict[str, Any]] = None,
        **kwargs: Any,
    ) -> MeetingBase:
        kwargs.setdefault("uid", "meeting-1")
        kwargs.setdefault("title", "Test Meeting")
        kwargs.setdefault("description", "Test Description")
        return MeetingBase(
            start_time=start_time,
            duration=duration,
            timezone=tz,
            recurrence=Recurrence(**recurrence) if recurrence is not None else None,
            **kwargs,
        )

    return _make


@pytest.fixture(autouse=True)
def clean_test_environment(monkeypatch: Any) -> Generator[None, Any, None]:
    """Ensure the clock override is not leaked between tests."""
    monkeypatch.delenv("OCCURRENCE_ENGINE_TEST_TIME", raising=False)
    yield
    monkeypatch.delenv("OCCURRENCE_ENGINE_TEST_TIME", raising=False)


@pytest.fixture
def restore_logging() -> Generator[None, Any, None]:
    """Restore root and engine logger levels changed by a test."""
    names = ["", *ENGINE_MODULES]
    saved = {name: logging.getLogger(name).level for name in names}
    yield
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)
