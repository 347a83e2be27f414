"""occurrence_engine - recurrence occurrence engine for scheduled meetings.

Expands a meeting's anchor start time and recurrence rule into concrete,
identified occurrences, and validates occurrence IDs supplied by callers.
"""

__version__ = "0.1.0"

from typing import Optional

from .calendar.occurrence_models import (
    MeetingBase,
    Occurrence,
    OccurrenceWindow,
    Recurrence,
    RecurrenceType,
    SeriesEnd,
)
from .config_loader import EngineConfig, load_config
from .domain.occurrence_service import OccurrenceService
from .exceptions import (
    ConfigError,
    OccurrenceConflictError,
    OccurrenceEngineError,
    OccurrenceNotFoundError,
    OccurrenceValidationError,
)

__all__ = [
    "ConfigError",
    "EngineConfig",
    "MeetingBase",
    "Occurrence",
    "OccurrenceConflictError",
    "OccurrenceEngineError",
    "OccurrenceNotFoundError",
    "OccurrenceService",
    "OccurrenceValidationError",
    "OccurrenceWindow",
    "Recurrence",
    "RecurrenceType",
    "SeriesEnd",
    "load_config",
]


def _init_logging(level_name: Optional[str]) -> None:
    """Initialize root logging to stream to console.

    Honors the OCCURRENCE_ENGINE_DEBUG environment variable (truthy values:
    "1", "true", "yes", "on"), which forces DEBUG verbosity so expansion
    diagnostics surface without changing code.
    """
    import logging
    import os
    import sys

    debug_env = os.environ.get("OCCURRENCE_ENGINE_DEBUG", "")
    if debug_env.strip().lower() in ("1", "true", "yes", "on"):
        level_name = "DEBUG"

    root = logging.getLogger()
    # Only configure a handler if none is present to avoid duplicate output.
    if not root.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        fmt = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
        handler.setFormatter(logging.Formatter(fmt, datefmt="%H:%M:%S"))
        root.addHandler(handler)

    level = logging.INFO
    if isinstance(level_name, str):
        resolved = logging.getLevelName(level_name.upper())
        if isinstance(resolved, int):
            level = resolved
    root.setLevel(level)
    logging.getLogger(__name__).debug(
        "Logging initialized at level %s", logging.getLevelName(level)
    )
