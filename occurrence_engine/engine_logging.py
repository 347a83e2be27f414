"""
Central logging configuration for occurrence_engine.

Occurrence expansion logs per-call diagnostics at DEBUG (timezone fallbacks,
safety cap hits, pattern dispatch). This module keeps those quiet in
production while allowing them to be switched on for troubleshooting.
"""

import logging
import os
from typing import Optional

PACKAGE_LOGGER = "occurrence_engine"

ENGINE_MODULES = [
    PACKAGE_LOGGER,
    "occurrence_engine.__main__",
    "occurrence_engine.calendar.calendar_math",
    "occurrence_engine.calendar.occurrence_materializer",
    "occurrence_engine.calendar.occurrence_models",
    "occurrence_engine.calendar.pattern_generators",
    "occurrence_engine.calendar.relevance",
    "occurrence_engine.config_loader",
    "occurrence_engine.domain.occurrence_service",
    "occurrence_engine.domain.occurrence_validator",
    "occurrence_engine.engine_logging",
    "occurrence_engine.exceptions",
    "occurrence_engine.timezone_utils",
]


def configure_engine_logging(
    debug_mode: bool = False,
    force_debug: Optional[bool] = None,
    root_level_name: Optional[str] = None,
) -> None:
    """
    Configure logging levels for occurrence_engine modules.

    Args:
        debug_mode: Whether to enable debug logging for occurrence_engine modules
        force_debug: Override debug mode setting (None to use env var detection)
        root_level_name: Root log level when not in debug mode (default INFO)

    Environment Variables:
        OCCURRENCE_ENGINE_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        OCCURRENCE_ENGINE_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_debug = os.getenv("OCCURRENCE_ENGINE_DEBUG", "").lower() in ("1", "true", "yes")
    env_log_level = os.getenv("OCCURRENCE_ENGINE_LOG_LEVEL", "").upper()

    if force_debug is not None:
        final_debug = force_debug
    elif env_debug:
        final_debug = True
    else:
        final_debug = debug_mode

    root_level = logging.DEBUG if final_debug else logging.INFO
    if not final_debug and root_level_name:
        resolved = logging.getLevelName(root_level_name.upper())
        if isinstance(resolved, int):
            root_level = resolved
    if env_log_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
        root_level = getattr(logging, env_log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(root_level)
        handler.setFormatter(
            logging.Formatter("[%(asctime)s] %(levelname)s - %(name)s - %(message)s")
        )
        root_logger.addHandler(handler)

    engine_level = logging.DEBUG if final_debug else max(logging.INFO, root_level)
    for module in ENGINE_MODULES:
        logging.getLogger(module).setLevel(engine_level)

    if final_debug:
        root_logger.info("Debug logging enabled for occurrence_engine modules.")
    else:
        root_logger.info("Production logging configuration applied.")


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels
    """
    status = {"root": logging.getLevelName(logging.getLogger().level)}
    for logger_name in ENGINE_MODULES:
        status[logger_name] = logging.getLevelName(logging.getLogger(logger_name).level)
    return status
