"""occurrence_engine.config_loader

Config loader for the occurrence engine.

- Reads YAML (PyYAML) or JSON, chosen by file suffix.
- Exposes a typed dataclass `EngineConfig` and a `load_config()` helper that
  accepts an optional path override.
- Environment variables named OCCURRENCE_ENGINE_<FIELD> override file values.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from .calendar.pattern_generators import MAX_DAYS_COUNT, MAX_MONTHS_COUNT, MAX_WEEKS_COUNT
from .calendar.relevance import RELEVANCE_BUFFER_MINUTES
from .exceptions import ConfigError

logger = logging.getLogger(__name__)

ENV_PREFIX = "OCCURRENCE_ENGINE_"


@dataclass(frozen=True)
class EngineConfig:
    """Typed configuration for the occurrence engine.

    Fields:
        max_days_count: safety cap on daily expansion steps
        max_weeks_count: safety cap on weekly expansion steps
        max_months_count: safety cap on monthly expansion steps
        relevance_buffer_minutes: grace period after an occurrence ends
        default_limit: occurrences returned for "upcoming" listings
        validation_horizon: occurrences checked when validating an ID
        closest_match_limit: occurrences searched when matching an observed start
        log_level: logging level name
    """

    max_days_count: int = MAX_DAYS_COUNT
    max_weeks_count: int = MAX_WEEKS_COUNT
    max_months_count: int = MAX_MONTHS_COUNT
    relevance_buffer_minutes: int = RELEVANCE_BUFFER_MINUTES
    default_limit: int = 50
    validation_horizon: int = 100
    closest_match_limit: int = 100
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> EngineConfig:
        """Create EngineConfig from a plain mapping, applying defaults and validation.

        Numeric-like values are coerced to int. Caps and limits below 1 (and a
        negative relevance buffer) are replaced by their defaults; every
        coercion is logged as a warning. Unknown keys are ignored.
        """
        if data is None:
            data = {}

        defaults = cls()

        def _coerce_int(key: str, minimum: int) -> int:
            default = getattr(defaults, key)
            raw = data.get(key, default)
            try:
                value = int(raw)
            except (TypeError, ValueError):
                logger.warning("Config %s=%r is not an int; using default %d", key, raw, default)
                return default
            if value < minimum:
                logger.warning(
                    "Config %s=%d below minimum %d; using default %d", key, value, minimum, default
                )
                return default
            return value

        unknown = sorted(set(data) - {f.name for f in fields(cls)})
        if unknown:
            logger.debug("Ignoring unknown config keys: %s", unknown)

        log_level = data.get("log_level", defaults.log_level)
        log_level = str(log_level).upper() if log_level is not None else defaults.log_level

        return cls(
            max_days_count=_coerce_int("max_days_count", 1),
            max_weeks_count=_coerce_int("max_weeks_count", 1),
            max_months_count=_coerce_int("max_months_count", 1),
            relevance_buffer_minutes=_coerce_int("relevance_buffer_minutes", 0),
            default_limit=_coerce_int("default_limit", 1),
            validation_horizon=_coerce_int("validation_horizon", 1),
            closest_match_limit=_coerce_int("closest_match_limit", 1),
            log_level=log_level,
        )

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def apply_env_overrides(
    config: EngineConfig, environ: Mapping[str, str] | None = None
) -> EngineConfig:
    """Return a copy of config with OCCURRENCE_ENGINE_<FIELD> variables applied."""
    env = os.environ if environ is None else environ
    overrides: dict[str, Any] = {}
    for f in fields(config):
        value = env.get(ENV_PREFIX + f.name.upper())
        if value is not None:
            overrides[f.name] = value

    if not overrides:
        return config

    logger.debug("Applying environment overrides: %s", sorted(overrides))
    merged = config.to_dict()
    merged.update(overrides)
    return EngineConfig.from_dict(merged)


def _load_yaml_or_json(path: Path) -> Any:
    """Load a mapping from a YAML or JSON file.

    ``.json`` files are parsed as JSON; anything else goes through
    ``yaml.safe_load``, which also accepts JSON documents.
    """
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() == ".json":
            return json.loads(text)
        loaded = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Unable to parse {path}: {exc}") from exc
    # safe_load can return None for empty files; normalize to empty dict
    return {} if loaded is None else loaded


def load_mapping(path: str | Path) -> dict[str, Any]:
    """Load a YAML/JSON file that must contain a mapping at top level.

    Raises:
        ConfigError: If the file cannot be parsed or is not a mapping
    """
    p = Path(path)
    raw = _load_yaml_or_json(p)
    if not isinstance(raw, dict):
        logger.warning("File %s parsed but top-level is not a mapping: %r", p, raw)
        raise ConfigError(f"{p} must contain a mapping at top level")
    return raw


def load_config(path: str | None = None, *, use_env: bool = True) -> EngineConfig:
    """Load configuration from a YAML/JSON file and return an EngineConfig.

    Args:
        path: Optional path to the config file. If not provided the default is
              ./occurrence_engine.yaml (relative to current working dir).
        use_env: Apply OCCURRENCE_ENGINE_<FIELD> environment overrides

    Behavior:
    - If file is missing: returns EngineConfig() with defaults.
    - If file exists but top-level is not a mapping: raises ConfigError.
    """
    p = Path(path) if path else Path.cwd() / "occurrence_engine.yaml"
    logger.debug("Attempting to load config from %s", p)
    if not p.exists():
        logger.info("Config file %s not found; using defaults", p)
        cfg = EngineConfig()
    else:
        cfg = EngineConfig.from_dict(load_mapping(p))
        logger.info("Loaded configuration from %s", p)

    if use_env:
        cfg = apply_env_overrides(cfg)
    logger.debug("Configuration values: %s", cfg)
    return cfg
