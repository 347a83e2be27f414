"""Command-line entry for occurrence_engine.

Expands or validates occurrences for a meeting described in a YAML or JSON
file whose fields match ``MeetingBase``.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Optional

from dateutil import parser as date_parser
from pydantic import ValidationError

from . import _init_logging
from .calendar.occurrence_models import MeetingBase
from .config_loader import load_config, load_mapping
from .domain.occurrence_service import OccurrenceService
from .engine_logging import configure_engine_logging
from .exceptions import ConfigError, OccurrenceValidationError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INVALID = 2


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for the occurrence_engine CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="occurrence_engine",
        description="Expand meeting recurrence rules into concrete occurrences",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m occurrence_engine expand meeting.yaml --limit 10
  python -m occurrence_engine expand meeting.yaml --from 2024-06-05T00:00:00Z
  python -m occurrence_engine validate meeting.yaml 1717405200
  python -m occurrence_engine series-end meeting.json
        """,
    )
    parser.add_argument("--config", metavar="PATH", help="Engine config file (YAML or JSON)")
    parser.add_argument("--log-level", metavar="LEVEL", help="Log level (default: from config)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    expand = subparsers.add_parser("expand", help="Print occurrences as a JSON array")
    expand.add_argument("meeting_file", help="Meeting snapshot (YAML or JSON)")
    expand.add_argument(
        "--from",
        dest="from_date",
        metavar="ISO",
        help="Reference instant (default: the meeting's start time)",
    )
    expand.add_argument("--limit", type=int, metavar="N", help="Maximum occurrences to print")

    validate = subparsers.add_parser("validate", help="Check an occurrence ID is in the future")
    validate.add_argument("meeting_file", help="Meeting snapshot (YAML or JSON)")
    validate.add_argument("occurrence_id", help="Occurrence ID to validate")
    validate.add_argument("--max", type=int, metavar="N", help="Occurrences to check")

    series_end = subparsers.add_parser("series-end", help="Print the end of the meeting series")
    series_end.add_argument("meeting_file", help="Meeting snapshot (YAML or JSON)")

    return parser


def _load_meeting(path: str) -> MeetingBase:
    return MeetingBase.model_validate(load_mapping(path))


def main(argv: Optional[list[str]] = None) -> int:
    """Run the occurrence_engine CLI and return the process exit code."""
    args = _create_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_INVALID

    log_level = (args.log_level or config.log_level).upper()
    _init_logging(log_level)
    configure_engine_logging(debug_mode=log_level == "DEBUG", root_level_name=log_level)
    service = OccurrenceService(config)

    try:
        meeting = _load_meeting(args.meeting_file)
    except (ConfigError, ValidationError, OSError) as exc:
        logger.debug("Failed to load meeting from %s", args.meeting_file, exc_info=True)
        print(f"Error: invalid meeting file {args.meeting_file}: {exc}", file=sys.stderr)
        return EXIT_INVALID

    if args.command == "expand":
        limit = args.limit if args.limit is not None else config.default_limit
        if args.from_date:
            try:
                from_date = date_parser.isoparse(args.from_date)
            except ValueError as exc:
                print(f"Error: invalid --from value {args.from_date!r}: {exc}", file=sys.stderr)
                return EXIT_INVALID
            occurrences = service.calculate_occurrences_from_date(meeting, from_date, limit)
        else:
            occurrences = service.calculate_occurrences(meeting, limit)
        print(json.dumps([occ.model_dump(mode="json") for occ in occurrences], indent=2))
        return EXIT_OK

    if args.command == "validate":
        try:
            service.validate_future_occurrence_id(meeting, args.occurrence_id, args.max)
        except OccurrenceValidationError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return EXIT_INVALID
        print("ok")
        return EXIT_OK

    series_end = service.calculate_series_end(meeting)
    if series_end.truncated:
        print("Warning: expansion stopped before the series end was reached", file=sys.stderr)
    end = series_end.end_time
    print(json.dumps(end.isoformat() if end is not None else None))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
