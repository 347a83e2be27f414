"""Occurrence operations consumed by the meeting service."""

from .occurrence_service import OccurrenceService
from .occurrence_validator import validate_future_occurrence_id

__all__ = ["OccurrenceService", "validate_future_occurrence_id"]
