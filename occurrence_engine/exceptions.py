"""Exception hierarchy for the occurrence engine.

Occurrence generation itself never raises: malformed input degrades to an
empty result. These types cover the operations that must reject a call,
such as validating an occurrence ID for registration or cancelling a
specific instance.
"""


class OccurrenceEngineError(Exception):
    """Base exception for all occurrence engine errors."""


class OccurrenceValidationError(OccurrenceEngineError):
    """A call was rejected by validation.

    Raised when:
    - The meeting or occurrence ID is missing
    - The number of occurrences to check is not positive
    - The occurrence ID does not belong to the meeting
    - The occurrence ID refers to an instance that already started

    The reason is carried by the message text only.
    """


class OccurrenceNotFoundError(OccurrenceEngineError):
    """The requested occurrence is not among the meeting's upcoming occurrences."""


class OccurrenceConflictError(OccurrenceEngineError):
    """The requested change conflicts with the occurrence's current state.

    Raised when cancelling an occurrence that is already cancelled.
    """


class ConfigError(OccurrenceEngineError):
    """Configuration file could not be interpreted."""
