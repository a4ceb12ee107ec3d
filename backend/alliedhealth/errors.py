"""Typed workflow errors.

Engine code raises these and never deals in HTTP status codes; the
boundary in ``alliedhealth.http_errors`` decides how they are presented.
"""


class EngineError(Exception):
    """Base class for all workflow engine errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(EngineError):
    """Malformed or out-of-range input the caller can fix."""


class NotFoundError(EngineError):
    """An id did not resolve (or resolves to a retired record)."""


class InvalidTransitionError(EngineError):
    """A state machine rule was violated.

    Covers both transitions out of a terminal state and writes based on a
    stale view of the current state.
    """


class ForbiddenError(EngineError):
    """The caller lacks the department or role scope for the action."""
