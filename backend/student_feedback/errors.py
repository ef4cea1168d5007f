"""
Domain error taxonomy.

Every failure a caller can see is one of these. Each carries the HTTP
status and a stable error code; the message is meant for a human and
never contains stack traces or internal identifiers.
"""


class StudentFeedbackError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(StudentFeedbackError):
    """Bad or missing field, or an enum value outside its allowed set."""

    status_code = 400
    code = "VALIDATION_ERROR"


class NotFoundError(StudentFeedbackError):
    """A referenced student or subject does not exist."""

    status_code = 404
    code = "NOT_FOUND"


class ConflictError(StudentFeedbackError):
    """A unique key (the public student ID) is already taken."""

    status_code = 409
    code = "CONFLICT"


class UpstreamError(StudentFeedbackError):
    """The generative-text service failed, timed out or answered garbage."""

    status_code = 502
    code = "UPSTREAM_FAILURE"


class PersistenceError(StudentFeedbackError):
    """A store write failed. For feedback, the generated text is discarded."""

    status_code = 500
    code = "PERSISTENCE_FAILURE"


class ConfigurationError(Exception):
    """Fatal misconfiguration detected at startup (e.g. missing API key)."""
