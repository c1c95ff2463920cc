"""
Domain exceptions for the Postline API.

Hierarchy:
    PostlineError
    +-- ValidationError
    +-- NotFoundOrUnauthorized
    +-- InvalidStateTransition
    +-- StoreFailure

Each class carries the HTTP status and error code it is rendered with by
``responses.postline_error_handler``.
"""
from typing import Any, Dict, Optional


class PostlineError(Exception):
    """Base exception for all domain errors."""

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(PostlineError):
    """Raised when a required field is missing or malformed."""

    status_code = 400
    error_code = "VALIDATION_ERROR"


class NotFoundOrUnauthorized(PostlineError):
    """Raised when a record is absent or owned by someone else.

    Both cases are reported identically so callers cannot probe for the
    existence of other users' records.
    """

    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, resource: str = "Scheduled post"):
        super().__init__(f"{resource} not found")


class InvalidStateTransition(PostlineError):
    """Raised when a scheduled post is not in a state that allows the operation."""

    status_code = 409
    error_code = "INVALID_STATE"

    def __init__(self, current: str, action: str):
        super().__init__(
            f"Cannot {action} a scheduled post with status '{current}'",
            {"status": current, "action": action},
        )
        self.current = current
        self.action = action


class StoreFailure(PostlineError):
    """Raised when the data store fails; the cause is logged, never returned."""

    def __init__(self, operation: str):
        super().__init__(f"Data store failure during {operation}")
        self.operation = operation
