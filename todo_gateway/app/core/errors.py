from typing import Optional


class TaskValidationError(Exception):
    """Raised when request data fails validation before any query is issued."""

    def __init__(self, message: str, *, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class InvalidBodyError(TaskValidationError):
    """Raised when a request body cannot be decoded into a JSON object."""


def error_message(exc: BaseException) -> str:
    """Return the driver-level text for a database error."""

    orig = getattr(exc, "orig", None)
    if orig is not None:
        return str(orig)
    return str(exc)
