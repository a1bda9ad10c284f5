"""Error taxonomy and user-facing error classification."""

from enum import Enum
from typing import Any

from pydantic import BaseModel


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCode:
    """Error codes for specific error conditions."""

    ERR_VALIDATION = "ERR_VALIDATION"
    ERR_NOT_AUTHORIZED = "ERR_NOT_AUTHORIZED"
    ERR_NOT_FOUND = "ERR_NOT_FOUND"
    ERR_CONFLICT = "ERR_CONFLICT"
    ERR_TRANSIENT = "ERR_TRANSIENT"

    # Generic errors
    ERR_UNKNOWN = "ERR_UNKNOWN"


class TaskBoardError(Exception):
    """Base class for errors surfaced to the caller as user-visible messages.

    None of these are retried automatically.
    """

    code: str = ErrorCode.ERR_UNKNOWN
    severity: ErrorSeverity = ErrorSeverity.MEDIUM

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    @property
    def user_message(self) -> str:
        """Message suitable for showing to the user."""
        return self.message


class ValidationError(TaskBoardError):
    """Blank title, missing due date or assignees where policy requires them."""

    code = ErrorCode.ERR_VALIDATION
    severity = ErrorSeverity.LOW


class NotAuthorizedError(TaskBoardError):
    """Self-service action attempted on another identity's assignment."""

    code = ErrorCode.ERR_NOT_AUTHORIZED


class NotFoundError(TaskBoardError):
    """Task or assignment row absent."""

    code = ErrorCode.ERR_NOT_FOUND
    severity = ErrorSeverity.LOW


class ConflictError(TaskBoardError):
    """Duplicate assignment rows for one (task, assignee) pair.

    The mutating operation is refused until the duplicates are resolved.
    """

    code = ErrorCode.ERR_CONFLICT
    severity = ErrorSeverity.HIGH

    def __init__(self, message: str, *, duplicate_ids: list[str] | None = None, **details: Any) -> None:
        super().__init__(message, duplicate_ids=duplicate_ids or [], **details)
        self.duplicate_ids = duplicate_ids or []


class TransientError(TaskBoardError):
    """Network or remote failure with no state change guaranteed."""

    code = ErrorCode.ERR_TRANSIENT


ERRORS_BY_CODE: dict[str, type[TaskBoardError]] = {
    cls.code: cls for cls in (ValidationError, NotAuthorizedError, NotFoundError, ConflictError, TransientError)
}


class ErrorResponse(BaseModel):
    """Structured error response with user-friendly messaging."""

    code: str
    message: str
    suggestion: str
    severity: ErrorSeverity


_SUGGESTIONS: dict[str, str] = {
    ErrorCode.ERR_VALIDATION: "Check the highlighted fields and try again.",
    ErrorCode.ERR_NOT_AUTHORIZED: "You can only update your own assignments. Ask an admin if this looks wrong.",
    ErrorCode.ERR_NOT_FOUND: "The task may have been deleted. Reload the board and try again.",
    ErrorCode.ERR_CONFLICT: "This task has duplicate assignments. An admin needs to remove the duplicates.",
    ErrorCode.ERR_TRANSIENT: "Please check your connection and try again.",
}


def error_from_code(code: str | None, message: str, **details: Any) -> TaskBoardError:
    """Rebuild a taxonomy error from its wire code (unknown codes become TransientError)."""
    error_cls = ERRORS_BY_CODE.get(code or "", TransientError)
    if error_cls is ConflictError:
        return ConflictError(message, duplicate_ids=list(details.pop("duplicate_ids", None) or []), **details)
    return error_cls(message, **details)


def classify_error_with_response(exception: Exception) -> ErrorResponse:
    """Classify an error and return a structured response with recovery suggestions.

    Args:
        exception: The exception raised during execution

    Returns:
        ErrorResponse with code, message, suggestion, and severity
    """
    if isinstance(exception, TaskBoardError):
        return ErrorResponse(
            code=exception.code,
            message=exception.user_message,
            suggestion=_SUGGESTIONS.get(exception.code, "Please try again later."),
            severity=exception.severity,
        )

    if isinstance(exception, ConnectionError | TimeoutError):
        return ErrorResponse(
            code=ErrorCode.ERR_TRANSIENT,
            message="Network error occurred.",
            suggestion=_SUGGESTIONS[ErrorCode.ERR_TRANSIENT],
            severity=ErrorSeverity.MEDIUM,
        )

    if isinstance(exception, PermissionError):
        return ErrorResponse(
            code=ErrorCode.ERR_NOT_AUTHORIZED,
            message="You don't have permission for this action.",
            suggestion=_SUGGESTIONS[ErrorCode.ERR_NOT_AUTHORIZED],
            severity=ErrorSeverity.MEDIUM,
        )

    return ErrorResponse(
        code=ErrorCode.ERR_UNKNOWN,
        message="An unexpected error occurred.",
        suggestion="Please try again later. If the problem persists, contact support.",
        severity=ErrorSeverity.MEDIUM,
    )
