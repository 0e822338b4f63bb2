"""Error taxonomy and classification utilities.

Every business-rule failure raised by the core derives from TaskPulseError and
carries a stable error code plus the HTTP status the interface layer maps it to.
"""

from enum import Enum

from pydantic import BaseModel

from taskpulse.core.config import Constants


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCode:
    """Error codes for specific error conditions."""

    # Input errors
    ERR_VALIDATION = "ERR_VALIDATION"

    # Lookup errors
    ERR_NOT_FOUND = "ERR_NOT_FOUND"
    ERR_TASK_NOT_FOUND = "ERR_TASK_NOT_FOUND"
    ERR_STEP_NOT_FOUND = "ERR_STEP_NOT_FOUND"
    ERR_ASSIGNEE_NOT_FOUND = "ERR_ASSIGNEE_NOT_FOUND"

    # State conflicts
    ERR_CONFLICT = "ERR_CONFLICT"
    ERR_TIMER_ALREADY_RUNNING = "ERR_TIMER_ALREADY_RUNNING"
    ERR_TIMER_NOT_RUNNING = "ERR_TIMER_NOT_RUNNING"
    ERR_DUPLICATE_ASSIGNEE = "ERR_DUPLICATE_ASSIGNEE"
    ERR_VERSION_CONFLICT = "ERR_VERSION_CONFLICT"

    # Permission errors
    ERR_PERMISSION_DENIED = "ERR_PERMISSION_DENIED"
    ERR_NOT_ASSIGNED = "ERR_NOT_ASSIGNED"

    # Storage errors
    ERR_STORAGE = "ERR_STORAGE"

    # Generic errors
    ERR_UNKNOWN = "ERR_UNKNOWN"


class TaskPulseError(Exception):
    """Base class for all taskpulse failures."""

    status_code: int = Constants.HTTP_SERVER_ERROR
    default_code: str = ErrorCode.ERR_UNKNOWN
    severity: ErrorSeverity = ErrorSeverity.MEDIUM

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code


class ValidationError(TaskPulseError):
    """Malformed or missing input (empty label, bad status value)."""

    status_code = Constants.HTTP_BAD_REQUEST
    default_code = ErrorCode.ERR_VALIDATION
    severity = ErrorSeverity.LOW


class NotFoundError(TaskPulseError):
    """Task, assignee entry or workflow step is absent."""

    status_code = Constants.HTTP_NOT_FOUND
    default_code = ErrorCode.ERR_NOT_FOUND
    severity = ErrorSeverity.LOW


class ConflictError(TaskPulseError):
    """Operation conflicts with current state (timer, duplicate assignee, stale version)."""

    status_code = Constants.HTTP_CONFLICT
    default_code = ErrorCode.ERR_CONFLICT
    severity = ErrorSeverity.LOW


class AuthorizationError(TaskPulseError):
    """Caller is neither the assignee nor an administrator."""

    status_code = Constants.HTTP_FORBIDDEN
    default_code = ErrorCode.ERR_PERMISSION_DENIED
    severity = ErrorSeverity.MEDIUM


class StorageError(TaskPulseError):
    """Backing store failed to read or write."""

    status_code = Constants.HTTP_SERVER_ERROR
    default_code = ErrorCode.ERR_STORAGE
    severity = ErrorSeverity.HIGH


class ErrorResponse(BaseModel):
    """Structured error response returned to clients."""

    code: str
    message: str
    severity: ErrorSeverity


def classify_error_with_response(exception: Exception) -> ErrorResponse:
    """Classify an error and return a structured, user-facing response.

    Known TaskPulseError subclasses keep their own code and message. Storage
    failures and unexpected exceptions are reported without internal details.

    Args:
        exception: The exception raised during execution

    Returns:
        ErrorResponse with code, message, and severity
    """
    if isinstance(exception, StorageError):
        return ErrorResponse(
            code=exception.code,
            message="The task store is temporarily unavailable. Please try again later.",
            severity=exception.severity,
        )

    if isinstance(exception, TaskPulseError):
        return ErrorResponse(code=exception.code, message=exception.message, severity=exception.severity)

    return ErrorResponse(
        code=ErrorCode.ERR_UNKNOWN,
        message="An unexpected error occurred.",
        severity=ErrorSeverity.MEDIUM,
    )


def status_code_for(exception: Exception) -> int:
    """Return the HTTP status code an exception maps to."""
    if isinstance(exception, TaskPulseError):
        return exception.status_code
    return Constants.HTTP_SERVER_ERROR
