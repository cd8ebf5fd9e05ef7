from typing import Any, Optional


class AppException(Exception):
    """Base exception for all caller-facing application errors."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: Optional[Any] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class NotFoundException(AppException):
    """Exception raised when a resource is not found."""

    def __init__(self, message: str = "Resource not found", details: Optional[Any] = None):
        super().__init__(
            code="NOT_FOUND",
            message=message,
            status_code=404,
            details=details,
        )


class ValidationException(AppException):
    """Exception raised when validation fails.

    ``details`` is a list of ``{"field": ..., "message": ...}`` entries.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        details: Optional[Any] = None,
        field: Optional[str] = None,
    ):
        if details is None and field is not None:
            details = [{"field": field, "message": message}]
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=400,
            details=details,
        )


class InvalidStateException(AppException):
    """Exception raised when an operation is not allowed in the entity's current state."""

    def __init__(self, message: str = "Operation not allowed", details: Optional[Any] = None):
        super().__init__(
            code="INVALID_STATE",
            message=message,
            status_code=400,
            details=details,
        )


class UnauthorizedException(AppException):
    """Exception raised when authentication fails."""

    def __init__(self, message: str = "Unauthorized access", details: Optional[Any] = None):
        super().__init__(
            code="UNAUTHORIZED",
            message=message,
            status_code=401,
            details=details,
        )


class ForbiddenException(AppException):
    """Exception raised when the caller's role or plan does not allow the action."""

    def __init__(
        self,
        message: str = "You do not have permission to access this resource",
        required_plan: Optional[str] = None,
        details: Optional[Any] = None,
    ):
        if required_plan is not None:
            details = {**(details or {}), "requiredPlan": required_plan}
        self.required_plan = required_plan
        super().__init__(
            code="FORBIDDEN",
            message=message,
            status_code=403,
            details=details,
        )
