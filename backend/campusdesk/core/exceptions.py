class AppError(Exception):
    """Base class for all application exceptions."""

    def __init__(self, message: str, status_code: int = 500, errors: list[dict] | None = None, extra: dict | None = None):
        self.message = message
        self.status_code = status_code
        self.errors = errors or []
        self.extra = extra or {}
        super().__init__(self.message)


class ValidationFailedError(AppError):
    """Raised when input is malformed or out of range."""

    def __init__(self, message: str = "Validation failed", errors: list[dict] | None = None):
        super().__init__(message, status_code=400, errors=errors)

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationFailedError":
        return cls(message, errors=[{"field": field, "message": message}])


class AuthenticationError(AppError):
    """Raised when a credential is missing, invalid or expired."""

    def __init__(self, message: str = "Invalid or expired token", extra: dict | None = None):
        super().__init__(message, status_code=401, extra=extra)


class PermissionDeniedError(AppError):
    """Raised when the caller is authenticated but lacks role or ownership."""

    def __init__(self, message: str = "Access denied - insufficient permissions"):
        super().__init__(message, status_code=403)


class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, message: str | None = None):
        super().__init__(message or f"{resource_type} not found", status_code=404)


class ConflictError(AppError):
    """Raised on duplicates, overlapping bookings and already-processed records."""

    def __init__(self, message: str, extra: dict | None = None):
        super().__init__(message, status_code=400, extra=extra)


class ServerError(AppError):
    """Raised when an operation fails for reasons the caller cannot fix."""

    def __init__(self, message: str = "Internal server error", detail: str | None = None):
        super().__init__(message, status_code=500)
        self.detail = detail
