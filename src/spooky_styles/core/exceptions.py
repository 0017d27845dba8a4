"""
API error types.

Every error knows its HTTP status and the code reported in the JSON error
envelope. Services raise them and the Flask error handler in
spooky_styles.app renders them with to_dict().
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def error_envelope(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {
        "success": False,
        "error": {
            "code": code,
            "message": message,
            "details": details or {},
        },
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


class BaseAPIException(Exception):
    status_code = 500
    error_code = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        internal_message: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message  # shown to the client
        self.details = details or {}
        self.internal_message = internal_message or message  # logged only

    @property
    def is_server_error(self) -> bool:
        return self.status_code >= 500

    def to_dict(self) -> Dict[str, Any]:
        return error_envelope(self.error_code, self.message, self.details)


class ValidationError(BaseAPIException):
    """Request data failed validation; field_errors maps field -> messages"""

    status_code = 400
    error_code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: Optional[Dict[str, List[str]]] = None,
    ):
        super().__init__(message, {"field_errors": field_errors} if field_errors else None)


class InsufficientStockError(ValidationError):
    """A cart line would exceed the product's current stock"""

    def __init__(self, available: int):
        super().__init__(
            f"Insufficient stock. Only {available} items available.",
            {"quantity": [f"Only {available} items available"]},
        )
        self.available = available


class BadRequestError(BaseAPIException):
    """Missing identity headers, undecodable bodies, unsigned webhooks"""

    status_code = 400
    error_code = "BAD_REQUEST"

    def __init__(self, message: str = "Bad request"):
        super().__init__(message)


class NotFoundError(BaseAPIException):
    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, resource: str = "Resource", resource_id: Optional[str] = None):
        message = f"{resource} not found"
        if resource_id:
            message += f" with ID: {resource_id}"
        super().__init__(message)
        self.resource = resource


class UnauthorizedError(BaseAPIException):
    status_code = 401
    error_code = "UNAUTHORIZED"

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class ForbiddenError(BaseAPIException):
    status_code = 403
    error_code = "FORBIDDEN"

    def __init__(self, message: str = "Admin access required"):
        super().__init__(message)


class ConflictError(BaseAPIException):
    """The write lost against current state, e.g. stock taken by another checkout"""

    status_code = 409
    error_code = "CONFLICT"

    def __init__(self, message: str = "Resource conflict", conflict_field: Optional[str] = None):
        super().__init__(message, {"conflict_field": conflict_field} if conflict_field else None)


class ExternalServiceError(BaseAPIException):
    """Stripe or Paystack could not be reached or refused the call"""

    status_code = 503
    error_code = "EXTERNAL_SERVICE_ERROR"

    def __init__(self, service_name: str, message: str = "External service unavailable"):
        super().__init__(message, {"service": service_name})


class DatabaseError(BaseAPIException):
    status_code = 500
    error_code = "DATABASE_ERROR"

    def __init__(self, message: str = "Database operation failed", operation: Optional[str] = None):
        super().__init__(
            "An internal error occurred. Please try again later.",
            {"operation": operation} if operation else None,
            internal_message=message,
        )


class InternalServerError(BaseAPIException):
    status_code = 500
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str = "An unexpected error occurred", context: Optional[Dict[str, Any]] = None):
        super().__init__(
            "An internal server error occurred. Please try again later.",
            context,
            internal_message=message,
        )
