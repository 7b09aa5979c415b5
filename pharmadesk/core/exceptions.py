from typing import Dict, Any, Optional
from datetime import datetime
from fastapi import status
from pydantic import BaseModel
import logging

logger = logging.getLogger(__name__)


class BaseCustomException(Exception):
    """Base class for custom exceptions"""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.error_code = error_code
        super().__init__(self.message)


class ValidationError(BaseCustomException):
    """Exception for validation errors"""

    def __init__(
        self,
        message: str = "Validation failed",
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details,
            error_code=error_code or "VALIDATION_ERROR"
        )


class AuthorizationError(BaseCustomException):
    """Exception for authorization errors"""

    def __init__(
        self,
        message: str = "Access denied",
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            details=details,
            error_code=error_code or "AUTHORIZATION_ERROR"
        )


class NotFoundError(BaseCustomException):
    """Exception for resource not found errors"""

    def __init__(
        self,
        message: str = "Resource not found",
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details=details,
            error_code=error_code or "NOT_FOUND_ERROR"
        )


class ConflictError(BaseCustomException):
    """Exception for conflict errors"""

    def __init__(
        self,
        message: str = "Resource conflict",
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            details=details,
            error_code=error_code or "CONFLICT_ERROR"
        )


class RateLimitError(BaseCustomException):
    """Exception for rate limit errors"""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            details=details,
            error_code=error_code or "RATE_LIMIT_ERROR"
        )


class DatabaseError(BaseCustomException):
    """Exception for database errors"""

    def __init__(
        self,
        message: str = "Database operation failed",
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=details,
            error_code=error_code or "DATABASE_ERROR"
        )


# Medicine request errors

class ItemNotFoundError(NotFoundError):
    """A medicine is not one of the request's line items"""

    def __init__(self, request_id: int, medicine_id: int):
        super().__init__(
            message=f"Medicine with ID {medicine_id} not found in request",
            details={"requestId": request_id, "medicineId": medicine_id},
            error_code="ITEM_NOT_FOUND"
        )


class InvalidStateError(ConflictError):
    """Operation is not allowed for the request's current status"""

    def __init__(
        self,
        message: str = "Operation not allowed in the current request status",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, details=details, error_code="INVALID_STATE")


class InvalidQuantityError(ValidationError):
    """Supplied quantity is zero or negative"""

    def __init__(self, medicine_id: int, quantity: int):
        super().__init__(
            message=f"Quantity must be greater than 0 for medicine ID: {medicine_id}",
            details={"medicineId": medicine_id, "quantity": quantity},
            error_code="INVALID_QUANTITY"
        )


class InsufficientStockError(ConflictError):
    """Requested quantity exceeds the medicine's current stock"""

    def __init__(self, medicine_name: str, requested: int, available: int):
        self.medicine_name = medicine_name
        self.requested = requested
        self.available = available
        super().__init__(
            message=(
                f"Insufficient stock for {medicine_name}. "
                f"Available: {available}, Requested: {requested}"
            ),
            details={
                "medicineName": medicine_name,
                "requested": requested,
                "available": available,
            },
            error_code="INSUFFICIENT_STOCK"
        )


# Response models for errors
class ErrorResponse(BaseModel):
    """Standard error response model"""
    error: str
    message: str
    error_code: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: Optional[str] = None
    request_id: Optional[str] = None


def create_error_response(
    exception: BaseCustomException,
    request_id: Optional[str] = None
) -> Dict[str, Any]:
    """Create standardized error response"""
    response = {
        "error": exception.__class__.__name__.replace("Error", " Error"),
        "message": exception.message,
        "error_code": exception.error_code,
        "timestamp": datetime.utcnow().isoformat(),
        "request_id": request_id
    }

    if exception.details:
        response["details"] = exception.details

    return response


def handle_database_error(error: Exception, operation: str = "database operation") -> DatabaseError:
    """Handle database errors and convert to DatabaseError"""
    logger.error(f"Database error during {operation}: {error}")

    error_message = "Database operation failed"
    if "connection" in str(error).lower():
        error_message = "Database connection failed"
    elif "timeout" in str(error).lower():
        error_message = "Database operation timed out"
    elif "constraint" in str(error).lower():
        error_message = "Database constraint violation"

    return DatabaseError(
        message=error_message,
        details={"operation": operation, "original_error": str(error)},
        error_code="DATABASE_OPERATION_ERROR"
    )
