import logging
from typing import Any, Dict, List, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppException(Exception):
    """
    Base custom application exception.
    All application-specific exceptions should inherit from this.
    """

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        log_error: bool = True,
    ):
        """
        Initialize AppException

        Args:
            message: Human-readable error message
            status_code: HTTP status code
            error_code: Machine-readable error code (e.g., "VALIDATION_ERROR")
            details: Additional error details/context
            log_error: Whether to log this error
        """
        self.message = message
        self.status_code = status_code
        self.error_code = error_code or "INTERNAL_ERROR"
        self.details = details or {}
        self.log_error = log_error

        super().__init__(self.message)


class ValidationException(AppException):
    """Raised when data validation fails"""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="VALIDATION_ERROR",
            details=details,
            log_error=False,
        )


class ResourceNotFoundException(AppException):
    """Raised when a requested resource is not found"""

    def __init__(
        self,
        resource_type: str,
        resource_id: str,
    ):
        super().__init__(
            message=f"{resource_type} '{resource_id}' not found",
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="RESOURCE_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id},
            log_error=False,  # Don't log 404s as errors
        )


class UnauthorizedException(AppException):
    """Raised when user is not authenticated"""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code="UNAUTHORIZED",
            log_error=False,
        )


class ForbiddenException(AppException):
    """Raised when user doesn't have permission"""

    def __init__(self, message: str = "Permission denied"):
        super().__init__(
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            error_code="FORBIDDEN",
            log_error=False,
        )


class ConflictException(AppException):
    """Raised when resource already exists or conflicts"""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            error_code="CONFLICT",
            details=details,
            log_error=False,
        )


class DatabaseException(AppException):
    """Raised when database operation fails"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code="DATABASE_ERROR",
            details=details,
        )


class ExternalServiceException(AppException):
    """Raised when external service call fails"""

    def __init__(
        self,
        service_name: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=f"{service_name} error: {message}",
            status_code=status.HTTP_502_BAD_GATEWAY,
            error_code="EXTERNAL_SERVICE_ERROR",
            details={
                "service": service_name,
                **(details or {}),
            },
        )


def _error_body(
    request: Request,
    code: str,
    message: str,
    status_code: int,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    error: Dict[str, Any] = {
        "code": code,
        "message": message,
        "status": status_code,
    }
    if details:
        error["details"] = details
    error["path"] = request.url.path
    error["method"] = request.method
    return {"error": error}


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Handle AppException and return standardized JSON response.

    Args:
        request: FastAPI request object
        exc: AppException instance

    Returns:
        JSONResponse with error details
    """

    if exc.log_error:
        logger.error(
            f"Application Error [{exc.error_code}] - {exc.message}",
            extra={
                "error_code": exc.error_code,
                "status_code": exc.status_code,
                "path": request.url.path,
                "method": request.method,
                "details": exc.details,
            },
            exc_info=True,
        )
    else:
        # Log at debug level for expected client errors (401/403/404...)
        logger.debug(
            f"Application Error [{exc.error_code}] - {exc.message}",
            extra={
                "error_code": exc.error_code,
                "status_code": exc.status_code,
                "path": request.url.path,
                "method": request.method,
            },
        )

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(
            request, exc.error_code, exc.message, exc.status_code, exc.details
        ),
    )


def field_errors(errors: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    """Flatten pydantic errors into ``{"field", "message"}`` pairs."""
    fields = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body",)]
        fields.append(
            {
                "field": ".".join(loc) or "body",
                "message": str(err.get("msg", "Invalid value")),
            }
        )
    return fields


async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Re-shape FastAPI's 422 payload into the application's 400 error format."""
    logger.debug(
        "Request validation failed",
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(
            request,
            "VALIDATION_ERROR",
            "Invalid input",
            status.HTTP_400_BAD_REQUEST,
            {"fields": field_errors(list(exc.errors()))},
        ),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled error",
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(
            request,
            "INTERNAL_ERROR",
            "Unexpected error.",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        ),
    )
