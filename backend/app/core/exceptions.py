"""
Custom exceptions and error handlers for consistent error responses.

Every failure surfaced to a caller carries one taxonomy kind:
InvalidArgument, NotFound, Forbidden, Unauthenticated, Conflict, Dependency.
"""

import logging
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Any, Dict
from backend.app.core.observability import CORRELATION_HEADER

logger = logging.getLogger("parcels")


class AppException(Exception):
    """Base application exception."""
    
    kind = "Internal"
    
    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class InvalidArgumentError(AppException):
    """Raised for malformed identifiers and disallowed enum values."""
    
    kind = "InvalidArgument"
    
    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_INVALID_ARGUMENT",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details
        )


class InsufficientPermissionsError(AppException):
    """Raised when user doesn't have permission to perform an action."""
    
    kind = "Forbidden"
    
    def __init__(self, message: str = "Insufficient permissions", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_PERM_001",
            status_code=status.HTTP_403_FORBIDDEN,
            details=details
        )


class ResourceNotFoundError(AppException):
    """Raised when requested resource is not found."""
    
    kind = "NotFound"
    
    def __init__(self, resource: str, resource_id: Any = None, message: str = None):
        if message is None:
            message = f"{resource} not found"
            if resource_id:
                message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class AuthenticationError(AppException):
    """Raised for authentication failures."""
    
    kind = "Unauthenticated"
    
    def __init__(self, message: str = "Authentication failed"):
        super().__init__(
            message=message,
            error_code="ERR_AUTH_001",
            status_code=status.HTTP_401_UNAUTHORIZED
        )


class ConflictError(AppException):
    """Raised when a state-transition precondition no longer holds."""
    
    kind = "Conflict"
    
    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_CONFLICT",
            status_code=status.HTTP_409_CONFLICT,
            details=details
        )


class DependencyError(AppException):
    """Raised when the store or another collaborator fails."""
    
    kind = "Dependency"
    
    def __init__(self, message: str = "A backing service is unavailable", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_DEPENDENCY",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details=details
        )


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "kind": exc.kind,
            "message": exc.message,
            "details": exc.details
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    # Map status code to error code
    error_code_map = {
        400: ("ERR_BAD_REQUEST", InvalidArgumentError.kind),
        401: ("ERR_UNAUTHORIZED", AuthenticationError.kind),
        403: ("ERR_FORBIDDEN", InsufficientPermissionsError.kind),
        404: ("ERR_NOT_FOUND", ResourceNotFoundError.kind),
        409: ("ERR_CONFLICT", ConflictError.kind),
        500: ("ERR_INTERNAL_SERVER", AppException.kind)
    }
    
    error_code, kind = error_code_map.get(exc.status_code, ("ERR_UNKNOWN", AppException.kind))
    
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "kind": kind,
            "message": exc.detail,
            "details": {}
        },
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "ERR_VALIDATION",
            "kind": InvalidArgumentError.kind,
            "message": "Validation error",
            "details": {
                "errors": [
                    {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
                    for err in exc.errors()
                ]
            }
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handler for unhandled exceptions.
    
    Runs outside ObservabilityMiddleware, so the correlation id is echoed
    here as well.
    """
    correlation_id = getattr(request.state, "correlation_id", None)
    logger.exception("Unhandled exception on %s %s [%s]", request.method, request.url.path, correlation_id)
    
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "kind": AppException.kind,
            "message": "An internal server error occurred",
            "details": {"correlation_id": correlation_id} if correlation_id else {}
        },
        headers={CORRELATION_HEADER: correlation_id} if correlation_id else None
    )
