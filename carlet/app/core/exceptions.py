"""
Custom exceptions and error handlers for consistent error responses.

Every domain failure carries a stable error code so clients can branch on
the kind of failure rather than on the message text.
"""

import logging
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Any, Dict

logger = logging.getLogger("carlet.errors")


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ValidationError(AppException):
    """Raised for malformed or missing required input (e.g. unknown location)."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_VALIDATION_001",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details
        )


class InvalidStage(AppException):
    """Raised when a target stage does not belong to the vehicle's location."""

    def __init__(self, stage_id: Any, location_id: Any):
        super().__init__(
            message=f"Stage {stage_id} does not belong to location {location_id}",
            error_code="ERR_INVALID_STAGE",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"stage_id": stage_id, "location_id": location_id}
        )


class NoNextStage(AppException):
    """Raised when advancing a vehicle that has no following stage."""

    def __init__(self, car_id: Any, stage_id: Any = None):
        super().__init__(
            message=f"Car {car_id} has no next stage",
            error_code="ERR_NO_NEXT_STAGE",
            status_code=status.HTTP_409_CONFLICT,
            details={"car_id": car_id, "current_stage_id": stage_id}
        )


class ResourceNotFoundError(AppException):
    """Raised when requested resource is not found."""

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class InvalidPermutation(AppException):
    """Raised when a reorder request is not a permutation of the current stage ids."""

    def __init__(self, message: str = "New order must be a permutation of the current stages", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_INVALID_PERMUTATION",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details
        )


class IndexOutOfRange(AppException):
    """Raised when an image index is not valid for the current list."""

    def __init__(self, index: int, length: int):
        super().__init__(
            message=f"Image index {index} out of range for list of length {length}",
            error_code="ERR_INDEX_OUT_OF_RANGE",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"index": index, "length": length}
        )


class StageInUse(AppException):
    """Raised when removing a stage that active vehicles still point at."""

    def __init__(self, stage_id: Any, car_count: int):
        super().__init__(
            message=f"Stage {stage_id} is the current stage of {car_count} active car(s)",
            error_code="ERR_STAGE_IN_USE",
            status_code=status.HTTP_409_CONFLICT,
            details={"stage_id": stage_id, "car_count": car_count}
        )


class StorageUnavailable(AppException):
    """Raised when the database or file storage cannot complete an operation."""

    def __init__(self, message: str = "Storage backend unavailable"):
        super().__init__(
            message=message,
            error_code="ERR_STORAGE_UNAVAILABLE",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE
        )


class ConcurrencyConflict(AppException):
    """Raised when an optimistic update loses a race against another writer."""

    def __init__(self, resource: str, resource_id: Any = None):
        super().__init__(
            message=f"{resource} was modified concurrently, retry the operation",
            error_code="ERR_CONCURRENCY_CONFLICT",
            status_code=status.HTTP_409_CONFLICT,
            details={"resource": resource, "id": resource_id}
        )


class InsufficientPermissionsError(AppException):
    """Raised when user doesn't have permission to perform an action."""

    def __init__(self, message: str = "Insufficient permissions", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_PERM_001",
            status_code=status.HTTP_403_FORBIDDEN,
            details=details
        )


class AuthenticationError(AppException):
    """Raised for authentication failures."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(
            message=message,
            error_code="ERR_AUTH_001",
            status_code=status.HTTP_401_UNAUTHORIZED
        )


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    if exc.status_code >= 500:
        logger.error("%s: %s", exc.error_code, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        401: "ERR_UNAUTHORIZED",
        403: "ERR_FORBIDDEN",
        404: "ERR_NOT_FOUND",
        409: "ERR_CONFLICT",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
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
            "message": "Validation error",
            "details": {
                "errors": jsonable_errors(exc)
            }
        }
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    """Strip non-serializable context (e.g. exception objects) from pydantic errors."""
    errors = []
    for error in exc.errors():
        error = dict(error)
        error.pop("ctx", None)
        error.pop("input", None)
        errors.append(error)
    return errors


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception("Unhandled exception: %s: %s", type(exc).__name__, exc)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "message": "An internal server error occurred",
            "details": {}
        }
    )
