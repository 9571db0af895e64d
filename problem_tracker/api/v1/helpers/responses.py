"""
Standardized response helpers for consistent API responses.
"""

from typing import Sequence

from fastapi import HTTPException, status
from pydantic import BaseModel

from problem_tracker.core.errors import FieldError


class FieldErrorModel(BaseModel):
    path: str
    message: str


class APIResponse(BaseModel):
    """Standard API response model"""

    success: bool
    message: str
    errors: list[FieldErrorModel] | None = None


def error_body(
    message: str = "An error occurred",
    errors: Sequence[FieldError] | None = None,
) -> dict:
    return APIResponse(
        success=False,
        message=message,
        errors=[FieldErrorModel(**e.to_dict()) for e in (errors or [])],
    ).model_dump()


def error_response(
    message: str = "An error occurred",
    errors: Sequence[FieldError] | None = None,
    status_code: int = status.HTTP_400_BAD_REQUEST,
) -> HTTPException:
    """Create an error response"""
    return HTTPException(status_code=status_code, detail=error_body(message, errors))


def validation_error_response(
    errors: Sequence[FieldError], message: str = "Validation failed"
) -> HTTPException:
    """Create a validation error response"""
    return error_response(
        message=message, errors=errors, status_code=status.HTTP_400_BAD_REQUEST
    )


def not_found_response(message: str = "Resource not found") -> HTTPException:
    """Create a not found error response"""
    return error_response(message=message, status_code=status.HTTP_404_NOT_FOUND)


def unauthorized_response(message: str = "Authentication required") -> HTTPException:
    """Create an unauthorized error response"""
    return error_response(message=message, status_code=status.HTTP_401_UNAUTHORIZED)


def unavailable_response(message: str = "Storage backend unavailable") -> HTTPException:
    """Create a backend failure response"""
    return error_response(
        message=message, status_code=status.HTTP_503_SERVICE_UNAVAILABLE
    )
