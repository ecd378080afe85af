"""
Custom Exceptions for OpsFinder
===============================

Raise these from services instead of HTTPException so the same error can be
reported consistently by the API layer and by non-HTTP callers.

Usage:
    from app.core.exceptions import TechMessageNotFoundError, InvalidPatternError

    if not tech_message:
        raise TechMessageNotFoundError(tech_message_id)

The API maps every OpsFinderError to a JSON body via `register_exception_handlers`.
"""

from typing import Optional, Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class OpsFinderError(Exception):
    """Base exception for all OpsFinder errors"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(OpsFinderError):
    """Base class for not found errors"""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource_type: str, resource_id: Any):
        super().__init__(
            f"{resource_type} not found with ID: {resource_id}",
            code=f"{resource_type.upper().replace(' ', '_')}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": str(resource_id)}
        )


class TechMessageNotFoundError(ResourceNotFoundError):
    """Tech message not found"""

    def __init__(self, tech_message_id: Any):
        super().__init__("Tech message", tech_message_id)


class ActionLevelNotFoundError(ResourceNotFoundError):
    """Action level not found"""

    def __init__(self, action_level_id: Any):
        super().__init__("Action level", action_level_id)


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(OpsFinderError):
    """Input validation failed"""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class InvalidPatternError(ValidationError):
    """Regex pattern does not compile"""

    def __init__(self, pattern: str, reason: str):
        super().__init__(f"Invalid regex pattern: {reason}", field="pattern")
        self.code = "INVALID_PATTERN"
        self.details["pattern"] = pattern


class InvalidSearchQueryError(ValidationError):
    """Search query rejected before any matching was attempted"""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, field=field)
        self.code = "INVALID_SEARCH_QUERY"


# ============================================
# Helpers for API responses
# ============================================

def error_response(error: OpsFinderError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    return {
        "success": False,
        "detail": error.message,
        "error": error.to_dict()
    }


async def opsfinder_exception_handler(request: Request, exc: OpsFinderError) -> JSONResponse:
    from app.core.logging_config import logger

    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        f"{request.method} {request.url.path} rejected: {exc.code} - {exc.message}",
        extra={"event_type": "app_error", "error_code": exc.code}
    )
    return JSONResponse(status_code=exc.status_code, content=error_response(exc))


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report body / query validation failures as 400 VALIDATION_ERROR"""
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:]) or None
    message = first.get("msg", "Invalid request")

    error = ValidationError(message, field=field)
    error.details["errors"] = [
        {"loc": [str(part) for part in e.get("loc", ())], "msg": e.get("msg")}
        for e in errors
    ]
    return JSONResponse(status_code=error.status_code, content=error_response(error))


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the OpsFinder error handlers to an application"""
    app.add_exception_handler(OpsFinderError, opsfinder_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
