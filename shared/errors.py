"""
Shared error handling for the Mensa service.
"""

from enum import Enum
from typing import Dict, Any, Optional
from pydantic import BaseModel

from shared.logging import request_id_var


class ErrorKind(str, Enum):
    """Error kinds surfaced by the service core."""
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    RENDER_UNAVAILABLE = "RENDER_UNAVAILABLE"


_STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.RENDER_UNAVAILABLE: 503,
}


def status_code_for(kind: ErrorKind) -> int:
    """Map an error kind to its outward HTTP status code."""
    return _STATUS_BY_KIND[kind]


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class MensaServiceException(Exception):
    """Base exception for the Mensa service."""

    def __init__(self, kind: ErrorKind, message: str, details: Optional[Dict[str, Any]] = None):
        self.kind = kind
        self.message = message
        self.details = details or {}
        super().__init__(message)

    @property
    def code(self) -> str:
        return self.kind.value

    @property
    def status_code(self) -> int:
        return status_code_for(self.kind)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id_var.get(),
            code=self.code,
            message=self.message,
            details=self.details
        )


class NotFoundError(MensaServiceException):
    """Referenced entity does not exist."""

    def __init__(self, message: str = "Not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(ErrorKind.NOT_FOUND, message, details)


class ForbiddenError(MensaServiceException):
    """Entity exists but the caller lacks the required membership."""

    def __init__(self, message: str = "Forbidden", details: Optional[Dict[str, Any]] = None):
        super().__init__(ErrorKind.FORBIDDEN, message, details)


class RenderUnavailableError(MensaServiceException):
    """Layout rendering failed, timed out or returned nothing."""

    def __init__(self, message: str = "Failed to render layout svg", details: Optional[Dict[str, Any]] = None):
        super().__init__(ErrorKind.RENDER_UNAVAILABLE, message, details)
