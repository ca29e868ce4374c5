"""
Shared error handling for the External User Service.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field

from shared.logging import get_request_id


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class ExternalUserServiceError(Exception):
    """Base exception for failures talking to the remote user API."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=get_request_id(),
            code=self.code,
            message=self.message,
            details=self.details
        )


class RequestFailedError(ExternalUserServiceError):
    """Non-success HTTP status or transport-level failure."""

    def __init__(self, endpoint: str, message: str = "Request failed",
                 status_code: Optional[int] = None, details: Optional[Dict[str, Any]] = None):
        self.endpoint = endpoint
        self.status_code = status_code
        details = {"endpoint": endpoint, "status_code": status_code, **(details or {})}
        super().__init__("REQUEST_FAILED", message, details)


class RequestTimeoutError(ExternalUserServiceError):
    """Per-attempt deadline exceeded."""

    def __init__(self, endpoint: str, message: str = "Request timed out",
                 details: Optional[Dict[str, Any]] = None):
        self.endpoint = endpoint
        super().__init__("REQUEST_TIMEOUT", message, {"endpoint": endpoint, **(details or {})})


class DecodeFailedError(ExternalUserServiceError):
    """Response body does not match the expected envelope."""

    def __init__(self, endpoint: str, message: str = "Failed to decode response",
                 details: Optional[Dict[str, Any]] = None):
        self.endpoint = endpoint
        super().__init__("DECODE_FAILED", message, {"endpoint": endpoint, **(details or {})})


class RequestCancelledError(ExternalUserServiceError):
    """Caller cancelled the request while it was in flight."""

    def __init__(self, endpoint: str, message: str = "Request cancelled",
                 details: Optional[Dict[str, Any]] = None):
        self.endpoint = endpoint
        super().__init__("REQUEST_CANCELLED", message, {"endpoint": endpoint, **(details or {})})
