"""
Clients package for the user service.

Contains the HTTP client for the remote user API. It encapsulates:

- Base URL, timeout and request shapes
- Retry with exponential backoff on transient failures
- Error mapping to shared errors
"""

from .user_api_client import UserApiClient, is_transient_response

__all__ = [
    "UserApiClient",
    "is_transient_response",
]
