"""
Remote user API client.
"""

import asyncio
import functools
import json
from contextlib import nullcontext
from typing import Any, Awaitable, Callable, Coroutine, Dict, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from shared.config import ExternalApiSettings
from shared.errors import (
    DecodeFailedError,
    RequestCancelledError,
    RequestFailedError,
    RequestTimeoutError,
)
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from shared.retry import RetryConfig, with_retry
from ..models import ApiResponse, User, UserListResponse

EnvelopeT = TypeVar("EnvelopeT", bound=BaseModel)


def is_transient_response(response: httpx.Response) -> bool:
    """408 and 5xx responses are worth retrying."""
    return response.status_code == 408 or response.status_code >= 500


class UserApiClient:
    """Client for the remote user API.

    Owns a pooled ``httpx.AsyncClient`` configured once with the base
    address and timeout. Every request goes through the retry wrapper;
    results are mapped to ``shared.errors`` types:

    - 404 on a single user -> ``None``
    - other non-success status or transport failure -> ``RequestFailedError``
    - timeout -> ``RequestTimeoutError``
    - unreadable or mismatched body -> ``DecodeFailedError``
    - ``cancel_event`` set while in flight -> ``RequestCancelledError``
    """

    def __init__(self,
                 settings: ExternalApiSettings,
                 http_client: Optional[httpx.AsyncClient] = None,
                 metrics: Optional[MetricsCollector] = None,
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        self.settings = settings
        self.base_url = settings.base_url.rstrip('/') + '/'
        self.logger = get_logger("users.api_client")
        self.metrics = metrics
        self._sleep = sleep

        headers = {"Accept": "application/json"}
        if settings.api_key:
            headers["x-api-key"] = settings.api_key

        self._owns_http_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(float(settings.timeout_seconds)),
            headers=headers
        )

        self.retry_config = RetryConfig(
            max_retries=settings.max_retry_attempts,
            base_delay=settings.retry_base_delay_seconds,
            exponential_base=2.0,
            jitter=False
        )

    async def __aenter__(self) -> "UserApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release pooled connections if this client created them."""
        if self._owns_http_client:
            await self._http.aclose()

    async def get_user_by_id(self, user_id: int,
                             cancel_event: Optional[asyncio.Event] = None) -> Optional[User]:
        """Fetch one user; ``None`` when the API answers 404."""
        endpoint = f"users/{user_id}"
        self.logger.info("Fetching user", user_id=user_id)

        with self._observe("get_user_by_id"):
            response = await self._request("get_user_by_id", endpoint, None, cancel_event)

            if response.status_code == 404:
                self.logger.warning("User not found", user_id=user_id)
                return None

            self._ensure_success(response, endpoint)
            envelope = self._decode(response, ApiResponse, endpoint)

        user = envelope.data if envelope is not None else None
        self.logger.info("Fetched user", user_id=user_id, found=user is not None)
        return user

    async def get_users_page(self, page: int,
                             cancel_event: Optional[asyncio.Event] = None) -> Optional[UserListResponse]:
        """Fetch one page of users as the full envelope."""
        endpoint = f"users?page={page}"
        self.logger.info("Fetching users page", page=page)

        with self._observe("get_users_page"):
            response = await self._request("get_users_page", "users", {"page": page}, cancel_event)
            self._ensure_success(response, endpoint)
            envelope = self._decode(response, UserListResponse, endpoint)

        self.logger.info(
            "Fetched users page",
            page=page,
            count=len(envelope.data) if envelope is not None else 0,
            total_pages=envelope.total_pages if envelope is not None else None
        )
        return envelope

    async def _send(self, path: str, params: Optional[Dict[str, Any]]) -> httpx.Response:
        """One raw attempt."""
        return await self._http.get(f"{self.base_url}{path}", params=params)

    async def _request(self,
                       operation: str,
                       path: str,
                       params: Optional[Dict[str, Any]],
                       cancel_event: Optional[asyncio.Event]) -> httpx.Response:
        endpoint = path if not params else f"{path}?{httpx.QueryParams(params)}"
        send = with_retry(
            self._send,
            config=self.retry_config,
            exceptions=(httpx.TransportError,),
            retry_on_result=is_transient_response,
            on_retry=functools.partial(self._on_retry, operation, endpoint),
            sleep=self._sleep
        )

        try:
            return await self._run_cancellable(send(path, params), cancel_event, endpoint)
        except httpx.TimeoutException as exc:
            self.logger.error(
                "Request timeout",
                endpoint=endpoint,
                timeout_seconds=self.settings.timeout_seconds
            )
            raise RequestTimeoutError(
                endpoint,
                f"Request timeout while fetching {endpoint}",
                details={"timeout_seconds": self.settings.timeout_seconds}
            ) from exc
        except httpx.HTTPError as exc:
            self.logger.error("HTTP request failed", endpoint=endpoint, error=str(exc))
            raise RequestFailedError(endpoint, f"Failed to fetch {endpoint}: {exc}") from exc

    async def _run_cancellable(self, coro: Coroutine[Any, Any, Any],
                               cancel_event: Optional[asyncio.Event],
                               endpoint: str) -> Any:
        """Await ``coro`` unless ``cancel_event`` fires first."""
        if cancel_event is None:
            return await coro

        if cancel_event.is_set():
            coro.close()
            self.logger.warning("Request cancelled before start", endpoint=endpoint)
            raise RequestCancelledError(endpoint)

        request_task = asyncio.ensure_future(coro)
        cancel_task = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({request_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            cancel_task.cancel()
            if not request_task.done():
                request_task.cancel()
                await asyncio.gather(request_task, return_exceptions=True)

        if request_task.cancelled():
            self.logger.warning("Request cancelled", endpoint=endpoint)
            raise RequestCancelledError(endpoint)

        return request_task.result()

    def _on_retry(self, operation: str, endpoint: str, retry_number: int, delay: float,
                  error: Optional[BaseException], response: Optional[httpx.Response]) -> None:
        self.logger.warning(
            "Retrying request",
            endpoint=endpoint,
            retry=retry_number,
            delay=delay,
            status_code=response.status_code if response is not None else None,
            error=str(error) if error is not None else None
        )
        if self.metrics:
            self.metrics.record_retry(operation)

    def _ensure_success(self, response: httpx.Response, endpoint: str) -> None:
        if response.is_success:
            return

        self.logger.error(
            "Request failed",
            endpoint=endpoint,
            status_code=response.status_code
        )
        raise RequestFailedError(
            endpoint,
            f"Failed to fetch {endpoint}: HTTP {response.status_code}",
            status_code=response.status_code
        )

    def _decode(self, response: httpx.Response, model: Type[EnvelopeT],
                endpoint: str) -> Optional[EnvelopeT]:
        """Parse the body into ``model``; a JSON ``null`` body yields ``None``."""
        try:
            payload = response.json()
            if payload is None:
                return None
            return model.model_validate(payload)
        except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as exc:
            self.logger.error("Response deserialization failed", endpoint=endpoint, error=str(exc))
            raise DecodeFailedError(
                endpoint,
                f"Failed to deserialize response for {endpoint}",
                details={"error": str(exc)}
            ) from exc

    def _observe(self, operation: str):
        if self.metrics is None:
            return nullcontext()
        return self.metrics.time_upstream_request(operation)
