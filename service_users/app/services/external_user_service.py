"""
Cached access to remote users.
"""

import asyncio
from typing import Any, List, Optional

from shared.config import ExternalApiSettings
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from ..caching.memory_cache import MemoryCache
from ..models import User

ALL_USERS_KEY = "all_users"


def user_cache_key(user_id: int) -> str:
    return f"user_{user_id}"


def users_page_cache_key(page: int) -> str:
    return f"users_page_{page}"


class ExternalUserService:
    """Cache-then-fetch facade over a user API client.

    ``api_client`` is anything exposing ``get_user_by_id`` and
    ``get_users_page`` coroutines with the ``UserApiClient`` signatures.
    Client errors propagate untouched and nothing is cached on a failed
    or cancelled call.
    """

    def __init__(self,
                 api_client: Any,
                 cache: MemoryCache,
                 settings: ExternalApiSettings,
                 metrics: Optional[MetricsCollector] = None):
        self.api_client = api_client
        self.cache = cache
        self.settings = settings
        self.metrics = metrics
        self.logger = get_logger("users.service")

    async def get_user_by_id(self, user_id: int,
                             cancel_event: Optional[asyncio.Event] = None) -> Optional[User]:
        cache_key = user_cache_key(user_id)

        found, cached_user = self._lookup("user", cache_key)
        if found:
            self.logger.info("Retrieved user from cache", user_id=user_id)
            return cached_user

        user = await self.api_client.get_user_by_id(user_id, cancel_event)

        # Absence is not cached so a later call asks again
        if user is not None:
            self._store(cache_key, user)
            self.logger.info(
                "Cached user",
                user_id=user_id,
                minutes=self.settings.cache_expiration_minutes
            )

        return user

    async def get_users_page(self, page: int,
                             cancel_event: Optional[asyncio.Event] = None) -> List[User]:
        cache_key = users_page_cache_key(page)

        found, cached_users = self._lookup("users_page", cache_key)
        if found:
            self.logger.info("Retrieved users page from cache", page=page)
            return cached_users

        response = await self.api_client.get_users_page(page, cancel_event)
        users = list(response.data) if response is not None else []

        self._store(cache_key, users)
        self.logger.info(
            "Cached users page",
            page=page,
            count=len(users),
            minutes=self.settings.cache_expiration_minutes
        )

        return users

    async def get_all_users(self, cancel_event: Optional[asyncio.Event] = None) -> List[User]:
        found, cached_users = self._lookup("all_users", ALL_USERS_KEY)
        if found:
            self.logger.info("Retrieved all users from cache", count=len(cached_users))
            return cached_users

        all_users: List[User] = []
        page = 1

        # Pages are fetched one after another and are not cached individually
        while True:
            response = await self.api_client.get_users_page(page, cancel_event)
            if response is not None:
                all_users.extend(response.data)
                self.logger.info("Fetched page", page=page, count=len(response.data))
            page += 1
            if response is None or page > response.total_pages:
                break

        self._store(ALL_USERS_KEY, all_users)
        self.logger.info(
            "Cached all users",
            count=len(all_users),
            pages=page - 1,
            minutes=self.settings.cache_expiration_minutes
        )

        return all_users

    def _lookup(self, namespace: str, cache_key: str):
        found, value = self.cache.try_get(cache_key)
        if self.metrics:
            self.metrics.record_cache_lookup(namespace, hit=found)
        return found, value

    def _store(self, cache_key: str, value: Any) -> None:
        self.cache.set(cache_key, value, ttl=self.settings.cache_ttl_seconds)
