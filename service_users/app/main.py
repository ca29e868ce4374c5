"""
Wiring and demo harness for the External User Service.

Run with ``python -m service_users.app.main``.
"""

import asyncio
from typing import Optional, Tuple

import httpx

from shared.config import ExternalApiSettings, get_settings
from shared.errors import ExternalUserServiceError
from shared.logging import configure_logging, get_logger, set_request_id
from shared.metrics import MetricsCollector, get_metrics_collector
from .caching.memory_cache import MemoryCache
from .clients.user_api_client import UserApiClient
from .services.external_user_service import ExternalUserService


def create_user_service(
    settings: Optional[ExternalApiSettings] = None,
    *,
    http_client: Optional[httpx.AsyncClient] = None,
    metrics: Optional[MetricsCollector] = None,
) -> Tuple[ExternalUserService, UserApiClient]:
    """Build the client, cache and service from settings.

    The client is returned alongside the service so the caller can close
    its connection pool.
    """
    settings = settings or get_settings()
    metrics = metrics or get_metrics_collector(settings.service_name)

    api_client = UserApiClient(settings, http_client=http_client, metrics=metrics)
    cache = MemoryCache(default_ttl=settings.cache_ttl_seconds)
    service = ExternalUserService(api_client, cache, settings, metrics=metrics)
    return service, api_client


async def run_demo(service: ExternalUserService) -> None:
    """Query one user, one page, and all users twice."""
    set_request_id()
    print("=== Testing get_user_by_id ===")
    user = await service.get_user_by_id(2)
    if user is not None:
        print(f"User: {user.full_name} ({user.email})")
    else:
        print("User not found")

    set_request_id()
    print("\n=== Testing get_users_page ===")
    page_users = await service.get_users_page(1)
    print(f"Page 1 Users ({len(page_users)}):")
    for page_user in page_users:
        print(f"  - {page_user.full_name} ({page_user.email})")

    set_request_id()
    print("\n=== Testing get_all_users ===")
    all_users = await service.get_all_users()
    print(f"Total Users: {len(all_users)}")

    set_request_id()
    print("\n=== Testing Caching (calling get_all_users again) ===")
    all_users_again = await service.get_all_users()
    print(f"Total Users (from cache): {len(all_users_again)}")


async def main(settings: Optional[ExternalApiSettings] = None) -> int:
    settings = settings or get_settings()
    configure_logging(settings.service_name, settings.log_level)
    logger = get_logger(settings.service_name)

    service, api_client = create_user_service(settings)
    async with api_client:
        try:
            logger.info("Starting External User Service demo", base_url=settings.base_url)
            await run_demo(service)
        except ExternalUserServiceError as exc:
            logger.error("Demo failed", code=exc.code, error=exc.message)
            print(f"Error: {exc.to_response().model_dump_json()}")
            return 1

    logger.info("Demo finished", cache=service.cache.get_stats())
    return 0


def run() -> None:
    raise SystemExit(asyncio.run(main()))


if __name__ == "__main__":
    run()
