"""
Tests for service wiring and the demo harness.
"""

import json

import httpx
import pytest

from service_users.app import main as demo
from service_users.app.clients.user_api_client import UserApiClient
from service_users.app.services.external_user_service import ExternalUserService
from shared.config import ExternalApiSettings
from shared.metrics import MetricsCollector

USERS = [
    {"id": i, "email": f"user{i}@reqres.in", "first_name": f"First{i}",
     "last_name": f"Last{i}", "avatar": f"https://reqres.in/img/faces/{i}-image.jpg"}
    for i in range(1, 5)
]


class FakeReqres:
    """In-process stand-in for the reqres.in users endpoints."""

    def __init__(self, per_page: int = 2):
        self.per_page = per_page
        self.paths = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.paths.append(str(request.url))
        parts = request.url.path.rstrip("/").split("/")

        if parts[-1] == "users":
            page = int(request.url.params.get("page", "1"))
            start = (page - 1) * self.per_page
            body = {
                "page": page,
                "per_page": self.per_page,
                "total": len(USERS),
                "total_pages": -(-len(USERS) // self.per_page),
                "data": USERS[start:start + self.per_page],
            }
            return httpx.Response(200, content=json.dumps(body))

        user_id = int(parts[-1])
        for user in USERS:
            if user["id"] == user_id:
                return httpx.Response(200, content=json.dumps({"data": user}))
        return httpx.Response(404, content=b"{}")


class TestCreateUserService:
    """Test cases for create_user_service."""

    @pytest.fixture
    def settings(self):
        return ExternalApiSettings(
            base_url="https://reqres.in/api/",
            max_retry_attempts=0,
            cache_expiration_minutes=5
        )

    def test_wires_components_from_settings(self, settings):
        """Test the factory shares settings across client, cache and service."""
        metrics = MetricsCollector("service-users-test")
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(FakeReqres()))

        service, api_client = demo.create_user_service(settings, http_client=http_client, metrics=metrics)

        assert isinstance(service, ExternalUserService)
        assert isinstance(api_client, UserApiClient)
        assert service.api_client is api_client
        assert service.cache.default_ttl == 300.0
        assert api_client.retry_config.max_retries == 0
        assert service.metrics is metrics

    @pytest.mark.asyncio
    async def test_run_demo_uses_cache_for_second_listing(self, settings, capsys):
        """Test the demo prints results and hits the network once per page."""
        fake = FakeReqres()
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(fake))
        service, _ = demo.create_user_service(
            settings, http_client=http_client, metrics=MetricsCollector("service-users-test")
        )

        await demo.run_demo(service)

        output = capsys.readouterr().out
        assert "User: First2 Last2 (user2@reqres.in)" in output
        assert "Page 1 Users (2):" in output
        assert "Total Users: 4" in output
        assert "Total Users (from cache): 4" in output
        # one user, page 1 for the page call, then pages 1 and 2 for the aggregate
        assert fake.paths == [
            "https://reqres.in/api/users/2",
            "https://reqres.in/api/users?page=1",
            "https://reqres.in/api/users?page=1",
            "https://reqres.in/api/users?page=2",
        ]

    @pytest.mark.asyncio
    async def test_main_reports_errors(self, settings, monkeypatch, capsys):
        """Test a failing upstream is reported as an error response."""
        failing = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(500)))
        build = demo.create_user_service

        def create_with_failing_upstream(settings):
            return build(settings, http_client=failing, metrics=MetricsCollector("service-users-test"))

        monkeypatch.setattr(demo, "create_user_service", create_with_failing_upstream)

        exit_code = await demo.main(settings)

        output = capsys.readouterr().out
        assert exit_code == 1
        error_line = next(line for line in output.splitlines() if line.startswith("Error: "))
        error = json.loads(error_line[len("Error: "):])
        assert error["code"] == "REQUEST_FAILED"
        assert error["details"]["status_code"] == 500
        assert error["details"]["endpoint"] == "users/2"
