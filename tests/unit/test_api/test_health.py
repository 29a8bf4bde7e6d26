"""App bootstrap: health probe, route table, fallback handlers, lifespan."""

from collections.abc import AsyncGenerator, Iterator
from contextlib import contextmanager
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import Request
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError

from condo_access.api.app import (
    access_error_handler,
    app,
    lifespan,
    unhandled_exception_handler,
)
from condo_access.api.deps import get_device_sessions
from condo_access.errors import ForbiddenError
from condo_access.integrations.sessions import ExpiringSessionStore


@contextmanager
def fake_database(failure: Exception | None = None) -> Iterator[AsyncMock]:
    """Stand in for ``async_session`` so /health never opens a connection."""
    session = AsyncMock()
    factory = MagicMock()
    if failure is None:
        factory.return_value.__aenter__ = AsyncMock(return_value=session)
    else:
        factory.return_value.__aenter__ = AsyncMock(side_effect=failure)
    factory.return_value.__aexit__ = AsyncMock(return_value=False)
    with patch("condo_access.api.app.async_session", factory):
        yield session


@pytest.fixture()
async def http() -> AsyncGenerator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture()
def stubbed_engine() -> Iterator[MagicMock]:
    with patch("condo_access.api.app.engine") as engine:
        engine.dispose = AsyncMock()
        yield engine


def _bare_request(path: str = "/api/v1/me") -> Request:
    return Request(scope={"type": "http", "method": "GET", "path": path, "headers": []})


class TestHealth:
    async def test_reachable_database(self, http: AsyncClient) -> None:
        with fake_database() as session:
            response = await http.get("/health")

        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "ok"
        assert body["checks"] == {"db": "ok"}
        assert body["timestamp"]
        session.execute.assert_awaited_once()

    @pytest.mark.parametrize(
        "failure",
        [TimeoutError("slow"), OperationalError("SELECT 1", {}, Exception("down"))],
    )
    async def test_unreachable_database(
        self, http: AsyncClient, failure: Exception
    ) -> None:
        with fake_database(failure):
            response = await http.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "degraded"
        assert response.json()["checks"]["db"] == f"error: {type(failure).__name__}"

    async def test_ignores_identity_and_tenant_headers(
        self, http: AsyncClient
    ) -> None:
        with fake_database():
            response = await http.get(
                "/health",
                headers={"X-Condominium-Id": "garbage", "Authorization": "Bearer x"},
            )
        assert response.status_code == 200

    async def test_post_not_allowed(self, http: AsyncClient) -> None:
        assert (await http.post("/health")).status_code == 405


class TestRouteTable:
    async def test_unknown_path(self, http: AsyncClient) -> None:
        assert (await http.get("/api/v1/nope")).status_code == 404

    def test_access_routes_mounted_under_v1(self) -> None:
        paths = {getattr(route, "path", None) for route in app.routes}
        assert {
            "/api/v1/me",
            "/api/v1/me/condominiums",
            "/api/v1/condominiums/current",
            "/api/v1/module-permissions",
            "/api/v1/module-permissions/{module_key}",
            "/api/v1/modules/{module_key}/access",
        } <= paths


class TestFallbackHandlers:
    async def test_unhandled_error_is_opaque_500(self) -> None:
        response = await unhandled_exception_handler(
            _bare_request(), RuntimeError("db password is hunter2")
        )
        assert response.status_code == 500
        assert response.body == b'{"detail":"Internal server error"}'

    async def test_access_error_has_no_retry_hint(self) -> None:
        response = await access_error_handler(_bare_request(), ForbiddenError())
        assert response.status_code == 403
        assert "retry-after" not in response.headers


class TestLifespan:
    async def test_device_session_store_on_state(
        self, stubbed_engine: MagicMock
    ) -> None:
        async with lifespan(app):
            store = app.state.device_sessions
            assert isinstance(store, ExpiringSessionStore)
            request = MagicMock()
            request.app = app
            assert await get_device_sessions(request) is store

    async def test_engine_disposed_on_shutdown(
        self, stubbed_engine: MagicMock
    ) -> None:
        async with lifespan(app):
            stubbed_engine.dispose.assert_not_awaited()
        stubbed_engine.dispose.assert_awaited_once()
