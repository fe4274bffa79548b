"""Unit tests for exception handlers."""

import json
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from api.exception_handlers import setup_exception_handlers
from core.exceptions import (
    InsufficientPermissionsError,
    InvitationExpiredError,
    NoWorkspaceAccessError,
    RateLimitExceededError,
    WorkspaceNotFoundError,
)


def _create_test_app() -> FastAPI:
    app = FastAPI()
    setup_exception_handlers(app)
    return app


def _registered_handler(app: FastAPI, exc_class: type) -> object:
    for registered, h in app.exception_handlers.items():
        if registered is exc_class:
            return h
    return None


class TestExceptionHandlers:
    @pytest.mark.asyncio
    async def test_app_exception_returns_error_code_and_message(self) -> None:
        app = _create_test_app()

        @app.get("/raise-app")
        async def _() -> None:
            raise WorkspaceNotFoundError("some-id")

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            response = await c.get("/raise-app")

        assert response.status_code == 404
        body = response.json()
        assert body["error_code"] == "WORKSPACE_NOT_FOUND"
        assert "some-id" in body["message"]
        assert body["details"]["workspace_id"] == "some-id"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "exc, status_code, error_code",
        [
            (InsufficientPermissionsError("users.invite"), 403, "INSUFFICIENT_PERMISSIONS"),
            (NoWorkspaceAccessError(), 403, "NO_WORKSPACE_ACCESS"),
            (InvitationExpiredError(), 410, "INVITATION_EXPIRED"),
        ],
    )
    async def test_error_kinds_map_to_status_codes(
        self, exc: Exception, status_code: int, error_code: str
    ) -> None:
        app = _create_test_app()

        @app.get("/raise")
        async def _() -> None:
            raise exc

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            response = await c.get("/raise")

        assert response.status_code == status_code
        assert response.json()["error_code"] == error_code

    @pytest.mark.asyncio
    async def test_rate_limit_error_sets_retry_after(self) -> None:
        app = _create_test_app()

        @app.get("/raise-limit")
        async def _() -> None:
            raise RateLimitExceededError("invitation_create", 42)

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            response = await c.get("/raise-limit")

        assert response.status_code == 429
        assert response.headers["retry-after"] == "42"
        assert response.json()["details"] == {"scope": "invitation_create", "retry_after": 42}

    @pytest.mark.asyncio
    async def test_http_exception_returns_standard_format(self) -> None:
        from starlette.exceptions import HTTPException

        app = _create_test_app()

        @app.get("/raise-http")
        async def _() -> None:
            raise HTTPException(status_code=403, detail="Forbidden")

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            response = await c.get("/raise-http")

        assert response.status_code == 403
        body = response.json()
        assert body["error_code"] == "HTTP_ERROR"
        assert body["message"] == "Forbidden"

    @pytest.mark.asyncio
    async def test_validation_error_returns_field_details(self) -> None:
        from pydantic import BaseModel, Field

        app = _create_test_app()

        class Body(BaseModel):
            name: str = Field(..., min_length=1)

        @app.post("/validate")
        async def _(body: Body) -> dict[str, bool]:
            return {"ok": True}

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            response = await c.post("/validate", json={"name": ""})

        assert response.status_code == 422
        body = response.json()
        assert body["error_code"] == "VALIDATION_ERROR"
        assert isinstance(body["details"], list)
        assert body["details"][0]["field"] == "body.name"

    @pytest.mark.asyncio
    async def test_database_error_returns_500_without_driver_message(self) -> None:
        app = _create_test_app()
        handler = _registered_handler(app, SQLAlchemyError)
        assert handler is not None, "Database exception handler not registered"

        mock_request = MagicMock()
        mock_request.state.request_id = "db-req-id"
        exc = OperationalError("SELECT 1", {}, Exception("connection refused"))

        response = await handler(mock_request, exc)  # type: ignore[operator]

        assert response.status_code == 500
        body = json.loads(response.body)
        assert body["error_code"] == "DATABASE_ERROR"
        assert "connection refused" not in body["message"]
        assert body["details"]["request_id"] == "db-req-id"

    @pytest.mark.asyncio
    async def test_unhandled_exception_returns_500(self) -> None:
        app = _create_test_app()

        # Build a fake request with request.state.request_id
        mock_request = MagicMock()
        mock_request.state.request_id = "test-req-id"

        handler = _registered_handler(app, Exception)
        assert handler is not None, "Global exception handler not registered"

        response = await handler(mock_request, RuntimeError("Something went wrong"))  # type: ignore[operator]

        assert response.status_code == 500
        body = json.loads(response.body)
        assert body["error_code"] == "INTERNAL_ERROR"
        assert body["details"]["request_id"] == "test-req-id"
