"""Unit tests for the workspace hint stores."""

from http.cookies import SimpleCookie
from uuid import uuid4

import pytest
from jose import jwt
from starlette.requests import Request
from starlette.responses import Response

from infrastructure.workspace_hint.cookie_store import CookieWorkspaceHintStore
from infrastructure.workspace_hint.memory_store import InMemoryWorkspaceHintStore

SECRET = "hint-secret"


def _request(cookie: str | None = None) -> Request:
    headers = [(b"cookie", cookie.encode())] if cookie else []
    return Request({"type": "http", "method": "GET", "path": "/", "headers": headers})


def _set_cookies(response: Response) -> SimpleCookie:
    jar: SimpleCookie = SimpleCookie()
    for header in response.headers.getlist("set-cookie"):
        jar.load(header)
    return jar


class TestInMemoryWorkspaceHintStore:
    @pytest.mark.asyncio
    async def test_set_get_clear(self) -> None:
        store = InMemoryWorkspaceHintStore()
        user_id, workspace_id = uuid4(), uuid4()

        await store.set_hint(user_id, workspace_id)
        assert await store.get_hint(user_id) == workspace_id

        await store.clear_hint(user_id)
        assert await store.get_hint(user_id) is None

    @pytest.mark.asyncio
    async def test_clear_unknown_user_is_a_no_op(self) -> None:
        store = InMemoryWorkspaceHintStore()

        await store.clear_hint(uuid4())

        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_bounded_lru(self) -> None:
        store = InMemoryWorkspaceHintStore(max_entries=2)
        a, b, c = uuid4(), uuid4(), uuid4()
        await store.set_hint(a, uuid4())
        await store.set_hint(b, uuid4())
        await store.get_hint(a)
        await store.set_hint(c, uuid4())

        assert len(store) == 2
        assert await store.get_hint(b) is None
        assert await store.get_hint(a) is not None


class TestCookieWorkspaceHintStore:
    @pytest.mark.asyncio
    async def test_set_hint_writes_signed_http_only_cookie(self) -> None:
        response = Response()
        store = CookieWorkspaceHintStore(_request(), response, secret_key=SECRET, secure=True)
        user_id, workspace_id = uuid4(), uuid4()

        await store.set_hint(user_id, workspace_id)

        header = response.headers["set-cookie"].lower()
        assert "httponly" in header
        assert "samesite=lax" in header
        assert "secure" in header
        morsel = _set_cookies(response)["current-workspace-id"]
        claims = jwt.decode(morsel.value, SECRET, algorithms=["HS256"])
        assert claims["sub"] == str(user_id)
        assert claims["ws"] == str(workspace_id)

    @pytest.mark.asyncio
    async def test_round_trip_through_next_request(self) -> None:
        user_id, workspace_id = uuid4(), uuid4()
        first = Response()
        await CookieWorkspaceHintStore(_request(), first, secret_key=SECRET).set_hint(
            user_id, workspace_id
        )
        value = _set_cookies(first)["current-workspace-id"].value

        store = CookieWorkspaceHintStore(
            _request(f"current-workspace-id={value}"), Response(), secret_key=SECRET
        )

        assert await store.get_hint(user_id) == workspace_id

    @pytest.mark.asyncio
    async def test_hint_minted_for_another_user_is_ignored(self) -> None:
        value = jwt.encode({"sub": str(uuid4()), "ws": str(uuid4())}, SECRET, algorithm="HS256")
        store = CookieWorkspaceHintStore(
            _request(f"current-workspace-id={value}"), Response(), secret_key=SECRET
        )

        assert await store.get_hint(uuid4()) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "value",
        [
            "not-a-jwt",
            jwt.encode({"sub": "u", "ws": "w"}, "other-secret", algorithm="HS256"),
        ],
    )
    async def test_tampered_cookie_is_ignored(self, value: str) -> None:
        store = CookieWorkspaceHintStore(
            _request(f"current-workspace-id={value}"), Response(), secret_key=SECRET
        )

        assert await store.get_hint(uuid4()) is None

    @pytest.mark.asyncio
    async def test_malformed_workspace_claim_is_ignored(self) -> None:
        user_id = uuid4()
        value = jwt.encode({"sub": str(user_id), "ws": "nope"}, SECRET, algorithm="HS256")
        store = CookieWorkspaceHintStore(
            _request(f"current-workspace-id={value}"), Response(), secret_key=SECRET
        )

        assert await store.get_hint(user_id) is None

    @pytest.mark.asyncio
    async def test_writes_are_visible_within_the_same_request(self) -> None:
        user_id, old, new = uuid4(), uuid4(), uuid4()
        value = jwt.encode({"sub": str(user_id), "ws": str(old)}, SECRET, algorithm="HS256")
        store = CookieWorkspaceHintStore(
            _request(f"current-workspace-id={value}"), Response(), secret_key=SECRET
        )

        await store.set_hint(user_id, new)
        assert await store.get_hint(user_id) == new

        await store.clear_hint(user_id)
        assert await store.get_hint(user_id) is None

    @pytest.mark.asyncio
    async def test_clear_hint_expires_cookie(self) -> None:
        response = Response()
        store = CookieWorkspaceHintStore(_request(), response, secret_key=SECRET)

        await store.clear_hint(uuid4())

        header = response.headers["set-cookie"]
        assert header.startswith("current-workspace-id=")
        assert "Max-Age=0" in header
