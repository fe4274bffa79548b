"""Workspace hint kept in a signed browser cookie."""

from datetime import datetime, timedelta
from uuid import UUID

import structlog
from jose import JWTError, jwt
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()

_UNSET = object()


class CookieWorkspaceHintStore:
    """Per-request hint store backed by the ``current-workspace-id`` cookie.

    The cookie value is a small HS256 JWT binding the workspace ID to the
    user ID, so a hint minted for one user is ignored for another. Even a
    valid signature only makes the value a hint: the resolver still checks
    membership.
    """

    def __init__(
        self,
        request: Request,
        response: Response,
        secret_key: str,
        cookie_name: str = "current-workspace-id",
        max_age: int = 60 * 60 * 24 * 365,
        secure: bool = False,
        algorithm: str = "HS256",
    ) -> None:
        self._request = request
        self._response = response
        self._secret_key = secret_key
        self._cookie_name = cookie_name
        self._max_age = max_age
        self._secure = secure
        self._algorithm = algorithm
        self._pending: object | UUID | None = _UNSET

    async def get_hint(self, user_id: UUID) -> UUID | None:
        if self._pending is not _UNSET:
            return self._pending  # type: ignore[return-value]

        raw = self._request.cookies.get(self._cookie_name)
        if not raw:
            return None
        try:
            claims = jwt.decode(raw, self._secret_key, algorithms=[self._algorithm])
            if claims.get("sub") != str(user_id):
                return None
            return UUID(claims["ws"])
        except (JWTError, KeyError, ValueError):
            logger.info("workspace_hint_cookie_invalid", user_id=str(user_id))
            return None

    async def set_hint(self, user_id: UUID, workspace_id: UUID) -> None:
        now = datetime.utcnow()
        value = jwt.encode(
            {
                "sub": str(user_id),
                "ws": str(workspace_id),
                "iat": now,
                "exp": now + timedelta(seconds=self._max_age),
            },
            self._secret_key,
            algorithm=self._algorithm,
        )
        self._response.set_cookie(
            key=self._cookie_name,
            value=value,
            max_age=self._max_age,
            httponly=True,
            secure=self._secure,
            samesite="lax",
            path="/",
        )
        self._pending = workspace_id

    async def clear_hint(self, user_id: UUID) -> None:
        self._response.delete_cookie(self._cookie_name, path="/")
        self._pending = None
