"""JWT identity provider.

Accepts identity-provider tokens signed with ES256 (keys fetched from the
provider's JWKS endpoint) and locally issued HS256 tokens used in
development and tests.

Expected payload:
    {
        "sub": "user-uuid",
        "email": "user@example.com",
        "role": "authenticated",
        "user_metadata": { "display_name": "Jane" },
        "exp": 1234567890
    }

The ``role`` claim is carried through to TokenUser but is an identity
provider role, not a workspace role.
"""

from datetime import datetime, timedelta
from typing import Any, Optional
from uuid import UUID

import httpx
import structlog
from jose import JWTError, jwt
from jose.backends import ECKey

from core.config import settings
from infrastructure.auth.provider import TokenUser

logger = structlog.get_logger()

# kid -> JWK, fetched once and refetched on an unknown kid
_jwks_cache: dict[str, Any] | None = None


async def _get_jwks_keys(refresh: bool = False) -> dict[str, Any]:
    """Fetch and cache the identity provider's signing keys."""
    global _jwks_cache
    if _jwks_cache is not None and not refresh:
        return _jwks_cache

    jwks_url = settings.supabase_jwks_url
    if not jwks_url:
        return {}

    try:
        async with httpx.AsyncClient() as client:
            response = await client.get(jwks_url, timeout=10.0)
            response.raise_for_status()
            jwks_data = response.json()
    except (httpx.HTTPError, ValueError):
        logger.exception("jwks_fetch_failed", url=jwks_url)
        return {}

    _jwks_cache = {
        key_data["kid"]: key_data for key_data in jwks_data.get("keys", []) if key_data.get("kid")
    }
    logger.info("jwks_fetched", key_count=len(_jwks_cache))
    return _jwks_cache


class JWTAuthProvider:
    """Validates bearer tokens and issues HS256 tokens for local use."""

    def __init__(
        self,
        secret_key: str = settings.jwt_secret_key,
        algorithm: str = settings.jwt_algorithm,
        expire_minutes: int = settings.jwt_expire_minutes,
    ) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expire_minutes = expire_minutes

    async def validate_token(self, token: str) -> Optional[TokenUser]:
        """Validate a JWT and extract the caller's identity.

        Returns:
            TokenUser if valid, None if invalid, expired or missing claims
        """
        try:
            header = jwt.get_unverified_header(token)
            if header.get("alg") == "ES256":
                payload = await self._validate_es256(token, header)
            else:
                payload = jwt.decode(
                    token,
                    self._secret_key,
                    algorithms=[self._algorithm],
                    options={"verify_aud": False},
                )
        except JWTError:
            return None

        if payload is None:
            return None

        user_id = payload.get("sub")
        email = payload.get("email")
        if not user_id or not email:
            return None
        try:
            parsed_id = UUID(user_id)
        except ValueError:
            return None

        user_metadata = payload.get("user_metadata") or {}
        display_name = (
            user_metadata.get("display_name")
            or user_metadata.get("name")
            or user_metadata.get("full_name")
            or payload.get("name")
        )

        return TokenUser(
            id=parsed_id,
            email=email.strip().lower(),
            display_name=display_name,
            role=payload.get("role"),
        )

    async def _validate_es256(self, token: str, header: dict) -> Optional[dict]:
        kid = header.get("kid")
        if not kid:
            return None

        key_data = (await _get_jwks_keys()).get(kid)
        if not key_data:
            # Signing key rotation
            key_data = (await _get_jwks_keys(refresh=True)).get(kid)
            if not key_data:
                logger.warning("jwks_key_not_found", kid=kid)
                return None

        return jwt.decode(
            token,
            ECKey(key_data, algorithm="ES256"),
            algorithms=["ES256"],
            options={"verify_aud": False},
        )

    def create_token(self, user: TokenUser) -> str:
        """Create an HS256 token for a user (development and tests)."""
        payload: dict = {
            "sub": str(user.id),
            "email": user.email,
            "aud": "authenticated",
            "role": user.role or "authenticated",
            "exp": datetime.utcnow() + timedelta(minutes=self._expire_minutes),
            "user_metadata": {"display_name": user.display_name},
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)
