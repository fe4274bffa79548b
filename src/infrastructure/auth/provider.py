"""Identity provider protocol.

Tokens are minted by an external identity provider. This service only
verifies them and reads who the bearer is; workspace roles never come
from a token.
"""

from dataclasses import dataclass
from typing import Optional, Protocol
from uuid import UUID

from domain.entities.audit import RequestContext
from domain.entities.caller import Caller


@dataclass
class TokenUser:
    """The bearer of a verified access token."""

    id: UUID
    email: str
    display_name: Optional[str] = None
    # Identity provider role such as "authenticated", not a workspace role
    role: Optional[str] = None

    def to_caller(self, request: Optional[RequestContext] = None) -> Caller:
        """Domain identity for this user. The provider role is not carried over."""
        return Caller(
            id=self.id,
            email=self.email,
            display_name=self.display_name,
            request=request or RequestContext(),
        )


class IAuthProvider(Protocol):
    """Verifies bearer tokens issued by the identity provider."""

    async def validate_token(self, token: str) -> Optional[TokenUser]:
        """Return the bearer when signature, expiry and subject check out, else None."""
        ...

    def create_token(self, user: TokenUser) -> str:
        """Issue a token for ``user``. Used by local development and tests."""
        ...
