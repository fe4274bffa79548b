"""Authentication dependencies for FastAPI."""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.exceptions import AuthenticationError, ErrorCode
from core.rate_limit import client_address
from domain.entities.audit import RequestContext
from domain.entities.caller import Caller
from infrastructure.auth.jwt_provider import JWTAuthProvider
from infrastructure.auth.provider import TokenUser

# Security scheme for OpenAPI docs
security = HTTPBearer(auto_error=False)

# Singleton auth provider
_auth_provider: JWTAuthProvider | None = None


def get_auth_provider() -> JWTAuthProvider:
    """Get or create the auth provider singleton."""
    global _auth_provider
    if _auth_provider is None:
        _auth_provider = JWTAuthProvider()
    return _auth_provider


async def get_current_user(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None,
        Depends(security),
    ],
    auth_provider: JWTAuthProvider = Depends(get_auth_provider),
) -> TokenUser:
    """
    Dependency to get the current authenticated user.

    Raises:
        AuthenticationError: If no token provided or token is invalid
    """
    if not credentials:
        raise AuthenticationError(
            message="Authorization header required",
            error_code=ErrorCode.UNAUTHORIZED,
        )

    user = await auth_provider.validate_token(credentials.credentials)
    if not user:
        raise AuthenticationError(
            message="Invalid or expired token",
            error_code=ErrorCode.INVALID_TOKEN,
        )

    return user


CurrentUser = Annotated[TokenUser, Depends(get_current_user)]


def get_request_context(request: Request) -> RequestContext:
    """Client IP and user agent for the audit trail."""
    ip_address = client_address(request) if request.client else None
    return RequestContext(ip_address=ip_address, user_agent=request.headers.get("User-Agent"))


async def get_caller(
    user: CurrentUser,
    context: RequestContext = Depends(get_request_context),
) -> Caller:
    """Domain-facing identity of the authenticated user.

    The token's role claim is dropped here.
    """
    return user.to_caller(context)


CurrentCaller = Annotated[Caller, Depends(get_caller)]
