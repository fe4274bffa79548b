"""Pytest configuration and fixtures."""

import os
import sys
from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path
from typing import Any
from uuid import UUID, uuid4

# Disable rate limiting in tests
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
from fastapi import Depends, FastAPI
from httpx import ASGITransport, AsyncClient
from limits.aio.storage import MemoryStorage
from sqlalchemy import select
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.pool import StaticPool

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from domain.repositories.workspace_hint_store import IWorkspaceHintStore
from domain.services.audit_service import AuditService
from domain.services.invitation_service import InvitationService
from domain.services.membership_service import MembershipService
from domain.services.rate_limiter import InvitationRateLimiter
from domain.services.side_effects import BackgroundDispatcher
from domain.services.workspace_resolver import WorkspaceResolver
from domain.services.workspace_service import WorkspaceService
from infrastructure.auth.jwt_provider import JWTAuthProvider
from infrastructure.auth.provider import TokenUser
from infrastructure.database.models import Base, ProfileModel
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork
from infrastructure.mail.logging_mailer import LoggingInvitationMailer


# Compile JSONB as JSON for SQLite (used in tests)
@compiles(JSONB, "sqlite")
def _compile_jsonb_sqlite(type_: Any, compiler: Any, **kw: Any) -> str:
    return "JSON"


# Test database URL (SQLite in memory)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_JWT_SECRET = "test-secret-key"


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database per test, shared by every session via StaticPool."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create session factory."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
def uow_factory(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[[], SQLAlchemyUnitOfWork]:
    """Unit of Work factory bound to the test database."""

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(session_factory)

    return factory


@pytest.fixture
def auth_provider() -> JWTAuthProvider:
    """Create auth provider for testing."""
    return JWTAuthProvider(
        secret_key=TEST_JWT_SECRET,
        algorithm="HS256",
        expire_minutes=30,
    )


@pytest.fixture
def mailer() -> LoggingInvitationMailer:
    """Mailer that records every invitation in its outbox."""
    return LoggingInvitationMailer()


@pytest.fixture
def make_user(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[TokenUser]]:
    """Create a user with a profile row, as the identity provider sync would."""

    async def _make(email: str, display_name: str | None = None) -> TokenUser:
        user = TokenUser(id=uuid4(), email=email, display_name=display_name)
        async with session_factory() as session:
            session.add(ProfileModel(id=user.id, email=email, display_name=display_name))
            await session.commit()
        return user

    return _make


@pytest.fixture
def app(
    uow_factory: Callable[[], SQLAlchemyUnitOfWork],
    session_factory: async_sessionmaker[AsyncSession],
    auth_provider: JWTAuthProvider,
    mailer: LoggingInvitationMailer,
) -> FastAPI:
    """Application wired to the test database.

    The dispatcher's worker is never started, so audit appends and emails
    run inline and are visible as soon as a request returns.
    """
    from api.dependencies.auth import get_auth_provider
    from api.v1.dependencies import (
        get_audit_service,
        get_dispatcher,
        get_hint_store,
        get_invitation_service,
        get_membership_service,
        get_workspace_resolver,
        get_workspace_service,
    )
    from infrastructure.database.session import get_async_session
    from main import create_app

    app = create_app()

    dispatcher = BackgroundDispatcher()
    audit_service = AuditService(uow_factory, dispatcher=dispatcher)
    membership_service = MembershipService(uow_factory, audit_service=audit_service)
    rate_limiter = InvitationRateLimiter(
        MemoryStorage(), create_limit=1000, accept_limit=1000, window_seconds=3600
    )

    def override_get_resolver(
        hint_store: IWorkspaceHintStore = Depends(get_hint_store),
    ) -> WorkspaceResolver:
        return WorkspaceResolver(uow_factory, hint_store, audit_service=audit_service)

    def override_get_workspace_service(
        hint_store: IWorkspaceHintStore = Depends(get_hint_store),
    ) -> WorkspaceService:
        return WorkspaceService(uow_factory, audit_service=audit_service, hint_store=hint_store)

    def override_get_invitation_service(
        hint_store: IWorkspaceHintStore = Depends(get_hint_store),
    ) -> InvitationService:
        return InvitationService(
            uow_factory,
            hint_store=hint_store,
            audit_service=audit_service,
            mailer=mailer,
            dispatcher=dispatcher,
            rate_limiter=rate_limiter,
            app_base_url="http://app.test",
        )

    async def override_get_async_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_auth_provider] = lambda: auth_provider
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    app.dependency_overrides[get_audit_service] = lambda: audit_service
    app.dependency_overrides[get_membership_service] = lambda: membership_service
    app.dependency_overrides[get_workspace_resolver] = override_get_resolver
    app.dependency_overrides[get_workspace_service] = override_get_workspace_service
    app.dependency_overrides[get_invitation_service] = override_get_invitation_service
    app.dependency_overrides[get_async_session] = override_get_async_session
    return app


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Anonymous test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
async def client_for(
    app: FastAPI, auth_provider: JWTAuthProvider
) -> AsyncGenerator[Callable[[TokenUser], AsyncClient], None]:
    """Build one authenticated client per user, each with its own cookie jar."""
    clients: list[AsyncClient] = []

    def _client_for(user: TokenUser) -> AsyncClient:
        token = auth_provider.create_token(user)
        c = AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            headers={"Authorization": f"Bearer {token}"},
        )
        clients.append(c)
        return c

    yield _client_for

    for c in clients:
        await c.aclose()


@pytest.fixture
def load_member(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[[UUID, UUID], Awaitable[Any]]:
    """Read a membership row straight from the database."""
    from infrastructure.database.models import WorkspaceMemberModel

    async def _load(workspace_id: UUID, user_id: UUID) -> Any:
        async with session_factory() as session:
            stmt = select(WorkspaceMemberModel).where(
                WorkspaceMemberModel.workspace_id == workspace_id,
                WorkspaceMemberModel.user_id == user_id,
            )
            return (await session.execute(stmt)).scalar_one_or_none()

    return _load
