"""Shared fixtures for unit tests."""

from datetime import datetime, timedelta
from typing import Any
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest

from domain.entities.audit import RequestContext
from domain.entities.caller import Caller
from domain.entities.role import Role
from domain.entities.workspace import Workspace, WorkspaceMember


class FakeUnitOfWork:
    """Fake Unit of Work with all 4 repository mocks for unit testing."""

    def __init__(self) -> None:
        self.users = AsyncMock()
        self.workspaces = AsyncMock()
        self.invitations = AsyncMock()
        self.audit_logs = AsyncMock()
        self.committed = False
        self.rolled_back = False

    async def commit(self) -> None:
        self.committed = True

    async def rollback(self) -> None:
        self.rolled_back = True

    async def __aenter__(self) -> "FakeUnitOfWork":
        return self

    async def __aexit__(self, *args: Any) -> None:
        pass


class FakeHintStore:
    """Dict-backed workspace hint store."""

    def __init__(self, hints: dict[UUID, UUID] | None = None) -> None:
        self.hints: dict[UUID, UUID] = dict(hints or {})

    async def get_hint(self, user_id: UUID) -> UUID | None:
        return self.hints.get(user_id)

    async def set_hint(self, user_id: UUID, workspace_id: UUID) -> None:
        self.hints[user_id] = workspace_id

    async def clear_hint(self, user_id: UUID) -> None:
        self.hints.pop(user_id, None)


@pytest.fixture
def uow() -> FakeUnitOfWork:
    """Create a fresh FakeUnitOfWork."""
    return FakeUnitOfWork()


@pytest.fixture
def hints() -> FakeHintStore:
    """Create an empty FakeHintStore."""
    return FakeHintStore()


@pytest.fixture
def user_id() -> UUID:
    """A random user ID."""
    return uuid4()


@pytest.fixture
def workspace_id() -> UUID:
    """A random workspace ID."""
    return uuid4()


@pytest.fixture
def actor_id() -> UUID:
    """A random actor ID (distinct from user_id)."""
    return uuid4()


@pytest.fixture
def owner_id() -> UUID:
    """The workspace owner's ID."""
    return uuid4()


@pytest.fixture
def workspace(workspace_id: UUID, owner_id: UUID) -> Workspace:
    """An active workspace owned by owner_id."""
    return Workspace(id=workspace_id, name="Acme Agency", slug="acme-agency", owner_id=owner_id)


@pytest.fixture
def caller(actor_id: UUID) -> Caller:
    """The acting user."""
    return Caller(
        id=actor_id,
        email="admin@acme.test",
        display_name="Ada Admin",
        request=RequestContext(ip_address="203.0.113.7", user_agent="pytest"),
    )


def make_member(
    workspace_id: UUID,
    user_id: UUID,
    role: Role = Role.ADMIN,
    is_active: bool = True,
    joined_days_ago: int = 0,
) -> WorkspaceMember:
    """Build a WorkspaceMember for repository mocks."""
    return WorkspaceMember(
        workspace_id=workspace_id,
        user_id=user_id,
        role=role,
        is_active=is_active,
        joined_at=datetime.utcnow() - timedelta(days=joined_days_ago),
    )
