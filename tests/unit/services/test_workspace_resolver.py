"""Unit tests for WorkspaceResolver and the shared access checks."""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest

from core.exceptions import (
    InsufficientPermissionsError,
    NoWorkspaceAccessError,
    NotAMemberError,
    WorkspaceNotFoundError,
)
from domain.entities.audit import AuditAction
from domain.entities.caller import Caller
from domain.entities.permissions import Resource
from domain.entities.role import Role
from domain.entities.workspace import Workspace, WorkspaceWithRole
from domain.services.access import (
    get_workspace_or_404,
    require_member,
    require_permission,
    require_role,
)
from domain.services.workspace_resolver import WorkspaceResolver
from tests.unit.conftest import FakeHintStore, FakeUnitOfWork, make_member


@pytest.fixture
def audit() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def resolver(uow: FakeUnitOfWork, hints: FakeHintStore, audit: AsyncMock) -> WorkspaceResolver:
    return WorkspaceResolver(lambda: uow, hints, audit_service=audit)


def _membership(name: str, role: Role, owner_id: UUID, days_ago: int) -> WorkspaceWithRole:
    return WorkspaceWithRole(
        workspace=Workspace(name=name, slug=name.lower(), owner_id=owner_id),
        role=role,
        joined_at=datetime.utcnow() - timedelta(days=days_ago),
    )


# --- access checks ---


class TestAccessChecks:
    @pytest.mark.asyncio
    async def test_inactive_workspace_is_not_found(
        self, uow: FakeUnitOfWork, workspace: Workspace
    ) -> None:
        workspace.is_active = False
        uow.workspaces.get.return_value = workspace

        with pytest.raises(WorkspaceNotFoundError):
            await get_workspace_or_404(uow, workspace.id)

    @pytest.mark.asyncio
    async def test_lock_uses_get_for_update(
        self, uow: FakeUnitOfWork, workspace: Workspace
    ) -> None:
        uow.workspaces.get_for_update.return_value = workspace

        assert await get_workspace_or_404(uow, workspace.id, lock=True) is workspace
        uow.workspaces.get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_inactive_member_is_not_a_member(
        self, uow: FakeUnitOfWork, workspace_id: UUID, user_id: UUID
    ) -> None:
        uow.workspaces.get_member.return_value = make_member(
            workspace_id, user_id, is_active=False
        )

        with pytest.raises(NotAMemberError):
            await require_member(uow, workspace_id, user_id)

    @pytest.mark.asyncio
    async def test_require_role_uses_hierarchy(
        self, uow: FakeUnitOfWork, workspace_id: UUID, user_id: UUID
    ) -> None:
        uow.workspaces.get_member.return_value = make_member(
            workspace_id, user_id, role=Role.DEVELOPER
        )

        assert await require_role(uow, workspace_id, user_id, Role.DESIGNER)
        with pytest.raises(InsufficientPermissionsError):
            await require_role(uow, workspace_id, user_id, Role.ADMIN)

    @pytest.mark.asyncio
    async def test_require_permission_uses_matrix(
        self, uow: FakeUnitOfWork, workspace_id: UUID, user_id: UUID
    ) -> None:
        uow.workspaces.get_member.return_value = make_member(
            workspace_id, user_id, role=Role.MARKETER
        )

        member = await require_permission(uow, workspace_id, user_id, Resource.CAMPAIGNS, "delete")
        assert member.role == Role.MARKETER
        with pytest.raises(InsufficientPermissionsError) as exc_info:
            await require_permission(uow, workspace_id, user_id, Resource.FILES, "delete")
        assert exc_info.value.details == {"required": "files.delete"}


# --- resolve ---


class TestResolve:
    @pytest.mark.asyncio
    async def test_valid_hint_is_used(
        self,
        resolver: WorkspaceResolver,
        uow: FakeUnitOfWork,
        hints: FakeHintStore,
        workspace: Workspace,
        user_id: UUID,
    ) -> None:
        hints.hints[user_id] = workspace.id
        uow.workspaces.get_active_member.return_value = make_member(
            workspace.id, user_id, role=Role.DESIGNER
        )
        uow.workspaces.get.return_value = workspace

        context = await resolver.resolve(user_id)

        assert context.workspace_id == workspace.id
        assert context.role == Role.DESIGNER
        assert context.is_owner is False
        uow.workspaces.get_active_memberships.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_stale_hint_falls_back_to_oldest_membership(
        self,
        resolver: WorkspaceResolver,
        uow: FakeUnitOfWork,
        hints: FakeHintStore,
        user_id: UUID,
    ) -> None:
        """A hint for a workspace the user was removed from is never honored."""
        stale = uuid4()
        hints.hints[user_id] = stale
        oldest = _membership("Oldest", Role.CLIENT, user_id, days_ago=30)
        newer = _membership("Newer", Role.ADMIN, uuid4(), days_ago=1)
        uow.workspaces.get_active_member.return_value = None
        uow.workspaces.get_active_memberships.return_value = [oldest, newer]

        context = await resolver.resolve(user_id)

        assert context.workspace_id == oldest.workspace.id
        assert context.role == Role.CLIENT
        assert context.is_owner is True
        assert hints.hints[user_id] == oldest.workspace.id

    @pytest.mark.asyncio
    async def test_hint_for_inactive_workspace_is_rejected(
        self,
        resolver: WorkspaceResolver,
        uow: FakeUnitOfWork,
        hints: FakeHintStore,
        workspace: Workspace,
        user_id: UUID,
    ) -> None:
        hints.hints[user_id] = workspace.id
        workspace.is_active = False
        uow.workspaces.get_active_member.return_value = make_member(workspace.id, user_id)
        uow.workspaces.get.return_value = workspace
        fallback = _membership("Other", Role.DEVELOPER, uuid4(), days_ago=3)
        uow.workspaces.get_active_memberships.return_value = [fallback]

        context = await resolver.resolve(user_id)

        assert context.workspace_id == fallback.workspace.id

    @pytest.mark.asyncio
    async def test_no_memberships_raises_and_clears_hint(
        self,
        resolver: WorkspaceResolver,
        uow: FakeUnitOfWork,
        hints: FakeHintStore,
        user_id: UUID,
    ) -> None:
        hints.hints[user_id] = uuid4()
        uow.workspaces.get_active_member.return_value = None
        uow.workspaces.get_active_memberships.return_value = []

        with pytest.raises(NoWorkspaceAccessError):
            await resolver.resolve(user_id)

        assert user_id not in hints.hints

    @pytest.mark.asyncio
    async def test_explicit_hint_argument_overrides_store(
        self,
        resolver: WorkspaceResolver,
        uow: FakeUnitOfWork,
        hints: FakeHintStore,
        workspace: Workspace,
        user_id: UUID,
    ) -> None:
        hints.hints[user_id] = uuid4()
        uow.workspaces.get_active_member.return_value = make_member(workspace.id, user_id)
        uow.workspaces.get.return_value = workspace

        context = await resolver.resolve(user_id, hint=workspace.id)

        assert context.workspace_id == workspace.id
        uow.workspaces.get_active_member.assert_awaited_once_with(workspace.id, user_id)


# --- require / switch ---


class TestRequireAndSwitch:
    @pytest.mark.asyncio
    async def test_require_never_falls_back(
        self, resolver: WorkspaceResolver, uow: FakeUnitOfWork, user_id: UUID
    ) -> None:
        uow.workspaces.get_active_member.return_value = None
        uow.workspaces.get_active_memberships.return_value = [
            _membership("Other", Role.ADMIN, user_id, days_ago=5)
        ]

        with pytest.raises(NotAMemberError):
            await resolver.require(user_id, uuid4())

    @pytest.mark.asyncio
    async def test_switch_sets_hint_and_audits(
        self,
        resolver: WorkspaceResolver,
        uow: FakeUnitOfWork,
        hints: FakeHintStore,
        audit: AsyncMock,
        caller: Caller,
        workspace: Workspace,
    ) -> None:
        uow.workspaces.get_active_member.return_value = make_member(
            workspace.id, caller.id, role=Role.MARKETER
        )
        uow.workspaces.get.return_value = workspace

        context = await resolver.switch(caller, workspace.id)

        assert context.role == Role.MARKETER
        assert hints.hints[caller.id] == workspace.id
        kwargs = audit.record.await_args.kwargs
        assert kwargs["action"] == AuditAction.VIEW
        assert kwargs["workspace_id"] == workspace.id
        assert kwargs["actor_role"] == Role.MARKETER

    @pytest.mark.asyncio
    async def test_switch_to_foreign_workspace_keeps_hint(
        self,
        resolver: WorkspaceResolver,
        uow: FakeUnitOfWork,
        hints: FakeHintStore,
        audit: AsyncMock,
        caller: Caller,
    ) -> None:
        current = uuid4()
        hints.hints[caller.id] = current
        uow.workspaces.get_active_member.return_value = None

        with pytest.raises(NotAMemberError):
            await resolver.switch(caller, uuid4())

        assert hints.hints[caller.id] == current
        audit.record.assert_not_awaited()


# --- login / logout ---


class TestSession:
    @pytest.mark.asyncio
    async def test_login_audits_and_primes_hint(
        self,
        resolver: WorkspaceResolver,
        uow: FakeUnitOfWork,
        hints: FakeHintStore,
        audit: AsyncMock,
        caller: Caller,
    ) -> None:
        membership = _membership("Mine", Role.ADMIN, caller.id, days_ago=2)
        uow.workspaces.get_active_memberships.return_value = [membership]

        context = await resolver.on_login(caller)

        assert context is not None
        assert context.workspace_id == membership.workspace.id
        assert hints.hints[caller.id] == membership.workspace.id
        kwargs = audit.record.await_args.kwargs
        assert kwargs["action"] == AuditAction.LOGIN
        assert kwargs.get("workspace_id") is None

    @pytest.mark.asyncio
    async def test_login_without_workspaces_returns_none(
        self,
        resolver: WorkspaceResolver,
        uow: FakeUnitOfWork,
        audit: AsyncMock,
        caller: Caller,
    ) -> None:
        uow.workspaces.get_active_memberships.return_value = []

        assert await resolver.on_login(caller) is None
        audit.record.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_logout_clears_hint(
        self,
        resolver: WorkspaceResolver,
        hints: FakeHintStore,
        audit: AsyncMock,
        caller: Caller,
    ) -> None:
        hints.hints[caller.id] = uuid4()

        await resolver.on_logout(caller)

        assert caller.id not in hints.hints
        assert audit.record.await_args.kwargs["action"] == AuditAction.LOGOUT
