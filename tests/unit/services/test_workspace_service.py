"""Unit tests for WorkspaceService."""

from unittest.mock import AsyncMock
from uuid import UUID

import pytest
from sqlalchemy.exc import IntegrityError

from core.exceptions import (
    AuthorizationError,
    InsufficientPermissionsError,
    NotAMemberError,
    WorkspaceNotFoundError,
    WorkspaceSlugTakenError,
)
from domain.entities.audit import AuditAction
from domain.entities.caller import Caller
from domain.entities.role import Role
from domain.entities.workspace import Workspace, WorkspaceMember
from domain.services.workspace_service import WorkspaceService
from tests.unit.conftest import FakeHintStore, FakeUnitOfWork, make_member


@pytest.fixture
def audit() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def service(uow: FakeUnitOfWork, audit: AsyncMock, hints: FakeHintStore) -> WorkspaceService:
    return WorkspaceService(lambda: uow, audit_service=audit, hint_store=hints)


@pytest.fixture
def owner(owner_id: UUID) -> Caller:
    return Caller(id=owner_id, email="owner@acme.test", display_name="Olive Owner")


# --- create ---


class TestCreate:
    @pytest.mark.asyncio
    async def test_creator_becomes_owner_and_admin(
        self,
        service: WorkspaceService,
        uow: FakeUnitOfWork,
        hints: FakeHintStore,
        audit: AsyncMock,
        caller: Caller,
    ) -> None:
        uow.workspaces.get_by_slug.return_value = None
        uow.workspaces.create.side_effect = lambda ws: ws

        created = await service.create(caller, "Acme Agency", description="Clients")

        assert created.owner_id == caller.id
        assert created.slug == "acme-agency"
        member: WorkspaceMember = uow.workspaces.add_member.await_args.args[0]
        assert member.user_id == caller.id
        assert member.role == Role.ADMIN
        assert uow.committed
        assert hints.hints[caller.id] == created.id
        assert audit.record.await_args.kwargs["action"] == AuditAction.CREATE

    @pytest.mark.asyncio
    async def test_slug_collision_gets_suffix(
        self,
        service: WorkspaceService,
        uow: FakeUnitOfWork,
        workspace: Workspace,
        caller: Caller,
    ) -> None:
        uow.workspaces.get_by_slug.side_effect = [workspace, None]
        uow.workspaces.create.side_effect = lambda ws: ws

        created = await service.create(caller, "Acme Agency")

        assert created.slug == f"acme-agency-{str(caller.id)[:8]}"

    @pytest.mark.asyncio
    async def test_slug_taken_twice(
        self,
        service: WorkspaceService,
        uow: FakeUnitOfWork,
        workspace: Workspace,
        caller: Caller,
    ) -> None:
        uow.workspaces.get_by_slug.return_value = workspace

        with pytest.raises(WorkspaceSlugTakenError):
            await service.create(caller, "Acme Agency")

    @pytest.mark.asyncio
    async def test_concurrent_slug_claim_maps_to_conflict(
        self,
        service: WorkspaceService,
        uow: FakeUnitOfWork,
        hints: FakeHintStore,
        audit: AsyncMock,
        caller: Caller,
    ) -> None:
        uow.workspaces.get_by_slug.return_value = None
        uow.workspaces.create.side_effect = IntegrityError("insert", {}, Exception("dup"))

        with pytest.raises(WorkspaceSlugTakenError) as exc_info:
            await service.create(caller, "Acme Agency")

        assert exc_info.value.status_code == 409
        assert exc_info.value.details == {"slug": "acme-agency"}
        assert uow.rolled_back
        assert not uow.committed
        assert caller.id not in hints.hints
        audit.record.assert_not_awaited()

    @pytest.mark.parametrize(
        ("name", "slug"),
        [
            ("My Workspace", "my-workspace"),
            ("  Spaced   Out  ", "spaced-out"),
            ("Ünïcode & Symbols!", "ünïcode-symbols"),
            ("!!!", "workspace"),
        ],
    )
    def test_generate_slug(self, name: str, slug: str) -> None:
        assert WorkspaceService._generate_slug(name) == slug


# --- read ---


class TestRead:
    @pytest.mark.asyncio
    async def test_get_by_id_requires_membership(
        self,
        service: WorkspaceService,
        uow: FakeUnitOfWork,
        workspace: Workspace,
        caller: Caller,
    ) -> None:
        uow.workspaces.get.return_value = workspace
        uow.workspaces.get_member.return_value = None

        with pytest.raises(NotAMemberError):
            await service.get_by_id(workspace.id, caller.id)

    @pytest.mark.asyncio
    async def test_get_by_id_for_client(
        self,
        service: WorkspaceService,
        uow: FakeUnitOfWork,
        workspace: Workspace,
        caller: Caller,
    ) -> None:
        uow.workspaces.get.return_value = workspace
        uow.workspaces.get_member.return_value = make_member(
            workspace.id, caller.id, role=Role.CLIENT
        )

        assert await service.get_by_id(workspace.id, caller.id) is workspace

    @pytest.mark.asyncio
    async def test_get_all_for_user(
        self, service: WorkspaceService, uow: FakeUnitOfWork, workspace: Workspace, user_id: UUID
    ) -> None:
        uow.workspaces.get_all_for_user.return_value = [workspace]

        assert await service.get_all_for_user(user_id) == [workspace]


# --- update ---


class TestUpdate:
    @pytest.mark.asyncio
    async def test_admin_updates_and_audits_changes(
        self,
        service: WorkspaceService,
        uow: FakeUnitOfWork,
        audit: AsyncMock,
        workspace: Workspace,
        caller: Caller,
    ) -> None:
        uow.workspaces.get_for_update.return_value = workspace
        uow.workspaces.get_member.return_value = make_member(workspace.id, caller.id)
        uow.workspaces.update.side_effect = lambda ws: ws

        updated = await service.update(workspace.id, caller, name="Acme Studio")

        assert updated.name == "Acme Studio"
        metadata = audit.record.await_args.kwargs["metadata"]
        assert metadata == {"changes": {"name": {"old": "Acme Agency", "new": "Acme Studio"}}}

    @pytest.mark.asyncio
    async def test_no_changes_are_not_audited(
        self,
        service: WorkspaceService,
        uow: FakeUnitOfWork,
        audit: AsyncMock,
        workspace: Workspace,
        caller: Caller,
    ) -> None:
        uow.workspaces.get_for_update.return_value = workspace
        uow.workspaces.get_member.return_value = make_member(workspace.id, caller.id)
        uow.workspaces.update.side_effect = lambda ws: ws

        await service.update(workspace.id, caller, name="Acme Agency")

        audit.record.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_developer_cannot_update(
        self,
        service: WorkspaceService,
        uow: FakeUnitOfWork,
        workspace: Workspace,
        caller: Caller,
    ) -> None:
        uow.workspaces.get_for_update.return_value = workspace
        uow.workspaces.get_member.return_value = make_member(
            workspace.id, caller.id, role=Role.DEVELOPER
        )

        with pytest.raises(InsufficientPermissionsError):
            await service.update(workspace.id, caller, name="Hijacked")

        uow.workspaces.update.assert_not_awaited()


# --- delete ---


class TestDelete:
    @pytest.mark.asyncio
    async def test_owner_deletes(
        self,
        service: WorkspaceService,
        uow: FakeUnitOfWork,
        hints: FakeHintStore,
        audit: AsyncMock,
        workspace: Workspace,
        owner: Caller,
    ) -> None:
        hints.hints[owner.id] = workspace.id
        uow.workspaces.get_for_update.return_value = workspace
        uow.workspaces.get_member.return_value = make_member(workspace.id, owner.id)
        uow.workspaces.delete.return_value = True

        assert await service.delete(workspace.id, owner) is True
        uow.workspaces.delete.assert_awaited_once_with(workspace.id)
        assert owner.id not in hints.hints
        assert audit.record.await_args.kwargs["metadata"] == {"slug": "acme-agency"}

    @pytest.mark.asyncio
    async def test_non_owner_admin_cannot_delete(
        self,
        service: WorkspaceService,
        uow: FakeUnitOfWork,
        workspace: Workspace,
        caller: Caller,
    ) -> None:
        uow.workspaces.get_for_update.return_value = workspace
        uow.workspaces.get_member.return_value = make_member(workspace.id, caller.id)

        with pytest.raises(AuthorizationError) as exc_info:
            await service.delete(workspace.id, caller)

        assert exc_info.value.details == {"required": "owner"}
        uow.workspaces.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_workspace(
        self, service: WorkspaceService, uow: FakeUnitOfWork, workspace: Workspace, owner: Caller
    ) -> None:
        uow.workspaces.get_for_update.return_value = None

        with pytest.raises(WorkspaceNotFoundError):
            await service.delete(workspace.id, owner)
