"""Unit tests for AuditService and the side-effect dispatchers."""

import asyncio
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest

from core.exceptions import InsufficientPermissionsError, WorkspaceNotFoundError
from domain.entities.audit import AuditAction, AuditEntityType, AuditLogEntry
from domain.entities.caller import Caller
from domain.entities.role import Role
from domain.entities.workspace import Workspace
from domain.services.audit_service import AuditService
from domain.services.side_effects import BackgroundDispatcher, InlineDispatcher
from tests.unit.conftest import FakeUnitOfWork, make_member


@pytest.fixture
def service(uow: FakeUnitOfWork) -> AuditService:
    return AuditService(lambda: uow)


# --- record / append ---


class TestRecord:
    @pytest.mark.asyncio
    async def test_snapshots_actor_and_request(
        self, service: AuditService, uow: FakeUnitOfWork, caller: Caller, workspace_id: UUID
    ) -> None:
        target = uuid4()

        await service.record(
            action=AuditAction.ROLE_CHANGE,
            entity_type=AuditEntityType.USER,
            entity_id=target,
            workspace_id=workspace_id,
            description="Changed role",
            caller=caller,
            actor_role=Role.ADMIN,
            metadata={"old_role": "CLIENT", "new_role": "DESIGNER"},
        )

        entry: AuditLogEntry = uow.audit_logs.append.await_args.args[0]
        assert entry.workspace_id == workspace_id
        assert entry.actor_id == caller.id
        assert entry.actor_email == "admin@acme.test"
        assert entry.actor_role == Role.ADMIN
        assert entry.entity_id == str(target)
        assert entry.ip_address == "203.0.113.7"
        assert entry.user_agent == "pytest"
        assert entry.metadata == {"old_role": "CLIENT", "new_role": "DESIGNER"}
        assert uow.committed

    @pytest.mark.asyncio
    async def test_without_caller(self, service: AuditService, uow: FakeUnitOfWork) -> None:
        await service.record(
            action=AuditAction.UPDATE,
            entity_type=AuditEntityType.SETTING,
            description="System maintenance",
        )

        entry: AuditLogEntry = uow.audit_logs.append.await_args.args[0]
        assert entry.actor_id is None
        assert entry.workspace_id is None
        assert entry.ip_address is None

    @pytest.mark.asyncio
    async def test_store_failure_never_reaches_caller(
        self, service: AuditService, uow: FakeUnitOfWork, caller: Caller
    ) -> None:
        uow.audit_logs.append.side_effect = RuntimeError("database is down")

        await service.record(
            action=AuditAction.LOGIN,
            entity_type=AuditEntityType.USER,
            description="login",
            caller=caller,
        )

        assert not uow.committed

    @pytest.mark.asyncio
    async def test_append_propagates_failure(
        self, service: AuditService, uow: FakeUnitOfWork
    ) -> None:
        uow.audit_logs.append.side_effect = RuntimeError("database is down")
        entry = AuditLogEntry(
            action=AuditAction.VIEW, entity_type=AuditEntityType.WORKSPACE, description="x"
        )

        with pytest.raises(RuntimeError):
            await service.append(entry)


# --- queries ---


class TestQueries:
    @pytest.mark.asyncio
    async def test_workspace_logs_for_admin(
        self,
        service: AuditService,
        uow: FakeUnitOfWork,
        workspace: Workspace,
        caller: Caller,
    ) -> None:
        entries = [
            AuditLogEntry(
                action=AuditAction.CREATE,
                entity_type=AuditEntityType.WORKSPACE,
                description="Created",
                workspace_id=workspace.id,
            )
        ]
        uow.workspaces.get.return_value = workspace
        uow.workspaces.get_member.return_value = make_member(workspace.id, caller.id)
        uow.audit_logs.get_for_workspace.return_value = entries
        uow.audit_logs.count_for_workspace.return_value = 7

        result, total = await service.get_workspace_logs(
            workspace.id, caller.id, action=AuditAction.CREATE, limit=1, offset=3
        )

        assert result == entries
        assert total == 7
        uow.audit_logs.get_for_workspace.assert_awaited_once_with(
            workspace.id,
            action=AuditAction.CREATE,
            entity_type=None,
            actor_id=None,
            limit=1,
            offset=3,
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("role", [Role.DEVELOPER, Role.DESIGNER, Role.MARKETER, Role.CLIENT])
    async def test_non_admin_cannot_read(
        self,
        service: AuditService,
        uow: FakeUnitOfWork,
        workspace: Workspace,
        caller: Caller,
        role: Role,
    ) -> None:
        uow.workspaces.get.return_value = workspace
        uow.workspaces.get_member.return_value = make_member(workspace.id, caller.id, role=role)

        with pytest.raises(InsufficientPermissionsError):
            await service.get_workspace_logs(workspace.id, caller.id)

        uow.audit_logs.get_for_workspace.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_entity_history_requires_workspace(
        self, service: AuditService, uow: FakeUnitOfWork, caller: Caller
    ) -> None:
        uow.workspaces.get.return_value = None

        with pytest.raises(WorkspaceNotFoundError):
            await service.get_entity_history(
                uuid4(), caller.id, AuditEntityType.USER, str(uuid4())
            )


# --- dispatchers ---


class TestDispatchers:
    @pytest.mark.asyncio
    async def test_inline_isolates_failures(self) -> None:
        effect = AsyncMock(side_effect=ValueError("boom"))

        await InlineDispatcher().dispatch("test", effect)

        effect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_background_runs_inline_until_started(self) -> None:
        dispatcher = BackgroundDispatcher()
        effect = AsyncMock()

        await dispatcher.dispatch("test", effect)

        assert dispatcher.running is False
        effect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_background_worker_drains_on_stop(self) -> None:
        dispatcher = BackgroundDispatcher()
        done: list[str] = []

        async def effect(name: str) -> None:
            await asyncio.sleep(0)
            done.append(name)

        async def failing() -> None:
            raise RuntimeError("smtp unavailable")

        dispatcher.start()
        assert dispatcher.running
        await dispatcher.dispatch("first", lambda: effect("first"))
        await dispatcher.dispatch("broken", failing)
        await dispatcher.dispatch("second", lambda: effect("second"))
        await dispatcher.stop()

        assert done == ["first", "second"]
        assert dispatcher.running is False

    @pytest.mark.asyncio
    async def test_background_drops_when_queue_full(self) -> None:
        dispatcher = BackgroundDispatcher(max_queue_size=1)
        gate = asyncio.Event()
        ran: list[str] = []

        async def blocked() -> None:
            await gate.wait()
            ran.append("blocked")

        async def queued() -> None:
            ran.append("queued")

        async def dropped() -> None:
            ran.append("dropped")

        dispatcher.start()
        await dispatcher.dispatch("blocked", blocked)
        await asyncio.sleep(0)
        await dispatcher.dispatch("queued", queued)
        await dispatcher.dispatch("dropped", dropped)
        gate.set()
        await dispatcher.stop()

        assert ran == ["blocked", "queued"]
