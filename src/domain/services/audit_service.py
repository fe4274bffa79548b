"""Audit trail recording and querying."""

from collections.abc import Callable
from typing import Any
from uuid import UUID

from domain.entities.audit import (
    AuditAction,
    AuditActor,
    AuditEntityType,
    AuditLogEntry,
    RequestContext,
)
from domain.entities.caller import Caller
from domain.entities.permissions import Resource
from domain.entities.role import Role
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.access import get_workspace_or_404, require_permission
from domain.services.side_effects import InlineDispatcher, SideEffectDispatcher


class AuditService:
    """Append-only audit log.

    Entries are written after the audited mutation has committed, in their
    own transaction, so a failed append can never undo the mutation.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        dispatcher: SideEffectDispatcher | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._dispatcher = dispatcher or InlineDispatcher()

    async def append(self, entry: AuditLogEntry) -> AuditLogEntry:
        """Persist one entry in its own transaction. Raises on store failure."""
        async with self._uow_factory() as uow:
            created = await uow.audit_logs.append(entry)
            await uow.commit()
            return created

    async def record(
        self,
        action: AuditAction,
        entity_type: AuditEntityType,
        description: str,
        workspace_id: UUID | None = None,
        entity_id: UUID | str | None = None,
        caller: Caller | None = None,
        actor_role: Role | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Build an entry and hand its append to the side-effect dispatcher.

        Never raises. Failures are logged as ``side_effect_failed``.
        """
        actor = (
            AuditActor(user_id=caller.id, email=caller.email, role=actor_role)
            if caller
            else AuditActor()
        )
        request = caller.request if caller else RequestContext()
        entry = AuditLogEntry(
            action=action,
            entity_type=entity_type,
            description=description,
            workspace_id=workspace_id,
            actor_id=actor.user_id,
            actor_email=actor.email,
            actor_role=actor.role,
            entity_id=str(entity_id) if entity_id is not None else None,
            metadata=metadata,
            ip_address=request.ip_address,
            user_agent=request.user_agent,
        )
        await self._dispatcher.dispatch(f"audit:{action.value}", lambda: self.append(entry))

    async def get_workspace_logs(
        self,
        workspace_id: UUID,
        user_id: UUID,
        action: AuditAction | None = None,
        entity_type: AuditEntityType | None = None,
        actor_id: UUID | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[AuditLogEntry], int]:
        """Get a page of a workspace's audit trail. Requires ``audit_logs.read``.

        Returns:
            Tuple of (entries newest first, total matching entries).
        """
        async with self._uow_factory() as uow:
            await get_workspace_or_404(uow, workspace_id)
            await require_permission(uow, workspace_id, user_id, Resource.AUDIT_LOGS, "read")

            entries = await uow.audit_logs.get_for_workspace(
                workspace_id,
                action=action,
                entity_type=entity_type,
                actor_id=actor_id,
                limit=limit,
                offset=offset,
            )
            total = await uow.audit_logs.count_for_workspace(
                workspace_id, action=action, entity_type=entity_type, actor_id=actor_id
            )
            return entries, total

    async def get_entity_history(
        self,
        workspace_id: UUID,
        user_id: UUID,
        entity_type: AuditEntityType,
        entity_id: str,
        limit: int = 50,
    ) -> list[AuditLogEntry]:
        """Get the audit history of one entity. Requires ``audit_logs.read``."""
        async with self._uow_factory() as uow:
            await get_workspace_or_404(uow, workspace_id)
            await require_permission(uow, workspace_id, user_id, Resource.AUDIT_LOGS, "read")

            return await uow.audit_logs.get_for_entity(  # type: ignore[no-any-return]
                workspace_id, entity_type, entity_id, limit=limit
            )
