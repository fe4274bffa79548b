"""Audit log repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.audit import AuditAction, AuditEntityType, AuditLogEntry


class IAuditLogRepository(Protocol):
    """Append-only repository for AuditLogEntry records.

    There is deliberately no update or delete.
    """

    async def append(self, entry: AuditLogEntry) -> AuditLogEntry:
        """Insert a new audit log entry."""
        ...

    async def get_for_workspace(
        self,
        workspace_id: UUID,
        action: AuditAction | None = None,
        entity_type: AuditEntityType | None = None,
        actor_id: UUID | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[AuditLogEntry]:
        """Get entries for a workspace, newest first."""
        ...

    async def count_for_workspace(
        self,
        workspace_id: UUID,
        action: AuditAction | None = None,
        entity_type: AuditEntityType | None = None,
        actor_id: UUID | None = None,
    ) -> int:
        """Count entries matching the same filters as get_for_workspace."""
        ...

    async def get_for_entity(
        self,
        workspace_id: UUID,
        entity_type: AuditEntityType,
        entity_id: str,
        limit: int = 50,
    ) -> list[AuditLogEntry]:
        """Get entries for a specific entity, newest first."""
        ...
