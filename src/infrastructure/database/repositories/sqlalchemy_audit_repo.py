"""SQLAlchemy implementation of the audit log repository."""

from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.audit import AuditAction, AuditEntityType, AuditLogEntry
from domain.entities.role import Role
from infrastructure.database.models import AuditLogModel


class SQLAlchemyAuditLogRepository:
    """SQLAlchemy implementation of IAuditLogRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def append(self, entry: AuditLogEntry) -> AuditLogEntry:
        """Insert a new audit log entry."""
        model = self._to_model(entry)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

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
        stmt = (
            self._filtered(select(AuditLogModel), workspace_id, action, entity_type, actor_id)
            .order_by(AuditLogModel.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def count_for_workspace(
        self,
        workspace_id: UUID,
        action: AuditAction | None = None,
        entity_type: AuditEntityType | None = None,
        actor_id: UUID | None = None,
    ) -> int:
        """Count entries matching the same filters as get_for_workspace."""
        stmt = self._filtered(
            select(func.count()).select_from(AuditLogModel),
            workspace_id,
            action,
            entity_type,
            actor_id,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one()

    async def get_for_entity(
        self,
        workspace_id: UUID,
        entity_type: AuditEntityType,
        entity_id: str,
        limit: int = 50,
    ) -> list[AuditLogEntry]:
        """Get entries for a specific entity, newest first."""
        stmt = (
            select(AuditLogModel)
            .where(
                AuditLogModel.workspace_id == workspace_id,
                AuditLogModel.entity_type == entity_type.value,
                AuditLogModel.entity_id == entity_id,
            )
            .order_by(AuditLogModel.created_at.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    @staticmethod
    def _filtered(
        stmt: Select,
        workspace_id: UUID,
        action: AuditAction | None,
        entity_type: AuditEntityType | None,
        actor_id: UUID | None,
    ) -> Select:
        stmt = stmt.where(AuditLogModel.workspace_id == workspace_id)
        if action is not None:
            stmt = stmt.where(AuditLogModel.action == action.value)
        if entity_type is not None:
            stmt = stmt.where(AuditLogModel.entity_type == entity_type.value)
        if actor_id is not None:
            stmt = stmt.where(AuditLogModel.actor_id == actor_id)
        return stmt

    def _to_entity(self, model: AuditLogModel) -> AuditLogEntry:
        """Convert ORM model to domain entity."""
        return AuditLogEntry(
            id=model.id,
            workspace_id=model.workspace_id,
            actor_id=model.actor_id,
            actor_email=model.actor_email,
            actor_role=Role(model.actor_role) if model.actor_role else None,
            action=AuditAction(model.action),
            entity_type=AuditEntityType(model.entity_type),
            entity_id=model.entity_id,
            description=model.description,
            metadata=model.metadata_,
            ip_address=model.ip_address,
            user_agent=model.user_agent,
            created_at=model.created_at,
        )

    def _to_model(self, entity: AuditLogEntry) -> AuditLogModel:
        """Convert domain entity to ORM model."""
        return AuditLogModel(
            id=entity.id,
            workspace_id=entity.workspace_id,
            actor_id=entity.actor_id,
            actor_email=entity.actor_email,
            actor_role=entity.actor_role.value if entity.actor_role else None,
            action=entity.action.value,
            entity_type=entity.entity_type.value,
            entity_id=entity.entity_id,
            description=entity.description,
            metadata_=entity.metadata,
            ip_address=entity.ip_address,
            user_agent=entity.user_agent,
            created_at=entity.created_at,
        )
