"""Pydantic schemas for Audit Log API."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from domain.entities.audit import AuditLogEntry


class AuditLogResponse(BaseModel):
    """Schema for Audit Log entry response."""

    id: UUID
    workspace_id: Optional[UUID] = None
    actor_id: Optional[UUID] = None
    actor_email: Optional[str] = None
    actor_role: Optional[str] = None
    action: str
    entity_type: str
    entity_id: Optional[str] = None
    description: str
    metadata: Optional[dict[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_entity(cls, entry: AuditLogEntry) -> "AuditLogResponse":
        return cls(
            id=entry.id,
            workspace_id=entry.workspace_id,
            actor_id=entry.actor_id,
            actor_email=entry.actor_email,
            actor_role=entry.actor_role.value if entry.actor_role else None,
            action=entry.action.value,
            entity_type=entry.entity_type.value,
            entity_id=entry.entity_id,
            description=entry.description,
            metadata=entry.metadata,
            ip_address=entry.ip_address,
            user_agent=entry.user_agent,
            created_at=entry.created_at,
        )


class AuditLogListResponse(BaseModel):
    """Schema for a page of Audit Log entries."""

    data: list[AuditLogResponse]
    meta: dict[str, Any] = Field(default_factory=dict)
