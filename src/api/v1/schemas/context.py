"""Pydantic schemas for the current-workspace and session API."""

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from domain.entities.workspace import WorkspaceContext, WorkspaceWithRole


class WorkspaceContextResponse(BaseModel):
    """The workspace a request resolved to and the caller's role there."""

    workspace_id: UUID
    workspace_name: str
    workspace_slug: str
    role: str
    is_owner: bool

    @classmethod
    def from_context(cls, context: WorkspaceContext) -> "WorkspaceContextResponse":
        return cls(
            workspace_id=context.workspace_id,
            workspace_name=context.workspace_name,
            workspace_slug=context.workspace_slug,
            role=context.role.value,
            is_owner=context.is_owner,
        )


class AvailableWorkspaceResponse(BaseModel):
    """A workspace the caller can switch to."""

    id: UUID
    name: str
    slug: str
    role: str
    joined_at: datetime

    @classmethod
    def from_entity(cls, item: WorkspaceWithRole) -> "AvailableWorkspaceResponse":
        return cls(
            id=item.workspace.id,
            name=item.workspace.name,
            slug=item.workspace.slug,
            role=item.role.value,
            joined_at=item.joined_at,
        )


class CurrentWorkspaceResponse(BaseModel):
    """Schema for the current workspace response."""

    data: WorkspaceContextResponse
    workspaces: List[AvailableWorkspaceResponse] = Field(default_factory=list)


class SwitchWorkspaceRequest(BaseModel):
    """Schema for switching the current workspace."""

    workspace_id: UUID


class SwitchWorkspaceResponse(BaseModel):
    """Schema for the switch workspace response."""

    data: WorkspaceContextResponse


class LoginResponse(BaseModel):
    """Schema for the session login response.

    ``data`` is null when the user has no workspace yet.
    """

    data: Optional[WorkspaceContextResponse] = None


class PermissionsResponse(BaseModel):
    """The permission matrix row for the caller's role in the current workspace."""

    workspace_id: UUID
    role: str
    is_owner: bool
    permissions: dict[str, list[str]]
    meta: dict[str, Any] = Field(default_factory=dict)


class PermissionCheckResponse(BaseModel):
    """Schema for a single permission check."""

    resource: str
    action: str
    allowed: bool
