"""Pydantic schemas for Workspace API."""

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from domain.entities.workspace import MemberWithProfile, Workspace, WorkspaceMember


class WorkspaceCreate(BaseModel):
    """Schema for creating a Workspace."""

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)


class WorkspaceUpdate(BaseModel):
    """Schema for updating a Workspace (all fields optional)."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)


class WorkspaceResponse(BaseModel):
    """Schema for Workspace response."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "name": "Acme Agency",
                "slug": "acme-agency",
                "description": "Client work for Acme",
                "owner_id": "456e4567-e89b-12d3-a456-426614174000",
                "is_active": True,
                "created_at": "2026-02-01T10:00:00",
                "updated_at": "2026-02-01T10:00:00",
            }
        },
    )

    id: UUID
    name: str
    slug: str
    description: Optional[str]
    owner_id: UUID
    is_active: bool = True
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, workspace: Workspace) -> "WorkspaceResponse":
        return cls(
            id=workspace.id,
            name=workspace.name,
            slug=workspace.slug,
            description=workspace.description,
            owner_id=workspace.owner_id,
            is_active=workspace.is_active,
            created_at=workspace.created_at,
            updated_at=workspace.updated_at,
        )


class WorkspaceListResponse(BaseModel):
    """Schema for list of Workspaces response."""

    data: List[WorkspaceResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class WorkspaceDetailResponse(BaseModel):
    """Schema for single Workspace response."""

    data: WorkspaceResponse


class WorkspaceMemberResponse(BaseModel):
    """Schema for Workspace Member response."""

    model_config = ConfigDict(from_attributes=True)

    workspace_id: UUID
    user_id: UUID
    email: str = ""
    display_name: Optional[str] = None
    role: str
    is_active: bool
    joined_at: datetime
    invited_by: Optional[UUID] = None

    @classmethod
    def from_entity(
        cls, member: WorkspaceMember, email: str = "", display_name: Optional[str] = None
    ) -> "WorkspaceMemberResponse":
        return cls(
            workspace_id=member.workspace_id,
            user_id=member.user_id,
            email=email,
            display_name=display_name,
            role=member.role.value,
            is_active=member.is_active,
            joined_at=member.joined_at,
            invited_by=member.invited_by,
        )

    @classmethod
    def from_member_with_profile(cls, item: MemberWithProfile) -> "WorkspaceMemberResponse":
        profile = item.profile
        return cls.from_entity(
            item.member,
            email=profile.email if profile else "",
            display_name=profile.display_name if profile else None,
        )


class WorkspaceMemberListResponse(BaseModel):
    """Schema for list of Workspace Members response."""

    data: List[WorkspaceMemberResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class WorkspaceMemberDetailResponse(BaseModel):
    """Schema for single Workspace Member response."""

    data: WorkspaceMemberResponse


class AddMemberRequest(BaseModel):
    """Schema for adding an existing user to a workspace."""

    user_id: UUID
    role: str = Field("CLIENT", min_length=1, max_length=32)


class UpdateMemberRoleRequest(BaseModel):
    """Schema for updating a member's role."""

    role: str = Field(..., min_length=1, max_length=32)
