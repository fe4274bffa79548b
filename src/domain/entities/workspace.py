"""Workspace domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from domain.entities.permissions import Resource, is_allowed
from domain.entities.profile import Profile
from domain.entities.role import Role, is_at_least


@dataclass
class Workspace:
    """Domain entity for a Workspace (the tenant boundary)."""

    name: str
    owner_id: UUID
    id: UUID = field(default_factory=uuid4)
    slug: str = ""
    description: str | None = None
    is_active: bool = True
    settings: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self) -> None:
        """Ensure updated_at is always at least as recent as created_at."""
        if self.updated_at < self.created_at:
            self.updated_at = self.created_at

    def is_owner(self, user_id: UUID) -> bool:
        return self.owner_id == user_id


@dataclass
class WorkspaceMember:
    """Domain entity for a workspace membership.

    At most one membership exists per (workspace_id, user_id).
    """

    workspace_id: UUID
    user_id: UUID
    role: Role = Role.CLIENT
    is_active: bool = True
    joined_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)
    invited_by: UUID | None = None


@dataclass
class MemberWithProfile:
    """A membership joined with the member's directory entry."""

    member: WorkspaceMember
    profile: Profile | None = None


@dataclass
class WorkspaceWithRole:
    """A workspace paired with the caller's membership role in it."""

    workspace: Workspace
    role: Role
    joined_at: datetime


@dataclass(frozen=True)
class WorkspaceContext:
    """The workspace a request operates in and the caller's live role there."""

    user_id: UUID
    workspace_id: UUID
    workspace_name: str
    workspace_slug: str
    role: Role
    is_owner: bool = False

    def can(self, resource: Resource | str, action: str) -> bool:
        """Permission matrix check for the caller's role."""
        return is_allowed(self.role, resource, action)

    def is_at_least(self, required_role: Role) -> bool:
        """Role hierarchy check for the caller's role."""
        return is_at_least(self.role, required_role)
