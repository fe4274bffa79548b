"""Workspace repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.role import Role
from domain.entities.workspace import Workspace, WorkspaceMember, WorkspaceWithRole


class IWorkspaceRepository(Protocol):
    """Repository interface for Workspace and WorkspaceMember entities."""

    async def get(self, id: UUID) -> Workspace | None:
        """Get a workspace by ID."""
        ...

    async def get_for_update(self, id: UUID) -> Workspace | None:
        """Get a workspace by ID and lock its row until the transaction ends."""
        ...

    async def get_by_slug(self, slug: str) -> Workspace | None:
        """Get a workspace by slug."""
        ...

    async def get_all_for_user(self, user_id: UUID) -> list[Workspace]:
        """Get all active workspaces a user is an active member of."""
        ...

    async def get_active_memberships(self, user_id: UUID) -> list[WorkspaceWithRole]:
        """Active memberships in active workspaces, oldest membership first."""
        ...

    async def create(self, workspace: Workspace) -> Workspace:
        """Create a new workspace."""
        ...

    async def update(self, workspace: Workspace) -> Workspace:
        """Update an existing workspace."""
        ...

    async def delete(self, id: UUID) -> bool:
        """Delete a workspace along with its memberships and invitations."""
        ...

    async def get_member(self, workspace_id: UUID, user_id: UUID) -> WorkspaceMember | None:
        """Get a workspace member by workspace and user IDs, active or not."""
        ...

    async def get_active_member(
        self, workspace_id: UUID, user_id: UUID
    ) -> WorkspaceMember | None:
        """Get an active membership in an active workspace."""
        ...

    async def get_members(
        self, workspace_id: UUID, include_inactive: bool = False
    ) -> list[WorkspaceMember]:
        """Get members of a workspace."""
        ...

    async def add_member(self, member: WorkspaceMember) -> WorkspaceMember:
        """Add a member to a workspace. Raises IntegrityError on duplicates."""
        ...

    async def update_member_role(
        self, workspace_id: UUID, user_id: UUID, role: Role
    ) -> WorkspaceMember:
        """Update a member's role in a workspace."""
        ...

    async def set_member_active(
        self, workspace_id: UUID, user_id: UUID, is_active: bool, role: Role | None = None
    ) -> WorkspaceMember:
        """Activate or deactivate a membership, optionally changing its role."""
        ...

    async def remove_member(self, workspace_id: UUID, user_id: UUID) -> bool:
        """Remove a member from a workspace."""
        ...

    async def count_members(self, workspace_id: UUID) -> int:
        """Count the active members of a workspace."""
        ...
