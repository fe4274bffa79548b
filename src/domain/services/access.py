"""Membership-backed access checks shared by the domain services.

Both authorization strategies live here side by side. ``require_role`` uses
the role hierarchy, ``require_permission`` uses the permission matrix. Each
call site picks one explicitly.
"""

from uuid import UUID

from core.exceptions import (
    InsufficientPermissionsError,
    NotAMemberError,
    WorkspaceNotFoundError,
)
from domain.entities.permissions import Resource, is_allowed
from domain.entities.role import Role, is_at_least
from domain.entities.workspace import Workspace, WorkspaceMember
from domain.repositories.unit_of_work import IUnitOfWork


async def get_workspace_or_404(
    uow: IUnitOfWork, workspace_id: UUID, lock: bool = False
) -> Workspace:
    """Load an active workspace, optionally locking its row."""
    if lock:
        workspace = await uow.workspaces.get_for_update(workspace_id)
    else:
        workspace = await uow.workspaces.get(workspace_id)
    if not workspace or not workspace.is_active:
        raise WorkspaceNotFoundError(str(workspace_id))
    return workspace


async def require_member(
    uow: IUnitOfWork, workspace_id: UUID, user_id: UUID
) -> WorkspaceMember:
    """The caller's active membership. Raises NotAMemberError otherwise."""
    member = await uow.workspaces.get_member(workspace_id, user_id)
    if not member or not member.is_active:
        raise NotAMemberError(str(workspace_id))
    return member


async def require_role(
    uow: IUnitOfWork, workspace_id: UUID, user_id: UUID, required_role: Role
) -> WorkspaceMember:
    """Role hierarchy check against the caller's membership in this workspace."""
    member = await require_member(uow, workspace_id, user_id)
    if not is_at_least(member.role, required_role):
        raise InsufficientPermissionsError(required_role.value)
    return member


async def require_permission(
    uow: IUnitOfWork,
    workspace_id: UUID,
    user_id: UUID,
    resource: Resource,
    action: str,
) -> WorkspaceMember:
    """Permission matrix check against the caller's membership in this workspace."""
    member = await require_member(uow, workspace_id, user_id)
    if not is_allowed(member.role, resource, action):
        raise InsufficientPermissionsError(f"{resource.value}.{action}")
    return member
