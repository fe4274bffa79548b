"""Workspace service layer with business logic."""

import re
from collections.abc import Callable
from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError

from core.exceptions import AuthorizationError, ErrorCode, WorkspaceSlugTakenError
from domain.entities.audit import AuditAction, AuditEntityType
from domain.entities.caller import Caller
from domain.entities.profile import Profile
from domain.entities.role import Role
from domain.entities.workspace import Workspace, WorkspaceMember
from domain.repositories.unit_of_work import IUnitOfWork
from domain.repositories.workspace_hint_store import IWorkspaceHintStore
from domain.services.access import get_workspace_or_404, require_member, require_role
from domain.services.audit_service import AuditService

logger = structlog.get_logger()


class WorkspaceService:
    """Service layer for Workspace lifecycle business logic."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        audit_service: AuditService | None = None,
        hint_store: IWorkspaceHintStore | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._audit = audit_service
        self._hints = hint_store

    async def get_all_for_user(self, user_id: UUID) -> list[Workspace]:
        """Get all active workspaces a user is an active member of."""
        async with self._uow_factory() as uow:
            return await uow.workspaces.get_all_for_user(user_id)  # type: ignore[no-any-return]

    async def get_by_id(self, workspace_id: UUID, user_id: UUID) -> Workspace:
        """Get a workspace by ID, verifying active membership."""
        async with self._uow_factory() as uow:
            workspace = await get_workspace_or_404(uow, workspace_id)
            await require_member(uow, workspace_id, user_id)
            return workspace

    async def create(
        self,
        caller: Caller,
        name: str,
        description: str | None = None,
    ) -> Workspace:
        """Create a new workspace owned by the caller, who joins it as ADMIN."""
        async with self._uow_factory() as uow:
            await uow.users.upsert(
                Profile(id=caller.id, email=caller.email, display_name=caller.display_name)
            )

            slug = self._generate_slug(name)

            # Ensure slug uniqueness
            existing = await uow.workspaces.get_by_slug(slug)
            if existing:
                slug = f"{slug}-{str(caller.id)[:8]}"
                existing = await uow.workspaces.get_by_slug(slug)
                if existing:
                    raise WorkspaceSlugTakenError(slug)

            workspace = Workspace(
                name=name,
                slug=slug,
                description=description,
                owner_id=caller.id,
            )
            # A concurrent create can still claim the slug after the check above
            try:
                created = await uow.workspaces.create(workspace)
                await uow.workspaces.add_member(
                    WorkspaceMember(
                        workspace_id=created.id,
                        user_id=caller.id,
                        role=Role.ADMIN,
                    )
                )
                await uow.commit()
            except IntegrityError:
                await uow.rollback()
                raise WorkspaceSlugTakenError(slug)

        logger.info("workspace_created", workspace_id=str(created.id), slug=slug)
        if self._hints:
            await self._hints.set_hint(caller.id, created.id)
        if self._audit:
            await self._audit.record(
                action=AuditAction.CREATE,
                entity_type=AuditEntityType.WORKSPACE,
                entity_id=created.id,
                workspace_id=created.id,
                description=f"Created workspace {created.name}",
                caller=caller,
                actor_role=Role.ADMIN,
            )
        return created

    async def update(
        self,
        workspace_id: UUID,
        caller: Caller,
        name: str | None = None,
        description: str | None = None,
    ) -> Workspace:
        """Update workspace settings. Requires ADMIN by role hierarchy."""
        async with self._uow_factory() as uow:
            workspace = await get_workspace_or_404(uow, workspace_id, lock=True)
            actor = await require_role(uow, workspace_id, caller.id, Role.ADMIN)

            old_state = {"name": workspace.name, "description": workspace.description}

            if name is not None:
                workspace.name = name
            if description is not None:
                workspace.description = description

            workspace.updated_at = datetime.utcnow()
            updated = await uow.workspaces.update(workspace)
            await uow.commit()

        new_state = {"name": updated.name, "description": updated.description}
        changes = {
            key: {"old": old_state[key], "new": new_state[key]}
            for key in old_state
            if old_state[key] != new_state[key]
        }
        if self._audit and changes:
            await self._audit.record(
                action=AuditAction.UPDATE,
                entity_type=AuditEntityType.WORKSPACE,
                entity_id=workspace_id,
                workspace_id=workspace_id,
                description=f"Updated workspace {updated.name}",
                caller=caller,
                actor_role=actor.role,
                metadata={"changes": changes},
            )
        return updated

    async def delete(self, workspace_id: UUID, caller: Caller) -> bool:
        """Delete a workspace with its memberships and invitations. Owner only.

        The workspace row is locked first, so membership and invitation
        writes for this workspace wait for the delete and then find it gone.
        Audit entries survive the deletion.
        """
        async with self._uow_factory() as uow:
            workspace = await get_workspace_or_404(uow, workspace_id, lock=True)
            member = await require_member(uow, workspace_id, caller.id)
            if not workspace.is_owner(caller.id):
                raise AuthorizationError(
                    message="Only the workspace owner can delete the workspace",
                    error_code=ErrorCode.INSUFFICIENT_PERMISSIONS,
                    details={"required": "owner"},
                )

            deleted = await uow.workspaces.delete(workspace_id)
            await uow.commit()

        logger.info("workspace_deleted", workspace_id=str(workspace_id))
        if self._hints:
            await self._hints.clear_hint(caller.id)
        if self._audit:
            await self._audit.record(
                action=AuditAction.DELETE,
                entity_type=AuditEntityType.WORKSPACE,
                entity_id=workspace_id,
                workspace_id=workspace_id,
                description=f"Deleted workspace {workspace.name}",
                caller=caller,
                actor_role=member.role,
                metadata={"slug": workspace.slug},
            )
        return deleted  # type: ignore[no-any-return]

    @staticmethod
    def _generate_slug(name: str) -> str:
        """Generate a URL-safe slug from a workspace name."""
        slug = name.lower().strip()
        slug = re.sub(r"[^\w\s-]", "", slug)
        slug = re.sub(r"[\s_]+", "-", slug)
        slug = re.sub(r"-+", "-", slug)
        slug = slug.strip("-")
        return slug or "workspace"
