"""Membership management: who belongs to a workspace and with which role."""

from collections.abc import Callable
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError

from core.exceptions import (
    AlreadyAMemberError,
    MemberNotFoundError,
    OwnerProtectedError,
    SelfMembershipError,
    UserNotFoundError,
)
from domain.entities.audit import AuditAction, AuditEntityType
from domain.entities.caller import Caller
from domain.entities.role import Role
from domain.entities.workspace import MemberWithProfile, Workspace, WorkspaceMember
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.access import get_workspace_or_404, require_member, require_role
from domain.services.audit_service import AuditService

logger = structlog.get_logger()


class MembershipService:
    """Service layer for workspace membership business logic.

    Every mutation locks the workspace row first so it serializes with
    workspace deletion, then checks the caller's own membership inside that
    workspace. Managing other members uses the role hierarchy (ADMIN).
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        audit_service: AuditService | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._audit = audit_service

    async def get_members(
        self,
        workspace_id: UUID,
        user_id: UUID,
        include_inactive: bool = False,
    ) -> list[MemberWithProfile]:
        """List members with their profiles. Requires active membership."""
        async with self._uow_factory() as uow:
            await get_workspace_or_404(uow, workspace_id)
            await require_member(uow, workspace_id, user_id)

            members = await uow.workspaces.get_members(
                workspace_id, include_inactive=include_inactive
            )
            profiles = {
                profile.id: profile
                for profile in await uow.users.get_many([m.user_id for m in members])
            }
            return [
                MemberWithProfile(member=member, profile=profiles.get(member.user_id))
                for member in members
            ]

    async def add_member(
        self,
        workspace_id: UUID,
        caller: Caller,
        target_user_id: UUID,
        role: Role,
    ) -> WorkspaceMember:
        """Add an existing user to a workspace. Requires ADMIN.

        Raises:
            UserNotFoundError: If the target user does not exist.
            AlreadyAMemberError: If a membership (active or not) already exists,
                including when a concurrent insert wins the race.
        """
        async with self._uow_factory() as uow:
            await get_workspace_or_404(uow, workspace_id, lock=True)
            actor = await require_role(uow, workspace_id, caller.id, Role.ADMIN)

            target = await uow.users.get(target_user_id)
            if not target:
                raise UserNotFoundError(str(target_user_id))

            if await uow.workspaces.get_member(workspace_id, target_user_id):
                raise AlreadyAMemberError(str(target_user_id))

            member = WorkspaceMember(
                workspace_id=workspace_id,
                user_id=target_user_id,
                role=role,
                invited_by=caller.id,
            )
            try:
                added = await uow.workspaces.add_member(member)
                await uow.commit()
            except IntegrityError:
                await uow.rollback()
                raise AlreadyAMemberError(str(target_user_id))

        logger.info(
            "member_added",
            workspace_id=str(workspace_id),
            user_id=str(target_user_id),
            role=role.value,
        )
        await self._record(
            AuditAction.CREATE,
            workspace_id,
            target_user_id,
            f"Added {target.email} to workspace as {role.value}",
            caller,
            actor.role,
            {"role": role.value},
        )
        return added

    async def update_member_role(
        self,
        workspace_id: UUID,
        caller: Caller,
        target_user_id: UUID,
        role: Role,
    ) -> WorkspaceMember:
        """Change another member's role. Requires ADMIN.

        Raises:
            OwnerProtectedError: If the target is the workspace owner.
            SelfMembershipError: If the caller targets themselves.
            MemberNotFoundError: If the target is not a member.
        """
        async with self._uow_factory() as uow:
            workspace = await get_workspace_or_404(uow, workspace_id, lock=True)
            actor = await require_role(uow, workspace_id, caller.id, Role.ADMIN)
            target = await self._get_manageable_target(uow, workspace, caller, target_user_id)

            if target.role == role:
                return target

            old_role = target.role
            updated = await uow.workspaces.update_member_role(workspace_id, target_user_id, role)
            profile = await uow.users.get(target_user_id)
            await uow.commit()

        email = profile.email if profile else str(target_user_id)
        await self._record(
            AuditAction.ROLE_CHANGE,
            workspace_id,
            target_user_id,
            f"Changed role for {email} from {old_role.value} to {role.value}",
            caller,
            actor.role,
            {"old_role": old_role.value, "new_role": role.value},
        )
        return updated

    async def deactivate_member(
        self, workspace_id: UUID, caller: Caller, target_user_id: UUID
    ) -> WorkspaceMember:
        """Suspend another member's access without deleting the membership."""
        return await self._set_active(workspace_id, caller, target_user_id, False)

    async def reactivate_member(
        self, workspace_id: UUID, caller: Caller, target_user_id: UUID
    ) -> WorkspaceMember:
        """Restore a previously deactivated membership."""
        return await self._set_active(workspace_id, caller, target_user_id, True)

    async def remove_member(
        self, workspace_id: UUID, caller: Caller, target_user_id: UUID
    ) -> bool:
        """Remove another member. Requires ADMIN. Use leave_workspace for self."""
        async with self._uow_factory() as uow:
            workspace = await get_workspace_or_404(uow, workspace_id, lock=True)
            actor = await require_role(uow, workspace_id, caller.id, Role.ADMIN)
            target = await self._get_manageable_target(uow, workspace, caller, target_user_id)

            await uow.workspaces.remove_member(workspace_id, target_user_id)
            profile = await uow.users.get(target_user_id)
            await uow.commit()

        email = profile.email if profile else str(target_user_id)
        await self._record(
            AuditAction.DELETE,
            workspace_id,
            target_user_id,
            f"Removed {email} from workspace",
            caller,
            actor.role,
            {"role": target.role.value},
        )
        return True

    async def leave_workspace(self, workspace_id: UUID, caller: Caller) -> bool:
        """Remove the caller's own membership. Refused for the owner."""
        async with self._uow_factory() as uow:
            workspace = await get_workspace_or_404(uow, workspace_id, lock=True)

            member = await uow.workspaces.get_member(workspace_id, caller.id)
            if not member:
                raise MemberNotFoundError(str(caller.id))
            if workspace.is_owner(caller.id):
                raise OwnerProtectedError()

            await uow.workspaces.remove_member(workspace_id, caller.id)
            await uow.commit()

        await self._record(
            AuditAction.DELETE,
            workspace_id,
            caller.id,
            f"{caller.email} left the workspace",
            caller,
            member.role,
            None,
        )
        return True

    # --- Internal helpers ---

    async def _set_active(
        self,
        workspace_id: UUID,
        caller: Caller,
        target_user_id: UUID,
        is_active: bool,
    ) -> WorkspaceMember:
        async with self._uow_factory() as uow:
            workspace = await get_workspace_or_404(uow, workspace_id, lock=True)
            actor = await require_role(uow, workspace_id, caller.id, Role.ADMIN)
            target = await self._get_manageable_target(uow, workspace, caller, target_user_id)

            if target.is_active == is_active:
                return target

            updated = await uow.workspaces.set_member_active(
                workspace_id, target_user_id, is_active
            )
            profile = await uow.users.get(target_user_id)
            await uow.commit()

        email = profile.email if profile else str(target_user_id)
        verb = "Reactivated" if is_active else "Deactivated"
        await self._record(
            AuditAction.UPDATE,
            workspace_id,
            target_user_id,
            f"{verb} {email}",
            caller,
            actor.role,
            {"is_active": is_active},
        )
        return updated

    @staticmethod
    async def _get_manageable_target(
        uow: IUnitOfWork,
        workspace: Workspace,
        caller: Caller,
        target_user_id: UUID,
    ) -> WorkspaceMember:
        """Load the membership the caller wants to manage, enforcing owner/self rules."""
        if workspace.is_owner(target_user_id):
            raise OwnerProtectedError()
        if target_user_id == caller.id:
            raise SelfMembershipError()

        target = await uow.workspaces.get_member(workspace.id, target_user_id)
        if not target:
            raise MemberNotFoundError(str(target_user_id))
        return target

    async def _record(
        self,
        action: AuditAction,
        workspace_id: UUID,
        target_user_id: UUID,
        description: str,
        caller: Caller,
        actor_role: Role,
        metadata: dict | None,
    ) -> None:
        if not self._audit:
            return
        await self._audit.record(
            action=action,
            entity_type=AuditEntityType.USER,
            entity_id=target_user_id,
            workspace_id=workspace_id,
            description=description,
            caller=caller,
            actor_role=actor_role,
            metadata=metadata,
        )
