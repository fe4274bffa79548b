"""Resolves which workspace a request operates in."""

from collections.abc import Callable
from uuid import UUID

import structlog

from core.exceptions import NoWorkspaceAccessError, NotAMemberError
from domain.entities.audit import AuditAction, AuditEntityType
from domain.entities.caller import Caller
from domain.entities.workspace import WorkspaceContext, WorkspaceWithRole
from domain.repositories.unit_of_work import IUnitOfWork
from domain.repositories.workspace_hint_store import IWorkspaceHintStore
from domain.services.audit_service import AuditService

logger = structlog.get_logger()


class WorkspaceResolver:
    """Turns (user, untrusted hint) into a membership-backed WorkspaceContext.

    The hint store is a cache, never a trust boundary: every hinted
    workspace is re-checked against an active membership in an active
    workspace before it is returned.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        hint_store: IWorkspaceHintStore,
        audit_service: AuditService | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._hints = hint_store
        self._audit = audit_service

    async def resolve(self, user_id: UUID, hint: UUID | None = None) -> WorkspaceContext:
        """Resolve the caller's current workspace.

        ``hint`` overrides the hint store for this call and is just as
        untrusted.

        1. Fast path: the hint, if it still names an active membership.
        2. Slow path: the caller's oldest active membership (ties broken by
           workspace ID), written back to the hint store.

        Raises:
            NoWorkspaceAccessError: If the user has no active membership in
                any active workspace.
        """
        if hint is None:
            hint = await self._hints.get_hint(user_id)

        async with self._uow_factory() as uow:
            if hint is not None:
                context = await self._validate(uow, user_id, hint)
                if context:
                    return context
                logger.info("workspace_hint_rejected", user_id=str(user_id), hint=str(hint))

            memberships = await uow.workspaces.get_active_memberships(user_id)

        if not memberships:
            if hint is not None:
                await self._hints.clear_hint(user_id)
            raise NoWorkspaceAccessError()

        chosen = memberships[0]
        await self._hints.set_hint(user_id, chosen.workspace.id)
        return self._to_context(user_id, chosen)

    async def require(self, user_id: UUID, workspace_id: UUID) -> WorkspaceContext:
        """Context for an explicitly requested workspace.

        Unlike a hint, an explicit request never falls back to another
        workspace.

        Raises:
            NotAMemberError: If the user is not an active member there.
        """
        async with self._uow_factory() as uow:
            context = await self._validate(uow, user_id, workspace_id)
        if context is None:
            raise NotAMemberError(str(workspace_id))
        return context

    async def switch(self, caller: Caller, workspace_id: UUID) -> WorkspaceContext:
        """Make ``workspace_id`` the caller's current workspace."""
        context = await self.require(caller.id, workspace_id)
        await self._hints.set_hint(caller.id, workspace_id)

        if self._audit:
            await self._audit.record(
                action=AuditAction.VIEW,
                entity_type=AuditEntityType.WORKSPACE,
                entity_id=workspace_id,
                workspace_id=workspace_id,
                description=f"Switched to workspace {context.workspace_name}",
                caller=caller,
                actor_role=context.role,
            )
        return context

    async def list_workspaces(self, user_id: UUID) -> list[WorkspaceWithRole]:
        """Every active workspace the user can switch to, oldest membership first."""
        async with self._uow_factory() as uow:
            return await uow.workspaces.get_active_memberships(user_id)  # type: ignore[no-any-return]

    async def on_login(self, caller: Caller) -> WorkspaceContext | None:
        """Audit a login and prime the hint. Returns None for workspace-less users."""
        if self._audit:
            await self._audit.record(
                action=AuditAction.LOGIN,
                entity_type=AuditEntityType.USER,
                entity_id=caller.id,
                description=f"User {caller.email} logged in",
                caller=caller,
            )
        try:
            return await self.resolve(caller.id)
        except NoWorkspaceAccessError:
            return None

    async def on_logout(self, caller: Caller) -> None:
        """Clear the hint and audit the logout."""
        await self._hints.clear_hint(caller.id)
        if self._audit:
            await self._audit.record(
                action=AuditAction.LOGOUT,
                entity_type=AuditEntityType.USER,
                entity_id=caller.id,
                description=f"User {caller.email} logged out",
                caller=caller,
            )

    async def _validate(
        self, uow: IUnitOfWork, user_id: UUID, workspace_id: UUID
    ) -> WorkspaceContext | None:
        member = await uow.workspaces.get_active_member(workspace_id, user_id)
        if member is None:
            return None
        workspace = await uow.workspaces.get(workspace_id)
        if workspace is None or not workspace.is_active:
            return None
        return WorkspaceContext(
            user_id=user_id,
            workspace_id=workspace.id,
            workspace_name=workspace.name,
            workspace_slug=workspace.slug,
            role=member.role,
            is_owner=workspace.is_owner(user_id),
        )

    @staticmethod
    def _to_context(user_id: UUID, item: WorkspaceWithRole) -> WorkspaceContext:
        return WorkspaceContext(
            user_id=user_id,
            workspace_id=item.workspace.id,
            workspace_name=item.workspace.name,
            workspace_slug=item.workspace.slug,
            role=item.role,
            is_owner=item.workspace.is_owner(user_id),
        )
