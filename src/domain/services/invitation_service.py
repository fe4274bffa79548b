"""Invitation service layer with business logic."""

import hashlib
import re
import secrets
from collections.abc import Callable
from datetime import datetime, timedelta
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError

from core.exceptions import (
    AlreadyAMemberError,
    DuplicateInvitationError,
    InvalidEmailError,
    InvalidInvitationTokenError,
    InvalidRoleError,
    InvitationAlreadyAcceptedError,
    InvitationEmailMismatchError,
    InvitationExpiredError,
    InvitationNotFoundError,
)
from domain.entities.audit import AuditAction, AuditEntityType
from domain.entities.caller import Caller
from domain.entities.invitation import (
    INVITATION_EXPIRY_DAYS,
    Invitation,
    InvitationDetails,
)
from domain.entities.permissions import Resource
from domain.entities.profile import Profile
from domain.entities.role import Role, parse_role
from domain.entities.workspace import Workspace, WorkspaceMember
from domain.repositories.unit_of_work import IUnitOfWork
from domain.repositories.workspace_hint_store import IWorkspaceHintStore
from domain.services.access import get_workspace_or_404, require_permission
from domain.services.audit_service import AuditService
from domain.services.mailer import IInvitationMailer, InvitationEmail
from domain.services.rate_limiter import InvitationRateLimiter
from domain.services.side_effects import InlineDispatcher, SideEffectDispatcher

logger = structlog.get_logger()

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class InvitationService:
    """Service layer for workspace invitation business logic.

    Raw tokens are returned to the caller once and never stored; only their
    SHA-256 hash is persisted. Emails and audit entries are dispatched after
    the transaction commits and cannot roll it back.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        hint_store: IWorkspaceHintStore | None = None,
        audit_service: AuditService | None = None,
        mailer: IInvitationMailer | None = None,
        dispatcher: SideEffectDispatcher | None = None,
        rate_limiter: InvitationRateLimiter | None = None,
        app_base_url: str = "http://localhost:3000",
        expiry_days: int = INVITATION_EXPIRY_DAYS,
    ) -> None:
        self._uow_factory = uow_factory
        self._hints = hint_store
        self._audit = audit_service
        self._mailer = mailer
        self._dispatcher = dispatcher or InlineDispatcher()
        self._rate_limiter = rate_limiter
        self._app_base_url = app_base_url.rstrip("/")
        self._expiry = timedelta(days=expiry_days)

    async def create_invitation(
        self,
        workspace_id: UUID,
        caller: Caller,
        email: str,
        role: Role | str,
    ) -> tuple[Invitation, str]:
        """Create a workspace invitation.

        Args:
            workspace_id: The workspace to invite to.
            caller: The inviter (needs ``users.invite`` in that workspace).
            email: The email address to invite.
            role: The role to grant on acceptance.

        Returns:
            Tuple of (Invitation, raw_token). The raw_token is only available
            here and in the invitation email.

        Raises:
            RateLimitExceededError: If the caller is creating too many invitations.
            InvalidRoleError / InvalidEmailError: If the input is malformed.
            WorkspaceNotFoundError: If workspace does not exist.
            NotAMemberError / InsufficientPermissionsError: If the caller may not invite.
            AlreadyAMemberError: If the email belongs to an active member.
            DuplicateInvitationError: If a pending invitation already exists.
        """
        if self._rate_limiter:
            await self._rate_limiter.check_create(caller.id)

        parsed_role = self._parse_role(role)
        normalized = self._normalize_email(email)

        async with self._uow_factory() as uow:
            workspace = await get_workspace_or_404(uow, workspace_id, lock=True)
            actor = await require_permission(
                uow, workspace_id, caller.id, Resource.USERS, "invite"
            )

            invitee = await uow.users.get_by_email(normalized)
            if invitee:
                existing_member = await uow.workspaces.get_member(workspace_id, invitee.id)
                if existing_member and existing_member.is_active:
                    raise AlreadyAMemberError(str(invitee.id))

            if await uow.invitations.get_pending_for_workspace_email(workspace_id, normalized):
                raise DuplicateInvitationError(normalized)

            raw_token = self._generate_token()
            invitation = Invitation(
                workspace_id=workspace_id,
                email=normalized,
                role=parsed_role,
                token_hash=self._hash_token(raw_token),
                invited_by=caller.id,
                expires_at=datetime.utcnow() + self._expiry,
            )
            created = await uow.invitations.create(invitation)
            await uow.commit()

        logger.info(
            "invitation_created",
            workspace_id=str(workspace_id),
            invitation_id=str(created.id),
            role=parsed_role.value,
        )
        await self._send_email(created, raw_token, workspace, caller)
        await self._record(
            AuditAction.CREATE,
            created,
            f"Invited {normalized} as {parsed_role.value}",
            caller,
            actor.role,
        )
        return created, raw_token

    async def get_invitation_by_token(self, token: str) -> InvitationDetails:
        """Look up an invitation for the signup page.

        Raises:
            InvalidInvitationTokenError: If the token matches nothing.
        """
        if not token:
            raise InvalidInvitationTokenError()
        async with self._uow_factory() as uow:
            details = await uow.invitations.get_details_by_token_hash(self._hash_token(token))
        if not details:
            raise InvalidInvitationTokenError()
        return details  # type: ignore[no-any-return]

    async def accept_invitation(self, token: str, caller: Caller) -> WorkspaceMember:
        """Accept a workspace invitation using the raw token.

        The acceptance stamp and the membership write commit together or not
        at all. Two concurrent accepts of one token cannot both succeed: the
        row is locked and accepted_at is set with a compare-and-swap.

        Raises:
            RateLimitExceededError: If the caller is retrying too often.
            InvalidInvitationTokenError: If the token matches nothing.
            InvitationAlreadyAcceptedError: If the invitation was already used.
            InvitationExpiredError: If the invitation is past its expiry.
            InvitationEmailMismatchError: If the caller's email differs.
            AlreadyAMemberError: If the caller is already an active member.
        """
        if self._rate_limiter:
            await self._rate_limiter.check_accept(caller.id)
        if not token:
            raise InvalidInvitationTokenError()

        async with self._uow_factory() as uow:
            invitation = await uow.invitations.get_by_token_hash(self._hash_token(token))
            if not invitation:
                raise InvalidInvitationTokenError()

            member, role = await self._process_acceptance(uow, invitation.id, caller)

        await self._after_acceptance(invitation, caller, role)
        return member

    async def accept_by_id(self, invitation_id: UUID, caller: Caller) -> WorkspaceMember:
        """Accept an invitation by its ID (for the in-app banner flow).

        Same guarantees and errors as ``accept_invitation``, except an unknown
        ID raises InvitationNotFoundError.
        """
        if self._rate_limiter:
            await self._rate_limiter.check_accept(caller.id)

        async with self._uow_factory() as uow:
            invitation = await uow.invitations.get_by_id(invitation_id)
            if not invitation:
                raise InvitationNotFoundError(str(invitation_id))

            member, role = await self._process_acceptance(uow, invitation.id, caller)

        await self._after_acceptance(invitation, caller, role)
        return member

    async def revoke_invitation(self, invitation_id: UUID, caller: Caller) -> Invitation:
        """Delete an unaccepted invitation.

        Allowed to the invitee while the invitation is pending, or to any
        active member holding ``users.invite`` in the invitation's workspace.

        Raises:
            InvitationNotFoundError: If the invitation does not exist.
            InvitationAlreadyAcceptedError: If it was already accepted.
            NotAMemberError / InsufficientPermissionsError: If the caller may not revoke.
        """
        async with self._uow_factory() as uow:
            found = await uow.invitations.get_by_id(invitation_id)
            if not found:
                raise InvitationNotFoundError(str(invitation_id))

            await get_workspace_or_404(uow, found.workspace_id, lock=True)
            invitation = await uow.invitations.get_by_id_for_update(invitation_id)
            if not invitation:
                raise InvitationNotFoundError(str(invitation_id))
            if invitation.is_accepted:
                raise InvitationAlreadyAcceptedError()

            actor_role: Role | None = None
            is_invitee = invitation.is_pending and invitation.matches_email(caller.email)
            if not is_invitee:
                actor = await require_permission(
                    uow, invitation.workspace_id, caller.id, Resource.USERS, "invite"
                )
                actor_role = actor.role

            await uow.invitations.delete(invitation_id)
            await uow.commit()

        description = (
            f"{invitation.email} declined the invitation"
            if is_invitee
            else f"Revoked invitation for {invitation.email}"
        )
        await self._record(AuditAction.DELETE, invitation, description, caller, actor_role)
        return invitation

    async def resend_invitation(
        self,
        workspace_id: UUID,
        invitation_id: UUID,
        caller: Caller,
    ) -> tuple[Invitation, str]:
        """Mint a fresh token and expiry for an unaccepted invitation and re-send it.

        The previous token stops working immediately.
        """
        if self._rate_limiter:
            await self._rate_limiter.check_create(caller.id)

        async with self._uow_factory() as uow:
            workspace = await get_workspace_or_404(uow, workspace_id, lock=True)
            actor = await require_permission(
                uow, workspace_id, caller.id, Resource.USERS, "invite"
            )

            invitation = await uow.invitations.get_by_id_for_update(invitation_id)
            if not invitation or invitation.workspace_id != workspace_id:
                raise InvitationNotFoundError(str(invitation_id))
            if invitation.is_accepted:
                raise InvitationAlreadyAcceptedError()

            raw_token = self._generate_token()
            rotated = await uow.invitations.rotate_token(
                invitation_id,
                self._hash_token(raw_token),
                datetime.utcnow() + self._expiry,
            )
            await uow.commit()

        await self._send_email(rotated, raw_token, workspace, caller)
        await self._record(
            AuditAction.UPDATE,
            rotated,
            f"Resent invitation to {rotated.email}",
            caller,
            actor.role,
        )
        return rotated, raw_token

    async def get_workspace_invitations(
        self,
        workspace_id: UUID,
        user_id: UUID,
        include_expired: bool = False,
    ) -> list[Invitation]:
        """List unaccepted invitations for a workspace. Requires ``users.invite``.

        Pending is evaluated at query time, so expired invitations are
        excluded unless ``include_expired`` is set.
        """
        async with self._uow_factory() as uow:
            await get_workspace_or_404(uow, workspace_id)
            await require_permission(uow, workspace_id, user_id, Resource.USERS, "invite")

            return await uow.invitations.get_for_workspace(  # type: ignore[no-any-return]
                workspace_id, include_expired=include_expired
            )

    async def get_user_pending_invitations(self, email: str) -> list[InvitationDetails]:
        """Get all pending invitations for an email address.

        Used to show pending invitations on login/dashboard.
        """
        async with self._uow_factory() as uow:
            return await uow.invitations.get_pending_for_email(  # type: ignore[no-any-return]
                email.lower().strip()
            )

    def build_invitation_link(self, raw_token: str) -> str:
        return f"{self._app_base_url}/signup?token={raw_token}"

    # --- Internal helpers ---

    async def _process_acceptance(
        self,
        uow: IUnitOfWork,
        invitation_id: UUID,
        caller: Caller,
    ) -> tuple[WorkspaceMember, Role]:
        """Validate and apply an acceptance inside the caller's transaction.

        The workspace row is locked before the invitation row, the same
        order workspace deletion uses.
        """
        unlocked = await uow.invitations.get_by_id(invitation_id)
        if not unlocked:
            raise InvalidInvitationTokenError()
        await get_workspace_or_404(uow, unlocked.workspace_id, lock=True)

        invitation = await uow.invitations.get_by_id_for_update(invitation_id)
        if not invitation:
            raise InvalidInvitationTokenError()
        if invitation.is_accepted:
            raise InvitationAlreadyAcceptedError()
        if invitation.is_expired:
            raise InvitationExpiredError()
        if not invitation.matches_email(caller.email):
            raise InvitationEmailMismatchError()

        existing = await uow.workspaces.get_member(invitation.workspace_id, caller.id)
        if existing and existing.is_active:
            raise AlreadyAMemberError(str(caller.id))

        await uow.users.upsert(
            Profile(id=caller.id, email=caller.email, display_name=caller.display_name)
        )

        accepted_at = datetime.utcnow()
        if not await uow.invitations.mark_accepted(invitation.id, caller.id, accepted_at):
            raise InvitationAlreadyAcceptedError()

        try:
            if existing:
                member = await uow.workspaces.set_member_active(
                    invitation.workspace_id, caller.id, True, role=invitation.role
                )
            else:
                member = await uow.workspaces.add_member(
                    WorkspaceMember(
                        workspace_id=invitation.workspace_id,
                        user_id=caller.id,
                        role=invitation.role,
                        invited_by=invitation.invited_by,
                    )
                )
            await uow.commit()
        except IntegrityError:
            await uow.rollback()
            raise AlreadyAMemberError(str(caller.id))

        return member, invitation.role

    async def _after_acceptance(
        self, invitation: Invitation, caller: Caller, role: Role
    ) -> None:
        logger.info(
            "invitation_accepted",
            workspace_id=str(invitation.workspace_id),
            invitation_id=str(invitation.id),
        )
        if self._hints:
            await self._hints.set_hint(caller.id, invitation.workspace_id)
        await self._record(
            AuditAction.CREATE,
            invitation,
            f"{caller.email} accepted the invitation as {role.value}",
            caller,
            role,
        )

    async def _send_email(
        self,
        invitation: Invitation,
        raw_token: str,
        workspace: Workspace,
        caller: Caller,
    ) -> None:
        if not self._mailer:
            return
        mailer = self._mailer
        message = InvitationEmail(
            to=invitation.email,
            inviter_name=caller.label,
            inviter_email=caller.email,
            workspace_name=workspace.name,
            role=invitation.role.value,
            invitation_link=self.build_invitation_link(raw_token),
            expires_at=invitation.expires_at,
        )
        await self._dispatcher.dispatch(
            "invitation_email", lambda: mailer.send_invitation_email(message)
        )

    async def _record(
        self,
        action: AuditAction,
        invitation: Invitation,
        description: str,
        caller: Caller,
        actor_role: Role | None,
    ) -> None:
        if not self._audit:
            return
        await self._audit.record(
            action=action,
            entity_type=AuditEntityType.USER,
            entity_id=invitation.id,
            workspace_id=invitation.workspace_id,
            description=description,
            caller=caller,
            actor_role=actor_role,
            metadata={
                "invitation_id": str(invitation.id),
                "email": invitation.email,
                "role": invitation.role.value,
            },
        )

    @staticmethod
    def _parse_role(role: Role | str) -> Role:
        parsed = parse_role(role)
        if parsed is None:
            raise InvalidRoleError(str(role))
        return parsed

    @staticmethod
    def _normalize_email(email: str) -> str:
        normalized = email.strip().lower()
        if not _EMAIL_RE.match(normalized):
            raise InvalidEmailError(email)
        return normalized

    @staticmethod
    def _generate_token() -> str:
        """256 bits of URL-safe randomness."""
        return secrets.token_urlsafe(32)

    @staticmethod
    def _hash_token(token: str) -> str:
        """Hash a raw invitation token using SHA-256."""
        return hashlib.sha256(token.encode()).hexdigest()
