"""Invitation repository protocol."""

from datetime import datetime
from typing import Protocol
from uuid import UUID

from domain.entities.invitation import Invitation, InvitationDetails


class IInvitationRepository(Protocol):
    """Repository interface for Invitation entities.

    Pending means ``accepted_at IS NULL AND expires_at > now``, evaluated
    at query time.
    """

    async def create(self, invitation: Invitation) -> Invitation:
        """Create a new invitation."""
        ...

    async def get_by_id(self, id: UUID) -> Invitation | None:
        """Get an invitation by its primary key."""
        ...

    async def get_by_token_hash(self, token_hash: str) -> Invitation | None:
        """Get an invitation by its hashed token."""
        ...

    async def get_by_id_for_update(self, id: UUID) -> Invitation | None:
        """Get an invitation by its primary key and lock the row."""
        ...

    async def get_details_by_token_hash(self, token_hash: str) -> InvitationDetails | None:
        """Get an invitation with workspace and inviter names."""
        ...

    async def get_for_workspace(
        self, workspace_id: UUID, include_expired: bool = False
    ) -> list[Invitation]:
        """Get unaccepted invitations for a workspace, newest first."""
        ...

    async def get_pending_for_email(self, email: str) -> list[InvitationDetails]:
        """Get all pending invitations for an email address."""
        ...

    async def get_pending_for_workspace_email(
        self, workspace_id: UUID, email: str
    ) -> Invitation | None:
        """Get a pending invitation for a specific workspace and email."""
        ...

    async def mark_accepted(self, id: UUID, user_id: UUID, accepted_at: datetime) -> bool:
        """Stamp accepted_at if it is still NULL. Returns False if another
        transaction accepted first."""
        ...

    async def rotate_token(
        self, id: UUID, token_hash: str, expires_at: datetime
    ) -> Invitation:
        """Replace the token hash and expiry of an unaccepted invitation."""
        ...

    async def delete(self, id: UUID) -> bool:
        """Delete an invitation."""
        ...
