"""Invitation domain entity."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum
from uuid import UUID, uuid4

from domain.entities.role import Role

# Default invitation expiry: 7 days
INVITATION_EXPIRY_DAYS = 7


class InvitationStatus(StrEnum):
    """Status of a workspace invitation.

    Never persisted. PENDING, ACCEPTED and EXPIRED are derived from the
    timestamps at read time; REVOKED invitations no longer exist.
    """

    PENDING = "pending"
    ACCEPTED = "accepted"
    EXPIRED = "expired"
    REVOKED = "revoked"


@dataclass
class Invitation:
    """Domain entity for a workspace invitation."""

    workspace_id: UUID
    email: str
    role: Role
    token_hash: str
    invited_by: UUID | None
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=datetime.utcnow)
    expires_at: datetime = field(
        default_factory=lambda: datetime.utcnow() + timedelta(days=INVITATION_EXPIRY_DAYS)
    )
    accepted_at: datetime | None = None
    accepted_by: UUID | None = None

    def __post_init__(self) -> None:
        self.email = self.email.strip().lower()

    @property
    def is_accepted(self) -> bool:
        return self.accepted_at is not None

    @property
    def is_expired(self) -> bool:
        """An unaccepted invitation past its expiry."""
        return not self.is_accepted and datetime.utcnow() > self.expires_at

    @property
    def is_pending(self) -> bool:
        return not self.is_accepted and not self.is_expired

    @property
    def status(self) -> InvitationStatus:
        if self.is_accepted:
            return InvitationStatus.ACCEPTED
        if self.is_expired:
            return InvitationStatus.EXPIRED
        return InvitationStatus.PENDING

    def matches_email(self, email: str) -> bool:
        return self.email == email.strip().lower()


@dataclass
class InvitationDetails:
    """Invitation joined with the names needed by UIs and emails."""

    invitation: Invitation
    workspace_name: str
    inviter_name: str | None = None
    inviter_email: str | None = None
