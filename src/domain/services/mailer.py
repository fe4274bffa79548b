"""Outbound invitation email port."""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


@dataclass(frozen=True)
class InvitationEmail:
    to: str
    inviter_name: str
    inviter_email: str
    workspace_name: str
    role: str
    invitation_link: str
    expires_at: datetime


class IInvitationMailer(Protocol):
    """Delivers invitation emails. Failures raise; callers decide whether to care."""

    async def send_invitation_email(self, email: InvitationEmail) -> None:
        ...
