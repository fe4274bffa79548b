"""Development mailer that logs invitations instead of sending them."""

import structlog

from domain.services.mailer import InvitationEmail

logger = structlog.get_logger()


class LoggingInvitationMailer:
    """Writes the invitation link to the log. Keeps sent messages in ``outbox``."""

    def __init__(self) -> None:
        self.outbox: list[InvitationEmail] = []

    async def send_invitation_email(self, email: InvitationEmail) -> None:
        self.outbox.append(email)
        logger.info(
            "invitation_email_logged",
            to=email.to,
            workspace=email.workspace_name,
            role=email.role,
            invitation_link=email.invitation_link,
            expires_at=email.expires_at.isoformat(),
        )
