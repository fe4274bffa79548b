"""SMTP delivery of invitation emails."""

import asyncio
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import structlog

from domain.services.mailer import InvitationEmail

logger = structlog.get_logger()


def render_invitation(email: InvitationEmail) -> tuple[str, str, str]:
    """Return (subject, plain text body, html body) for an invitation."""
    subject = f"{email.inviter_name} invited you to join {email.workspace_name}"
    expires = email.expires_at.strftime("%Y-%m-%d %H:%M UTC")
    text_body = (
        f"{email.inviter_name} ({email.inviter_email}) invited you to join "
        f"{email.workspace_name} as {email.role}.\n\n"
        f"Accept the invitation: {email.invitation_link}\n\n"
        f"This invitation expires on {expires}.\n"
    )
    html_body = f"""
        <h2>You're invited to {email.workspace_name}</h2>
        <p>{email.inviter_name} ({email.inviter_email}) invited you to join
        <strong>{email.workspace_name}</strong> as <strong>{email.role}</strong>.</p>
        <p><a href="{email.invitation_link}">Accept invitation</a></p>
        <p>This invitation expires on {expires}.</p>
        """
    return subject, text_body, html_body


class SmtpInvitationMailer:
    """Sends invitation emails through an SMTP server.

    smtplib is blocking, so each send runs in a worker thread.
    """

    def __init__(
        self,
        host: str,
        port: int,
        from_email: str,
        from_name: str,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
    ) -> None:
        self.smtp_host = host
        self.smtp_port = port
        self.from_email = from_email
        self.from_name = from_name
        self.smtp_username = username
        self.smtp_password = password
        self.smtp_use_tls = use_tls

    async def send_invitation_email(self, email: InvitationEmail) -> None:
        subject, text_body, html_body = render_invitation(email)
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = email.to
        msg.attach(MIMEText(text_body, "plain"))
        msg.attach(MIMEText(html_body, "html"))

        await asyncio.to_thread(self._deliver, msg)
        logger.info("invitation_email_sent", to=email.to, workspace=email.workspace_name)

    def _deliver(self, msg: MIMEMultipart) -> None:
        with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
            if self.smtp_use_tls:
                server.starttls()
            if self.smtp_username and self.smtp_password:
                server.login(self.smtp_username, self.smtp_password)
            server.send_message(msg)
