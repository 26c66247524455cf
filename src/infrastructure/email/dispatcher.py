"""Outgoing email over SMTP.

Delivery failures are reported in the result and logged, never raised, so a
mail outage cannot undo an invitation or a verification request.
"""

import asyncio
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from urllib.parse import quote, urlparse

import structlog

from core.config import Settings, settings
from domain.entities.invitation import parse_invite_link

logger = structlog.get_logger()


@dataclass
class DispatchResult:
    success: bool
    error: str | None = None


@dataclass
class InviteEmail:
    """Everything the invitation email shows."""

    inviter_name: str
    inviter_email: str
    invitee_name: str
    invitee_email: str
    role: str
    invite_link: str
    organization_name: str
    department: str | None = None
    custom_message: str | None = None
    is_new_user: bool = True


def auth_link(invite_link: str, is_new_user: bool) -> str:
    """Point the call to action at sign-up or sign-in, carrying the invite.

    Falls back to the raw invite link when it cannot be parsed.
    """
    parsed = parse_invite_link(invite_link)
    url = urlparse(invite_link)
    if parsed is None or not url.scheme or not url.netloc:
        return invite_link
    page = "signup" if is_new_user else "signin"
    return (
        f"{url.scheme}://{url.netloc}/auth/{page}?token={parsed.token}"
        f"&email={quote(parsed.email, safe='')}&org={parsed.organization_id}"
    )


def render_invite(payload: InviteEmail, expiry_hours: int = 24) -> tuple[str, str]:
    """Return (subject, html body) for an invitation."""
    subject = f"You're invited to join {payload.organization_name} on Orgboard"
    link = escape(auth_link(payload.invite_link, payload.is_new_user), quote=True)
    action = "Create your account" if payload.is_new_user else "Sign in and accept"

    department = ""
    if payload.department:
        department = f"<p><strong>Department:</strong> {escape(payload.department)}</p>"

    message = ""
    if payload.custom_message:
        message = (
            '<div style="background-color: #f3f4f6; padding: 20px; border-radius: 8px;">'
            f"<p><em>{escape(payload.custom_message)}</em></p>"
            f"<p>- {escape(payload.inviter_name)}</p></div>"
        )

    html_body = f"""<!DOCTYPE html>
<html>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
    <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
        <h2>You're invited to join {escape(payload.organization_name)}</h2>
        <p>Hi {escape(payload.invitee_name)},</p>
        <p><strong>{escape(payload.inviter_name)}</strong> ({escape(payload.inviter_email)})
        has invited you to join their team as <strong>{escape(payload.role)}</strong>.</p>
        {department}
        {message}
        <div style="margin: 30px 0;">
            <a href="{link}" style="background-color: #2563eb; color: white; padding: 12px 24px; text-decoration: none; border-radius: 4px;">{action}</a>
        </div>
        <p style="font-size: 12px; color: #666;">This invitation expires in {expiry_hours} hours.
        If you weren't expecting it, you can ignore this email.</p>
    </div>
</body>
</html>"""
    return subject, html_body


class EmailDispatcher:
    """Sends transactional email through the configured SMTP server."""

    def __init__(self, config: Settings = settings) -> None:
        self._config = config

    async def send_invite(self, payload: InviteEmail) -> DispatchResult:
        subject, html_body = render_invite(payload, self._config.invitation_expiry_hours)
        return await self.send(
            payload.invitee_email,
            subject,
            html_body,
            from_name=payload.inviter_name,
        )

    async def send_welcome(self, email: str, name: str) -> DispatchResult:
        dashboard = escape(f"{self._config.app_base_url.rstrip('/')}/dashboard", quote=True)
        html_body = f"""<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
    <h2>Welcome to Orgboard!</h2>
    <p>Hi {escape(name)},</p>
    <p>Welcome aboard! You can now start managing projects and collaborating with your team.</p>
    <p><a href="{dashboard}">Go to Dashboard</a></p>
</div>"""
        return await self.send(email, "Welcome to Orgboard", html_body)

    async def send_verification_code(self, email: str, name: str, code: str) -> DispatchResult:
        html_body = f"""<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
    <h2>Email Verification</h2>
    <p>Hi {escape(name or 'there')},</p>
    <p>Use the following code to verify your email:</p>
    <div style="font-size: 24px; font-weight: bold; letter-spacing: 6px;">{escape(code)}</div>
    <p>This code will expire in {self._config.otp_ttl_minutes} minutes.</p>
    <p>If you did not request this, you can ignore this email.</p>
</div>"""
        return await self.send(email, "Your verification code", html_body)

    async def send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        from_name: str | None = None,
    ) -> DispatchResult:
        """Send one HTML email. The blocking SMTP session runs in a worker thread."""
        if not self._config.smtp_configured:
            logger.warning("email_not_sent", reason="smtp_not_configured", subject=subject)
            return DispatchResult(success=False, error="smtp not configured")

        message = MIMEMultipart("alternative")
        message["Subject"] = subject
        message["From"] = f"{from_name or self._config.smtp_from_name} <{self._config.smtp_from_email}>"
        message["To"] = to_email
        message.attach(MIMEText(html_body, "html", "utf-8"))

        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("email_failed", subject=subject, error=str(exc))
            return DispatchResult(success=False, error=str(exc))

        logger.info("email_sent", subject=subject)
        return DispatchResult(success=True)

    def _deliver(self, message: MIMEMultipart) -> None:
        config = self._config
        if config.smtp_use_ssl:
            server: smtplib.SMTP = smtplib.SMTP_SSL(config.smtp_host, config.smtp_port, timeout=10)
        else:
            server = smtplib.SMTP(config.smtp_host, config.smtp_port, timeout=10)
            server.starttls()
        try:
            server.login(config.smtp_username, config.smtp_password)
            server.send_message(message)
        finally:
            server.quit()
