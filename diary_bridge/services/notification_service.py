"""Notification Service.

Delivers family invitation codes to the invitee. Delivery is best-effort:
the invitation service treats any failure here as a soft warning.
"""

import logging
from typing import Protocol

import httpx

from diary_bridge.config import settings
from diary_bridge.enums import FamilyRole

logger = logging.getLogger(__name__)

ROLE_LABELS = {
    FamilyRole.PARENT: "your parent",
    FamilyRole.CHILD: "your child",
}


class InvitationNotifier(Protocol):
    async def send(
        self,
        invitee_email: str,
        inviter_name: str,
        inviter_role: FamilyRole,
        invitation_code: str,
    ) -> bool:
        """Send the invitation. Returns True if the message was handed off."""
        ...


def build_invitation_message(
    inviter_name: str, inviter_role: FamilyRole, invitation_code: str,
) -> tuple[str, str]:
    """Return ``(subject, text)`` for an invitation e-mail."""
    subject = f"{inviter_name} invited you to share a family diary"
    text = (
        f"{inviter_name} ({ROLE_LABELS[inviter_role]}) invited you to Diary Bridge.\n\n"
        f"Invitation code: {invitation_code}\n\n"
        f"Sign in at {settings.APP_URL} and accept the invitation, "
        f"or enter the code above.\n"
    )
    return subject, text


class ResendEmailNotifier:
    """Send invitation e-mails through the Resend HTTP API."""

    def __init__(
        self,
        api_key: str,
        *,
        api_url: str | None = None,
        sender: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.api_url = api_url or settings.RESEND_API_URL
        self.sender = sender or settings.MAIL_FROM
        self.timeout = timeout if timeout is not None else settings.NOTIFICATION_TIMEOUT_SECONDS
        self._transport = transport

    async def send(
        self,
        invitee_email: str,
        inviter_name: str,
        inviter_role: FamilyRole,
        invitation_code: str,
    ) -> bool:
        """POST the message to Resend.

        Raises:
            httpx.HTTPError: On transport errors or a non-2xx response.
        """
        subject, text = build_invitation_message(inviter_name, inviter_role, invitation_code)
        payload = {
            "from": self.sender,
            "to": [invitee_email],
            "subject": subject,
            "text": text,
        }

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(
                self.api_url,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
            response.raise_for_status()

        logger.info("Invitation e-mail sent to %s", invitee_email)
        return True


class LoggingNotifier:
    """Fallback when no mail provider is configured.

    Nothing leaves the process, so the result is ``False`` and the caller
    shows the code for manual sharing.
    """

    async def send(
        self,
        invitee_email: str,
        inviter_name: str,
        inviter_role: FamilyRole,
        invitation_code: str,
    ) -> bool:
        logger.info(
            "Mail delivery not configured; invitation %s for %s from %s (%s) not sent",
            invitation_code, invitee_email, inviter_name, inviter_role,
        )
        return False


def get_notifier() -> InvitationNotifier:
    """FastAPI dependency returning the configured notifier."""
    if settings.RESEND_API_KEY:
        return ResendEmailNotifier(settings.RESEND_API_KEY)
    return LoggingNotifier()
