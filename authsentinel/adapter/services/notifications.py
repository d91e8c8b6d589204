"""Security notification dispatchers.

LoggingNotificationDispatcher writes the rendered message to the log and is
the development default. ResendEmailDispatcher posts it to the Resend e-mail
API over httpx.
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from typing import Any, Dict

import httpx

from authsentinel.app.services.notification_throttler import NotificationDispatcher
from authsentinel.domain.entities import NotificationKind

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 10.0


@dataclass(frozen=True)
class RenderedMessage:
    subject: str
    text: str
    html: str


def render(template_kind: NotificationKind, data: Dict[str, Any]) -> RenderedMessage:
    """Render a security notification template."""
    name = data.get("name") or "there"
    location = data.get("location") or "Unknown location"
    ip_address = data.get("ip_address") or "Unknown"
    timestamp = data.get("timestamp") or "Unknown"

    if template_kind == NotificationKind.new_location_login:
        subject = "New login from a new location"
        intro = "We detected a login to your account from a new location."
        rows = [("Location", location), ("IP Address", ip_address), ("Time", timestamp)]
        advice = (
            "If you don't recognize this login, change your password and review "
            "your active sessions. If this was you, you can safely ignore this email."
        )
    elif template_kind == NotificationKind.failed_login_attempts:
        count = data.get("failed_attempts", 0)
        subject = f"Security Alert: {count} failed login attempts"
        intro = f"We detected {count} failed login attempts on your account."
        rows = [
            ("Failed Attempts", str(count)),
            ("Location", location),
            ("IP Address", ip_address),
            ("Last Attempt", timestamp),
        ]
        advice = (
            "If this was you, try resetting your password. If it wasn't, your "
            "account may be under attack and you should change your password now."
        )
    elif template_kind == NotificationKind.email_verification:
        subject = "Verify your email address"
        intro = "Confirm your email address to activate your account."
        rows = [
            ("Verification link", data.get("verification_url") or "Unavailable"),
            ("Link expires", data.get("expires_at") or "Unknown"),
        ]
        advice = "If you did not create an account, you can ignore this email."
    else:
        raise ValueError(f"Unknown notification template: {template_kind}")

    text_lines = [f"Hi {name},", "", intro, ""]
    text_lines += [f"{label}: {value}" for label, value in rows]
    text_lines += ["", advice, "", "- Security Team"]

    html_rows = "".join(
        f"<p><strong>{html.escape(label)}:</strong> {html.escape(value)}</p>"
        for label, value in rows
    )
    html_body = (
        f"<p>Hi {html.escape(name)},</p>"
        f"<p>{html.escape(intro)}</p>"
        f"{html_rows}"
        f"<p>{html.escape(advice)}</p>"
    )
    return RenderedMessage(subject=subject, text="\n".join(text_lines), html=html_body)


class LoggingNotificationDispatcher(NotificationDispatcher):
    """Writes notifications to the log instead of sending them."""

    async def send(
        self, recipient: str, template_kind: NotificationKind, template_data: Dict[str, Any]
    ) -> None:
        message = render(template_kind, template_data)
        logger.info(
            "Security notification to %s: %s\n%s", recipient, message.subject, message.text
        )


class ResendEmailDispatcher(NotificationDispatcher):
    """Sends notifications through the Resend HTTP API.

    Args:
        api_key: Resend API key (Bearer token).
        from_email: Sender address.
        api_url: Emails endpoint.
        timeout: Request timeout in seconds.
        client: Optional shared httpx.AsyncClient (caller manages lifecycle).
    """

    def __init__(
        self,
        api_key: str,
        from_email: str,
        api_url: str = "https://api.resend.com/emails",
        timeout: float = _DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._from_email = from_email
        self._api_url = api_url
        self._timeout = timeout
        self._external_client = client is not None
        self._client: httpx.AsyncClient | None = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def send(
        self, recipient: str, template_kind: NotificationKind, template_data: Dict[str, Any]
    ) -> None:
        """Raises httpx.HTTPError on transport failures and non-2xx responses."""
        message = render(template_kind, template_data)
        response = await self._get_client().post(
            self._api_url,
            headers={"Authorization": f"Bearer {self._api_key}"},
            json={
                "from": self._from_email,
                "to": [recipient],
                "subject": message.subject,
                "text": message.text,
                "html": message.html,
            },
            timeout=self._timeout,
        )
        response.raise_for_status()
        logger.debug("Resend accepted %s for %s", template_kind.value, recipient)

    async def aclose(self) -> None:
        """Close the internal client. Shared clients are left to their owner."""
        if self._client is not None and not self._external_client:
            await self._client.aclose()
            self._client = None
