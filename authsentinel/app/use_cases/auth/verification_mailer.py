import logging
from urllib.parse import urlencode

from authsentinel.app.services.notification_throttler import NotificationDispatcher
from authsentinel.app.services.telemetry import SecurityTelemetry
from authsentinel.domain.entities import NotificationKind, Principal

logger = logging.getLogger(__name__)


class VerificationMailer:
    """Sends the verification link for a pending principal. Never raises."""

    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        telemetry: SecurityTelemetry,
        base_url: str = "http://localhost:8000",
    ):
        self.dispatcher = dispatcher
        self.telemetry = telemetry
        self.base_url = base_url.rstrip("/")

    def verification_url(self, token: str) -> str:
        return f"{self.base_url}/auth/verify-email?{urlencode({'token': token})}"

    async def send(self, principal: Principal, token: str) -> bool:
        kind = NotificationKind.email_verification
        data = {
            "name": principal.name,
            "verification_url": self.verification_url(token),
            "expires_at": principal.email_verification_expires_at.isoformat(),
        }
        try:
            await self.dispatcher.send(principal.email, kind, data)
        except Exception as exc:
            logger.exception("Failed to send verification email to %s", principal.email)
            self.telemetry.record_email(kind.value, success=False, error=type(exc).__name__)
            return False
        self.telemetry.record_email(kind.value, success=True)
        return True
