"""
Resend Verification Email Use Case

Issues a fresh verification link to a principal still pending verification.
"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable

from authsentinel.app.services.notification_throttler import NotificationDispatcher
from authsentinel.app.services.telemetry import SecurityTelemetry
from authsentinel.app.services.unit_of_work import UnitOfWork
from authsentinel.domain.base import utcnow
from authsentinel.domain.entities import PrincipalStatus, normalize_email
from authsentinel.libs.result import Result, Return
from .dtos import ResendVerificationResponse
from .verification_mailer import VerificationMailer

logger = logging.getLogger(__name__)

RESEND_COOLDOWN = timedelta(minutes=2)


class ResendVerificationUseCase:
    """
    Business Rules:
    - Only a pending principal gets a new link
    - New token replaces the old one (the previous link stops working)
    - Expiry reset to the verification TTL from now
    - At most one email per 2 minutes per principal; the last issue time is
      email_verification_expires_at - ttl
    - Same response for unknown, verified, suspended and throttled emails
      (no enumeration)
    """

    def __init__(
        self,
        uow: UnitOfWork,
        dispatcher: NotificationDispatcher,
        telemetry: SecurityTelemetry,
        base_url: str = "http://localhost:8000",
        verification_ttl: timedelta = timedelta(hours=24),
        cooldown: timedelta = RESEND_COOLDOWN,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.mailer = VerificationMailer(dispatcher, telemetry, base_url)
        self.verification_ttl = verification_ttl
        self.cooldown = cooldown
        self.clock = clock

    async def execute(self, email: str) -> Result[ResendVerificationResponse]:
        now = self.clock()
        response = ResendVerificationResponse()

        async with self.uow:
            principal = await self.uow.principals.get_by_email(normalize_email(email))
            if principal is None:
                logger.info("Resend verification requested for unknown email")
                return Return.ok(response)

            if principal.status != PrincipalStatus.pending:
                logger.info(
                    "Resend verification skipped for %s principal %s",
                    principal.status.value,
                    principal.id,
                )
                return Return.ok(response)

            expires_at = principal.email_verification_expires_at
            if expires_at is not None:
                issued_at = expires_at - self.verification_ttl
                if now - issued_at < self.cooldown:
                    logger.info("Resend verification throttled for principal %s", principal.id)
                    return Return.ok(response)

            token = secrets.token_urlsafe(32)
            principal.email_verification_token = token
            principal.email_verification_expires_at = now + self.verification_ttl
            principal.updated_at = now
            principal = await self.uow.principals.update(principal)
            await self.uow.commit()

        logger.info("Verification email reissued for principal %s", principal.id)
        await self.mailer.send(principal, token)
        return Return.ok(response)
