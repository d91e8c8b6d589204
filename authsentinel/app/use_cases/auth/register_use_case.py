"""
Register Use Case

Self-service registration of a password principal. The principal starts
pending and becomes active once the emailed verification token is used.
"""

import logging
import secrets
from datetime import timedelta

from authsentinel.app.services.credential_store import CredentialStore
from authsentinel.app.services.notification_throttler import NotificationDispatcher
from authsentinel.app.services.telemetry import SecurityTelemetry
from authsentinel.app.services.unit_of_work import UnitOfWork
from authsentinel.domain.base import utcnow
from authsentinel.domain.entities import Principal, PrincipalStatus
from authsentinel.libs.result import Error, Result, Return
from .dtos import PrincipalInfo, RegisterCommand, RegisterResponse
from .verification_mailer import VerificationMailer

logger = logging.getLogger(__name__)


class RegisterUseCase:
    """
    Business Logic:
    1. Reject an email that is already registered
    2. Hash password with bcrypt
    3. Insert Principal with status=pending and a single-use verification
       token (32 bytes, url-safe, 24h expiry). The unique email key decides
       between concurrent registrations; the loser gets EMAIL_ALREADY_EXISTS.
    4. Commit, then send the verification email
    A failed verification email does not undo the registration.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        credentials: CredentialStore,
        dispatcher: NotificationDispatcher,
        telemetry: SecurityTelemetry,
        base_url: str = "http://localhost:8000",
        verification_ttl: timedelta = timedelta(hours=24),
    ):
        self.uow = uow
        self.credentials = credentials
        self.mailer = VerificationMailer(dispatcher, telemetry, base_url)
        self.verification_ttl = verification_ttl

    async def execute(self, command: RegisterCommand) -> Result[RegisterResponse]:
        """
        Returns:
            Result[RegisterResponse], or Error(EMAIL_ALREADY_EXISTS)
        """
        now = utcnow()
        token = secrets.token_urlsafe(32)
        already_exists = Error("EMAIL_ALREADY_EXISTS", "Email already registered")

        async with self.uow:
            existing = await self.uow.principals.get_by_email(command.email)
            if existing is not None:
                return Return.err(already_exists)

            candidate = Principal(
                email=command.email,
                name=command.name,
                password_hash=self.credentials.hash_password(command.password),
                status=PrincipalStatus.pending,
                email_verification_token=token,
                email_verification_expires_at=now + self.verification_ttl,
                created_at=now,
                updated_at=now,
            )
            principal = await self.uow.principals.insert_if_absent(candidate)
            if principal is None or principal.id != candidate.id:
                logger.info("Lost registration race for %s", command.email)
                return Return.err(already_exists)
            await self.uow.commit()

        logger.info("Registered principal %s (pending verification)", principal.id)
        await self.mailer.send(principal, token)

        return Return.ok(
            RegisterResponse(
                principal=PrincipalInfo.from_principal(principal),
                status=principal.status.value,
                message="Check your inbox to verify your email address",
            )
        )
