"""
Authenticate Use Case

Email/password sign-in. Every attempt, successful or not, is recorded.
"""

import logging
from typing import Optional

from pydantic import ValidationError

from authsentinel.app.services.credential_store import CredentialStore
from authsentinel.app.services.login_attempt_recorder import LoginAttemptRecorder
from authsentinel.app.services.unit_of_work import UnitOfWork
from authsentinel.domain.entities import (
    UNKNOWN_PRINCIPAL,
    FailureReason,
    PrincipalStatus,
)
from authsentinel.domain.values import RequestMetadata, ResolvedClient
from authsentinel.libs.result import Error, Result, Return
from .dtos import AuthSuccess, CredentialsCommand
from .session_issuer import SessionIssuer

logger = logging.getLogger(__name__)


class AuthenticateUseCase:
    """
    Use case for email/password sign-in.

    Business Rules:
    - Malformed email or password shorter than 8 chars -> invalid_input
    - Unknown email -> user_not_found, after one dummy bcrypt comparison
    - Principal not active -> account_not_active
    - No password (provider-only account) -> password_not_set
    - Wrong password -> invalid_password
    - Unexpected failure -> unknown_error with the exception class name
    - Success creates a session and a token bound to it
    """

    def __init__(
        self,
        uow: UnitOfWork,
        credentials: CredentialStore,
        issuer: SessionIssuer,
        recorder: LoginAttemptRecorder,
    ):
        self.uow = uow
        self.credentials = credentials
        self.issuer = issuer
        self.recorder = recorder

    async def execute(
        self,
        email: Optional[str],
        password: Optional[str],
        request_meta: Optional[RequestMetadata] = None,
    ) -> Result[AuthSuccess]:
        """
        Execute authentication use case.

        Args:
            email: Email as submitted
            password: Plain text password
            request_meta: Request headers and connection address

        Returns:
            Result with AuthSuccess, or Error whose code is the FailureReason
        """
        client = await self.recorder.resolve_client(request_meta)

        try:
            command = CredentialsCommand(email=email, password=password)
        except ValidationError:
            return await self._fail(
                UNKNOWN_PRINCIPAL,
                email if isinstance(email, str) else None,
                client,
                Error(FailureReason.invalid_input.value, "Invalid email or password format"),
            )

        try:
            async with self.uow:
                principal = await self.uow.principals.get_by_email(command.email)
        except Exception as exc:
            logger.exception("Principal lookup failed for %s", command.email)
            return await self._fail(
                UNKNOWN_PRINCIPAL,
                command.email,
                client,
                Error(FailureReason.unknown_error.value, "Authentication failed"),
                failure_detail=type(exc).__name__,
            )

        if principal is None:
            self.credentials.burn_dummy_check(command.password)
            return await self._fail(
                UNKNOWN_PRINCIPAL,
                command.email,
                client,
                Error(FailureReason.user_not_found.value, "Invalid email or password"),
            )

        if principal.status != PrincipalStatus.active:
            self.credentials.burn_dummy_check(command.password)
            return await self._fail(
                principal.id,
                command.email,
                client,
                Error(
                    FailureReason.account_not_active.value,
                    "Account is not active",
                    details={"status": principal.status.value},
                ),
                principal_name=principal.name,
            )

        if not principal.password_hash:
            self.credentials.burn_dummy_check(command.password)
            return await self._fail(
                principal.id,
                command.email,
                client,
                Error(FailureReason.password_not_set.value, "Password not set for this account"),
                principal_name=principal.name,
            )

        if not self.credentials.verify_password(command.password, principal.password_hash):
            return await self._fail(
                principal.id,
                command.email,
                client,
                Error(FailureReason.invalid_password.value, "Invalid email or password"),
                principal_name=principal.name,
            )

        return await self.issuer.issue(principal, command.email, client)

    async def _fail(
        self,
        principal_id,
        email: Optional[str],
        client: ResolvedClient,
        error: Error,
        failure_detail: Optional[str] = None,
        principal_name: Optional[str] = None,
    ) -> Result[AuthSuccess]:
        logger.info("Sign-in failed for %s: %s", email, error.code)
        await self.recorder.record(
            principal_id,
            email,
            False,
            FailureReason(error.code),
            failure_detail=failure_detail,
            principal_name=principal_name,
            client=client,
        )
        return Return.err(error)
