"""
Verify Email Use Case

Handles email verification via secure token.
"""

import logging

from authsentinel.app.services.unit_of_work import UnitOfWork
from authsentinel.domain.base import utcnow
from authsentinel.domain.entities import PrincipalStatus
from authsentinel.libs.result import Error, Result, Return
from .dtos import VerifyEmailResponse

logger = logging.getLogger(__name__)


class VerifyEmailUseCase:
    """
    Use case for email verification.

    Business Rules:
    - Token must match the principal's email_verification_token
    - Token must not be expired (24 hours from registration)
    - pending -> active, email_verified_at set
    - Clears verification token (single-use)
    - A suspended principal stays suspended
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(self, token: str) -> Result[VerifyEmailResponse]:
        """
        Execute email verification use case.

        Args:
            token: Verification token from email link

        Returns:
            Result with verification status, or Error

        Errors:
            - INVALID_TOKEN: Token not found
            - TOKEN_EXPIRED: Token has expired
        """
        async with self.uow:
            principal = await self.uow.principals.get_by_verification_token(token)

            if principal is None:
                return Return.err(
                    Error("INVALID_TOKEN", "Invalid or non-existent verification token")
                )

            now = utcnow()
            if (
                principal.email_verification_expires_at is None
                or now > principal.email_verification_expires_at
            ):
                return Return.err(
                    Error(
                        "TOKEN_EXPIRED",
                        "Verification token has expired. Please register again.",
                    )
                )

            if principal.status == PrincipalStatus.pending:
                principal.status = PrincipalStatus.active
            principal.email_verified_at = principal.email_verified_at or now
            principal.email_verification_token = None
            principal.email_verification_expires_at = None
            principal.updated_at = now

            await self.uow.principals.update(principal)
            await self.uow.commit()

        logger.info("Email verified for principal %s", principal.id)
        return Return.ok(
            VerifyEmailResponse(status="verified", message="Email successfully verified")
        )
