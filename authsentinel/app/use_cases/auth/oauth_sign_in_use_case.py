"""
OAuth Sign-In Use Case

Local bookkeeping after an external identity provider has authenticated the
user: link the provider account, then sign in like any other principal.
"""

import logging
from typing import Optional

from authsentinel.app.services.credential_store import (
    CredentialStore,
    ProviderProfile,
    ProviderTokenBundle,
)
from authsentinel.app.services.login_attempt_recorder import LoginAttemptRecorder
from authsentinel.domain.entities import UNKNOWN_PRINCIPAL, FailureReason, PrincipalStatus
from authsentinel.domain.values import RequestMetadata
from authsentinel.libs.result import Error, Result, Return
from .dtos import AuthSuccess
from .session_issuer import SessionIssuer

logger = logging.getLogger(__name__)


class OAuthSignInUseCase:
    """
    Use case for provider callbacks.

    Business Rules:
    - Linking is idempotent per (provider, provider_account_id)
    - A first callback creates an active, email-verified principal
    - A pending principal with the same email is activated by the link
    - Suspended principals cannot sign in through a provider either
    """

    def __init__(
        self,
        credentials: CredentialStore,
        issuer: SessionIssuer,
        recorder: LoginAttemptRecorder,
    ):
        self.credentials = credentials
        self.issuer = issuer
        self.recorder = recorder

    async def execute(
        self,
        provider: str,
        provider_account_id: str,
        profile: ProviderProfile,
        token_bundle: Optional[ProviderTokenBundle] = None,
        request_meta: Optional[RequestMetadata] = None,
    ) -> Result[AuthSuccess]:
        """
        Execute provider sign-in use case.

        Args:
            provider: Provider name, e.g. "github"
            provider_account_id: Account id at the provider
            profile: Email, name and image supplied by the provider
            token_bundle: Provider tokens to store with the link
            request_meta: Request headers and connection address

        Returns:
            Result with AuthSuccess, or Error whose code is the FailureReason
        """
        client = await self.recorder.resolve_client(request_meta)

        try:
            linked = await self.credentials.link_oauth_account(
                profile, provider, provider_account_id, token_bundle or ProviderTokenBundle()
            )
        except Exception as exc:
            logger.exception("Linking %s account %s failed", provider, provider_account_id)
            await self.recorder.record(
                UNKNOWN_PRINCIPAL,
                profile.email,
                False,
                FailureReason.unknown_error,
                failure_detail=type(exc).__name__,
                client=client,
            )
            return Return.err(Error(FailureReason.unknown_error.value, "Authentication failed"))

        if linked.is_err():
            error = linked.error
            logger.info("Provider sign-in via %s rejected: %s", provider, error.code)
            await self.recorder.record(
                UNKNOWN_PRINCIPAL,
                profile.email,
                False,
                FailureReason(error.code),
                client=client,
            )
            return Return.err(error)

        principal = linked.value
        if principal.status != PrincipalStatus.active:
            await self.recorder.record(
                principal.id,
                principal.email,
                False,
                FailureReason.account_not_active,
                principal_name=principal.name,
                client=client,
            )
            return Return.err(
                Error(
                    FailureReason.account_not_active.value,
                    "Account is not active",
                    details={"status": principal.status.value},
                )
            )

        return await self.issuer.issue(principal, principal.email, client)
