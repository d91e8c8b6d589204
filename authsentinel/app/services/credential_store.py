"""
Credential Store

Password hashing/verification and identity-provider account linkage.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

import bcrypt

from authsentinel.app.services.unit_of_work import UnitOfWork
from authsentinel.domain.base import utcnow
from authsentinel.domain.entities import (
    FailureReason,
    LinkedIdentity,
    Principal,
    PrincipalStatus,
    normalize_email,
)
from authsentinel.libs.result import Error, Result, Return

logger = logging.getLogger(__name__)

MIN_BCRYPT_ROUNDS = 10


@lru_cache(maxsize=None)
def dummy_hash(rounds: int) -> bytes:
    """Throwaway hash at the given cost, built once per cost factor"""
    return bcrypt.hashpw(b"dummy_password", bcrypt.gensalt(rounds))


@dataclass(frozen=True)
class ProviderProfile:
    """Identity claims supplied by an external provider after it authenticated the user"""

    email: Optional[str]
    name: Optional[str] = None
    image: Optional[str] = None


@dataclass(frozen=True)
class ProviderTokenBundle:
    """Opaque provider tokens stored alongside the link"""

    type: str = "oauth"
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None
    token_type: Optional[str] = None
    scope: Optional[str] = None
    id_token: Optional[str] = None
    session_state: Optional[str] = None


class CredentialStore:
    """
    Password verification and provider account linking.

    Business Rules:
    - bcrypt with cost factor >= 10 (default 12)
    - verify_password never raises; a malformed hash is a mismatch
    - Provider linking is idempotent per (provider, provider_account_id)
    - A provider-created principal is active and email-verified
    """

    def __init__(self, uow: UnitOfWork, rounds: int = 12):
        self.uow = uow
        self.rounds = max(rounds, MIN_BCRYPT_ROUNDS)

    def hash_password(self, plaintext: str) -> str:
        return bcrypt.hashpw(plaintext.encode("utf-8"), bcrypt.gensalt(self.rounds)).decode(
            "utf-8"
        )

    @staticmethod
    def verify_password(plaintext: str, password_hash: Optional[str]) -> bool:
        """Constant-time bcrypt comparison. Returns False on any malformed input."""
        if not password_hash or plaintext is None:
            return False
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), password_hash.encode("utf-8"))
        except (ValueError, TypeError):
            return False

    def burn_dummy_check(self, plaintext: str) -> None:
        """Spend one bcrypt comparison at our own cost so unknown emails take as long as known ones"""
        try:
            bcrypt.checkpw((plaintext or "").encode("utf-8"), dummy_hash(self.rounds))
        except (ValueError, TypeError):
            pass

    async def link_oauth_account(
        self,
        profile: ProviderProfile,
        provider: str,
        provider_account_id: str,
        tokens: ProviderTokenBundle,
    ) -> Result[Principal]:
        """
        Link a provider account to a principal, creating the principal if needed.

        Args:
            profile: Provider-supplied identity claims (email required for new links)
            provider: Provider name, e.g. "github"
            provider_account_id: Account id at the provider
            tokens: Opaque provider tokens

        Returns:
            Result with the owning Principal, or Error(invalid_input)
        """
        if not provider or not provider_account_id:
            return Return.err(
                Error(FailureReason.invalid_input.value, "Provider account is incomplete")
            )

        async with self.uow:
            existing = await self.uow.linked_identities.get_by_provider_account(
                provider, provider_account_id
            )
            if existing is not None:
                principal = await self.uow.principals.get_by_id(existing.principal_id)
                if principal is None:
                    return Return.err(
                        Error(FailureReason.user_not_found.value, "Linked principal not found")
                    )
                return Return.ok(principal)

            if not profile.email:
                return Return.err(
                    Error(FailureReason.invalid_input.value, "Provider did not supply an email")
                )

            now = utcnow()
            principal = await self.uow.principals.insert_if_absent(
                Principal(
                    email=normalize_email(profile.email),
                    name=profile.name,
                    avatar=profile.image,
                    status=PrincipalStatus.active,
                    email_verified_at=now,
                )
            )

            identity = await self.uow.linked_identities.insert_if_absent(
                LinkedIdentity(
                    principal_id=principal.id,
                    provider=provider,
                    provider_account_id=provider_account_id,
                    type=tokens.type,
                    access_token=tokens.access_token,
                    refresh_token=tokens.refresh_token,
                    expires_at=tokens.expires_at,
                    token_type=tokens.token_type,
                    scope=tokens.scope,
                    id_token=tokens.id_token,
                    session_state=tokens.session_state,
                )
            )

            if identity.principal_id != principal.id:
                # Lost the race to a callback that linked another principal first
                principal = await self.uow.principals.get_by_id(identity.principal_id)

            # The provider vouched for the address
            if principal.status == PrincipalStatus.pending or principal.email_verified_at is None:
                if principal.status == PrincipalStatus.pending:
                    principal.status = PrincipalStatus.active
                if principal.email_verified_at is None:
                    principal.email_verified_at = now
                principal.email_verification_token = None
                principal.email_verification_expires_at = None
                principal.updated_at = now
                principal = await self.uow.principals.update(principal)

            await self.uow.commit()

            logger.info(
                "Linked %s account %s to principal %s", provider, provider_account_id, principal.id
            )
            return Return.ok(principal)
