"""
Token Reconciler

Runs inside every authenticated request's token-refresh step. The stateless
token is authoritative for identity but not for liveness, so its session is
re-checked against the SessionRegistry at most once per check interval of
token age.

Staleness window: with the default 60 second interval a revoked session can
keep working for up to 60 seconds after the row is deleted. That bounds
registry reads to one per token per minute.
"""

import logging
import time
from dataclasses import dataclass, replace
from typing import Callable, Optional
from uuid import UUID

from authsentinel.api.utils.jwt import TokenCodec
from authsentinel.app.services.session_registry import SessionRegistry
from authsentinel.domain.entities import Principal
from authsentinel.domain.values import TokenClaims
from authsentinel.libs.result import Error, Result, Return

logger = logging.getLogger(__name__)

DEFAULT_CHECK_INTERVAL_SECONDS = 60


@dataclass(frozen=True)
class ReconcileOutcome:
    """Result of one reconciliation pass.

    Attributes:
        claims: Claims after the pass (last_validity_check possibly advanced).
        checked: True if the registry was consulted.
        token: Re-signed token carrying ``claims``.
    """

    claims: TokenClaims
    checked: bool
    token: Optional[str] = None

    @property
    def session_invalid(self) -> bool:
        return self.claims.session_invalid


class TokenReconciler:
    """
    Issues stateless tokens and reconciles them with the session registry.

    Business Rules:
    - now - last_validity_check < interval: no registry read
    - otherwise exactly one is_valid() call and last_validity_check = now
    - an invalid session flags the claims (session_invalid) without
      discarding the token; the request edge turns the flag into a sign-out
    - the throttle lives in the token itself, no shared counter
    """

    def __init__(
        self,
        registry: SessionRegistry,
        codec: TokenCodec,
        check_interval_seconds: int = DEFAULT_CHECK_INTERVAL_SECONDS,
        now: Callable[[], float] = time.time,
    ):
        self.registry = registry
        self.codec = codec
        self.check_interval_seconds = check_interval_seconds
        self.now = now

    def issue(self, principal: Principal, session_id: UUID) -> str:
        """Issue a token bound to exactly one session"""
        claims = TokenClaims(
            principal_id=str(principal.id),
            session_id=str(session_id),
            last_validity_check=int(self.now()),
            session_invalid=False,
            email=principal.email,
            locale=principal.locale,
            timezone=principal.timezone,
        )
        return self.codec.encode(claims)

    async def check(self, claims: TokenClaims) -> ReconcileOutcome:
        now = int(self.now())
        if now - claims.last_validity_check < self.check_interval_seconds:
            return ReconcileOutcome(claims=claims, checked=False)

        valid = await self.registry.is_valid(claims.session_id)
        if valid:
            await self.registry.touch(claims.session_id)
        else:
            logger.info("Session %s is no longer valid", claims.session_id)

        return ReconcileOutcome(
            claims=replace(claims, last_validity_check=now, session_invalid=not valid),
            checked=True,
        )

    async def reconcile(self, token: str) -> Result[ReconcileOutcome]:
        """
        Decode, reconcile and re-sign a token.

        Returns:
            Result with ReconcileOutcome, or Error(INVALID_TOKEN) when the
            signature or expiry does not verify
        """
        payload = self.codec.decode_payload(token)
        claims = self.codec.decode(token) if payload is not None else None
        if claims is None:
            return Return.err(Error("INVALID_TOKEN", "Invalid or expired token"))

        outcome = await self.check(claims)
        if not outcome.checked:
            return Return.ok(replace(outcome, token=token))

        refreshed = self.codec.encode(outcome.claims, issued_at=self.codec.issued_at(payload))
        return Return.ok(replace(outcome, token=refreshed))
