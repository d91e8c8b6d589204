"""
Session Issuer

Shared tail of every successful sign-in: create the server-side session,
issue the stateless token bound to it, stamp last_login_at and record the
attempt.
"""

import logging
from datetime import datetime
from typing import Callable

from authsentinel.app.services.login_attempt_recorder import LoginAttemptRecorder
from authsentinel.app.services.session_registry import SessionRegistry
from authsentinel.app.services.token_reconciler import TokenReconciler
from authsentinel.app.services.unit_of_work import UnitOfWork
from authsentinel.domain.base import utcnow
from authsentinel.domain.entities import FailureReason, Principal
from authsentinel.domain.values import ResolvedClient
from authsentinel.libs.result import Error, Result, Return
from .dtos import AuthSuccess, PrincipalInfo

logger = logging.getLogger(__name__)


class SessionIssuer:
    """
    Business Rules:
    - No token without a session row: a failed session insert fails the sign-in
      with unknown_error (failure_detail = exception class name)
    - Each token is bound to exactly one session
    - last_login_at is bookkeeping; failing to update it does not fail sign-in
    """

    def __init__(
        self,
        uow: UnitOfWork,
        sessions: SessionRegistry,
        tokens: TokenReconciler,
        recorder: LoginAttemptRecorder,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.sessions = sessions
        self.tokens = tokens
        self.recorder = recorder
        self.clock = clock

    async def issue(
        self, principal: Principal, submitted_email: str, client: ResolvedClient
    ) -> Result[AuthSuccess]:
        try:
            session = await self.sessions.create(principal.id, client.context, client.location)
        except Exception as exc:
            logger.exception("Session creation failed for principal %s", principal.id)
            await self.recorder.record(
                principal.id,
                submitted_email,
                False,
                FailureReason.unknown_error,
                failure_detail=type(exc).__name__,
                principal_name=principal.name,
                client=client,
            )
            return Return.err(
                Error(FailureReason.unknown_error.value, "Could not create session")
            )

        token = self.tokens.issue(principal, session.id)

        try:
            async with self.uow:
                principal.last_login_at = self.clock()
                principal.updated_at = principal.last_login_at
                principal = await self.uow.principals.update(principal)
                await self.uow.commit()
        except Exception:
            logger.exception("Could not update last_login_at for principal %s", principal.id)

        await self.recorder.record(
            principal.id,
            submitted_email,
            True,
            principal_name=principal.name,
            client=client,
        )

        logger.info("Principal %s signed in with session %s", principal.id, session.id)
        return Return.ok(
            AuthSuccess(
                principal=PrincipalInfo.from_principal(principal),
                session_id=str(session.id),
                access_token=token,
            )
        )
