"""
Reconcile Session Use Case

Runs on every authenticated request: verifies the stateless token and checks
its session against the registry when the last check is stale.
"""

import logging

from authsentinel.app.services.token_reconciler import ReconcileOutcome, TokenReconciler
from authsentinel.libs.result import Error, Result, Return

logger = logging.getLogger(__name__)


class ReconcileSessionUseCase:
    """
    Business Rules:
    - Bad signature or expired token -> INVALID_TOKEN
    - Session revoked or expired (as of the last check) -> SESSION_INVALID,
      the caller must treat the request as signed out
    - Otherwise the (possibly re-signed) token is returned with its claims
    """

    def __init__(self, reconciler: TokenReconciler):
        self.reconciler = reconciler

    async def execute(self, token: str) -> Result[ReconcileOutcome]:
        result = await self.reconciler.reconcile(token)
        if result.is_err():
            return result

        outcome = result.value
        if outcome.session_invalid:
            logger.info(
                "Rejecting token for principal %s: session %s is gone",
                outcome.claims.principal_id,
                outcome.claims.session_id,
            )
            return Return.err(
                Error(
                    "SESSION_INVALID",
                    "Session has been revoked or has expired",
                    details={"session_id": outcome.claims.session_id},
                )
            )
        return Return.ok(outcome)
