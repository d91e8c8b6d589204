"""
Login History Use Case

Recent sign-in attempts for the signed-in principal, newest first.
"""

from uuid import UUID

from authsentinel.app.services.unit_of_work import UnitOfWork
from authsentinel.libs.result import Error, Result, Return
from .dtos import LoginAttemptInfo, LoginHistoryResponse

MAX_HISTORY_LIMIT = 100


class LoginHistoryUseCase:
    """
    Business Rules:
    - Only attempts linked to the principal are returned; attempts against
      an unknown email are never attributed to anyone
    - 1 <= limit <= 100
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(self, principal_id: UUID, limit: int = 20) -> Result[LoginHistoryResponse]:
        if limit < 1 or limit > MAX_HISTORY_LIMIT:
            return Return.err(
                Error("INVALID_LIMIT", f"limit must be between 1 and {MAX_HISTORY_LIMIT}")
            )

        async with self.uow:
            attempts = await self.uow.login_attempts.get_recent_by_principal_id(
                principal_id, limit=limit
            )
            return Return.ok(
                LoginHistoryResponse(
                    attempts=[LoginAttemptInfo.from_attempt(a) for a in attempts]
                )
            )
