"""
Use Case: Sweep Expired Sessions

Maintenance endpoint (cron / scheduler) that deletes every expired session.
"""

from pydantic import BaseModel

from authsentinel.app.services.session_registry import SessionRegistry
from authsentinel.libs.result import Result, Return


class SweepExpiredSessionsResponse(BaseModel):
    """Response DTO for SweepExpiredSessionsUseCase"""

    sessions_deleted: int


class SweepExpiredSessionsUseCase:
    """
    Delete expired sessions.

    Idempotent: a second sweep right after the first deletes 0 rows, and
    overlapping sweeps never delete a session twice.
    """

    def __init__(self, registry: SessionRegistry):
        self.registry = registry

    async def execute(self) -> Result[SweepExpiredSessionsResponse]:
        count = await self.registry.sweep_expired()
        return Return.ok(SweepExpiredSessionsResponse(sessions_deleted=count))
