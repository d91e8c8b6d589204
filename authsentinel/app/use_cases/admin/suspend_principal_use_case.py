"""
Use Case: Suspend Principal

Blocks a principal from signing in and signs it out everywhere.
"""

from uuid import UUID

from pydantic import BaseModel

from authsentinel.app.services.session_registry import SessionRegistry
from authsentinel.app.services.unit_of_work import UnitOfWork
from authsentinel.domain.base import utcnow
from authsentinel.domain.entities import PrincipalStatus
from authsentinel.libs.result import Error, Result, Return


class SuspendPrincipalResponse(BaseModel):
    """Response DTO for SuspendPrincipalUseCase"""

    status: str
    sessions_revoked: int


class SuspendPrincipalUseCase:
    """
    Suspend a principal.

    Business Logic:
    1. Validate principal exists
    2. Update status to suspended
    3. Revoke all of its sessions (tokens die at their next reconciliation)
    4. Return number of sessions revoked

    Idempotent: suspending an already-suspended principal succeeds
    """

    def __init__(self, uow: UnitOfWork, registry: SessionRegistry):
        self.uow = uow
        self.registry = registry

    async def execute(self, principal_id: UUID) -> Result[SuspendPrincipalResponse]:
        async with self.uow:
            principal = await self.uow.principals.get_by_id(principal_id)
            if principal is None:
                return Return.err(Error("PRINCIPAL_NOT_FOUND", "Principal not found"))

            if principal.status != PrincipalStatus.suspended:
                principal.status = PrincipalStatus.suspended
                principal.updated_at = utcnow()
                await self.uow.principals.update(principal)
                await self.uow.commit()

        revoked = await self.registry.revoke_all_except(principal_id)
        return Return.ok(
            SuspendPrincipalResponse(
                status=PrincipalStatus.suspended.value, sessions_revoked=revoked
            )
        )
