from typing import List, Optional
from uuid import UUID

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from authsentinel.adapter.repositories.conflict_insert import insert_ignoring_conflict
from authsentinel.app.repositories.linked_identity_repository import (
    ILinkedIdentityRepository,
)
from authsentinel.domain.entities import LinkedIdentity


class LinkedIdentityRepository(ILinkedIdentityRepository):
    """LinkedIdentity repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_provider_account(
        self, provider: str, provider_account_id: str
    ) -> Optional[LinkedIdentity]:
        """Get linked identity by provider pair"""
        stmt = select(LinkedIdentity).where(
            LinkedIdentity.provider == provider,
            LinkedIdentity.provider_account_id == provider_account_id,
        )
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def insert_if_absent(self, identity: LinkedIdentity) -> LinkedIdentity:
        """
        Insert unless the pair is already linked.

        A concurrent callback that lost the race gets the winner's row back
        instead of an IntegrityError.
        """
        await insert_ignoring_conflict(
            self.session,
            LinkedIdentity,
            identity.model_dump(),
            ["provider", "provider_account_id"],
        )
        await self.session.flush()
        return await self.get_by_provider_account(
            identity.provider, identity.provider_account_id
        )

    async def get_by_principal_id(self, principal_id: UUID) -> List[LinkedIdentity]:
        """Get all identities linked to a principal"""
        stmt = select(LinkedIdentity).where(LinkedIdentity.principal_id == principal_id)
        result = await self.session.exec(stmt)
        return list(result.all())
