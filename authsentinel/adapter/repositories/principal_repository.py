from typing import Optional
from uuid import UUID

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from authsentinel.adapter.repositories.conflict_insert import insert_ignoring_conflict
from authsentinel.app.repositories.principal_repository import IPrincipalRepository
from authsentinel.domain.entities import Principal, normalize_email


class PrincipalRepository(IPrincipalRepository):
    """Principal repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_email(self, email: str) -> Optional[Principal]:
        """Get principal by email address"""
        stmt = select(Principal).where(Principal.email == normalize_email(email))
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_id(self, principal_id: UUID) -> Optional[Principal]:
        """Get principal by ID"""
        stmt = select(Principal).where(Principal.id == principal_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def create(self, principal: Principal) -> Principal:
        """Create a new principal"""
        principal.email = normalize_email(principal.email)
        self.session.add(principal)
        await self.session.flush()
        await self.session.refresh(principal)
        return principal

    async def insert_if_absent(self, principal: Principal) -> Principal:
        """Insert unless the email is taken, then return the stored row"""
        principal.email = normalize_email(principal.email)
        await insert_ignoring_conflict(
            self.session, Principal, principal.model_dump(), ["email"]
        )
        await self.session.flush()
        return await self.get_by_email(principal.email)

    async def update(self, principal: Principal) -> Principal:
        """Update existing principal"""
        self.session.add(principal)
        await self.session.flush()
        await self.session.refresh(principal)
        return principal

    async def get_by_verification_token(self, token: str) -> Optional[Principal]:
        """Get principal by email verification token"""
        stmt = select(Principal).where(Principal.email_verification_token == token)
        result = await self.session.exec(stmt)
        return result.one_or_none()
