from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from authsentinel.app.repositories.login_attempt_repository import (
    ILoginAttemptRepository,
)
from authsentinel.domain.entities import LoginAttempt


class LoginAttemptRepository(ILoginAttemptRepository):
    """LoginAttempt repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, attempt: LoginAttempt) -> LoginAttempt:
        """Append a login attempt (immutable)"""
        self.session.add(attempt)
        await self.session.flush()
        await self.session.refresh(attempt)
        return attempt

    async def count_successful_from_location(
        self,
        principal_id: UUID,
        city: Optional[str],
        country: str,
        before: datetime,
    ) -> int:
        """Exact (city, country) match; a NULL city only matches NULL"""
        city_clause = (
            LoginAttempt.city.is_(None) if city is None else LoginAttempt.city == city
        )
        stmt = select(func.count()).select_from(LoginAttempt).where(
            LoginAttempt.principal_id == principal_id,
            LoginAttempt.success == True,  # noqa: E712
            LoginAttempt.country == country,
            city_clause,
            LoginAttempt.created_at < before,
        )
        result = await self.session.exec(stmt)
        return result.one()

    async def count_failed_for_email(
        self, email: str, since: datetime, until: datetime
    ) -> int:
        """Both window bounds inclusive"""
        stmt = select(func.count()).select_from(LoginAttempt).where(
            LoginAttempt.email == email,
            LoginAttempt.success == False,  # noqa: E712
            LoginAttempt.created_at >= since,
            LoginAttempt.created_at <= until,
        )
        result = await self.session.exec(stmt)
        return result.one()

    async def get_recent_by_principal_id(
        self, principal_id: UUID, limit: int = 20
    ) -> List[LoginAttempt]:
        """Newest first"""
        stmt = (
            select(LoginAttempt)
            .where(LoginAttempt.principal_id == principal_id)
            .order_by(LoginAttempt.created_at.desc())
            .limit(limit)
        )
        result = await self.session.exec(stmt)
        return list(result.all())
