from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from authsentinel.app.repositories.session_repository import ISessionRepository
from authsentinel.domain.entities import Session


class SessionRepository(ISessionRepository):
    """Session repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, session_id: UUID) -> Optional[Session]:
        """Get session by ID"""
        stmt = select(Session).where(Session.id == session_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def exists_unexpired(self, session_id: UUID, now: datetime) -> bool:
        """Primary-key lookup, selects only the id column"""
        stmt = select(Session.id).where(Session.id == session_id, Session.expires_at > now)
        result = await self.session.exec(stmt)
        return result.first() is not None

    async def get_active_by_principal_id(
        self, principal_id: UUID, now: datetime
    ) -> List[Session]:
        """Get unexpired sessions, most recently touched first"""
        stmt = (
            select(Session)
            .where(Session.principal_id == principal_id, Session.expires_at > now)
            .order_by(Session.updated_at.desc(), Session.created_at.desc())
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def create(self, session_obj: Session) -> Session:
        """Create a new session"""
        self.session.add(session_obj)
        await self.session.flush()
        await self.session.refresh(session_obj)
        return session_obj

    async def touch(self, session_id: UUID, now: datetime) -> bool:
        """Set last-activity timestamp"""
        stmt = update(Session).where(Session.id == session_id).values(updated_at=now)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def delete_owned(self, principal_id: UUID, session_id: UUID) -> bool:
        """Ownership is part of the WHERE clause, not a separate read"""
        stmt = delete(Session).where(
            Session.id == session_id, Session.principal_id == principal_id
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def delete_all_except(
        self, principal_id: UUID, keep_session_id: Optional[UUID] = None
    ) -> int:
        """Delete all sessions of a principal except keep_session_id"""
        stmt = delete(Session).where(Session.principal_id == principal_id)
        if keep_session_id is not None:
            stmt = stmt.where(Session.id != keep_session_id)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def delete_expired(self, now: datetime) -> int:
        """Single delete-where-expired statement"""
        stmt = delete(Session).where(Session.expires_at <= now)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
