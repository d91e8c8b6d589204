from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from authsentinel.domain.entities import Session


class ISessionRepository(ABC):
    """Session repository interface - application layer"""

    @abstractmethod
    async def get_by_id(self, session_id: UUID) -> Optional[Session]:
        """Get session by ID"""
        pass

    @abstractmethod
    async def exists_unexpired(self, session_id: UUID, now: datetime) -> bool:
        """Primary-key lookup: True if the row exists and expires after now"""
        pass

    @abstractmethod
    async def get_active_by_principal_id(
        self, principal_id: UUID, now: datetime
    ) -> List[Session]:
        """Get unexpired sessions for a principal, most recently touched first"""
        pass

    @abstractmethod
    async def create(self, session: Session) -> Session:
        """Create a new session"""
        pass

    @abstractmethod
    async def touch(self, session_id: UUID, now: datetime) -> bool:
        """Set last-activity timestamp. Returns True if the row exists."""
        pass

    @abstractmethod
    async def delete_owned(self, principal_id: UUID, session_id: UUID) -> bool:
        """Delete a session only if it belongs to the principal"""
        pass

    @abstractmethod
    async def delete_all_except(
        self, principal_id: UUID, keep_session_id: Optional[UUID] = None
    ) -> int:
        """Delete all sessions of a principal except one. Returns count."""
        pass

    @abstractmethod
    async def delete_expired(self, now: datetime) -> int:
        """Delete every session with expires_at <= now. Returns count."""
        pass
