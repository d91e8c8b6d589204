from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from authsentinel.domain.entities import LoginAttempt


class ILoginAttemptRepository(ABC):
    """LoginAttempt repository interface - application layer"""

    @abstractmethod
    async def create(self, attempt: LoginAttempt) -> LoginAttempt:
        """Append a login attempt (immutable)"""
        pass

    @abstractmethod
    async def count_successful_from_location(
        self,
        principal_id: UUID,
        city: Optional[str],
        country: str,
        before: datetime,
    ) -> int:
        """Count successful attempts from (city, country) strictly before a timestamp"""
        pass

    @abstractmethod
    async def count_failed_for_email(
        self, email: str, since: datetime, until: datetime
    ) -> int:
        """Count failed attempts for an email with since <= created_at <= until"""
        pass

    @abstractmethod
    async def get_recent_by_principal_id(
        self, principal_id: UUID, limit: int = 20
    ) -> List[LoginAttempt]:
        """Get the most recent attempts for a principal, newest first"""
        pass
