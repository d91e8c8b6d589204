from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from authsentinel.domain.entities import Principal


class IPrincipalRepository(ABC):
    """Principal repository interface - application layer"""

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[Principal]:
        """Get principal by (normalized) email address"""
        pass

    @abstractmethod
    async def get_by_id(self, principal_id: UUID) -> Optional[Principal]:
        """Get principal by ID"""
        pass

    @abstractmethod
    async def create(self, principal: Principal) -> Principal:
        """Create a new principal"""
        pass

    @abstractmethod
    async def insert_if_absent(self, principal: Principal) -> Principal:
        """
        Insert the principal unless one with the same email exists.

        Returns the stored row for that email, whichever insert won.
        """
        pass

    @abstractmethod
    async def update(self, principal: Principal) -> Principal:
        """Update existing principal"""
        pass

    @abstractmethod
    async def get_by_verification_token(self, token: str) -> Optional[Principal]:
        """Get principal by email verification token"""
        pass
