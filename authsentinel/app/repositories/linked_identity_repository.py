from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from authsentinel.domain.entities import LinkedIdentity


class ILinkedIdentityRepository(ABC):
    """LinkedIdentity repository interface - application layer"""

    @abstractmethod
    async def get_by_provider_account(
        self, provider: str, provider_account_id: str
    ) -> Optional[LinkedIdentity]:
        """Get linked identity by its (provider, provider_account_id) pair"""
        pass

    @abstractmethod
    async def insert_if_absent(self, identity: LinkedIdentity) -> LinkedIdentity:
        """
        Insert the identity unless the (provider, provider_account_id) pair
        is already linked.

        Returns the stored row for the pair, whichever insert won.
        """
        pass

    @abstractmethod
    async def get_by_principal_id(self, principal_id: UUID) -> List[LinkedIdentity]:
        """Get all identities linked to a principal"""
        pass
