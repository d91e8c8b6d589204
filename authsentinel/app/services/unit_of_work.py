from abc import ABC, abstractmethod

from authsentinel.app.repositories.linked_identity_repository import (
    ILinkedIdentityRepository,
)
from authsentinel.app.repositories.login_attempt_repository import (
    ILoginAttemptRepository,
)
from authsentinel.app.repositories.principal_repository import IPrincipalRepository
from authsentinel.app.repositories.session_repository import ISessionRepository


class UnitOfWork(ABC):
    """Abstract UnitOfWork - defines repository access and transaction management"""

    # Repository properties (initialized in __aenter__)
    principals: IPrincipalRepository
    linked_identities: ILinkedIdentityRepository
    sessions: ISessionRepository
    login_attempts: ILoginAttemptRepository

    @abstractmethod
    async def __aenter__(self):
        pass

    @abstractmethod
    async def __aexit__(self, *args):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass
