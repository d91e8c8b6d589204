from sqlmodel.ext.asyncio.session import AsyncSession

from authsentinel.adapter.repositories.linked_identity_repository import (
    LinkedIdentityRepository,
)
from authsentinel.adapter.repositories.login_attempt_repository import (
    LoginAttemptRepository,
)
from authsentinel.adapter.repositories.principal_repository import PrincipalRepository
from authsentinel.adapter.repositories.session_repository import SessionRepository
from authsentinel.app.services.unit_of_work import UnitOfWork


class SqlAlchemyUnitOfWork(UnitOfWork):
    """SQLAlchemy implementation of UnitOfWork pattern"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def __aenter__(self):
        # Initialize all repositories with the session
        self.principals = PrincipalRepository(self.session)
        self.linked_identities = LinkedIdentityRepository(self.session)
        self.sessions = SessionRepository(self.session)
        self.login_attempts = LoginAttemptRepository(self.session)
        return self

    async def __aexit__(self, *args):
        # Rows handed back to callers must survive the rollback of a read-only block
        self.session.expunge_all()
        await self.rollback()

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        await self.session.rollback()
