import pytest
from unittest.mock import AsyncMock, MagicMock

from authsentinel.app.services.telemetry import SecurityTelemetry


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    uow.principals = MagicMock()
    uow.principals.get_by_email = AsyncMock(return_value=None)
    uow.principals.get_by_id = AsyncMock(return_value=None)
    uow.principals.create = AsyncMock(side_effect=lambda p: p)
    uow.principals.insert_if_absent = AsyncMock(side_effect=lambda p: p)
    uow.principals.update = AsyncMock(side_effect=lambda p: p)
    uow.principals.get_by_verification_token = AsyncMock(return_value=None)

    uow.linked_identities = MagicMock()
    uow.linked_identities.get_by_provider_account = AsyncMock(return_value=None)
    uow.linked_identities.insert_if_absent = AsyncMock(side_effect=lambda i: i)

    uow.sessions = MagicMock()
    uow.sessions.create = AsyncMock(side_effect=lambda s: s)
    uow.sessions.exists_unexpired = AsyncMock(return_value=True)
    uow.sessions.touch = AsyncMock(return_value=True)

    uow.login_attempts = MagicMock()
    uow.login_attempts.create = AsyncMock(side_effect=lambda a: a)
    uow.login_attempts.count_successful_from_location = AsyncMock(return_value=0)
    uow.login_attempts.count_failed_for_email = AsyncMock(return_value=0)
    uow.login_attempts.get_recent_by_principal_id = AsyncMock(return_value=[])
    return uow


@pytest.fixture
def telemetry():
    """Real sink over the no-op global OpenTelemetry providers"""
    return SecurityTelemetry()
