from datetime import datetime, timedelta
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from authsentinel.app.services.session_registry import SessionRegistry
from authsentinel.app.use_cases.sessions import SessionsUseCase
from authsentinel.domain.entities import Session

NOW = datetime(2026, 3, 1, 12, 0, 0)


@pytest.fixture
def registry(mock_uow, telemetry):
    mock_uow.sessions.get_active_by_principal_id = AsyncMock(return_value=[])
    mock_uow.sessions.delete_owned = AsyncMock(return_value=True)
    mock_uow.sessions.delete_all_except = AsyncMock(return_value=0)
    mock_uow.sessions.delete_expired = AsyncMock(return_value=0)
    return SessionRegistry(mock_uow, telemetry, clock=lambda: NOW)


def make_session(principal_id, device="iPhone") -> Session:
    return Session(
        id=uuid4(),
        principal_id=principal_id,
        device=device,
        created_at=NOW - timedelta(days=1),
        updated_at=NOW,
        expires_at=NOW + timedelta(days=29),
    )


@pytest.mark.asyncio
async def test_list_marks_current_session(registry, mock_uow):
    principal_id = uuid4()
    current = make_session(principal_id)
    other = make_session(principal_id, device="Windows PC")
    mock_uow.sessions.get_active_by_principal_id.return_value = [current, other]

    result = await SessionsUseCase(registry).list_sessions(principal_id, str(current.id))

    assert result.is_ok()
    sessions = result.value.sessions
    assert [s.is_current for s in sessions] == [True, False]
    assert sessions[1].device == "Windows PC"
    assert sessions[0].last_active_at == NOW
    mock_uow.sessions.get_active_by_principal_id.assert_called_once_with(principal_id, NOW)


@pytest.mark.asyncio
async def test_revoke_checks_ownership_in_delete(registry, mock_uow):
    principal_id = uuid4()
    session_id = uuid4()

    result = await SessionsUseCase(registry).revoke_session(principal_id, str(session_id))

    assert result.is_ok()
    assert result.value.revoked_count == 1
    mock_uow.sessions.delete_owned.assert_called_once_with(principal_id, session_id)


@pytest.mark.asyncio
async def test_revoke_foreign_or_unknown_session_is_not_found(registry, mock_uow):
    mock_uow.sessions.delete_owned.return_value = False

    result = await SessionsUseCase(registry).revoke_session(uuid4(), str(uuid4()))

    assert result.is_err()
    assert result.error.code == "SESSION_NOT_FOUND"


@pytest.mark.asyncio
async def test_revoke_malformed_id_is_not_found(registry, mock_uow):
    result = await SessionsUseCase(registry).revoke_session(uuid4(), "not-a-uuid")

    assert result.is_err()
    assert result.error.code == "SESSION_NOT_FOUND"
    mock_uow.sessions.delete_owned.assert_not_called()


@pytest.mark.asyncio
async def test_revoke_all_others_keeps_current(registry, mock_uow):
    principal_id = uuid4()
    current_id = uuid4()
    mock_uow.sessions.delete_all_except.return_value = 2

    result = await SessionsUseCase(registry).revoke_all_other_sessions(
        principal_id, str(current_id)
    )

    assert result.value.revoked_count == 2
    mock_uow.sessions.delete_all_except.assert_called_once_with(principal_id, current_id)


@pytest.mark.asyncio
async def test_logout_is_idempotent(registry, mock_uow):
    principal_id = uuid4()
    session_id = str(uuid4())
    use_case = SessionsUseCase(registry)

    first = await use_case.logout(principal_id, session_id)
    mock_uow.sessions.delete_owned.return_value = False
    second = await use_case.logout(principal_id, session_id)

    assert first.value.revoked_count == 1
    assert second.is_ok()
    assert second.value.revoked_count == 0


@pytest.mark.asyncio
async def test_session_lifetime_and_validity(registry, mock_uow):
    principal_id = uuid4()

    session = await registry.create(principal_id)

    assert session.expires_at - session.created_at == timedelta(days=30)
    assert await registry.is_valid(str(session.id)) is True
    mock_uow.sessions.exists_unexpired.assert_called_with(session.id, NOW)
    assert await registry.is_valid("garbage") is False
