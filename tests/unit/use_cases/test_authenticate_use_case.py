from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import bcrypt
import pytest

from authsentinel.app.services.credential_store import CredentialStore
from authsentinel.app.use_cases.auth import AuthenticateUseCase, SessionIssuer
from authsentinel.domain.entities import (
    UNKNOWN_PRINCIPAL,
    FailureReason,
    Principal,
    PrincipalStatus,
)
from authsentinel.domain.values import ResolvedClient

PASSWORD = "SecurePass123!"


@pytest.fixture
def recorder():
    recorder = MagicMock()
    recorder.resolve_client = AsyncMock(return_value=ResolvedClient())
    recorder.record = AsyncMock()
    return recorder


@pytest.fixture
def registry():
    registry = MagicMock()
    registry.create = AsyncMock(return_value=SimpleNamespace(id=uuid4()))
    return registry


@pytest.fixture
def tokens():
    tokens = MagicMock()
    tokens.issue = MagicMock(return_value="signed-token")
    return tokens


@pytest.fixture
def use_case(mock_uow, registry, tokens, recorder):
    issuer = SessionIssuer(mock_uow, registry, tokens, recorder)
    return AuthenticateUseCase(mock_uow, CredentialStore(mock_uow, rounds=10), issuer, recorder)


def make_principal(status=PrincipalStatus.active, password=PASSWORD) -> Principal:
    password_hash = (
        bcrypt.hashpw(password.encode(), bcrypt.gensalt(10)).decode() if password else None
    )
    return Principal(
        id=uuid4(),
        email="alice@example.com",
        name="Alice",
        password_hash=password_hash,
        status=status,
    )


def recorded_failure(recorder):
    args = recorder.record.call_args.args
    return args[0], args[2], args[3]


@pytest.mark.asyncio
async def test_successful_sign_in(use_case, mock_uow, registry, tokens, recorder):
    """Correct credentials create a session and a token bound to it"""
    # Arrange
    principal = make_principal()
    mock_uow.principals.get_by_email.return_value = principal

    # Act
    result = await use_case.execute("alice@example.com", PASSWORD)

    # Assert
    assert result.is_ok()
    data = result.value
    assert data.access_token == "signed-token"
    assert data.session_id == str(registry.create.return_value.id)
    assert data.principal.email == "alice@example.com"
    tokens.issue.assert_called_once_with(principal, registry.create.return_value.id)

    # last_login_at stamped
    assert principal.last_login_at is not None
    mock_uow.principals.update.assert_called_once()

    # Success recorded against the principal
    args = recorder.record.call_args.args
    assert args[0] == principal.id
    assert args[2] is True


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "email,password",
    [
        ("not-an-email", PASSWORD),
        ("alice@example.com", "short"),
        (None, PASSWORD),
        ("alice@example.com", None),
    ],
)
async def test_malformed_input_is_invalid_input(use_case, mock_uow, recorder, email, password):
    result = await use_case.execute(email, password)

    assert result.is_err()
    assert result.error.code == "invalid_input"
    mock_uow.principals.get_by_email.assert_not_called()
    principal_id, success, reason = recorded_failure(recorder)
    assert principal_id == UNKNOWN_PRINCIPAL
    assert success is False
    assert reason == FailureReason.invalid_input


@pytest.mark.asyncio
async def test_unknown_email_is_user_not_found(use_case, registry, recorder):
    """Unknown emails are recorded without a principal and never get a session"""
    result = await use_case.execute("nobody@example.com", PASSWORD)

    assert result.is_err()
    assert result.error.code == "user_not_found"
    principal_id, _, reason = recorded_failure(recorder)
    assert principal_id == UNKNOWN_PRINCIPAL
    assert reason == FailureReason.user_not_found
    registry.create.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [PrincipalStatus.pending, PrincipalStatus.suspended])
async def test_inactive_principal_is_account_not_active(use_case, mock_uow, recorder, status):
    principal = make_principal(status=status)
    mock_uow.principals.get_by_email.return_value = principal

    result = await use_case.execute("alice@example.com", PASSWORD)

    assert result.is_err()
    assert result.error.code == "account_not_active"
    assert result.error.details == {"status": status.value}
    principal_id, _, reason = recorded_failure(recorder)
    assert principal_id == principal.id
    assert reason == FailureReason.account_not_active


@pytest.mark.asyncio
async def test_provider_only_account_is_password_not_set(use_case, mock_uow, recorder):
    mock_uow.principals.get_by_email.return_value = make_principal(password=None)

    result = await use_case.execute("alice@example.com", PASSWORD)

    assert result.is_err()
    assert result.error.code == "password_not_set"
    assert recorded_failure(recorder)[2] == FailureReason.password_not_set


@pytest.mark.asyncio
async def test_wrong_password_is_invalid_password(use_case, mock_uow, registry, recorder):
    mock_uow.principals.get_by_email.return_value = make_principal()

    result = await use_case.execute("alice@example.com", "WrongPassword!")

    assert result.is_err()
    assert result.error.code == "invalid_password"
    assert recorded_failure(recorder)[2] == FailureReason.invalid_password
    registry.create.assert_not_called()


@pytest.mark.asyncio
async def test_session_creation_failure_is_unknown_error(
    use_case, mock_uow, registry, tokens, recorder
):
    """No token is issued without a session row"""
    mock_uow.principals.get_by_email.return_value = make_principal()
    registry.create.side_effect = OSError("disk I/O error")

    result = await use_case.execute("alice@example.com", PASSWORD)

    assert result.is_err()
    assert result.error.code == "unknown_error"
    tokens.issue.assert_not_called()
    assert recorded_failure(recorder)[2] == FailureReason.unknown_error
    assert recorder.record.call_args.kwargs["failure_detail"] == "OSError"


@pytest.mark.asyncio
async def test_lookup_failure_is_unknown_error(use_case, mock_uow, recorder):
    mock_uow.principals.get_by_email.side_effect = RuntimeError("connection reset")

    result = await use_case.execute("alice@example.com", PASSWORD)

    assert result.is_err()
    assert result.error.code == "unknown_error"
    assert recorder.record.call_args.kwargs["failure_detail"] == "RuntimeError"


@pytest.mark.asyncio
async def test_last_login_update_failure_does_not_fail_sign_in(use_case, mock_uow):
    mock_uow.principals.get_by_email.return_value = make_principal()
    mock_uow.principals.update.side_effect = RuntimeError("database is locked")

    result = await use_case.execute("alice@example.com", PASSWORD)

    assert result.is_ok()
