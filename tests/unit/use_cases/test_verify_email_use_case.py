from datetime import timedelta
from uuid import uuid4

import pytest

from authsentinel.app.use_cases.auth import VerifyEmailUseCase
from authsentinel.domain.base import utcnow
from authsentinel.domain.entities import Principal, PrincipalStatus


def pending_principal(expires_in: timedelta, status=PrincipalStatus.pending) -> Principal:
    return Principal(
        id=uuid4(),
        email="alice@example.com",
        status=status,
        email_verification_token="verify-token",
        email_verification_expires_at=utcnow() + expires_in,
    )


@pytest.mark.asyncio
async def test_valid_token_activates_principal(mock_uow):
    principal = pending_principal(timedelta(hours=1))
    mock_uow.principals.get_by_verification_token.return_value = principal

    result = await VerifyEmailUseCase(mock_uow).execute("verify-token")

    assert result.is_ok()
    assert result.value.status == "verified"
    assert principal.status == PrincipalStatus.active
    assert principal.email_verified_at is not None
    assert principal.email_verification_token is None
    assert principal.email_verification_expires_at is None
    mock_uow.commit.assert_called_once()


@pytest.mark.asyncio
async def test_unknown_token_is_invalid(mock_uow):
    result = await VerifyEmailUseCase(mock_uow).execute("nope")

    assert result.is_err()
    assert result.error.code == "INVALID_TOKEN"


@pytest.mark.asyncio
async def test_expired_token_is_rejected(mock_uow):
    principal = pending_principal(timedelta(seconds=-1))
    mock_uow.principals.get_by_verification_token.return_value = principal

    result = await VerifyEmailUseCase(mock_uow).execute("verify-token")

    assert result.is_err()
    assert result.error.code == "TOKEN_EXPIRED"
    assert principal.status == PrincipalStatus.pending
    mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
async def test_suspended_principal_stays_suspended(mock_uow):
    principal = pending_principal(timedelta(hours=1), status=PrincipalStatus.suspended)
    mock_uow.principals.get_by_verification_token.return_value = principal

    result = await VerifyEmailUseCase(mock_uow).execute("verify-token")

    assert result.is_ok()
    assert principal.status == PrincipalStatus.suspended
    assert principal.email_verified_at is not None
