from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from authsentinel.app.services.credential_store import ProviderProfile
from authsentinel.app.use_cases.auth import OAuthSignInUseCase
from authsentinel.domain.entities import (
    UNKNOWN_PRINCIPAL,
    FailureReason,
    Principal,
    PrincipalStatus,
)
from authsentinel.domain.values import ResolvedClient
from authsentinel.libs.result import Error, Return


@pytest.fixture
def recorder():
    recorder = MagicMock()
    recorder.resolve_client = AsyncMock(return_value=ResolvedClient())
    recorder.record = AsyncMock()
    return recorder


@pytest.fixture
def credentials():
    credentials = MagicMock()
    credentials.link_oauth_account = AsyncMock()
    return credentials


@pytest.fixture
def issuer():
    issuer = MagicMock()
    issuer.issue = AsyncMock(return_value=Return.ok("signed-in"))
    return issuer


@pytest.mark.asyncio
async def test_linked_active_principal_is_signed_in(credentials, issuer, recorder):
    """Given the provider account links to an active principal
    Then the principal is signed in through the shared session issuer
    """
    principal = Principal(id=uuid4(), email="bob@example.com", status=PrincipalStatus.active)
    credentials.link_oauth_account.return_value = Return.ok(principal)

    result = await OAuthSignInUseCase(credentials, issuer, recorder).execute(
        "github", "42", ProviderProfile(email="bob@example.com")
    )

    assert result.is_ok()
    profile, provider, account_id, _ = credentials.link_oauth_account.call_args.args
    assert (provider, account_id) == ("github", "42")
    issuer.issue.assert_called_once_with(principal, "bob@example.com", ResolvedClient())
    recorder.record.assert_not_called()


@pytest.mark.asyncio
async def test_suspended_principal_cannot_sign_in(credentials, issuer, recorder):
    principal = Principal(id=uuid4(), email="bob@example.com", status=PrincipalStatus.suspended)
    credentials.link_oauth_account.return_value = Return.ok(principal)

    result = await OAuthSignInUseCase(credentials, issuer, recorder).execute(
        "github", "42", ProviderProfile(email="bob@example.com")
    )

    assert result.is_err()
    assert result.error.code == "account_not_active"
    issuer.issue.assert_not_called()
    args = recorder.record.call_args.args
    assert args[0] == principal.id
    assert args[3] == FailureReason.account_not_active


@pytest.mark.asyncio
async def test_missing_provider_email_is_recorded(credentials, issuer, recorder):
    credentials.link_oauth_account.return_value = Return.err(
        Error("invalid_input", "Provider did not supply an email address")
    )

    result = await OAuthSignInUseCase(credentials, issuer, recorder).execute(
        "github", "42", ProviderProfile(email=None)
    )

    assert result.is_err()
    assert result.error.code == "invalid_input"
    args = recorder.record.call_args.args
    assert args[0] == UNKNOWN_PRINCIPAL
    assert args[3] == FailureReason.invalid_input


@pytest.mark.asyncio
async def test_link_exception_is_unknown_error(credentials, issuer, recorder):
    credentials.link_oauth_account.side_effect = RuntimeError("database is locked")

    result = await OAuthSignInUseCase(credentials, issuer, recorder).execute(
        "github", "42", ProviderProfile(email="bob@example.com")
    )

    assert result.is_err()
    assert result.error.code == "unknown_error"
    assert recorder.record.call_args.kwargs["failure_detail"] == "RuntimeError"
