from datetime import timedelta
from urllib.parse import parse_qs, urlparse

import pytest
from httpx import AsyncClient

from authsentinel.domain.entities import NotificationKind
from authsentinel.domain.values import TokenClaims


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def _verification_token(dispatcher) -> str:
    _, _, data = dispatcher.of_kind(NotificationKind.email_verification)[-1]
    return parse_qs(urlparse(data["verification_url"]).query)["token"][0]


def stale_copy(container, token: str) -> str:
    """Same token, with the last registry check far in the past"""
    claims = container.codec.decode(token)
    return container.codec.encode(
        TokenClaims(
            principal_id=claims.principal_id,
            session_id=claims.session_id,
            last_validity_check=0,
            email=claims.email,
        )
    )


@pytest.mark.asyncio
async def test_register_verify_login_revoke(
    client: AsyncClient, container, uow, register_verified, login
):
    """Given alice registers and verifies her email
    When she signs in
    Then a session exists and her token works
    When that session is revoked
    Then her token is rejected at its next reconciliation
    """
    registered = await register_verified()
    assert registered["status"] == "pending"

    response = await login()
    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["principal"]["email"] == "alice@example.com"
    token = data["access_token"]
    session_id = data["session_id"]

    registry = container.session_registry(uow)
    assert await registry.is_valid(session_id) is True

    response = await client.get("/auth/session", headers=bearer(token))
    assert response.status_code == 200
    assert response.json()["session_id"] == session_id

    response = await client.delete(f"/sessions/{session_id}", headers=bearer(token))
    assert response.status_code == 200
    assert response.json()["revoked_count"] == 1

    response = await client.get("/auth/session", headers=bearer(stale_copy(container, token)))
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "SESSION_INVALID"


@pytest.mark.asyncio
async def test_stale_token_is_refreshed(
    client: AsyncClient, container, register_verified, login
):
    await register_verified()
    token = (await login()).json()["access_token"]
    stale = stale_copy(container, token)

    response = await client.get("/auth/session", headers=bearer(stale))

    assert response.status_code == 200
    refreshed = response.headers["X-Refreshed-Token"]
    assert refreshed != stale
    assert container.codec.decode(refreshed).last_validity_check > 0
    assert response.json()["last_validity_check"] > 0


@pytest.mark.asyncio
async def test_fresh_token_is_not_refreshed(client: AsyncClient, register_verified, login):
    await register_verified()
    token = (await login()).json()["access_token"]

    response = await client.get("/auth/session", headers=bearer(token))

    assert response.status_code == 200
    assert "X-Refreshed-Token" not in response.headers


@pytest.mark.asyncio
async def test_unverified_principal_cannot_sign_in(client: AsyncClient, login):
    response = await client.post(
        "/auth/register", json={"email": "alice@example.com", "password": "SecurePass123!"}
    )
    assert response.status_code == 201

    response = await login()

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "EMAIL_NOT_VERIFIED"


@pytest.mark.asyncio
async def test_register_duplicate_email(client: AsyncClient, register_verified):
    await register_verified()

    response = await client.post(
        "/auth/register", json={"email": "alice@example.com", "password": "SecurePass123!"}
    )

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "EMAIL_ALREADY_EXISTS"


@pytest.mark.asyncio
async def test_verify_with_unknown_token(client: AsyncClient):
    response = await client.post("/auth/verify-email", json={"token": "does-not-exist"})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_TOKEN"


@pytest.mark.asyncio
async def test_wrong_password_and_unknown_email_look_the_same(
    client: AsyncClient, register_verified, login
):
    await register_verified()

    wrong_password = await login(password="WrongPassword!")
    unknown_email = await login(email="nobody@example.com")

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"email": "not-an-email", "password": "SecurePass123!"},
        {"email": "alice@example.com", "password": "short"},
        {},
    ],
)
async def test_malformed_login_is_422(client: AsyncClient, payload):
    response = await client.post("/auth/login", json=payload)

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "INVALID_INPUT"


@pytest.mark.asyncio
async def test_missing_or_bad_token_is_401(client: AsyncClient):
    assert (await client.get("/auth/session")).status_code == 401

    response = await client.get("/auth/session", headers=bearer("not.a.jwt"))
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_TOKEN"


@pytest.mark.asyncio
async def test_logout_ends_session(client: AsyncClient, container, register_verified, login):
    await register_verified()
    token = (await login()).json()["access_token"]

    response = await client.post("/auth/logout", headers=bearer(token))
    assert response.status_code == 200
    assert response.json()["revoked_count"] == 1

    response = await client.get("/auth/session", headers=bearer(stale_copy(container, token)))
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_oauth_callback_signs_in_and_links_once(client: AsyncClient, admin_headers):
    payload = {"provider_account_id": "42", "email": "bob@example.com", "name": "Bob"}
    headers = admin_headers

    first = await client.post("/auth/oauth/github/callback", json=payload, headers=headers)
    second = await client.post("/auth/oauth/github/callback", json=payload, headers=headers)

    assert first.status_code == 200
    assert second.status_code == 200
    assert first.json()["principal"]["id"] == second.json()["principal"]["id"]
    assert first.json()["session_id"] != second.json()["session_id"]


@pytest.mark.asyncio
async def test_oauth_callback_requires_service_key(client: AsyncClient):
    response = await client.post(
        "/auth/oauth/github/callback", json={"provider_account_id": "42", "email": "b@x.io"}
    )

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


@pytest.mark.asyncio
async def test_oauth_callback_without_email_is_422(client: AsyncClient, admin_headers):
    response = await client.post(
        "/auth/oauth/github/callback",
        json={"provider_account_id": "42"},
        headers=admin_headers,
    )

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "INVALID_INPUT"


@pytest.mark.asyncio
async def test_resend_verification_replaces_the_link(client: AsyncClient, uow, dispatcher):
    """Given a pending registration whose link went out a while ago
    When a new link is requested
    Then the old link stops working and the new one activates the account
    """
    # Arrange
    await client.post(
        "/auth/register", json={"email": "alice@example.com", "password": "SecurePass123!"}
    )
    old_token = _verification_token(dispatcher)
    async with uow:
        principal = await uow.principals.get_by_email("alice@example.com")
        principal.email_verification_expires_at -= timedelta(minutes=5)
        await uow.principals.update(principal)
        await uow.commit()
    dispatcher.clear()

    # Act
    response = await client.post(
        "/auth/resend-verification", json={"email": "alice@example.com"}
    )

    # Assert
    assert response.status_code == 200
    new_token = _verification_token(dispatcher)
    assert new_token != old_token
    stale = await client.post("/auth/verify-email", json={"token": old_token})
    assert stale.status_code == 400
    fresh = await client.post("/auth/verify-email", json={"token": new_token})
    assert fresh.status_code == 200


@pytest.mark.asyncio
async def test_resend_verification_is_throttled_and_does_not_enumerate(
    client: AsyncClient, dispatcher
):
    await client.post(
        "/auth/register", json={"email": "alice@example.com", "password": "SecurePass123!"}
    )
    dispatcher.clear()

    throttled = await client.post("/auth/resend-verification", json={"email": "alice@example.com"})
    unknown = await client.post("/auth/resend-verification", json={"email": "nobody@example.com"})

    assert throttled.status_code == unknown.status_code == 200
    assert throttled.json() == unknown.json()
    assert dispatcher.sent == []


@pytest.mark.asyncio
async def test_garbage_forwarding_headers_do_not_block_sign_in(
    client: AsyncClient, register_verified
):
    await register_verified()

    response = await client.post(
        "/auth/login",
        json={"email": "alice@example.com", "password": "SecurePass123!"},
        headers={
            "cf-connecting-ip": "A" * 70,
            "x-forwarded-for": "not-an-address",
            "user-agent": "Mozilla/5.0 " + "x" * 5000,
        },
    )

    assert response.status_code == 200
    token = response.json()["access_token"]
    sessions = (await client.get("/sessions", headers=bearer(token))).json()["sessions"]
    assert sessions[0]["ip_address"] == "127.0.0.1"
