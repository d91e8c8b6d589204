from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr, Field

from authsentinel.api.error import ClientError, ServerError, raise_for_error
from authsentinel.api.utils.admin_auth import verify_admin_api_key
from authsentinel.app.services.credential_store import ProviderProfile, ProviderTokenBundle
from authsentinel.app.services.unit_of_work import UnitOfWork
from authsentinel.app.use_cases.auth import (
    AuthenticateUseCase,
    AuthSuccess,
    OAuthSignInUseCase,
    RegisterCommand,
    RegisterResponse,
    RegisterUseCase,
    ResendVerificationResponse,
    ResendVerificationUseCase,
    SessionClaimsResponse,
    SessionIssuer,
    VerifyEmailResponse,
    VerifyEmailUseCase,
)
from authsentinel.app.use_cases.sessions import RevokeSessionResponse, SessionsUseCase
from authsentinel.bootstrap import Container
from authsentinel.depends import (
    get_container,
    get_current_claims,
    get_request_metadata,
    get_unit_of_work,
)
from authsentinel.domain.entities import FailureReason, PrincipalStatus
from authsentinel.domain.values import RequestMetadata, TokenClaims
from authsentinel.libs.result import Error

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _session_issuer(container: Container, uow: UnitOfWork) -> SessionIssuer:
    return SessionIssuer(
        uow,
        container.session_registry(uow),
        container.token_reconciler(uow),
        container.login_attempt_recorder(uow),
    )


def _raise_sign_in_error(error: Error):
    """
    Map a sign-in failure to HTTP.

    Credential failures are indistinguishable (401) so responses do not reveal
    whether an account exists. The one deliberate disclosure is a pending
    account, so the client can offer to resend the verification email.
    """
    if error.code == FailureReason.invalid_input.value:
        raise ClientError(
            Error("INVALID_INPUT", error.message),
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )
    if error.code == FailureReason.unknown_error.value:
        raise ServerError(error)
    if (
        error.code == FailureReason.account_not_active.value
        and (error.details or {}).get("status") == PrincipalStatus.pending.value
    ):
        raise ClientError(
            Error("EMAIL_NOT_VERIFIED", "Please verify your email address before signing in"),
            status_code=status.HTTP_403_FORBIDDEN,
        )
    raise ClientError(
        Error("INVALID_CREDENTIALS", "Invalid email or password"),
        status_code=status.HTTP_401_UNAUTHORIZED,
    )


class RegisterRequest(BaseModel):
    """
    Registration HTTP request payload
    """

    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., min_length=8, description="Password (min 8 chars)")
    name: Optional[str] = Field(default=None, max_length=255, description="Display name")


@router.post(
    "/register", status_code=status.HTTP_201_CREATED, response_model=RegisterResponse
)
async def register(
    request: RegisterRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    container: Container = Depends(get_container),
):
    """
    Register

    Creates a pending principal and emails a verification link.

    Raises:
        - 409 Conflict: Email already exists
        - 422 Unprocessable Entity: Invalid input (handled by FastAPI)
    """
    command = RegisterCommand(email=request.email, password=request.password, name=request.name)

    use_case = RegisterUseCase(
        uow,
        container.credential_store(uow),
        container.dispatcher,
        container.telemetry,
        base_url=container.config.APP_BASE_URL,
        verification_ttl=container.verification_ttl,
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class VerifyEmailRequest(BaseModel):
    token: str = Field(..., min_length=1, description="Verification token from the email link")


@router.post(
    "/verify-email", status_code=status.HTTP_200_OK, response_model=VerifyEmailResponse
)
async def verify_email(
    request: VerifyEmailRequest, uow: UnitOfWork = Depends(get_unit_of_work)
):
    """
    Verify Email

    Raises:
        - 400 Bad Request: Invalid or expired token
    """
    use_case = VerifyEmailUseCase(uow)
    result = await use_case.execute(request.token)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class ResendVerificationRequest(BaseModel):
    email: EmailStr = Field(..., description="Email address awaiting verification")


@router.post(
    "/resend-verification",
    status_code=status.HTTP_200_OK,
    response_model=ResendVerificationResponse,
)
async def resend_verification(
    request: ResendVerificationRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    container: Container = Depends(get_container),
):
    """
    Resend Verification Email

    Rotates the verification token of a pending principal and emails the new
    link, at most once per 2 minutes. The response is the same whether or not
    the email belongs to a pending account.

    Raises:
        - 422 Unprocessable Entity: Invalid email (handled by FastAPI)
    """
    use_case = ResendVerificationUseCase(
        uow,
        container.dispatcher,
        container.telemetry,
        base_url=container.config.APP_BASE_URL,
        verification_ttl=container.verification_ttl,
    )
    result = await use_case.execute(request.email)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class LoginRequest(BaseModel):
    """
    Login HTTP request payload

    Not validated here: malformed input is itself a recorded sign-in attempt.
    """

    email: Optional[str] = Field(default=None, description="Email address")
    password: Optional[str] = Field(default=None, description="Password")


@router.post("/login", status_code=status.HTTP_200_OK, response_model=AuthSuccess)
async def login(
    request: LoginRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    container: Container = Depends(get_container),
    request_meta: RequestMetadata = Depends(get_request_metadata),
):
    """
    Login

    Authenticates with email and password, creates a session and returns a
    token bound to it.

    Raises:
        - 401 Unauthorized: Invalid credentials
        - 403 Forbidden: Email not verified yet
        - 422 Unprocessable Entity: Malformed email or password
        - 500 Internal Server Error: Server error
    """
    issuer = _session_issuer(container, uow)
    use_case = AuthenticateUseCase(
        uow, container.credential_store(uow), issuer, issuer.recorder
    )
    result = await use_case.execute(request.email, request.password, request_meta)

    if result.is_err():
        _raise_sign_in_error(result.error)

    return result.value


class OAuthCallbackRequest(BaseModel):
    """
    Provider account as reported by the upstream provider exchange
    """

    provider_account_id: str = Field(..., min_length=1)
    email: Optional[str] = None
    name: Optional[str] = None
    image: Optional[str] = None
    type: str = "oauth"
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None
    token_type: Optional[str] = None
    scope: Optional[str] = None
    id_token: Optional[str] = None
    session_state: Optional[str] = None


@router.post(
    "/oauth/{provider}/callback",
    status_code=status.HTTP_200_OK,
    response_model=AuthSuccess,
    dependencies=[Depends(verify_admin_api_key)],
)
async def oauth_callback(
    provider: str,
    request: OAuthCallbackRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    container: Container = Depends(get_container),
    request_meta: RequestMetadata = Depends(get_request_metadata),
):
    """
    Provider Sign-In

    Called by the trusted service that completed the provider exchange.
    Links the provider account (idempotently) and signs the principal in.

    Raises:
        - 401 Unauthorized: Missing/invalid service key or principal not active
        - 422 Unprocessable Entity: Provider did not supply an email
        - 500 Internal Server Error: Server error
    """
    issuer = _session_issuer(container, uow)
    use_case = OAuthSignInUseCase(container.credential_store(uow), issuer, issuer.recorder)
    result = await use_case.execute(
        provider,
        request.provider_account_id,
        ProviderProfile(email=request.email, name=request.name, image=request.image),
        ProviderTokenBundle(
            type=request.type,
            access_token=request.access_token,
            refresh_token=request.refresh_token,
            expires_at=request.expires_at,
            token_type=request.token_type,
            scope=request.scope,
            id_token=request.id_token,
            session_state=request.session_state,
        ),
        request_meta,
    )

    if result.is_err():
        _raise_sign_in_error(result.error)

    return result.value


@router.post("/logout", status_code=status.HTTP_200_OK, response_model=RevokeSessionResponse)
async def logout(
    claims: TokenClaims = Depends(get_current_claims),
    uow: UnitOfWork = Depends(get_unit_of_work),
    container: Container = Depends(get_container),
):
    """
    Logout

    Deletes the session the token is bound to. The token is useless from the
    next reconciliation on.
    """
    use_case = SessionsUseCase(container.session_registry(uow))
    result = await use_case.logout(UUID(claims.principal_id), claims.session_id)
    return result.value


@router.get("/session", status_code=status.HTTP_200_OK, response_model=SessionClaimsResponse)
async def current_session(claims: TokenClaims = Depends(get_current_claims)):
    """
    Current Session

    Returns the identity carried by the (reconciled) token.

    Raises:
        - 401 Unauthorized: Token invalid or session revoked
    """
    return SessionClaimsResponse(
        principal_id=claims.principal_id,
        session_id=claims.session_id,
        email=claims.email,
        locale=claims.locale,
        timezone=claims.timezone,
        last_validity_check=claims.last_validity_check,
    )
