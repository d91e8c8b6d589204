from uuid import UUID

from fastapi import Depends, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from authsentinel.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from authsentinel.api.error import ClientError
from authsentinel.app.services.unit_of_work import UnitOfWork
from authsentinel.app.use_cases.auth import ReconcileSessionUseCase
from authsentinel.bootstrap import Container
from authsentinel.domain.values import RequestMetadata, TokenClaims
from authsentinel.libs.result import Error

REFRESHED_TOKEN_HEADER = "X-Refreshed-Token"

security = HTTPBearer(auto_error=False)


def get_container(request: Request) -> Container:
    return request.app.state.container


async def get_unit_of_work(container: Container = Depends(get_container)):
    async with container.session_factory() as session:
        yield SqlAlchemyUnitOfWork(session)


def get_request_metadata(request: Request) -> RequestMetadata:
    client_host = request.client.host if request.client else None
    return RequestMetadata.from_mapping(request.headers, client_host)


async def get_current_claims(
    response: Response,
    credentials: HTTPAuthorizationCredentials = Depends(security),
    container: Container = Depends(get_container),
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> TokenClaims:
    """
    Dependency that authenticates a request from its bearer token.

    Verifies the token and reconciles its session. When the session was
    re-checked the re-signed token is returned in the X-Refreshed-Token
    response header; clients replace their stored token with it.

    Raises:
        ClientError: 401 if the token is missing, invalid, expired or its
            session has been revoked
    """
    if credentials is None:
        raise ClientError(
            Error("UNAUTHORIZED", "Bearer token required"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    token = credentials.credentials
    use_case = ReconcileSessionUseCase(container.token_reconciler(uow))
    result = await use_case.execute(token)

    if result.is_err():
        raise ClientError(result.error, status_code=status.HTTP_401_UNAUTHORIZED)

    outcome = result.value
    if outcome.token and outcome.token != token:
        response.headers[REFRESHED_TOKEN_HEADER] = outcome.token
    return outcome.claims


def get_current_principal_id(claims: TokenClaims = Depends(get_current_claims)) -> UUID:
    return UUID(claims.principal_id)
