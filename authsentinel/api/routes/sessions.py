from uuid import UUID

from fastapi import APIRouter, Depends, status

from authsentinel.api.error import raise_for_error
from authsentinel.app.services.unit_of_work import UnitOfWork
from authsentinel.app.use_cases.sessions import (
    RevokeSessionResponse,
    SessionListResponse,
    SessionsUseCase,
)
from authsentinel.bootstrap import Container
from authsentinel.depends import get_container, get_current_claims, get_unit_of_work
from authsentinel.domain.values import TokenClaims

router = APIRouter(prefix="/sessions", tags=["Sessions"])


@router.get("", status_code=status.HTTP_200_OK, response_model=SessionListResponse)
async def list_sessions(
    claims: TokenClaims = Depends(get_current_claims),
    uow: UnitOfWork = Depends(get_unit_of_work),
    container: Container = Depends(get_container),
):
    """
    List Sessions

    Active sessions of the signed-in principal, most recently used first.
    The session the request is authenticated with is flagged is_current.
    """
    use_case = SessionsUseCase(container.session_registry(uow))
    result = await use_case.list_sessions(UUID(claims.principal_id), claims.session_id)
    return result.value


@router.delete(
    "/{session_id}",
    status_code=status.HTTP_200_OK,
    response_model=RevokeSessionResponse,
)
async def revoke_session(
    session_id: str,
    claims: TokenClaims = Depends(get_current_claims),
    uow: UnitOfWork = Depends(get_unit_of_work),
    container: Container = Depends(get_container),
):
    """
    Revoke Session

    Signs out one device. Tokens bound to it stop working at their next
    reconciliation (at most one check interval later).

    Raises:
        - 404 Not Found: No such session owned by the caller
    """
    use_case = SessionsUseCase(container.session_registry(uow))
    result = await use_case.revoke_session(UUID(claims.principal_id), session_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/revoke-others",
    status_code=status.HTTP_200_OK,
    response_model=RevokeSessionResponse,
)
async def revoke_all_except_current(
    claims: TokenClaims = Depends(get_current_claims),
    uow: UnitOfWork = Depends(get_unit_of_work),
    container: Container = Depends(get_container),
):
    """
    Revoke All Other Sessions

    Signs out every other device; the current session is taken from the token.
    """
    use_case = SessionsUseCase(container.session_registry(uow))
    result = await use_case.revoke_all_other_sessions(
        UUID(claims.principal_id), claims.session_id
    )
    return result.value
