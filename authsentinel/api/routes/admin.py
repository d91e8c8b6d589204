"""
Admin API Routes - System Administration Endpoints

These endpoints are for internal service integrations (schedulers, support
tooling). Authentication is via Admin API Key, not user tokens.
"""

from uuid import UUID
from fastapi import APIRouter, Depends, status

from authsentinel.api.error import raise_for_error
from authsentinel.api.utils.admin_auth import verify_admin_api_key
from authsentinel.app.services.unit_of_work import UnitOfWork
from authsentinel.app.use_cases.admin import (
    SuspendPrincipalResponse,
    SuspendPrincipalUseCase,
    SweepExpiredSessionsResponse,
    SweepExpiredSessionsUseCase,
)
from authsentinel.bootstrap import Container
from authsentinel.depends import get_container, get_unit_of_work

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post(
    "/sessions/sweep",
    status_code=status.HTTP_200_OK,
    response_model=SweepExpiredSessionsResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def sweep_expired_sessions(
    uow: UnitOfWork = Depends(get_unit_of_work),
    container: Container = Depends(get_container),
):
    """
    Sweep Expired Sessions

    Scheduler endpoint deleting every session past its expiry. Safe to call
    repeatedly and concurrently.

    Requires: X-Admin-API-Key header

    Raises:
        - 401 Unauthorized: Missing or invalid admin API key
    """
    use_case = SweepExpiredSessionsUseCase(container.session_registry(uow))
    result = await use_case.execute()
    return result.value


@router.post(
    "/principals/{principal_id}/suspend",
    status_code=status.HTTP_200_OK,
    response_model=SuspendPrincipalResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def suspend_principal(
    principal_id: UUID,
    uow: UnitOfWork = Depends(get_unit_of_work),
    container: Container = Depends(get_container),
):
    """
    Suspend Principal

    Blocks sign-in and revokes every session of the principal.

    Requires: X-Admin-API-Key header

    Raises:
        - 401 Unauthorized: Missing or invalid admin API key
        - 404 Not Found: PRINCIPAL_NOT_FOUND
    """
    use_case = SuspendPrincipalUseCase(uow, container.session_registry(uow))
    result = await use_case.execute(principal_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value
