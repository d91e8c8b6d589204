from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from authsentinel.api.error import raise_for_error
from authsentinel.app.services.unit_of_work import UnitOfWork
from authsentinel.app.use_cases.security import LoginHistoryResponse, LoginHistoryUseCase
from authsentinel.depends import get_current_principal_id, get_unit_of_work

router = APIRouter(prefix="/user", tags=["User"])


@router.get(
    "/login-history", status_code=status.HTTP_200_OK, response_model=LoginHistoryResponse
)
async def login_history(
    limit: int = Query(20, description="Number of attempts to return (1-100)"),
    principal_id: UUID = Depends(get_current_principal_id),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Login History

    Recent sign-in attempts on the caller's account, newest first.

    Raises:
        - 400 Bad Request: limit out of range
    """
    use_case = LoginHistoryUseCase(uow)
    result = await use_case.execute(principal_id, limit=limit)

    if result.is_err():
        raise_for_error(result.error)

    return result.value
