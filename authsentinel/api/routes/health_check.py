from fastapi import APIRouter, Depends, status
from sqlalchemy import text

from authsentinel.api.error import ServerError
from authsentinel.bootstrap import Container
from authsentinel.depends import get_container
from authsentinel.libs.result import Error

router = APIRouter()


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check(container: Container = Depends(get_container)):
    """Liveness plus a trivial database round-trip"""
    try:
        async with container.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as exc:
        raise ServerError(Error("DATABASE_UNAVAILABLE", str(exc))) from exc
    return {"status": "ok"}
