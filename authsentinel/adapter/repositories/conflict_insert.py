"""
INSERT ... ON CONFLICT DO NOTHING across the dialects we run on.

Uniqueness races (two OAuth callbacks for one provider account, two first
sign-ins for one email) are settled by the database, not by a read-then-write
check in Python.
"""

from typing import Iterable

from sqlalchemy import insert
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlmodel.ext.asyncio.session import AsyncSession


async def insert_ignoring_conflict(
    session: AsyncSession, model, values: dict, conflict_columns: Iterable[str]
) -> bool:
    """
    Insert one row unless it violates the unique key on conflict_columns.

    Returns True if this call inserted the row.
    """
    dialect = session.bind.dialect.name
    columns = list(conflict_columns)

    if dialect in ("sqlite", "postgresql"):
        dialect_insert = sqlite.insert if dialect == "sqlite" else postgresql.insert
        stmt = dialect_insert(model).values(**values).on_conflict_do_nothing(
            index_elements=columns
        )
        result = await session.execute(stmt)
        return result.rowcount > 0

    # Generic fallback: savepoint around a plain insert
    try:
        async with session.begin_nested():
            await session.execute(insert(model).values(**values))
        return True
    except IntegrityError:
        return False
