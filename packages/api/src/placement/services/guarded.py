# This project was developed with assistance from AI tools.
"""Conditional single-row writes.

Every workflow mutation is an ``UPDATE ... WHERE id = :id AND <guards>``.
If another request changed the row first, the guards no longer match, no
row is affected, and the whole transaction is rolled back as a conflict.
"""

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import ConflictError


async def guarded_update(
    session: AsyncSession,
    model,
    row_id: int,
    *,
    guards: tuple = (),
    values: dict,
    conflict_detail: str,
) -> None:
    stmt = (
        update(model)
        .where(model.id == row_id, *guards)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    if result.rowcount != 1:
        await session.rollback()
        raise ConflictError(conflict_detail)
