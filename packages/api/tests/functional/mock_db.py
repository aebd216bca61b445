# This project was developed with assistance from AI tools.
"""Mock database utilities for functional tests.

Route handlers only pass the session through to services, which the tests
patch; the session returned here covers the few queries routes issue
directly (``.scalar()`` counts and ``.scalars().all()`` lists).
"""

from unittest.mock import AsyncMock, MagicMock

from db import get_db

from placement.middleware.auth import get_current_user
from placement.schemas.auth import UserContext


def make_mock_session(items: list | None = None, count: int | None = None) -> AsyncMock:
    if items is not None and count is None:
        count = len(items)

    session = AsyncMock()
    mock_result = MagicMock()
    mock_result.scalar.return_value = count or 0
    mock_result.scalars.return_value.all.return_value = items or []
    mock_result.scalar_one_or_none.return_value = items[0] if items else None
    session.execute = AsyncMock(return_value=mock_result)
    session.add = MagicMock()
    return session


def configure_app_for_persona(app, user: UserContext, session: AsyncMock) -> None:
    """Override get_current_user and get_db on the real app."""

    async def fake_user():
        return user

    async def fake_db():
        yield session

    app.dependency_overrides[get_current_user] = fake_user
    app.dependency_overrides[get_db] = fake_db
