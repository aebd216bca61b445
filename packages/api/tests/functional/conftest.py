# This project was developed with assistance from AI tools.
"""Fixtures for functional tests.

The real app from ``placement.main`` is a module singleton. ``_clean_overrides``
ensures dependency_overrides are cleared after every test so persona
configuration from one test never leaks into the next. Clients are created
without entering the lifespan, so storage and collaborators are never
initialised; tests patch the service functions the routes call.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from placement.main import app as real_app
from placement.schemas.auth import UserContext

from .mock_db import configure_app_for_persona, make_mock_session


@pytest.fixture(autouse=True)
def _clean_overrides():
    """Clear app dependency overrides after each test."""
    yield
    real_app.dependency_overrides.clear()


@pytest.fixture
def app():
    return real_app


@pytest.fixture
def make_client(app):
    """Factory fixture: configure persona + mock DB, return TestClient."""

    def _make(user: UserContext, session: AsyncMock | None = None) -> TestClient:
        configure_app_for_persona(app, user, session or make_mock_session())
        return TestClient(app)

    return _make
