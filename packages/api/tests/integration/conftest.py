# This project was developed with assistance from AI tools.
"""Integration test fixtures -- real PostgreSQL, no mocks.

A session-scoped container provides PostgreSQL migrated to head with the
project's Alembic scripts. Function-scoped sessions run inside a
transaction that is rolled back after each test.
"""

import os

import pytest
import pytest_asyncio
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool
from testcontainers.postgres import PostgresContainer

pytestmark = pytest.mark.integration

DB_PACKAGE_DIR = os.path.join(os.path.dirname(__file__), "..", "..", "..", "db")


@pytest.fixture(scope="session")
def pg_container():
    with PostgresContainer(
        image="postgres:16",
        username="test",
        password="test",
        dbname="test",
    ) as pg:
        yield pg


@pytest.fixture(scope="session")
def db_url(pg_container):
    """Async DB URL for asyncpg."""
    host = pg_container.get_container_host_ip()
    port = pg_container.get_exposed_port(5432)
    return f"postgresql+asyncpg://test:test@{host}:{port}/test"


@pytest.fixture(scope="session")
def sync_db_url(pg_container):
    """Sync DB URL for Alembic (psycopg2)."""
    host = pg_container.get_container_host_ip()
    port = pg_container.get_exposed_port(5432)
    return f"postgresql://test:test@{host}:{port}/test"


@pytest.fixture(scope="session")
def _run_migrations(sync_db_url):
    from alembic import command
    from alembic.config import Config

    os.environ["DATABASE_URL"] = sync_db_url
    alembic_cfg = Config(os.path.join(DB_PACKAGE_DIR, "alembic.ini"))
    alembic_cfg.set_main_option("script_location", os.path.join(DB_PACKAGE_DIR, "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", sync_db_url)
    command.upgrade(alembic_cfg, "head")


@pytest.fixture(scope="session")
def async_engine(db_url, _run_migrations):
    engine = create_async_engine(db_url, echo=False, poolclass=NullPool)
    yield engine


@pytest_asyncio.fixture
async def db_session(async_engine):
    """Per-test DB session with savepoint rollback."""
    conn = await async_engine.connect()
    txn = await conn.begin()
    session = AsyncSession(bind=conn, join_transaction_mode="create_savepoint", expire_on_commit=False)
    yield session
    await session.close()
    await txn.rollback()
    await conn.close()


@pytest_asyncio.fixture
async def seeded(db_session):
    """One agency, two carriers and a QUOTED submission. Returns their ids."""
    agency_id = (
        await db_session.execute(
            text("INSERT INTO agencies (name, email) VALUES ('Harbor Agency', 'desk@agency.example') RETURNING id")
        )
    ).scalar_one()
    carrier_ids = [
        (
            await db_session.execute(
                text("INSERT INTO carriers (name) VALUES (:name) RETURNING id"), {"name": name}
            )
        ).scalar_one()
        for name in ("Atlas Mutual", "Beacon Specialty")
    ]
    submission_id = (
        await db_session.execute(
            text(
                "INSERT INTO submissions (agency_id, template_id, status) "
                "VALUES (:agency_id, 'gl-contractors', 'QUOTED') RETURNING id"
            ),
            {"agency_id": agency_id},
        )
    ).scalar_one()
    return {"agency_id": agency_id, "carrier_ids": carrier_ids, "submission_id": submission_id}
