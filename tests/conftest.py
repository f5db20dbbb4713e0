"""
MouzaForm Backend — Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── database: real SQLite store in tmp_path, opened with tables created
    ├── reject_mouza_named: installs a trigger that fails one mouza insert
    ├── mock_db_session: AsyncSession double for error-translation tests
    ├── sample_submission: the Dhaka/Savar/Ashulia form used across tests
    └── test_client: HTTPX AsyncClient bound to an app serving `database`
"""

import os
import tempfile
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text


# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Set BEFORE any mouzaform import so the settings singleton picks them up
os.environ["DATABASE_URL"] = (
    "sqlite+aiosqlite:///" + os.path.join(tempfile.mkdtemp(prefix="mouzaform_test_"), "unused.db")
)
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["CORS_ORIGINS"] = "*"
os.environ["ATOMIC_SUBMISSIONS"] = "true"

from mouzaform.database import Database  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def database(tmp_path):
    """
    A real, empty SQLite database with both tables created.

    Each test gets its own file, so ids start at 1.
    """
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    db.open()
    await db.ensure_schema()
    yield db
    await db.close()


@pytest.fixture
def reject_mouza_named(database):
    """
    Install a store-side trigger that aborts any mouza_info insert with the
    given mouzaName, so the real INSERT statement fails inside its SAVEPOINT.

    Usage:
        await reject_mouza_named("Broken")
    """
    async def install(name):
        async with database.transaction() as db:
            await db.execute(text(
                f"CREATE TRIGGER reject_{name.lower()} BEFORE INSERT ON mouza_info "
                f"WHEN NEW.\"mouzaName\" = '{name}' "
                f"BEGIN SELECT RAISE(ABORT, 'mouza {name} rejected'); END"
            ))

    return install


@pytest.fixture
def mock_db_session():
    """
    A mock async database session (no real DB needed).

    Usage:
        mock_db_session.execute.side_effect = OperationalError(...)
        with pytest.raises(StoreReadError):
            await store_gateway.list_locations(mock_db_session)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    session.begin_nested = MagicMock()
    return session


@pytest.fixture
def sample_submission():
    """The reference submission: one Jamgora RS sheet in Ashulia, Savar."""
    return {
        "division": "Dhaka",
        "district": "Dhaka",
        "upazila": "Savar",
        "union": "Ashulia",
        "mouzaData": [
            {"mouzaName": "Jamgora", "surveyType": "RS", "sheetNumber": "12"},
        ],
    }


@pytest_asyncio.fixture
async def test_client(database):
    """
    HTTPX AsyncClient talking to an app that serves the `database` fixture.

    ASGITransport does not run the lifespan; the `database` fixture has
    already opened the store and created the tables.
    """
    from mouzaform.main import create_app

    app = create_app(database=database)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
