"""
MouzaForm Backend — Database Handle & Session Management
==========================================================

What:  The `Database` store handle (engine, session factory, scoped
       transactions, schema creation) and the FastAPI dependency that hands
       it to route handlers.
Why:   Centralizes all connection logic; the handle is constructed explicitly,
       opened and closed by the application lifespan, and injected into the
       app so tests can substitute their own.
How:   Async SQLAlchemy engine. Each request runs inside one transaction that
       commits on success and rolls back on any error; the handler commits
       before it returns, so a commit failure still becomes an error response.

SQLite specifics:
    - `PRAGMA foreign_keys=ON` is issued on every new connection; SQLite
      leaves foreign keys (and therefore ON DELETE CASCADE) off by default.
    - The driver's implicit BEGIN is disabled and BEGIN IMMEDIATE is emitted
      when SQLAlchemy starts a transaction, so SAVEPOINTs and transactional
      DDL work, and concurrent writers wait on the busy timeout instead of
      failing with "database is locked".
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional, Type

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import (
    DBAPIError,
    DisconnectionError,
    InterfaceError,
    OperationalError,
    ProgrammingError,
    SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from mouzaform.config import Settings, settings
from mouzaform.exceptions import MouzaFormError, StoreUnavailableError, StoreWriteError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models (shared metadata)."""
    pass


# ── Error Translation ─────────────────────────────────────────────────────

_UNAVAILABLE_MARKERS = ("unable to open database", "connection refused", "closed")


def is_unavailable_error(exc: BaseException) -> bool:
    """True when `exc` means the connection itself is unusable."""
    if isinstance(exc, (InterfaceError, DisconnectionError, OSError)):
        return True
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    if isinstance(exc, OperationalError):
        text_ = str(exc.orig if exc.orig is not None else exc).lower()
        return any(marker in text_ for marker in _UNAVAILABLE_MARKERS)
    return False


def translate_store_error(
    exc: BaseException,
    error_cls: Type[MouzaFormError],
    message: str,
    **context: Any,
) -> MouzaFormError:
    """
    Map a driver/SQLAlchemy exception onto the application hierarchy.

    Connection-level failures always become StoreUnavailableError regardless
    of the operation; everything else becomes `error_cls`.
    """
    ctx: Dict[str, Any] = {"original_error": type(exc).__name__, **context}
    if is_unavailable_error(exc):
        return StoreUnavailableError(context=ctx)
    return error_cls(message=message, context=ctx)


# ── SQLite connection setup ───────────────────────────────────────────────

def _configure_sqlite(engine: AsyncEngine) -> None:
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Autocommit at the driver level; BEGIN is emitted below
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


# ── Store Handle ──────────────────────────────────────────────────────────

class Database:
    """
    Explicitly constructed store handle with an open/close lifecycle.

    Lifecycle:
        database = Database("sqlite+aiosqlite:///./database.db")
        database.open()                # creates the engine and pool
        await database.ensure_schema() # once per process
        async with database.transaction() as session:
            ...                        # commit on success, rollback on error
        await database.close()         # disposes the pool

    Any use after close() (or before open()) raises StoreUnavailableError.
    """

    def __init__(
        self,
        url: str,
        *,
        echo: bool = False,
        pool_size: int = 20,
        max_overflow: int = 10,
        pool_pre_ping: bool = True,
    ):
        self.url = url
        self._echo = echo
        self._pool_size = pool_size
        self._max_overflow = max_overflow
        self._pool_pre_ping = pool_pre_ping
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None
        self._schema_ready = False
        self._schema_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "Database":
        return cls(
            config.database_url,
            echo=config.log_level == "DEBUG",
            pool_size=config.db_pool_size,
            max_overflow=config.db_max_overflow,
            pool_pre_ping=config.db_pool_pre_ping,
        )

    @property
    def is_sqlite(self) -> bool:
        return make_url(self.url).get_backend_name() == "sqlite"

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise StoreUnavailableError(
                message="The database connection is not open",
                context={"url_backend": make_url(self.url).get_backend_name()},
            )
        return self._engine

    @property
    def schema_ready(self) -> bool:
        return self._schema_ready

    def open(self) -> None:
        """Create the engine and session factory. Idempotent."""
        if self._engine is not None:
            return

        engine_kwargs: Dict[str, Any] = {
            "echo": self._echo,
            "pool_pre_ping": self._pool_pre_ping,
        }
        if not self.is_sqlite:
            engine_kwargs.update(
                pool_size=self._pool_size,
                max_overflow=self._max_overflow,
                pool_recycle=3600,
            )

        engine = create_async_engine(self.url, **engine_kwargs)
        if self.is_sqlite:
            _configure_sqlite(engine)

        self._engine = engine
        # expire_on_commit=False: ORM rows stay readable after the request commits
        self._session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        logger.info("Database opened (%s)", make_url(self.url).render_as_string(hide_password=True))

    async def close(self) -> None:
        """Dispose the pool. Safe to call more than once."""
        if self._engine is None:
            return
        engine, self._engine = self._engine, None
        self._session_factory = None
        await engine.dispose()
        logger.info("Database closed")

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """
        Scoped transaction: yields a session, commits when the block exits
        cleanly, rolls back when it raises.
        """
        if self._session_factory is None:
            raise StoreUnavailableError(message="The database connection is not open")

        async with self._session_factory() as session:
            try:
                yield session
                try:
                    await session.commit()
                except SQLAlchemyError as e:
                    raise translate_store_error(
                        e, StoreWriteError, "Error committing transaction"
                    ) from e
            except Exception:
                await session.rollback()
                raise

    async def ensure_schema(self) -> None:
        """
        Create form_data and mouza_info if absent; run once per process.

        "already exists" failures (another process won the race) are logged
        and treated as success. Anything else is surfaced.
        """
        if self._schema_ready:
            return

        async with self._schema_lock:
            if self._schema_ready:
                return

            # Registers the tables on Base.metadata
            from mouzaform.models import form_data  # noqa: F401

            try:
                async with self.engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all, checkfirst=True)
            except (OperationalError, ProgrammingError) as e:
                if "already exists" not in str(e).lower():
                    logger.error("Error creating tables: %s", e)
                    raise StoreUnavailableError(
                        message="Could not create the database schema",
                        context={"original_error": type(e).__name__},
                    ) from e
                logger.warning("Tables were created concurrently: %s", e.orig)
            except (SQLAlchemyError, OSError) as e:
                logger.error("Error creating tables: %s", e)
                raise StoreUnavailableError(
                    message="Could not create the database schema",
                    context={"original_error": type(e).__name__},
                ) from e

            self._schema_ready = True
            logger.info("form_data and mouza_info tables created or already exist.")

    async def ping(self) -> bool:
        """Lightweight `SELECT 1` used by the health check."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except (MouzaFormError, SQLAlchemyError, OSError) as e:
            logger.warning("Database ping failed: %s", e)
            return False


# ── Request Dependency ────────────────────────────────────────────────────
def get_database(request: Request) -> Database:
    """
    FastAPI dependency returning the app's Database handle.

    Handlers open `database.transaction()` themselves and return only after
    the block exits, so the commit (and any commit failure) happens before
    the response is built. A yield dependency would commit after the
    response has started.
    """
    return request.app.state.database
