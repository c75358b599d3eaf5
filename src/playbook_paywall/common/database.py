"""Async engine and session scope for the profile and lead tables."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from playbook_paywall.common.config import PaywallSettings, get_settings
from playbook_paywall.common.models import Base

# Import all model modules so Base.metadata is complete for create_all().
import playbook_paywall.profiles.models  # noqa: F401
import playbook_paywall.leads.models  # noqa: F401


def _engine_options(url: str, timeout: float) -> dict:
    """Driver and pool arguments that bound how long a statement may block."""
    parsed = make_url(url)
    backend = parsed.get_backend_name()
    if backend == "sqlite":
        # sqlite3 busy timeout: how long to wait on another writer's lock.
        connect_args = {"timeout": timeout}
        if parsed.database in (None, "", ":memory:"):
            # Every session must see the same in-memory database.
            connect_args["check_same_thread"] = False
            return {"poolclass": StaticPool, "connect_args": connect_args}
        return {"connect_args": connect_args}
    options = {"pool_timeout": timeout}
    if parsed.get_driver_name() == "asyncpg":
        options["connect_args"] = {"timeout": timeout, "command_timeout": timeout}
    return options


class DatabaseManager:
    """Owns the engine; one session per unit of work."""

    def __init__(self, settings: PaywallSettings | None = None):
        self._settings = settings or get_settings()
        self.engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    async def init(self) -> None:
        url = self._settings.db_url
        self.engine = create_async_engine(
            url, echo=False, **_engine_options(url, self._settings.db_timeout_seconds)
        )
        self._session_factory = async_sessionmaker(
            self.engine, expire_on_commit=False
        )

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Commit on clean exit, roll back on any error."""
        if self._session_factory is None:
            raise RuntimeError("DatabaseManager.init() has not been awaited")
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        """Create tables directly; deployed databases use the Alembic migrations."""
        if self.engine is None:
            raise RuntimeError("DatabaseManager.init() has not been awaited")
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        if self.engine:
            await self.engine.dispose()
            self.engine = None
            self._session_factory = None
