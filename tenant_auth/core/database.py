"""
Database connection and session management.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from tenant_auth.core.config import Settings, get_settings

settings = get_settings()


def _connect_args(database_url: str, settings: Settings) -> dict:
    """Driver-level timeouts so a stuck store call fails instead of hanging."""
    driver = make_url(database_url).drivername
    if driver.endswith("+asyncpg"):
        return {
            "timeout": settings.db_connect_timeout,
            "command_timeout": settings.db_statement_timeout,
        }
    if driver.startswith("sqlite"):
        return {"timeout": settings.db_statement_timeout}
    return {}


def build_engine(database_url: str | None = None, *, echo: bool | None = None) -> AsyncEngine:
    """Create an async engine with the configured timeouts."""
    url = database_url or settings.database_url
    kwargs = {}
    if not make_url(url).drivername.startswith("sqlite"):
        kwargs["pool_timeout"] = settings.db_pool_timeout
        kwargs["pool_pre_ping"] = True
    return create_async_engine(
        url,
        echo=settings.debug if echo is None else echo,
        connect_args=_connect_args(url, settings),
        **kwargs,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


engine = build_engine()
async_session_factory = build_session_factory(engine)


async def init_db(bind: AsyncEngine | None = None) -> None:
    """Create all tables (development only; migrations are managed outside this package)."""
    # Populate the metadata before create_all.
    import tenant_auth.models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions.

    Orchestrators open and close their own transaction on the session, so the
    dependency only guarantees the session is closed and a dangling
    transaction is rolled back on error.
    """
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise

