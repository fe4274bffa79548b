"""Database engine and session management."""

from typing import Any, AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from core.config import settings


def _connect_args(url: str) -> dict[str, Any]:
    """asyncpg connection options.

    Transaction-mode poolers (Supavisor, PgBouncer) cannot keep prepared
    statements, so the statement cache is off behind them.
    """
    if not url.startswith("postgresql+asyncpg://"):
        return {}
    args: dict[str, Any] = {"server_settings": {"application_name": settings.app_name}}
    if settings.database_behind_pooler or "pooler.supabase.com" in url:
        args["statement_cache_size"] = 0
    return args


engine = create_async_engine(
    settings.async_database_url,
    echo=settings.debug,
    pool_pre_ping=True,
    pool_size=settings.database_pool_size,
    max_overflow=settings.database_max_overflow,
    connect_args=_connect_args(settings.async_database_url),
)

# One session per unit of work; committed rows stay readable after commit
async_session_factory = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions."""
    async with async_session_factory() as session:
        yield session
