from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from typing import AsyncGenerator

from config.settings import settings, IS_PRODUCTION

# Validate production database configuration
if IS_PRODUCTION:
    if not settings.database_url:
        raise RuntimeError("DATABASE_URL must be set in production. SQLite is not allowed in production.")
    if "sqlite" in settings.database_url.lower():
        raise RuntimeError("SQLite is forbidden in production. Use a PostgreSQL DATABASE_URL.")

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./tably.db"


def to_async_url(url: str) -> str:
    """
    Point a database URL at an async driver.

    Hosted Postgres providers hand out plain postgres:// or postgresql://
    URLs; those are rewritten to asyncpg. Anything else is returned as is.
    """
    for prefix in ("postgresql://", "postgres://"):
        if url.startswith(prefix):
            return "postgresql+asyncpg://" + url[len(prefix):]
    return url


DATABASE_URL = to_async_url(settings.database_url or DEFAULT_DATABASE_URL)

engine_options = {"echo": False, "future": True}
if DATABASE_URL.startswith("postgresql"):
    # Managed Postgres drops idle connections
    engine_options.update(pool_pre_ping=True, pool_recycle=1800)

engine = create_async_engine(DATABASE_URL, **engine_options)

Base = declarative_base()

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def init_db():
    """
    Create all tables. Called on application startup.
    """
    async with engine.begin() as conn:
        # Register every model with Base before create_all
        import database_models  # noqa: F401
        await conn.run_sync(Base.metadata.create_all)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function that yields a database session.
    Commits when the request handler finishes, rolls back on error.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
