"""
Database configuration and session management.
Uses SQLAlchemy 2.0 with async support.
"""
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from app.config import settings


def _engine_options() -> dict:
    options = {
        "echo": settings.debug,
        "pool_pre_ping": True,
    }
    # SQLite (tests, local tooling) does not accept pool sizing
    if not settings.database_url.startswith("sqlite"):
        options.update(pool_size=20, max_overflow=10)
    return options


# Create async engine
engine = create_async_engine(settings.database_url, **_engine_options())

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for getting async database sessions.

    Commits on success and rolls back when the request raises.

    Yields:
        AsyncSession: Database session

    Example:
        ```python
        @router.get("/tweets")
        async def list_tweets(db: AsyncSession = Depends(get_db)):
            result = await db.execute(select(Tweet))
            return result.scalars().all()
        ```
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
