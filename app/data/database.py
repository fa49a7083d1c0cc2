# app/data/database.py
import logging

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import NullPool

from app.core.config import settings

logger = logging.getLogger(__name__)


def get_async_database_url(database_url: str) -> str:
    """Rewrite a plain driver URL to its async driver equivalent."""
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if database_url.startswith("sqlite://"):
        return database_url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return database_url


async_database_url = get_async_database_url(settings.DATABASE_URL)
if async_database_url != settings.DATABASE_URL:
    logger.warning(f"Adapted database URL to async driver: {async_database_url.split('://', 1)[0]}")

engine_kwargs = {}
if async_database_url.startswith("sqlite+aiosqlite://"):
    # aiosqlite connections are bound to the event loop that opened them
    engine_kwargs["poolclass"] = NullPool
else:
    engine_kwargs["pool_pre_ping"] = True

engine = create_async_engine(async_database_url, echo=settings.DEBUG, **engine_kwargs)

AsyncSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=engine, class_=AsyncSession, expire_on_commit=False
)

Base = declarative_base()


async def init_models():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_models():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def get_db():
    db = AsyncSessionLocal()
    try:
        yield db
    finally:
        await db.close()
