from functools import lru_cache

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from api.src.config import get_settings

Base = declarative_base()

def async_database_url(url: str) -> str:
    # Convert postgresql:// to postgresql+asyncpg://
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url

@lru_cache()
def get_engine() -> AsyncEngine:
    settings = get_settings()
    return create_async_engine(async_database_url(settings.database_url), echo=False)

@lru_cache()
def get_sessionmaker() -> async_sessionmaker:
    return async_sessionmaker(get_engine(), class_=AsyncSession, expire_on_commit=False)

async def get_db():
    async with get_sessionmaker()() as session:
        try:
            yield session
        finally:
            await session.close()

async def init_db(engine: AsyncEngine = None):
    from api.src.models import build  # noqa: F401

    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
