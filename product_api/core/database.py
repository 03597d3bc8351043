from sqlmodel import SQLModel
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, AsyncSession, async_sessionmaker
from product_api.core.config import Settings
import logging

logger = logging.getLogger(__name__)


def build_engine(settings: Settings) -> AsyncEngine:
    options = {
        "echo": settings.log_level == "DEBUG",
        "future": True,
    }
    # SQLite pools connections differently and rejects the sizing options
    if not make_url(settings.database_url).get_backend_name().startswith("sqlite"):
        options["pool_size"] = settings.db_pool_size
        options["max_overflow"] = settings.db_max_overflow
    return create_async_engine(settings.database_url, **options)


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_db_and_tables(engine: AsyncEngine):
    logger.info("Creating database tables")
    logger.info("Database backend: %s", engine.url.get_backend_name())
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def close_db(engine: AsyncEngine):
    await engine.dispose()
