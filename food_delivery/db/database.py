import logging
from typing import Any, Dict

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .base import Base
from ..core.config import Config


logger = logging.getLogger(__name__)

DATABASE_URL = Config.DATABASE_URL


def _engine_options(url: str) -> Dict[str, Any]:
    """Connection bounds for the configured driver."""
    options: Dict[str, Any] = {
        "echo": Config.DB_ECHO,
        "connect_args": {"timeout": Config.DB_CONNECT_TIMEOUT},
    }
    if not url.startswith("sqlite"):
        options.update(
            pool_size=Config.DB_POOL_SIZE,
            pool_timeout=Config.DB_POOL_TIMEOUT,
            pool_pre_ping=True,
        )
    return options


def enable_sqlite_foreign_keys(async_engine: AsyncEngine) -> None:
    """SQLite leaves foreign key enforcement off unless asked per connection."""
    if async_engine.dialect.name != "sqlite":
        return

    @event.listens_for(async_engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_async_engine(DATABASE_URL, **_engine_options(DATABASE_URL))
enable_sqlite_foreign_keys(engine)
AsyncSessionLocal = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


async def init_db():
    # register every model on the metadata before creating tables
    from .. import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ready")


async def close_db():
    await engine.dispose()
    logger.info("Database engine disposed")
