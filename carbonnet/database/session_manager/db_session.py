"""
Async session manager following kkb_fastapi pattern.

``Database.init`` is called once per process (app lifespan, test fixtures);
afterwards ``async with Database() as session`` yields a session that is
committed on success and rolled back on error.
"""
import logging
from typing import Any, Optional

from sqlalchemy.engine.url import URL
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from carbonnet.database.session_manager.exceptions import (
    DatabaseNotInitialized,
    DatabaseTransactionError,
)

logger = logging.getLogger(__name__)


class Database:
    _async_engine: Optional[AsyncEngine] = None
    _async_session_maker: Optional[async_sessionmaker] = None

    def __init__(self):
        if Database._async_session_maker is None:
            raise DatabaseNotInitialized("Call Database.init() before opening sessions")
        self.session: Optional[AsyncSession] = None

    @classmethod
    def init(cls, async_db_url: URL | str, engine_kw: Optional[dict[str, Any]] = None):
        """
        Create the engine and session maker.

        Args:
            async_db_url: Async driver URL
            engine_kw: Extra keyword arguments for create_async_engine
        """
        cls._async_engine = create_async_engine(async_db_url, **(engine_kw or {}))
        cls._async_session_maker = async_sessionmaker(
            bind=cls._async_engine, expire_on_commit=False, class_=AsyncSession
        )
        logger.debug(f"Database initialized for {cls._async_engine.url.drivername}")

    @classmethod
    async def dispose(cls):
        if cls._async_engine is not None:
            await cls._async_engine.dispose()
        cls._async_engine = None
        cls._async_session_maker = None

    async def __aenter__(self) -> AsyncSession:
        self.session = Database._async_session_maker()
        return self.session

    async def __aexit__(self, exc_type, exc_value, traceback):
        try:
            if exc_type is not None:
                await self.session.rollback()
            else:
                await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Database transaction failed: {e}", exc_info=True)
            raise DatabaseTransactionError(str(e)) from e
        finally:
            await self.session.close()
