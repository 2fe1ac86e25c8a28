"""
Database engine and session management with SQLAlchemy async
"""

from typing import Optional
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from core.config import settings
import logging

logger = logging.getLogger(__name__)


def create_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """Create the async engine shared by every sync task"""
    url = database_url or settings.DATABASE_URL
    logger.debug(f"Creating engine for {url.split('@')[-1]}")
    return create_async_engine(
        url,
        echo=False,
        pool_pre_ping=True,
        future=True
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """
    Build the session factory handed to the pipeline.
    
    Every write operation (deactivation, reconciliation) opens its own
    session from this factory and scopes one transaction to it.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )
