"""
Catalog loader: the feeds eligible for a sync run
"""

from typing import List
from sqlalchemy import select, and_, or_
from sqlalchemy.ext.asyncio import async_sessionmaker
from models.feed import Feed, Section
from schemas.feed import FeedDescriptor
from core.exceptions import CatalogError
import logging

logger = logging.getLogger(__name__)


class CatalogLoader:
    """
    Read the active feed catalog from the store.
    
    A feed is eligible when it is active and either has no owning section
    or its section is active, not externally sourced and not flagged as
    "other". Any store failure is fatal: a partial catalog is never returned.
    """
    
    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory
    
    @staticmethod
    def build_query():
        section_ok = and_(
            Section.active.is_(True),
            Section.external.is_(False),
            or_(Section.other.is_(None), Section.other.is_(False)),
        )
        return (
            select(Feed.id, Feed.link, Feed.active)
            .outerjoin(Section, Section.id == Feed.section_id)
            .where(
                Feed.active.is_(True),
                or_(Section.id.is_(None), section_ok),
            )
            .order_by(Feed.id.asc())
        )
    
    async def load_feeds(self) -> List[FeedDescriptor]:
        """
        Returns:
            Eligible feeds ordered ascending by id
        
        Raises:
            CatalogError: If the store cannot be queried
        """
        try:
            async with self.session_factory() as session:
                result = await session.execute(self.build_query())
                rows = result.all()
        except Exception as e:
            raise CatalogError(
                "Failed to load feed catalog",
                context={"operation": "SELECT", "table_name": "feeds"},
                original_exception=e
            )
        
        feeds = [
            FeedDescriptor(id=row.id, url=row.link.strip(), active=row.active)
            for row in rows
        ]
        logger.info(f"Loaded {len(feeds)} active feeds")
        return feeds
