"""
Retire a feed's stored items before its fresh items are reconciled
"""

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import async_sessionmaker
from models.item import Item
from core.exceptions import DeactivationError
import logging

logger = logging.getLogger(__name__)


class FeedItemDeactivator:
    """
    Mark every stored item of a feed inactive in one transaction.
    
    Items still present in the feed are reactivated afterwards by the
    reconciler, so only items that dropped out of the feed stay inactive.
    
    Attributes:
        keep_latest: Number of most recently created items left untouched
            (0 deactivates every item of the feed)
    """
    
    def __init__(self, session_factory: async_sessionmaker, keep_latest: int = 0):
        self.session_factory = session_factory
        self.keep_latest = max(keep_latest, 0)
    
    async def deactivate(self, feed_id: int) -> int:
        """
        Returns:
            Number of rows affected
        
        Raises:
            DeactivationError: If the transaction cannot be started, executed or committed
        """
        logger.debug(f"Deactivating items of feed {feed_id}")
        
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    stmt = (
                        update(Item)
                        .where(Item.feed_id == feed_id)
                        .values(active=False)
                        .execution_options(synchronize_session=False)
                    )
                    
                    if self.keep_latest:
                        newest = await session.execute(
                            select(Item.id)
                            .where(Item.feed_id == feed_id)
                            .order_by(Item.created_at.desc(), Item.id.desc())
                            .limit(self.keep_latest)
                        )
                        keep_ids = newest.scalars().all()
                        if keep_ids:
                            stmt = stmt.where(Item.id.not_in(keep_ids))
                    
                    result = await session.execute(stmt)
                    count = result.rowcount
        
        except Exception as e:
            raise DeactivationError(
                f"Failed to deactivate items of feed {feed_id}",
                context={
                    "feed_id": feed_id,
                    "operation": "UPDATE",
                    "table_name": "items"
                },
                original_exception=e
            )
        
        logger.info(f"Deactivated {count} items of feed {feed_id}")
        return count
