"""
Reconcile canonical items against the store (insert-or-update)
"""

from typing import Optional
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from models.base import ReconcileAction
from models.item import Item
from schemas.normalized import CanonicalItem
from schemas.run import ReconcileResult
from core.exceptions import ReconciliationError
import logging

logger = logging.getLogger(__name__)


class ItemReconciler:
    """
    Insert new items and update matched ones, one transaction per item.
    
    Matching:
    - external_id > 0: exact (external_id, feed_id)
    - otherwise: first item of the feed whose stored title contains the
      candidate title. Several rows can qualify; the lowest id wins.
    
    Ensures:
    - No duplicate rows when the same item is reconciled repeatedly
    - Matched rows are reactivated
    - Atomic writes: a failed item leaves the store untouched
    
    Items of one feed must be reconciled sequentially; the store is not
    relied upon to serialize concurrent writers of the same feed.
    """
    
    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory
    
    @staticmethod
    def match_query(item: CanonicalItem):
        if item.external_id > 0:
            query = select(Item.id).where(
                Item.external_id == item.external_id,
                Item.feed_id == item.feed_id
            )
        else:
            query = select(Item.id).where(
                Item.feed_id == item.feed_id,
                Item.title.contains(item.title, autoescape=True)
            )
        return query.order_by(Item.id.asc()).limit(1)
    
    async def find_existing(self, session: AsyncSession, item: CanonicalItem) -> Optional[int]:
        """Identifier of the stored row matching the item, if any"""
        result = await session.execute(self.match_query(item))
        return result.scalar_one_or_none()
    
    async def reconcile(self, item: CanonicalItem) -> ReconcileResult:
        """
        Insert or update one item.
        
        Returns:
            ReconcileResult with the row id and the action taken
        
        Raises:
            ReconciliationError: On lookup, write or commit failure (rolled back)
        """
        row = item.to_row()
        
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    item_id = await self.find_existing(session, item)
                    
                    if item_id is not None:
                        await session.execute(
                            update(Item)
                            .where(Item.id == item_id)
                            .values(**row)
                            .execution_options(synchronize_session=False)
                        )
                        action = ReconcileAction.UPDATED
                    else:
                        record = Item(**row)
                        session.add(record)
                        await session.flush()
                        item_id = record.id
                        action = ReconcileAction.INSERTED
        
        except Exception as e:
            raise ReconciliationError(
                f"Failed to reconcile item of feed {item.feed_id}",
                context={
                    **item.identity(),
                    "operation": "UPSERT",
                    "table_name": "items"
                },
                original_exception=e
            )
        
        logger.debug(f"Item {action.value}: id={item_id} feed={item.feed_id} external_id={item.external_id}")
        return ReconcileResult(item_id=item_id, action=action)
