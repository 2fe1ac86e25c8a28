"""
Pydantic schemas for fan-in results and run reporting
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from models.base import ReconcileAction, RunState
from schemas.feed import FeedDescriptor, RawDocument


class FeedResult(BaseModel):
    """
    Tagged result delivered through the fan-in queue.
    
    Exactly one of document / error is set.
    """
    feed: FeedDescriptor
    document: Optional[RawDocument] = None
    error: Optional[Exception] = None
    
    @property
    def ok(self) -> bool:
        return self.error is None
    
    class Config:
        arbitrary_types_allowed = True


class ReconcileResult(BaseModel):
    """Row identifier and the write performed for one item"""
    item_id: int
    action: ReconcileAction


class SkippedFeed(BaseModel):
    """Feed that could not be synced, with the reason"""
    feed_id: int
    url: str
    error_type: str
    reason: str


class FeedFailure(BaseModel):
    """Non-fatal failure attached to a feed or one of its items"""
    feed_id: int
    error_type: str
    reason: str
    external_id: Optional[int] = None
    title: Optional[str] = None


class RunSummary(BaseModel):
    """Aggregate report of one sync run"""
    state: RunState = RunState.LOADING
    started_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None
    
    feeds_attempted: int = 0
    feeds_synced: int = 0
    feeds_skipped: List[SkippedFeed] = Field(default_factory=list)
    deactivation_failures: List[FeedFailure] = Field(default_factory=list)
    item_failures: List[FeedFailure] = Field(default_factory=list)
    
    items_inserted: int = 0
    items_updated: int = 0
    items_failed: int = 0
    items_deactivated: int = 0
    normalization_warnings: int = 0
    
    @property
    def items_reconciled(self) -> int:
        return self.items_inserted + self.items_updated
    
    def record_reconcile(self, result: ReconcileResult):
        if result.action == ReconcileAction.INSERTED:
            self.items_inserted += 1
        else:
            self.items_updated += 1
    
    def finish(self):
        self.state = RunState.DONE
        self.completed_at = datetime.utcnow()
        self.duration_seconds = (self.completed_at - self.started_at).total_seconds()
