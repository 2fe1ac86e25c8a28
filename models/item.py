from sqlalchemy import Column, BigInteger, Integer, String, Text, Boolean, DateTime, ForeignKey, Index
from datetime import datetime
from models.base import Base


class Item(Base):
    """
    Persisted feed item.
    
    Identity within a feed:
    - external_id > 0: (feed_id, external_id)
    - otherwise: first row of the feed whose title contains the candidate title
    
    Lifecycle:
    - Every row of a feed is deactivated before a sync of that feed
    - Rows still present in the fetched document are reactivated on reconcile
    """
    __tablename__ = "items"
    
    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    external_id = Column(BigInteger, nullable=False, default=0)
    feed_id = Column(Integer, ForeignKey("feeds.id"), nullable=False, index=True)
    
    # Content
    title = Column(String(500), nullable=False, default="")
    link = Column(String(2048), nullable=False, default="")
    publish_date = Column(String(100), nullable=False, default="")  # Verbatim pubDate
    creator = Column(String(255), nullable=False, default="")
    display_order = Column(Integer, nullable=False, default=0)
    subject = Column(String(255), nullable=False, default="")
    category = Column(String(255), nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    content = Column(Text, nullable=False, default="")
    image_url = Column(String(2048), nullable=False, default="")
    hour = Column(String(50), nullable=False, default="")
    related = Column(Text, nullable=False, default="")
    slug = Column(String(2048), nullable=False, default="")
    
    # Status
    active = Column(Boolean, nullable=False, default=True, index=True)
    
    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    
    __table_args__ = (
        Index("idx_item_feed_external", "feed_id", "external_id"),
        Index("idx_item_feed_title", "feed_id", "title"),
    )
