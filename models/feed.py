from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, Index
from sqlalchemy.orm import relationship
from models.base import Base


class Section(Base):
    """
    Editorial section that groups feeds.
    
    A feed whose section is inactive, externally sourced or flagged as
    "other" is left out of the sync catalog.
    """
    __tablename__ = "sections"
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    active = Column(Boolean, nullable=False, default=True)
    external = Column(Boolean, nullable=False, default=False)
    other = Column(Boolean, nullable=True, default=False)
    
    feeds = relationship("Feed", back_populates="section")


class Feed(Base):
    """Remote RSS feed tracked by the catalog"""
    __tablename__ = "feeds"
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    active = Column(Boolean, nullable=False, default=True)
    link = Column(String(2048), nullable=False)
    section_id = Column(Integer, ForeignKey("sections.id"), nullable=True)
    
    section = relationship("Section", back_populates="feeds")
    
    __table_args__ = (
        Index("idx_feed_active", "active"),
    )
