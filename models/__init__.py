"""
SQLAlchemy ORM models for the feed store.

Models:
    base: Declarative base and shared enums (ReconcileAction, RunState)
    feed: Sections and the feeds they own
    item: Items reconciled from fetched feed documents

Database Schema:
    sections(id, active, external, other)
    feeds(id, active, link, section_id)
    items(id, external_id, feed_id, title, link, publish_date, creator,
          display_order, subject, category, description, content,
          image_url, hour, related, active, slug, created_at)

Usage:
    from models.feed import Feed, Section
    from models.item import Item

Relationships:
    - Section → Feed (one-to-many, optional on the feed side)
    - Feed → Item (one-to-many, feed_id immutable once created)
"""

__all__ = [
    "Base",
    "ReconcileAction",
    "RunState",
    "Section",
    "Feed",
    "Item",
]
