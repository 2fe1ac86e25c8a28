"""
Pydantic schema for the canonical, persistable item record
"""

from pydantic import BaseModel, Field
from typing import Dict, Any, List


# Columns rewritten when an existing row is matched
MUTABLE_FIELDS = (
    "external_id",
    "feed_id",
    "title",
    "link",
    "publish_date",
    "creator",
    "display_order",
    "subject",
    "category",
    "description",
    "content",
    "image_url",
    "hour",
    "related",
    "active",
    "slug",
)


class CanonicalItem(BaseModel):
    """
    Normalized item ready for reconciliation.
    
    Field names match the columns of the items table.
    """
    
    # Identity
    external_id: int = 0
    feed_id: int
    
    # Content
    title: str = ""
    description: str = ""
    link: str = ""
    publish_date: str = ""
    content: str = ""
    creator: str = ""
    image_url: str = ""
    category: str = ""
    subject: str = ""
    hour: str = ""
    related: str = ""
    slug: str = ""
    display_order: int = 0
    
    # Status
    active: bool = True
    
    def to_row(self) -> Dict[str, Any]:
        """Column values for an insert or update"""
        data = self.dict()
        return {field: data[field] for field in MUTABLE_FIELDS}
    
    def identity(self) -> Dict[str, Any]:
        """Context identifying the item in logs and errors"""
        return {
            "feed_id": self.feed_id,
            "external_id": self.external_id,
            "title": self.title,
        }


class NormalizationResult(BaseModel):
    """Canonical item plus any recoverable warnings raised while building it"""
    item: CanonicalItem
    warnings: List[str] = Field(default_factory=list)
