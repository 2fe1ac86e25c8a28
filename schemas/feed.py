"""
Pydantic schemas for catalog entries and fetched RSS documents
"""

from pydantic import BaseModel, Field, validator
from typing import Optional, List, Any


def _coerce_int(v: Any) -> int:
    """Numeric feed fields fall back to 0 when absent or malformed"""
    if v is None:
        return 0
    if isinstance(v, int):
        return v
    try:
        return int(str(v).strip())
    except (ValueError, TypeError):
        return 0


class FeedDescriptor(BaseModel):
    """Feed selected for a sync run. Read-only for the whole run."""
    id: int
    url: str
    active: bool = True
    
    class Config:
        from_attributes = True
        frozen = True


class Enclosure(BaseModel):
    """Media attached to an item"""
    url: str = ""
    mime_type: str = ""


class RawItem(BaseModel):
    """
    One <item> of an RSS 2.0 document, as declared by the source.
    
    Required RSS fields are title, link and description; every other
    field is optional and defaults to an empty value.
    """
    
    # Required
    title: str = ""
    link: str = ""
    description: str = ""
    
    # Optional
    content: str = ""  # content:encoded
    pub_date: str = ""
    comments: str = ""
    guid: str = ""
    external_id: int = 0  # <id>
    subject: str = ""
    dc_subject: str = ""
    creator: str = ""
    dc_creator: str = ""
    enclosure: Optional[Enclosure] = None
    category: str = ""
    hour: str = ""  # <hora>
    related: str = ""  # <relacionadas>
    order: int = 0
    
    @validator("external_id", "order", pre=True)
    def parse_int(cls, v):
        return _coerce_int(v)


class RawDocument(BaseModel):
    """Decoded RSS document for one feed"""
    version: str
    title: str = ""
    link: str = ""
    description: str = ""
    pub_date: str = ""
    items: List[RawItem] = Field(default_factory=list)
