"""
Pydantic schemas for data validation and serialization.

Schemas:
    feed: Catalog entries and fetched RSS documents
        (FeedDescriptor, RawDocument, RawItem, Enclosure)
    normalized: Canonical item record (CanonicalItem, NormalizationResult)
    run: Fan-in results and run reporting
        (FeedResult, ReconcileResult, RunSummary)

Usage:
    from schemas.feed import FeedDescriptor, RawItem
    from schemas.normalized import CanonicalItem
    from schemas.run import RunSummary

Example:
    item = CanonicalItem(feed_id=5, external_id=7, title="Example Item")
    row = item.to_row()
    assert row["active"] is True
"""

__all__ = [
    "FeedDescriptor",
    "Enclosure",
    "RawItem",
    "RawDocument",
    "CanonicalItem",
    "NormalizationResult",
    "FeedResult",
    "ReconcileResult",
    "SkippedFeed",
    "FeedFailure",
    "RunSummary",
]
