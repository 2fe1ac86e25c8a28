"""
Feed sync pipeline components.

This package contains all components for the fetch → normalize → reconcile
pipeline:

Modules:
    catalog: Loads the feeds eligible for a run
    runner: Orchestrator that fans feeds out and drains their results
    scheduler: APScheduler integration for periodic syncs

Subpackages:
    extractors: RSS 2.0 fetching and decoding
    transformers: Raw item → canonical item normalization
    loaders: Feed item deactivation and insert-or-update reconciliation

Architecture:
    Each run follows four states:

    1. loading - Read the active catalog (fatal on failure)
    2. fetching - One fetch task and one deactivation task per feed
    3. draining - One tagged result per feed, items normalized and
       reconciled in document order
    4. done - Every deactivation task joined, summary returned

    A failed feed or item is logged, recorded in the summary and skipped.

Usage:
    from core.database import create_engine, create_session_factory
    from ingestion.runner import FeedSyncRunner, PipelineContext

Example:
    engine = create_engine()
    context = PipelineContext.from_settings(create_session_factory(engine))

    summary = await FeedSyncRunner(context).run()
    print(f"Reconciled {summary.items_reconciled} items")

Error Handling:
    All components raise exceptions from core.exceptions; only CatalogError
    escapes a run.
"""

__all__ = [
    "CatalogLoader",
    "RSSExtractor",
    "ItemNormalizer",
    "FeedItemDeactivator",
    "ItemReconciler",
    "PipelineContext",
    "FeedSyncRunner",
    "FeedSyncScheduler",
]
