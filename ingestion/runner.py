# ============================================================================
# File: ingestion/runner.py
# Description: Feed sync orchestrator (fetch -> normalize -> reconcile)
# ============================================================================
"""
Feed Sync Runner - Orchestrates the fetch, normalize and reconcile pipeline.

This module provides concurrent feed synchronization with:
- One fetch task and one deactivation task per feed, bounded by a semaphore
- Fan-in of tagged per-feed results through a single queue
- Sequential, document-ordered reconciliation of each feed's items
- Partial failure support (a failed feed or item never aborts the run)
- A run summary aggregating every non-fatal failure
"""

import asyncio
from typing import Dict, List, Optional, Union
from sqlalchemy.ext.asyncio import async_sessionmaker
import logging

from ingestion.catalog import CatalogLoader
from ingestion.extractors.rss_extractor import RSSExtractor
from ingestion.transformers.normalizer import ItemNormalizer
from ingestion.loaders.deactivator import FeedItemDeactivator
from ingestion.loaders.reconciler import ItemReconciler
from models.base import RunState
from schemas.feed import FeedDescriptor, RawDocument
from schemas.run import FeedResult, FeedFailure, RunSummary, SkippedFeed
from core.config import Settings, settings as default_settings
from core.exceptions import (
    FeedSyncException,
    FeedError,
    DeactivationError,
    ReconciliationError
)

logger = logging.getLogger(__name__)


class PipelineContext:
    """
    Everything a sync task needs, passed explicitly to each task.

    Attributes:
        session_factory: Shared async session factory (one transaction per write)
        catalog: Loads the feeds of the run
        extractor: Fetches and decodes feed documents
        normalizer: Maps raw items to canonical items
        deactivator: Retires a feed's stored items
        reconciler: Inserts or updates canonical items
        max_concurrent_feeds: Cap on in-flight feeds (0 = unbounded)
        strict_deactivation_order: Wait for a feed's deactivation before
            reconciling its items
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        catalog: Optional[CatalogLoader] = None,
        extractor: Optional[RSSExtractor] = None,
        normalizer: Optional[ItemNormalizer] = None,
        deactivator: Optional[FeedItemDeactivator] = None,
        reconciler: Optional[ItemReconciler] = None,
        max_concurrent_feeds: int = 0,
        strict_deactivation_order: bool = True
    ):
        self.session_factory = session_factory
        self.catalog = catalog or CatalogLoader(session_factory)
        self.extractor = extractor or RSSExtractor()
        self.normalizer = normalizer or ItemNormalizer()
        self.deactivator = deactivator or FeedItemDeactivator(session_factory)
        self.reconciler = reconciler or ItemReconciler(session_factory)
        self.max_concurrent_feeds = max_concurrent_feeds
        self.strict_deactivation_order = strict_deactivation_order

    @classmethod
    def from_settings(
        cls,
        session_factory: async_sessionmaker,
        config: Optional[Settings] = None
    ) -> "PipelineContext":
        """Build a context configured from application settings"""
        config = config or default_settings
        return cls(
            session_factory=session_factory,
            extractor=RSSExtractor(
                timeout=config.FETCH_TIMEOUT,
                user_agent=config.USER_AGENT
            ),
            deactivator=FeedItemDeactivator(
                session_factory,
                keep_latest=config.DEACTIVATION_KEEP_LATEST
            ),
            max_concurrent_feeds=config.MAX_CONCURRENT_FEEDS,
            strict_deactivation_order=config.STRICT_DEACTIVATION_ORDER
        )


class FeedSyncRunner:
    """
    Feed sync orchestrator.

    State machine per run: loading -> fetching -> draining -> done

    Responsibilities:
    - Load the catalog (fatal on failure)
    - Launch fetch and deactivation tasks for every feed
    - Drain exactly one result per feed, in arrival order
    - Normalize and reconcile each feed's items in document order
    - Join every deactivation task before reporting
    """

    def __init__(self, context: PipelineContext):
        self.context = context
        self.state = RunState.LOADING

    def _transition(self, summary: RunSummary, state: RunState):
        logger.debug(f"Run state: {self.state.value} -> {state.value}")
        self.state = state
        summary.state = state

    async def run(self) -> RunSummary:
        """
        Run one full sync over the catalog.

        Returns:
            RunSummary with per-feed and per-item outcomes

        Raises:
            CatalogError: If the catalog cannot be loaded (nothing is fetched)
        """
        summary = RunSummary()
        self.state = RunState.LOADING

        # --------------------------------------------------
        # LOADING
        # --------------------------------------------------
        feeds = await self.context.catalog.load_feeds()
        summary.feeds_attempted = len(feeds)

        # --------------------------------------------------
        # FETCHING
        # --------------------------------------------------
        self._transition(summary, RunState.FETCHING)

        limit = self.context.max_concurrent_feeds or max(len(feeds), 1)
        fetch_slots = asyncio.Semaphore(limit)
        write_slots = asyncio.Semaphore(limit)
        results: asyncio.Queue = asyncio.Queue(maxsize=1)

        deactivations: Dict[int, asyncio.Task] = {
            feed.id: asyncio.create_task(self._deactivate(feed, write_slots))
            for feed in feeds
        }
        fetches: List[asyncio.Task] = [
            asyncio.create_task(self._fetch(feed, fetch_slots, results))
            for feed in feeds
        ]

        # --------------------------------------------------
        # DRAINING
        # --------------------------------------------------
        self._transition(summary, RunState.DRAINING)

        try:
            for _ in range(len(feeds)):
                result: FeedResult = await results.get()

                if not result.ok:
                    self._record_skip(summary, result)
                    continue

                if self.context.strict_deactivation_order:
                    await deactivations[result.feed.id]

                await self._reconcile_feed(result.feed, result.document, summary)

        except BaseException:
            pending = [*fetches, *deactivations.values()]
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            raise

        await asyncio.gather(*fetches)

        for feed in feeds:
            outcome = await deactivations[feed.id]
            if isinstance(outcome, DeactivationError):
                summary.deactivation_failures.append(FeedFailure(
                    feed_id=feed.id,
                    error_type=type(outcome).__name__,
                    reason=outcome.message
                ))
            else:
                summary.items_deactivated += outcome

        # --------------------------------------------------
        # DONE
        # --------------------------------------------------
        summary.finish()
        self.state = RunState.DONE

        logger.info(
            f"Sync run completed: feeds={summary.feeds_attempted} "
            f"synced={summary.feeds_synced} skipped={len(summary.feeds_skipped)} "
            f"inserted={summary.items_inserted} updated={summary.items_updated} "
            f"failed={summary.items_failed} deactivated={summary.items_deactivated}"
        )
        return summary

    async def _fetch(
        self,
        feed: FeedDescriptor,
        slots: asyncio.Semaphore,
        results: asyncio.Queue
    ):
        """Fetch one feed and deliver exactly one tagged result"""
        async with slots:
            logger.info(f"Fetching feed {feed.id}: {feed.url}")
            try:
                document = await self.context.extractor.fetch(feed)
                result = FeedResult(feed=feed, document=document)
            except FeedError as e:
                result = FeedResult(feed=feed, error=e)
            except Exception as e:
                result = FeedResult(feed=feed, error=FeedError(
                    f"Unexpected error fetching {feed.url}",
                    context={"feed_id": feed.id, "feed_url": feed.url},
                    original_exception=e
                ))

        await results.put(result)

    async def _deactivate(
        self,
        feed: FeedDescriptor,
        slots: asyncio.Semaphore
    ) -> Union[int, DeactivationError]:
        async with slots:
            try:
                return await self.context.deactivator.deactivate(feed.id)
            except DeactivationError as e:
                logger.error(
                    f"Deactivation failed for feed {feed.id}: {e.message}",
                    extra={"error_context": e.to_dict()}
                )
                return e

    async def _reconcile_feed(
        self,
        feed: FeedDescriptor,
        document: RawDocument,
        summary: RunSummary
    ):
        """Normalize and reconcile a feed's items strictly in document order"""
        inserted, updated = summary.items_inserted, summary.items_updated

        for raw_item in document.items:
            normalized = self.context.normalizer.normalize(raw_item, feed.id)
            for warning in normalized.warnings:
                summary.normalization_warnings += 1
                logger.warning(f"Feed {feed.id}: {warning}")

            item = normalized.item
            try:
                result = await self.context.reconciler.reconcile(item)
            except ReconciliationError as e:
                summary.items_failed += 1
                summary.item_failures.append(FeedFailure(
                    feed_id=feed.id,
                    error_type=type(e).__name__,
                    reason=e.message,
                    external_id=item.external_id,
                    title=item.title
                ))
                logger.error(
                    f"Reconciliation failed for feed={feed.id} "
                    f"external_id={item.external_id} title={item.title!r}",
                    extra={"error_context": e.to_dict()}
                )
                continue

            summary.record_reconcile(result)

        summary.feeds_synced += 1
        logger.info(
            f"Feed {feed.id} synced: {len(document.items)} items, "
            f"inserted={summary.items_inserted - inserted}, "
            f"updated={summary.items_updated - updated}"
        )

    @staticmethod
    def _record_skip(summary: RunSummary, result: FeedResult):
        error = result.error
        reason = error.message if isinstance(error, FeedSyncException) else str(error)
        summary.feeds_skipped.append(SkippedFeed(
            feed_id=result.feed.id,
            url=result.feed.url,
            error_type=type(error).__name__,
            reason=reason
        ))
        logger.error(
            f"Skipping feed {result.feed.id} ({result.feed.url}): {reason}",
            extra={"error_context": error.to_dict() if isinstance(error, FeedSyncException) else {}}
        )
