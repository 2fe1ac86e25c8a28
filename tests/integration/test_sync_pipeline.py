"""
Integration tests for the complete feed sync pipeline
"""

import asyncio
import pytest
from unittest.mock import AsyncMock
from sqlalchemy import select
from ingestion.extractors.rss_extractor import RSSExtractor
from ingestion.loaders.deactivator import FeedItemDeactivator
from ingestion.runner import FeedSyncRunner, PipelineContext
from models.base import RunState
from models.item import Item
from schemas.feed import RawDocument
from conftest import build_rss, make_item, mock_extractor

FEED_5_URL = "http://feeds.example.com/5.xml"


def documents_for(rss_five: bytes):
    """Empty documents for the other eligible feeds, rss_five for feed 5"""
    return {
        "http://feeds.example.com/1.xml": build_rss(""),
        "http://feeds.example.com/2.xml": build_rss(""),
        FEED_5_URL: rss_five,
    }


async def items_of(db_session, feed_id):
    db_session.expire_all()
    result = await db_session.execute(
        select(Item).where(Item.feed_id == feed_id).order_by(Item.id)
    )
    return result.scalars().all()


@pytest.mark.asyncio
async def test_full_sync_updates_existing_and_inserts_new(session_factory, db_session, seeded_feeds, rss_two_items):
    """
    Integration test: Catalog → Fetch → Normalize → Reconcile → Verify
    """
    existing = make_item(external_id=7, title="Existing Story", description="Old", active=False)
    db_session.add(existing)
    await db_session.commit()
    
    context = PipelineContext(
        session_factory,
        extractor=mock_extractor(documents_for(rss_two_items)),
        max_concurrent_feeds=2
    )
    runner = FeedSyncRunner(context)
    
    summary = await runner.run()
    
    assert runner.state == RunState.DONE
    assert summary.state == RunState.DONE
    assert summary.feeds_attempted == 3
    assert summary.feeds_synced == 3
    assert summary.feeds_skipped == []
    assert summary.items_inserted == 1
    assert summary.items_updated == 1
    assert summary.items_reconciled == 2
    assert summary.items_failed == 0
    
    items = await items_of(db_session, 5)
    assert len(items) == 2
    
    updated = items[0]
    assert updated.id == existing.id
    assert updated.external_id == 7
    assert updated.active is True
    assert updated.description == "Updated description"
    assert updated.slug == "news/existing-story"
    
    inserted = items[1]
    assert inserted.title == "Breaking"
    assert inserted.external_id == 0
    assert inserted.active is True
    assert inserted.slug == "news/breaking"
    assert inserted.display_order == 2


@pytest.mark.asyncio
async def test_items_missing_from_feed_are_retired(session_factory, db_session, seeded_feeds, rss_two_items):
    db_session.add_all([
        make_item(external_id=7, title="Existing Story"),
        make_item(external_id=99, title="Dropped Story"),
        make_item(feed_id=2, external_id=99, title="Other feed story"),
    ])
    await db_session.commit()
    
    context = PipelineContext(session_factory, extractor=mock_extractor(documents_for(rss_two_items)))
    summary = await FeedSyncRunner(context).run()
    
    by_external_id = {i.external_id: i for i in await items_of(db_session, 5)}
    assert by_external_id[7].active is True
    assert by_external_id[99].active is False
    assert by_external_id[0].title == "Breaking"
    
    # feed 2 was fetched (empty document) and therefore retired as well
    other = await items_of(db_session, 2)
    assert other[0].active is False
    assert summary.items_deactivated == 3


@pytest.mark.asyncio
async def test_second_run_does_not_duplicate(session_factory, db_session, seeded_feeds, rss_two_items):
    """
    Integration test: Running the sync twice should not create duplicates
    """
    context = PipelineContext(session_factory, extractor=mock_extractor(documents_for(rss_two_items)))
    
    first = await FeedSyncRunner(context).run()
    second = await FeedSyncRunner(context).run()
    
    assert first.items_inserted == 2
    assert second.items_inserted == 0
    assert second.items_updated == 2
    
    items = await items_of(db_session, 5)
    assert len(items) == 2
    assert all(i.active for i in items)


@pytest.mark.asyncio
async def test_items_reconciled_in_document_order(session_factory, db_session, seeded_feeds):
    rss = build_rss("".join(
        f"<item><title>Story {n}</title><link>http://example.com/{n}</link>"
        f"<description>D</description><id>{n}</id></item>"
        for n in (30, 10, 20)
    ))
    context = PipelineContext(session_factory, extractor=mock_extractor(documents_for(rss)))
    
    await FeedSyncRunner(context).run()
    
    assert [i.external_id for i in await items_of(db_session, 5)] == [30, 10, 20]


@pytest.mark.asyncio
async def test_empty_catalog_completes(session_factory):
    summary = await FeedSyncRunner(PipelineContext(session_factory, extractor=mock_extractor({}))).run()
    
    assert summary.state == RunState.DONE
    assert summary.feeds_attempted == 0
    assert summary.items_reconciled == 0


class SlowDeactivator(FeedItemDeactivator):
    """Deactivator that lets the fetch and drain phases run ahead of it"""

    def __init__(self, session_factory, delay: float):
        super().__init__(session_factory)
        self.delay = delay

    async def deactivate(self, feed_id: int) -> int:
        await asyncio.sleep(self.delay)
        return await super().deactivate(feed_id)


class CountingExtractor(RSSExtractor):
    """Extractor that records how many fetches are in flight at once"""

    def __init__(self):
        super().__init__(timeout=5.0)
        self.in_flight = 0
        self.peak = 0

    async def fetch(self, feed):
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await asyncio.sleep(0.05)
        finally:
            self.in_flight -= 1
        return RawDocument(version="2.0")


@pytest.mark.asyncio
async def test_strict_order_keeps_reconciled_items_active(session_factory, db_session, seeded_feeds, rss_two_items):
    db_session.add(make_item(external_id=7, title="Existing Story"))
    await db_session.commit()

    context = PipelineContext(
        session_factory,
        extractor=mock_extractor(documents_for(rss_two_items)),
        deactivator=SlowDeactivator(session_factory, delay=0.3),
        strict_deactivation_order=True
    )
    summary = await FeedSyncRunner(context).run()

    items = await items_of(db_session, 5)
    assert len(items) == 2
    assert all(i.active for i in items)
    assert summary.items_deactivated == 1


@pytest.mark.asyncio
async def test_relaxed_order_lets_late_deactivation_win(session_factory, db_session, seeded_feeds, rss_two_items):
    context = PipelineContext(
        session_factory,
        extractor=mock_extractor(documents_for(rss_two_items)),
        deactivator=SlowDeactivator(session_factory, delay=0.5),
        strict_deactivation_order=False
    )
    summary = await FeedSyncRunner(context).run()

    items = await items_of(db_session, 5)
    assert summary.items_inserted == 2
    assert [i.active for i in items] == [False, False]


@pytest.mark.asyncio
@pytest.mark.parametrize("cap", [1, 2])
async def test_concurrent_fetches_respect_cap(session_factory, seeded_feeds, cap):
    extractor = CountingExtractor()
    context = PipelineContext(session_factory, extractor=extractor, max_concurrent_feeds=cap)

    summary = await FeedSyncRunner(context).run()

    assert summary.feeds_synced == 3
    assert extractor.peak == cap


@pytest.mark.asyncio
async def test_unbounded_fetches_run_together(session_factory, seeded_feeds):
    extractor = CountingExtractor()
    context = PipelineContext(session_factory, extractor=extractor, max_concurrent_feeds=0)

    await FeedSyncRunner(context).run()

    assert extractor.peak == 3


@pytest.mark.asyncio
async def test_aborted_run_cancels_outstanding_tasks(session_factory, seeded_feeds, rss_two_items):
    cancelled = []

    async def never_finishes(feed_id):
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            cancelled.append(feed_id)
            raise

    deactivator = AsyncMock()
    deactivator.deactivate = never_finishes
    reconciler = AsyncMock()
    reconciler.reconcile = AsyncMock(side_effect=RuntimeError("store driver crashed"))

    context = PipelineContext(
        session_factory,
        extractor=mock_extractor(documents_for(rss_two_items)),
        deactivator=deactivator,
        reconciler=reconciler,
        strict_deactivation_order=False
    )

    with pytest.raises(RuntimeError):
        await FeedSyncRunner(context).run()

    assert sorted(cancelled) == [1, 2, 5]
