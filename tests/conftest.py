"""
Pytest configuration and fixtures
"""

import os
import pytest
import pytest_asyncio
import httpx
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool
from models.base import Base
from models.feed import Feed, Section
from models.item import Item
from ingestion.extractors.rss_extractor import RSSExtractor
from typing import AsyncGenerator, Dict


def build_rss(items_xml: str, version: str = "2.0", encoding: str = "UTF-8") -> bytes:
    """Wrap <item> elements in an RSS document"""
    return (
        f'<?xml version="1.0" encoding="{encoding}"?>\n'
        f'<rss version="{version}" '
        f'xmlns:dc="http://purl.org/dc/elements/1.1/" '
        f'xmlns:content="http://purl.org/rss/1.0/modules/content/">'
        f"<channel>"
        f"<title>Test Channel</title>"
        f"<link>http://example.com/</link>"
        f"<description>Channel description</description>"
        f"<pubDate>Mon, 15 Jan 2024 10:00:00 GMT</pubDate>"
        f"{items_xml}"
        f"</channel></rss>"
    ).encode(encoding)


def mock_extractor(documents: Dict[str, bytes], status_codes: Dict[str, int] = None) -> RSSExtractor:
    """RSSExtractor served by an in-memory transport keyed by URL"""
    status_codes = status_codes or {}

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if url in status_codes:
            return httpx.Response(status_codes[url], content=b"")
        if url not in documents:
            raise httpx.ConnectError("Connection refused", request=request)
        return httpx.Response(200, content=documents[url])

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RSSExtractor(timeout=5.0, client=client)


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """Create test database engine"""
    url = os.environ.get(
        "TEST_DATABASE_URL",
        f"sqlite+aiosqlite:///{tmp_path / 'feeds_test.db'}"
    )
    engine = create_async_engine(
        url,
        echo=False,
        poolclass=NullPool,  # Disable connection pooling for tests
    )
    
    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    
    yield engine
    
    # Drop all tables after test
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker:
    """Session factory shared by the components under test"""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for assertions and seeding"""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def seeded_feeds(db_session):
    """
    Catalog fixture:
    - feed 1: no section (eligible)
    - feed 2: active section (eligible)
    - feed 3: inactive feed
    - feed 4: inactive section
    - feed 5: active section (eligible)
    - feed 6: external section
    - feed 7: section flagged "other"
    """
    db_session.add_all([
        Section(id=1, active=True, external=False, other=False),
        Section(id=2, active=False, external=False, other=False),
        Section(id=3, active=True, external=True, other=False),
        Section(id=4, active=True, external=False, other=True),
    ])
    db_session.add_all([
        Feed(id=1, active=True, link="http://feeds.example.com/1.xml", section_id=None),
        Feed(id=2, active=True, link="http://feeds.example.com/2.xml", section_id=1),
        Feed(id=3, active=False, link="http://feeds.example.com/3.xml", section_id=1),
        Feed(id=4, active=True, link="http://feeds.example.com/4.xml", section_id=2),
        Feed(id=5, active=True, link="http://feeds.example.com/5.xml", section_id=1),
        Feed(id=6, active=True, link="http://feeds.example.com/6.xml", section_id=3),
        Feed(id=7, active=True, link="http://feeds.example.com/7.xml", section_id=4),
    ])
    await db_session.commit()


@pytest.fixture
def rss_two_items() -> bytes:
    """Feed document with one identified item and one without external id"""
    return build_rss(
        "<item>"
        "<title>Existing Story</title>"
        "<link>http://example.com/news/existing-story</link>"
        "<description>Updated description</description>"
        "<id>7</id>"
        "<order>1</order>"
        "</item>"
        "<item>"
        "<title>Breaking</title>"
        "<link>http://example.com/news/breaking?utm=rss</link>"
        "<description>Breaking description</description>"
        "<order>2</order>"
        "</item>"
    )


def make_item(**overrides) -> Item:
    """Stored item with sensible defaults"""
    values = dict(
        external_id=0,
        feed_id=5,
        title="Stored",
        link="http://example.com/stored",
        active=True,
    )
    values.update(overrides)
    return Item(**values)
