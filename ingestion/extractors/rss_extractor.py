"""
RSS Feed Extractor

Fetches RSS 2.0 documents over HTTP and decodes them into RawDocument
models. Performs no store access.
"""

import asyncio
import re
from typing import Optional
from xml.etree import ElementTree as ET

import httpx

from core.config import settings
from core.exceptions import FetchError, FetchTimeoutError, FormatError
from schemas.feed import Enclosure, FeedDescriptor, RawDocument, RawItem
import logging

logger = logging.getLogger(__name__)

DC_NS = "http://purl.org/dc/elements/1.1/"
CONTENT_NS = "http://purl.org/rss/1.0/modules/content/"
SUPPORTED_VERSION = "2.0"

_DECLARED_ENCODING = re.compile(rb"""^\s*<\?xml[^>]*encoding=["']([A-Za-z0-9._-]+)["']""")
_XML_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>")

# Item element -> RawItem field, matched on (namespace, local name)
_ITEM_FIELDS = {
    ("", "title"): "title",
    ("", "link"): "link",
    ("", "description"): "description",
    ("", "pubDate"): "pub_date",
    ("", "comments"): "comments",
    ("", "guid"): "guid",
    ("", "category"): "category",
    ("", "hora"): "hour",
    ("", "order"): "order",
    ("", "id"): "external_id",
    ("", "relacionadas"): "related",
    ("", "subject"): "subject",
    ("", "creator"): "creator",
    (DC_NS, "subject"): "dc_subject",
    (DC_NS, "creator"): "dc_creator",
    (CONTENT_NS, "encoded"): "content",
}


def _split_tag(tag: str):
    """'{ns}local' -> ('ns', 'local')"""
    if tag.startswith("{"):
        namespace, _, local = tag[1:].partition("}")
        return namespace, local
    return "", tag


def _text(element: Optional[ET.Element]) -> str:
    if element is None:
        return ""
    return "".join(element.itertext())


class RSSExtractor:
    """
    Retrieve and decode RSS 2.0 feeds.

    Attributes:
        timeout: Request deadline in seconds; None waits indefinitely
        client: Optional shared httpx client (one is created per fetch otherwise)
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
        user_agent: Optional[str] = None
    ):
        self.timeout = timeout
        self.client = client
        self.user_agent = user_agent or settings.USER_AGENT

    async def fetch(self, feed: FeedDescriptor) -> RawDocument:
        """
        Fetch and decode one feed.

        Raises:
            FetchError: Network failure, non-success status or body read failure
            FetchTimeoutError: The request exceeded the deadline
            FormatError: Undecodable document or unsupported RSS version
        """
        content = await self.download(feed)

        try:
            document = await asyncio.to_thread(self.parse, content)
        except FormatError as e:
            e.context.update({"feed_id": feed.id, "feed_url": feed.url})
            raise

        logger.debug(f"Parsed {len(document.items)} items from {feed.url}")
        return document

    async def download(self, feed: FeedDescriptor) -> bytes:
        """Issue a single GET and return the raw body bytes"""
        context = {"feed_id": feed.id, "feed_url": feed.url}

        try:
            if self.client is not None:
                response = await self.client.get(feed.url, timeout=httpx.Timeout(self.timeout))
            else:
                async with httpx.AsyncClient(
                    timeout=httpx.Timeout(self.timeout),
                    follow_redirects=True,
                    headers={"User-Agent": self.user_agent}
                ) as client:
                    response = await client.get(feed.url)
            response.raise_for_status()
            return response.content

        except httpx.TimeoutException as e:
            raise FetchTimeoutError(
                f"Timed out fetching {feed.url}",
                context={**context, "timeout": self.timeout},
                original_exception=e
            )

        except httpx.HTTPStatusError as e:
            raise FetchError(
                f"Unexpected HTTP status {e.response.status_code} for {feed.url}",
                context={**context, "status_code": e.response.status_code},
                original_exception=e
            )

        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FetchError(
                f"Failed to fetch {feed.url}",
                context=context,
                original_exception=e
            )

    @classmethod
    def parse(cls, content: bytes) -> RawDocument:
        """
        Decode an RSS document from raw bytes.

        The character encoding is taken from the XML declaration.

        Raises:
            FormatError: If the document cannot be decoded or is not RSS 2.0
        """
        root = cls._parse_xml(content)

        _, root_name = _split_tag(root.tag)
        version = root.get("version", "")
        if root_name != "rss" or version != SUPPORTED_VERSION:
            raise FormatError(
                "Not a valid RSS 2.0 feed",
                context={"root": root_name, "version": version}
            )

        channel = root.find("channel")
        if channel is None:
            return RawDocument(version=version)

        items = [cls._parse_item(element) for element in channel.findall("item")]

        # The richer representation wins
        for item in items:
            if item.content != "":
                item.description = item.content

        return RawDocument(
            version=version,
            title=_text(channel.find("title")),
            link=_text(channel.find("link")),
            description=_text(channel.find("description")),
            pub_date=_text(channel.find("pubDate")),
            items=items,
        )

    @staticmethod
    def _parse_xml(content: bytes) -> ET.Element:
        try:
            return ET.fromstring(content)
        except ET.ParseError as e:
            # expat only knows a handful of encodings natively
            match = _DECLARED_ENCODING.match(content)
            if match is None or "encoding" not in str(e):
                raise FormatError("Undecodable feed document", original_exception=e)

        encoding = match.group(1).decode("ascii")
        try:
            text = content.decode(encoding)
            return ET.fromstring(_XML_DECLARATION.sub("", text, count=1))
        except (LookupError, UnicodeDecodeError, ET.ParseError) as e:
            raise FormatError(
                "Undecodable feed document",
                context={"encoding": encoding},
                original_exception=e
            )

    @staticmethod
    def _parse_item(element: ET.Element) -> RawItem:
        fields = {}
        enclosure = None

        for child in element:
            key = _split_tag(child.tag)
            if key == ("", "enclosure"):
                if enclosure is None:
                    enclosure = Enclosure(
                        url=child.get("url", ""),
                        mime_type=child.get("type", "")
                    )
                continue

            field = _ITEM_FIELDS.get(key)
            if field is not None and field not in fields:
                fields[field] = _text(child)

        return RawItem(enclosure=enclosure, **fields)
