"""
Transform raw RSS items into the canonical item record
"""

from typing import List, Optional
from urllib.parse import urlparse
from schemas.feed import RawItem, Enclosure
from schemas.normalized import CanonicalItem, NormalizationResult
import html
import re

_SCHEME_AUTHORITY = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://[^/?#]*")

# Quotes use decimal references so rows match those already in the store
_QUOTE_ENTITIES = {"&quot;": "&#34;", "&#x27;": "&#39;"}


def escape_html(text: str) -> str:
    """Escape <, >, &, ' and " for storage"""
    escaped = html.escape(text, quote=True)
    for entity, replacement in _QUOTE_ENTITIES.items():
        escaped = escaped.replace(entity, replacement)
    return escaped


class ItemNormalizer:
    """
    Map RawItem to CanonicalItem.

    Handles:
    - Fallbacks between rich/plain content and alternate vocabularies
    - HTML escaping of creator, content and description
    - Image extraction from enclosures
    - Slug derivation from the item link

    Pure: no I/O. A malformed link is reported as a warning on the
    result and never prevents the other fields from being normalized.
    """

    def normalize(self, raw_item: RawItem, feed_id: int) -> NormalizationResult:
        warnings: List[str] = []

        content = raw_item.content
        if content == "":
            content = raw_item.description

        subject = raw_item.subject.strip()
        if subject == "":
            subject = raw_item.dc_subject.strip()

        creator = raw_item.creator
        if creator == "":
            creator = raw_item.dc_creator

        link = raw_item.link.strip()
        slug, warning = self.slug_from_link(link)
        if warning:
            warnings.append(warning)

        item = CanonicalItem(
            external_id=raw_item.external_id,
            feed_id=feed_id,
            title=raw_item.title.strip(),
            description=escape_html(raw_item.description),
            link=link,
            publish_date=raw_item.pub_date.strip(),
            content=escape_html(content),
            creator=escape_html(creator),
            image_url=self.image_url(raw_item.enclosure),
            category=raw_item.category.strip(),
            subject=subject,
            hour=raw_item.hour.strip(),
            related=raw_item.related.strip(),
            slug=slug,
            display_order=raw_item.order,
            active=True,
        )
        return NormalizationResult(item=item, warnings=warnings)

    @staticmethod
    def image_url(enclosure: Optional[Enclosure]) -> str:
        """Enclosure URL when its MIME type is image/*"""
        if enclosure is None:
            return ""
        primary = enclosure.mime_type.split("/")[0]
        if primary == "image":
            return enclosure.url
        return ""

    @staticmethod
    def slug_from_link(link: str):
        """
        Path of the link without its leading slash.

        Returns:
            (slug, warning) where warning is None unless the link failed to parse
        """
        warning = None
        try:
            path = urlparse(link).path
        except ValueError as e:
            warning = f"Failed to parse link {link!r}: {e}"
            path = ItemNormalizer._raw_path(link)

        if path.startswith("/"):
            path = path[1:]
        return path, warning

    @staticmethod
    def _raw_path(link: str) -> str:
        """Best-effort path for links urlparse rejects"""
        path = re.split(r"[?#]", link, maxsplit=1)[0]
        return _SCHEME_AUTHORITY.sub("", path, count=1)
