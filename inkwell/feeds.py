"""Feed generation for Inkwell.

This module renders sitemap.xml and an RSS 2.0 feed from a ContentIndex.
Feeds need absolute links, so they are only produced when the site
configuration sets ``url``. Output depends only on the index, never on the
wall clock, so rebuilding unchanged content gives identical files.

Classes:
    FeedGenerator: Base class for feed generators.
    SitemapGenerator: Generates sitemap.xml.
    RSSGenerator: Generates rss.xml.
    FeedRegistry: Runs a set of generators.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Any

from .collections import ContentIndex
from .html_utils import escape_html, join_root_url
from .templates import RenderedPage, document_url, tag_url


def _rfc822(day: date) -> str:
    # Day and month names are emitted in English regardless of locale.
    weekday = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")[day.weekday()]
    month = (
        "Jan", "Feb", "Mar", "Apr", "May", "Jun",
        "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
    )[day.month - 1]
    return f"{weekday}, {day.day:02d} {month} {day.year:04d} 00:00:00 +0000"


class FeedGenerator(ABC):
    """Abstract base class for feed generators."""

    @property
    @abstractmethod
    def filename(self) -> str:
        """Return the output filename for this feed."""
        ...

    @abstractmethod
    def generate(self, index: ContentIndex, data: dict[str, Any]) -> str | None:
        """Generate feed content.

        Args:
            index: Content index to publish.
            data: Site data containing at least ``url``.

        Returns:
            Feed content, or None if the feed cannot be generated.
        """
        ...

    def render(self, index: ContentIndex, data: dict[str, Any]) -> RenderedPage | None:
        content = self.generate(index, data)
        if content is None:
            return None
        return RenderedPage(
            url=f"/{self.filename}", output_path=self.filename, content=content
        )


class SitemapGenerator(FeedGenerator):
    """Generates sitemap.xml listing the index, every document and the tag pages."""

    @property
    def filename(self) -> str:
        return "sitemap.xml"

    def generate(self, index: ContentIndex, data: dict[str, Any]) -> str | None:
        base_url = str(data.get("url") or "").rstrip("/")
        if not base_url:
            return None

        entries: list[tuple[str, date | None]] = [
            ("/", index[0].date if index else None)
        ]
        entries.extend((document_url(doc), doc.date) for doc in index)
        entries.append(("/tags/", index[0].date if index else None))
        entries.extend(
            (tag_url(tag, index.tag_slugs), docs[0].date)
            for tag, docs in index.by_tag.items()
        )

        lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
        ]
        for url, lastmod in entries:
            loc = escape_html(join_root_url(base_url, url))
            if lastmod is None:
                lines.append(f"  <url><loc>{loc}</loc></url>")
            else:
                lines.append(
                    f"  <url><loc>{loc}</loc><lastmod>{lastmod.isoformat()}</lastmod></url>"
                )
        lines.append("</urlset>")
        return "\n".join(lines) + "\n"


class RSSGenerator(FeedGenerator):
    """Generates an RSS 2.0 feed, newest first.

    Attributes:
        limit: Maximum number of items in the feed.
    """

    def __init__(self, limit: int = 20):
        self.limit = limit

    @property
    def filename(self) -> str:
        return "rss.xml"

    def generate(self, index: ContentIndex, data: dict[str, Any]) -> str | None:
        base_url = str(data.get("url") or "").rstrip("/")
        if not base_url:
            return None
        title = escape_html(str(data.get("title") or "Inkwell"))

        items = []
        for doc in index.latest(self.limit):
            link = escape_html(join_root_url(base_url, document_url(doc)))
            description = escape_html(doc.description or doc.title)
            categories = "".join(
                f"<category>{escape_html(tag)}</category>" for tag in doc.sorted_tags
            )
            items.append(
                f"<item><title>{escape_html(doc.title)}</title><link>{link}</link>"
                f"<guid>{link}</guid><description>{description}</description>"
                f"{categories}<pubDate>{_rfc822(doc.date)}</pubDate></item>"
            )

        rss = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<rss version="2.0"><channel>',
            f"<title>{title}</title>",
            f"<link>{escape_html(base_url)}/</link>",
            f"<description>{title}</description>",
        ]
        if index:
            rss.append(f"<lastBuildDate>{_rfc822(index[0].date)}</lastBuildDate>")
        rss.extend(items)
        rss.append("</channel></rss>")
        return "\n".join(rss) + "\n"


class FeedRegistry:
    """Registry of feed generators run during a build."""

    def __init__(self) -> None:
        self._generators: list[FeedGenerator] = []

    def register(self, generator: FeedGenerator) -> None:
        self._generators.append(generator)

    def render_all(
        self, index: ContentIndex, data: dict[str, Any]
    ) -> list[RenderedPage]:
        """Render every registered feed that can be generated.

        Returns:
            Rendered feeds, in registration order.
        """
        pages = []
        for generator in self._generators:
            page = generator.render(index, data)
            if page is not None:
                pages.append(page)
        return pages


def create_default_feed_registry() -> FeedRegistry:
    """Create a registry with the sitemap and RSS generators."""
    registry = FeedRegistry()
    registry.register(SitemapGenerator())
    registry.register(RSSGenerator())
    return registry
