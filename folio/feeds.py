"""Feed generation for Folio.

Sitemaps list every published page and listing; the RSS feed carries blog
posts only. Both need ``site.url`` so that links are absolute.

Classes:
    FeedGenerator: Base class for feed generators.
    SitemapGenerator: Generates sitemap.xml.
    RSSGenerator: Generates rss.xml for blog posts.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import date, datetime, time, timezone
from email.utils import format_datetime
from pathlib import Path
from typing import Any

from markupsafe import escape

RFC822_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class FeedGenerator(ABC):
    """Base class for feed generators."""

    # Whether generated listing pages are passed along with content pages.
    include_listings = True

    @property
    @abstractmethod
    def filename(self) -> str:
        """Output filename, relative to the output directory."""
        ...

    @abstractmethod
    def generate(self, pages: Iterable[Any], site: dict[str, str]) -> str | None:
        """Generate feed content, or None when the feed cannot be built."""
        ...

    def write(self, output_dir: Path, pages: Iterable[Any], site: dict[str, str]) -> bool:
        """Generate and write the feed.

        Returns:
            True if the feed was written, False if skipped.
        """
        content = self.generate(pages, site)
        if content is None:
            return False
        (output_dir / self.filename).write_text(content, encoding="utf-8")
        return True


class SitemapGenerator(FeedGenerator):
    """Generates sitemap.xml following the sitemaps.org protocol."""

    @property
    def filename(self) -> str:
        return "sitemap.xml"

    def generate(self, pages: Iterable[Any], site: dict[str, str]) -> str | None:
        base_url = site.get("url", "").rstrip("/")
        if not base_url:
            return None
        lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
        ]
        for page in pages:
            loc = escape(f"{base_url}{page.url}")
            modified = getattr(page, "sort_date", None)
            if modified is not None:
                lines.append(
                    f"  <url><loc>{loc}</loc><lastmod>{modified.isoformat()}</lastmod></url>"
                )
            else:
                lines.append(f"  <url><loc>{loc}</loc></url>")
        lines.append("</urlset>")
        return "\n".join(lines)


class RSSGenerator(FeedGenerator):
    """Generates an RSS 2.0 feed of blog posts, newest first."""

    category = "blog"
    include_listings = False

    @property
    def filename(self) -> str:
        return "rss.xml"

    def generate(self, pages: Iterable[Any], site: dict[str, str]) -> str | None:
        base_url = site.get("url", "").rstrip("/")
        if not base_url:
            return None
        posts = [p for p in pages if p.category == self.category and not p.draft]
        posts.sort(key=lambda p: p.sort_date or date.min, reverse=True)

        items = []
        for post in posts:
            link = escape(f"{base_url}{post.url}")
            items.append(
                "<item>"
                f"<title>{escape(post.title)}</title>"
                f"<link>{link}</link>"
                f"<guid>{link}</guid>"
                f"<description>{escape(post.description or post.title)}</description>"
                f"<pubDate>{_rfc822(post.sort_date)}</pubDate>"
                "</item>"
            )
        latest = posts[0].sort_date if posts else None
        rss = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<rss version="2.0"><channel>',
            f"<title>{escape(site.get('title') or 'Blog')}</title>",
            f"<link>{escape(base_url)}</link>",
            f"<description>{escape(site.get('description') or site.get('title') or 'Blog')}</description>",
            f"<lastBuildDate>{_rfc822(latest)}</lastBuildDate>",
        ]
        rss.extend(items)
        rss.append("</channel></rss>")
        return "\n".join(rss)


def _rfc822(value: date | None) -> str:
    if value is None:
        return format_datetime(RFC822_EPOCH)
    return format_datetime(datetime.combine(value, time.min, tzinfo=timezone.utc))


def create_default_feeds() -> list[FeedGenerator]:
    return [SitemapGenerator(), RSSGenerator()]
