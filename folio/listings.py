"""Listings derived from all rendered pages.

Listings are built only after every document has been rendered: category
indexes (``/works/``, ``/projects/``, ``/blog/``), the tag index ``/tags/``
and one page per tag.

Key classes:
- PageCollection: Sequence helper for filtering and sorting pages.
- TagIndex: Mapping of tag to the pages carrying it, with counts.
- Listing: A generated page that lists other pages.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from .utils import slugify, titleize

logger = logging.getLogger(__name__)


def _sort_key(page: Any) -> tuple[date, str]:
    return (page.sort_date or date.min, str(page.title).lower())


class PageCollection(Sequence):
    """Lightweight helper for working with lists of pages in templates and code."""

    def __init__(self, pages: Iterable[Any]):
        self._pages = list(pages)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._pages)

    def __len__(self) -> int:
        return len(self._pages)

    def __getitem__(self, item):
        return self._pages[item]

    def category(self, name: str) -> PageCollection:
        return PageCollection(p for p in self._pages if p.category == name)

    def with_tag(self, tag: str) -> PageCollection:
        wanted = tag.casefold()
        return PageCollection(
            p for p in self._pages if any(t.casefold() == wanted for t in p.tags)
        )

    def published(self) -> PageCollection:
        return PageCollection(p for p in self._pages if not p.draft)

    def sorted(self, reverse: bool = True) -> PageCollection:
        """Sort by date (newest first by default), then by title.

        Pages without a usable date sort last when ``reverse`` is True.
        """
        if reverse:
            ordered = sorted(self._pages, key=lambda p: str(p.title).lower())
            ordered.sort(key=lambda p: p.sort_date or date.min, reverse=True)
            return PageCollection(ordered)
        return PageCollection(sorted(self._pages, key=_sort_key))

    def latest(self, count: int = 5) -> PageCollection:
        return PageCollection(self.sorted()[:count])

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"PageCollection({len(self._pages)} pages)"


class TagIndex(Mapping):
    """Mapping of tag name to the pages carrying it.

    Tags are grouped case-insensitively; the first spelling seen is the one
    displayed.
    """

    def __init__(self, mapping: dict[str, Iterable[Any]]):
        self._mapping = {tag: PageCollection(pages) for tag, pages in mapping.items()}
        self._slugs: dict[str, str] = {}
        used: set[str] = set()
        for tag in self._mapping:
            base = slugify(tag)
            slug, suffix = base, 2
            while slug in used:
                slug = f"{base}-{suffix}"
                suffix += 1
            if slug != base:
                logger.warning("Tag %r shares the slug %r with another tag; using /tags/%s/", tag, base, slug)
            used.add(slug)
            self._slugs[tag.casefold()] = slug

    def __getitem__(self, key: str) -> PageCollection:
        if key in self._mapping:
            return self._mapping[key]
        wanted = key.casefold()
        for tag, pages in self._mapping.items():
            if tag.casefold() == wanted:
                return pages
        raise KeyError(key)

    def __iter__(self) -> Iterator[str]:
        return iter(self._mapping)

    def __len__(self) -> int:
        return len(self._mapping)

    def counts(self) -> dict[str, int]:
        """Tag -> number of pages, most used first, ties by name."""
        ordered = sorted(self._mapping.items(), key=lambda item: (-len(item[1]), item[0].casefold()))
        return {tag: len(pages) for tag, pages in ordered}

    def url_for(self, tag: str) -> str:
        """URL of a tag's page; tags whose slugs clash get a numeric suffix."""
        slug = self._slugs.get(tag.casefold()) or slugify(tag)
        return f"/tags/{slug}/"

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"TagIndex({len(self._mapping)} tags)"


def build_tag_index(pages: Iterable[Any]) -> TagIndex:
    """Aggregate tags across pages.

    Args:
        pages: Objects with a ``tags`` attribute.

    Returns:
        TagIndex mapping each tag to the pages that carry it.

    Examples:
        Three pages tagged ``[react]``, ``[react, git]`` and ``[python]``
        give counts ``{"react": 2, "git": 1, "python": 1}``.
    """
    spelling: dict[str, str] = {}
    grouped: dict[str, list[Any]] = {}
    for page in pages:
        seen: set[str] = set()
        for tag in page.tags:
            key = tag.casefold()
            if key in seen:
                continue
            seen.add(key)
            display = spelling.setdefault(key, tag)
            grouped.setdefault(display, []).append(page)
    return TagIndex(grouped)


@dataclass
class Listing:
    """A generated page listing other pages.

    Attributes:
        url: URL path of the listing.
        title: Heading of the listing.
        layout: Layout template name.
        pages: Pages shown, already sorted.
        intro: HTML shown above the list (from a category ``index.md``).
        tag: Tag name, for per-tag listings.
        counts: Tag counts, for the tag index.
    """

    url: str
    title: str
    layout: str
    pages: PageCollection
    intro: str = ""
    tag: str = ""
    counts: dict[str, int] = field(default_factory=dict)
    category: str = ""


def build_listings(pages: Sequence[Any], index_pages: Mapping[str, Any], tag_index: TagIndex) -> list[Listing]:
    """Build category, tag index and per-tag listings.

    Args:
        pages: Rendered pages, excluding category index pages.
        index_pages: Category -> rendered ``index.md`` page for that category.
        tag_index: Aggregated tags.

    Returns:
        Listings in a stable order.
    """
    collection = PageCollection(pages).published()
    listings: list[Listing] = []
    categories = sorted({p.category for p in collection if p.category} | set(index_pages))
    for category in categories:
        index_page = index_pages.get(category)
        listings.append(
            Listing(
                url=f"/{slugify(category)}/",
                title=index_page.title if index_page is not None else titleize(category),
                layout="listing",
                pages=collection.category(category).sorted(),
                intro=index_page.content if index_page is not None else "",
                category=category,
            )
        )
    if tag_index:
        listings.append(
            Listing(
                url="/tags/",
                title="Tags",
                layout="tags",
                pages=collection,
                counts=tag_index.counts(),
            )
        )
        for tag in tag_index:
            listings.append(
                Listing(
                    url=tag_index.url_for(tag),
                    title=f"#{tag}",
                    layout="tag",
                    pages=PageCollection(tag_index[tag]).published().sorted(),
                    tag=tag,
                )
            )
    return listings
