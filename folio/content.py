"""Content store for Folio.

This module discovers markdown documents under the content directory, parses
them and assembles Page objects from the parsed document, its typed entry and
its rendered display document.

Key classes:
- Page: A rendered content document with its URL.
- ContentStore: Enumerates and reads source files.
- PageBuilder: Parses, resolves and renders one source file into a Page.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any

from .documents import ContentDocument, Entry, resolve_entry
from .frontmatter import parse_document
from .renderers import DisplayDocument, Heading, MarkdownRenderer
from .utils import category_of, first_paragraph, is_markdown, slugify, source_url

logger = logging.getLogger(__name__)


@dataclass
class Page:
    """A content document ready for layout.

    Attributes:
        document: Parsed source document.
        entry: Typed entry resolved from the front matter.
        display: Rendered body.
        url: URL path of the page.
        slug: Last URL segment.
    """

    document: ContentDocument
    entry: Entry
    display: DisplayDocument
    url: str
    slug: str

    @property
    def title(self) -> str:
        return self.entry.title

    @property
    def tags(self) -> tuple[str, ...]:
        return self.entry.tags

    @property
    def category(self) -> str:
        return self.document.category

    @property
    def path(self) -> Path:
        return self.document.path

    @property
    def layout(self) -> str:
        return self.entry.layout

    @property
    def draft(self) -> bool:
        return self.entry.draft

    @property
    def date(self) -> Any:
        return self.entry.date

    @property
    def sort_date(self) -> date | None:
        return self.entry.sort_date

    @property
    def content(self) -> str:
        return self.display.html

    @property
    def toc(self) -> list[Heading]:
        return self.display.headings

    @property
    def description(self) -> str:
        return self.entry.description or first_paragraph(self.document.body)

    @property
    def front_matter(self) -> Any:
        return self.document.front_matter


class ContentStore:
    """Finds and reads source documents.

    Files and directories whose names start with ``_`` are skipped; a
    ``_name.md`` file is a draft and is returned only when requested.

    Attributes:
        content_dir: Root of the content store.
    """

    def __init__(self, content_dir: Path):
        self.content_dir = content_dir

    def iter_sources(self, include_drafts: bool = False) -> list[Path]:
        """Return markdown sources in a stable order.

        Args:
            include_drafts: Whether to include ``_``-prefixed draft files.

        Returns:
            Sorted list of paths.
        """
        files: list[Path] = []
        if not self.content_dir.exists():
            return files
        for path in sorted(self.content_dir.rglob("*")):
            if path.is_dir() or not is_markdown(path):
                continue
            rel = path.relative_to(self.content_dir)
            if any(part.startswith(("_", ".")) for part in rel.parts[:-1]):
                continue
            if rel.name.startswith("_") and not include_drafts:
                continue
            files.append(path)
        return files

    def relative(self, path: Path) -> Path:
        return path.relative_to(self.content_dir)

    def read(self, path: Path) -> ContentDocument:
        """Read and parse one source file.

        Raises:
            MalformedDocument: If the front matter cannot be parsed.
        """
        text = path.read_text(encoding="utf-8")
        return parse_document(text, path, category=category_of(self.relative(path)))


class PageBuilder:
    """Builds Page objects from source files.

    Attributes:
        store: Content store the sources come from.
        renderer: Markdown renderer shared by every page.
    """

    def __init__(self, store: ContentStore, renderer: MarkdownRenderer):
        self.store = store
        self.renderer = renderer

    def build(self, path: Path) -> Page:
        """Parse, resolve and render one source file.

        Raises:
            MalformedDocument: If the front matter cannot be parsed.
            MissingRequiredField: If the entry type's required keys are absent.
            IconNotFoundError: If the body references a missing icon.
        """
        document = self.store.read(path)
        entry = resolve_entry(document)
        display = self.renderer.render(document, content_root=self.store.content_dir)
        rel = self.store.relative(path)
        url = source_url(rel)
        logger.debug("Rendered %s -> %s", rel, url)
        return Page(
            document=document,
            entry=entry,
            display=display,
            url=url,
            slug=slugify(path.stem) if path.stem != "index" else "index",
        )
