"""Document and entry types for Folio.

A ContentDocument is what the parser produces from a source file: a read-only
front matter mapping plus the markdown body. Entries are the typed view of a
document used by layouts and listings. Each content category has its own
entry variant; all share the fields of the Entry base.

Key classes:
- ContentDocument: Immutable parsed source file.
- Entry: Common base (title, tags, description, layout, draft, date).
- WorkEntry, ProjectEntry, BlogPost, PageEntry: Category variants.

Key functions:
- resolve_entry: Pick the variant for a document and validate required fields.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from datetime import date, datetime
from pathlib import Path
from types import MappingProxyType
from typing import Any, ClassVar

from .errors import MissingRequiredField

YEAR_RE = re.compile(r"\b(\d{4})\b")
ONGOING_WORDS = ("present", "now", "current", "ongoing")


@dataclass(frozen=True)
class ContentDocument:
    """A parsed source file.

    Attributes:
        path: Path to the source file.
        front_matter: Read-only mapping of front matter keys to values.
        body: Raw markdown following the front matter block.
        category: First directory below the content root ("" at the top level).
        body_line: 1-based line in the source file where the body starts.
    """

    path: Path
    front_matter: Mapping[str, Any]
    body: str
    category: str = ""
    body_line: int = 1

    @classmethod
    def create(
        cls,
        path: Path,
        front_matter: Mapping[str, Any],
        body: str,
        category: str = "",
        body_line: int = 1,
    ) -> ContentDocument:
        frozen = {
            key: tuple(value) if isinstance(value, list) else value
            for key, value in front_matter.items()
        }
        return cls(
            path=path,
            front_matter=MappingProxyType(frozen),
            body=body,
            category=category,
            body_line=body_line,
        )

    @property
    def is_draft(self) -> bool:
        return self.path.name.startswith("_") or bool(self.front_matter.get("draft"))

    @property
    def is_index(self) -> bool:
        return self.path.stem == "index"


def _present(front_matter: Mapping[str, Any], key: str) -> bool:
    value = front_matter.get(key)
    if value is None:
        return False
    if isinstance(value, (str, tuple, list)) and not value:
        return False
    return True


def _as_tags(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = list(value)
    else:
        # a lone number, boolean or date is one tag
        items = [value]
    tags: list[str] = []
    for item in items:
        tag = str(item).strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tuple(tags)


def coerce_date(value: Any) -> date | None:
    """Derive a sortable date from a front matter ``date`` value.

    Free-text ranges such as ``"2020 - 2022"`` sort by their last year;
    a range ending in "Present" sorts as today.

    Examples:
        >>> coerce_date("2020 - 2022")
        datetime.date(2022, 1, 1)
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None:
        return None
    text = str(value).strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    if any(word in text.lower() for word in ONGOING_WORDS):
        return date.today()
    years = YEAR_RE.findall(text)
    if years:
        return date(int(years[-1]), 1, 1)
    return None


@dataclass(frozen=True)
class Entry:
    """Typed view of a document shared by every category.

    Subclasses declare ``required`` (front matter keys that must be present)
    and ``markers`` (keys that identify the variant when the category does
    not).
    """

    kind: ClassVar[str] = "page"
    required: ClassVar[tuple[str, ...]] = ("title",)
    markers: ClassVar[tuple[str, ...]] = ()
    default_layout: ClassVar[str] = "page"

    title: str
    tags: tuple[str, ...] = ()
    description: str = ""
    layout: str = ""
    draft: bool = False
    date: Any = None
    document: ContentDocument | None = field(default=None, repr=False, compare=False)

    @classmethod
    def missing_fields(cls, front_matter: Mapping[str, Any]) -> list[str]:
        return [key for key in cls.required if not _present(front_matter, key)]

    @classmethod
    def is_capable(cls, front_matter: Mapping[str, Any]) -> bool:
        """Whether the front matter carries this variant's marker and required keys."""
        if cls.markers and not any(_present(front_matter, key) for key in cls.markers):
            return False
        return not cls.missing_fields(front_matter)

    @classmethod
    def from_document(cls, document: ContentDocument) -> Entry:
        """Build the entry, validating required fields.

        Raises:
            MissingRequiredField: For the first absent required key.
        """
        front_matter = document.front_matter
        missing = cls.missing_fields(front_matter)
        if missing:
            raise MissingRequiredField(document.path, missing[0], line=1, kind=cls.kind)
        names = {f.name for f in fields(cls)} - {"document", "tags", "layout", "draft"}
        values = {
            name: front_matter[name]
            for name in names
            if name in front_matter and front_matter[name] is not None
        }
        values["title"] = str(front_matter["title"])
        if "description" in values:
            values["description"] = str(values["description"])
        return cls(
            tags=_as_tags(front_matter.get("tags")),
            layout=str(front_matter.get("layout") or cls.default_layout),
            draft=document.is_draft,
            document=document,
            **values,
        )

    @property
    def sort_date(self) -> date | None:
        return coerce_date(self.date)

    @property
    def category(self) -> str:
        return self.document.category if self.document is not None else ""


@dataclass(frozen=True)
class WorkEntry(Entry):
    """A position in the work history."""

    kind: ClassVar[str] = "work"
    required: ClassVar[tuple[str, ...]] = ("title", "date")
    markers: ClassVar[tuple[str, ...]] = ("org", "location")
    default_layout: ClassVar[str] = "entry"

    org: str = ""
    location: str = ""
    url: str = ""


@dataclass(frozen=True)
class ProjectEntry(Entry):
    """A portfolio project."""

    kind: ClassVar[str] = "project"
    markers: ClassVar[tuple[str, ...]] = ("repo",)
    default_layout: ClassVar[str] = "entry"

    url: str = ""
    repo: str = ""


@dataclass(frozen=True)
class BlogPost(Entry):
    """A blog article."""

    kind: ClassVar[str] = "post"
    required: ClassVar[tuple[str, ...]] = ("title", "date")
    markers: ClassVar[tuple[str, ...]] = ("author",)
    default_layout: ClassVar[str] = "post"

    author: str = ""


@dataclass(frozen=True)
class PageEntry(Entry):
    """Any other page, such as the home or about page."""


ENTRY_TYPES: dict[str, type[Entry]] = {
    "works": WorkEntry,
    "projects": ProjectEntry,
    "blog": BlogPost,
}

_KINDS: dict[str, type[Entry]] = {
    cls.kind: cls for cls in (WorkEntry, ProjectEntry, BlogPost, PageEntry)
}

# Checked in order for documents outside the known categories.
_CAPABILITY_ORDER: tuple[type[Entry], ...] = (BlogPost, WorkEntry, ProjectEntry)


def entry_type_for(document: ContentDocument) -> type[Entry]:
    """Select the entry variant for a document.

    An explicit ``type`` key wins, then the document's category, then the
    first variant whose marker and required fields are all present.
    """
    explicit = document.front_matter.get("type")
    if isinstance(explicit, str) and explicit in _KINDS:
        return _KINDS[explicit]
    if document.is_index:
        return PageEntry
    by_category = ENTRY_TYPES.get(document.category)
    if by_category is not None:
        return by_category
    for cls in _CAPABILITY_ORDER:
        if cls.is_capable(document.front_matter):
            return cls
    return PageEntry


def resolve_entry(document: ContentDocument) -> Entry:
    """Resolve a document into its typed entry.

    Raises:
        MissingRequiredField: If the selected variant's required keys are absent.
    """
    return entry_type_for(document).from_document(document)
