"""Utility functions for Folio.

String and path helpers shared by the content store, the renderer and the
build driver.

Key functions:
    slugify: Convert filenames and tags to URL slugs.
    titleize: Convert filenames to human-readable titles.
    source_url: Derive the page URL for a content file.
    ensure_clean_dir: Ensure a directory exists and is empty.
"""

from __future__ import annotations

import re
import shutil
from pathlib import Path

DATE_PREFIX_RE = re.compile(r"^\d{4}-\d{2}-\d{2}-")


def slugify(name: str) -> str:
    """Convert a filename stem or tag to a slug, dropping any date prefix.

    Args:
        name: Filename stem or free text.

    Returns:
        URL-friendly slug.

    Examples:
        >>> slugify("2024-01-15-Hello World")
        'hello-world'
        >>> slugify("C++")
        'c'
    """
    cleaned = DATE_PREFIX_RE.sub("", name)
    cleaned = re.sub(r"[^a-zA-Z0-9]+", "-", cleaned)
    cleaned = cleaned.strip("-").lower()
    return cleaned or "index"


def titleize(filename: str) -> str:
    """Convert a filename to a human-readable title.

    Examples:
        >>> titleize("2024-01-15-hello-world.md")
        'Hello World'
    """
    base = DATE_PREFIX_RE.sub("", Path(filename).stem)
    words = re.split(r"[\s\-_]+", base)
    return " ".join(word.capitalize() for word in words if word) or "Untitled"


def category_of(rel: Path) -> str:
    """Return the content category (first directory) of a relative path."""
    return rel.parts[0] if len(rel.parts) > 1 else ""


def source_url(rel: Path) -> str:
    """Derive the URL for a content file relative to the content root.

    ``index.md`` maps to its directory; every other file gets its own
    directory named after its slug.

    Examples:
        >>> source_url(Path("index.md"))
        '/'
        >>> source_url(Path("projects/2023-05-01-Chat Bot.md"))
        '/projects/chat-bot/'
    """
    segments = [slugify(part) for part in rel.parent.parts if part]
    if rel.stem != "index":
        segments.append(slugify(rel.stem))
    path = "/".join(segments)
    return f"/{path}/" if path else "/"


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    Args:
        path: Directory path to clean or create.
    """
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True, exist_ok=True)


def is_markdown(path: Path) -> bool:
    return path.suffix.lower() in (".md", ".markdown")


def first_paragraph(text: str, limit: int = 160) -> str:
    """Extract the first prose paragraph as plain text.

    Headings, images, fences and raw HTML blocks are skipped; inline
    markdown punctuation and tags are stripped and the result is truncated
    to ``limit`` characters.
    """
    for para in (p.strip() for p in text.split("\n\n")):
        if not para or para.startswith(("#", "![", "```", "~~~", "<", "---", "|")):
            continue
        para = re.sub(r"<[^>]+>", "", para)
        para = re.sub(r"!?\[([^\]]*)\]\([^)]*\)", r"\1", para)
        para = re.sub(r"[*_`]+", "", para)
        collapsed = " ".join(para.split())
        if len(collapsed) > limit:
            return collapsed[: limit - 1].rstrip() + "…"
        return collapsed
    return ""
