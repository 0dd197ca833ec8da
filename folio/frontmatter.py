"""Front matter parsing for Folio.

A content document is a YAML block between ``---`` delimiter lines followed
by a markdown body::

    ---
    title: Founder
    date: 2020 - 2022
    tags: [Python, Golang]
    ---
    Body text.

Key functions:
- split_frontmatter: Separate the metadata block from the body.
- parse_document: Build a ContentDocument from raw text.
- serialize_frontmatter: Dump a front matter mapping back to YAML.
- dump_document: Re-assemble a document as text.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import date, datetime
from pathlib import Path
from typing import Any

import yaml

from .documents import ContentDocument
from .errors import MalformedDocument

OPEN_DELIMITER = "---"
CLOSE_DELIMITERS = ("---", "...")

_SCALAR_TYPES = (str, int, float, bool, date, datetime, type(None))
_TIMESTAMP_RE = re.compile(r"(?:^|[:\-\[,]\s*)(\d{4})-(\d{1,2})-(\d{1,2})(?![\d-])")


def split_frontmatter(text: str, path: Path | None = None) -> tuple[str, str, int]:
    """Split raw text into its front matter block and body.

    Args:
        text: Raw file content.
        path: Source file, used for error reporting.

    Returns:
        Tuple of (metadata text, body, 1-based line where the body starts).

    Raises:
        MalformedDocument: If the opening or closing delimiter is missing.
    """
    lines = text.lstrip("\ufeff").splitlines(keepends=True)
    if not lines or lines[0].rstrip() != OPEN_DELIMITER:
        raise MalformedDocument(
            path, 1, f"document must start with a '{OPEN_DELIMITER}' front matter line"
        )
    for index in range(1, len(lines)):
        if lines[index].rstrip() in CLOSE_DELIMITERS:
            metadata = "".join(lines[1:index])
            body = "".join(lines[index + 1 :])
            return metadata, body, index + 2
    raise MalformedDocument(path, 1, "front matter block is never closed")


def parse_frontmatter(metadata: str, path: Path | None = None) -> dict[str, Any]:
    """Deserialize a front matter block.

    Args:
        metadata: YAML text between the delimiters.
        path: Source file, used for error reporting.

    Returns:
        Mapping of string keys to scalars or lists of scalars.

    Raises:
        MalformedDocument: If the YAML is invalid or has an unsupported shape.
    """
    try:
        data = yaml.safe_load(metadata)
    except yaml.YAMLError as exc:
        mark = getattr(exc, "problem_mark", None)
        # +2: one for the opening delimiter, one for 1-based numbering
        line = mark.line + 2 if mark is not None else 1
        problem = getattr(exc, "problem", None) or str(exc)
        raise MalformedDocument(path, line, f"invalid front matter: {problem}") from exc
    except ValueError as exc:
        # PyYAML builds timestamps with datetime, which rejects impossible dates
        raise MalformedDocument(
            path, _bad_timestamp_line(metadata), f"invalid front matter: {exc}"
        ) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise MalformedDocument(path, 2, "front matter must be a mapping of keys to values")
    for key, value in data.items():
        if not isinstance(key, str):
            raise MalformedDocument(
                path, _key_line(metadata, str(key)), f"front matter key {key!r} is not a string"
            )
        if not _is_supported(value):
            raise MalformedDocument(
                path,
                _key_line(metadata, key),
                f"front matter field '{key}' must be a scalar or a list of scalars",
            )
    return data


def parse_document(
    text: str, path: Path | None = None, category: str = ""
) -> ContentDocument:
    """Parse raw document text into a ContentDocument.

    Pure function of its input; the caller reads the file.

    Args:
        text: Raw file content.
        path: Source file path.
        category: Content category derived from the file location.

    Returns:
        Immutable ContentDocument.

    Raises:
        MalformedDocument: If the front matter is missing, unterminated or invalid.
    """
    metadata, body, body_line = split_frontmatter(text, path)
    front_matter = parse_frontmatter(metadata, path)
    return ContentDocument.create(
        path=path or Path("<string>"),
        front_matter=front_matter,
        body=body,
        category=category,
        body_line=body_line,
    )


def serialize_frontmatter(front_matter: Mapping[str, Any]) -> str:
    """Serialize a front matter mapping to YAML, preserving key order."""
    if not front_matter:
        return ""
    plain = {
        key: list(value) if isinstance(value, tuple) else value
        for key, value in front_matter.items()
    }
    return yaml.safe_dump(
        plain,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )


def dump_document(document: ContentDocument) -> str:
    """Re-assemble a document as text with its front matter block."""
    return f"{OPEN_DELIMITER}\n{serialize_frontmatter(document.front_matter)}{OPEN_DELIMITER}\n{document.body}"


def _is_supported(value: Any) -> bool:
    if isinstance(value, list):
        return all(isinstance(item, _SCALAR_TYPES) for item in value)
    return isinstance(value, _SCALAR_TYPES)


def _bad_timestamp_line(metadata: str) -> int:
    for offset, line in enumerate(metadata.splitlines()):
        for match in _TIMESTAMP_RE.finditer(line):
            try:
                date(*(int(part) for part in match.groups()))
            except ValueError:
                return offset + 2
    return 2


def _key_line(metadata: str, key: str) -> int:
    for offset, line in enumerate(metadata.splitlines()):
        if line.startswith(f"{key}:"):
            return offset + 2
    return 2
