"""Exception types for Folio.

Every document-level error carries the source path and a 1-based line number
so the build driver can report exactly which file failed and where.

Classes:
    FolioError: Base class for all Folio errors.
    ConfigError: Invalid ``folio.yaml``.
    DocumentError: Base class for errors tied to a source document.
    MalformedDocument: Front matter missing, unterminated or not valid YAML.
    MissingRequiredField: A required front matter key is absent.
    UnrecognizedLanguageTag: Non-fatal diagnostic for unknown code languages.
    IconNotFoundError: An ``<Icon>`` referenced a missing SVG.
    BuildError: Raised by strict builds on the first failing document.
"""

from __future__ import annotations

from pathlib import Path


class FolioError(Exception):
    """Base class for all Folio errors."""


class ConfigError(FolioError):
    """Raised when ``folio.yaml`` holds an unusable value.

    Attributes:
        key: The configuration key at fault.
    """

    def __init__(self, key: str, message: str):
        self.key = key
        self.message = message
        super().__init__(f"{key}: {message}")


class DocumentError(FolioError):
    """Error attributed to a line of a source document.

    Attributes:
        path: Source file, or None when parsing text without a file.
        line: 1-based line number.
        message: Human-readable description.
    """

    def __init__(self, path: Path | None, line: int, message: str):
        self.path = path
        self.line = line
        self.message = message
        location = f"{path}:{line}" if path is not None else f"line {line}"
        super().__init__(f"{location}: {message}")


class MalformedDocument(DocumentError):
    """The front matter block is missing, unterminated or not valid data."""


class MissingRequiredField(DocumentError):
    """A front matter key required by the document's entry type is absent.

    Attributes:
        field: Name of the missing key.
    """

    def __init__(self, path: Path | None, field: str, line: int = 1, kind: str = ""):
        self.field = field
        what = f"{kind} requires" if kind else "requires"
        super().__init__(path, line, f"{what} front matter field '{field}'")


class UnrecognizedLanguageTag(DocumentError):
    """A fenced code block declared a language outside the recognized set.

    This is recorded as a diagnostic and never raised: the block falls back
    to plain preformatted text.

    Attributes:
        language: The tag as written in the fence.
    """

    def __init__(self, path: Path | None, line: int, language: str):
        self.language = language
        super().__init__(
            path, line, f"code block language '{language}' is not highlighted"
        )


class IconNotFoundError(FolioError):
    """An icon name did not resolve to an SVG file.

    Attributes:
        name: Requested icon name (``set:name`` or ``name``).
        searched_paths: Candidate files that were checked.
    """

    def __init__(self, name: str, searched_paths: list[Path]):
        self.name = name
        self.searched_paths = searched_paths
        paths_str = ", ".join(str(p) for p in searched_paths)
        super().__init__(f"icon '{name}' not found. Searched: {paths_str}")


class BuildError(FolioError):
    """Error during a strict site build with file context.

    Attributes:
        source_path: Path to the source file that caused the error.
        message: Human-readable error message.
        line: Line number in the source file, when known.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
        line: int | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.line = line
        self.original_error = original_error
        location = f"{source_path}:{line}" if line else str(source_path)
        super().__init__(f"{location}: {message}")
