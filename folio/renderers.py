"""Markdown rendering for Folio.

This module turns a ContentDocument's markdown body into a DisplayDocument:
the mistune AST (a tree of block and inline elements) plus the HTML produced
from it. Fenced code blocks are highlighted with Pygments only when their
language tag is in the configured recognized set; anything else falls back to
plain preformatted text and is recorded as a diagnostic.

Key classes:
- DisplayDocument: Result of rendering one document.
- MarkdownRenderer: Renders documents using a RenderConfiguration.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import mistune
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name

from .config import RenderConfiguration
from .documents import ContentDocument
from .errors import UnrecognizedLanguageTag
from .html_utils import escape_html
from .plugins import PluginContext, PluginRegistry

logger = logging.getLogger(__name__)

# optional blockquote markers and list bullets may precede the fence
FENCE_RE = re.compile(
    r"^(?:[ \t]*(?:>|(?:[-*+]|\d{1,9}[.)])[ \t]))*[ \t]*(?P<marker>`{3,}|~{3,})(?P<info>[^`\n]*)$"
)


@dataclass
class Heading:
    """A heading extracted during rendering, used for the table of contents."""

    id: str
    text: str
    level: int


@dataclass
class CodeBlock:
    """A fenced code block seen during rendering.

    Attributes:
        language: Lowercased language tag, or "" when the fence had none.
        line: Line of the opening fence in the source file, when known.
        highlighted: Whether Pygments markup was emitted.
    """

    language: str
    line: int | None
    highlighted: bool


@dataclass
class DisplayDocument:
    """Rendered form of a content document.

    Attributes:
        tokens: mistune AST of the body.
        html: Body HTML after content plugins.
        headings: Headings in document order.
        code_blocks: Every fenced or indented code block.
        diagnostics: Non-fatal problems, e.g. unrecognized language tags.
    """

    tokens: list[dict[str, Any]]
    html: str
    headings: list[Heading] = field(default_factory=list)
    code_blocks: list[CodeBlock] = field(default_factory=list)
    diagnostics: list[UnrecognizedLanguageTag] = field(default_factory=list)


def generate_heading_id(text: str) -> str:
    """Generate a URL-friendly ID from heading text.

    Args:
        text: The heading text (may contain inline HTML).

    Returns:
        Slug suitable for anchor links.
    """
    slug = re.sub(r"<[^>]+>", "", text).lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug.strip("-") or "section"


def rewrite_image_path(src: str, category: str) -> str:
    """Point relative image sources at the assets directory.

    Args:
        src: Original image source.
        category: Category of the page containing the image.

    Returns:
        Rewritten image source path.
    """
    if src.startswith(("http://", "https://", "//", "/", "data:")):
        return src
    prefix = Path(category) if category else Path()
    normalized = (prefix / src).as_posix()
    return f"/assets/images/{normalized}"


def scan_fences(body: str) -> list[tuple[int, str]]:
    """Find fenced code blocks that declare a language.

    Args:
        body: Markdown body.

    Returns:
        List of (0-based line offset, info string) in document order.
    """
    fences: list[tuple[int, str]] = []
    open_marker: str | None = None
    for offset, line in enumerate(body.splitlines()):
        match = FENCE_RE.match(line)
        if open_marker is None:
            if match:
                open_marker = match.group("marker")
                info = match.group("info").strip()
                if info:
                    fences.append((offset, info))
        elif match and not match.group("info").strip():
            marker = match.group("marker")
            if marker[0] == open_marker[0] and len(marker) >= len(open_marker):
                open_marker = None
    return fences


class _PageRenderer(mistune.HTMLRenderer):
    """HTML renderer with heading ids, image rewriting and gated highlighting."""

    def __init__(
        self,
        config: RenderConfiguration,
        document: ContentDocument,
    ):
        super().__init__(escape=False)
        self.config = config
        self.document = document
        self.headings: list[Heading] = []
        self.code_blocks: list[CodeBlock] = []
        self.diagnostics: list[UnrecognizedLanguageTag] = []
        self._heading_id_counts: dict[str, int] = {}
        self._fences = scan_fences(document.body)

    def heading(self, text: str, level: int, **attrs) -> str:
        base_id = generate_heading_id(text)
        if base_id in self._heading_id_counts:
            self._heading_id_counts[base_id] += 1
            heading_id = f"{base_id}-{self._heading_id_counts[base_id]}"
        else:
            self._heading_id_counts[base_id] = 0
            heading_id = base_id
        self.headings.append(Heading(id=heading_id, text=text, level=level))
        return f'<h{level} id="{heading_id}">{text}</h{level}>\n'

    def image(self, text: str, url: str, title: str | None = None) -> str:
        src = rewrite_image_path(url or "", self.document.category)
        return super().image(text, src, title)

    def block_code(self, code: str, info: str | None = None) -> str:
        """Render a code block, highlighting recognized languages only.

        Args:
            code: The code content.
            info: Fence info string; its first word is the language tag.

        Returns:
            Highlighted HTML, or a plain ``<pre><code>`` block.
        """
        language = info.split()[0].lower() if info and info.strip() else ""
        line = self._next_fence_line() if language else None

        if language and self.config.recognizes(language):
            lexer = get_lexer_by_name(language, stripall=True)
            formatter = HtmlFormatter(
                cssclass=f"highlight {self.config.theme_class}",
                style=self.config.highlight_theme,
                wrapcode=True,
            )
            self.code_blocks.append(CodeBlock(language, line, True))
            return highlight(code, lexer, formatter)

        self.code_blocks.append(CodeBlock(language, line, False))
        if language:
            diagnostic = UnrecognizedLanguageTag(self.document.path, line or 1, language)
            self.diagnostics.append(diagnostic)
            logger.warning("%s", diagnostic)
        lang_class = f' class="language-{escape_html(language)}"' if language else ""
        return f"<pre><code{lang_class}>{escape_html(code)}</code></pre>\n"

    def _next_fence_line(self) -> int | None:
        if not self._fences:
            return None
        offset, _info = self._fences.pop(0)
        return self.document.body_line + offset


class MarkdownRenderer:
    """Renders content documents to DisplayDocuments.

    One instance is created per build from the shared RenderConfiguration
    and reused for every document.

    Attributes:
        config: Render configuration.
        plugins: Content-stage plugins applied to each body, in order.
    """

    def __init__(
        self,
        config: RenderConfiguration,
        plugins: PluginRegistry | None = None,
    ):
        self.config = config
        self.plugins = plugins or PluginRegistry()
        self._ast = mistune.create_markdown(
            renderer="ast", plugins=list(config.markdown_extensions)
        )

    def render(
        self, document: ContentDocument, content_root: Path | None = None
    ) -> DisplayDocument:
        """Render a document body.

        The document is not modified; a new DisplayDocument is returned.

        Args:
            document: Parsed source document.
            content_root: Content directory, used to resolve links between documents.

        Returns:
            DisplayDocument with AST, HTML, headings and diagnostics.
        """
        renderer = _PageRenderer(self.config, document)
        markdown = mistune.create_markdown(
            renderer=renderer, plugins=list(self.config.markdown_extensions)
        )
        html = markdown(document.body)
        context = PluginContext(
            document=document,
            content_root=content_root or document.path.parent,
        )
        html = self.plugins.apply(html, context, stage="content")
        return DisplayDocument(
            tokens=self._ast(document.body),
            html=html,
            headings=renderer.headings,
            code_blocks=renderer.code_blocks,
            diagnostics=renderer.diagnostics,
        )


def pygments_css(config: RenderConfiguration) -> str:
    """Stylesheet for highlighted code, scoped to the configured theme."""
    formatter = HtmlFormatter(style=config.highlight_theme)
    css = formatter.get_style_defs(f".highlight.{config.theme_class}")
    if config.wrap:
        css += (
            f"\n.highlight.{config.theme_class} pre "
            "{ white-space: pre-wrap; word-break: break-word; }\n"
        )
    return css
