"""Page plugins for Folio.

Plugins are HTML transformations applied to every document. They always run
in the canonical order from ``config.PLUGIN_ORDER`` no matter how they were
registered or listed in ``folio.yaml``:

- links (content stage): relative ``.md`` links become page URLs and links to
  other hosts open in a new tab.
- icons (content stage): ``<Icon name="set:name" />`` tags become inline SVG.
- compress (page stage): whitespace and comments are stripped from the final
  page outside ``pre``, ``textarea``, ``script`` and ``style``.

Key classes:
- PluginContext: What a plugin knows about the page being transformed.
- PluginRegistry: Ordered collection of plugins.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from .config import PLUGIN_ORDER
from .html_utils import is_external_url
from .icons import IconResolver
from .protocols import PagePlugin
from .utils import is_markdown, source_url

if TYPE_CHECKING:
    from .config import SiteConfig
    from .documents import ContentDocument

_ANCHOR_RE = re.compile(r"<a\b(?P<attrs>[^>]*)>", re.IGNORECASE)
_HREF_RE = re.compile(r'\bhref="(?P<href>[^"]*)"', re.IGNORECASE)
_ICON_RE = re.compile(
    r"<icon\b(?P<attrs>[^>]*?)/?>(?:\s*</icon>)?", re.IGNORECASE
)
_ATTR_RE = re.compile(r'(?P<key>[\w-]+)=["\'](?P<value>[^"\']*)["\']')
_PRESERVE_RE = re.compile(
    r"(<(pre|textarea|script|style)\b.*?</\2\s*>)", re.IGNORECASE | re.DOTALL
)
_COMMENT_RE = re.compile(r"<!--(?!\[if).*?-->", re.DOTALL)
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class PluginContext:
    """Information available to plugins.

    Attributes:
        document: Source document, or None for generated pages.
        content_root: Content directory, for resolving links between documents.
        site_url: Public base URL of the site.
    """

    document: ContentDocument | None
    content_root: Path
    site_url: str = ""


class LinkRewritePlugin:
    """Rewrites links between documents and marks external links."""

    name = "links"
    stage = "content"

    def apply(self, html: str, context: PluginContext) -> str:
        def repl(match: re.Match) -> str:
            attrs = match.group("attrs")
            href_match = _HREF_RE.search(attrs)
            if not href_match:
                return match.group(0)
            href = href_match.group("href")
            if is_external_url(href, context.site_url):
                if "target=" not in attrs:
                    attrs += ' target="_blank" rel="noopener noreferrer"'
                return f"<a{attrs}>"
            rewritten = self._rewrite_source_link(href, context)
            if rewritten is None:
                return match.group(0)
            attrs = attrs.replace(href_match.group(0), f'href="{rewritten}"', 1)
            return f"<a{attrs}>"

        return _ANCHOR_RE.sub(repl, html)

    def _rewrite_source_link(self, href: str, context: PluginContext) -> str | None:
        if ":" in href.split("/", 1)[0] or href.startswith(("#", "//")):
            return None
        path_part, sep, fragment = href.partition("#")
        if not is_markdown(Path(path_part)):
            return None
        root = Path(os.path.normpath(context.content_root))
        if path_part.startswith("/"):
            target = Path(os.path.normpath(root / path_part.lstrip("/")))
        elif context.document is not None:
            target = Path(os.path.normpath(context.document.path.parent / path_part))
        else:
            return None
        try:
            rel = target.relative_to(root)
        except ValueError:
            return None
        return source_url(rel) + (f"#{fragment}" if sep else "")


class IconPlugin:
    """Replaces ``<Icon>`` tags with inline SVG.

    Raises IconNotFoundError (through the resolver) for unknown icons, which
    fails the document being rendered.
    """

    name = "icons"
    stage = "content"

    def __init__(self, resolver: IconResolver):
        self.resolver = resolver

    def apply(self, html: str, context: PluginContext) -> str:
        def repl(match: re.Match) -> str:
            attrs = {m.group("key"): m.group("value") for m in _ATTR_RE.finditer(match.group("attrs"))}
            name = attrs.get("name")
            if not name:
                return match.group(0)
            return self.resolver.inline(
                name,
                css_class=attrs.get("class", ""),
                label=attrs.get("label") or attrs.get("title", ""),
            )

        return _ICON_RE.sub(repl, html)


class CompressPlugin:
    """Collapses whitespace and drops comments in the final page."""

    name = "compress"
    stage = "page"

    def apply(self, html: str, context: PluginContext) -> str:
        parts: list[str] = []
        last = 0
        for match in _PRESERVE_RE.finditer(html):
            parts.append(self._compress(html[last : match.start()]))
            parts.append(match.group(1))
            last = match.end()
        parts.append(self._compress(html[last:]))
        return "".join(parts).strip()

    @staticmethod
    def _compress(segment: str) -> str:
        segment = _COMMENT_RE.sub("", segment)
        return _WHITESPACE_RE.sub(" ", segment)


def _order_key(plugin: PagePlugin) -> int:
    try:
        return PLUGIN_ORDER.index(plugin.name)
    except ValueError:
        return len(PLUGIN_ORDER)


class PluginRegistry:
    """Plugins kept in canonical order.

    Plugins with names outside the canonical order run after the built-in
    ones, in registration order.
    """

    def __init__(self, plugins: list[PagePlugin] | None = None):
        self._plugins: list[PagePlugin] = []
        for plugin in plugins or []:
            self.register(plugin)

    def register(self, plugin: PagePlugin) -> None:
        """Register a plugin.

        Raises:
            TypeError: If the object does not implement the PagePlugin protocol.
        """
        if not isinstance(plugin, PagePlugin):
            raise TypeError(f"{plugin!r} does not implement the PagePlugin protocol")
        self._plugins.append(plugin)
        self._plugins.sort(key=_order_key)

    def names(self) -> list[str]:
        return [plugin.name for plugin in self._plugins]

    def apply(self, html: str, context: PluginContext, stage: str) -> str:
        """Run every plugin of ``stage`` over ``html`` in order."""
        for plugin in self._plugins:
            if plugin.stage == stage:
                html = plugin.apply(html, context)
        return html

    def __len__(self) -> int:
        return len(self._plugins)


def create_plugin_registry(config: SiteConfig) -> PluginRegistry:
    """Create the registry for the plugins enabled in the configuration."""
    registry = PluginRegistry()
    enabled = config.render.plugins
    if "links" in enabled:
        registry.register(LinkRewritePlugin())
    if "icons" in enabled:
        registry.register(IconPlugin(IconResolver(config.project_root / "icons")))
    if "compress" in enabled:
        registry.register(CompressPlugin())
    return registry
