"""Site building for Folio.

The build reads the configuration once, renders every content document,
lays each one out, and only then derives the listing pages, feeds, assets
and deployment files from the pages that made it through.

A document that fails (malformed front matter, a missing required field, a
missing icon, a broken layout) is reported with its path and line and left
out of the output; the rest of the site is still built. ``strict=True``
aborts on the first failure instead.

Key functions:
- build_site: Build the site into the output directory.
- check_site: Run the same pipeline without writing anything.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from jinja2 import TemplateError, TemplateNotFound, TemplateSyntaxError

from .adapters import get_adapter
from .assets import AssetPipeline
from .config import SiteConfig, load_config, load_data
from .content import ContentStore, Page, PageBuilder
from .errors import BuildError, DocumentError, FolioError, UnrecognizedLanguageTag
from .feeds import create_default_feeds
from .html_utils import absolutize_html_urls
from .icons import IconResolver
from .listings import Listing, TagIndex, build_listings, build_tag_index
from .plugins import PluginContext, PluginRegistry, create_plugin_registry
from .renderers import MarkdownRenderer, pygments_css
from .templates import TemplateEngine
from .utils import ensure_clean_dir, slugify

logger = logging.getLogger(__name__)

CODE_THEME_CSS = "css/code-theme.css"


@dataclass
class DocumentFailure:
    """A document excluded from the output.

    Attributes:
        path: Source file.
        line: Line in the source file, when known.
        message: Human-readable reason.
    """

    path: Path
    line: int | None
    message: str

    def __str__(self) -> str:
        location = f"{self.path}:{self.line}" if self.line else str(self.path)
        return f"{location}: {self.message}"


@dataclass
class BuildReport:
    """Result of a build or check.

    Attributes:
        pages: Pages that were rendered and laid out successfully.
        listings: Generated listing pages.
        failures: Documents left out of the output.
        diagnostics: Non-fatal problems such as unhighlighted code blocks.
        tag_index: Tags aggregated across ``pages``.
        output_dir: Where the site was written, or None for a check.
        written: Every file written below ``output_dir``.
    """

    pages: list[Page]
    listings: list[Listing] = field(default_factory=list)
    failures: list[DocumentFailure] = field(default_factory=list)
    diagnostics: list[UnrecognizedLanguageTag] = field(default_factory=list)
    tag_index: TagIndex = field(default_factory=lambda: TagIndex({}))
    output_dir: Path | None = None
    written: list[Path] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def _format_error_message(exc: Exception) -> str:
    """Format an exception raised while laying out a page."""
    if isinstance(exc, TemplateSyntaxError):
        return f"Template syntax error in {exc.name or 'template'} on line {exc.lineno}: {exc.message}"
    if isinstance(exc, TemplateNotFound):
        return f"Layout not found: {exc.name}"
    error_type = type(exc).__name__
    if error_type == "UndefinedError":
        return f"Undefined variable: {exc}"
    return f"{error_type}: {exc}"


def _failure_from(path: Path, exc: Exception) -> DocumentFailure:
    if isinstance(exc, DocumentError):
        return DocumentFailure(path=exc.path or path, line=exc.line, message=exc.message)
    if isinstance(exc, FolioError):
        return DocumentFailure(path=path, line=None, message=str(exc))
    return DocumentFailure(path=path, line=None, message=_format_error_message(exc))


class _Pipeline:
    """Objects shared by every document in one build."""

    def __init__(self, config: SiteConfig, data: dict, strict: bool):
        self.config = config
        self.strict = strict
        self.plugins: PluginRegistry = create_plugin_registry(config)
        self.store = ContentStore(config.content_path)
        self.builder = PageBuilder(self.store, MarkdownRenderer(config.render, self.plugins))
        self.engine = TemplateEngine(
            config, data, icons=IconResolver(config.project_root / "icons")
        )
        self.failures: list[DocumentFailure] = []

    def fail(self, path: Path, exc: Exception) -> None:
        failure = _failure_from(path, exc)
        if self.strict:
            raise BuildError(path, failure.message, exc, line=failure.line) from exc
        logger.error("Skipping %s", failure)
        self.failures.append(failure)

    def render_documents(self, include_drafts: bool) -> list[Page]:
        """Parse, resolve and render every source document."""
        pages: list[Page] = []
        for path in self.store.iter_sources(include_drafts):
            try:
                pages.append(self.builder.build(path))
            except FolioError as exc:
                self.fail(path, exc)
        return pages

    def lay_out(self, pages: Iterable[Page]) -> list[tuple[Page, str]]:
        """Apply layouts and page-stage plugins; failing pages are dropped."""
        results: list[tuple[Page, str]] = []
        for page in pages:
            try:
                html = self.engine.render_page(page)
                html = self.plugins.apply(html, self.context(page), stage="page")
            except (FolioError, TemplateError) as exc:
                self.fail(page.path, exc)
                continue
            results.append((page, html))
        return results

    def lay_out_listing(self, listing: Listing) -> str:
        try:
            html = self.engine.render_listing(listing)
        except TemplateError as exc:
            layout = self.config.project_root / "layouts" / f"{listing.layout}.html.jinja"
            raise BuildError(layout, _format_error_message(exc), exc) from exc
        return self.plugins.apply(html, self.context(None), stage="page")

    def context(self, page: Page | None) -> PluginContext:
        return PluginContext(
            document=page.document if page is not None else None,
            content_root=self.store.content_dir,
            site_url=self.config.url,
        )


def _split_index_pages(pages: list[Page]) -> tuple[list[Page], dict[str, Page]]:
    """Separate category ``index.md`` pages, which introduce their listing."""
    content: list[Page] = []
    index_pages: dict[str, Page] = {}
    for page in pages:
        if page.category and page.url == f"/{slugify(page.category)}/":
            index_pages[page.category] = page
        else:
            content.append(page)
    return content, index_pages


def _collect_diagnostics(pages: Iterable[Page]) -> list[UnrecognizedLanguageTag]:
    diagnostics: list[UnrecognizedLanguageTag] = []
    for page in pages:
        diagnostics.extend(page.display.diagnostics)
    return diagnostics


def _prepare(
    project_root: Path,
    config: SiteConfig | None,
    root_url: str | None,
) -> SiteConfig:
    config = config or load_config(project_root)
    if root_url is not None:
        config = dataclasses.replace(config, root_url=root_url)
    if not config.content_path.exists():
        raise FileNotFoundError(f"Expected content directory at {config.content_path}")
    return config


def build_site(
    project_root: Path,
    config: SiteConfig | None = None,
    include_drafts: bool = False,
    strict: bool = False,
    root_url: str | None = None,
    clean_output: bool = True,
    output_dir_override: Path | None = None,
) -> BuildReport:
    """Build the entire static site.

    Args:
        project_root: Root directory of the project.
        config: Pre-loaded configuration; read from ``folio.yaml`` when None.
        include_drafts: Whether to include ``_``-prefixed drafts.
        strict: Raise BuildError on the first failing document.
        root_url: Base URL to absolutize links with (used by the dev server).
        clean_output: Whether to wipe the output directory before building.
        output_dir_override: Write here instead of the configured output_dir.

    Returns:
        BuildReport describing what was written and what failed.

    Raises:
        BuildError: In strict mode, for the first failing document; in any
            mode, for a broken listing layout.
        ConfigError: If ``folio.yaml`` is invalid.
    """
    config = _prepare(project_root, config, root_url)
    output_dir = output_dir_override or config.output_path
    if clean_output:
        ensure_clean_dir(output_dir)
    else:
        output_dir.mkdir(parents=True, exist_ok=True)

    pipeline = _Pipeline(config, load_data(project_root), strict)
    rendered = pipeline.render_documents(include_drafts)
    content_pages, index_pages = _split_index_pages(rendered)
    pipeline.engine.update_collections(content_pages, build_tag_index(content_pages))

    written: list[Path] = []
    laid_out = pipeline.lay_out(content_pages)
    for page, html in laid_out:
        written.append(_write_html(output_dir, page.url, html, config.root_url))

    pages = [page for page, _ in laid_out]
    tag_index = build_tag_index(pages)
    pipeline.engine.update_collections(pages, tag_index)
    listings = build_listings(pages, index_pages, tag_index)
    for listing in listings:
        html = pipeline.lay_out_listing(listing)
        written.append(_write_html(output_dir, listing.url, html, config.root_url))

    not_found = pipeline.plugins.apply(
        pipeline.engine.render_not_found(), pipeline.context(None), stage="page"
    )
    not_found_path = output_dir / "404.html"
    not_found_path.write_text(not_found, encoding="utf-8")
    written.append(not_found_path)

    published = [page for page in pages if not page.draft]
    for feed in create_default_feeds():
        entries = [*published, *listings] if feed.include_listings else published
        if feed.write(output_dir, entries, config.site):
            written.append(output_dir / feed.filename)

    assets = AssetPipeline(
        project_root, output_dir, minify=config.render.has_plugin("compress")
    )
    assets.run()
    written.append(assets.write_stylesheet(CODE_THEME_CSS, pygments_css(config.render)))

    get_adapter(config.deployment_adapter).package(output_dir, config)

    report = BuildReport(
        pages=pages,
        listings=listings,
        failures=pipeline.failures,
        diagnostics=_collect_diagnostics(pages),
        tag_index=tag_index,
        output_dir=output_dir,
        written=written,
    )
    logger.info(
        "Built %d pages and %d listings into %s (%d failed)",
        len(pages),
        len(listings),
        output_dir,
        len(report.failures),
    )
    return report


def check_site(
    project_root: Path,
    config: SiteConfig | None = None,
    include_drafts: bool = False,
) -> BuildReport:
    """Parse, render and lay out every document without writing output."""
    config = _prepare(project_root, config, None)
    pipeline = _Pipeline(config, load_data(project_root), strict=False)
    rendered = pipeline.render_documents(include_drafts)
    content_pages, index_pages = _split_index_pages(rendered)
    pipeline.engine.update_collections(content_pages, build_tag_index(content_pages))
    pages = [page for page, _ in pipeline.lay_out(content_pages)]
    tag_index = build_tag_index(pages)
    return BuildReport(
        pages=pages,
        listings=build_listings(pages, index_pages, tag_index),
        failures=pipeline.failures,
        diagnostics=_collect_diagnostics(pages),
        tag_index=tag_index,
    )


def _write_html(output_dir: Path, url: str, html: str, root_url: str) -> Path:
    if root_url:
        html = absolutize_html_urls(html, root_url)
    target_dir = output_dir / url.strip("/")
    target_dir.mkdir(parents=True, exist_ok=True)
    html_path = target_dir / "index.html"
    html_path.write_text(html, encoding="utf-8")
    return html_path
