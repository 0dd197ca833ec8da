"""Template rendering engine for Folio.

Pages and listings are laid out with Jinja2. Layouts are looked up in the
project's ``layouts/`` directory first and then in the layouts bundled with
the package, so a site can override any of them by name.

Key class:
- TemplateEngine: Lays out pages, listings and the 404 page.
"""

from __future__ import annotations

from typing import Any

from jinja2 import ChoiceLoader, Environment, FileSystemLoader, PackageLoader, select_autoescape
from markupsafe import Markup, escape

from .config import SiteConfig
from .content import Page
from .html_utils import join_root_url
from .icons import IconResolver
from .listings import Listing, PageCollection, TagIndex
from .renderers import Heading

__all__ = ["TemplateEngine", "render_toc"]

CODE_THEME_STYLESHEET = "/assets/css/code-theme.css"


def render_toc(headings: list[Heading], min_level: int = 2) -> Markup:
    """Render headings as a nested ``<ul>`` table of contents.

    Args:
        headings: Headings in document order.
        min_level: Shallowest heading level included (the page title is
            usually the only ``h1``).

    Returns:
        Markup-safe HTML, or empty Markup when there are no headings.
    """
    headings = [h for h in headings if h.level >= min_level]
    if not headings:
        return Markup("")

    html_parts: list[str] = []
    level_stack: list[int] = []
    for heading in headings:
        level = heading.level
        while level_stack and level_stack[-1] > level:
            level_stack.pop()
            html_parts.append("</li></ul>")
        if level_stack and level_stack[-1] == level:
            html_parts.append("</li>")
        elif not level_stack or level > level_stack[-1]:  # pragma: no branch
            html_parts.append("<ul>")
            level_stack.append(level)
        text = Markup(heading.text).striptags()
        html_parts.append(f'<li><a href="#{escape(heading.id)}">{escape(text)}</a>')
    while level_stack:
        level_stack.pop()
        html_parts.append("</li></ul>")
    return Markup("".join(html_parts))


class TemplateEngine:
    """Template rendering engine using Jinja2.

    Attributes:
        config: Site configuration.
        data: Extra template data from ``data/*.yaml``.
        env: Jinja2 environment.
        icons: Icon resolver backing the ``icon()`` global.
    """

    def __init__(
        self,
        config: SiteConfig,
        data: dict[str, Any] | None = None,
        icons: IconResolver | None = None,
    ):
        self.config = config
        self.data = data or {}
        self.icons = icons or IconResolver(config.project_root / "icons")
        self.env = Environment(
            loader=ChoiceLoader(
                [
                    FileSystemLoader(str(config.project_root / "layouts")),
                    PackageLoader("folio", "layouts"),
                ]
            ),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
        )
        self.pages = PageCollection([])
        self.tags = TagIndex({})
        self._install_globals()

    def _install_globals(self) -> None:
        self.env.globals["site"] = self.config.site
        self.env.globals["data"] = self.data
        self.env.globals["pages"] = self.pages
        self.env.globals["tags"] = self.tags
        self.env.globals["url_for"] = self.url_for
        self.env.globals["tag_url"] = self.tag_url
        self.env.globals["icon"] = self._icon
        self.env.globals["render_toc"] = render_toc
        self.env.globals["code_theme_css"] = self.url_for(CODE_THEME_STYLESHEET)

    def update_collections(self, pages: list[Page], tags: TagIndex) -> None:
        """Expose every rendered page and the tag index to templates."""
        self.pages = PageCollection(pages)
        self.tags = tags
        self.env.globals["pages"] = self.pages
        self.env.globals["tags"] = self.tags

    def url_for(self, path: str) -> str:
        """Generate a URL for a path, applying ``root_url`` if configured."""
        if path.startswith(("http://", "https://", "//")):
            return path
        path = path if path.startswith("/") else f"/{path}"
        if self.config.root_url:
            return join_root_url(self.config.root_url, path)
        return path

    def tag_url(self, tag: str) -> str:
        return self.url_for(self.tags.url_for(tag))

    def _icon(self, name: str, css_class: str = "", label: str = "") -> Markup:
        return Markup(self.icons.inline(name, css_class=css_class, label=label))

    def _template(self, layout: str):
        return self.env.get_template(f"{layout}.html.jinja")

    def render_page(self, page: Page) -> str:
        """Lay out a content page.

        Raises:
            jinja2.TemplateNotFound: If the page's layout does not exist.
        """
        template = self._template(page.layout)
        return template.render(
            page=page,
            entry=page.entry,
            front_matter=page.front_matter,
            content=Markup(page.content),
            toc=render_toc(page.toc),
        )

    def render_listing(self, listing: Listing) -> str:
        """Lay out a generated listing page."""
        template = self._template(listing.layout)
        return template.render(listing=listing, intro=Markup(listing.intro))

    def render_not_found(self) -> str:
        return self._template("404").render()

    def render_string(self, template: str, context: dict[str, Any]) -> str:
        return self.env.from_string(template).render(**context)
