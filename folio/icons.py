"""SVG icon resolution for Folio.

Icons live under ``icons/`` at the project root, either flat
(``icons/github.svg`` -> ``github``) or grouped in sets
(``icons/mdi/github.svg`` -> ``mdi:github``). Resolved icons are inlined
into pages so no extra requests are needed.

Key classes:
- IconResolver: Finds icon files and returns inline SVG markup.
"""

from __future__ import annotations

import re
from pathlib import Path

from .errors import IconNotFoundError
from .html_utils import escape_html
from .utils import slugify

_PROLOG_RE = re.compile(r"<\?xml[^>]*\?>|<!DOCTYPE[^>]*>|<!--.*?-->", re.DOTALL)
_SVG_OPEN_RE = re.compile(r"<svg\b(?P<attrs>[^>]*)>", re.IGNORECASE)


class IconResolver:
    """Resolves icon names to inline SVG.

    Attributes:
        icons_dir: Directory holding the SVG files.
    """

    def __init__(self, icons_dir: Path):
        self.icons_dir = icons_dir
        self._cache: dict[str, str] = {}

    def candidates(self, name: str) -> list[Path]:
        """Return the files that may hold ``name``, most specific first."""
        if ":" in name:
            icon_set, icon = name.split(":", 1)
            return [self.icons_dir / icon_set / f"{icon}.svg", self.icons_dir / f"{icon}.svg"]
        return [self.icons_dir / f"{name}.svg"]

    def resolve(self, name: str) -> Path:
        """Find the SVG file for an icon name.

        Raises:
            IconNotFoundError: If no candidate file exists.
        """
        searched = self.candidates(name)
        for path in searched:
            if path.is_file():
                return path
        raise IconNotFoundError(name, searched)

    def inline(self, name: str, css_class: str = "", label: str = "") -> str:
        """Return the icon's SVG markup ready to embed.

        Args:
            name: Icon name, ``set:name`` or ``name``.
            css_class: Extra classes for the ``svg`` element.
            label: Accessible label; without one the icon is hidden from
                assistive technology.
        """
        if name not in self._cache:
            svg = self.resolve(name).read_text(encoding="utf-8")
            self._cache[name] = _PROLOG_RE.sub("", svg).strip()
        svg = self._cache[name]

        classes = " ".join(part for part in ("icon", f"icon-{slugify(name)}", css_class) if part)
        extra = f' class="{escape_html(classes)}"'
        if label:
            extra += f' role="img" aria-label="{escape_html(label)}"'
        else:
            extra += ' aria-hidden="true"'

        def add_attrs(match: re.Match) -> str:
            attrs = re.sub(r'\sclass="[^"]*"', "", match.group("attrs"))
            return f"<svg{attrs.rstrip(' /')}{extra}>"

        return _SVG_OPEN_RE.sub(add_attrs, svg, count=1)
