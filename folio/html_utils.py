"""HTML string helpers for Folio.

Functions:
    escape_html: Escape special HTML characters in a string.
    is_external_url: Whether a URL points away from the site.
    join_root_url: Join a base URL with a path.
    absolutize_html_urls: Convert root-relative URLs to absolute in HTML.
"""

from __future__ import annotations

import re
from urllib.parse import urlsplit

_URL_ATTR_RE = re.compile(
    r'(?P<prefix>\b(?:href|src|action)=["\'])(?P<url>[^"\']+)(?P<suffix>["\'])'
)

_URL_SKIP_PREFIXES = (
    "http://",
    "https://",
    "//",
    "mailto:",
    "tel:",
    "#",
    "javascript:",
    "data:",
)


def escape_html(text: str) -> str:
    """Escape ``&``, ``<``, ``>`` and ``"``.

    Examples:
        >>> escape_html('<b>"Tom" & Jerry</b>')
        '&lt;b&gt;&quot;Tom&quot; &amp; Jerry&lt;/b&gt;'
    """
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def is_external_url(url: str, site_url: str = "") -> bool:
    """Whether ``url`` leaves the site.

    Absolute URLs on the same host as ``site_url`` count as internal.
    """
    if not url.startswith(("http://", "https://", "//")):
        return False
    host = urlsplit(url if not url.startswith("//") else f"https:{url}").netloc.lower()
    site_host = urlsplit(site_url).netloc.lower() if site_url else ""
    return not site_host or host != site_host


def join_root_url(root_url: str, path: str) -> str:
    """Safely join a root URL and a path, avoiding double slashes.

    Examples:
        >>> join_root_url('https://example.com/', 'about')
        'https://example.com/about'
    """
    if not root_url:
        return path
    base = root_url.rstrip("/")
    suffix = path if path.startswith("/") else f"/{path}"
    return f"{base}{suffix}"


def absolutize_html_urls(html: str, root_url: str) -> str:
    """Rewrite root-relative ``href``/``src``/``action`` URLs to absolute ones.

    External URLs, anchors, and mailto/tel/javascript/data URLs are left
    unchanged.
    """
    if not root_url:
        return html

    def repl(match: re.Match) -> str:
        url = match.group("url")
        if not url or url.startswith(_URL_SKIP_PREFIXES):
            return match.group(0)
        absolute = join_root_url(root_url, url)
        return f"{match.group('prefix')}{absolute}{match.group('suffix')}"

    return _URL_ATTR_RE.sub(repl, html)
