"""Deployment adapters for Folio.

An adapter packages the finished output directory for a hosting target.
Adapters never change page content; ``output_mode`` only decides which
routing the host is told about.

- none: the output directory is the deliverable.
- vercel: Build Output API v3 layout under ``.vercel/output``.
- netlify: a ``_redirects`` file with a 404 fallback.
"""

from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path

from .config import SiteConfig
from .protocols import DeploymentAdapter

logger = logging.getLogger(__name__)


class NoAdapter:
    """Leaves the output directory as is."""

    name = "none"

    def package(self, output_dir: Path, config: SiteConfig) -> list[Path]:
        return []


class VercelAdapter:
    """Writes the Vercel Build Output API layout.

    The built site is copied to ``.vercel/output/static`` and a
    ``config.json`` describing routing is written next to it. In ``server``
    mode the host checks the filesystem first and falls back to ``404.html``;
    in ``static`` mode only clean URLs are requested.
    """

    name = "vercel"

    def package(self, output_dir: Path, config: SiteConfig) -> list[Path]:
        target = config.project_root / ".vercel" / "output"
        static_dir = target / "static"
        if static_dir.exists():
            shutil.rmtree(static_dir)
        target.mkdir(parents=True, exist_ok=True)
        shutil.copytree(output_dir, static_dir)

        payload: dict = {"version": 3, "cleanUrls": True, "trailingSlash": True}
        if config.output_mode == "server":
            payload["routes"] = [
                {"handle": "filesystem"},
                {"src": "/(.*)", "status": 404, "dest": "/404.html"},
            ]
        config_path = target / "config.json"
        config_path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
        logger.info("Packaged site for Vercel in %s", target)
        return [config_path, static_dir]


class NetlifyAdapter:
    """Writes a Netlify ``_redirects`` file into the output directory."""

    name = "netlify"

    def package(self, output_dir: Path, config: SiteConfig) -> list[Path]:
        redirects = output_dir / "_redirects"
        redirects.write_text("/*    /404.html    404\n", encoding="utf-8")
        return [redirects]


_ADAPTERS: dict[str, type] = {
    NoAdapter.name: NoAdapter,
    VercelAdapter.name: VercelAdapter,
    NetlifyAdapter.name: NetlifyAdapter,
}


def get_adapter(name: str) -> DeploymentAdapter:
    """Return the adapter registered under ``name``.

    Raises:
        KeyError: If no adapter has that name.
    """
    adapter = _ADAPTERS[name]()
    if not isinstance(adapter, DeploymentAdapter):  # pragma: no cover
        raise TypeError(f"{adapter!r} does not implement DeploymentAdapter")
    return adapter
