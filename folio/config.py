"""Configuration loading for Folio.

The configuration is read once per build from ``folio.yaml`` at the project
root, merged over ``DEFAULT_CONFIG`` and validated into immutable objects that
are passed by reference to the renderer and the build driver.

Key classes:
- RenderConfiguration: Everything that affects how a document body becomes HTML.
- SiteConfig: Site metadata, directories, ports, output mode and adapter.

Key functions:
- load_config: Read and validate ``folio.yaml``.
- load_data: Read ``data/*.yaml`` for templates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from pygments.lexers import get_lexer_by_name
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

from .errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "folio.yaml"

# Canonical plugin order; the configured set is always applied in this order.
PLUGIN_ORDER = ("links", "icons", "compress")

OUTPUT_MODES = ("server", "static")
DEPLOYMENT_ADAPTERS = ("none", "vercel", "netlify")
MARKDOWN_EXTENSIONS = (
    "strikethrough",
    "footnotes",
    "table",
    "url",
    "task_lists",
    "def_list",
    "abbr",
    "mark",
    "insert",
    "superscript",
    "subscript",
)

DEFAULT_CONFIG: dict[str, Any] = {
    "site": {},
    "content_dir": "content",
    "output_dir": "dist",
    "port": 4000,
    "ws_port": None,
    "root_url": "",
    "highlight_theme": "github-dark",
    "recognized_languages": [
        "javascript",
        "typescript",
        "python",
        "go",
        "bash",
        "json",
        "markdown",
    ],
    "wrap": True,
    "markdown_extensions": ["strikethrough", "footnotes", "table", "url"],
    "plugins": list(PLUGIN_ORDER),
    "output_mode": "static",
    "deployment_adapter": "none",
}

# Option names used by the JavaScript tooling this format grew out of.
_ALIASES = {
    "highlightTheme": "highlight_theme",
    "recognizedLanguages": "recognized_languages",
    "outputMode": "output_mode",
    "deploymentAdapter": "deployment_adapter",
}


@dataclass(frozen=True)
class RenderConfiguration:
    """Read-only settings for the markdown-to-page pass.

    Attributes:
        highlight_theme: Pygments style name used for code blocks.
        recognized_languages: Lowercase language tags that get highlighted.
        wrap: Whether long code lines wrap instead of scrolling.
        markdown_extensions: mistune plugin names.
        plugins: Enabled page plugins, in canonical order.
    """

    highlight_theme: str = "github-dark"
    recognized_languages: frozenset[str] = frozenset(
        DEFAULT_CONFIG["recognized_languages"]
    )
    wrap: bool = True
    markdown_extensions: tuple[str, ...] = tuple(DEFAULT_CONFIG["markdown_extensions"])
    plugins: tuple[str, ...] = PLUGIN_ORDER

    @property
    def theme_class(self) -> str:
        """CSS class that scopes highlight styles to the configured theme."""
        return f"theme-{self.highlight_theme}"

    def recognizes(self, language: str) -> bool:
        return language.lower() in self.recognized_languages

    def has_plugin(self, name: str) -> bool:
        return name in self.plugins


@dataclass(frozen=True)
class SiteConfig:
    """Site-wide settings.

    ``output_mode`` and ``deployment_adapter`` only decide how the built
    files are packaged for hosting; they never change page content.
    """

    project_root: Path
    render: RenderConfiguration = field(default_factory=RenderConfiguration)
    title: str = ""
    url: str = ""
    author: str = ""
    description: str = ""
    content_dir: str = "content"
    output_dir: str = "dist"
    port: int = 4000
    ws_port: int | None = None
    root_url: str = ""
    output_mode: str = "static"
    deployment_adapter: str = "none"

    @property
    def content_path(self) -> Path:
        return self.project_root / self.content_dir

    @property
    def output_path(self) -> Path:
        return self.project_root / self.output_dir

    @property
    def site(self) -> dict[str, str]:
        """Site metadata as exposed to templates."""
        return {
            "title": self.title,
            "url": self.url,
            "author": self.author,
            "description": self.description,
        }


def load_config(project_root: Path) -> SiteConfig:
    """Load and validate ``folio.yaml``.

    Args:
        project_root: Root directory of the project.

    Returns:
        SiteConfig with defaults applied for absent keys.

    Raises:
        ConfigError: If the file is not a mapping or a value is invalid.
    """
    raw = DEFAULT_CONFIG.copy()
    config_path = project_root / CONFIG_FILENAME
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            try:
                loaded = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigError(CONFIG_FILENAME, f"invalid YAML: {exc}") from exc
        if not isinstance(loaded, dict):
            raise ConfigError(CONFIG_FILENAME, "top level must be a mapping")
        for key, value in loaded.items():
            raw[_ALIASES.get(key, key)] = value
    else:
        logger.debug("No %s in %s; using defaults", CONFIG_FILENAME, project_root)
    return config_from_mapping(project_root, raw)


def config_from_mapping(project_root: Path, raw: dict[str, Any]) -> SiteConfig:
    """Validate a raw configuration mapping into a SiteConfig."""
    merged = {**DEFAULT_CONFIG, **raw}
    site = merged.get("site") or {}
    if not isinstance(site, dict):
        raise ConfigError("site", "must be a mapping")

    render = RenderConfiguration(
        highlight_theme=_validate_theme(merged["highlight_theme"]),
        recognized_languages=_validate_languages(merged["recognized_languages"]),
        wrap=bool(merged["wrap"]),
        markdown_extensions=_validate_choices(
            "markdown_extensions", merged["markdown_extensions"], MARKDOWN_EXTENSIONS
        ),
        plugins=_order_plugins(merged["plugins"]),
    )

    output_mode = str(merged["output_mode"])
    if output_mode not in OUTPUT_MODES:
        raise ConfigError(
            "output_mode", f"expected one of {', '.join(OUTPUT_MODES)}, got '{output_mode}'"
        )
    adapter = str(merged["deployment_adapter"] or "none")
    if adapter not in DEPLOYMENT_ADAPTERS:
        raise ConfigError(
            "deployment_adapter",
            f"expected one of {', '.join(DEPLOYMENT_ADAPTERS)}, got '{adapter}'",
        )

    ws_port = merged.get("ws_port")
    return SiteConfig(
        project_root=project_root,
        render=render,
        title=str(site.get("title", "")),
        url=str(site.get("url", "")).rstrip("/"),
        author=str(site.get("author", "")),
        description=str(site.get("description", "")),
        content_dir=str(merged["content_dir"]),
        output_dir=str(merged["output_dir"]),
        port=int(merged["port"]),
        ws_port=int(ws_port) if ws_port is not None else None,
        root_url=str(merged.get("root_url") or ""),
        output_mode=output_mode,
        deployment_adapter=adapter,
    )


def _validate_theme(theme: Any) -> str:
    name = str(theme)
    try:
        get_style_by_name(name)
    except ClassNotFound as exc:
        raise ConfigError("highlight_theme", f"unknown Pygments style '{name}'") from exc
    return name


def _validate_languages(languages: Any) -> frozenset[str]:
    if isinstance(languages, str) or not isinstance(languages, (list, tuple, set)):
        raise ConfigError("recognized_languages", "must be a list of language tags")
    tags = set()
    for language in languages:
        tag = str(language).strip().lower()
        try:
            get_lexer_by_name(tag)
        except ClassNotFound as exc:
            raise ConfigError(
                "recognized_languages", f"no highlighter for language '{tag}'"
            ) from exc
        tags.add(tag)
    return frozenset(tags)


def _validate_choices(key: str, values: Any, allowed: tuple[str, ...]) -> tuple[str, ...]:
    if isinstance(values, str) or not isinstance(values, (list, tuple)):
        raise ConfigError(key, "must be a list")
    result: list[str] = []
    for value in values:
        name = str(value)
        if name not in allowed:
            raise ConfigError(key, f"unknown value '{name}'")
        if name not in result:
            result.append(name)
    return tuple(result)


def _order_plugins(values: Any) -> tuple[str, ...]:
    enabled = set(_validate_choices("plugins", values, PLUGIN_ORDER))
    return tuple(name for name in PLUGIN_ORDER if name in enabled)


def load_data(project_root: Path) -> dict[str, Any]:
    """Load template data from YAML files in the data directory.

    ``data/site.yaml`` is merged at the top level; every other file is
    available under its stem (``data/nav.yaml`` -> ``data.nav``).

    Args:
        project_root: Root directory of the project.

    Returns:
        Dictionary containing merged data from all YAML files.
    """
    data_dir = project_root / "data"
    data: dict[str, Any] = {}
    if not data_dir.exists():
        return data
    for path in sorted(data_dir.glob("*.yaml")):
        with open(path, encoding="utf-8") as f:
            try:
                payload = yaml.safe_load(f)
            except yaml.YAMLError as exc:
                raise ConfigError(f"data/{path.name}", f"invalid YAML: {exc}") from exc
        if payload is None:
            continue
        if path.name == "site.yaml":
            if isinstance(payload, dict):
                data.update(payload)
            continue
        data[path.stem] = payload
    return data
