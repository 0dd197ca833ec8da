"""Protocol definitions for Folio.

These protocols describe the extension points of the build: page plugins,
deployment adapters and asset processors. Registries check new members
against them so a misconfigured extension fails at registration time rather
than halfway through a build.
"""

from __future__ import annotations

from abc import abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .config import SiteConfig
    from .plugins import PluginContext


@runtime_checkable
class PagePlugin(Protocol):
    """Protocol for HTML transformations applied to every page.

    ``stage`` is ``"content"`` for plugins that run on the rendered body and
    ``"page"`` for plugins that run on the final laid-out page.
    """

    name: str
    stage: str

    @abstractmethod
    def apply(self, html: str, context: PluginContext) -> str:
        """Transform HTML.

        Args:
            html: Body or page HTML.
            context: Document being rendered and site settings.

        Returns:
            Transformed HTML.
        """
        ...


@runtime_checkable
class DeploymentAdapter(Protocol):
    """Protocol for packaging a built site for a hosting target."""

    name: str

    @abstractmethod
    def package(self, output_dir: Path, config: SiteConfig) -> list[Path]:
        """Write hosting-specific files.

        Args:
            output_dir: Directory holding the built site.
            config: Site configuration (output mode, root).

        Returns:
            Paths written by the adapter.
        """
        ...


@runtime_checkable
class AssetProcessor(Protocol):
    """Protocol for processing one kind of static asset."""

    @property
    @abstractmethod
    def priority(self) -> int:
        """Return processor priority (higher = checked first)."""
        ...

    @abstractmethod
    def can_process(self, path: Path) -> bool:
        ...

    @abstractmethod
    def process(self, source: Path, dest: Path) -> bool:
        ...
