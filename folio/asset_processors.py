"""Asset processors for Folio.

Each processor handles one kind of static asset. When compression is enabled
images are re-encoded with Pillow, stylesheets are minified with
csscompressor and scripts with rjsmin; otherwise assets are copied as they
are. ``css/main.css`` is compiled with the Tailwind CLI when one can be found.

Key classes:
- BaseAssetProcessor: Shared base for processors.
- ImageProcessor, CSSProcessor, JSProcessor, TailwindCSSProcessor,
  StaticAssetProcessor: Concrete processors.
- AssetProcessorRegistry: Picks the highest-priority processor for a file.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path

import csscompressor
from PIL import Image
from rjsmin import jsmin

from .protocols import AssetProcessor

logger = logging.getLogger(__name__)

TAILWIND_ENTRY = "main.css"


def find_executable(name: str, project_root: Path | None = None) -> str | None:
    """Find an executable in PATH or the project's ``node_modules/.bin``."""
    found = shutil.which(name)
    if found:
        return found
    if project_root is not None:
        local = project_root / "node_modules" / ".bin" / name
        if local.exists():
            return str(local)
    return None


class BaseAssetProcessor(ABC):
    """Base class for asset processors."""

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
        """Process ``source`` into ``dest``.

        Returns:
            True if the asset was transformed, False if it was copied as is.
        """
        ...

    def copy(self, source: Path, dest: Path) -> bool:
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, dest)
        return False


class ImageProcessor(BaseAssetProcessor):
    """Re-encodes raster images with Pillow's optimizer."""

    SUPPORTED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp"}

    @property
    def priority(self) -> int:
        return 100

    def can_process(self, path: Path) -> bool:
        return path.suffix.lower() in self.SUPPORTED_EXTENSIONS

    def process(self, source: Path, dest: Path) -> bool:
        dest.parent.mkdir(parents=True, exist_ok=True)
        try:
            with Image.open(source) as img:
                img.save(dest, optimize=True)
        except (OSError, ValueError) as exc:
            logger.warning("Could not optimize %s (%s); copying", source.name, exc)
            return self.copy(source, dest)
        return True


class TailwindCSSProcessor(BaseAssetProcessor):
    """Compiles ``main.css`` with the Tailwind CLI.

    The CLI scans content, layouts and scripts for class names. Without the
    CLI, or if it fails, the stylesheet is copied unprocessed.
    """

    def __init__(self, project_root: Path, minify: bool = True):
        self.project_root = project_root
        self.minify = minify

    @property
    def priority(self) -> int:
        return 95

    def can_process(self, path: Path) -> bool:
        return path.name == TAILWIND_ENTRY and path.parent.name == "css"

    def process(self, source: Path, dest: Path) -> bool:
        tailwind_bin = find_executable("tailwindcss", self.project_root)
        if not tailwind_bin:
            logger.info("Tailwind CSS CLI not found; copying %s unprocessed", source.name)
            return self.copy(source, dest)

        dest.parent.mkdir(parents=True, exist_ok=True)
        content_globs = [
            str(self.project_root / "content" / "**" / "*.md"),
            str(self.project_root / "layouts" / "**" / "*.jinja"),
            str(self.project_root / "assets" / "**" / "*.js"),
        ]
        cmd = [tailwind_bin, "-i", str(source), "-o", str(dest), "--content", ",".join(content_globs)]
        if self.minify:
            cmd.append("--minify")
        result = subprocess.run(cmd, capture_output=True, text=True)
        if result.returncode != 0:
            logger.warning("Tailwind build failed: %s", result.stderr.strip())
            return self.copy(source, dest)
        return True


class CSSProcessor(BaseAssetProcessor):
    """Minifies stylesheets with csscompressor."""

    @property
    def priority(self) -> int:
        return 90

    def can_process(self, path: Path) -> bool:
        return path.suffix.lower() == ".css" and not path.name.endswith(".min.css")

    def process(self, source: Path, dest: Path) -> bool:
        dest.parent.mkdir(parents=True, exist_ok=True)
        css = source.read_text(encoding="utf-8")
        dest.write_text(csscompressor.compress(css), encoding="utf-8")
        return True


class JSProcessor(BaseAssetProcessor):
    """Minifies scripts with rjsmin."""

    @property
    def priority(self) -> int:
        return 80

    def can_process(self, path: Path) -> bool:
        return path.suffix.lower() == ".js" and not path.name.endswith(".min.js")

    def process(self, source: Path, dest: Path) -> bool:
        dest.parent.mkdir(parents=True, exist_ok=True)
        script = source.read_text(encoding="utf-8")
        dest.write_text(jsmin(script), encoding="utf-8")
        return True


class StaticAssetProcessor(BaseAssetProcessor):
    """Copies any file unchanged; the fallback for everything else."""

    @property
    def priority(self) -> int:
        return 0

    def can_process(self, path: Path) -> bool:
        return True

    def process(self, source: Path, dest: Path) -> bool:
        return self.copy(source, dest)


class AssetProcessorRegistry:
    """Processors sorted by priority, highest first."""

    def __init__(self):
        self._processors: list[AssetProcessor] = []

    def register(self, processor: AssetProcessor) -> None:
        if not isinstance(processor, AssetProcessor):
            raise TypeError(f"{processor!r} does not implement the AssetProcessor protocol")
        self._processors.append(processor)
        self._processors.sort(key=lambda p: p.priority, reverse=True)

    def get_processor(self, path: Path) -> AssetProcessor | None:
        for processor in self._processors:
            if processor.can_process(path):
                return processor
        return None

    def process(self, source: Path, dest: Path) -> bool:
        processor = self.get_processor(source)
        if processor is None:
            return False
        return processor.process(source, dest)


def create_default_registry(project_root: Path, minify: bool) -> AssetProcessorRegistry:
    """Create the registry for a build.

    Args:
        project_root: Root directory of the project.
        minify: Whether the compress plugin is enabled.
    """
    registry = AssetProcessorRegistry()
    registry.register(TailwindCSSProcessor(project_root, minify=minify))
    if minify:
        registry.register(ImageProcessor())
        registry.register(CSSProcessor())
        registry.register(JSProcessor())
    registry.register(StaticAssetProcessor())
    return registry
