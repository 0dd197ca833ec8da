"""Static asset pipeline for Folio.

Copies ``assets/`` into ``<output>/assets/`` through the processor registry
and writes the stylesheet for highlighted code.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .asset_processors import AssetProcessorRegistry, create_default_registry

logger = logging.getLogger(__name__)


@dataclass
class AssetReport:
    """Counts from one pipeline run."""

    processed: int = 0
    copied: int = 0


class AssetPipeline:
    """Processes every file below ``assets/``.

    Attributes:
        project_root: Root directory of the project.
        assets_dir: Directory containing source assets.
        output_dir: Site output directory; assets land in ``output_dir/assets``.
        registry: Processors used for each file.
    """

    def __init__(
        self,
        project_root: Path,
        output_dir: Path,
        minify: bool = True,
        registry: AssetProcessorRegistry | None = None,
    ):
        self.project_root = project_root
        self.assets_dir = project_root / "assets"
        self.output_dir = output_dir
        self.registry = registry or create_default_registry(project_root, minify)

    def run(self) -> AssetReport:
        report = AssetReport()
        if not self.assets_dir.exists():
            return report
        target = self.output_dir / "assets"
        for item in sorted(self.assets_dir.rglob("*")):
            if item.is_dir():
                continue
            dest = target / item.relative_to(self.assets_dir)
            if self.registry.process(item, dest):
                report.processed += 1
            else:
                report.copied += 1
        logger.info(
            "Assets: %d processed, %d copied", report.processed, report.copied
        )
        return report

    def write_stylesheet(self, relative: str, css: str) -> Path:
        """Write a generated stylesheet below ``<output>/assets``."""
        path = self.output_dir / "assets" / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(css, encoding="utf-8")
        return path
