"""Command-line interface for Folio.

Commands:
- build: Build the site into the output directory.
- check: Validate every document without writing output.
- tags: Print the tag index with counts.
- serve: Run the development server with live reload.
- new: Create a new content entry interactively.
"""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

import click
import questionary

from . import __version__
from .documents import ENTRY_TYPES, ContentDocument
from .errors import BuildError, FolioError
from .frontmatter import dump_document
from .utils import slugify

logger = logging.getLogger(__name__)

_LEVEL_COLORS = {"WARNING": "yellow", "ERROR": "red", "CRITICAL": "red"}


class _ClickHandler(logging.Handler):
    """Log handler that writes through ``click.echo`` to stderr."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
            color = _LEVEL_COLORS.get(record.levelname)
            click.echo(click.style(message, fg=color) if color else message, err=True)
        except Exception:
            self.handleError(record)


def _configure_logging(verbose: bool) -> None:
    package_logger = logging.getLogger("folio")
    package_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    if not any(isinstance(h, _ClickHandler) for h in package_logger.handlers):
        handler = _ClickHandler()
        handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        package_logger.addHandler(handler)


def _relative(path: Path, root: Path) -> Path:
    try:
        return path.relative_to(root)
    except ValueError:
        return path


def _location(path: Path, line: int | None, root: Path) -> str:
    rel = _relative(path, root)
    return f"{rel}:{line}" if line else str(rel)


def _report_failures(report, project_root: Path) -> None:
    click.echo(
        click.style(f"{len(report.failures)} document(s) failed:", fg="red", bold=True),
        err=True,
    )
    for failure in report.failures:
        location = _location(failure.path, failure.line, project_root)
        click.echo(click.style(f"  {location}: ", fg="yellow") + failure.message, err=True)


verbose_option = click.option(
    "-v", "--verbose", is_flag=True, help="Log every rendered document"
)


@click.group()
@click.version_option(version=__version__, prog_name="folio")
def cli():
    """Folio portfolio and blog site generator."""


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft content")
@click.option("--strict", is_flag=True, help="Stop at the first failing document")
@verbose_option
def build(drafts: bool, strict: bool, verbose: bool):
    """Build the site into the output directory."""
    _configure_logging(verbose)
    project_root = Path.cwd()
    from .build import build_site

    try:
        report = build_site(project_root, include_drafts=drafts, strict=strict)
    except BuildError as exc:
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        click.echo(
            click.style(f"  File: {_location(exc.source_path, exc.line, project_root)}", fg="yellow"),
            err=True,
        )
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
        raise SystemExit(1) from None
    except (FolioError, FileNotFoundError) as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(
        f"Built {len(report.pages)} pages and {len(report.listings)} listings "
        f"into {_relative(report.output_dir, project_root)}"
    )
    if not report.ok:
        _report_failures(report, project_root)
        raise SystemExit(1)


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft content")
@verbose_option
def check(drafts: bool, verbose: bool):
    """Validate every document without writing output."""
    _configure_logging(verbose)
    project_root = Path.cwd()
    from .build import check_site

    try:
        report = check_site(project_root, include_drafts=drafts)
    except (FolioError, FileNotFoundError) as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(
        f"Checked {len(report.pages) + len(report.failures)} documents: "
        f"{len(report.failures)} failed, {len(report.diagnostics)} warnings"
    )
    if not report.ok:
        _report_failures(report, project_root)
        raise SystemExit(1)


@cli.command()
def tags():
    """Print every tag with the number of pages carrying it."""
    _configure_logging(False)
    project_root = Path.cwd()
    from .build import check_site

    try:
        report = check_site(project_root)
    except (FolioError, FileNotFoundError) as exc:
        raise click.ClickException(str(exc)) from exc

    counts = report.tag_index.counts()
    if not counts:
        click.echo("No tags.")
        return
    width = max(len(tag) for tag in counts)
    for tag, count in counts.items():
        click.echo(f"{tag.ljust(width)}  {count}")


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft content")
@click.option(
    "--port",
    type=int,
    required=False,
    help="Port to run the dev server (overrides folio.yaml)",
)
@click.option(
    "--ws-port",
    type=int,
    required=False,
    help="Port for the live reload websocket server (overrides folio.yaml ws_port)",
)
@verbose_option
def serve(drafts: bool, port: int | None, ws_port: int | None, verbose: bool):
    """Run dev server with live reload."""
    _configure_logging(verbose)
    project_root = Path.cwd()
    from .server import DevServer

    try:
        server = DevServer(project_root, http_port=port, ws_port=ws_port)
        server.start(include_drafts=drafts)
    except (FolioError, FileNotFoundError) as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command()
def new():
    """Create a new works, projects or blog entry interactively."""
    project_root = Path.cwd()
    from .config import load_config

    try:
        content_dir = load_config(project_root).content_path
    except FolioError as exc:
        raise click.ClickException(str(exc)) from exc
    if not content_dir.exists():
        raise click.ClickException(
            f"No {_relative(content_dir, project_root)}/ directory found. "
            "Run this command from a Folio project root."
        )

    category = _ask(
        questionary.select(
            "Category:",
            choices=sorted(ENTRY_TYPES),
            style=_questionary_style(),
        )
    )
    title = _ask(
        questionary.text(
            "Title:",
            validate=lambda x: len(x.strip()) > 0 or "Title cannot be empty",
            style=_questionary_style(),
        )
    ).strip()
    tag_text = _ask(questionary.text("Tags (comma separated):", style=_questionary_style()))

    front_matter: dict = {"title": title}
    entry_type = ENTRY_TYPES[category]
    if "date" in entry_type.required:
        front_matter["date"] = _ask(
            questionary.text(
                "Date:",
                default=date.today().isoformat(),
                validate=lambda x: len(x.strip()) > 0 or "Date cannot be empty",
                style=_questionary_style(),
            )
        ).strip()
    tag_list = [t.strip() for t in tag_text.split(",") if t.strip()]
    if tag_list:
        front_matter["tags"] = tag_list

    slug = slugify(title)
    filename = f"{date.today().isoformat()}-{slug}.md" if category == "blog" else f"{slug}.md"
    target_dir = content_dir / category
    target_path = target_dir / filename

    existing = _get_existing_slugs(target_dir)
    if target_path.exists() or slug in existing:
        raise click.ClickException(
            f"An entry with slug '{slug}' already exists in {_relative(target_dir, project_root)}"
        )

    target_dir.mkdir(parents=True, exist_ok=True)
    document = ContentDocument.create(
        target_path, front_matter, f"\n{title} goes here.\n", category=category
    )
    target_path.write_text(dump_document(document), encoding="utf-8")
    click.echo(f"Created {_relative(target_path, project_root)}")


def _ask(question):
    answer = question.ask()
    if answer is None:
        raise click.Abort()
    return answer


def _get_existing_slugs(folder: Path) -> set[str]:
    """Slugs of the markdown files already in a folder."""
    if not folder.exists():
        return set()
    return {slugify(f.stem) for f in folder.iterdir() if f.is_file() and f.suffix == ".md"}


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("pointer", "fg:cyan bold"),
            ("highlighted", "fg:cyan bold"),
            ("selected", "fg:cyan"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()
