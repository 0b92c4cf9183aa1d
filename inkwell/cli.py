"""Command-line interface for Inkwell.

This module defines the CLI commands using the Click framework.

Commands:
- build: Build the site into the output directory.
- check: Load and index the documents without writing anything.
- new: Create a new article with a TOML header.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import NoReturn

import click

from . import __version__
from .build import build_site, load_config, load_site
from .content import FileSourceLoader, LoadWarning, derive_identifier
from .errors import BuildError, InkwellError
from .logging_utils import setup_logging
from .utils import slugify

PARTIAL_BUILD_EXIT_CODE = 2


@click.group()
@click.version_option(version=__version__, prog_name="inkwell")
@click.option("-v", "--verbose", is_flag=True, help="Show debug output")
@click.option("-q", "--quiet", is_flag=True, help="Only show warnings and errors")
def cli(verbose: bool, quiet: bool):
    """Inkwell static blog builder."""
    level = "DEBUG" if verbose else "WARNING" if quiet else "INFO"
    setup_logging(level)


@cli.command()
@click.option(
    "--strict/--lenient",
    default=None,
    help="Fail on the first malformed document (default: from inkwell.yaml, lenient)",
)
@click.option("--drafts/--no-drafts", default=None, help="Include draft documents")
@click.option(
    "--require-documents/--allow-empty",
    default=None,
    help="Fail if no documents are found",
)
@click.option(
    "--output",
    "output",
    type=click.Path(file_okay=False, path_type=Path),
    help="Write the site here instead of the configured output_dir",
)
def build(
    strict: bool | None,
    drafts: bool | None,
    require_documents: bool | None,
    output: Path | None,
):
    """Build the site into the output directory.

    Exits with status 2 when documents were skipped, after publishing the
    rest, and with status 1 on a fatal error.
    """
    project_root = Path.cwd()
    try:
        result = build_site(
            project_root,
            strict=strict,
            include_drafts=drafts,
            require_documents=require_documents,
            output_dir_override=output,
        )
    except InkwellError as exc:
        _fail(project_root, exc)
    _report_warnings(project_root, result.warnings)
    click.echo(
        f"Built {len(result.documents)} documents "
        f"({len(result.pages)} pages) into {result.output_dir}"
    )
    if not result.ok:
        raise SystemExit(PARTIAL_BUILD_EXIT_CODE)


@cli.command()
@click.option("--strict/--lenient", default=None, help="Fail on the first malformed document")
@click.option("--drafts/--no-drafts", default=None, help="Include draft documents")
def check(strict: bool | None, drafts: bool | None):
    """Validate every document without writing output."""
    project_root = Path.cwd()
    try:
        site = load_site(project_root, strict=strict, include_drafts=drafts)
    except InkwellError as exc:
        _fail(project_root, exc)
    _report_warnings(project_root, site.warnings)
    click.echo(
        f"{len(site.index)} documents, {len(site.index.by_tag)} tags, "
        f"{len(site.warnings)} problem(s)"
    )
    if site.warnings:
        raise SystemExit(1)


@cli.command()
@click.argument("title")
@click.option("--tags", default="", help="Comma-separated list of tags")
@click.option(
    "--date",
    "date_",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Publication date (default: today)",
)
@click.option("--draft", is_flag=True, help="Mark the article as a draft")
def new(title: str, tags: str, date_, draft: bool):
    """Create a new article with a TOML header."""
    project_root = Path.cwd()
    try:
        config = load_config(project_root)
    except InkwellError as exc:
        raise click.ClickException(str(exc)) from exc
    source_dir = project_root / config["source_dir"]

    published = date_.date() if date_ else date.today()
    slug = slugify(title)
    if not slug:
        raise click.ClickException(f"Cannot derive a file name from title {title!r}")
    target = source_dir / f"{published.isoformat()}-{slug}.md"
    if target.exists():
        raise click.ClickException(
            f"File already exists: {target.relative_to(project_root)}"
        )

    existing = _existing_identifiers(source_dir)
    if slug in existing:
        raise click.ClickException(
            f"A document with identifier '{slug}' already exists: {existing[slug].name}"
        )

    tag_list = [t.strip() for t in tags.split(",") if t.strip()]
    source_dir.mkdir(parents=True, exist_ok=True)
    target.write_text(_new_document(title, published, tag_list, draft), encoding="utf-8")
    click.echo(f"Created {target.relative_to(project_root)}")


def main():
    """Entry point for the CLI application."""
    cli()


def _new_document(title: str, published: date, tags: list[str], draft: bool) -> str:
    lines = [
        "+++",
        f"title = {_toml_string(title)}",
        f"date = {published.isoformat()}",
        f"tags = [{', '.join(_toml_string(t) for t in tags)}]",
    ]
    if draft:
        lines.append("draft = true")
    lines.extend(["+++", "", ""])
    return "\n".join(lines)


def _toml_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _existing_identifiers(source_dir: Path) -> dict[str, Path]:
    """Map filename-derived identifiers to the files that use them."""
    identifiers: dict[str, Path] = {}
    if not source_dir.is_dir():
        return identifiers
    for path in FileSourceLoader(source_dir).iter_files():
        identifiers.setdefault(derive_identifier(path), path)
    return identifiers


def _report_warnings(project_root: Path, warnings: tuple[LoadWarning, ...]) -> None:
    if not warnings:
        return
    click.echo(
        click.style(f"Skipped {len(warnings)} document(s):", fg="yellow", bold=True),
        err=True,
    )
    for warning in warnings:
        click.echo(f"  {_relative(warning.path, project_root)}: {warning.reason}", err=True)


def _fail(project_root: Path, exc: InkwellError) -> NoReturn:
    click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
    if isinstance(exc, BuildError):
        click.echo(
            click.style(f"  File: {_relative(exc.source_path, project_root)}", fg="yellow"),
            err=True,
        )
        click.echo(f"  Error: {exc.message}", err=True)
    else:
        click.echo(f"  Error: {exc}", err=True)
    raise SystemExit(1)


def _relative(path: Path, project_root: Path) -> str:
    try:
        return str(path.relative_to(project_root))
    except ValueError:
        return str(path)
