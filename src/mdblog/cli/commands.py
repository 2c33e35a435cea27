"""CLI command implementations"""

import sys
from pathlib import Path
from typing import Annotated, Optional

import typer

from mdblog.clients.images import ImageSession
from mdblog.clients.oembed import OEmbedClient
from mdblog.config import Settings, load_config
from mdblog.core.errors import RenderError
from mdblog.core.parse import load_file
from mdblog.core.pipeline import run_read, render_file
from mdblog.core.render.comment import render_comment
from mdblog.crud.assets import MemoryAssetStore
from mdblog.crud.database import init_db, make_engine, reset_db
from mdblog.logging_config import configure_logging


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling, and set up logging."""
    try:
        settings = load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))
    configure_logging(settings.log_level)
    return settings


def _clients(settings: Settings) -> tuple[ImageSession, OEmbedClient]:
    """Image session and oembed client shared by every render of one run."""
    return (
        ImageSession(settings.image_api, settings.image_user, settings.image_password),
        OEmbedClient(settings.oembed_endpoint),
    )


def init_cmd(
    reset: Annotated[bool, typer.Option("--reset", help="Drop and recreate all tables")] = False,
    ):
    """Initialize database schema. Use --reset to clear existing data."""
    settings = _settings()
    engine = make_engine(settings.db_url)
    if reset:
        reset_db(engine)
        typer.echo("Existing data cleared.")
    else:
        init_db(engine)
    typer.echo(f"Database initialized at: {settings.db_url}")


def read_cmd(
    paths: Annotated[list[str], typer.Argument(help="Files or directories of posts to import")],
    force: Annotated[bool, typer.Option("--force", help="Re-render posts even if unchanged")] = False,
    include_drafts: Annotated[bool, typer.Option("--include-drafts", help="Import posts without pubdate")] = False,
    workers: Annotated[Optional[int], typer.Option("--workers", help="Documents rendered in parallel")] = None,
    ):
    """Render markdown posts and store them in the database."""
    settings = _settings(overrides={"workers": workers})
    engine = make_engine(settings.db_url)
    init_db(engine)
    images, embeds = _clients(settings)

    try:
        report = run_read(paths, engine, settings, force, include_drafts, images, embeds)
    except Exception as e:
        _fail("Import failed", e)

    for status, url in report.changes:
        typer.echo(f"  {status}: {url}")
    for path, error in report.failures:
        typer.echo(f"  failed: {path}: {error}", err=True)
    counts = report.counts
    typer.echo(
        f"Read complete - "
        f"{counts['created']} created, "
        f"{counts['updated']} updated, "
        f"{counts['unchanged']} unchanged, "
        f"{counts['skipped']} skipped, "
        f"{counts['failed']} failed"
    )
    if counts["failed"]:
        raise typer.Exit(1)


def render_cmd(
    path: Annotated[Path, typer.Argument(help="Markdown file to render")],
    ):
    """Render one post and print the result as JSON, without storing anything."""
    settings = _settings()
    images, embeds = _clients(settings)
    try:
        doc = load_file(path, settings.default_lang)
        output = render_file(doc, settings, MemoryAssetStore(), images, embeds)
    except (RenderError, ValueError, OSError) as e:
        _fail(f"Failed to render {path}", e)
    typer.echo(output.model_dump_json(indent=2))


def comment_cmd():
    """Render comment markdown from stdin as safe html."""
    typer.echo(render_comment(sys.stdin.read()))
