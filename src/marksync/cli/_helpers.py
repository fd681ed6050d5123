"""Shared helpers, option decorators, and the main CLI group."""

from __future__ import annotations

import functools
import sys

import click
from loguru import logger

from ..exceptions import MarksyncError
from ..gitrepo import GitBookmarkRepository
from ..path import Path
from ..settings import Settings


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def configure_logging(verbose: bool) -> None:
    """Send loguru output to stderr at INFO, or DEBUG when *verbose*."""
    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG" if verbose else "INFO",
        format="<level>{level: <8}</level> {message}",
    )


def _store_repo(ctx, param, value):
    """Click callback: store --repo value in the context."""
    ctx.ensure_object(dict)
    if value is not None:
        ctx.obj["repo_path"] = value
    return value


def _repo_option(f):
    """Shared --repo/-r option decorator for all commands."""
    return click.option(
        "--repo", "-r", type=click.Path(), envvar="MARKSYNC_REPO",
        help="Path to the bare git bookmark repository (or set MARKSYNC_REPO).",
        expose_value=False, callback=_store_repo, is_eager=True,
    )(f)


def _require_repo(ctx) -> str:
    """Get the repo path from context, raising a clear error if missing."""
    repo = ctx.obj.get("repo_path")
    if not repo:
        raise click.UsageError("No repository specified. Use --repo or set MARKSYNC_REPO.")
    return repo


def _open_repository(ctx) -> GitBookmarkRepository:
    repo_path = _require_repo(ctx)
    try:
        return GitBookmarkRepository.open(repo_path, create=False)
    except FileNotFoundError:
        raise click.ClickException(f"Repository not found: {repo_path}")


def _parse_path(raw: str | None) -> Path:
    """Parse a repository path argument (``/`` or empty means the root)."""
    if not raw:
        return Path.root()
    return Path.from_string(raw)


def _load_settings(ctx) -> Settings:
    try:
        return Settings.load(ctx.obj.get("config"))
    except (OSError, ValueError) as exc:
        raise click.ClickException(f"Invalid configuration: {exc}")


def _status(ctx, msg):
    """Emit a status message to stderr when verbose mode (-v) is on."""
    if ctx.obj.get("verbose"):
        click.echo(msg, err=True)


def _handle_errors(f):
    """Convert library errors into ClickException (exit status 1)."""

    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except MarksyncError as exc:
            raise click.ClickException(str(exc))
    return wrapper


# ---------------------------------------------------------------------------
# Main group
# ---------------------------------------------------------------------------

@click.group()
@click.option("--repo", "-r", type=click.Path(), envvar="MARKSYNC_REPO",
              help="Path to the bare git bookmark repository (or set MARKSYNC_REPO).",
              expose_value=False, callback=_store_repo, is_eager=True)
@click.option("--config", "config", type=click.Path(exists=True, dir_okay=False),
              help="TOML settings file with a [marksync] table.")
@click.option("-v", "--verbose", is_flag=True, help="Verbose output on stderr.")
@click.pass_context
def main(ctx, config, verbose):
    """Mirror a Raindrop.io collection tree into bookmarks.

    The target is a bare git repository where folders are trees and
    bookmarks are Internet Shortcut files.  Every change is a commit.

    \b
    Quick start:
      marksync init -r bookmarks.git
      marksync sync --token $RAINDROP_TOKEN --into /Raindrop
      marksync ls -r bookmarks.git

    \b
    Offline runs read a JSON export instead of the API:
      marksync sync --source export.json --into /Raindrop --dry-run

    Set MARKSYNC_REPO to avoid passing --repo on every call.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config"] = config
    configure_logging(verbose)
