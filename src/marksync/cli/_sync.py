"""Sync commands: diff, sync."""

from __future__ import annotations

import contextlib

import click
from loguru import logger

from ..diff import calculate_diff
from ..events import SyncEvent, SyncEventError
from ..manager import CollectionSource, SyncManager
from ..path import Path
from ..plan import SyncOpKind
from ..raindrop import JsonFileSource, RaindropClient, RaindropSource
from ..repository import create_tree_from_repository
from ..settings import Settings
from ._helpers import (
    main,
    _handle_errors,
    _load_settings,
    _open_repository,
    _parse_path,
    _repo_option,
    _status,
)


def _source_options(f):
    """Shared --source/--token/--into options for diff and sync."""
    f = click.option("--into", "into", metavar="PATH",
                     help="Target folder (default: sync_location from settings).")(f)
    f = click.option("--token", "token", envvar="MARKSYNC_ACCESS_TOKEN",
                     help="Raindrop.io API token (or set MARKSYNC_ACCESS_TOKEN).")(f)
    f = click.option("--source", "source_file", type=click.Path(dir_okay=False),
                     help="Read collections from a JSON export instead of the API.")(f)
    return f


def _open_source(stack: contextlib.ExitStack, settings: Settings,
                 source_file: str | None, token: str | None) -> CollectionSource:
    if source_file:
        return JsonFileSource(source_file)
    token = token or settings.access_token
    if not token:
        raise click.UsageError("No source given. Use --source FILE or --token TOKEN.")
    settings.access_token = token
    client = stack.enter_context(
        RaindropClient(token, base_url=settings.api_base_url, timeout=settings.timeout)
    )
    return RaindropSource(client)


def _target_path(settings: Settings, into: str | None) -> Path:
    location = into or settings.sync_location
    if not location:
        raise click.UsageError("No target folder given. Use --into PATH.")
    target = _parse_path(location)
    if target.is_root:
        raise click.UsageError("Refusing to sync into the repository root.")
    return target


class _ErrorRecorder:
    """Listener remembering the error event of a failed pass."""

    def __init__(self):
        self.error: BaseException | None = None

    def on_event(self, event: SyncEvent) -> None:
        if isinstance(event, SyncEventError):
            self.error = event.error


# ---------------------------------------------------------------------------
# diff
# ---------------------------------------------------------------------------

@main.command()
@_repo_option
@_source_options
@click.option("-a", "--all", "show_all", is_flag=True, help="Also list unchanged bookmarks.")
@click.pass_context
@_handle_errors
def diff(ctx, source_file, token, into, show_all):
    """Show how the target folder differs from the source.

    \b
    Output lines are prefixed with:
        +  only in the source
        ~  in both, different URL
        -  only in the target
        =  unchanged (with --all)
    """
    settings = _load_settings(ctx)
    target = _target_path(settings, into)
    with contextlib.ExitStack() as stack:
        source = _open_source(stack, settings, source_file, token)
        repo = stack.enter_context(_open_repository(ctx))
        source_tree = source.fetch_tree()
        folder = repo.get_folder_by_path(target)
        result = calculate_diff(source_tree, create_tree_from_repository(repo, folder))

    for node in result.only_in_left:
        click.echo(f"+ {node.full_path()}")
    for pair in result.in_both_but_different:
        click.echo(f"~ {pair.right.full_path()}")
    for node in result.only_in_right:
        click.echo(f"- {node.full_path()}")
    if show_all:
        for pair in result.unchanged:
            click.echo(f"= {pair.right.full_path()}")
    _status(ctx, "In sync" if result.in_sync else f"{result.total} difference(s)")


# ---------------------------------------------------------------------------
# sync
# ---------------------------------------------------------------------------

@main.command()
@_repo_option
@_source_options
@click.option("-n", "--dry-run", is_flag=True, help="Show what would change without writing.")
@click.option("-f", "--force", is_flag=True,
              help="Skip validation and the last-sync threshold check.")
@click.pass_context
@_handle_errors
def sync(ctx, source_file, token, into, dry_run, force):
    """Make the target folder mirror the source.

    Bookmarks missing from the target are added, changed URLs are
    updated, and bookmarks no longer in the source are deleted.  The
    target folder (and its parents) is created when missing.

    \b
    Examples:
        marksync sync --token $RAINDROP_TOKEN --into /Raindrop
        marksync sync --source export.json --into /Raindrop -n
    """
    settings = _load_settings(ctx)
    target = _target_path(settings, into)
    with contextlib.ExitStack() as stack:
        source = _open_source(stack, settings, source_file, token)
        repo = stack.enter_context(_open_repository(ctx))

        if dry_run:
            folder = repo.get_folder_by_path(target)
        else:
            folder = repo.create_folder(target, create_parent_if_not_exists=True)
        settings.sync_location = folder.id

        manager = SyncManager(settings, repo, source)
        if dry_run:
            plan = manager.dry_run()
        else:
            recorder = _ErrorRecorder()
            manager.add_listener(recorder)
            plan = manager.start_sync(
                force=force, threshold_seconds=settings.auto_sync_interval_minutes * 60,
            )
            if recorder.error is not None:
                raise click.ClickException(str(recorder.error))
            if plan is None:
                click.echo("Already up to date")
                return

    for op in plan:
        if op.kind is not SyncOpKind.NOOP:
            click.echo(f"{op.kind.symbol} {op.path}")
    prefix = "[dry-run] " if dry_run else ""
    logger.info("{}{}", prefix, plan.summary())
