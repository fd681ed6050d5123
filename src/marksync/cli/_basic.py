"""Basic commands: init, ls, mkdir."""

from __future__ import annotations

import os

import click

from ..gitrepo import GitBookmarkRepository
from ..repository import create_tree_from_repository
from ._helpers import (
    main,
    _handle_errors,
    _open_repository,
    _parse_path,
    _repo_option,
    _require_repo,
    _status,
)


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------

@main.command()
@_repo_option
@click.option("--branch", "-b", default="main", help="Initial branch name (default: main).")
@click.pass_context
def init(ctx, branch):
    """Create a new bare bookmark repository."""
    repo_path = _require_repo(ctx)
    if os.path.exists(repo_path):
        raise click.ClickException(f"Repository already exists: {repo_path}")
    GitBookmarkRepository.open(repo_path, branch=branch).close()
    _status(ctx, f"Initialized {repo_path}")


# ---------------------------------------------------------------------------
# ls
# ---------------------------------------------------------------------------

@main.command()
@_repo_option
@click.argument("path", required=False)
@click.pass_context
@_handle_errors
def ls(ctx, path):
    """List folders and bookmarks below PATH (or the root).

    Folders are printed with a trailing '/'; bookmarks are followed by
    their URL.

    \b
    Examples:
        marksync ls
        marksync ls /Raindrop/Work
    """
    with _open_repository(ctx) as repo:
        folder = repo.get_folder_by_path(_parse_path(path))
        base = create_tree_from_repository(repo, folder)
        for node in base.walk():
            if node is base:
                continue
            if node.is_folder():
                click.echo(f"{node.full_path()}/")
            else:
                click.echo(f"{node.full_path()}\t{node.url or ''}")


# ---------------------------------------------------------------------------
# mkdir
# ---------------------------------------------------------------------------

@main.command()
@_repo_option
@click.argument("path")
@click.pass_context
@_handle_errors
def mkdir(ctx, path):
    """Create folder PATH, including missing parents."""
    target = _parse_path(path)
    if target.is_root:
        raise click.ClickException("Cannot create the root folder")
    with _open_repository(ctx) as repo:
        folder = repo.create_folder(target, create_parent_if_not_exists=True)
    _status(ctx, f"Created {folder.path}/")
