"""Bookmark repository stored in a bare git repository.

Folders are git trees and bookmarks are blobs in Internet Shortcut
format::

    [InternetShortcut]
    URL=https://example.com

A bookmark's title is its entry name.  Every mutation writes a new root
tree (only the ancestor chain of the changed entry is rebuilt; sibling
subtrees are shared by hash) and commits it to the configured branch.
"""

from __future__ import annotations

import os
import stat
import time
from collections import defaultdict, deque
from pathlib import Path as FsPath
from typing import Optional, Tuple
from urllib.parse import unquote

from dulwich.objects import Blob, Commit, Tree
from dulwich.repo import Repo
from loguru import logger

from .exceptions import BookmarkNotFoundError, FolderNotFoundError
from .path import Path
from .repository import Bookmark, BookmarkRepository, Entry, Folder

__all__ = ["GitBookmarkRepository"]

GIT_FILEMODE_TREE = 0o040000
GIT_FILEMODE_BLOB = 0o100644

_Write = Optional[Tuple[int, bytes]]


def _encode_name(name: str) -> str:
    """Make a display name usable as a git tree entry name."""
    if name == "":
        return "%"
    encoded = name.replace("%", "%25").replace("/", "%2F").replace("\0", "%00")
    if encoded in (".", ".."):
        encoded = encoded.replace(".", "%2E")
    return encoded


def _decode_name(raw: bytes) -> str:
    name = raw.decode("utf-8", "surrogateescape")
    if name == "%":
        return ""
    return unquote(name)


def _shortcut(url: str) -> bytes:
    return f"[InternetShortcut]\nURL={url}\n".encode()


def _parse_shortcut(data: bytes) -> str:
    for line in data.decode("utf-8", "replace").splitlines():
        if line.startswith("URL="):
            return line[len("URL="):]
    return ""


def _id_of(path: Path) -> str:
    return str(path)


def _parent_id_of(path: Path) -> str | None:
    return None if path.parent.is_root else _id_of(path.parent)


class GitBookmarkRepository(BookmarkRepository):
    """A bookmark hierarchy versioned in a bare git repository.

    Ids are canonical path strings (``"/Bar/Link"``); the root folder's id
    is ``"/"``.

    Unlike a browser hierarchy, a folder and a bookmark cannot share a
    name: creating one replaces the other.
    """

    def __init__(self, repo: Repo, *, branch: str = "main",
                 author: str = "marksync", email: str = "marksync@localhost"):
        self._repo = repo
        self._ref = f"refs/heads/{branch}".encode()
        self._identity = f"{author} <{email}>".encode()

    def __repr__(self) -> str:
        return f"GitBookmarkRepository({self._repo.path!r}, ref={self._ref.decode()!r})"

    @classmethod
    def open(
        cls,
        path: str | os.PathLike[str],
        *,
        create: bool = True,
        branch: str = "main",
        author: str = "marksync",
        email: str = "marksync@localhost",
    ) -> GitBookmarkRepository:
        """Open or create a bare repository at *path*.

        Args:
            path: Path to the bare repository.
            create: If True (default), create the repo when it doesn't exist.
                    If False, raise FileNotFoundError when missing.
            branch: Branch holding the bookmarks.
            author: Author name for commits.
            email: Author email for commits.
        """
        path = FsPath(path)
        if path.exists():
            return cls(Repo(str(path)), branch=branch, author=author, email=email)
        if not create:
            raise FileNotFoundError(f"Repository not found: {path}")

        repo = Repo.init_bare(str(path), mkdir=True)
        store = cls(repo, branch=branch, author=author, email=email)
        store._commit(store._empty_tree(), f"Initialize {branch}")
        repo.refs.set_symbolic_ref(b"HEAD", store._ref)
        return store

    def close(self) -> None:
        self._repo.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    @property
    def commit_hash(self) -> str | None:
        """Hex SHA of the branch tip, or ``None`` before the first commit."""
        head = self._head()
        return head.decode() if head is not None else None

    @property
    def message(self) -> str | None:
        """Message of the branch tip commit."""
        head = self._head()
        if head is None:
            return None
        return self._repo[head].message.decode().rstrip("\n")

    # --- Low-level object access ---

    def _head(self) -> bytes | None:
        try:
            return self._repo.refs[self._ref]
        except KeyError:
            return None

    def _root_tree(self) -> bytes | None:
        head = self._head()
        if head is None:
            return None
        return self._repo[head].tree

    def _empty_tree(self) -> bytes:
        tree = Tree()
        self._repo.object_store.add_object(tree)
        return tree.id

    def _entry(self, path: Path) -> tuple[int, bytes | None] | None:
        """Return ``(mode, sha)`` of the entry at *path*, or None if missing."""
        mode, sha = GIT_FILEMODE_TREE, self._root_tree()
        for name in path.names:
            if sha is None or not stat.S_ISDIR(mode):
                return None
            try:
                mode, sha = self._repo[sha][_encode_name(name).encode()]
            except KeyError:
                return None
        return mode, sha

    def _replaced(self, path: Path) -> bool:
        """True if *path* is a tree or lies below a blob."""
        mode, sha = GIT_FILEMODE_TREE, self._root_tree()
        for name in path.names:
            if sha is None:
                return False
            if not stat.S_ISDIR(mode):
                return True
            try:
                mode, sha = self._repo[sha][_encode_name(name).encode()]
            except KeyError:
                return False
        return stat.S_ISDIR(mode)

    def _rebuild(self, tree_id: bytes | None, writes: dict[tuple[str, ...], _Write]) -> bytes:
        """Return a new tree id with *writes* applied under *tree_id*.

        Keys are encoded name tuples; a value of ``None`` removes the entry.
        """
        tree = Tree()
        if tree_id is not None:
            for entry in self._repo[tree_id].items():
                tree.add(entry.path, entry.mode, entry.sha)

        sub_writes: dict[str, dict[tuple[str, ...], _Write]] = defaultdict(dict)
        for key, value in writes.items():
            if len(key) > 1:
                sub_writes[key[0]][key[1:]] = value
                continue
            name = key[0].encode()
            if value is None:
                try:
                    del tree[name]
                except KeyError:
                    pass
            else:
                tree.add(name, value[0], value[1])

        for subdir, child_writes in sub_writes.items():
            name = subdir.encode()
            existing = None
            try:
                mode, sha = tree[name]
                if stat.S_ISDIR(mode):
                    existing = sha
            except KeyError:
                pass
            tree.add(name, GIT_FILEMODE_TREE, self._rebuild(existing, child_writes))

        self._repo.object_store.add_object(tree)
        return tree.id

    def _commit(self, tree_id: bytes, message: str) -> None:
        c = Commit()
        c.tree = tree_id
        head = self._head()
        c.parents = [head] if head is not None else []
        c.author = c.committer = self._identity
        now = int(time.time())
        c.author_time = c.commit_time = now
        c.author_timezone = c.commit_timezone = 0
        c.encoding = b"UTF-8"
        c.message = message.encode() + b"\n"
        self._repo.object_store.add_object(c)
        self._repo.refs[self._ref] = c.id

    def _write(self, writes: dict[Path, _Write], message: str) -> None:
        keyed = {tuple(_encode_name(n) for n in p.names): v for p, v in writes.items()}
        self._commit(self._rebuild(self._root_tree(), keyed), message)

    def _folder(self, path: Path) -> Folder:
        return Folder(_id_of(path), _parent_id_of(path), path.name, path)

    def _bookmark(self, path: Path, blob_id: bytes) -> Bookmark:
        url = _parse_shortcut(self._repo[blob_id].data)
        return Bookmark(_id_of(path), _parent_id_of(path), path.name, url, path)

    # --- Lookups ---

    def get_folder_by_id(self, folder_id: str) -> Folder:
        return self.get_folder_by_path(Path.from_string(folder_id))

    def get_folder_by_path(self, path: Path) -> Folder:
        entry = self._entry(path)
        if entry is None or not stat.S_ISDIR(entry[0]):
            raise FolderNotFoundError(path)
        return self._folder(path)

    def get_bookmark_by_path(self, path: Path) -> Bookmark:
        entry = self._entry(path) if not path.is_root else None
        if entry is None or stat.S_ISDIR(entry[0]):
            raise BookmarkNotFoundError(path)
        return self._bookmark(path, entry[1])

    def list_nodes(self) -> list[Entry]:
        result: list[Entry] = []
        root = self._root_tree()
        if root is None:
            return result
        queue: deque[tuple[Path, bytes]] = deque([(Path.root(), root)])
        while queue:
            base, tree_id = queue.popleft()
            for entry in self._repo[tree_id].items():
                path = base / _decode_name(entry.path)
                if stat.S_ISDIR(entry.mode):
                    result.append(self._folder(path))
                    queue.append((path, entry.sha))
                else:
                    result.append(self._bookmark(path, entry.sha))
        return result

    # --- Mutations ---

    def create_folder(self, path: Path, *, create_parent_if_not_exists: bool = False) -> Folder:
        existing = self.find_folder_by_path(path)
        if existing is not None:
            return existing
        self._ensure_parent(path, create_parent_if_not_exists)
        self._write({path: (GIT_FILEMODE_TREE, self._empty_tree())}, f"+ {path}/")
        return self._folder(path)

    def create_bookmark(
        self, path: Path, *, title: str, url: str, create_parent_if_not_exists: bool = False,
    ) -> Bookmark:
        self._ensure_parent(path, create_parent_if_not_exists)
        target = path.parent / title
        blob = Blob.from_string(_shortcut(url))
        self._repo.object_store.add_object(blob)
        self._write({target: (GIT_FILEMODE_BLOB, blob.id)}, f"+ {target}")
        return self._bookmark(target, blob.id)

    def update_bookmark(self, path: Path, *, title: str | None = None, url: str | None = None) -> Bookmark:
        current = self.get_bookmark_by_path(path)
        target = path.parent / title if title is not None else path
        blob = Blob.from_string(_shortcut(url if url is not None else current.url))
        self._repo.object_store.add_object(blob)
        writes: dict[Path, _Write] = {target: (GIT_FILEMODE_BLOB, blob.id)}
        if target != path:
            writes[path] = None
        self._write(writes, f"~ {path}")
        return self._bookmark(target, blob.id)

    def delete_bookmark(self, path: Path) -> None:
        """Remove the bookmark at *path*.

        A tree holds one entry per name, so an earlier create of the other
        kind under the same name replaces the bookmark.  If the entry at
        *path* (or one of its ancestors) now has the other kind, the
        bookmark is already gone and nothing is written.
        """
        entry = self._entry(path) if not path.is_root else None
        if entry is not None and not stat.S_ISDIR(entry[0]):
            self._write({path: None}, f"- {path}")
            return
        if not path.is_root and self._replaced(path):
            logger.debug("Bookmark {} was replaced by an entry of the other kind", path)
            return
        raise BookmarkNotFoundError(path)

    def clear_all_bookmarks_in_folder(self, folder: Folder) -> None:
        folder = self.get_folder_by_id(folder.id)
        message = f"Clear {folder.path}"
        if folder.path.is_root:
            self._commit(self._empty_tree(), message)
        else:
            self._write({folder.path: (GIT_FILEMODE_TREE, self._empty_tree())}, message)
