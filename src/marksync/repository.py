"""The bookmark repository interface the executor writes to.

A repository is a mutable folder/bookmark hierarchy addressed by
:class:`~marksync.path.Path`.  Concrete implementations live in
:mod:`marksync.memory` and :mod:`marksync.gitrepo`.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Union

from ._url import content_hash
from .exceptions import FolderNotFoundError, NotFoundError
from .path import Path
from .tree import TreeNode

__all__ = [
    "Folder", "Bookmark", "BookmarkNodeData", "BookmarkRepository",
    "create_tree_from_repository",
]


@dataclass(frozen=True)
class Folder:
    """A folder in a repository.

    Attributes:
        id: Repository-specific identifier.
        parent_id: Id of the containing folder, ``None`` at the top level
            and for the repository root.
        title: Display name (``""`` for the root).
        path: Location of the folder.
    """
    id: str
    parent_id: str | None
    title: str
    path: Path


@dataclass(frozen=True)
class Bookmark:
    """A bookmark (leaf) in a repository."""
    id: str
    parent_id: str | None
    title: str
    url: str
    path: Path


Entry = Union[Folder, Bookmark]


@dataclass(frozen=True)
class BookmarkNodeData:
    """:class:`~marksync.tree.NodeData` view of a repository record."""
    record: Entry
    _nonce: str = field(default_factory=lambda: uuid.uuid4().hex, repr=False, compare=False)

    @property
    def id(self) -> str:
        return self.record.id

    @property
    def parent_id(self) -> str | None:
        return self.record.parent_id

    @property
    def name(self) -> str:
        return self.record.title

    @property
    def url(self) -> str | None:
        if isinstance(self.record, Bookmark):
            return self.record.url or None
        return None

    @property
    def is_folder(self) -> bool:
        return isinstance(self.record, Folder)

    @property
    def hash(self) -> str:
        return content_hash(self.is_folder, self.name, self.url, self._nonce)


class BookmarkRepository(ABC):
    """Folder/bookmark storage addressed by id and by path.

    Subclasses implement the ``get_*`` lookups, which raise a
    :class:`~marksync.exceptions.NotFoundError` subclass when nothing
    matches.  The ``find_*`` variants are defined here on top of them and
    return ``None`` instead.
    """

    # --- Lookups ---

    @abstractmethod
    def get_folder_by_id(self, folder_id: str) -> Folder:
        """Return the folder with *folder_id* or raise FolderNotFoundError."""

    @abstractmethod
    def get_folder_by_path(self, path: Path) -> Folder:
        """Return the folder at *path* or raise FolderNotFoundError."""

    @abstractmethod
    def get_bookmark_by_path(self, path: Path) -> Bookmark:
        """Return the bookmark at *path* or raise BookmarkNotFoundError."""

    @abstractmethod
    def list_nodes(self) -> list[Entry]:
        """All folders and bookmarks below the root, parents before children."""

    def find_folder_by_id(self, folder_id: str) -> Folder | None:
        return _find(self.get_folder_by_id, folder_id)

    def find_folder_by_path(self, path: Path) -> Folder | None:
        return _find(self.get_folder_by_path, path)

    def find_bookmark_by_path(self, path: Path) -> Bookmark | None:
        return _find(self.get_bookmark_by_path, path)

    # --- Mutations ---

    @abstractmethod
    def create_folder(self, path: Path, *, create_parent_if_not_exists: bool = False) -> Folder:
        """Create the folder at *path*; return the existing one if present.

        Raises:
            FolderNotFoundError: The parent is missing and
                *create_parent_if_not_exists* is false.
        """

    @abstractmethod
    def create_bookmark(
        self, path: Path, *, title: str, url: str, create_parent_if_not_exists: bool = False,
    ) -> Bookmark:
        """Create a bookmark in the folder ``path.parent``.

        Raises:
            FolderNotFoundError: The parent is missing and
                *create_parent_if_not_exists* is false.
        """

    @abstractmethod
    def update_bookmark(self, path: Path, *, title: str | None = None, url: str | None = None) -> Bookmark:
        """Overwrite the given fields of the bookmark at *path*."""

    @abstractmethod
    def delete_bookmark(self, path: Path) -> None:
        """Remove the bookmark at *path*."""

    @abstractmethod
    def clear_all_bookmarks_in_folder(self, folder: Folder) -> None:
        """Remove every folder and bookmark below *folder*."""

    def _ensure_parent(self, path: Path, create: bool) -> Folder:
        """Shared parent resolution for ``create_*``."""
        parent = self.find_folder_by_path(path.parent)
        if parent is not None:
            return parent
        if not create:
            raise FolderNotFoundError(path.parent)
        return self.create_folder(path.parent, create_parent_if_not_exists=True)


def _find(getter, key):
    try:
        return getter(key)
    except NotFoundError:
        return None


def create_tree_from_repository(
    repository: BookmarkRepository, base: Folder | None = None,
) -> TreeNode[BookmarkNodeData]:
    """Build the repository's tree and return the node for *base*.

    The returned node stays attached to its ancestors, so
    :meth:`~marksync.tree.TreeNode.full_path` gives repository paths.

    Raises:
        FolderNotFoundError: *base* is not in the repository.
    """
    records = [BookmarkNodeData(r) for r in repository.list_nodes()]
    root: TreeNode[BookmarkNodeData] = TreeNode.build(None, records)
    if base is None or base.path.is_root:
        return root
    node = root.find(base.id)
    if node is None or not node.is_folder():
        raise FolderNotFoundError(base.id)
    return node
