"""In-process bookmark repository, optionally backed by a JSON file."""

from __future__ import annotations

import json
import os
from collections import deque
from dataclasses import dataclass, field

from .exceptions import BookmarkNotFoundError, FolderNotFoundError
from .path import Path
from .repository import Bookmark, BookmarkRepository, Entry, Folder

__all__ = ["MemoryBookmarkRepository"]

ROOT_ID = "0"


@dataclass
class _Node:
    id: str
    parent_id: str | None
    title: str
    url: str | None = None
    children: list[str] = field(default_factory=list)

    @property
    def is_folder(self) -> bool:
        return self.url is None


class MemoryBookmarkRepository(BookmarkRepository):
    """A bookmark hierarchy held in memory.

    Ids are decimal strings assigned in creation order; the root folder
    has id ``"0"``.  Sibling titles need not be unique: path lookups take
    the first sibling of the right kind.
    """

    def __init__(self):
        self._nodes: dict[str, _Node] = {ROOT_ID: _Node(ROOT_ID, None, "")}
        self._next_id = 1

    def __repr__(self) -> str:
        return f"MemoryBookmarkRepository({len(self._nodes) - 1} nodes)"

    # --- Internal helpers ---

    def _new_node(self, parent: _Node, title: str, url: str | None = None) -> _Node:
        node = _Node(str(self._next_id), parent.id, title, url)
        self._next_id += 1
        self._nodes[node.id] = node
        parent.children.append(node.id)
        return node

    def _path_of(self, node: _Node) -> Path:
        names: list[str] = []
        while node.parent_id is not None:
            names.append(node.title)
            node = self._nodes[node.parent_id]
        names.reverse()
        return Path.from_names(*names)

    def _record(self, node: _Node) -> Entry:
        parent_id = node.parent_id if node.parent_id != ROOT_ID else None
        if node.is_folder:
            return Folder(node.id, parent_id, node.title, self._path_of(node))
        return Bookmark(node.id, parent_id, node.title, node.url, self._path_of(node))

    def _resolve(self, path: Path, *, folder: bool) -> _Node | None:
        node = self._nodes[ROOT_ID]
        names = path.names
        for i, name in enumerate(names):
            last = i == len(names) - 1
            want_folder = folder or not last
            for child_id in node.children:
                child = self._nodes[child_id]
                if child.title == name and child.is_folder == want_folder:
                    node = child
                    break
            else:
                return None
        return node

    def _remove_subtree(self, node: _Node) -> None:
        for child_id in list(node.children):
            self._remove_subtree(self._nodes[child_id])
        parent = self._nodes[node.parent_id]
        parent.children.remove(node.id)
        del self._nodes[node.id]

    # --- Lookups ---

    def get_folder_by_id(self, folder_id: str) -> Folder:
        node = self._nodes.get(folder_id)
        if node is None or not node.is_folder:
            raise FolderNotFoundError(folder_id)
        return self._record(node)

    def get_folder_by_path(self, path: Path) -> Folder:
        node = self._resolve(path, folder=True)
        if node is None:
            raise FolderNotFoundError(path)
        return self._record(node)

    def get_bookmark_by_path(self, path: Path) -> Bookmark:
        node = self._resolve(path, folder=False) if not path.is_root else None
        if node is None:
            raise BookmarkNotFoundError(path)
        return self._record(node)

    def list_nodes(self) -> list[Entry]:
        result: list[Entry] = []
        queue = deque(self._nodes[ROOT_ID].children)
        while queue:
            node = self._nodes[queue.popleft()]
            result.append(self._record(node))
            queue.extend(node.children)
        return result

    # --- Mutations ---

    def create_folder(self, path: Path, *, create_parent_if_not_exists: bool = False) -> Folder:
        existing = self.find_folder_by_path(path)
        if existing is not None:
            return existing
        parent = self._ensure_parent(path, create_parent_if_not_exists)
        node = self._new_node(self._nodes[parent.id], path.name)
        return self._record(node)

    def create_bookmark(
        self, path: Path, *, title: str, url: str, create_parent_if_not_exists: bool = False,
    ) -> Bookmark:
        parent = self._ensure_parent(path, create_parent_if_not_exists)
        node = self._new_node(self._nodes[parent.id], title, url)
        return self._record(node)

    def update_bookmark(self, path: Path, *, title: str | None = None, url: str | None = None) -> Bookmark:
        node = self._nodes[self.get_bookmark_by_path(path).id]
        if title is not None:
            node.title = title
        if url is not None:
            node.url = url
        return self._record(node)

    def delete_bookmark(self, path: Path) -> None:
        node = self._nodes[self.get_bookmark_by_path(path).id]
        self._remove_subtree(node)

    def clear_all_bookmarks_in_folder(self, folder: Folder) -> None:
        node = self._nodes[self.get_folder_by_id(folder.id).id]
        for child_id in list(node.children):
            self._remove_subtree(self._nodes[child_id])

    # --- Serialization ---

    def to_dict(self) -> dict:
        """Nested ``{"title", "url"?, "children"?}`` form of the hierarchy."""
        def convert(node: _Node) -> dict:
            if not node.is_folder:
                return {"title": node.title, "url": node.url}
            return {
                "title": node.title,
                "children": [convert(self._nodes[c]) for c in node.children],
            }
        return convert(self._nodes[ROOT_ID])

    @classmethod
    def from_dict(cls, data: dict) -> MemoryBookmarkRepository:
        """Inverse of :meth:`to_dict`."""
        repo = cls()

        def add(parent: _Node, items: list[dict]) -> None:
            for item in items:
                if "url" in item:
                    repo._new_node(parent, item.get("title", ""), item["url"])
                else:
                    child = repo._new_node(parent, item.get("title", ""))
                    add(child, item.get("children", []))

        add(repo._nodes[ROOT_ID], data.get("children", []))
        return repo

    @classmethod
    def load(cls, path: str | os.PathLike[str]) -> MemoryBookmarkRepository:
        with open(path, encoding="utf-8") as f:
            return cls.from_dict(json.load(f))

    def dump(self, path: str | os.PathLike[str]) -> None:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
            f.write("\n")
