"""In-memory trees over flat, parent-referenced records.

Any record type can take part as long as it satisfies :class:`NodeData`.
The diff engine compares two trees through that protocol only, so a tree
of remote collection items and a tree of local bookmarks can be diffed
against each other.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable, Iterable, Iterator
from typing import Generic, Protocol, TypeVar

from loguru import logger

from .exceptions import PathConflictError
from .path import Path, PathMap, escape_segment

__all__ = ["NodeData", "TreeNode", "build_tree"]


class NodeData(Protocol):
    """Read-only record contract required for tree building and diffing.

    ``hash`` is the equality oracle across record types: folders hash
    their name, bookmarks their normalized URL.  A record with nothing to
    hash must return a token unique to that record so it never compares
    equal to anything else.
    """

    @property
    def id(self) -> str: ...

    @property
    def parent_id(self) -> str | None: ...

    @property
    def hash(self) -> str: ...

    @property
    def name(self) -> str: ...

    @property
    def url(self) -> str | None: ...

    @property
    def is_folder(self) -> bool: ...


D = TypeVar("D", bound=NodeData)


class TreeNode(Generic[D]):
    """A node owning its children, with a back-reference to its parent.

    ``data`` is ``None`` only for a synthetic grouping root.  The parent
    link is used for upward path walks only.
    """

    __slots__ = ("data", "parent", "children")

    def __init__(self, data: D | None = None, parent: TreeNode[D] | None = None):
        self.data = data
        self.parent = parent
        self.children: list[TreeNode[D]] = []

    def __repr__(self) -> str:
        kind = "folder" if self.is_folder() else "bookmark"
        return f"TreeNode({str(self.full_path())!r}, {kind})"

    # --- Construction ---

    @classmethod
    def build(cls, root_data: D | None, records: Iterable[D]) -> TreeNode[D]:
        """Build a tree from a flat record list.

        Children keep the order they have in *records*.  Records whose
        ``parent_id`` matches neither the root nor any attached record are
        orphans: they are left out and reported with a warning.
        """
        root_id = root_data.id if root_data is not None else None
        by_parent: dict[str | None, list[D]] = defaultdict(list)
        for record in records:
            parent_id = record.parent_id
            if root_id is not None and parent_id == root_id:
                parent_id = None
            by_parent[parent_id].append(record)

        root = cls(root_data)
        root._attach_children(None, by_parent)

        if by_parent:
            orphans = sum(len(v) for v in by_parent.values())
            logger.warning(
                "Dropped {} orphaned record(s); unknown parent ids: {}",
                orphans, ", ".join(str(k) for k in by_parent),
            )
        return root

    def _attach_children(self, node_id: str | None, by_parent: dict[str | None, list[D]]) -> None:
        # pop so a record reachable twice (bad ids) is attached once
        for record in by_parent.pop(node_id, []):
            child = type(self)(record)
            child._attach_children(record.id, by_parent)
            self.add_child(child)

    def add_child(self, child: TreeNode[D]) -> None:
        child.parent = self
        self.children.append(child)

    def remove_child(self, child: TreeNode[D]) -> None:
        self.children = [c for c in self.children if c is not child]
        child.parent = None

    # --- Properties ---

    @property
    def id(self) -> str | None:
        return self.data.id if self.data is not None else None

    @property
    def name(self) -> str | None:
        if self.data is None:
            return None
        return self.data.name

    @property
    def url(self) -> str | None:
        return self.data.url if self.data is not None else None

    @property
    def hash(self) -> str | None:
        return self.data.hash if self.data is not None else None

    def is_root(self) -> bool:
        return self.parent is None

    def is_folder(self) -> bool:
        """True for the root and for nodes whose data is a folder."""
        if self.is_root():
            return True
        return self.data is not None and self.data.is_folder

    def is_terminal(self) -> bool:
        """True for a non-folder node without children."""
        return not self.is_folder() and not self.children

    # --- Paths ---

    def full_path_segments(self, relative_to: TreeNode[D] | None = None) -> list[str]:
        """Display names from the root (or *relative_to*) down to this node.

        The root and *relative_to* themselves are not included.
        """
        names: list[str] = []
        node: TreeNode[D] | None = self
        while node is not None and not node.is_root() and node is not relative_to:
            names.append(node.name or "")
            node = node.parent
        names.reverse()
        return names

    def full_path(self, relative_to: TreeNode[D] | None = None) -> Path:
        """This node's :class:`Path`, with each name escaped."""
        return Path(escape_segment(n) for n in self.full_path_segments(relative_to))

    # --- Traversal ---

    def walk(self) -> Iterator[TreeNode[D]]:
        """Yield this node and its descendants, pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()

    def dfs(self, visit: Callable[[TreeNode[D]], None]) -> None:
        """Call *visit* on every node, pre-order."""
        for node in self.walk():
            visit(node)

    def find(self, node_id: str) -> TreeNode[D] | None:
        """Return the first node (pre-order) whose data has *node_id*."""
        for node in self.walk():
            if node.id == node_id:
                return node
        return None

    def to_map(
        self, *, only_terminal: bool = False, relative_to: TreeNode[D] | None = None,
    ) -> PathMap[TreeNode[D]]:
        """Map each node's path to the node.

        Every visited node is checked against the map, so with
        *only_terminal* a folder that lands on an already mapped leaf
        still conflicts even though folders are not mapped.

        Raises:
            PathConflictError: A visited node hits a path already mapped.
        """
        result: PathMap[TreeNode[D]] = PathMap()
        for node in self.walk():
            key = node.full_path(relative_to)
            if key in result:
                raise PathConflictError(f"Conflicting node found in tree map: {key}")
            if only_terminal and not node.is_terminal():
                continue
            result[key] = node
        return result


def build_tree(root_data: D | None, records: Iterable[D]) -> TreeNode[D]:
    """Build a tree from flat records; see :meth:`TreeNode.build`."""
    return TreeNode.build(root_data, records)
