"""Four-way diff between a source tree and a target tree."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, NamedTuple

from loguru import logger

from .tree import TreeNode


class NodePair(NamedTuple):
    """Terminal nodes found at the same relative path in both trees."""

    left: TreeNode[Any]
    right: TreeNode[Any]


@dataclass
class SyncDiff:
    """Partition of both trees' terminal paths.

    ``left`` is the source of truth, ``right`` the target.  Every left
    terminal path lands in exactly one of *only_in_left*,
    *in_both_but_different* or *unchanged*; every right terminal path in
    exactly one of *only_in_right*, *in_both_but_different* or
    *unchanged*.
    """
    only_in_left: list[TreeNode[Any]] = field(default_factory=list)
    only_in_right: list[TreeNode[Any]] = field(default_factory=list)
    in_both_but_different: list[NodePair] = field(default_factory=list)
    unchanged: list[NodePair] = field(default_factory=list)

    @property
    def in_sync(self) -> bool:
        return not self.only_in_left and not self.only_in_right and not self.in_both_but_different

    @property
    def total(self) -> int:
        """Number of differences (unchanged pairs excluded)."""
        return len(self.only_in_left) + len(self.only_in_right) + len(self.in_both_but_different)


def calculate_diff(left: TreeNode[Any], right: TreeNode[Any]) -> SyncDiff:
    """Compare the terminal nodes of *left* and *right*.

    Each tree is mapped relative to its own top node, so *right* may be a
    subtree of a larger hierarchy.  Nodes are equal iff their content
    hashes are equal; the concrete record types do not matter.

    Raises:
        PathConflictError: Either tree has two terminal nodes on one path.
    """
    left_map = left.to_map(only_terminal=True, relative_to=left)
    right_map = right.to_map(only_terminal=True, relative_to=right)
    diff = SyncDiff()

    for path, left_node in left_map.items():
        right_node = right_map.get(path)
        if right_node is None:
            diff.only_in_left.append(left_node)
            continue
        if left_node.hash == right_node.hash:
            diff.unchanged.append(NodePair(left_node, right_node))
        else:
            diff.in_both_but_different.append(NodePair(left_node, right_node))
        del right_map[path]

    diff.only_in_right.extend(right_map.values())

    logger.debug(
        "Diff: {} only in source, {} only in target, {} changed, {} unchanged",
        len(diff.only_in_left), len(diff.only_in_right),
        len(diff.in_both_but_different), len(diff.unchanged),
    )
    return diff
