"""Sync operations and plans built from a :class:`~marksync.diff.SyncDiff`."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Union

from loguru import logger

from .path import Path

if TYPE_CHECKING:
    from .diff import SyncDiff
    from .repository import BookmarkRepository

__all__ = [
    "SyncOpKind", "AddOp", "UpdateOp", "DeleteOp", "NoopOp", "SyncOp", "SyncPlan",
]


class SyncOpKind(str, Enum):
    """Kind of operation: ``ADD``, ``UPDATE``, ``NOOP`` or ``DELETE``."""
    ADD = "add"
    UPDATE = "update"
    NOOP = "noop"
    DELETE = "delete"

    def __str__(self) -> str:          # noqa: D105
        return self.value

    @property
    def symbol(self) -> str:
        return _SYMBOLS[self]


_SYMBOLS = {
    SyncOpKind.ADD: "+",
    SyncOpKind.UPDATE: "~",
    SyncOpKind.NOOP: "=",
    SyncOpKind.DELETE: "-",
}

# Constructive operations run before destructive ones.
_ORDER = {
    SyncOpKind.ADD: 0,
    SyncOpKind.UPDATE: 1,
    SyncOpKind.NOOP: 2,
    SyncOpKind.DELETE: 3,
}


@dataclass(frozen=True)
class AddOp:
    """Create a bookmark, creating missing parent folders."""
    path: Path
    title: str
    url: str
    kind = SyncOpKind.ADD

    def apply(self, repository: BookmarkRepository) -> None:
        logger.debug("Applying add for path: {}", self.path)
        repository.create_bookmark(
            self.path, title=self.title, url=self.url, create_parent_if_not_exists=True,
        )


@dataclass(frozen=True)
class UpdateOp:
    """Overwrite the title and/or URL of an existing bookmark."""
    path: Path
    title: str | None = None
    url: str | None = None
    kind = SyncOpKind.UPDATE

    def apply(self, repository: BookmarkRepository) -> None:
        logger.debug("Applying update for path: {}", self.path)
        repository.update_bookmark(self.path, title=self.title, url=self.url)


@dataclass(frozen=True)
class DeleteOp:
    """Remove a bookmark."""
    path: Path
    kind = SyncOpKind.DELETE

    def apply(self, repository: BookmarkRepository) -> None:
        logger.debug("Applying delete for path: {}", self.path)
        repository.delete_bookmark(self.path)


@dataclass(frozen=True)
class NoopOp:
    """A bookmark already in sync; kept in the plan for auditing."""
    path: Path
    kind = SyncOpKind.NOOP

    def apply(self, repository: BookmarkRepository) -> None:
        logger.debug("Skipping unchanged path: {}", self.path)


SyncOp = Union[AddOp, UpdateOp, DeleteOp, NoopOp]


@dataclass
class SyncPlan:
    """Ordered operations that make a target match a source.

    Operations are ordered on construction: adds, updates, noops, then
    deletes, each group keeping its original order.
    """
    operations: list[SyncOp] = field(default_factory=list)

    def __post_init__(self):
        self.operations = sorted(self.operations, key=lambda op: _ORDER[op.kind])

    @classmethod
    def from_diff(cls, diff: SyncDiff, sync_root: Path) -> SyncPlan:
        """Translate *diff* into operations rooted at *sync_root*.

        Source leaves without a name or URL are skipped with a warning.
        """
        ops: list[SyncOp] = []

        for node in diff.only_in_left:
            if not node.name or not node.url:
                logger.warning("Skipping source node without name or URL: {}", node.full_path())
                continue
            path = sync_root.join(*node.full_path().segments)
            ops.append(AddOp(path=path, title=node.name, url=node.url))

        for left, right in diff.in_both_but_different:
            if not left.name or not left.url:
                logger.warning("Skipping source node without name or URL: {}", left.full_path())
                continue
            ops.append(UpdateOp(path=right.full_path(), title=left.name, url=left.url))

        for _left, right in diff.unchanged:
            ops.append(NoopOp(path=right.full_path()))

        for node in diff.only_in_right:
            ops.append(DeleteOp(path=node.full_path()))

        return cls(ops)

    def __iter__(self):
        return iter(self.operations)

    def __len__(self) -> int:
        return len(self.operations)

    def _of_kind(self, kind: SyncOpKind) -> list[SyncOp]:
        return [op for op in self.operations if op.kind is kind]

    @property
    def adds(self) -> list[SyncOp]:
        return self._of_kind(SyncOpKind.ADD)

    @property
    def updates(self) -> list[SyncOp]:
        return self._of_kind(SyncOpKind.UPDATE)

    @property
    def noops(self) -> list[SyncOp]:
        return self._of_kind(SyncOpKind.NOOP)

    @property
    def deletes(self) -> list[SyncOp]:
        return self._of_kind(SyncOpKind.DELETE)

    @property
    def in_sync(self) -> bool:
        """``True`` if no operation changes the target."""
        return self.total == 0

    @property
    def total(self) -> int:
        """Number of operations that change the target."""
        return sum(1 for op in self.operations if op.kind is not SyncOpKind.NOOP)

    def summary(self) -> str:
        """Short description, e.g. ``+2 ~1 -3``."""
        if self.in_sync:
            return "No changes"
        parts = []
        for kind in (SyncOpKind.ADD, SyncOpKind.UPDATE, SyncOpKind.DELETE):
            count = len(self._of_kind(kind))
            if count:
                parts.append(f"{kind.symbol}{count}")
        return " ".join(parts)
