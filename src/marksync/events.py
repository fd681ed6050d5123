"""Events emitted by :class:`~marksync.manager.SyncManager` during a pass."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, Union

__all__ = [
    "SyncEventProgressKind", "SyncEventStart", "SyncEventProgress",
    "SyncEventComplete", "SyncEventError", "SyncEvent", "SyncEventListener",
]


class SyncEventProgressKind(str, Enum):
    """Pipeline stage reported by :class:`SyncEventProgress`."""
    VALIDATING = "validating"
    CHECK_SHOULD_SYNC = "check-should-sync"
    FETCHING_COLLECTIONS = "fetching-collections"
    FETCHING_BOOKMARKS = "fetching-bookmarks"
    CALCULATING_DIFF = "calculating-diff"
    GENERATING_PLAN = "generating-plan"
    SYNCING = "syncing"

    def __str__(self) -> str:          # noqa: D105
        return self.value


_PROGRESS_MESSAGES = {
    SyncEventProgressKind.VALIDATING: "Validating...",
    SyncEventProgressKind.CHECK_SHOULD_SYNC: "Checking if sync is needed...",
    SyncEventProgressKind.FETCHING_COLLECTIONS: "Fetching collections...",
    SyncEventProgressKind.FETCHING_BOOKMARKS: "Fetching bookmarks...",
    SyncEventProgressKind.CALCULATING_DIFF: "Calculating differences...",
    SyncEventProgressKind.GENERATING_PLAN: "Generating synchronization plan...",
    SyncEventProgressKind.SYNCING: "Synchronizing...",
}


@dataclass(frozen=True)
class SyncEventStart:
    type = "start"

    def message(self) -> str:
        return "Synchronization started."


@dataclass(frozen=True)
class SyncEventProgress:
    kind: SyncEventProgressKind
    type = "progress"

    def message(self) -> str:
        return _PROGRESS_MESSAGES[self.kind]


@dataclass(frozen=True)
class SyncEventComplete:
    type = "complete"

    def message(self) -> str:
        return "Synchronization completed successfully."


@dataclass(frozen=True)
class SyncEventError:
    """Terminal event of a failed pass; *error* is the exception raised."""
    error: BaseException
    type = "error"

    def message(self) -> str:
        return f"Synchronization failed with error: {self.error}"


SyncEvent = Union[SyncEventStart, SyncEventProgress, SyncEventComplete, SyncEventError]


class SyncEventListener(Protocol):
    def on_event(self, event: SyncEvent) -> None: ...
