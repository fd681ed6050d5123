"""Sync orchestration: validate, fetch, diff, plan, execute, notify."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Protocol

from loguru import logger

from .diff import calculate_diff
from .events import (
    SyncEvent,
    SyncEventComplete,
    SyncEventError,
    SyncEventListener,
    SyncEventProgress,
    SyncEventProgressKind,
    SyncEventStart,
)
from .exceptions import SourceError, SyncValidationError
from .executor import execute
from .plan import SyncPlan
from .repository import BookmarkRepository, create_tree_from_repository
from .settings import Settings
from .tree import TreeNode

__all__ = ["CollectionSource", "SyncManager"]


class CollectionSource(Protocol):
    """Where the source-of-truth tree comes from."""

    requires_token: bool

    def check(self) -> None:
        """Raise :class:`~marksync.exceptions.SourceError` if unusable."""

    def last_update(self) -> datetime | None:
        """When the source last changed, if known."""

    def fetch_tree(self) -> TreeNode[Any]:
        """Fetch every record and build the source tree."""


def _aware(dt: datetime) -> datetime:
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)


class SyncManager:
    """Runs sync passes from a source into a bookmark repository.

    At most one pass should run at a time; callers serialize calls to
    :meth:`start_sync`.
    """

    def __init__(self, settings: Settings, repository: BookmarkRepository, source: CollectionSource):
        self.settings = settings
        self.repository = repository
        self.source = source
        self._listeners: list[SyncEventListener] = []

    def add_listener(self, listener: SyncEventListener) -> None:
        logger.debug("Attaching a new listener to sync manager")
        self._listeners.append(listener)

    def remove_listener(self, listener: SyncEventListener) -> None:
        logger.debug("Detaching a listener from sync manager")
        self._listeners = [x for x in self._listeners if x is not listener]

    def emit(self, event: SyncEvent) -> None:
        for listener in self._listeners:
            listener.on_event(event)

    def _progress(self, kind: SyncEventProgressKind) -> None:
        logger.debug(SyncEventProgress(kind).message())
        self.emit(SyncEventProgress(kind))

    # --- Checks ---

    def validate_before_sync(self) -> None:
        """Check the token, the sync folder and the source.

        Raises:
            SyncValidationError: A prerequisite is missing.
        """
        self._progress(SyncEventProgressKind.VALIDATING)

        if self.source.requires_token and not self.settings.access_token:
            raise SyncValidationError("Access token is not set.")

        location = self.settings.sync_location
        if not location:
            raise SyncValidationError("Sync location is not set.")
        if self.repository.find_folder_by_id(location) is None:
            raise SyncValidationError(f"Target folder with ID {location} not found.")

        try:
            self.source.check()
        except SourceError as exc:
            raise SyncValidationError(f"Source is not usable: {exc}") from exc

    def should_sync(self, threshold_seconds: float, *, now: datetime | None = None) -> bool:
        """Whether a pass is due.

        True if there was no previous pass, or the previous pass is at
        least *threshold_seconds* old and the source changed since then
        (or cannot say when it last changed).
        """
        self._progress(SyncEventProgressKind.CHECK_SHOULD_SYNC)

        last_sync = self.settings.last_sync
        if last_sync is None:
            logger.debug("No previous sync found, proceeding with synchronization")
            return True

        now = _aware(now or datetime.now(timezone.utc))
        last_sync = _aware(last_sync)
        elapsed = (now - last_sync).total_seconds()
        if elapsed < threshold_seconds:
            logger.debug(
                "Last sync was {:.0f}s ago, below the {}s threshold; no sync needed",
                elapsed, threshold_seconds,
            )
            return False

        source_update = self.source.last_update()
        if source_update is None:
            return True
        source_update = _aware(source_update)
        logger.debug(
            "Source last update was {}, {} last sync ({})",
            source_update.isoformat(),
            "after" if source_update > last_sync else "before",
            last_sync.isoformat(),
        )
        return source_update > last_sync

    # --- Pass ---

    def compute_plan(self) -> SyncPlan:
        """Fetch both trees and return the plan that reconciles them."""
        self._progress(SyncEventProgressKind.FETCHING_COLLECTIONS)
        source_tree = self.source.fetch_tree()

        self._progress(SyncEventProgressKind.FETCHING_BOOKMARKS)
        sync_folder = self.repository.get_folder_by_id(self.settings.sync_location)
        logger.debug("Sync folder found: {} ({})", sync_folder.path, sync_folder.id)
        target_tree = create_tree_from_repository(self.repository, sync_folder)

        self._progress(SyncEventProgressKind.CALCULATING_DIFF)
        diff = calculate_diff(source_tree, target_tree)

        self._progress(SyncEventProgressKind.GENERATING_PLAN)
        return SyncPlan.from_diff(diff, sync_folder.path)

    def dry_run(self) -> SyncPlan:
        """Compute the plan without applying it."""
        return self.compute_plan()

    def perform_sync(self) -> SyncPlan:
        """Compute and apply the plan; return it."""
        plan = self.compute_plan()

        self._progress(SyncEventProgressKind.SYNCING)
        execute(plan, self.repository)

        self.settings.last_sync = datetime.now(timezone.utc)
        logger.info(
            "Synchronization completed at {} ({})",
            self.settings.last_sync.isoformat(), plan.summary(),
        )
        return plan

    def start_sync(self, *, force: bool = False, threshold_seconds: float = 300) -> SyncPlan | None:
        """Run one pass, reporting the outcome through events.

        Unless *force* is set, prerequisites are validated and the pass is
        skipped when :meth:`should_sync` says it is not due.  Failures are
        logged and emitted as :class:`~marksync.events.SyncEventError`;
        they are not raised.  Returns the applied plan, or ``None`` if the
        pass was skipped or failed.
        """
        plan = None
        try:
            self.emit(SyncEventStart())
            if force:
                logger.warning("Force sync enabled, skipping checks")
                due = True
            else:
                self.validate_before_sync()
                due = self.should_sync(threshold_seconds)

            if due:
                plan = self.perform_sync()
            else:
                logger.info("No synchronization needed at this time")
            self.emit(SyncEventComplete())
        except Exception as exc:
            logger.exception("Error during synchronization")
            self.emit(SyncEventError(exc))
            return None
        return plan
