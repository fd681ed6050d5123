"""Tests for sync events."""

from marksync.events import (
    SyncEventComplete,
    SyncEventError,
    SyncEventProgress,
    SyncEventProgressKind,
    SyncEventStart,
)


class TestEvents:
    def test_types(self):
        assert SyncEventStart().type == "start"
        assert SyncEventProgress(SyncEventProgressKind.SYNCING).type == "progress"
        assert SyncEventComplete().type == "complete"
        assert SyncEventError(RuntimeError("x")).type == "error"

    def test_messages(self):
        assert SyncEventStart().message() == "Synchronization started."
        assert SyncEventComplete().message() == "Synchronization completed successfully."
        err = SyncEventError(RuntimeError("disk full"))
        assert err.message() == "Synchronization failed with error: disk full"

    def test_every_progress_kind_has_message(self):
        for kind in SyncEventProgressKind:
            assert SyncEventProgress(kind).message().endswith("...")

    def test_kind_values(self):
        assert [str(k) for k in SyncEventProgressKind] == [
            "validating", "check-should-sync", "fetching-collections",
            "fetching-bookmarks", "calculating-diff", "generating-plan", "syncing",
        ]
