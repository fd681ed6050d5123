"""Apply a :class:`~marksync.plan.SyncPlan` to a bookmark repository."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from .plan import SyncOp, SyncPlan
    from .repository import BookmarkRepository


def execute(
    plan: SyncPlan,
    repository: BookmarkRepository,
    *,
    progress: Callable[[SyncOp, int, int], None] | None = None,
) -> list[SyncOp]:
    """Apply each operation of *plan* in order and return the applied ones.

    Operations run one at a time because an add may create the folders a
    later operation works in.  The first failure propagates and the rest
    of the plan is not applied; nothing is rolled back.  Running a fresh
    diff against the partially updated target picks up where this left
    off.

    *progress*, if given, is called as ``progress(op, index, total)``
    before each operation.
    """
    applied: list[SyncOp] = []
    total = len(plan)
    for index, op in enumerate(plan):
        if progress is not None:
            progress(op, index, total)
        op.apply(repository)
        applied.append(op)
    logger.debug("Applied {} of {} operation(s)", len(applied), total)
    return applied
