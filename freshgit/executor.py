"""Dispatch supervised git operations sequentially or through a worker pool."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Protocol, Sequence

from .models import CloneItem, ExecutionMode, FetchItem, ProcessOutcome, WorkItem

logger = logging.getLogger(__name__)

ALREADY_PRESENT = "already present"
CHECKOUT_MISSING = "checkout missing"


class Supervisor(Protocol):
    def supervise(self, item: WorkItem) -> ProcessOutcome: ...


def precheck(item: WorkItem) -> ProcessOutcome | None:
    """Return a skip outcome when the item needs no subprocess at all."""

    if isinstance(item, CloneItem) and item.destination.is_dir():
        logger.info("Repository is already cloned, use update instead: %s", item.destination)
        return ProcessOutcome.skipped(item, ALREADY_PRESENT)
    if isinstance(item, FetchItem) and not item.checkout.is_dir():
        logger.warning("Checkout disappeared before fetching: %s", item.checkout)
        return ProcessOutcome.skipped(item, CHECKOUT_MISSING)
    return None


class Executor:
    """Run every work item to a terminal state under one execution mode."""

    def __init__(self, mode: ExecutionMode, supervisor: Supervisor):
        self.mode = mode
        self.supervisor = supervisor

    def run_job(self, item: WorkItem) -> ProcessOutcome:
        skipped = precheck(item)
        if skipped is not None:
            return skipped
        return self.supervisor.supervise(item)

    def run(self, items: Sequence[WorkItem]) -> list[ProcessOutcome]:
        if not items:
            logger.info("Nothing to do")
            return []
        if self.mode.is_sequential:
            return [self._guarded(item) for item in items]

        with ThreadPoolExecutor(max_workers=self.mode.workers, thread_name_prefix="freshgit") as pool:
            futures: list[Future[ProcessOutcome]] = [pool.submit(self._guarded, item) for item in items]
        # Leaving the context manager joins every worker.
        return [future.result() for future in futures]

    def _guarded(self, item: WorkItem) -> ProcessOutcome:
        try:
            return self.run_job(item)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected error while processing %s", item.label)
            return ProcessOutcome.failed(item, f"internal error: {exc}")


__all__ = ["ALREADY_PRESENT", "CHECKOUT_MISSING", "Executor", "Supervisor", "precheck"]
