"""Run one update or download batch from a validated configuration."""

from __future__ import annotations

import logging
from typing import Callable

from .config import BatchConfig
from .exceptions import MissingSourceError
from .executor import Executor
from .models import BatchKind, BatchReport, WorkItem
from .resolver import check_list_files, discover_checkouts, resolve_clone_targets
from .supervisor import ProcessSupervisor

logger = logging.getLogger(__name__)

ExecutorFactory = Callable[[BatchConfig], Executor]


def build_executor(config: BatchConfig) -> Executor:
    supervisor = ProcessSupervisor(config.credentials, config.classifier)
    return Executor(config.execution_mode, supervisor)


def resolve_targets(config: BatchConfig, kind: BatchKind) -> list[WorkItem]:
    if kind is BatchKind.DOWNLOAD:
        check_list_files(config.files_to_read)
        return resolve_clone_targets(config.src_folder, config.files_to_read)
    return discover_checkouts(config.src_folder)


def run_batch(
    config: BatchConfig,
    kind: BatchKind,
    *,
    executor_factory: ExecutorFactory = build_executor,
) -> BatchReport:
    """Resolve work items and run them all to a terminal state.

    Raises :class:`MissingSourceError` or :class:`MissingListFileError`
    before any subprocess is spawned when a precondition fails.
    """

    if not config.src_folder.is_dir():
        logger.error("Source folder doesn't exist, aborting: %s", config.src_folder)
        raise MissingSourceError(config.src_folder)
    logger.info("Source folder exists, continuing")

    for name in config.credentials.missing_fields():
        logger.info("%s is not provided, login may fail", name)

    mode = config.execution_mode
    logger.info("Updates will run in %s", mode.describe())

    items = resolve_targets(config, kind)
    logger.info("Resolved %d repositories for %s", len(items), kind.value)

    outcomes = executor_factory(config).run(items)
    report = BatchReport(kind=kind, outcomes=outcomes)
    counts = report.counts()
    logger.info(
        "Finished %s: %d completed, %d skipped, %d failed",
        kind.value,
        counts["completed"],
        counts["skipped"],
        counts["failed"],
    )
    return report


__all__ = ["build_executor", "resolve_targets", "run_batch"]
