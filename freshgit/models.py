"""Dataclasses shared across modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Union

from .exceptions import ValidationError

ENV_GIT_USERNAME = "GIT_USERNAME"
ENV_GIT_PASSWORD = "GIT_PASSWORD"
ENV_SSH_ASKPASS = "SSH_ASKPASS"
ENV_GIT_ASKPASS = "GIT_ASKPASS"


class BatchKind(str, Enum):
    """What a batch does with its work items."""

    UPDATE = "update"
    DOWNLOAD = "download"


@dataclass(frozen=True)
class CloneItem:
    """Clone ``locator`` into ``destination``."""

    locator: str
    destination: Path

    @property
    def label(self) -> str:
        return self.locator


@dataclass(frozen=True)
class FetchItem:
    """Fetch updates into an existing checkout."""

    checkout: Path

    @property
    def label(self) -> str:
        return str(self.checkout)


WorkItem = Union[CloneItem, FetchItem]


@dataclass(frozen=True)
class Credentials:
    """Values handed to git through the environment of every child process."""

    username: str = ""
    password: str = ""
    ssh_askpass: str = ""

    def as_env(self) -> dict[str, str]:
        return {
            ENV_GIT_USERNAME: self.username,
            ENV_GIT_PASSWORD: self.password,
            ENV_SSH_ASKPASS: self.ssh_askpass,
            ENV_GIT_ASKPASS: self.ssh_askpass,
        }

    def missing_fields(self) -> list[str]:
        names = {
            "Git username": self.username,
            "Git password": self.password,
            "SSH askpass": self.ssh_askpass,
        }
        return [name for name, value in names.items() if not value]


@dataclass(frozen=True)
class ExecutionMode:
    """How many supervised processes may run at once.

    A single worker means sequential execution in the caller's thread.
    """

    workers: int = 1

    def __post_init__(self) -> None:
        if self.workers < 1:
            raise ValidationError(f"Worker count must be at least 1, got {self.workers}.")

    @classmethod
    def sequential(cls) -> ExecutionMode:
        return cls(workers=1)

    @classmethod
    def bounded(cls, workers: int) -> ExecutionMode:
        return cls(workers=workers)

    @property
    def is_sequential(self) -> bool:
        return self.workers == 1

    def describe(self) -> str:
        if self.is_sequential:
            return "synchronous mode"
        return f"asynchronous mode ({self.workers} workers)"


class OutcomeStatus(str, Enum):
    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class ProcessOutcome:
    """Terminal state of one work item.

    ``detail`` carries the skip reason or the failure marker that triggered
    the kill. ``returncode`` is informational only.
    """

    item: WorkItem
    status: OutcomeStatus
    detail: str | None = None
    returncode: int | None = None
    pid: int | None = None

    @classmethod
    def completed(cls, item: WorkItem, *, returncode: int | None = None, pid: int | None = None) -> ProcessOutcome:
        return cls(item=item, status=OutcomeStatus.COMPLETED, returncode=returncode, pid=pid)

    @classmethod
    def skipped(cls, item: WorkItem, reason: str) -> ProcessOutcome:
        return cls(item=item, status=OutcomeStatus.SKIPPED, detail=reason)

    @classmethod
    def failed(
        cls,
        item: WorkItem,
        detail: str,
        *,
        returncode: int | None = None,
        pid: int | None = None,
    ) -> ProcessOutcome:
        return cls(item=item, status=OutcomeStatus.FAILED, detail=detail, returncode=returncode, pid=pid)


@dataclass(frozen=True)
class BatchReport:
    """Outcomes of one batch, in work item order."""

    kind: BatchKind
    outcomes: list[ProcessOutcome] = field(default_factory=list)

    def counts(self) -> dict[str, int]:
        totals = {status.value: 0 for status in OutcomeStatus}
        for outcome in self.outcomes:
            totals[outcome.status.value] += 1
        return totals

    @property
    def has_failures(self) -> bool:
        return any(outcome.status is OutcomeStatus.FAILED for outcome in self.outcomes)


__all__ = [
    "BatchKind",
    "BatchReport",
    "CloneItem",
    "Credentials",
    "ExecutionMode",
    "FetchItem",
    "OutcomeStatus",
    "ProcessOutcome",
    "WorkItem",
]
