"""Run one git operation and kill it when its output signals trouble.

Both output streams are drained by their own thread for the whole lifetime
of the child. Every line goes through the classifier; the first hit, or a classifier
error, kills the child and any helper it spawned that still holds the pipes.
Output after that is drained but no longer classified.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import threading
from pathlib import Path
from typing import Callable, Iterable, Protocol

from .classifier import Classifier, default_classifier
from .models import CloneItem, Credentials, FetchItem, ProcessOutcome, WorkItem

logger = logging.getLogger(__name__)

CLONE_ARGS = ("clone", "--recursive")
FETCH_ARGS = ("fetch", "--all", "--tags", "--auto-gc")


class Process(Protocol):
    pid: int
    stdout: Iterable[str] | None
    stderr: Iterable[str] | None

    def wait(self) -> int: ...


Spawner = Callable[[list[str], Path | None, dict[str, str]], Process]
Killer = Callable[[int], None]


def build_command(item: WorkItem, git_binary: str = "git") -> tuple[list[str], Path | None]:
    """Return the argv and working directory for a work item."""

    if isinstance(item, CloneItem):
        return [git_binary, *CLONE_ARGS, item.locator, str(item.destination)], None
    if isinstance(item, FetchItem):
        return [git_binary, *FETCH_ARGS], item.checkout
    raise TypeError(f"Unsupported work item: {item!r}")


def spawn_git(argv: list[str], cwd: Path | None, env: dict[str, str]) -> subprocess.Popen[str]:
    return subprocess.Popen(
        argv,
        cwd=str(cwd) if cwd else None,
        env=env,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        encoding="utf-8",
        errors="replace",
        bufsize=1,
        start_new_session=os.name == "posix",
    )


def kill_process(pid: int) -> None:
    """Unconditionally kill ``pid`` and, where possible, its process group."""

    sig = getattr(signal, "SIGKILL", signal.SIGTERM)
    if hasattr(os, "killpg"):
        try:
            os.killpg(pid, sig)
            return
        except (ProcessLookupError, PermissionError):
            # Not a group leader; fall back to the single process.
            pass
    try:
        os.kill(pid, sig)
    except ProcessLookupError:
        logger.debug("Process %s already exited", pid)


class ProcessSupervisor:
    """Owns the lifecycle of one git child per :meth:`supervise` call.

    The instance itself is stateless between calls and safe to share across
    worker threads.
    """

    def __init__(
        self,
        credentials: Credentials,
        classifier: Classifier = default_classifier,
        *,
        spawner: Spawner = spawn_git,
        killer: Killer = kill_process,
        git_binary: str = "git",
    ):
        self.credentials = credentials
        self.classifier = classifier
        self.git_binary = git_binary
        self._spawn = spawner
        self._kill = killer

    def supervise(self, item: WorkItem) -> ProcessOutcome:
        argv, cwd = build_command(item, self.git_binary)
        env = {**os.environ, **self.credentials.as_env()}
        logger.info("%s: %s", _verb(item).capitalize(), _describe(item))
        try:
            process = self._spawn(argv, cwd, env)
        except OSError as exc:
            logger.error("Failed to execute git for %s: %s", item.label, exc)
            return ProcessOutcome.failed(item, f"spawn failed: {exc}")

        watch = _OutputWatch(item, process.pid, self.classifier, self._kill)
        readers = [
            threading.Thread(
                target=watch.consume,
                args=(stream, name),
                name=f"freshgit-{name}-{process.pid}",
                daemon=True,
            )
            for name, stream in (("stdout", process.stdout), ("stderr", process.stderr))
            if stream is not None
        ]
        for reader in readers:
            reader.start()
        for reader in readers:
            reader.join()
        returncode = process.wait()
        logger.debug("Finished process %s: exit status %s", process.pid, returncode)

        if watch.marker is not None:
            return ProcessOutcome.failed(item, watch.marker, returncode=returncode, pid=process.pid)
        logger.info("Finished %s: %s", _verb(item), item.label)
        return ProcessOutcome.completed(item, returncode=returncode, pid=process.pid)


class _OutputWatch:
    """Shared state between the two reader threads of one child."""

    def __init__(self, item: WorkItem, pid: int, classifier: Classifier, killer: Killer):
        self.item = item
        self.pid = pid
        self.marker: str | None = None
        self._classifier = classifier
        self._kill = killer
        self._lock = threading.Lock()

    def consume(self, stream: Iterable[str], name: str) -> None:
        try:
            for raw in stream:
                line = raw.rstrip("\r\n")
                logger.debug("[%s %s] %s", self.pid, name, line)
                if self.marker is not None:
                    continue
                try:
                    hit = self._classifier(line)
                except Exception as exc:  # noqa: BLE001
                    logger.exception("Failure classifier raised on output of %s", self.pid)
                    self._trip(f"internal error: {exc}", line)
                    continue
                if hit:
                    self._trip(hit if isinstance(hit, str) else line.strip(), line)
        finally:
            close = getattr(stream, "close", None)
            if close is not None:
                close()

    def _trip(self, marker: str, line: str) -> None:
        with self._lock:
            if self.marker is not None:
                logger.debug("Ignoring further failure output from %s: %s", self.pid, line)
                return
            self.marker = marker
            logger.warning("Problem %s: %s (%s)", _verb(self.item), self.item.label, line.strip())
            try:
                self._kill(self.pid)
            except OSError as exc:
                logger.error("Could not kill process %s: %s", self.pid, exc)
                return
            logger.info("Killed process: %s", self.pid)


def _verb(item: WorkItem) -> str:
    return "cloning" if isinstance(item, CloneItem) else "fetching"


def _describe(item: WorkItem) -> str:
    if isinstance(item, CloneItem):
        return f"{item.locator} -> {item.destination}"
    return item.label


__all__ = [
    "CLONE_ARGS",
    "FETCH_ARGS",
    "ProcessSupervisor",
    "build_command",
    "kill_process",
    "spawn_git",
]
