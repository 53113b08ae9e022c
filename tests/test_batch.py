"""Tests for batch preconditions and end-to-end resolution."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from freshgit.batch import run_batch
from freshgit.config import BatchConfig
from freshgit.exceptions import MissingListFileError, MissingSourceError
from freshgit.executor import ALREADY_PRESENT, Executor
from freshgit.models import BatchKind, CloneItem, FetchItem, OutcomeStatus, ProcessOutcome, WorkItem


class SpySupervisor:
    def __init__(self) -> None:
        self.spawned: list[WorkItem] = []

    def supervise(self, item: WorkItem) -> ProcessOutcome:
        self.spawned.append(item)
        return ProcessOutcome.completed(item, returncode=0)


class RunBatchTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.base = Path(self._tmp.name)
        self.root = self.base / "src"
        self.root.mkdir()
        self.supervisor = SpySupervisor()

    def _factory(self, config: BatchConfig) -> Executor:
        return Executor(config.execution_mode, self.supervisor)

    def _config(self, **overrides) -> BatchConfig:
        values = {"config_path": self.base / "freshgit.json", "src_folder": self.root}
        values.update(overrides)
        return BatchConfig(**values)

    def test_missing_source_folder_spawns_nothing(self) -> None:
        config = self._config(src_folder=self.base / "missing")

        for kind in BatchKind:
            with self.subTest(kind=kind.value):
                with self.assertRaises(MissingSourceError), self.assertLogs("freshgit.batch", level="ERROR"):
                    run_batch(config, kind, executor_factory=self._factory)

        self.assertEqual(self.supervisor.spawned, [])

    def test_missing_list_file_aborts_whole_download(self) -> None:
        present = self.base / "repos.txt"
        present.write_text("https://example.com/org/repo.git\n", encoding="utf-8")
        config = self._config(files_to_read=(present, self.base / "missing.txt"))

        with self.assertRaises(MissingListFileError):
            run_batch(config, BatchKind.DOWNLOAD, executor_factory=self._factory)

        self.assertEqual(self.supervisor.spawned, [])

    def test_download_skips_existing_destinations(self) -> None:
        listing = self.base / "repos.txt"
        listing.write_text(
            "https://example.com/org/present.git\nhttps://example.com/org/fresh.git\n",
            encoding="utf-8",
        )
        (self.root / "org" / "present").mkdir(parents=True)
        config = self._config(files_to_read=(listing,), async_exec=True, workers=2)

        report = run_batch(config, BatchKind.DOWNLOAD, executor_factory=self._factory)

        self.assertEqual(report.kind, BatchKind.DOWNLOAD)
        self.assertEqual(report.outcomes[0].status, OutcomeStatus.SKIPPED)
        self.assertEqual(report.outcomes[0].detail, ALREADY_PRESENT)
        self.assertEqual(
            self.supervisor.spawned,
            [CloneItem(locator="https://example.com/org/fresh.git", destination=self.root / "org" / "fresh")],
        )
        self.assertEqual(report.counts(), {"completed": 1, "skipped": 1, "failed": 0})
        self.assertFalse(report.has_failures)

    def test_rerun_with_everything_present_spawns_nothing(self) -> None:
        listing = self.base / "repos.csv"
        listing.write_text("repository\nhttps://example.com/org/repo.git\n", encoding="utf-8")
        (self.root / "org" / "repo").mkdir(parents=True)

        report = run_batch(self._config(files_to_read=(listing,)), BatchKind.DOWNLOAD, executor_factory=self._factory)

        self.assertEqual([outcome.status for outcome in report.outcomes], [OutcomeStatus.SKIPPED])
        self.assertEqual(self.supervisor.spawned, [])

    def test_update_fetches_discovered_checkouts(self) -> None:
        (self.root / "a" / ".git").mkdir(parents=True)
        (self.root / "b" / "c" / ".git").mkdir(parents=True)
        (self.root / "d").mkdir()

        report = run_batch(self._config(), BatchKind.UPDATE, executor_factory=self._factory)

        self.assertEqual(
            self.supervisor.spawned,
            [FetchItem(checkout=self.root / "a"), FetchItem(checkout=self.root / "b" / "c")],
        )
        self.assertEqual(report.counts()["completed"], 2)

    def test_empty_credentials_are_logged(self) -> None:
        config = self._config(git_password="", ssh_askpass="")

        with self.assertLogs("freshgit.batch", level="INFO") as logs:
            run_batch(config, BatchKind.UPDATE, executor_factory=self._factory)

        self.assertTrue(any("Git password is not provided" in message for message in logs.output))
        self.assertTrue(any("SSH askpass is not provided" in message for message in logs.output))


if __name__ == "__main__":
    unittest.main()
