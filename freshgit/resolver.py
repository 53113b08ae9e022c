"""Turn configuration into concrete work items."""

from __future__ import annotations

import csv
import logging
import os
from pathlib import Path
from typing import Iterable
from urllib.parse import urlparse

from .exceptions import MissingListFileError, ValidationError
from .models import CloneItem, FetchItem

logger = logging.getLogger(__name__)

GIT_DIR_NAME = ".git"
REPOSITORY_COLUMN = "repository"
_TABULAR_SUFFIXES = {".csv"}


def parse_locator(raw: str) -> str | None:
    """Return the stripped locator when it looks like an absolute URL."""

    candidate = raw.strip()
    if not candidate:
        return None
    try:
        parsed = urlparse(candidate)
        _ = parsed.port  # raises ValueError for a malformed port
    except ValueError:
        return None
    if not parsed.scheme:
        return None
    if parsed.scheme != "file" and not parsed.hostname:
        return None
    if not parsed.path.strip("/"):
        return None
    return candidate


def destination_for(locator: str, root: Path) -> Path:
    """Map a remote locator to its checkout directory under ``root``.

    https://example.com/org/repo.git -> <root>/org/repo
    """

    parts = [part for part in urlparse(locator).path.split("/") if part]
    if any(part in {".", ".."} for part in parts):
        raise ValidationError(f"Locator path may not contain relative segments: {locator}")
    if parts and parts[-1].endswith(".git"):
        parts[-1] = parts[-1][: -len(".git")]
        if not parts[-1]:
            parts.pop()
    if not parts:
        raise ValidationError(f"Locator has no usable path segments: {locator}")
    return root.joinpath(*parts)


def check_list_files(paths: Iterable[Path]) -> None:
    """Fail the whole batch when any declared list file is missing."""

    missing = []
    for path in paths:
        if not path.is_file():
            logger.error("At least one file doesn't exist, aborting: %s", path)
            missing.append(path)
    if missing:
        raise MissingListFileError(missing)
    logger.info("All files exist, continuing")


def read_list_file(path: Path, root: Path) -> list[CloneItem]:
    """Read one list file; problems are logged and never raised."""

    try:
        if path.suffix.lower() in _TABULAR_SUFFIXES:
            raw_locators = _read_tabular(path)
        else:
            raw_locators = path.read_text(encoding="utf-8-sig").splitlines()
    except (OSError, UnicodeDecodeError) as exc:
        logger.error("Could not read: %s %s", path, exc)
        return []

    items: list[CloneItem] = []
    for raw in raw_locators:
        if not raw.strip():
            continue
        item = _build_item(raw, root)
        if item is not None:
            items.append(item)
    logger.debug("Read %d repositories from %s", len(items), path)
    return items


def resolve_clone_targets(root: Path, list_files: Iterable[Path]) -> list[CloneItem]:
    """Collect clone items from every list file, one item per destination."""

    items: list[CloneItem] = []
    claimed: dict[Path, str] = {}
    for list_file in list_files:
        if not list_file.exists():
            continue
        for item in read_list_file(list_file, root):
            owner = claimed.get(item.destination)
            if owner is not None:
                if owner != item.locator:
                    logger.warning(
                        "Skipping %s: destination %s already claimed by %s",
                        item.locator,
                        item.destination,
                        owner,
                    )
                continue
            claimed[item.destination] = item.locator
            items.append(item)
    return items


def discover_checkouts(root: Path) -> list[FetchItem]:
    """Find every directory under ``root`` that directly contains ``.git``."""

    found: list[FetchItem] = []
    for dirpath, dirnames, _ in os.walk(root, onerror=_log_walk_error):
        if GIT_DIR_NAME in dirnames:
            found.append(FetchItem(checkout=Path(dirpath)))
            dirnames.remove(GIT_DIR_NAME)
        dirnames.sort()
    return sorted(found, key=lambda item: item.checkout)


def _read_tabular(path: Path) -> list[str]:
    with path.open(newline="", encoding="utf-8-sig") as handle:
        reader = csv.reader(handle)
        header = next(reader, None)
        if header is None:
            logger.warning("Could not get header from csv: %s", path)
            return []
        columns = [column.strip() for column in header]
        if REPOSITORY_COLUMN not in columns:
            logger.warning("No %r column in csv header: %s", REPOSITORY_COLUMN, path)
            return []
        index = columns.index(REPOSITORY_COLUMN)
        values: list[str] = []
        try:
            for row in reader:
                if not any(cell.strip() for cell in row):
                    continue
                if index >= len(row):
                    logger.warning("Could not get record element: %s line %d", path, reader.line_num)
                    continue
                values.append(row[index])
        except csv.Error as exc:
            logger.warning("Could not get record: %s line %d %s", path, reader.line_num, exc)
        return values


def _build_item(raw: str, root: Path) -> CloneItem | None:
    locator = parse_locator(raw)
    if locator is None:
        logger.warning("Could not parse url: %s", raw.strip())
        return None
    try:
        destination = destination_for(locator, root)
    except ValidationError as exc:
        logger.warning("%s", exc)
        return None
    return CloneItem(locator=locator, destination=destination)


def _log_walk_error(error: OSError) -> None:
    logger.error("Could not walk directory: %s", error)


__all__ = [
    "check_list_files",
    "destination_for",
    "discover_checkouts",
    "parse_locator",
    "read_list_file",
    "resolve_clone_targets",
]
