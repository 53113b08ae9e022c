"""Load the JSON configuration file into an immutable batch configuration."""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from .classifier import DEFAULT_FAILURE_MARKERS, MarkerClassifier
from .exceptions import ConfigError
from .models import Credentials, ExecutionMode

DEFAULT_GIT_USERNAME = "git"
DEFAULT_GIT_PASSWORD = "pass"
DEFAULT_SSH_ASKPASS = "pass"
DEFAULT_WORKERS = 32


@dataclass(frozen=True)
class BatchConfig:
    """Everything one batch needs, resolved once at startup."""

    config_path: Path
    src_folder: Path
    files_to_read: tuple[Path, ...] = ()
    git_username: str = DEFAULT_GIT_USERNAME
    git_password: str = DEFAULT_GIT_PASSWORD
    ssh_askpass: str = DEFAULT_SSH_ASKPASS
    async_exec: bool = False
    workers: int = DEFAULT_WORKERS
    failure_markers: tuple[str, ...] = DEFAULT_FAILURE_MARKERS

    @property
    def credentials(self) -> Credentials:
        return Credentials(
            username=self.git_username,
            password=self.git_password,
            ssh_askpass=self.ssh_askpass,
        )

    @property
    def execution_mode(self) -> ExecutionMode:
        if not self.async_exec:
            return ExecutionMode.sequential()
        return ExecutionMode.bounded(self.workers)

    @property
    def classifier(self) -> MarkerClassifier:
        return MarkerClassifier(self.failure_markers)

    def with_workers(self, workers: int) -> BatchConfig:
        if workers < 1:
            raise ConfigError(f"Worker count must be at least 1, got {workers}.")
        return replace(self, async_exec=workers > 1, workers=workers)

    def describe(self) -> str:
        files = ", ".join(str(path) for path in self.files_to_read) or "-"
        password = "*" * len(self.git_password) if self.git_password else "(empty)"
        return (
            f"Config path: {self.config_path} Source folder: {self.src_folder} "
            f"Files to read: {files} Git username: {self.git_username or '(empty)'} "
            f"Git password: {password} SSH askpass: {self.ssh_askpass or '(empty)'} "
            f"Async execution: {self.async_exec} Workers: {self.workers}"
        )


def load_config(path: Path) -> BatchConfig:
    config_path = path.expanduser()
    try:
        text = config_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {config_path}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Could not read config file {config_path}: {exc}") from exc
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Could not deserialize {config_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a JSON object: {config_path}")
    return parse_config(data, config_path=config_path)


def parse_config(data: dict[str, Any], *, config_path: Path) -> BatchConfig:
    base = config_path.parent
    src_raw = _get(data, "src_folder", str, None)
    if not src_raw:
        raise ConfigError("src_folder is required in the config file.")
    files_raw = _get(data, "files_to_read", list, [])
    if not all(isinstance(entry, str) for entry in files_raw):
        raise ConfigError("files_to_read must be a list of paths.")
    workers = _get(data, "workers", int, DEFAULT_WORKERS)
    if workers < 1:
        raise ConfigError(f"workers must be at least 1, got {workers}.")
    markers_raw = _get(data, "failure_markers", list, None)
    if markers_raw is None:
        markers = DEFAULT_FAILURE_MARKERS
    elif all(isinstance(marker, str) and marker.strip() for marker in markers_raw):
        markers = tuple(markers_raw)
    else:
        raise ConfigError("failure_markers must be a list of non-empty strings.")

    return BatchConfig(
        config_path=config_path,
        src_folder=_resolve_path(src_raw, base),
        files_to_read=tuple(_resolve_path(entry, base) for entry in files_raw),
        git_username=_get(data, "git_username", str, DEFAULT_GIT_USERNAME),
        git_password=_get(data, "git_password", str, DEFAULT_GIT_PASSWORD),
        ssh_askpass=_get(data, "ssh_askpass", str, DEFAULT_SSH_ASKPASS),
        async_exec=_get(data, "async_exec", bool, False),
        workers=workers,
        failure_markers=markers,
    )


def _get(data: dict[str, Any], key: str, expected: type, default: Any) -> Any:
    value = data.get(key)
    if value is None:
        return default
    # bool is an int subclass; keep them apart.
    if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
        raise ConfigError(f"{key} must be of type {expected.__name__}, got {type(value).__name__}.")
    return value


def _resolve_path(raw: str, base: Path) -> Path:
    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = base / path
    return path


__all__ = ["BatchConfig", "load_config", "parse_config"]
