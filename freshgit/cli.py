"""Typer CLI entrypoint for freshgit."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from . import __version__
from .batch import run_batch
from .config import load_config
from .exceptions import FreshgitError
from .log import configure_logging
from .models import BatchKind
from .render import render_report_json, render_report_table

logger = logging.getLogger(__name__)

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="freshgit - git repositories downloader and updater",
)


@dataclass(slots=True)
class AppState:
    config_path: Path
    console: Console
    err_console: Console
    verbose: bool = False


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"freshgit {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    config: Path = typer.Option(
        ...,
        "--config",
        "-c",
        help="Path to configuration .json file.",
        dir_okay=False,
        file_okay=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show git output and debug logging."),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the freshgit version and exit.",
    ),
) -> None:
    _ = version  # handled via callback
    configure_logging(verbose)
    ctx.obj = AppState(
        config_path=config,
        console=Console(),
        err_console=Console(stderr=True),
        verbose=verbose,
    )


def _require_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if not isinstance(state, AppState):  # pragma: no cover
        raise typer.Exit(1)
    return state


_WORKERS_HELP = "Run with this many parallel workers, overriding async_exec/workers from the config."
_JSON_HELP = "Output the batch report as JSON instead of a table."
_STRICT_HELP = "Exit with status 2 when any repository failed."


@app.command(help="Updates/fetches folders provided in config file")
def update(
    ctx: typer.Context,
    workers: Optional[int] = typer.Option(None, "--workers", "-w", min=1, help=_WORKERS_HELP),
    json_: bool = typer.Option(False, "--json", help=_JSON_HELP),
    strict: bool = typer.Option(False, "--strict", help=_STRICT_HELP),
) -> None:
    _run(_require_state(ctx), BatchKind.UPDATE, workers=workers, as_json=json_, strict=strict)


@app.command(help="Downloads git repositories provided in config file")
def download(
    ctx: typer.Context,
    workers: Optional[int] = typer.Option(None, "--workers", "-w", min=1, help=_WORKERS_HELP),
    json_: bool = typer.Option(False, "--json", help=_JSON_HELP),
    strict: bool = typer.Option(False, "--strict", help=_STRICT_HELP),
) -> None:
    _run(_require_state(ctx), BatchKind.DOWNLOAD, workers=workers, as_json=json_, strict=strict)


def _run(state: AppState, kind: BatchKind, *, workers: int | None, as_json: bool, strict: bool) -> None:
    try:
        config = load_config(state.config_path)
        if workers is not None:
            config = config.with_workers(workers)
        logger.info("Configuration: %s", config.describe())
        logger.info("Config found, starting %s", kind.value)
        report = run_batch(config, kind)
    except FreshgitError as exc:
        state.err_console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(1) from exc

    if as_json:
        render_report_json(report, state.console)
    else:
        render_report_table(report, state.console)
    if strict and report.has_failures:
        raise typer.Exit(2)


__all__ = ["app"]
