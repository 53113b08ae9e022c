"""Rich renderings of a batch report."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .models import BatchReport, OutcomeStatus, ProcessOutcome

_STATUS_STYLES = {
    OutcomeStatus.COMPLETED: "green",
    OutcomeStatus.SKIPPED: "yellow",
    OutcomeStatus.FAILED: "red",
}


def outcome_to_dict(outcome: ProcessOutcome) -> dict[str, object]:
    return {
        "item": outcome.item.label,
        "status": outcome.status.value,
        "detail": outcome.detail,
        "returncode": outcome.returncode,
        "pid": outcome.pid,
    }


def render_report_table(report: BatchReport, console: Console) -> None:
    if not report.outcomes:
        console.print(f"No repositories to {report.kind.value}.")
        return
    table = Table(title=f"freshgit {report.kind.value}", show_lines=False)
    table.add_column("Item")
    table.add_column("Status", no_wrap=True)
    table.add_column("Detail")
    for outcome in report.outcomes:
        style = _STATUS_STYLES[outcome.status]
        table.add_row(
            escape(outcome.item.label),
            f"[{style}]{outcome.status.value}[/{style}]",
            escape(outcome.detail or ""),
        )
    console.print(table)
    counts = report.counts()
    console.print(
        f"{counts['completed']} completed, {counts['skipped']} skipped, {counts['failed']} failed"
    )


def render_report_json(report: BatchReport, console: Console) -> None:
    payload = {
        "kind": report.kind.value,
        "counts": report.counts(),
        "outcomes": [outcome_to_dict(outcome) for outcome in report.outcomes],
    }
    console.print_json(data=payload)


__all__ = ["outcome_to_dict", "render_report_json", "render_report_table"]
