"""Workflow output helpers.

Outputs are printed as ``key=value`` lines so the calling workflow can
append them to ``$GITHUB_OUTPUT``. Diagnostics go through :mod:`logging`
instead.
"""

from __future__ import annotations

import json
import sys
import typing as typ

__all__ = ["emit", "emit_report", "fail"]

if typ.TYPE_CHECKING:
    from .runner import BatchReport


def _format_value(value: object) -> str:
    """Format a value for key=value output."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, tuple):
        value = list(value)
    if isinstance(value, (list, dict)):
        return json.dumps(value, sort_keys=True)
    return str(value)


def emit(key: str, value: object, *, stream: typ.TextIO | None = None) -> None:
    """Print a key=value pair to stdout or the specified stream."""
    target = stream if stream is not None else sys.stdout
    print(f"{key}={_format_value(value)}", file=target)


def _overall_status(report: BatchReport) -> str:
    statuses = {str(outcome.status) for outcome in report.outcomes}
    for status in ("failed", "merged", "dry-run"):
        if status in statuses:
            return status
    return "skipped"


def emit_report(report: BatchReport, *, stream: typ.TextIO | None = None) -> None:
    """Emit the batch summary outputs.

    ``automerge_status`` is ``failed`` if any pull request failed, otherwise
    ``merged`` or ``dry-run`` when at least one pull request got that far, and
    ``skipped`` for everything else, including an empty batch.
    """

    def numbers(status: str) -> list[int]:
        return [o.number for o in report.outcomes if o.status == status]

    emit("automerge_status", _overall_status(report), stream=stream)
    emit("automerge_merged", numbers("merged"), stream=stream)
    emit(
        "automerge_skipped",
        numbers("skipped") + numbers("not-found"),
        stream=stream,
    )
    emit("automerge_failed", numbers("failed"), stream=stream)


def fail(message: str) -> typ.NoReturn:
    """Report an error on stderr and exit with status code 1."""
    emit("automerge_status", "error", stream=sys.stderr)
    emit("automerge_error", message, stream=sys.stderr)
    raise SystemExit(1)
