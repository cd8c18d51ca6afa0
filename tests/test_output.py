"""Tests for :mod:`automerge.output`."""

from __future__ import annotations

import io

import pytest

from automerge.output import emit, emit_report, fail
from automerge.runner import BatchReport, OutcomeStatus, PullRequestOutcome


class TestEmit:
    """Tests for emit."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, "key="),
            (True, "key=true"),
            (3, "key=3"),
            ((1, 2), "key=[1, 2]"),
            ({"b": 1, "a": 2}, 'key={"a": 2, "b": 1}'),
        ],
    )
    def test_formats_values(self, value: object, expected: str) -> None:
        """Values are rendered for $GITHUB_OUTPUT."""
        stream = io.StringIO()
        emit("key", value, stream=stream)
        assert stream.getvalue() == f"{expected}\n"


class TestEmitReport:
    """Tests for emit_report."""

    def test_summary(self) -> None:
        """Outcomes are grouped by status."""
        report = BatchReport(
            (
                PullRequestOutcome(1, OutcomeStatus.MERGED),
                PullRequestOutcome(2, OutcomeStatus.SKIPPED, "already merged"),
                PullRequestOutcome(3, OutcomeStatus.NOT_FOUND),
                PullRequestOutcome(4, OutcomeStatus.FAILED, "boom"),
            )
        )
        stream = io.StringIO()

        emit_report(report, stream=stream)

        assert stream.getvalue().splitlines() == [
            "automerge_status=failed",
            "automerge_merged=[1]",
            "automerge_skipped=[2, 3]",
            "automerge_failed=[4]",
        ]

    def test_empty_report_is_skipped(self) -> None:
        """A run with nothing to do reports skipped."""
        stream = io.StringIO()

        emit_report(BatchReport(), stream=stream)

        assert stream.getvalue().splitlines()[0] == "automerge_status=skipped"


def test_fail_exits(capsys: pytest.CaptureFixture[str]) -> None:
    """fail reports on stderr and exits with status 1."""
    with pytest.raises(SystemExit) as excinfo:
        fail("bad input")

    assert excinfo.value.code == 1
    assert capsys.readouterr().err.splitlines() == [
        "automerge_status=error",
        "automerge_error=bad input",
    ]
