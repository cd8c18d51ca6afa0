"""Tests for :mod:`automerge.provenance`."""

from __future__ import annotations

import typing as typ

import pytest

from automerge.provenance import ProvenanceOutcome, check_commit_provenance
from tests.fakes import commit_node, commits_response, not_found_error

if typ.TYPE_CHECKING:
    from tests.fakes import FakeGraphQLClient

OPERATION = "FindPullRequestCommits"


class TestCheckCommitProvenance:
    """Tests for check_commit_provenance."""

    @pytest.mark.asyncio
    async def test_all_commits_by_bot(self, fake_client: FakeGraphQLClient) -> None:
        """Signed commits by the bot across pages pass."""
        fake_client.queue(
            OPERATION,
            commits_response(
                [commit_node(), commit_node()], end_cursor="c1", has_next_page=True
            ),
            commits_response([commit_node()], end_cursor="c2"),
        )

        outcome = await check_commit_provenance(fake_client, "PR_1", "dependabot")

        assert outcome is ProvenanceOutcome.ALL_AUTHORED_AND_SIGNED
        assert len(fake_client.calls) == 2
        assert fake_client.calls[0].variables["pullRequestId"] == "PR_1"

    @pytest.mark.asyncio
    async def test_stops_at_first_invalid_signature(
        self, fake_client: FakeGraphQLClient
    ) -> None:
        """An invalid signature on commit 2 of 5 stops the walk there."""
        fake_client.queue(
            OPERATION,
            commits_response(
                [commit_node(), commit_node(valid=False)],
                end_cursor="c1",
                has_next_page=True,
            ),
            commits_response(
                [commit_node(), commit_node(), commit_node()], end_cursor="c2"
            ),
        )

        outcome = await check_commit_provenance(
            fake_client, "PR_1", "dependabot", page_size=2
        )

        assert outcome is ProvenanceOutcome.INVALID_SIGNATURE
        assert len(fake_client.calls) == 1, "later pages must not be requested"

    @pytest.mark.asyncio
    async def test_other_author_is_mismatch(
        self, fake_client: FakeGraphQLClient
    ) -> None:
        """A commit by someone else is an author mismatch."""
        fake_client.queue(
            OPERATION,
            commits_response([commit_node(), commit_node("octocat")]),
        )

        outcome = await check_commit_provenance(fake_client, "PR_1", "dependabot")

        assert outcome is ProvenanceOutcome.AUTHOR_MISMATCH

    @pytest.mark.asyncio
    async def test_author_checked_before_signature(
        self, fake_client: FakeGraphQLClient
    ) -> None:
        """An unsigned commit by another author reports the author mismatch."""
        fake_client.queue(
            OPERATION, commits_response([commit_node("octocat", valid=False)])
        )

        outcome = await check_commit_provenance(fake_client, "PR_1", "dependabot")

        assert outcome is ProvenanceOutcome.AUTHOR_MISMATCH

    @pytest.mark.asyncio
    async def test_unknown_author_is_mismatch(
        self, fake_client: FakeGraphQLClient
    ) -> None:
        """A commit without a linked GitHub account is an author mismatch."""
        fake_client.queue(OPERATION, commits_response([commit_node(None)]))

        outcome = await check_commit_provenance(fake_client, "PR_1", "dependabot")

        assert outcome is ProvenanceOutcome.AUTHOR_MISMATCH

    @pytest.mark.asyncio
    async def test_missing_signature_is_invalid(
        self, fake_client: FakeGraphQLClient
    ) -> None:
        """An unsigned commit is treated as having an invalid signature."""
        node = commit_node()
        node["commit"]["signature"] = None  # type: ignore[index]
        fake_client.queue(OPERATION, commits_response([node]))

        outcome = await check_commit_provenance(fake_client, "PR_1", "dependabot")

        assert outcome is ProvenanceOutcome.INVALID_SIGNATURE

    @pytest.mark.asyncio
    async def test_missing_pull_request_passes(
        self, fake_client: FakeGraphQLClient
    ) -> None:
        """A vanished pull request yields no commits to reject."""
        fake_client.queue(OPERATION, {"node": None})

        outcome = await check_commit_provenance(fake_client, "PR_1", "dependabot")

        assert outcome is ProvenanceOutcome.ALL_AUTHORED_AND_SIGNED

    @pytest.mark.asyncio
    async def test_not_found_pull_request_passes(
        self, fake_client: FakeGraphQLClient
    ) -> None:
        """A NOT_FOUND error for the commits query yields no commits to reject."""
        fake_client.queue(OPERATION, not_found_error(1))

        outcome = await check_commit_provenance(fake_client, "PR_1", "dependabot")

        assert outcome is ProvenanceOutcome.ALL_AUTHORED_AND_SIGNED
