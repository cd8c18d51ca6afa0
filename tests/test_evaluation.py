"""Tests for :mod:`automerge.evaluation`."""

from __future__ import annotations

import logging
import typing as typ

import pytest

from automerge.evaluation import (
    EligibilityPolicy,
    Verdict,
    evaluate,
    evaluate_snapshot,
    login_matches,
)
from automerge.presets import Preset
from tests.fakes import commit_node, commits_response, snapshot

if typ.TYPE_CHECKING:
    from tests.fakes import FakeGraphQLClient

POLICY = EligibilityPolicy(login="dependabot")
COMMITS = "FindPullRequestCommits"


class TestLoginMatches:
    """Tests for login_matches."""

    @pytest.mark.parametrize(
        ("author", "login", "expected"),
        [
            ("dependabot", "dependabot", True),
            ("dependabot[bot]", "dependabot[bot]", True),
            ("dependabot-preview", "dependabot*", True),
            ("renovate", "dependabot*", False),
            ("Dependabot", "dependabot", False),
        ],
    )
    def test_matching(
        self,
        author: str,
        login: str,
        expected: bool,  # noqa: FBT001
    ) -> None:
        """Logins match exactly or as glob patterns."""
        assert login_matches(author, login) is expected


class TestEvaluateSnapshot:
    """Tests for evaluate_snapshot."""

    def test_eligible(self) -> None:
        """An open, mergeable bot pull request is eligible."""
        assert evaluate_snapshot(snapshot(), POLICY) == Verdict(eligible=True)

    @pytest.mark.parametrize(
        ("overrides", "reason"),
        [
            ({"author": "other-bot"}, "created by other-bot, not dependabot"),
            ({"author": None}, "created by , not dependabot"),
            ({"state": "CLOSED"}, "not open: CLOSED"),
            ({"merged": True}, "already merged"),
            ({"mergeable": "CONFLICTING"}, "not in a mergeable state: CONFLICTING"),
            ({"mergeable": "UNKNOWN"}, "not in a mergeable state: UNKNOWN"),
            (
                {"merge_state_status": "BEHIND"},
                "cannot be merged cleanly. Current state: BEHIND",
            ),
        ],
    )
    def test_blocked(self, overrides: dict[str, object], reason: str) -> None:
        """Each failing check produces its own reason."""
        verdict = evaluate_snapshot(snapshot(**overrides), POLICY)

        assert verdict == Verdict.blocked(reason)

    def test_state_checked_before_mergeability(self) -> None:
        """A closed, conflicting pull request reports the state first."""
        pull_request = snapshot(state="CLOSED", mergeable="CONFLICTING")

        verdict = evaluate_snapshot(pull_request, POLICY)

        assert verdict.reason == "not open: CLOSED"

    def test_clean_merge_state_passes(self) -> None:
        """A CLEAN merge state status does not block."""
        verdict = evaluate_snapshot(snapshot(merge_state_status="CLEAN"), POLICY)

        assert verdict.eligible is True

    def test_preset_mismatch(self) -> None:
        """A major bump is blocked by the PATCH preset."""
        policy = EligibilityPolicy(login="dependabot", preset=Preset.PATCH)
        pull_request = snapshot(
            title="Bump lodash from 4.17.20 to 5.0.0", reviews=["APPROVED"]
        )

        verdict = evaluate_snapshot(pull_request, policy)

        assert verdict == Verdict.blocked(
            "bump category does not match preset", approved=True
        )

    @pytest.mark.parametrize(
        ("reviews", "approved"),
        [
            ([], False),
            (["APPROVED"], True),
            (["COMMENTED"], False),
            (["APPROVED", "COMMENTED"], True),
        ],
    )
    def test_approval_requires_approving_review(
        self,
        reviews: list[str],
        approved: bool,  # noqa: FBT001
    ) -> None:
        """An approving review counts even when later reviews only comment."""
        verdict = evaluate_snapshot(snapshot(reviews=reviews), POLICY)

        assert verdict.approved is approved

    def test_idempotent(self) -> None:
        """Evaluating the same snapshot twice yields the same verdict."""
        pull_request = snapshot(mergeable="CONFLICTING")

        assert evaluate_snapshot(pull_request, POLICY) == evaluate_snapshot(
            pull_request, POLICY
        )


class TestEvaluate:
    """Tests for evaluate."""

    @pytest.mark.asyncio
    async def test_eligible_after_provenance(
        self, fake_client: FakeGraphQLClient
    ) -> None:
        """Commits by the bot keep the pull request eligible."""
        fake_client.queue(COMMITS, commits_response([commit_node()]))

        verdict = await evaluate(fake_client, snapshot(), POLICY)

        assert verdict.eligible is True
        assert fake_client.calls_for(COMMITS)[0]["pullRequestId"] == "PR_1"

    @pytest.mark.asyncio
    async def test_other_author_makes_no_remote_calls(
        self, fake_client: FakeGraphQLClient, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A pull request by another bot is rejected locally and logged once."""
        caplog.set_level(logging.INFO, logger="automerge.evaluation")

        verdict = await evaluate(fake_client, snapshot(7, author="other-bot"), POLICY)

        assert verdict.reason == "created by other-bot, not dependabot"
        assert fake_client.calls == [], "no commit queries expected"
        messages = [record.getMessage() for record in caplog.records]
        assert messages == ["Pull request #7 created by other-bot, not dependabot."]

    @pytest.mark.asyncio
    async def test_manual_changes_block(self, fake_client: FakeGraphQLClient) -> None:
        """A commit by a person blocks the merge."""
        fake_client.queue(
            COMMITS, commits_response([commit_node(), commit_node("octocat")])
        )

        verdict = await evaluate(fake_client, snapshot(reviews=["APPROVED"]), POLICY)

        assert verdict == Verdict.blocked(
            "changes were not made by dependabot", approved=True
        )

    @pytest.mark.asyncio
    async def test_invalid_signature_blocks(
        self, fake_client: FakeGraphQLClient
    ) -> None:
        """An invalid commit signature blocks the merge."""
        fake_client.queue(COMMITS, commits_response([commit_node(valid=False)]))

        verdict = await evaluate(fake_client, snapshot(), POLICY)

        assert verdict.reason == (
            "commit signature is not valid, assuming PR is modified"
        )

    @pytest.mark.asyncio
    async def test_manual_changes_allowed(
        self, fake_client: FakeGraphQLClient
    ) -> None:
        """Allowing manual changes skips the commit walk entirely."""
        policy = EligibilityPolicy(login="dependabot", allow_manual_changes=True)

        verdict = await evaluate(fake_client, snapshot(), policy)

        assert verdict.eligible is True
        assert fake_client.calls == []

    @pytest.mark.asyncio
    async def test_glob_login_checks_commits_against_author(
        self, fake_client: FakeGraphQLClient
    ) -> None:
        """With a pattern login, commits must match the actual author."""
        policy = EligibilityPolicy(login="dependabot*")
        fake_client.queue(
            COMMITS, commits_response([commit_node("dependabot-preview")])
        )

        verdict = await evaluate(
            fake_client, snapshot(author="dependabot-preview"), policy
        )

        assert verdict.eligible is True
