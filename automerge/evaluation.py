"""Decide whether a pull request may be merged automatically.

The checks run in a fixed order and the first failure wins, so a pull request
that fails several checks always reports the earliest one:

1. author matches the configured login (exactly or as a glob)
2. state is ``OPEN``
3. not already merged
4. mergeable state is ``MERGEABLE``
5. merge-state status, when known, is ``CLEAN``
6. approval status is recorded (it changes what is done, not whether)
7. the bump category is allowed by the preset
8. every commit was authored and signed by the login, unless manual changes
   are allowed
"""

from __future__ import annotations

import dataclasses
import fnmatch
import logging
import typing as typ

from .models import MergeableState, MergeStateStatus, PullRequestState
from .presets import Preset, matches_preset
from .provenance import ProvenanceOutcome, check_commit_provenance

if typ.TYPE_CHECKING:
    from .models import PullRequestSnapshot
    from .pagination import GraphQLExecutor

__all__ = [
    "EligibilityPolicy",
    "Verdict",
    "evaluate",
    "evaluate_snapshot",
    "login_matches",
]

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class EligibilityPolicy:
    """Operator policy applied to every pull request.

    Attributes
    ----------
    login : str
        Login (or glob pattern) of the bot whose pull requests are merged.
    preset : Preset
        Update categories allowed to merge.
    allow_manual_changes : bool
        Skip the commit provenance check when True.
    """

    login: str
    preset: Preset = Preset.ALL
    allow_manual_changes: bool = False


@dataclasses.dataclass(frozen=True, slots=True)
class Verdict:
    """Outcome of evaluating a pull request.

    Attributes
    ----------
    eligible : bool
        Whether the pull request may be merged.
    reason : str or None
        Why the pull request is blocked; None when eligible.
    approved : bool
        Whether the most recent review already approves the pull request.
    """

    eligible: bool
    reason: str | None = None
    approved: bool = False

    @classmethod
    def blocked(cls, reason: str, *, approved: bool = False) -> Verdict:
        """Return a blocking verdict with ``reason``."""
        return cls(eligible=False, reason=reason, approved=approved)


def login_matches(author: str, login: str) -> bool:
    """Return True if ``author`` equals ``login`` or matches it as a glob.

    The exact comparison runs first because logins such as
    ``dependabot[bot]`` contain glob metacharacters.
    """
    return author == login or fnmatch.fnmatchcase(author, login)


def evaluate_snapshot(
    snapshot: PullRequestSnapshot, policy: EligibilityPolicy
) -> Verdict:
    """Apply every check that needs no further remote data.

    This is a pure function of its arguments: identical inputs always yield
    identical verdicts.
    """
    if not login_matches(snapshot.author, policy.login):
        return Verdict.blocked(f"created by {snapshot.author}, not {policy.login}")
    if snapshot.state is not PullRequestState.OPEN:
        return Verdict.blocked(f"not open: {snapshot.state}")
    if snapshot.merged:
        return Verdict.blocked("already merged")
    if snapshot.mergeable is not MergeableState.MERGEABLE:
        return Verdict.blocked(f"not in a mergeable state: {snapshot.mergeable}")
    status = snapshot.merge_state_status
    if status is not None and status is not MergeStateStatus.CLEAN:
        return Verdict.blocked(f"cannot be merged cleanly. Current state: {status}")

    approved = snapshot.is_approved
    if not matches_preset(snapshot.title, policy.preset):
        return Verdict.blocked(
            "bump category does not match preset", approved=approved
        )
    return Verdict(eligible=True, approved=approved)


_PROVENANCE_REASONS = {
    ProvenanceOutcome.AUTHOR_MISMATCH: "changes were not made by {login}",
    ProvenanceOutcome.INVALID_SIGNATURE: (
        "commit signature is not valid, assuming PR is modified"
    ),
}


async def evaluate(
    client: GraphQLExecutor,
    snapshot: PullRequestSnapshot,
    policy: EligibilityPolicy,
) -> Verdict:
    """Evaluate ``snapshot`` fully, including the commit provenance check.

    The provenance check is the only step that talks to GitHub and only runs
    once every other check has passed. A blocked verdict is logged exactly
    once at INFO level.
    """
    verdict = evaluate_snapshot(snapshot, policy)
    if verdict.eligible and not policy.allow_manual_changes:
        # The author already matched ``policy.login``, which may be a pattern.
        outcome = await check_commit_provenance(
            client, snapshot.id, snapshot.author
        )
        if outcome is not ProvenanceOutcome.ALL_AUTHORED_AND_SIGNED:
            reason = _PROVENANCE_REASONS[outcome].format(login=policy.login)
            verdict = Verdict.blocked(reason, approved=verdict.approved)

    if not verdict.eligible:
        logger.info("Pull request #%d %s.", snapshot.number, verdict.reason)
    return verdict
