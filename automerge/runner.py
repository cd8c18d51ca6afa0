"""Evaluate and merge a batch of pull requests concurrently.

Each pull request is handled by its own task. A failure in one task is
recorded as that pull request's outcome and never cancels its siblings.
"""

from __future__ import annotations

import asyncio
import dataclasses
import enum
import logging
import typing as typ

from .errors import BatchFailedError
from .evaluation import evaluate
from .events import (
    EventKind,
    PullRequestReference,
    push_branch,
    references_from_event,
)
from .merge import MergeRequest, approve_pull_request, merge_with_retry
from .pull_requests import (
    fetch_mergeable_pull_request,
    find_pull_request_number_by_branch,
)

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .config import AutomergeConfig
    from .graphql_client import JsonObject
    from .merge import Sleep
    from .models import Repository
    from .pagination import GraphQLExecutor

__all__ = [
    "ApprovalPolicy",
    "BatchReport",
    "OutcomeStatus",
    "PullRequestOutcome",
    "approval_policy_for",
    "automerge_pull_requests",
    "resolve_references",
]

logger = logging.getLogger(__name__)


class ApprovalPolicy(enum.StrEnum):
    """How an unapproved but otherwise eligible pull request is handled."""

    APPROVE_AND_MERGE = "approve-and-merge"
    MERGE_IF_APPROVED = "merge-if-approved"


class OutcomeStatus(enum.StrEnum):
    """Final status of one pull request in a batch."""

    MERGED = "merged"
    DRY_RUN = "dry-run"
    SKIPPED = "skipped"
    NOT_FOUND = "not-found"
    FAILED = "failed"


def approval_policy_for(kind: EventKind) -> ApprovalPolicy:
    """Return the approval policy used for runs triggered by ``kind``.

    A push only updates a branch, so the agent merges what a reviewer has
    already approved rather than approving on its own.
    """
    if kind is EventKind.PUSH:
        return ApprovalPolicy.MERGE_IF_APPROVED
    return ApprovalPolicy.APPROVE_AND_MERGE


@dataclasses.dataclass(frozen=True, slots=True)
class PullRequestOutcome:
    """What happened to a single pull request.

    Attributes
    ----------
    number : int
        The pull request number.
    status : OutcomeStatus
        Final status.
    reason : str or None
        Why the pull request was skipped or failed.
    error : BaseException or None
        The exception behind a ``failed`` outcome.
    """

    number: int
    status: OutcomeStatus
    reason: str | None = None
    error: BaseException | None = dataclasses.field(default=None, compare=False)


@dataclasses.dataclass(frozen=True, slots=True)
class BatchReport:
    """Outcomes for every pull request in a run, in input order."""

    outcomes: tuple[PullRequestOutcome, ...] = ()

    def with_status(self, status: OutcomeStatus) -> tuple[PullRequestOutcome, ...]:
        """Return the outcomes that ended with ``status``."""
        return tuple(outcome for outcome in self.outcomes if outcome.status is status)

    @property
    def failures(self) -> tuple[PullRequestOutcome, ...]:
        """Return the failed outcomes."""
        return self.with_status(OutcomeStatus.FAILED)

    def raise_for_failures(self) -> None:
        """Raise :class:`BatchFailedError` if any pull request failed."""
        if failures := self.failures:
            raise BatchFailedError(failures)


async def resolve_references(
    client: GraphQLExecutor,
    repository: Repository,
    kind: EventKind,
    event: JsonObject | None,
    *,
    pull_request_number: int | None = None,
) -> tuple[PullRequestReference, ...]:
    """Return the pull requests a run should consider.

    An explicit ``pull_request_number`` wins over the event payload. A push
    is resolved to the open pull request whose head is the pushed branch.
    """
    if pull_request_number is not None:
        return (PullRequestReference(number=pull_request_number),)
    if kind is not EventKind.PUSH:
        return references_from_event(kind, event)

    branch = push_branch(event)
    number = await find_pull_request_number_by_branch(client, repository, branch)
    if number is None:
        logger.info("No open pull request found for branch %s.", branch)
        return ()
    return (PullRequestReference(number=number),)


async def _automerge_one(
    client: GraphQLExecutor,
    repository: Repository,
    reference: PullRequestReference,
    config: AutomergeConfig,
    approval_policy: ApprovalPolicy,
    sleep: Sleep,
) -> PullRequestOutcome:
    number = reference.number
    snapshot = await fetch_mergeable_pull_request(
        client,
        repository,
        number,
        login=config.login,
        merge_info_preview=config.merge_info_preview,
        maximum_attempts=config.maximum_attempts,
        minimum_wait_ms=config.minimum_wait_ms,
        sleep=sleep,
    )
    if snapshot is None:
        logger.warning("Unable to fetch pull request information.")
        return PullRequestOutcome(number, OutcomeStatus.NOT_FOUND)

    verdict = await evaluate(client, snapshot, config.eligibility_policy)
    if not verdict.eligible:
        return PullRequestOutcome(number, OutcomeStatus.SKIPPED, verdict.reason)

    if config.dry_run:
        logger.info("Dry run: pull request #%d would be merged.", number)
        return PullRequestOutcome(number, OutcomeStatus.DRY_RUN)

    if not verdict.approved:
        if approval_policy is ApprovalPolicy.MERGE_IF_APPROVED:
            logger.info("Pull request #%d is not approved yet, skipping.", number)
            return PullRequestOutcome(
                number, OutcomeStatus.SKIPPED, "not approved yet"
            )
        logger.info("Approving pull request #%d.", number)
        await approve_pull_request(client, snapshot.id)

    await merge_with_retry(
        client,
        MergeRequest(
            pull_request_id=snapshot.id,
            number=number,
            commit_headline=snapshot.title,
            merge_method=config.merge_method,
        ),
        maximum_attempts=config.maximum_attempts,
        minimum_wait_ms=config.minimum_wait_ms,
        sleep=sleep,
    )
    return PullRequestOutcome(number, OutcomeStatus.MERGED)


def _failed_outcome(
    reference: PullRequestReference, error: BaseException
) -> PullRequestOutcome:
    logger.error("Pull request #%d failed: %s", reference.number, error)
    return PullRequestOutcome(
        reference.number, OutcomeStatus.FAILED, str(error), error
    )


async def automerge_pull_requests(  # noqa: PLR0913 - batch wiring
    client: GraphQLExecutor,
    repository: Repository,
    references: cabc.Iterable[PullRequestReference],
    config: AutomergeConfig,
    *,
    approval_policy: ApprovalPolicy = ApprovalPolicy.APPROVE_AND_MERGE,
    sleep: Sleep = asyncio.sleep,
) -> BatchReport:
    """Evaluate and merge every referenced pull request concurrently.

    Parameters
    ----------
    client
        GraphQL executor shared by all tasks.
    repository
        Repository the pull requests belong to.
    references
        Pull requests to consider; duplicates are handled once.
    config
        Validated run configuration.
    approval_policy
        How unapproved pull requests are handled.
    sleep
        Coroutine function used for backoff waits, taking seconds.

    Returns
    -------
    BatchReport
        One outcome per distinct pull request, in input order.
    """
    unique = tuple({ref.number: ref for ref in references}.values())
    results = await asyncio.gather(
        *(
            _automerge_one(
                client, repository, reference, config, approval_policy, sleep
            )
            for reference in unique
        ),
        return_exceptions=True,
    )
    outcomes = []
    for reference, result in zip(unique, results, strict=True):
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, BaseException):
            outcomes.append(_failed_outcome(reference, result))
        else:
            outcomes.append(result)
    return BatchReport(tuple(outcomes))
