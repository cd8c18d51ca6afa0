"""Merge pull requests, retrying while GitHub reports a moving base branch.

GitHub rejects a merge with "Base branch was modified" when another merge
lands between our mergeability check and the mutation. The condition clears
on its own, so those failures are retried with a growing delay; any other
failure ends the attempt and is re-raised unchanged.
"""

from __future__ import annotations

import asyncio
import dataclasses
import enum
import logging
import re
import typing as typ

from .queries import APPROVE_PULL_REQUEST_MUTATION, MERGE_PULL_REQUEST_MUTATION

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .pagination import GraphQLExecutor

__all__ = [
    "EXPONENTIAL_BACKOFF",
    "MergeMethod",
    "MergeRequest",
    "MergeState",
    "RetryState",
    "approve_pull_request",
    "is_transient_merge_conflict",
    "merge_with_retry",
    "next_merge_state",
]

logger = logging.getLogger(__name__)

EXPONENTIAL_BACKOFF = 2

TRANSIENT_MERGE_ERROR = re.compile(r"base branch was modified", re.IGNORECASE)

MERGE_FAILURE_EXPLANATION = (
    "An error occurred while merging the Pull Request. This is usually caused "
    "by the base branch being out of sync with the target branch. In this case, "
    "the base branch must be rebased. Some tools, such as Dependabot, do that "
    "automatically."
)

Sleep: typ.TypeAlias = "cabc.Callable[[float], cabc.Awaitable[object]]"


class MergeMethod(enum.StrEnum):
    """GraphQL ``PullRequestMergeMethod`` values."""

    MERGE = "MERGE"
    REBASE = "REBASE"
    SQUASH = "SQUASH"


class MergeState(enum.StrEnum):
    """States of a single merge attempt sequence."""

    ATTEMPTING = "attempting"
    RETRY_SCHEDULED = "retry-scheduled"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclasses.dataclass(frozen=True, slots=True)
class MergeRequest:
    """Everything needed to issue the merge mutation."""

    pull_request_id: str
    number: int
    commit_headline: str
    merge_method: MergeMethod = MergeMethod.SQUASH


@dataclasses.dataclass(slots=True)
class RetryState:
    """Attempt bookkeeping for one in-flight operation.

    Attributes
    ----------
    maximum_attempts : int
        Total number of attempts allowed, including the first.
    minimum_wait_ms : int
        Base wait used for the backoff schedule, in milliseconds.
    attempt : int
        The attempt currently being made, starting at 1.
    """

    maximum_attempts: int
    minimum_wait_ms: int
    attempt: int = 1

    @property
    def can_retry(self) -> bool:
        """Return True if another attempt is allowed after this one."""
        return self.attempt < self.maximum_attempts

    @property
    def next_wait_ms(self) -> int:
        """Return the wait before the next attempt, in milliseconds."""
        return self.attempt**EXPONENTIAL_BACKOFF * self.minimum_wait_ms

    def advance(self) -> None:
        """Record a failed attempt and move on to the next one."""
        self.attempt += 1


def is_transient_merge_conflict(error: BaseException) -> bool:
    """Return True if ``error`` is the retryable "base branch modified" failure."""
    return TRANSIENT_MERGE_ERROR.search(str(error)) is not None


async def approve_pull_request(
    client: GraphQLExecutor, pull_request_id: str
) -> None:
    """Submit an approving review for the pull request."""
    await client.execute(
        APPROVE_PULL_REQUEST_MUTATION, {"pullRequestId": pull_request_id}
    )


def next_merge_state(error: BaseException | None, retry: RetryState) -> MergeState:
    """Return the state that follows an attempt ending with ``error``.

    ``error`` is None for a successful attempt. The attempt counter is
    compared with the maximum before any wait is scheduled.
    """
    if error is None:
        return MergeState.SUCCEEDED
    if is_transient_merge_conflict(error) and retry.can_retry:
        return MergeState.RETRY_SCHEDULED
    return MergeState.FAILED


async def merge_with_retry(
    client: GraphQLExecutor,
    request: MergeRequest,
    *,
    maximum_attempts: int,
    minimum_wait_ms: int,
    sleep: Sleep = asyncio.sleep,
) -> int:
    """Merge the pull request, retrying transient base-branch conflicts.

    Parameters
    ----------
    client
        GraphQL executor used for the merge mutation.
    request
        Identifies the pull request and how to merge it.
    maximum_attempts
        Total number of merge attempts allowed.
    minimum_wait_ms
        Base wait; the wait before attempt ``n + 1`` is
        ``n ** 2 * minimum_wait_ms`` milliseconds.
    sleep
        Coroutine function used for the wait, taking seconds.

    Returns
    -------
    int
        The number of attempts it took to merge.

    Raises
    ------
    Exception
        The error from the final failed attempt, unchanged, when it is not
        transient or attempts are exhausted.
    """
    retry = RetryState(
        maximum_attempts=maximum_attempts, minimum_wait_ms=minimum_wait_ms
    )
    variables = {
        "pullRequestId": request.pull_request_id,
        "commitHeadline": request.commit_headline,
        "mergeMethod": str(request.merge_method),
    }

    while True:
        logger.debug(
            "Pull request #%d %s: attempt %d of %d.",
            request.number,
            MergeState.ATTEMPTING,
            retry.attempt,
            retry.maximum_attempts,
        )
        error: Exception | None = None
        try:
            await client.execute(MERGE_PULL_REQUEST_MUTATION, variables)
        except Exception as exc:  # noqa: BLE001 - classified by next_merge_state
            error = exc
            logger.info(MERGE_FAILURE_EXPLANATION)
            logger.debug("Original error: %s.", exc)

        state = next_merge_state(error, retry)
        if state is MergeState.SUCCEEDED:
            logger.info(
                "Merged pull request #%d (%s).", request.number, request.merge_method
            )
            return retry.attempt
        if state is MergeState.FAILED and error is not None:
            raise error

        wait_ms = retry.next_wait_ms
        logger.info("Retrying in %d...", wait_ms)
        await sleep(wait_ms / 1000)
        retry.advance()
