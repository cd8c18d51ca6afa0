"""Fetch pull request snapshots from the GitHub GraphQL API."""

from __future__ import annotations

import asyncio
import logging
import typing as typ

from .errors import NotFoundError
from .evaluation import login_matches
from .merge import RetryState
from .models import MergeableState, PullRequestSnapshot, PullRequestState
from .queries import FIND_PULL_REQUEST_BY_BRANCH_QUERY, pull_request_info_query

if typ.TYPE_CHECKING:
    from .merge import Sleep
    from .models import Repository
    from .pagination import GraphQLExecutor

__all__ = [
    "fetch_mergeable_pull_request",
    "fetch_pull_request",
    "find_pull_request_number_by_branch",
]

logger = logging.getLogger(__name__)


async def fetch_pull_request(
    client: GraphQLExecutor,
    repository: Repository,
    number: int,
    *,
    merge_info_preview: bool = False,
) -> PullRequestSnapshot | None:
    """Return a snapshot of pull request ``number``, or None if it is missing.

    Every field comes from a single response so the snapshot is internally
    consistent. GitHub reports a missing pull request as a ``NOT_FOUND``
    GraphQL error, which is mapped to None as well.
    """
    try:
        data = await client.execute(
            pull_request_info_query(merge_info_preview=merge_info_preview),
            {
                "repositoryOwner": repository.owner,
                "repositoryName": repository.name,
                "pullRequestNumber": number,
            },
        )
    except NotFoundError:
        logger.debug("Pull request #%d was not found.", number)
        return None
    repo = data.get("repository")
    pull_request = repo.get("pullRequest") if isinstance(repo, dict) else None
    if not isinstance(pull_request, dict):
        return None
    return PullRequestSnapshot.from_json(pull_request)


def _awaiting_mergeability(snapshot: PullRequestSnapshot, login: str | None) -> bool:
    """Return True if only an unknown mergeability stands in the way.

    Pull requests by another author, or ones that are no longer open, are
    blocked whatever GitHub later computes, so they are not re-fetched.
    """
    if snapshot.mergeable is not MergeableState.UNKNOWN:
        return False
    if snapshot.state is not PullRequestState.OPEN or snapshot.merged:
        return False
    return login is None or login_matches(snapshot.author, login)


async def fetch_mergeable_pull_request(  # noqa: PLR0913 - retry knobs
    client: GraphQLExecutor,
    repository: Repository,
    number: int,
    *,
    login: str | None = None,
    merge_info_preview: bool = False,
    maximum_attempts: int = 3,
    minimum_wait_ms: int = 1000,
    sleep: Sleep = asyncio.sleep,
) -> PullRequestSnapshot | None:
    """Fetch a snapshot, waiting for GitHub to finish computing mergeability.

    GitHub reports ``UNKNOWN`` mergeability until a background job has run,
    so the snapshot is re-fetched on the same backoff schedule as merges.
    Once attempts run out the last snapshot is returned as is. When
    ``login`` is given, a pull request whose author does not match it is
    returned after the first fetch.
    """
    retry = RetryState(
        maximum_attempts=maximum_attempts, minimum_wait_ms=minimum_wait_ms
    )
    while True:
        snapshot = await fetch_pull_request(
            client, repository, number, merge_info_preview=merge_info_preview
        )
        if snapshot is None or not _awaiting_mergeability(snapshot, login):
            return snapshot
        if not retry.can_retry:
            logger.debug(
                "Mergeability of pull request #%d still unknown after %d attempts.",
                number,
                retry.attempt,
            )
            return snapshot
        wait_ms = retry.next_wait_ms
        logger.debug(
            "Mergeability of pull request #%d is unknown; re-fetching in %d...",
            number,
            wait_ms,
        )
        await sleep(wait_ms / 1000)
        retry.advance()


async def find_pull_request_number_by_branch(
    client: GraphQLExecutor, repository: Repository, branch: str
) -> int | None:
    """Return the number of the open pull request whose head is ``branch``."""
    try:
        data = await client.execute(
            FIND_PULL_REQUEST_BY_BRANCH_QUERY,
            {
                "repositoryOwner": repository.owner,
                "repositoryName": repository.name,
                "referenceName": branch,
            },
        )
    except NotFoundError:
        return None
    repo = data.get("repository")
    connection = repo.get("pullRequests") if isinstance(repo, dict) else None
    nodes = connection.get("nodes") if isinstance(connection, dict) else None
    if not nodes or not isinstance(nodes[0], dict):
        return None
    number = nodes[0].get("number")
    return number if isinstance(number, int) else None
