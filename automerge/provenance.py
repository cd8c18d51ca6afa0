"""Verify that every commit of a pull request came from the expected bot."""

from __future__ import annotations

import contextlib
import enum
import logging
import typing as typ

from .models import CommitRecord, PageConnection
from .pagination import MAX_PAGE_SIZE, iterate_connection
from .queries import FIND_PULL_REQUEST_COMMITS_QUERY

if typ.TYPE_CHECKING:
    from .graphql_client import JsonObject
    from .pagination import GraphQLExecutor

__all__ = ["ProvenanceOutcome", "check_commit_provenance"]

logger = logging.getLogger(__name__)


class ProvenanceOutcome(enum.StrEnum):
    """Result of walking a pull request's commit history."""

    ALL_AUTHORED_AND_SIGNED = "all-authored-and-signed"
    AUTHOR_MISMATCH = "author-mismatch"
    INVALID_SIGNATURE = "invalid-signature"


def _extract_commits(response: JsonObject) -> PageConnection | None:
    node = response.get("node")
    if not isinstance(node, dict):
        return None
    return PageConnection.from_json(node.get("commits"))


def _classify(commit: CommitRecord, login: str) -> ProvenanceOutcome:
    if commit.author_login != login:
        return ProvenanceOutcome.AUTHOR_MISMATCH
    if not commit.signature_valid:
        return ProvenanceOutcome.INVALID_SIGNATURE
    return ProvenanceOutcome.ALL_AUTHORED_AND_SIGNED


async def check_commit_provenance(
    client: GraphQLExecutor,
    pull_request_id: str,
    login: str,
    *,
    page_size: int = MAX_PAGE_SIZE,
) -> ProvenanceOutcome:
    """Check that all commits were authored by ``login`` and validly signed.

    Commits are inspected oldest first and the walk stops at the first
    offending commit, so later pages are never requested. Commits whose git
    author has no GitHub account count as an author mismatch.

    Parameters
    ----------
    client
        GraphQL executor used to page through the commits.
    pull_request_id
        GraphQL node ID of the pull request.
    login
        Login every commit must be attributed to.
    page_size
        Number of commits requested per page.

    Returns
    -------
    ProvenanceOutcome
        The first failure found, or ``ALL_AUTHORED_AND_SIGNED``.
    """
    commits = iterate_connection(
        client,
        FIND_PULL_REQUEST_COMMITS_QUERY,
        {"pullRequestId": pull_request_id},
        _extract_commits,
        page_size=page_size,
    )
    async with contextlib.aclosing(commits):
        async for node in commits:
            commit = CommitRecord.from_node(node)
            outcome = _classify(commit, login)
            if outcome is not ProvenanceOutcome.ALL_AUTHORED_AND_SIGNED:
                logger.debug(
                    "Commit '%s' by %s failed provenance check: %s",
                    commit.headline,
                    commit.author_login or "unknown author",
                    outcome,
                )
                return outcome
    return ProvenanceOutcome.ALL_AUTHORED_AND_SIGNED
