"""Approve and merge Dependabot pull requests that pass policy checks.

This package decides whether a bot-authored pull request may be merged
(author, state, mergeability, version bump preset and commit provenance)
and merges eligible pull requests through the GitHub GraphQL API, retrying
when GitHub reports that the base branch moved underneath the merge.
"""

from __future__ import annotations

from .config import AutomergeConfig, build_config
from .errors import (
    AutomergeError,
    BatchFailedError,
    ConfigurationError,
    EventPayloadError,
    GraphQLResponseError,
    NotFoundError,
    TransportError,
)
from .evaluation import EligibilityPolicy, Verdict, evaluate, evaluate_snapshot
from .graphql_client import GraphQLClient
from .merge import MergeMethod, MergeRequest, merge_with_retry
from .models import PullRequestSnapshot, Repository
from .pagination import iterate_connection
from .presets import Preset, matches_preset
from .provenance import ProvenanceOutcome, check_commit_provenance
from .runner import BatchReport, PullRequestOutcome, automerge_pull_requests

__all__ = [
    "AutomergeConfig",
    "AutomergeError",
    "BatchFailedError",
    "BatchReport",
    "ConfigurationError",
    "EligibilityPolicy",
    "EventPayloadError",
    "GraphQLClient",
    "GraphQLResponseError",
    "MergeMethod",
    "MergeRequest",
    "NotFoundError",
    "Preset",
    "ProvenanceOutcome",
    "PullRequestOutcome",
    "PullRequestSnapshot",
    "Repository",
    "TransportError",
    "Verdict",
    "automerge_pull_requests",
    "build_config",
    "check_commit_provenance",
    "evaluate",
    "evaluate_snapshot",
    "iterate_connection",
    "matches_preset",
    "merge_with_retry",
]
