"""Typed snapshots of the GitHub data the automerge agent reasons about.

Remote responses are validated here, at the transport boundary, so the rest of
the package never has to walk untyped JSON.
"""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

if typ.TYPE_CHECKING:
    from .graphql_client import JsonObject

__all__ = [
    "CommitRecord",
    "MergeStateStatus",
    "MergeableState",
    "PageConnection",
    "PageInfo",
    "PullRequestSnapshot",
    "PullRequestState",
    "Repository",
    "ReviewState",
]


class PullRequestState(enum.StrEnum):
    """Lifecycle state of a pull request."""

    OPEN = "OPEN"
    CLOSED = "CLOSED"
    MERGED = "MERGED"


class MergeableState(enum.StrEnum):
    """Whether GitHub can merge the pull request without manual resolution."""

    MERGEABLE = "MERGEABLE"
    CONFLICTING = "CONFLICTING"
    UNKNOWN = "UNKNOWN"


class MergeStateStatus(enum.StrEnum):
    """Detailed merge status exposed by the merge-info preview."""

    BEHIND = "BEHIND"
    BLOCKED = "BLOCKED"
    CLEAN = "CLEAN"
    DIRTY = "DIRTY"
    DRAFT = "DRAFT"
    HAS_HOOKS = "HAS_HOOKS"
    UNKNOWN = "UNKNOWN"
    UNSTABLE = "UNSTABLE"


class ReviewState(enum.StrEnum):
    """State of a single pull request review."""

    APPROVED = "APPROVED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"
    COMMENTED = "COMMENTED"
    DISMISSED = "DISMISSED"
    PENDING = "PENDING"


def _dig(payload: object, *keys: str) -> object:
    """Follow ``keys`` through nested mappings, returning None on any gap."""
    current = payload
    for key in keys:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def _require_str(payload: JsonObject, key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        msg = f"Expected string field {key!r} in pull request response"
        raise ValueError(msg)
    return value


@dataclasses.dataclass(frozen=True, slots=True)
class Repository:
    """Repository coordinates in ``owner/name`` form."""

    owner: str
    name: str

    @classmethod
    def from_full_name(cls, full_name: str) -> Repository:
        """Split ``owner/repo`` into a :class:`Repository`.

        Raises
        ------
        ValueError
            If ``full_name`` does not have exactly two non-empty components.
        """
        parts = full_name.strip().split("/")
        if len(parts) != 2 or not all(parts):
            msg = f"Repository '{full_name}' must be in owner/repo form."
            raise ValueError(msg)
        return cls(owner=parts[0], name=parts[1])

    @property
    def full_name(self) -> str:
        """Return the repository as ``owner/name``."""
        return f"{self.owner}/{self.name}"


@dataclasses.dataclass(frozen=True, slots=True)
class PullRequestSnapshot:
    """Point-in-time view of a pull request taken from one query response.

    Attributes
    ----------
    id : str
        GraphQL node ID, used for mutations.
    number : int
        The pull request number.
    title : str
        The pull request title.
    branch : str
        Name of the head branch.
    author : str
        Login of the pull request author, empty when the account is gone.
    state : PullRequestState
        Open, closed or merged.
    merged : bool
        Whether the pull request has been merged.
    mergeable : MergeableState
        GitHub's mergeability verdict.
    merge_state_status : MergeStateStatus or None
        Detailed merge status, only present with the merge-info preview.
    reviews : tuple[ReviewState, ...]
        Review verdicts, oldest first. The snapshot query only requests the
        most recent approving review.
    """

    id: str
    number: int
    title: str
    branch: str
    author: str
    state: PullRequestState
    merged: bool
    mergeable: MergeableState
    merge_state_status: MergeStateStatus | None = None
    reviews: tuple[ReviewState, ...] = ()

    @property
    def latest_review(self) -> ReviewState | None:
        """Return the most recent review verdict, if any."""
        return self.reviews[-1] if self.reviews else None

    @property
    def is_approved(self) -> bool:
        """Return True when an approving review is on record.

        Later comments or pending reviews do not withdraw an approval.
        """
        return ReviewState.APPROVED in self.reviews

    @classmethod
    def from_json(cls, payload: JsonObject) -> PullRequestSnapshot:
        """Build a snapshot from a ``pullRequest`` GraphQL object.

        Raises
        ------
        ValueError
            If a required field is missing or holds an unexpected value.
        """
        author = _dig(payload, "author", "login")
        number = payload.get("number")
        if not isinstance(number, int):
            msg = "Expected integer field 'number' in pull request response"
            raise ValueError(msg)
        raw_status = payload.get("mergeStateStatus")
        reviews = []
        for edge in _dig(payload, "reviews", "edges") or []:
            review_state = _dig(edge, "node", "state")
            if isinstance(review_state, str):
                reviews.append(ReviewState(review_state))
        return cls(
            id=_require_str(payload, "id"),
            number=number,
            title=_require_str(payload, "title"),
            branch=_require_str(payload, "headRefName"),
            author=author if isinstance(author, str) else "",
            state=PullRequestState(_require_str(payload, "state")),
            merged=bool(payload.get("merged", False)),
            mergeable=MergeableState(_require_str(payload, "mergeable")),
            merge_state_status=(
                MergeStateStatus(raw_status) if isinstance(raw_status, str) else None
            ),
            reviews=tuple(reviews),
        )


@dataclasses.dataclass(frozen=True, slots=True)
class CommitRecord:
    """Provenance details of a single commit."""

    author_login: str | None
    headline: str
    signature_valid: bool

    @classmethod
    def from_node(cls, node: JsonObject) -> CommitRecord:
        """Build a record from a ``PullRequestCommit`` node.

        A missing ``signature`` means the commit is unsigned and is reported
        as invalid.
        """
        login = _dig(node, "commit", "author", "user", "login")
        headline = _dig(node, "commit", "messageHeadline")
        return cls(
            author_login=login if isinstance(login, str) else None,
            headline=headline if isinstance(headline, str) else "",
            signature_valid=_dig(node, "commit", "signature", "isValid") is True,
        )


@dataclasses.dataclass(frozen=True, slots=True)
class PageInfo:
    """Cursor state for one page of a GraphQL connection."""

    end_cursor: str | None
    has_next_page: bool


@dataclasses.dataclass(frozen=True, slots=True)
class PageConnection:
    """Nodes and cursor information for one page of a GraphQL connection."""

    nodes: tuple[JsonObject, ...]
    page_info: PageInfo

    @classmethod
    def from_json(cls, payload: object) -> PageConnection | None:
        """Validate an ``{edges, pageInfo}`` object, returning None if absent.

        Raises
        ------
        ValueError
            If ``payload`` is present but lacks ``pageInfo``, or reports a
            next page without an end cursor.
        """
        if not isinstance(payload, dict):
            return None
        page_info = payload.get("pageInfo")
        if not isinstance(page_info, dict):
            msg = "Connection response is missing pageInfo"
            raise ValueError(msg)
        nodes = tuple(
            node
            for edge in payload.get("edges") or []
            if isinstance(node := _dig(edge, "node"), dict)
        )
        cursor = page_info.get("endCursor")
        end_cursor = cursor if isinstance(cursor, str) else None
        has_next_page = page_info.get("hasNextPage") is True
        if has_next_page and end_cursor is None:
            msg = "Connection reports a next page without an endCursor"
            raise ValueError(msg)
        return cls(
            nodes=nodes,
            page_info=PageInfo(end_cursor=end_cursor, has_next_page=has_next_page),
        )
