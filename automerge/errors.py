"""Error types shared across the automerge package."""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .runner import PullRequestOutcome


class AutomergeError(RuntimeError):
    """Raised when the automerge agent cannot continue."""


class ConfigurationError(AutomergeError):
    """Raised when action inputs are missing or invalid."""


class EventPayloadError(AutomergeError):
    """Raised when the triggering event payload cannot be interpreted."""


class TransportError(AutomergeError):
    """Raised when a GitHub API request fails.

    Attributes
    ----------
    status_code : int or None
        HTTP status code of the failing response, or None when no response
        was received.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GraphQLResponseError(TransportError):
    """Raised when a GraphQL response carries an ``errors`` array.

    Attributes
    ----------
    errors : tuple
        The GraphQL error objects, in response order.
    data : dict or None
        The partial ``data`` payload sent alongside the errors.
    """

    def __init__(
        self, errors: cabc.Sequence[object], *, data: object = None
    ) -> None:
        messages = [
            str(error.get("message", error)) if isinstance(error, dict) else str(error)
            for error in errors
        ]
        super().__init__("; ".join(messages) or "Unknown GraphQL error")
        self.errors = tuple(errors)
        self.data = data


class NotFoundError(GraphQLResponseError):
    """Raised when every GraphQL error reports a missing resource."""


class BatchFailedError(AutomergeError):
    """Raised after a batch completes when one or more pull requests failed."""

    def __init__(self, failures: cabc.Sequence[PullRequestOutcome]) -> None:
        details = ", ".join(
            f"#{outcome.number}: {outcome.reason}" for outcome in failures
        )
        super().__init__(f"Failed to merge {len(failures)} pull request(s): {details}")
        self.failures = tuple(failures)
