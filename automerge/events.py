"""Normalise GitHub Actions event payloads into pull request references."""

from __future__ import annotations

import dataclasses
import enum
import json
import os
import typing as typ
from pathlib import Path

from .errors import ConfigurationError, EventPayloadError
from .models import Repository

if typ.TYPE_CHECKING:
    from .graphql_client import JsonObject

__all__ = [
    "EventKind",
    "PullRequestReference",
    "load_event",
    "push_branch",
    "references_from_event",
    "resolve_repository",
]

_BRANCH_REF_PREFIX = "refs/heads/"


class EventKind(enum.StrEnum):
    """Workflow trigger events the agent knows how to handle."""

    CHECK_SUITE = "check_suite"
    PULL_REQUEST = "pull_request"
    PULL_REQUEST_TARGET = "pull_request_target"
    PUSH = "push"
    WORKFLOW_DISPATCH = "workflow_dispatch"
    WORKFLOW_RUN = "workflow_run"

    @classmethod
    def parse(cls, name: str | None) -> EventKind:
        """Return the event kind for ``name``.

        An empty name means the run was started manually.

        Raises
        ------
        EventPayloadError
            If the event is not supported.
        """
        normalized = (name or "").strip().lower()
        if not normalized:
            return cls.WORKFLOW_DISPATCH
        try:
            return cls(normalized)
        except ValueError:
            msg = f"Unsupported event '{name}'."
            raise EventPayloadError(msg) from None


@dataclasses.dataclass(frozen=True, slots=True)
class PullRequestReference:
    """A candidate pull request named by the triggering event.

    Attributes
    ----------
    number : int
        The pull request number.
    base_ref : str or None
        Target branch reported by the event payload, when it has one. It is
        informational: eligibility is decided from the fetched snapshot, and
        no branch-protection rules are looked up for it.
    """

    number: int
    base_ref: str | None = None


def load_event(event_path: str | None = None) -> JsonObject | None:
    """Load the event payload from ``event_path`` or ``GITHUB_EVENT_PATH``.

    Returns None when no payload file is available.

    Raises
    ------
    EventPayloadError
        If the payload is not a JSON object.
    """
    event_path = event_path or os.environ.get("GITHUB_EVENT_PATH")
    if not event_path:
        return None
    path = Path(event_path)
    if not path.exists():
        return None
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        msg = f"Failed to parse event payload: {exc}"
        raise EventPayloadError(msg) from exc
    if not isinstance(payload, dict):
        msg = "Event payload is not a JSON object."
        raise EventPayloadError(msg)
    return payload


def _get_repo_from_event(event: JsonObject | None) -> str:
    """Return the repository full name from an event payload when available."""
    if not event:
        return ""
    repository = event.get("repository")
    repo = repository.get("full_name") if isinstance(repository, dict) else None
    if isinstance(repo, str):
        return repo.strip()
    return ""


def resolve_repository(
    repository: str | None, event: JsonObject | None
) -> Repository:
    """Resolve the repository from input, event payload, or environment.

    Raises
    ------
    ConfigurationError
        If no repository is available or it is not in ``owner/repo`` form.
    """
    full_name = (
        (repository or "").strip()
        or _get_repo_from_event(event)
        or os.environ.get("GITHUB_REPOSITORY", "")
    )
    if not full_name:
        msg = "Repository not provided. Set INPUT_REPOSITORY or GITHUB_REPOSITORY."
        raise ConfigurationError(msg)
    try:
        return Repository.from_full_name(full_name)
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc


def _parse_number(value: object, source: str) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    msg = f"Event payload {source} is not an integer."
    raise EventPayloadError(msg)


def _reference_from_pull_request(
    pull_request: object, source: str
) -> PullRequestReference:
    if not isinstance(pull_request, dict):
        msg = f"Event payload {source} is not an object."
        raise EventPayloadError(msg)
    base = pull_request.get("base")
    base_ref = base.get("ref") if isinstance(base, dict) else None
    return PullRequestReference(
        number=_parse_number(pull_request.get("number"), f"{source}.number"),
        base_ref=base_ref if isinstance(base_ref, str) else None,
    )


def references_from_event(
    kind: EventKind, event: JsonObject | None
) -> tuple[PullRequestReference, ...]:
    """Return the pull requests an event refers to.

    ``push`` events name a branch rather than a pull request and yield no
    references; use :func:`push_branch` for those.

    Raises
    ------
    EventPayloadError
        If the payload lacks the data its event kind requires.
    """
    if kind is EventKind.PUSH:
        return ()
    if event is None:
        msg = f"Event '{kind}' requires GITHUB_EVENT_PATH with a payload."
        raise EventPayloadError(msg)

    if kind in (EventKind.PULL_REQUEST, EventKind.PULL_REQUEST_TARGET):
        pull_request = event.get("pull_request")
        return (_reference_from_pull_request(pull_request, "pull_request"),)

    if kind in (EventKind.CHECK_SUITE, EventKind.WORKFLOW_RUN):
        container = event.get(str(kind))
        pull_requests = (
            container.get("pull_requests") if isinstance(container, dict) else None
        )
        if not isinstance(pull_requests, list):
            msg = f"Event payload does not include {kind}.pull_requests."
            raise EventPayloadError(msg)
        return tuple(
            _reference_from_pull_request(item, f"{kind}.pull_requests[{index}]")
            for index, item in enumerate(pull_requests)
        )

    msg = (
        f"Event '{kind}' does not name a pull request; "
        "set INPUT_PULL_REQUEST_NUMBER."
    )
    raise EventPayloadError(msg)


def push_branch(event: JsonObject | None) -> str:
    """Return the branch name a ``push`` event updated.

    Raises
    ------
    EventPayloadError
        If the payload has no branch ref.
    """
    ref = event.get("ref") if event else None
    if not isinstance(ref, str) or not ref.startswith(_BRANCH_REF_PREFIX):
        msg = "Push event payload does not reference a branch."
        raise EventPayloadError(msg)
    return ref.removeprefix(_BRANCH_REF_PREFIX)
