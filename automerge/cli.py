"""Command-line entry point for the Dependabot automerge agent.

Environment Variables
---------------------
INPUT_GITHUB_TOKEN : str
    GitHub token with ``contents:write`` and ``pull-requests:write``
    permissions.
INPUT_GITHUB_LOGIN : str, optional
    Login (or glob pattern) of the bot whose pull requests are merged.
    Default: ``dependabot``.
INPUT_MERGE_METHOD : str, optional
    Merge method: ``squash``, ``merge``, or ``rebase``. Default: ``squash``.
INPUT_PRESET : str, optional
    Update categories to merge, for example ``DEPENDABOT_MINOR``.
INPUT_MAXIMUM_RETRIES : int, optional
    Merge attempts per pull request. Default: 3.
INPUT_MINIMUM_WAIT_TIME : int, optional
    Base backoff wait in milliseconds. Default: 1000.
INPUT_ENABLED_FOR_MANUAL_CHANGES : bool, optional
    Merge pull requests even when commits were not made by the bot.
INPUT_DRY_RUN : bool, optional
    If ``true``, evaluate and report without approving or merging.

Usage
-----
In a GitHub Actions workflow::

    - run: dependabot-automerge
      env:
        INPUT_GITHUB_TOKEN: ${{ secrets.GITHUB_TOKEN }}
        INPUT_PRESET: DEPENDABOT_MINOR
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import typing as typ

from cyclopts import App, Parameter

from .config import build_config
from .env import normalize_input_env
from .errors import AutomergeError
from .events import EventKind, load_event, resolve_repository
from .graphql_client import GraphQLClient
from .output import emit_report, fail
from .runner import approval_policy_for, automerge_pull_requests, resolve_references

if typ.TYPE_CHECKING:
    from .config import AutomergeConfig
    from .runner import BatchReport

logger = logging.getLogger(__name__)

app = App()


@dataclasses.dataclass(frozen=True, slots=True)
class AutomergeOptions:
    """CLI options for automerge execution."""

    github_login: typ.Annotated[
        str,
        Parameter(
            help="Login or glob pattern of the bot whose PRs are merged.",
            env_var="INPUT_GITHUB_LOGIN",
        ),
    ] = "dependabot"
    merge_method: typ.Annotated[
        str,
        Parameter(
            help="Merge method to use (squash, merge, rebase).",
            env_var="INPUT_MERGE_METHOD",
        ),
    ] = "squash"
    preset: typ.Annotated[
        str | None,
        Parameter(
            help="Update categories to merge (empty merges every update).",
            env_var="INPUT_PRESET",
        ),
    ] = None
    maximum_retries: typ.Annotated[
        int,
        Parameter(
            help="Merge attempts per pull request.",
            env_var="INPUT_MAXIMUM_RETRIES",
        ),
    ] = 3
    minimum_wait_time: typ.Annotated[
        int,
        Parameter(
            help="Base backoff wait in milliseconds.",
            env_var="INPUT_MINIMUM_WAIT_TIME",
        ),
    ] = 1000
    enabled_for_manual_changes: typ.Annotated[
        bool,
        Parameter(
            help="Merge even when commits were not made by the bot.",
            env_var="INPUT_ENABLED_FOR_MANUAL_CHANGES",
        ),
    ] = False
    merge_info_preview: typ.Annotated[
        bool,
        Parameter(
            help="Also require a clean merge state status.",
            env_var="INPUT_MERGE_INFO_PREVIEW",
        ),
    ] = False
    dry_run: typ.Annotated[
        bool,
        Parameter(
            help="Evaluate without approving or merging.",
            env_var="INPUT_DRY_RUN",
        ),
    ] = False
    pull_request_number: typ.Annotated[
        int | None,
        Parameter(
            help="Pull request number override.",
            env_var="INPUT_PULL_REQUEST_NUMBER",
        ),
    ] = None
    repository: typ.Annotated[
        str | None,
        Parameter(
            help="Repository override in owner/repo form.",
            env_var="INPUT_REPOSITORY",
        ),
    ] = None
    event_name: typ.Annotated[
        str | None,
        Parameter(
            help="Name of the triggering workflow event.",
            env_var=["INPUT_EVENT_NAME", "GITHUB_EVENT_NAME"],
        ),
    ] = None
    verbose: typ.Annotated[
        bool,
        Parameter(
            help="Log debug output, including raw API errors.",
            env_var="INPUT_VERBOSE",
        ),
    ] = False


DEFAULT_AUTOMERGE_OPTIONS = AutomergeOptions()


def _configure_logging(*, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


async def _run(
    github_token: str, options: AutomergeOptions, config: AutomergeConfig
) -> BatchReport:
    event = load_event()
    kind = EventKind.parse(options.event_name)
    repository = resolve_repository(options.repository, event)
    logger.debug("Handling %s event for %s.", kind, repository.full_name)

    async with GraphQLClient(
        github_token, merge_info_preview=config.merge_info_preview
    ) as client:
        references = await resolve_references(
            client,
            repository,
            kind,
            event,
            pull_request_number=options.pull_request_number,
        )
        if not references:
            logger.info("No pull requests to process.")
        return await automerge_pull_requests(
            client,
            repository,
            references,
            config,
            approval_policy=approval_policy_for(kind),
        )


@app.default
def main(
    *,
    github_token: typ.Annotated[
        str, Parameter(required=True, env_var="INPUT_GITHUB_TOKEN")
    ],
    options: AutomergeOptions = DEFAULT_AUTOMERGE_OPTIONS,
) -> None:
    """Evaluate the triggering pull requests and merge the eligible ones.

    Parameters
    ----------
    github_token : str
        GitHub token with ``contents:write`` and ``pull-requests:write``
        permissions. Read from ``INPUT_GITHUB_TOKEN`` environment variable.
    options : AutomergeOptions
        Policy, retry and override options.

    Raises
    ------
    SystemExit
        Exits with code 1 on invalid configuration, unusable event data,
        GitHub API failures, or when any pull request failed to merge.
    """
    _configure_logging(verbose=options.verbose)
    try:
        config = build_config(
            login=options.github_login,
            merge_method=options.merge_method,
            preset=options.preset,
            maximum_retries=options.maximum_retries,
            minimum_wait_time=options.minimum_wait_time,
            allow_manual_changes=options.enabled_for_manual_changes,
            merge_info_preview=options.merge_info_preview,
            dry_run=options.dry_run,
        )
        report = asyncio.run(_run(github_token, options, config))
        emit_report(report)
        report.raise_for_failures()
    except AutomergeError as exc:
        fail(str(exc))


def run() -> None:
    """Console script entry point."""
    normalize_input_env()
    app()


if __name__ == "__main__":
    run()
