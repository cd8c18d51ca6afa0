"""Validated configuration for the automerge agent.

Raw action inputs arrive as loosely typed strings and numbers; this module
turns them into an immutable :class:`AutomergeConfig` or raises
:class:`~automerge.errors.ConfigurationError` describing the bad input.
"""

from __future__ import annotations

import dataclasses

from .errors import ConfigurationError
from .evaluation import EligibilityPolicy
from .merge import MergeMethod
from .presets import Preset

__all__ = ["MERGE_METHODS", "AutomergeConfig", "build_config"]

MERGE_METHODS = {
    "merge": MergeMethod.MERGE,
    "rebase": MergeMethod.REBASE,
    "squash": MergeMethod.SQUASH,
}


@dataclasses.dataclass(frozen=True, slots=True)
class AutomergeConfig:
    """Configuration shared by every pull request in a run.

    Attributes
    ----------
    login : str
        Login (or glob pattern) of the bot whose pull requests are merged.
    merge_method : MergeMethod
        The merge method passed to the merge mutation.
    preset : Preset
        Update categories allowed to merge.
    maximum_attempts : int
        Total merge attempts allowed per pull request.
    minimum_wait_ms : int
        Base backoff wait, in milliseconds.
    allow_manual_changes : bool
        Skip the commit provenance check.
    merge_info_preview : bool
        Request ``mergeStateStatus`` via the merge-info preview.
    dry_run : bool
        Evaluate and report without approving or merging.
    """

    login: str
    merge_method: MergeMethod = MergeMethod.SQUASH
    preset: Preset = Preset.ALL
    maximum_attempts: int = 3
    minimum_wait_ms: int = 1000
    allow_manual_changes: bool = False
    merge_info_preview: bool = False
    dry_run: bool = False

    @property
    def eligibility_policy(self) -> EligibilityPolicy:
        """Return the subset of the configuration used for eligibility."""
        return EligibilityPolicy(
            login=self.login,
            preset=self.preset,
            allow_manual_changes=self.allow_manual_changes,
        )


def _normalize_merge_method(merge_method: str) -> MergeMethod:
    """Validate and normalise a merge method to its GraphQL enum value."""
    normalized = merge_method.strip().lower()
    if normalized not in MERGE_METHODS:
        allowed = ", ".join(sorted(MERGE_METHODS))
        msg = f"Invalid merge_method '{merge_method}'. Allowed: {allowed}."
        raise ConfigurationError(msg)
    return MERGE_METHODS[normalized]


def build_config(  # noqa: PLR0913 - mirrors the action inputs
    *,
    login: str,
    merge_method: str = "squash",
    preset: str | None = None,
    maximum_retries: int = 3,
    minimum_wait_time: int = 1000,
    allow_manual_changes: bool = False,
    merge_info_preview: bool = False,
    dry_run: bool = False,
) -> AutomergeConfig:
    """Validate raw inputs and return an :class:`AutomergeConfig`.

    Raises
    ------
    ConfigurationError
        If any input is missing or out of range.
    """
    normalized_login = login.strip()
    if not normalized_login:
        msg = "GitHub login must not be empty."
        raise ConfigurationError(msg)
    if maximum_retries < 1:
        msg = f"maximum_retries must be a positive integer, got {maximum_retries}."
        raise ConfigurationError(msg)
    if minimum_wait_time < 0:
        msg = f"minimum_wait_time must not be negative, got {minimum_wait_time}."
        raise ConfigurationError(msg)
    try:
        parsed_preset = Preset.parse(preset)
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc
    return AutomergeConfig(
        login=normalized_login,
        merge_method=_normalize_merge_method(merge_method),
        preset=parsed_preset,
        maximum_attempts=maximum_retries,
        minimum_wait_ms=minimum_wait_time,
        allow_manual_changes=allow_manual_changes,
        merge_info_preview=merge_info_preview,
        dry_run=dry_run,
    )
