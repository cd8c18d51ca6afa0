"""Tests for :mod:`automerge.config`."""

from __future__ import annotations

import pytest

from automerge.config import build_config
from automerge.errors import ConfigurationError
from automerge.evaluation import EligibilityPolicy
from automerge.merge import MergeMethod
from automerge.presets import Preset


class TestBuildConfig:
    """Tests for build_config."""

    def test_defaults(self) -> None:
        """Only the login is required."""
        config = build_config(login="dependabot")

        assert config.merge_method is MergeMethod.SQUASH
        assert config.preset is Preset.ALL
        assert config.maximum_attempts == 3
        assert config.minimum_wait_ms == 1000
        assert config.dry_run is False

    @pytest.mark.parametrize(
        ("input_value", "expected"),
        [
            ("squash", MergeMethod.SQUASH),
            ("SQUASH", MergeMethod.SQUASH),
            ("  squash  ", MergeMethod.SQUASH),
            ("merge", MergeMethod.MERGE),
            ("rebase", MergeMethod.REBASE),
        ],
    )
    def test_merge_methods(self, input_value: str, expected: MergeMethod) -> None:
        """Valid merge methods are normalised correctly."""
        config = build_config(login="dependabot", merge_method=input_value)
        assert config.merge_method is expected, f"unexpected for '{input_value}'"

    def test_invalid_merge_method_raises(self) -> None:
        """Invalid merge methods list the allowed values."""
        with pytest.raises(ConfigurationError, match="Allowed: merge, rebase, squash"):
            build_config(login="dependabot", merge_method="fast-forward")

    def test_preset_alias(self) -> None:
        """Preset aliases are resolved."""
        config = build_config(login="dependabot", preset="DEPENDABOT_MINOR")
        assert config.preset is Preset.MINOR_AND_PATCH

    def test_invalid_preset_raises(self) -> None:
        """Unknown presets are configuration errors."""
        with pytest.raises(ConfigurationError, match="Invalid preset"):
            build_config(login="dependabot", preset="nightly")

    @pytest.mark.parametrize("retries", [0, -1])
    def test_non_positive_retries_raise(self, retries: int) -> None:
        """At least one merge attempt is required."""
        with pytest.raises(ConfigurationError, match="maximum_retries"):
            build_config(login="dependabot", maximum_retries=retries)

    def test_negative_wait_raises(self) -> None:
        """The backoff wait cannot be negative."""
        with pytest.raises(ConfigurationError, match="minimum_wait_time"):
            build_config(login="dependabot", minimum_wait_time=-5)

    def test_zero_wait_allowed(self) -> None:
        """A zero wait retries immediately."""
        config = build_config(login="dependabot", minimum_wait_time=0)
        assert config.minimum_wait_ms == 0

    def test_blank_login_raises(self) -> None:
        """The bot login cannot be blank."""
        with pytest.raises(ConfigurationError, match="login"):
            build_config(login="   ")

    def test_eligibility_policy(self) -> None:
        """The eligibility policy carries the policy fields."""
        config = build_config(
            login="dependabot*", preset="patch", allow_manual_changes=True
        )

        assert config.eligibility_policy == EligibilityPolicy(
            login="dependabot*", preset=Preset.PATCH, allow_manual_changes=True
        )
