"""Match dependency bump titles against the configured update preset."""

from __future__ import annotations

import enum
import re

from packaging.version import InvalidVersion, Version

__all__ = ["Preset", "UpdateCategory", "classify_update", "matches_preset"]

BUMP_TITLE_PATTERN = re.compile(
    r"\bbump (?P<name>\S+) from (?P<old>\S+) to (?P<new>\S+)",
    re.IGNORECASE,
)


class UpdateCategory(enum.StrEnum):
    """Semantic version component that changed in an update."""

    MAJOR = "MAJOR"
    MINOR = "MINOR"
    PATCH = "PATCH"


class Preset(enum.StrEnum):
    """Which update categories may be merged automatically."""

    ALL = "ALL"
    MAJOR = "MAJOR"
    MINOR = "MINOR"
    PATCH = "PATCH"
    MINOR_AND_PATCH = "MINOR_AND_PATCH"

    @classmethod
    def parse(cls, value: str | None) -> Preset:
        """Normalise a user supplied preset name.

        Empty values select :attr:`ALL`. The ``DEPENDABOT_MINOR``,
        ``DEPENDABOT_PATCH`` and ``PATCH_ONLY`` spellings are accepted as
        aliases.

        Raises
        ------
        ValueError
            If ``value`` names no known preset.
        """
        normalized = (value or "").strip().upper().replace("-", "_")
        if not normalized:
            return cls.ALL
        if normalized in _PRESET_ALIASES:
            return _PRESET_ALIASES[normalized]
        try:
            return cls(normalized)
        except ValueError:
            allowed = ", ".join(sorted([*cls, *_PRESET_ALIASES]))
            msg = f"Invalid preset '{value}'. Allowed: {allowed}."
            raise ValueError(msg) from None

    @property
    def categories(self) -> frozenset[UpdateCategory]:
        """Return the update categories this preset allows."""
        return _PRESET_CATEGORIES[self]


_PRESET_ALIASES: dict[str, Preset] = {
    "DEPENDABOT_MINOR": Preset.MINOR_AND_PATCH,
    "DEPENDABOT_PATCH": Preset.PATCH,
    "PATCH_ONLY": Preset.PATCH,
}

_PRESET_CATEGORIES: dict[Preset, frozenset[UpdateCategory]] = {
    Preset.ALL: frozenset(UpdateCategory),
    Preset.MAJOR: frozenset({UpdateCategory.MAJOR}),
    Preset.MINOR: frozenset({UpdateCategory.MINOR}),
    Preset.PATCH: frozenset({UpdateCategory.PATCH}),
    Preset.MINOR_AND_PATCH: frozenset({UpdateCategory.MINOR, UpdateCategory.PATCH}),
}


def _parse_version(raw: str) -> Version:
    return Version(raw.removeprefix("v").removeprefix("V"))


def classify_update(old: str, new: str) -> UpdateCategory:
    """Return which version component differs between ``old`` and ``new``.

    Raises
    ------
    packaging.version.InvalidVersion
        If either version cannot be parsed.
    """
    old_version = _parse_version(old)
    new_version = _parse_version(new)
    if old_version.major != new_version.major:
        return UpdateCategory.MAJOR
    if old_version.minor != new_version.minor:
        return UpdateCategory.MINOR
    return UpdateCategory.PATCH


def matches_preset(title: str, preset: Preset) -> bool:
    """Return True if the bump described by ``title`` is allowed by ``preset``.

    Titles that do not describe a dependency bump are never blocked. Bump
    titles whose versions fail to parse are rejected.

    Examples
    --------
    >>> matches_preset("bump lodash from 4.17.20 to 4.17.21", Preset.PATCH)
    True
    >>> matches_preset("bump lodash from 4.17.20 to 5.0.0", Preset.PATCH)
    False
    >>> matches_preset("Refactor build script", Preset.PATCH)
    True
    """
    if preset is Preset.ALL:
        return True
    match = BUMP_TITLE_PATTERN.search(title)
    if match is None:
        return True
    try:
        category = classify_update(match["old"], match["new"])
    except InvalidVersion:
        return False
    return category in preset.categories
