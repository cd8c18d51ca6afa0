"""Normalise action input environment variables.

The Actions runner exports inputs with their declared names, so an input
called ``github-login`` arrives as ``INPUT_GITHUB-LOGIN``. The CLI reads
underscore names only; this module rewrites the dashed spellings first.
"""

from __future__ import annotations

import os
import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc

__all__ = ["normalize_input_env"]


def _dashed_input_keys(
    environ: cabc.Mapping[str, str], prefix: str
) -> list[str]:
    alt_prefix = prefix.replace("_", "-")
    return [
        key
        for key in environ
        if key.startswith((prefix, alt_prefix)) and "-" in key
    ]


def normalize_input_env(
    prefix: str = "INPUT_",
    *,
    prefer_dashed: bool = False,
    environ: cabc.MutableMapping[str, str] | None = None,
) -> dict[str, str]:
    """Rewrite dashed ``INPUT-`` variables to their underscore form.

    Parameters
    ----------
    prefix : str, default="INPUT_"
        The environment variable prefix to normalise.
    prefer_dashed : bool, default=False
        If True, a dashed variant overrides an existing underscore key.
    environ : MutableMapping, optional
        Mapping to update; defaults to ``os.environ``.

    Returns
    -------
    dict[str, str]
        The underscore keys that were set, with their values.

    Notes
    -----
    Dashed keys are always removed, whether or not their value was used.
    """
    target = os.environ if environ is None else environ
    applied: dict[str, str] = {}
    for key in _dashed_input_keys(target, prefix):
        value = target.pop(key)
        normalized = key.replace("-", "_")
        if prefer_dashed or normalized not in target:
            target[normalized] = value
            applied[normalized] = value
    return applied
