"""Allow ``python -m automerge``."""

from __future__ import annotations

from .cli import run

run()
