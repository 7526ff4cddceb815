"""Helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING


if TYPE_CHECKING:
    import re


def strip_blocks(pattern: re.Pattern[str], content: str) -> str:
    """Remove every match of a block pattern and trim surrounding whitespace."""
    return pattern.sub("", content).strip()


def last_match(pattern: re.Pattern[str], content: str) -> re.Match[str] | None:
    """Return the last match of a block pattern (watermarks sit at the end)."""
    matches = list(pattern.finditer(content))
    return matches[-1] if matches else None
