"""Comparison helpers."""

from __future__ import annotations

from collections.abc import Sequence


def string_lists_equal(first: Sequence[str], second: Sequence[str]) -> bool:
    """Return whether two lists hold the same strings, ignoring their order."""
    if len(first) != len(second):
        return False
    return sorted(first) == sorted(second)