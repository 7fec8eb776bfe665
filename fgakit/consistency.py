"""Consistency preferences for queries."""

from __future__ import annotations

from enum import Enum


class ConsistencyPreference(str, Enum):
    """How a query trades consistency against latency."""

    UNSPECIFIED = "UNSPECIFIED"
    MINIMIZE_LATENCY = "MINIMIZE_LATENCY"
    HIGHER_CONSISTENCY = "HIGHER_CONSISTENCY"

    def __str__(self) -> str:
        return self.value


def parse_consistency(consistency: str) -> ConsistencyPreference:
    """Parse a consistency preference, accepting it in any letter case.

    An empty string gives ``UNSPECIFIED``.
    """
    if not consistency:
        return ConsistencyPreference.UNSPECIFIED

    for candidate in (consistency, consistency.upper()):
        try:
            return ConsistencyPreference(candidate)
        except ValueError:
            continue

    raise ValueError(
        f"invalid value '{consistency}' for consistency. "
        "Valid values are HIGHER_CONSISTENCY and MINIMIZE_LATENCY"
    )