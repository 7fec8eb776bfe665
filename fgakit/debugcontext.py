"""A context-local debug flag."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

_DEBUG: ContextVar[bool] = ContextVar("fgakit_debug", default=False)


@contextmanager
def debug_context(debug: bool) -> Iterator[None]:
    """Set the debug flag for the duration of the ``with`` block."""
    token = _DEBUG.set(bool(debug))
    try:
        yield
    finally:
        _DEBUG.reset(token)


def is_debug() -> bool:
    """Return whether debug output is enabled in the current context."""
    return _DEBUG.get()