"""Formats an authorization model may be given in."""

from __future__ import annotations

from enum import Enum

from fgakit.errors import InvalidFormatError


class ModelFormat(str, Enum):
    """The format of an authorization model input."""

    DEFAULT = "autodetect"
    JSON = "json"
    FGA = "fga"
    MODULAR = "modular"

    def __str__(self) -> str:
        return self.value


_SELECTABLE = frozenset({"json", "fga", "modular"})


def parse_model_format(value: str) -> ModelFormat:
    """Return the format named by ``value``; autodetect cannot be chosen explicitly."""
    text = value.value if isinstance(value, ModelFormat) else value
    if text in _SELECTABLE:
        return ModelFormat(text)
    raise InvalidFormatError(
        f'{InvalidFormatError.default_message}: must be one of '
        f'"{ModelFormat.JSON}" or "{ModelFormat.FGA}"'
    )