"""Rendering of command results as JSON, YAML or CSV."""

from __future__ import annotations

import csv
import dataclasses
import io
import json
import os
import sys
from collections.abc import Mapping
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Protocol, TextIO

import yaml

_RESET = "\x1b[0m"
_PUNCT = "\x1b[1m"
_FIELD = "\x1b[34;1m"
_STRING = "\x1b[32m"
_NUMBER = "\x1b[36m"
_BOOL = "\x1b[33m"
_NULL = "\x1b[35m"
_INDENT = "  "


def _to_plain(data: Any) -> Any:
    to_dict = getattr(data, "to_dict", None)
    if callable(to_dict) and not isinstance(data, type):
        return _to_plain(to_dict())
    if dataclasses.is_dataclass(data) and not isinstance(data, type):
        return {f.name: _to_plain(getattr(data, f.name)) for f in dataclasses.fields(data)}
    if isinstance(data, Enum):
        return _to_plain(data.value)
    if isinstance(data, datetime):
        text = data.isoformat()
        if data.tzinfo is not None and data.utcoffset() == timezone.utc.utcoffset(None):
            text = text.removesuffix("+00:00") + "Z"
        return text
    if isinstance(data, date):
        return data.isoformat()
    if isinstance(data, Mapping):
        return {key: _to_plain(value) for key, value in data.items()}
    if isinstance(data, (list, tuple, set, frozenset)):
        return [_to_plain(item) for item in data]
    return data


def _normalise(data: Any) -> Any:
    """Reduce ``data`` to JSON-compatible values, raising TypeError if impossible."""
    return json.loads(json.dumps(_to_plain(data), ensure_ascii=False))


def _paint(code: str, text: str) -> str:
    return f"{code}{text}{_RESET}"


def _colorize(value: Any, level: int = 0) -> str:
    pad = _INDENT * (level + 1)
    closing = _INDENT * level
    separator = _paint(_PUNCT, ",") + "\n"
    if isinstance(value, dict):
        if not value:
            return _paint(_PUNCT, "{}")
        items = [
            f"{pad}{_paint(_FIELD, json.dumps(key, ensure_ascii=False))}"
            f"{_paint(_PUNCT, ':')} {_colorize(item, level + 1)}"
            for key, item in value.items()
        ]
        return f"{_paint(_PUNCT, '{')}\n{separator.join(items)}\n{closing}{_paint(_PUNCT, '}')}"
    if isinstance(value, list):
        if not value:
            return _paint(_PUNCT, "[]")
        items = [f"{pad}{_colorize(item, level + 1)}" for item in value]
        return f"{_paint(_PUNCT, '[')}\n{separator.join(items)}\n{closing}{_paint(_PUNCT, ']')}"
    if value is None:
        return _paint(_NULL, "null")
    if isinstance(value, bool):
        return _paint(_BOOL, "true" if value else "false")
    if isinstance(value, str):
        return _paint(_STRING, json.dumps(value, ensure_ascii=False))
    return _paint(_NUMBER, json.dumps(value))


def _csv_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


class _Printer(Protocol):
    def render(self, data: Any, colorful: bool) -> str: ...


class JsonPrinter:
    """Renders data as indented JSON, optionally with terminal colours."""

    def render(self, data: Any, colorful: bool) -> str:
        plain = _normalise(data)
        if colorful:
            return _colorize(plain)
        return json.dumps(plain, indent=2, ensure_ascii=False)


class YamlPrinter:
    """Renders data as YAML; colour is not supported."""

    def render(self, data: Any, colorful: bool) -> str:
        return yaml.safe_dump(
            _normalise(data), sort_keys=False, allow_unicode=True, default_flow_style=False
        )


class CsvPrinter:
    """Renders a list of records as CSV with a header row; colour is not supported."""

    def render(self, data: Any, colorful: bool) -> str:
        rows = _normalise(data)
        if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
            raise TypeError("CSV output needs a list of records")
        header = list(dict.fromkeys(key for row in rows for key in row))
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        if header:
            writer.writerow(header)
        for row in rows:
            writer.writerow([_csv_cell(row.get(key)) for key in header])
        return buffer.getvalue()


@dataclasses.dataclass
class UniPrinter:
    """Writes data through a chosen printer, with or without colour."""

    printer: _Printer
    colorful: bool = True
    stream: TextIO | None = None

    def display(self, data: Any) -> None:
        out = self.stream if self.stream is not None else sys.stdout
        out.write(self.printer.render(data, self.colorful) + "\n")


def new_uni_printer(output_format: str, stream: TextIO | None = None) -> UniPrinter:
    """Choose a printer for ``yaml``, ``csv`` or (otherwise) JSON; NO_COLOR disables colour."""
    printers: dict[str, _Printer] = {"yaml": YamlPrinter(), "csv": CsvPrinter()}
    return UniPrinter(
        printer=printers.get(output_format, JsonPrinter()),
        colorful=not os.environ.get("NO_COLOR"),
        stream=stream,
    )


def display(data: Any, stream: TextIO | None = None) -> None:
    """Write ``data`` as JSON: decorated on a terminal, compact otherwise."""
    out = stream if stream is not None else sys.stdout
    isatty = getattr(out, "isatty", None)
    if callable(isatty) and isatty():
        text = JsonPrinter().render(data, colorful=not os.environ.get("NO_COLOR"))
    else:
        text = json.dumps(_normalise(data), separators=(",", ":"), ensure_ascii=False)
    out.write(text + "\n")