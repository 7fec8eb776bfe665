"""Reading relationship tuples from JSON, YAML, JSON Lines and CSV files."""

from __future__ import annotations

import csv
import io
import json
from pathlib import Path
from typing import Any

import yaml

from fgakit.errors import (
    FgaCliError,
    empty_tuples_file_error,
    missing_required_csv_header_error,
)
from fgakit.tuples import RelationshipCondition, TupleKey, parse_query_context

_VALID_HEADERS = (
    "user_type",
    "user_id",
    "user_relation",
    "relation",
    "object_type",
    "object_id",
    "condition_name",
    "condition_context",
)
_REQUIRED_HEADERS = ("user_type", "user_id", "relation", "object_type", "object_id")


def _as_text(data: str | bytes) -> str:
    if isinstance(data, (bytes, bytearray)):
        return bytes(data).decode("utf-8")
    return data


def _extension(file_name: str) -> str:
    base = file_name[file_name.rfind("/") + 1 :]
    dot = base.rfind(".")
    return base[dot:] if dot >= 0 else ""


def _tuple_from(item: Any) -> TupleKey:
    return TupleKey.from_dict(item if item is not None else {})


def _parse_tuples_from_yaml(text: str, ext_name: str) -> list[TupleKey]:
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(str(exc)) from exc
    if loaded is None:
        loaded = []
    if not isinstance(loaded, list):
        raise ValueError("expected a list of tuples")
    tuples = [_tuple_from(item) for item in loaded]
    if not tuples:
        raise empty_tuples_file_error(ext_name)
    return tuples


def parse_tuples_from_jsonl(data: str | bytes) -> list[TupleKey]:
    """Parse one JSON tuple per line, skipping blank lines."""
    tuples: list[TupleKey] = []
    for line_num, raw_line in enumerate(_as_text(data).split("\n"), start=1):
        line = raw_line.strip()
        if not line:
            continue
        try:
            tuples.append(_tuple_from(json.loads(line)))
        except ValueError as exc:
            raise ValueError(
                f"failed to read tuple from jsonl file on line {line_num}: {exc}"
            ) from exc
    if not tuples:
        raise empty_tuples_file_error("jsonl")
    return tuples


def _read_columns(header_row: list[str]) -> dict[str, int]:
    columns: dict[str, int] = {}
    for index, header in enumerate(header_row):
        name = header.strip()
        if name not in _VALID_HEADERS:
            raise ValueError(
                f"invalid header {json.dumps(name)}, valid headers are {','.join(_VALID_HEADERS)}"
            )
        columns[name] = index

    for name in _REQUIRED_HEADERS:
        if name not in columns:
            raise missing_required_csv_header_error(name)

    if "condition_context" in columns and "condition_name" not in columns:
        raise ValueError(
            'missing "condition_name" header which is required when "condition_context" is present'
        )
    return columns


def _condition_for_row(
    columns: dict[str, int], row: list[str], index: int
) -> RelationshipCondition | None:
    name_index = columns.get("condition_name")
    if name_index is None or not row[name_index]:
        return None

    context: dict[str, Any] = {}
    context_index = columns.get("condition_context")
    if context_index is not None:
        try:
            context = parse_query_context(row[context_index])
        except ValueError as exc:
            raise ValueError(f"failed to read condition context on line {index}: {exc}") from exc
    return RelationshipCondition(name=row[name_index], context=context)


def parse_tuples_from_csv(data: str | bytes) -> list[TupleKey]:
    """Parse tuples from CSV text whose first row names the columns."""
    reader = csv.reader(io.StringIO(_as_text(data), newline=""))
    rows = (row for row in reader if row)

    try:
        header_row = next(rows, None)
    except csv.Error as exc:
        raise ValueError(f"failed to read csv headers: {exc}") from exc
    if header_row is None:
        raise ValueError("failed to read csv headers: EOF")
    columns = _read_columns(header_row)
    width = len(header_row)

    tuples: list[TupleKey] = []
    index = 0
    while True:
        try:
            row = next(rows, None)
        except csv.Error as exc:
            raise ValueError(f"failed to read tuple from csv file: {exc}") from exc
        if row is None:
            break
        if len(row) != width:
            raise ValueError(
                f"failed to read tuple from csv file: record on line {reader.line_num}: "
                "wrong number of fields"
            )

        user = f"{row[columns['user_type']]}:{row[columns['user_id']]}"
        relation_index = columns.get("user_relation")
        if relation_index is not None and row[relation_index]:
            user += "#" + row[relation_index]

        tuples.append(
            TupleKey(
                user=user,
                relation=row[columns["relation"]],
                object=f"{row[columns['object_type']]}:{row[columns['object_id']]}",
                condition=_condition_for_row(columns, row, index),
            )
        )
        index += 1
    return tuples


def read_tuple_file(file_name: str) -> list[TupleKey]:
    """Read tuples from a file, choosing the parser by its extension."""
    try:
        data = Path(file_name).read_bytes()
    except OSError as exc:
        raise OSError(
            exc.errno, f'failed to read file "{file_name}": {exc.strerror or exc}', file_name
        ) from exc

    extension = _extension(file_name)
    try:
        if extension in (".json", ".yaml", ".yml"):
            return _parse_tuples_from_yaml(_as_text(data), extension.removeprefix("."))
        if extension == ".jsonl":
            return parse_tuples_from_jsonl(data)
        if extension == ".csv":
            return parse_tuples_from_csv(data)
        raise ValueError(f"unsupported file format {json.dumps(extension)}")
    except FgaCliError as exc:
        raise type(exc)(f"failed to parse input tuples: {exc}") from exc
    except ValueError as exc:
        raise ValueError(f"failed to parse input tuples: {exc}") from exc