"""Authorization models: loading, serialising and reading them from input."""

from __future__ import annotations

import errno
import json
import posixpath
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from fgakit.errors import ModelInputMissingError
from fgakit.modelformat import ModelFormat

_CROCKFORD = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_CROCKFORD_VALUES = {char: index for index, char in enumerate(_CROCKFORD)}
_ULID_LENGTH = 26
_ULID_TIME_LENGTH = 10
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _ulid_timestamp_ms(value: str) -> int:
    if len(value) != _ULID_LENGTH:
        raise ValueError("ulid: bad data size when unmarshaling")
    upper = value.upper()
    if any(char not in _CROCKFORD_VALUES for char in upper):
        raise ValueError("ulid: bad data characters when unmarshaling")
    if upper[0] > "7":
        raise ValueError("ulid: overflow when unmarshaling")
    millis = 0
    for char in upper[:_ULID_TIME_LENGTH]:
        millis = millis * 32 + _CROCKFORD_VALUES[char]
    return millis


def created_at_from_model_id(model_id: str) -> datetime:
    """Return the UTC creation time encoded in a model's ULID identifier."""
    try:
        millis = _ulid_timestamp_ms(model_id)
    except ValueError as exc:
        raise ValueError(f"error parsing model id {exc}") from exc
    return _EPOCH + timedelta(milliseconds=millis)


def _format_time(moment: datetime) -> str:
    """Format a time as RFC 3339 with trailing zeros of the fraction removed."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    text = moment.strftime("%Y-%m-%dT%H:%M:%S")
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    offset = moment.utcoffset() or timedelta(0)
    if offset == timedelta(0):
        return text + "Z"
    sign = "+" if offset >= timedelta(0) else "-"
    minutes = abs(int(offset.total_seconds())) // 60
    return f"{text}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def _expect(value: Any, kind: type | tuple[type, ...], name: str) -> Any:
    if not isinstance(value, kind):
        raise ValueError(f"field {name} has an unexpected type {type(value).__name__}")
    return value


@dataclass
class AuthzModel:
    """An authorization model with its identifier and creation time."""

    id: str | None = None
    created_at: datetime | None = None
    schema_version: str | None = None
    type_definitions: list[dict[str, Any]] | None = None
    conditions: dict[str, dict[str, Any]] | None = None

    def load(self, data: Mapping[str, Any]) -> None:
        """Take the fields of a decoded model object, deriving the creation time from its id."""
        _expect(data, Mapping, "model")
        model_id = _expect(data.get("id") or "", str, "id")
        schema_version = _expect(data.get("schema_version") or "", str, "schema_version")
        type_definitions = _expect(data.get("type_definitions") or [], list, "type_definitions")
        conditions = _expect(data.get("conditions") or {}, Mapping, "conditions")

        self.id = model_id
        self.schema_version = schema_version
        self.type_definitions = list(type_definitions)

        if model_id:
            try:
                self.created_at = created_at_from_model_id(model_id)
            except ValueError:
                pass

        if conditions:
            self.conditions = dict(conditions)

    def read_from_json_string(self, json_string: str) -> None:
        """Load the model from its JSON text."""
        try:
            data = json.loads(json_string)
            if not isinstance(data, dict):
                raise ValueError("expected a JSON object")
            self.load(data)
        except ValueError as exc:
            raise ValueError(f"failed to parse input as json due to {exc}") from exc

    def resolve_created_at(self) -> datetime | None:
        """Return the creation time, deriving and storing it from the id when unset."""
        if self.created_at is not None:
            return self.created_at
        if self.id is not None:
            try:
                self.created_at = created_at_from_model_id(self.id)
            except ValueError:
                self.created_at = None
            return self.created_at
        return None

    def to_dict(self) -> dict[str, Any]:
        """Return the model as a JSON-ready dict, leaving out unset fields."""
        data: dict[str, Any] = {}
        if self.id is not None:
            data["id"] = self.id
        if self.created_at is not None:
            data["created_at"] = _format_time(self.created_at)
        if self.schema_version is not None:
            data["schema_version"] = self.schema_version
        if self.type_definitions is not None:
            data["type_definitions"] = self.type_definitions
        if self.conditions:
            data["conditions"] = self.conditions
        return data

    def to_json_string(self) -> str:
        """Return the model as compact JSON text."""
        try:
            return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"failed to marshal due to {exc}") from exc

    def display_as_json(self, fields: Iterable[str] | None) -> AuthzModel:
        """Return a copy holding only the chosen parts: ``id``, ``created_at`` and ``model``."""
        chosen = list(fields or []) or ["model"]
        shown = AuthzModel()
        if "id" in chosen:
            shown.id = self.id
        if "created_at" in chosen:
            shown.created_at = self.created_at
        if "model" in chosen:
            shown.schema_version = self.schema_version
            shown.type_definitions = self.type_definitions
            shown.conditions = self.conditions
        return shown


@dataclass
class ModelInput:
    """A model given on input, its format, and the store name it implies."""

    input: str = ""
    format: ModelFormat = ModelFormat.DEFAULT
    store_name: str = field(default="")


def _read_text(file_name: str) -> str:
    try:
        with open(file_name, encoding="utf-8") as handle:
            return handle.read()
    except OSError as exc:
        raise OSError(
            exc.errno if exc.errno is not None else errno.EIO,
            f"failed to read file {file_name} due to {exc.strerror or exc}",
            file_name,
        ) from exc


def _extension(file_name: str) -> str:
    dot = file_name.rfind(".")
    if dot > file_name.rfind("/"):
        return file_name[dot:]
    return ""


def read_from_file(
    file_name: str,
    format: ModelFormat = ModelFormat.DEFAULT,
    store_name: str = "",
) -> ModelInput:
    """Read a model file, inferring its format from the name when not given.

    For a modular model the input is the path of its ``fga.mod`` file.
    Without a store name, the file's base name without extension is used.
    """
    text = _read_text(file_name)
    model_format = ModelFormat(format)

    if model_format is ModelFormat.DEFAULT:
        if file_name.endswith("fga.mod"):
            model_format = ModelFormat.MODULAR
            text = file_name
        elif file_name.endswith("json"):
            model_format = ModelFormat.JSON
        else:
            model_format = ModelFormat.FGA
    elif model_format is ModelFormat.MODULAR:
        text = file_name

    if not store_name:
        base = posixpath.basename(file_name.rstrip("/")) or file_name
        extension = _extension(file_name)
        store_name = base[: -len(extension)] if extension and base.endswith(extension) else base

    return ModelInput(input=text, format=model_format, store_name=store_name)


def read_from_input_file_or_arg(
    file_name: str,
    args: Sequence[str],
    is_optional: bool,
    format: ModelFormat = ModelFormat.DEFAULT,
) -> ModelInput:
    """Take the model from a file if one is named, else from the first argument.

    An argument of ``-`` counts as no argument.  When neither is given and
    the model is required, ``ModelInputMissingError`` is raised.
    """
    model_format = ModelFormat(format)
    if file_name:
        return read_from_file(file_name, model_format, "")
    if args and args[0] != "-":
        if model_format is ModelFormat.DEFAULT:
            model_format = ModelFormat.FGA
        return ModelInput(input=args[0], format=model_format)
    if not is_optional:
        raise ModelInputMissingError()
    return ModelInput(format=model_format)


def read_from_input_file(
    file_name: str, format: ModelFormat = ModelFormat.DEFAULT
) -> tuple[str, ModelFormat]:
    """Read a model file and return its text with the format, inferred if not given."""
    text = _read_text(file_name)
    model_format = ModelFormat(format)
    if model_format is ModelFormat.DEFAULT:
        model_format = ModelFormat.JSON if file_name.endswith("json") else ModelFormat.FGA
    return text, model_format