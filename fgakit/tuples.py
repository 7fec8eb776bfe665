"""Relationship tuples, conditions and the parsing of their text forms."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from fgakit.errors import validation_error


@dataclass
class RelationshipCondition:
    """A named condition with its context, attached to a tuple."""

    name: str
    context: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name}
        if self.context is not None:
            data["context"] = self.context
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RelationshipCondition:
        if not isinstance(data, Mapping):
            raise ValueError("condition must be a JSON object")
        name = data.get("name", "")
        if not isinstance(name, str):
            raise ValueError("condition name must be a string")
        context = data.get("context")
        if context is not None and not isinstance(context, Mapping):
            raise ValueError("condition context must be a JSON object")
        return cls(name=name, context=dict(context) if context is not None else None)


@dataclass
class TupleKey:
    """A relationship tuple: a user holds a relation on an object."""

    user: str
    relation: str
    object: str
    condition: RelationshipCondition | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "user": self.user,
            "relation": self.relation,
            "object": self.object,
        }
        if self.condition is not None:
            data["condition"] = self.condition.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TupleKey:
        if not isinstance(data, Mapping):
            raise ValueError("tuple must be an object")
        condition = data.get("condition")
        return cls(
            user=str(data.get("user") or ""),
            relation=str(data.get("relation") or ""),
            object=str(data.get("object") or ""),
            condition=RelationshipCondition.from_dict(condition) if condition is not None else None,
        )


def parse_query_context(context_string: str) -> dict[str, Any]:
    """Parse a JSON object given as text; an empty string gives an empty dict."""
    if not context_string:
        return {}
    parsed = json.loads(context_string)
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError("query context must be a JSON object")
    return parsed


def parse_tuple_condition_string(condition_string: str) -> RelationshipCondition:
    """Parse a condition of the form ``{"name": ..., "context": {...}}``."""
    if not condition_string:
        return RelationshipCondition(name="")
    parsed = json.loads(condition_string)
    if parsed is None:
        return RelationshipCondition(name="")
    return RelationshipCondition.from_dict(parsed)


def build_tuple_condition(
    condition_name: str, condition_context: str
) -> RelationshipCondition | None:
    """Build a condition from its name and JSON context; no name gives no condition."""
    if not condition_name:
        return None
    try:
        context = parse_query_context(condition_context)
    except ValueError as exc:
        raise ValueError(f"error parsing condition context: {exc}") from exc
    return RelationshipCondition(name=condition_name, context=context)


_CONTEXTUAL_TUPLE_FORMAT = (
    "Failed to parse contextual tuples, "
    'they must be of the format "user relation object" or "user relation object condition", '
    "where condition is a JSON string of the form { name, context }"
)


def parse_contextual_tuples(raw_tuples: Iterable[str]) -> list[TupleKey]:
    """Parse space-separated ``user relation object [condition]`` strings."""
    tuples: list[TupleKey] = []
    for raw in raw_tuples:
        parts = raw.split(" ")
        if len(parts) not in (3, 4):
            raise validation_error("parse_contextual_tuples", _CONTEXTUAL_TUPLE_FORMAT)

        condition = None
        if len(parts) == 4:
            try:
                condition = parse_tuple_condition_string(parts[3])
            except ValueError as exc:
                raise ValueError(f"failed to parse condition due to {exc}") from exc

        user, relation, obj = parts[:3]
        tuples.append(TupleKey(user=user, relation=relation, object=obj, condition=condition))
    return tuples