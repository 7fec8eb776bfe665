"""Users and objects as returned by list-users queries, and their string forms."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class FgaObject:
    """An object identified by its type and id."""

    type: str
    id: str


@dataclass(frozen=True)
class UsersetUser:
    """The set of users holding ``relation`` on ``type:id``."""

    type: str
    id: str
    relation: str


@dataclass(frozen=True)
class TypedWildcard:
    """Every user of a type."""

    type: str


def _text(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key, "")
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {key} must be a string")
    return value


def _mapping(value: Any, name: str) -> Mapping[str, Any] | None:
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise ValueError(f"field {name} must be an object")
    return value


@dataclass
class User:
    """A user returned by a list-users query: an object, a userset or a wildcard."""

    object: FgaObject | None = None
    userset: UsersetUser | None = None
    wildcard: TypedWildcard | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> User:
        if not isinstance(data, Mapping):
            raise ValueError("user must be an object")
        obj = _mapping(data.get("object"), "object")
        userset = _mapping(data.get("userset"), "userset")
        wildcard = _mapping(data.get("wildcard"), "wildcard")
        return cls(
            object=FgaObject(_text(obj, "type"), _text(obj, "id")) if obj is not None else None,
            userset=(
                UsersetUser(_text(userset, "type"), _text(userset, "id"), _text(userset, "relation"))
                if userset is not None
                else None
            ),
            wildcard=TypedWildcard(_text(wildcard, "type")) if wildcard is not None else None,
        )


def parse_store_object(object_string: str) -> FgaObject:
    """Split ``type:id`` into an object."""
    parts = object_string.split(":")
    if len(parts) < 2:
        raise ValueError(f"invalid object {object_string!r}: expected the form type:id")
    return FgaObject(type=parts[0], id=parts[1])


def users_to_strings(users: Iterable[User]) -> list[str]:
    """Render users as ``type:id``, ``type:id#relation`` or ``type:*``; empty users are skipped."""
    rendered: list[str] = []
    for user in users:
        if user.object is not None:
            rendered.append(f"{user.object.type}:{user.object.id}")
        elif user.userset is not None:
            rendered.append(f"{user.userset.type}:{user.userset.id}#{user.userset.relation}")
        elif user.wildcard is not None:
            rendered.append(f"{user.wildcard.type}:*")
    return rendered