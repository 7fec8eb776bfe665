"""Store test files: a store's model, its tuples and the tests to run against it."""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

import yaml

from fgakit.errors import FgaCliError, validation_error
from fgakit.model import read_from_file
from fgakit.modelformat import ModelFormat
from fgakit.testresult import ListUsersAssertion, UserTypeFilter
from fgakit.tuplefile import read_tuple_file
from fgakit.tuples import TupleKey

USER_AND_USERS_CONFLICT = "cannot contain both 'user' and 'users'"
USER_REQUIRED = "must specify 'user' or 'users'"
OBJECT_AND_OBJECTS_CONFLICT = "cannot contain both 'object' and 'objects'"
OBJECT_REQUIRED = "must specify 'object' or 'objects'"
_FAILED_PROCESSING_TUPLE_FILES = "failed to process one or more tuple files"

_STORE_FIELDS = frozenset(
    {"name", "model", "model_file", "tuples", "tuple_file", "tuple_files", "tests"}
)
_TEST_FIELDS = frozenset(
    {"name", "description", "tuples", "tuple_file", "check", "list_objects", "list_users"}
)
_CHECK_FIELDS = frozenset({"user", "users", "object", "objects", "context", "assertions"})
_LIST_OBJECTS_FIELDS = frozenset({"user", "type", "context", "assertions"})
_LIST_USERS_FIELDS = frozenset({"object", "user_filter", "context", "assertions"})
_LIST_USERS_ASSERTION_FIELDS = frozenset({"users"})
_USER_FILTER_FIELDS = frozenset({"type", "relation"})
_TUPLE_FIELDS = frozenset({"user", "relation", "object", "condition"})
_CONDITION_FIELDS = frozenset({"name", "context"})


def _fields(data: Any, allowed: frozenset[str], where: str) -> Mapping[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ValueError(f"{where} must be a mapping")
    for key in data:
        if key not in allowed:
            raise ValueError(f"field {key} not found in {where}")
    return data


def _scalar_text(value: Any, name: str) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise ValueError(f"field {name} must be a string")


def _string(data: Mapping[str, Any], key: str) -> str:
    return _scalar_text(data.get(key), key)


def _sequence(data: Mapping[str, Any], key: str) -> list[Any]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"field {key} must be a list")
    return value


def _strings(data: Mapping[str, Any], key: str) -> list[str]:
    return [_scalar_text(item, key) for item in _sequence(data, key)]


def _context(data: Mapping[str, Any]) -> dict[str, Any] | None:
    value = data.get("context")
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise ValueError("field context must be a mapping")
    return dict(value)


def _assertion_map(data: Mapping[str, Any]) -> Mapping[str, Any]:
    value = data.get("assertions")
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError("field assertions must be a mapping")
    return value


def _tuple(data: Any) -> TupleKey:
    fields = _fields(data, _TUPLE_FIELDS, "tuple")
    _fields(fields.get("condition"), _CONDITION_FIELDS, "condition")
    return TupleKey.from_dict(fields)


def _tuples(data: Mapping[str, Any]) -> list[TupleKey]:
    return [_tuple(item) for item in _sequence(data, "tuples")]


@dataclass
class ModelTestCheck:
    """Check assertions for one or more users against one or more objects."""

    user: str = ""
    users: list[str] = field(default_factory=list)
    object: str = ""
    objects: list[str] = field(default_factory=list)
    context: dict[str, Any] | None = None
    assertions: dict[str, bool] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> ModelTestCheck:
        fields = _fields(data, _CHECK_FIELDS, "check")
        assertions: dict[str, bool] = {}
        for relation, expected in _assertion_map(fields).items():
            if not isinstance(expected, bool):
                raise ValueError(f"assertion {relation} must be a boolean")
            assertions[str(relation)] = expected
        return cls(
            user=_string(fields, "user"),
            users=_strings(fields, "users"),
            object=_string(fields, "object"),
            objects=_strings(fields, "objects"),
            context=_context(fields),
            assertions=assertions,
        )


@dataclass
class ModelTestListObjects:
    """List-objects assertions: the objects of a type a user holds each relation on."""

    user: str = ""
    type: str = ""
    context: dict[str, Any] | None = None
    assertions: dict[str, list[str]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> ModelTestListObjects:
        fields = _fields(data, _LIST_OBJECTS_FIELDS, "list_objects")
        assertions: dict[str, list[str]] = {}
        for relation, expected in _assertion_map(fields).items():
            if expected is None:
                expected = []
            if not isinstance(expected, list):
                raise ValueError(f"assertion {relation} must be a list")
            assertions[str(relation)] = [_scalar_text(item, str(relation)) for item in expected]
        return cls(
            user=_string(fields, "user"),
            type=_string(fields, "type"),
            context=_context(fields),
            assertions=assertions,
        )


@dataclass
class ModelTestListUsers:
    """List-users assertions: the users holding each relation on an object."""

    object: str = ""
    user_filter: list[UserTypeFilter] = field(default_factory=list)
    context: dict[str, Any] | None = None
    assertions: dict[str, ListUsersAssertion] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> ModelTestListUsers:
        fields = _fields(data, _LIST_USERS_FIELDS, "list_users")
        filters = []
        for item in _sequence(fields, "user_filter"):
            filter_fields = _fields(item, _USER_FILTER_FIELDS, "user_filter")
            relation = filter_fields.get("relation")
            filters.append(
                UserTypeFilter(
                    type=_string(filter_fields, "type"),
                    relation=_scalar_text(relation, "relation") if relation is not None else None,
                )
            )
        assertions: dict[str, ListUsersAssertion] = {}
        for relation, expected in _assertion_map(fields).items():
            expected_fields = _fields(expected, _LIST_USERS_ASSERTION_FIELDS, "assertion")
            users = expected_fields.get("users")
            assertions[str(relation)] = ListUsersAssertion(
                users=_strings(expected_fields, "users") if users is not None else None
            )
        return cls(
            object=_string(fields, "object"),
            user_filter=filters,
            context=_context(fields),
            assertions=assertions,
        )


@dataclass
class ModelTest:
    """A named test with its own tuples and its assertions."""

    __test__ = False

    name: str = ""
    description: str = ""
    tuples: list[TupleKey] = field(default_factory=list)
    tuple_file: str = ""
    check: list[ModelTestCheck] = field(default_factory=list)
    list_objects: list[ModelTestListObjects] = field(default_factory=list)
    list_users: list[ModelTestListUsers] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> ModelTest:
        fields = _fields(data, _TEST_FIELDS, "test")
        return cls(
            name=_string(fields, "name"),
            description=_string(fields, "description"),
            tuples=_tuples(fields),
            tuple_file=_string(fields, "tuple_file"),
            check=[ModelTestCheck.from_dict(item) for item in _sequence(fields, "check")],
            list_objects=[
                ModelTestListObjects.from_dict(item) for item in _sequence(fields, "list_objects")
            ],
            list_users=[
                ModelTestListUsers.from_dict(item) for item in _sequence(fields, "list_users")
            ],
        )


_TupleSink = Callable[[list[TupleKey]], None]


@dataclass
class StoreData:
    """A store test file: the model, the tuples and the tests."""

    name: str = ""
    model: str = ""
    model_file: str = ""
    tuples: list[TupleKey] = field(default_factory=list)
    tuple_file: str = ""
    tuple_files: list[str] = field(default_factory=list)
    tests: list[ModelTest] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> StoreData:
        """Build store data from a decoded document, rejecting unknown fields."""
        fields = _fields(data, _STORE_FIELDS, "store")
        return cls(
            name=_string(fields, "name"),
            model=_string(fields, "model"),
            model_file=_string(fields, "model_file"),
            tuples=_tuples(fields),
            tuple_file=_string(fields, "tuple_file"),
            tuple_files=_strings(fields, "tuple_files"),
            tests=[ModelTest.from_dict(item) for item in _sequence(fields, "tests")],
        )

    def load_model(self, base_path: str) -> ModelFormat:
        """Read the model from ``model_file`` unless a model is given inline."""
        if self.model or not self.model_file:
            return ModelFormat.DEFAULT
        model_input = read_from_file(
            os.path.join(base_path, self.model_file), ModelFormat.DEFAULT, self.name
        )
        if model_input.input:
            self.model = model_input.input
        return model_input.format

    def load_tuples(self, base_path: str) -> None:
        """Add the tuples of the store's and the tests' tuple files.

        Every file is tried; any failures are reported together afterwards.
        """
        errors: list[str] = []
        all_tuples: list[TupleKey] = list(self.tuples)

        if self.tuple_file:
            try:
                all_tuples.extend(read_tuple_file(os.path.join(base_path, self.tuple_file)))
            except (OSError, ValueError, FgaCliError) as exc:
                errors.append(
                    f"failed to process global tuple {self.tuple_file} file due to {exc}"
                )

        for file in self.tuple_files:
            try:
                all_tuples.extend(read_tuple_file(os.path.join(base_path, file)))
            except (OSError, ValueError, FgaCliError) as exc:
                errors.append(f"failed to process tuple file {file} due to {exc}")

        if all_tuples:
            self.tuples = all_tuples

        for test in self.tests:
            if not test.tuple_file:
                continue
            try:
                test.tuples.extend(read_tuple_file(os.path.join(base_path, test.tuple_file)))
            except (OSError, ValueError, FgaCliError) as exc:
                errors.append(
                    f"failed to process tuple file {test.tuple_file} "
                    f"for test {test.name} due to {exc}"
                )

        if errors:
            raise ValueError("\n".join([_FAILED_PROCESSING_TUPLE_FILES, *errors]))

    def validate(self) -> None:
        """Check that every check names a user or users, and an object or objects."""
        problems: list[str] = []
        for test in self.tests:
            for index, check in enumerate(test.check):
                prefix = f"test {test.name} check {index}: "
                if check.user and check.users:
                    problems.append(prefix + USER_AND_USERS_CONFLICT)
                elif not check.user and not check.users:
                    problems.append(prefix + USER_REQUIRED)

                if check.object and check.objects:
                    problems.append(prefix + OBJECT_AND_OBJECTS_CONFLICT)
                elif not check.object and not check.objects:
                    problems.append(prefix + OBJECT_REQUIRED)

        if problems:
            raise validation_error("StoreFormat", "\n".join(problems))


def effective_users(check: ModelTestCheck) -> list[str]:
    """Return the users a check runs for: ``users`` if given, else ``user``."""
    return list(check.users) if check.users else [check.user]


def effective_objects(check: ModelTestCheck) -> list[str]:
    """Return the objects a check runs for: ``objects`` if given, else ``object``."""
    return list(check.objects) if check.objects else [check.object]


def read_store_file(file_name: str, base_path: str) -> tuple[ModelFormat, StoreData]:
    """Read, load and validate a store test file.

    Files it refers to are resolved against ``base_path``.
    """
    try:
        with open(file_name, encoding="utf-8") as handle:
            text = handle.read()
    except OSError as exc:
        raise OSError(
            exc.errno, f"failed to read file {file_name} due to {exc.strerror or exc}", file_name
        ) from exc

    try:
        loaded = yaml.safe_load(text)
        if loaded is None:
            raise ValueError("EOF")
        store_data = StoreData.from_dict(loaded)
    except (yaml.YAMLError, ValueError) as exc:
        raise ValueError(f"failed to unmarshal file {file_name} due to {exc}") from exc

    model_format = store_data.load_model(base_path)
    store_data.load_tuples(base_path)
    store_data.validate()
    return model_format, store_data