"""Results of running model tests, and their human-readable summaries."""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from fgakit.comparison import string_lists_equal
from fgakit.conversion import FgaObject
from fgakit.tuples import TupleKey

NO_VALUE_STRING = "N/A"
_FAIL_MARK = "ⅹ"
_SUMMARY_HEADER = "# Test Summary #"
_RESULT_SEPARATOR = "\n---\n"


def _format_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    text = repr(value)
    if "e" in text:
        mantissa, exponent = text.split("e")
        sign = "-" if exponent.startswith("-") else "+"
        digits = exponent.lstrip("+-").rjust(2, "0")
        text = f"{mantissa}e{sign}{digits}"
    return text


def _format_value(value: Any) -> str:
    """Format a decoded JSON value the way a plain ``%v`` verb shows it."""
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, Mapping):
        items = " ".join(
            f"{_format_value(key)}:{_format_value(value[key])}"
            for key in sorted(value, key=str)
        )
        return f"map[{items}]"
    if isinstance(value, (list, tuple)):
        return "[" + " ".join(_format_value(item) for item in value) + "]"
    return str(value)


def _format_strings(values: Sequence[str] | None) -> str:
    return "[" + " ".join(values or []) + "]"


def _format_context(context: Mapping[str, Any]) -> str:
    return "&" + _format_value(context)


@dataclass
class UserTypeFilter:
    """Restricts a list-users query to users of a type, or usersets of a relation."""

    type: str
    relation: str | None = None

    def __str__(self) -> str:
        relation = self.relation if self.relation is not None else "<nil>"
        return f"{{Type:{self.type} Relation:{relation}}}"


@dataclass
class ListUsersAssertion:
    """The users a list-users query is expected to (or did) return."""

    users: list[str] | None = None

    def __str__(self) -> str:
        return f"{{Users:{_format_strings(self.users)}}}"


@dataclass
class CheckRequest:
    """A check query: does ``user`` hold ``relation`` on ``object``?"""

    user: str
    relation: str
    object: str
    context: dict[str, Any] | None = None
    contextual_tuples: list[TupleKey] = field(default_factory=list)


@dataclass
class ListObjectsRequest:
    """A list-objects query: which objects of ``type`` does ``user`` hold ``relation`` on?"""

    user: str
    relation: str
    type: str
    context: dict[str, Any] | None = None
    contextual_tuples: list[TupleKey] = field(default_factory=list)


@dataclass
class ListUsersRequest:
    """A list-users query: which users hold ``relation`` on ``object``?"""

    object: FgaObject
    relation: str
    user_filters: list[UserTypeFilter] = field(default_factory=list)
    context: dict[str, Any] | None = None
    contextual_tuples: list[TupleKey] = field(default_factory=list)


@dataclass
class CheckResult:
    """The outcome of one check assertion."""

    request: CheckRequest
    expected: bool
    got: bool | None = None
    error: BaseException | None = None
    test_result: bool = False

    def is_passing(self) -> bool:
        return self.error is None and self.got is not None and self.got == self.expected


@dataclass
class ListObjectsResult:
    """The outcome of one list-objects assertion."""

    request: ListObjectsRequest
    expected: list[str]
    got: list[str] | None = None
    error: BaseException | None = None
    test_result: bool = False

    def is_passing(self) -> bool:
        return (
            self.error is None
            and self.got is not None
            and string_lists_equal(self.got, self.expected or [])
        )


@dataclass
class ListUsersResult:
    """The outcome of one list-users assertion."""

    request: ListUsersRequest
    expected: ListUsersAssertion
    got: ListUsersAssertion = field(default_factory=ListUsersAssertion)
    error: BaseException | None = None
    test_result: bool = False

    def is_passing(self) -> bool:
        return self.error is None and string_lists_equal(
            self.got.users or [], self.expected.users or []
        )


def _check_failures(results: Sequence[CheckResult]) -> tuple[int, str]:
    failed = 0
    output = ""
    for result in results:
        if result.is_passing():
            continue
        failed += 1
        got = NO_VALUE_STRING if result.got is None else _format_value(result.got)
        request = result.request
        output += (
            f"\n{_FAIL_MARK} Check(user={request.user},relation={request.relation},"
            f"object={request.object}"
        )
        if request.context is not None:
            output += f", context:{_format_context(request.context)}"
        output += f"): expected={_format_value(result.expected)}, got={got}"
        if result.error is not None:
            output += f", error={result.error}"
    return failed, output


def _list_objects_failures(results: Sequence[ListObjectsResult]) -> tuple[int, str]:
    failed = 0
    output = ""
    for result in results:
        if result.is_passing():
            continue
        failed += 1
        got = NO_VALUE_STRING if result.got is None else _format_strings(result.got)
        request = result.request
        output += (
            f"\n{_FAIL_MARK} ListObjects(user={request.user},relation={request.relation},"
            f"type={request.type}"
        )
        if request.context is not None:
            output += f", context:{_format_context(request.context)}"
        output += f"): expected={_format_strings(result.expected)}, got={got}"
        if result.error is not None:
            output += f", error={result.error}"
    return failed, output


def _format_object(obj: FgaObject) -> str:
    return f"{{Type:{obj.type} Id:{obj.id}}}"


def _list_users_failures(results: Sequence[ListUsersResult]) -> tuple[int, str]:
    failed = 0
    output = ""
    for result in results:
        if result.is_passing():
            continue
        failed += 1
        got = NO_VALUE_STRING if result.got.users is None else str(result.got)
        request = result.request
        user_filter = str(request.user_filters[0]) if request.user_filters else "<nil>"
        output += (
            f"\n{_FAIL_MARK} ListUsers(object={_format_object(request.object)},"
            f"relation={request.relation},user_filter={user_filter}"
        )
        if request.context is not None:
            output += f", context:{_format_context(request.context)}"
        output += f"): expected={result.expected}, got={got}"
        if result.error is not None:
            output += f", error={result.error}"
    return failed, output


@dataclass
class TestResult:
    """The results of every assertion of one named test."""

    __test__ = False

    name: str
    description: str = ""
    check_results: list[CheckResult] = field(default_factory=list)
    list_objects_results: list[ListObjectsResult] = field(default_factory=list)
    list_users_results: list[ListUsersResult] = field(default_factory=list)

    def is_passing(self) -> bool:
        """Return whether every assertion of the test passed."""
        return (
            all(result.is_passing() for result in self.check_results)
            and all(result.is_passing() for result in self.list_objects_results)
            and all(result.is_passing() for result in self.list_users_results)
        )

    def friendly_failures_display(self) -> str:
        """Describe the failing assertions; empty when the test passes."""
        total_checks = len(self.check_results)
        total_list_objects = len(self.list_objects_results)
        total_list_users = len(self.list_users_results)

        failed_checks, checks_output = _check_failures(self.check_results)
        failed_list_objects, list_objects_output = _list_objects_failures(
            self.list_objects_results
        )
        failed_list_users, list_users_output = _list_users_failures(self.list_users_results)

        if failed_checks + failed_list_objects + failed_list_users == 0:
            return ""

        output = f"(FAILING) {self.name}: "
        if total_checks > 0:
            output += f"Checks ({total_checks - failed_checks}/{total_checks} passing)"
        if total_checks > 0 and total_list_objects > 0:
            output += " | "
        if total_list_objects > 0:
            output += (
                f"ListObjects ({total_list_objects - failed_list_objects}/"
                f"{total_list_objects} passing)"
            )
        if total_list_objects > 0 and total_list_users > 0:
            output += " | "
        if total_list_users > 0:
            output += (
                f"ListUsers({total_list_users - failed_list_users}/{total_list_users} passing)"
            )

        if failed_checks > 0:
            output += checks_output
        if failed_list_objects > 0:
            output += list_objects_output
        if failed_list_users > 0:
            output += list_users_output
        return output


@dataclass
class TestResults:
    """The results of a whole test suite."""

    __test__ = False

    results: list[TestResult] = field(default_factory=list)

    def is_passing(self) -> bool:
        """Return whether every test of the suite passed."""
        return all(result.is_passing() for result in self.results)

    def friendly_display(self) -> str:
        """Describe the failures, followed by a summary of passing counts."""
        failing = [result for result in self.results if not result.is_passing()]
        summary = _RESULT_SEPARATOR.join(
            result.friendly_failures_display() for result in failing
        )

        total_tests = len(self.results)
        if total_tests == 0:
            return summary

        checks = [r for result in self.results for r in result.check_results]
        list_objects = [r for result in self.results for r in result.list_objects_results]
        list_users = [r for result in self.results for r in result.list_users_results]

        def failed(items: Sequence[Any]) -> int:
            return sum(1 for item in items if not item.is_passing())

        if failing:
            summary += _RESULT_SEPARATOR
        summary += (
            f"{_SUMMARY_HEADER}\nTests {total_tests - len(failing)}/{total_tests} passing"
        )
        if checks:
            summary += f"\nChecks {len(checks) - failed(checks)}/{len(checks)} passing"
        if list_objects:
            summary += (
                f"\nListObjects {len(list_objects) - failed(list_objects)}/"
                f"{len(list_objects)} passing"
            )
        if list_users:
            summary += (
                f"\nListUsers {len(list_users) - failed(list_users)}/{len(list_users)} passing"
            )
        return summary

    def friendly_body(self) -> str:
        """Return the failure descriptions without the summary."""
        full_output = self.friendly_display()
        header_index = full_output.find(_SUMMARY_HEADER)
        if header_index == -1:
            return full_output
        return full_output[:header_index].strip()