"""Running model tests against a live store through a client."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from fgakit.conversion import User, parse_store_object, users_to_strings
from fgakit.storedata import (
    ModelTest,
    ModelTestCheck,
    ModelTestListObjects,
    ModelTestListUsers,
    effective_objects,
    effective_users,
)
from fgakit.testresult import (
    CheckRequest,
    CheckResult,
    ListObjectsRequest,
    ListObjectsResult,
    ListUsersAssertion,
    ListUsersRequest,
    ListUsersResult,
    TestResult,
)
from fgakit.tuples import TupleKey


class FgaClient(Protocol):
    """The queries a store client must answer to run tests remotely."""

    def check(self, request: CheckRequest) -> bool | None:
        """Return whether the request's user holds the relation on the object."""

    def list_objects(self, request: ListObjectsRequest) -> list[str] | None:
        """Return the objects the request's user holds the relation on."""

    def list_users(self, request: ListUsersRequest) -> list[User] | None:
        """Return the users holding the request's relation on the object."""


def run_single_remote_check_test(
    client: FgaClient, request: CheckRequest, expectation: bool
) -> CheckResult:
    """Run one check and compare it with the expectation; failures are recorded."""
    result = CheckResult(request=request, expected=expectation)
    try:
        allowed = client.check(request)
    except Exception as exc:  # noqa: BLE001 - the failure is part of the result
        result.error = exc
        return result
    if allowed is not None:
        result.got = bool(allowed)
        result.test_result = result.is_passing()
    return result


def run_remote_check_test(
    client: FgaClient, check_test: ModelTestCheck, tuples: Sequence[TupleKey]
) -> list[CheckResult]:
    """Run a check assertion for every user, object and relation it names."""
    return [
        run_single_remote_check_test(
            client,
            CheckRequest(
                user=user,
                relation=relation,
                object=obj,
                context=check_test.context,
                contextual_tuples=list(tuples),
            ),
            expectation,
        )
        for user in effective_users(check_test)
        for obj in effective_objects(check_test)
        for relation, expectation in check_test.assertions.items()
    ]


def run_single_remote_list_objects_test(
    client: FgaClient, request: ListObjectsRequest, expectation: list[str]
) -> ListObjectsResult:
    """Run one list-objects query and compare it with the expectation."""
    result = ListObjectsResult(request=request, expected=expectation)
    try:
        objects = client.list_objects(request)
    except Exception as exc:  # noqa: BLE001 - the failure is part of the result
        result.error = exc
        return result
    if objects is not None:
        result.got = list(objects)
        result.test_result = result.is_passing()
    return result


def run_remote_list_objects_test(
    client: FgaClient, list_objects_test: ModelTestListObjects, tuples: Sequence[TupleKey]
) -> list[ListObjectsResult]:
    """Run a list-objects assertion for every relation it names."""
    return [
        run_single_remote_list_objects_test(
            client,
            ListObjectsRequest(
                user=list_objects_test.user,
                relation=relation,
                type=list_objects_test.type,
                context=list_objects_test.context,
                contextual_tuples=list(tuples),
            ),
            expectation,
        )
        for relation, expectation in list_objects_test.assertions.items()
    ]


def run_single_remote_list_users_test(
    client: FgaClient, request: ListUsersRequest, expectation: ListUsersAssertion
) -> ListUsersResult:
    """Run one list-users query and compare it with the expectation."""
    result = ListUsersResult(request=request, expected=expectation)
    try:
        users = client.list_users(request)
    except Exception as exc:  # noqa: BLE001 - the failure is part of the result
        result.error = exc
        return result
    if users is not None:
        result.got = ListUsersAssertion(users=users_to_strings(users))
        result.test_result = result.is_passing()
    return result


def run_remote_list_users_test(
    client: FgaClient, list_users_test: ModelTestListUsers, tuples: Sequence[TupleKey]
) -> list[ListUsersResult]:
    """Run a list-users assertion for every relation it names."""
    obj = parse_store_object(list_users_test.object)
    return [
        run_single_remote_list_users_test(
            client,
            ListUsersRequest(
                object=obj,
                relation=relation,
                user_filters=list(list_users_test.user_filter),
                context=list_users_test.context,
                contextual_tuples=list(tuples),
            ),
            expectation,
        )
        for relation, expectation in list_users_test.assertions.items()
    ]


def run_remote_test(
    client: FgaClient, test: ModelTest, tuples: Sequence[TupleKey]
) -> TestResult:
    """Run every assertion of a test against the store, with ``tuples`` as contextual tuples."""
    return TestResult(
        name=test.name,
        description=test.description,
        check_results=[
            result
            for check in test.check
            for result in run_remote_check_test(client, check, tuples)
        ],
        list_objects_results=[
            result
            for list_objects in test.list_objects
            for result in run_remote_list_objects_test(client, list_objects, tuples)
        ],
        list_users_results=[
            result
            for list_users in test.list_users
            for result in run_remote_list_users_test(client, list_users, tuples)
        ],
    )