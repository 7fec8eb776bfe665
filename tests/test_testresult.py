import pytest

from fgakit.conversion import FgaObject
from fgakit.testresult import (
    CheckRequest,
    CheckResult,
    ListObjectsRequest,
    ListObjectsResult,
    ListUsersAssertion,
    ListUsersRequest,
    ListUsersResult,
    TestResult as ModelTestResult,
    TestResults as ModelTestResults,
    UserTypeFilter,
)


def _check(expected, got, error=None, context=None):
    return CheckResult(
        request=CheckRequest(
            user="user:anne", relation="viewer", object="doc:1", context=context
        ),
        expected=expected,
        got=got,
        error=error,
    )


def _list_objects(expected, got, error=None):
    return ListObjectsResult(
        request=ListObjectsRequest(user="user:anne", relation="viewer", type="doc"),
        expected=expected,
        got=got,
        error=error,
    )


def _list_users(expected, got):
    return ListUsersResult(
        request=ListUsersRequest(
            object=FgaObject(type="document", id="roadmap"),
            relation="viewer",
            user_filters=[UserTypeFilter(type="user")],
        ),
        expected=ListUsersAssertion(users=expected),
        got=ListUsersAssertion(users=got),
    )


@pytest.mark.parametrize(
    ("expected", "got", "error", "passing"),
    [
        (True, True, None, True),
        (False, False, None, True),
        (True, False, None, False),
        (True, None, None, False),
        (True, True, RuntimeError("boom"), False),
    ],
)
def test_check_result_is_passing(expected, got, error, passing):
    assert _check(expected, got, error).is_passing() is passing


def test_list_objects_ignores_order():
    assert _list_objects(["doc:1", "doc:2"], ["doc:2", "doc:1"]).is_passing() is True


def test_list_objects_fails_without_result_or_with_error():
    assert _list_objects([], None).is_passing() is False
    assert _list_objects(["doc:1"], ["doc:1"], RuntimeError("x")).is_passing() is False
    assert _list_objects(["doc:1"], ["doc:1", "doc:2"]).is_passing() is False


def test_list_users_missing_got_equals_empty_expectation():
    assert _list_users([], None).is_passing() is True
    assert _list_users(["user:anne"], ["user:anne"]).is_passing() is True
    assert _list_users(["user:anne"], []).is_passing() is False


def test_passing_test_has_no_failure_display():
    result = ModelTestResult(name="t1", check_results=[_check(True, True)])
    assert result.is_passing() is True
    assert result.friendly_failures_display() == ""


def test_failing_check_display():
    result = ModelTestResult(name="t1", check_results=[_check(True, False)])
    assert result.is_passing() is False
    assert result.friendly_failures_display() == (
        "(FAILING) t1: Checks (0/1 passing)"
        "\nⅹ Check(user=user:anne,relation=viewer,object=doc:1): expected=true, got=false"
    )


def test_check_display_with_context_and_error():
    result = ModelTestResult(
        name="t1",
        check_results=[_check(True, None, RuntimeError("boom"), {"b": "x", "a": 1})],
    )
    text = result.friendly_failures_display()
    assert ", context:&map[a:1 b:x]" in text
    assert "expected=true, got=N/A, error=boom" in text


def test_list_objects_display():
    result = ModelTestResult(
        name="t1", list_objects_results=[_list_objects(["doc:1", "doc:2"], None)]
    )
    text = result.friendly_failures_display()
    assert text.startswith("(FAILING) t1: ListObjects (0/1 passing)")
    assert "ListObjects(user=user:anne,relation=viewer,type=doc)" in text
    assert text.endswith("expected=[doc:1 doc:2], got=N/A")


def test_list_users_display():
    result = ModelTestResult(
        name="t1",
        list_users_results=[_list_users(["user:anne"], []), _list_users([], [])],
    )
    text = result.friendly_failures_display()
    assert text.startswith("(FAILING) t1: ListUsers(1/2 passing)")
    assert "object={Type:document Id:roadmap}" in text
    assert "user_filter={Type:user Relation:<nil>}" in text
    assert "expected={Users:[user:anne]}, got={Users:[]}" in text


def test_checks_and_list_users_without_list_objects_have_no_separator():
    result = ModelTestResult(
        name="t1",
        check_results=[_check(True, False)],
        list_users_results=[_list_users([], [])],
    )
    text = result.friendly_failures_display()
    assert "passing)ListUsers(" in text
    assert " | " not in text


def test_separator_between_sections():
    result = ModelTestResult(
        name="t1",
        check_results=[_check(True, False)],
        list_objects_results=[_list_objects([], [])],
    )
    assert " | ListObjects (" in result.friendly_failures_display()


def test_summary_for_passing_suite():
    suite = ModelTestResults(
        results=[ModelTestResult(name="t1", check_results=[_check(True, True)])]
    )
    assert suite.is_passing() is True
    assert suite.friendly_display() == "# Test Summary #\nTests 1/1 passing\nChecks 1/1 passing"
    assert suite.friendly_body() == ""


def test_empty_suite_display_is_empty():
    suite = ModelTestResults()
    assert suite.is_passing() is True
    assert suite.friendly_display() == ""


def test_failing_suite_body_matches_failures():
    failing = ModelTestResult(name="bad", check_results=[_check(True, False)])
    passing = ModelTestResult(name="good", check_results=[_check(False, False)])
    suite = ModelTestResults(results=[failing, passing])
    assert suite.is_passing() is False
    display = suite.friendly_display()
    assert display.startswith(failing.friendly_failures_display() + "\n---\n# Test Summary #")
    assert "Tests 1/2 passing" in display
    assert suite.friendly_body() == failing.friendly_failures_display()
    assert "good" not in suite.friendly_body()


def test_summary_counts_list_sections():
    suite = ModelTestResults(
        results=[
            ModelTestResult(
                name="t1",
                list_objects_results=[_list_objects(["doc:1"], ["doc:1"])],
                list_users_results=[_list_users(["user:anne"], [])],
            )
        ]
    )
    display = suite.friendly_display()
    assert "\nListObjects 1/1 passing" in display
    assert "\nListUsers 0/1 passing" in display
    assert "\nChecks" not in display