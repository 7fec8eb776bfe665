import pytest

from fgakit.conversion import (
    FgaObject,
    TypedWildcard,
    User,
    UsersetUser,
    parse_store_object,
    users_to_strings,
)


@pytest.mark.parametrize(
    ("user", "expected"),
    [
        (User(object=FgaObject(type="user", id="anne")), "user:anne"),
        (User(userset=UsersetUser(type="group", id="fga", relation="member")), "group:fga#member"),
        (User(wildcard=TypedWildcard(type="user")), "user:*"),
    ],
    ids=["User_Object", "User_Userset", "User_Wildcard"],
)
def test_users_to_strings(user, expected):
    assert users_to_strings([user]) == [expected]


@pytest.mark.parametrize(
    ("data", "expected"),
    [
        ({"object": {"type": "user", "id": "anne"}}, "user:anne"),
        ({"userset": {"type": "group", "id": "fga", "relation": "member"}}, "group:fga#member"),
        ({"wildcard": {"type": "user"}}, "user:*"),
    ],
)
def test_users_from_dicts(data, expected):
    assert users_to_strings([User.from_dict(data)]) == [expected]


def test_empty_user_is_skipped():
    users = [User(), User(object=FgaObject(type="user", id="anne"))]
    assert users_to_strings(users) == ["user:anne"]


def test_order_is_kept():
    users = [
        User(wildcard=TypedWildcard(type="user")),
        User(object=FgaObject(type="user", id="anne")),
    ]
    assert users_to_strings(users) == ["user:*", "user:anne"]


def test_from_dict_rejects_non_object():
    with pytest.raises(ValueError):
        User.from_dict(["user:anne"])


def test_from_dict_rejects_bad_field_type():
    with pytest.raises(ValueError):
        User.from_dict({"object": {"type": 1, "id": "anne"}})


def test_parse_store_object():
    assert parse_store_object("document:roadmap") == FgaObject(type="document", id="roadmap")


def test_parse_store_object_keeps_slashes():
    assert parse_store_object("repo:openfga/openfga") == FgaObject(type="repo", id="openfga/openfga")


def test_parse_store_object_without_separator():
    with pytest.raises(ValueError, match="type:id"):
        parse_store_object("document")