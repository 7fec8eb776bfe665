import pytest

from fgakit.errors import ValidationError
from fgakit.modelformat import ModelFormat
from fgakit.storedata import (
    ModelTest,
    ModelTestCheck,
    StoreData,
    effective_objects,
    effective_users,
    read_store_file,
)
from fgakit.testresult import ListUsersAssertion, UserTypeFilter

TUPLES_1 = """[
  {"user": "user:jon", "relation": "viewer", "object": "document:doc1"},
  {"user": "user:sam", "relation": "editor", "object": "document:doc2"}
]"""

TUPLES_2 = """[
  {"user": "user:jon", "relation": "viewer", "object": "document:doc1"},
  {"user": "user:amy", "relation": "editor", "object": "document:doc3"}
]"""


@pytest.fixture
def tuple_dir(tmp_path):
    (tmp_path / "tuples1.json").write_text(TUPLES_1, encoding="utf-8")
    (tmp_path / "tuples2.json").write_text(TUPLES_2, encoding="utf-8")
    return tmp_path


@pytest.mark.parametrize(
    "store_data, expected",
    [
        (StoreData(), 0),
        (StoreData(tuple_file="tuples1.json"), 2),
        (StoreData(tuple_files=["tuples1.json", "tuples2.json"]), 4),
        (StoreData(tuple_file="tuples1.json", tuple_files=["tuples2.json"]), 4),
    ],
)
def test_load_tuples(tuple_dir, store_data, expected):
    store_data.load_tuples(str(tuple_dir))
    assert len(store_data.tuples) == expected


def test_load_tuples_test_level_file_error(tuple_dir):
    store_data = StoreData(
        tuple_file="tuples1.json",
        tests=[ModelTest(name="test1", tuple_file="invalid.json")],
    )
    with pytest.raises(ValueError) as excinfo:
        store_data.load_tuples(str(tuple_dir))
    assert str(excinfo.value).startswith("failed to process one or more tuple files")
    assert "invalid.json for test test1" in str(excinfo.value)


def test_load_tuples_keeps_inline_tuples_first(tuple_dir):
    store_data = StoreData.from_dict(
        {
            "tuples": [{"user": "user:zed", "relation": "owner", "object": "document:doc9"}],
            "tuple_file": "tuples1.json",
        }
    )
    store_data.load_tuples(str(tuple_dir))
    assert [t.user for t in store_data.tuples] == ["user:zed", "user:jon", "user:sam"]


def test_load_tuples_adds_test_level_tuples(tuple_dir):
    store_data = StoreData(tests=[ModelTest(name="t", tuple_file="tuples2.json")])
    store_data.load_tuples(str(tuple_dir))
    assert [t.object for t in store_data.tests[0].tuples] == ["document:doc1", "document:doc3"]
    assert store_data.tuples == []


def _store(**check):
    return StoreData(tests=[ModelTest(name="t1", check=[ModelTestCheck(**check)])])


@pytest.mark.parametrize(
    "check",
    [
        {"user": "user:1", "object": "doc:1", "assertions": {"read": True}},
        {"users": ["user:1", "user:2"], "object": "doc:1", "assertions": {"read": True}},
        {"user": "user:1", "objects": ["doc:1", "doc:2"], "assertions": {"read": True}},
    ],
)
def test_validate_accepts_valid(check):
    store_data = _store(**check)
    assert store_data.validate() is None
    assert effective_users(store_data.tests[0].check[0])


@pytest.mark.parametrize(
    "check, message",
    [
        (
            {"user": "user:1", "users": ["user:2"], "object": "doc:1", "assertions": {"read": True}},
            "cannot contain both 'user' and 'users'",
        ),
        (
            {"user": "user:1", "object": "doc:1", "objects": ["doc:2"], "assertions": {"read": True}},
            "cannot contain both 'object' and 'objects'",
        ),
        (
            {"user": "user:1", "assertions": {"read": True}},
            "must specify 'object' or 'objects'",
        ),
    ],
)
def test_validate_rejects_invalid(check, message):
    with pytest.raises(ValidationError) as excinfo:
        _store(**check).validate()
    text = str(excinfo.value)
    assert text.startswith("validation error - StoreFormat: ")
    assert f"test t1 check 0: {message}" in text


def test_validate_reports_every_problem():
    store_data = _store(assertions={"read": True})
    with pytest.raises(ValidationError) as excinfo:
        store_data.validate()
    assert "must specify 'user' or 'users'" in str(excinfo.value)
    assert "must specify 'object' or 'objects'" in str(excinfo.value)


def test_effective_users_and_objects():
    single = ModelTestCheck(user="user:anne", object="folder:product-2021")
    assert effective_users(single) == ["user:anne"]
    assert effective_objects(single) == ["folder:product-2021"]

    multiple = ModelTestCheck(
        user="user:anne",
        users=["user:anne", "user:bob"],
        objects=["folder:product-2021", "folder:product-2022"],
    )
    assert effective_users(multiple) == ["user:anne", "user:bob"]
    assert effective_objects(multiple) == ["folder:product-2021", "folder:product-2022"]


def test_from_dict_rejects_unknown_fields():
    with pytest.raises(ValueError):
        StoreData.from_dict({"name": "s", "unexpected": 1})
    with pytest.raises(ValueError):
        StoreData.from_dict({"tests": [{"name": "t", "check": [{"usr": "user:1"}]}]})


def test_from_dict_parses_list_users():
    store_data = StoreData.from_dict(
        {
            "tests": [
                {
                    "name": "t",
                    "list_users": [
                        {
                            "object": "document:roadmap",
                            "user_filter": [{"type": "group", "relation": "member"}],
                            "assertions": {"viewer": {"users": ["group:fga#member"]}},
                        }
                    ],
                }
            ]
        }
    )
    list_users = store_data.tests[0].list_users[0]
    assert list_users.object == "document:roadmap"
    assert list_users.user_filter == [UserTypeFilter(type="group", relation="member")]
    assert list_users.assertions == {"viewer": ListUsersAssertion(users=["group:fga#member"])}


def test_load_model_from_fga_file(tmp_path):
    text = "model\n  schema 1.1\n\ntype user\n"
    (tmp_path / "model.fga").write_text(text, encoding="utf-8")
    store_data = StoreData(name="store", model_file="model.fga")
    assert store_data.load_model(str(tmp_path)) is ModelFormat.FGA
    assert store_data.model == text


def test_load_model_from_json_file(tmp_path):
    text = '{"schema_version":"1.1","type_definitions":[{"type":"user"}]}'
    (tmp_path / "model.json").write_text(text, encoding="utf-8")
    store_data = StoreData(model_file="model.json")
    assert store_data.load_model(str(tmp_path)) is ModelFormat.JSON
    assert store_data.model == text


def test_load_model_inline_model_wins(tmp_path):
    store_data = StoreData(model="type user", model_file="missing.fga")
    assert store_data.load_model(str(tmp_path)) is ModelFormat.DEFAULT
    assert store_data.model == "type user"


def test_load_model_modular_uses_path(tmp_path):
    (tmp_path / "fga.mod").write_text("schema: '1.2'\ncontents: []\n", encoding="utf-8")
    store_data = StoreData(model_file="fga.mod")
    assert store_data.load_model(str(tmp_path)) is ModelFormat.MODULAR
    assert store_data.model.endswith("fga.mod")


def test_read_store_file(tuple_dir):
    (tuple_dir / "model.fga").write_text("model\n  schema 1.1\ntype user\n", encoding="utf-8")
    store_file = tuple_dir / "store.fga.yaml"
    store_file.write_text(
        "name: demo\n"
        "model_file: model.fga\n"
        "tuple_file: tuples1.json\n"
        "tests:\n"
        "  - name: viewers\n"
        "    check:\n"
        "      - users: [user:jon, user:sam]\n"
        "        object: document:doc1\n"
        "        assertions:\n"
        "          viewer: true\n",
        encoding="utf-8",
    )
    model_format, store_data = read_store_file(str(store_file), str(tuple_dir))
    assert model_format is ModelFormat.FGA
    assert store_data.name == "demo"
    assert store_data.model.startswith("model")
    assert [t.user for t in store_data.tuples] == ["user:jon", "user:sam"]
    check = store_data.tests[0].check[0]
    assert check.users == ["user:jon", "user:sam"]
    assert check.assertions == {"viewer": True}


def test_read_store_file_validation_failure(tmp_path):
    store_file = tmp_path / "store.yaml"
    store_file.write_text(
        "name: demo\ntests:\n  - name: t\n    check:\n      - object: doc:1\n",
        encoding="utf-8",
    )
    with pytest.raises(ValidationError):
        read_store_file(str(store_file), str(tmp_path))


def test_read_store_file_errors(tmp_path):
    with pytest.raises(OSError):
        read_store_file(str(tmp_path / "absent.yaml"), str(tmp_path))

    empty = tmp_path / "empty.yaml"
    empty.write_text("", encoding="utf-8")
    with pytest.raises(ValueError) as excinfo:
        read_store_file(str(empty), str(tmp_path))
    assert str(excinfo.value).startswith(f"failed to unmarshal file {empty}")