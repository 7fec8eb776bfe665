import pytest

from fgakit.errors import FgaCliError, InvalidFormatError
from fgakit.modelformat import ModelFormat, parse_model_format


@pytest.mark.parametrize(
    "text, expected",
    [("json", ModelFormat.JSON), ("fga", ModelFormat.FGA), ("modular", ModelFormat.MODULAR)],
)
def test_parse_valid_formats(text, expected):
    assert parse_model_format(text) is expected


@pytest.mark.parametrize("text", ["autodetect", "yaml", "", "JSON"])
def test_parse_invalid_formats(text):
    with pytest.raises(InvalidFormatError, match="must be one of"):
        parse_model_format(text)


def test_invalid_format_is_cli_error():
    with pytest.raises(FgaCliError):
        parse_model_format("xml")


def test_str_gives_value():
    default = ModelFormat("autodetect")
    assert default is ModelFormat.DEFAULT
    assert str(default) == "autodetect"
    assert str(parse_model_format("modular")) == "modular"


def test_parse_accepts_enum_member_round_trip():
    for member in (ModelFormat.JSON, ModelFormat.FGA, ModelFormat.MODULAR):
        assert parse_model_format(str(member)) is member
        assert parse_model_format(member) is member