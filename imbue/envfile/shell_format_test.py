import shlex

import pytest

from imbue.envfile.data_types import EnvPair
from imbue.envfile.errors import InvalidKeyError
from imbue.envfile.shell_format import format_assignment_line
from imbue.envfile.shell_format import format_export_line
from imbue.envfile.shell_format import is_valid_env_key
from imbue.envfile.shell_format import validate_env_keys


@pytest.mark.parametrize("key", ["FOO", "_private", "a1", "DATABASE_URL", "x"])
def test_is_valid_env_key_accepts_identifiers(key: str) -> None:
    assert is_valid_env_key(key)


@pytest.mark.parametrize("key", ["", "1ABC", "FOO-BAR", "FOO.BAR", "FOO BAR", "ÄPFEL", "A$B"])
def test_is_valid_env_key_rejects_non_identifiers(key: str) -> None:
    assert not is_valid_env_key(key)


def test_validate_env_keys_raises_on_first_bad_key() -> None:
    pairs = [EnvPair(key="GOOD", value="1"), EnvPair(key="bad-key", value="2"), EnvPair(key="9x", value="3")]
    with pytest.raises(InvalidKeyError) as exc_info:
        validate_env_keys(pairs)
    assert exc_info.value.key == "bad-key"


def test_format_export_line_simple_value() -> None:
    assert format_export_line(EnvPair(key="FOO", value="bar")) == "export FOO=bar"


def test_format_export_line_quotes_special_characters() -> None:
    value = "it's $HOME and `cmd` with spaces"
    line = format_export_line(EnvPair(key="FOO", value=value))
    assert line.startswith("export FOO=")
    assert shlex.split(line.removeprefix("export FOO=")) == [value]


def test_format_export_line_empty_value() -> None:
    assert format_export_line(EnvPair(key="EMPTY", value="")) == "export EMPTY=''"


def test_format_export_line_rejects_invalid_key() -> None:
    with pytest.raises(InvalidKeyError):
        format_export_line(EnvPair(key="not-valid", value="x"))


def test_format_assignment_line_is_verbatim() -> None:
    assert format_assignment_line(EnvPair(key="Q", value="'quoted' value")) == "Q='quoted' value"
