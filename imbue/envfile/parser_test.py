"""Unit tests for env file parsing."""

from pathlib import Path

import pytest

from imbue.envfile.data_types import EnvPair
from imbue.envfile.parser import classify_line
from imbue.envfile.parser import get_value
from imbue.envfile.parser import lookup_pairs
from imbue.envfile.parser import parse_env_text
from imbue.envfile.parser import render_text
from imbue.envfile.primitives import LineKind


def test_classify_line_simple_assignment() -> None:
    line = classify_line("FOO=bar")
    assert line.kind == LineKind.ASSIGNMENT
    assert line.key == "FOO"
    assert line.value == "bar"


def test_classify_line_strips_key_on_both_sides_and_value_on_the_right_only() -> None:
    line = classify_line("  FOO  =  bar  ")
    assert line.key == "FOO"
    assert line.value == "  bar"
    assert line.raw == "  FOO  =  bar  "


def test_classify_line_splits_on_first_equals_only() -> None:
    line = classify_line("URL=postgres://db?opt=1&x=2")
    assert line.key == "URL"
    assert line.value == "postgres://db?opt=1&x=2"


def test_classify_line_keeps_quotes_verbatim() -> None:
    line = classify_line("GREETING=\"hello world\"")
    assert line.value == "\"hello world\""


def test_classify_line_allows_empty_value() -> None:
    line = classify_line("EMPTY=")
    assert line.kind == LineKind.ASSIGNMENT
    assert line.value == ""


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "   ",
        "# a comment",
        "   # indented comment with = sign",
        "not an assignment",
    ],
)
def test_classify_line_comments_and_malformed_lines(raw: str) -> None:
    line = classify_line(raw)
    assert line.kind == LineKind.COMMENT
    assert line.key is None
    assert line.value is None
    assert line.raw == raw


def test_parse_env_text_empty_text_has_no_lines() -> None:
    image = parse_env_text("")
    assert image.lines == ()
    assert render_text(image) == ""


def test_parse_env_text_records_trailing_newline() -> None:
    image = parse_env_text("A=1\nB=2\n")
    assert [line.raw for line in image.lines] == ["A=1", "B=2"]
    assert image.is_newline_terminated


def test_parse_env_text_without_trailing_newline() -> None:
    image = parse_env_text("A=1\nB=2")
    assert [line.raw for line in image.lines] == ["A=1", "B=2"]
    assert not image.is_newline_terminated


def test_parse_env_text_keeps_carriage_returns_in_raw() -> None:
    image = parse_env_text("A=1\r\nB=2\r\n")
    assert image.lines[0].raw == "A=1\r"
    # trailing whitespace, \r included, is not part of the value
    assert image.lines[0].value == "1"


def test_parse_env_text_keeps_path() -> None:
    image = parse_env_text("A=1\n", Path("/tmp/example.env"))
    assert image.path == Path("/tmp/example.env")


@pytest.mark.parametrize(
    "text",
    [
        "",
        "\n",
        "\n\n\n",
        "# hi\n  FOO=bar  \n",
        "A=1\nB=2",
        "A=1\r\n# c\r\n\r\n",
        "  indented = value with spaces   \n\tTAB=x\n",
        "garbage line\n=no key\nKEY==double\n",
    ],
)
def test_render_text_round_trips(text: str) -> None:
    assert render_text(parse_env_text(text)) == text


def test_get_value_from_example_file() -> None:
    image = parse_env_text("# hi\n  FOO=bar  \n")
    assert get_value(image, "FOO") == "bar"


def test_get_value_returns_first_match() -> None:
    image = parse_env_text("FOO=first\nFOO=second\n")
    assert get_value(image, "FOO") == "first"


def test_get_value_missing_key_returns_none() -> None:
    image = parse_env_text("# FOO=commented\nBAR=1\n")
    assert get_value(image, "FOO") is None


def test_lookup_pairs_all_keys_in_file_order() -> None:
    image = parse_env_text("B=2\n# comment\nA=1\n")
    assert lookup_pairs(image) == [EnvPair(key="B", value="2"), EnvPair(key="A", value="1")]


def test_lookup_pairs_filters_but_keeps_file_order() -> None:
    image = parse_env_text("A=1\nB=2\nC=3\n")
    assert lookup_pairs(image, ["C", "A"]) == [EnvPair(key="A", value="1"), EnvPair(key="C", value="3")]


def test_lookup_pairs_reports_duplicates() -> None:
    image = parse_env_text("A=1\nB=2\nA=3\n")
    assert lookup_pairs(image, ["A"]) == [EnvPair(key="A", value="1"), EnvPair(key="A", value="3")]


def test_lookup_pairs_no_match_is_empty() -> None:
    image = parse_env_text("A=1\n")
    assert lookup_pairs(image, ["MISSING"]) == []
