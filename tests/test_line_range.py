from __future__ import annotations

from hashref_service.app.hashref.line_range import expand_line_range, parse_line_range

TEXT = "one\ntwo\nthree\nfour\n"


def test_parse_line_range() -> None:
    assert parse_line_range("55-64") == (55, 64)
    assert parse_line_range(" 7 ") == (7, 7)
    assert parse_line_range("3 - 5") == (3, 5)
    assert parse_line_range("abc") is None
    assert parse_line_range("3-") is None


def test_expand_line_range_returns_joined_lines() -> None:
    assert expand_line_range("2-3", TEXT) == "two\nthree"
    assert expand_line_range("4", TEXT) == "four"


def test_expand_line_range_rejects_out_of_bounds_and_reversed() -> None:
    assert expand_line_range("3-9", TEXT) is None
    assert expand_line_range("0-1", TEXT) is None
    assert expand_line_range("3-2", TEXT) is None


def test_expand_line_range_ignores_literal_matches() -> None:
    assert expand_line_range("1-2", "x 1-2 y\nz\n") is None


def test_expand_line_range_ignores_plain_text() -> None:
    assert expand_line_range("print(x)", TEXT) is None
