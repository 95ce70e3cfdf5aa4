"""
Tests for column name sanitization, attribute maps and marker field names.
"""

import pytest

from py_frame.naming import _build_column_map, _field_name, _sanitize_user_name, _uniquify, _unique_marker_name


@pytest.mark.parametrize("name,expected", [
    ("First Name", "first_name"),
    ("  spaced  ", "spaced"),
    ("a--b", "a_b"),
    ("2024 total", "c2024_total"),
    ("___", None),
    ("", None),
    (42, "c42"),
])
def test_sanitize_user_name(name, expected):
    assert _sanitize_user_name(name) == expected


def test_uniquify():
    assert _uniquify("a", set()) == "a"
    assert _uniquify("a", {"a"}) == "a__2"
    assert _uniquify("a", {"a", "a__2"}) == "a__3"


def test_column_map_positions():
    """Sanitized names map to column positions; clashes get __2 suffixes."""
    column_map = _build_column_map(["Total", "total", "count"])
    assert column_map == {"total": 0, "total__2": 1, "count": 2}


def test_column_map_unnamed_columns():
    column_map = _build_column_map(["", "a", "!!!"])
    assert column_map == {"col0_": 0, "a": 1, "col2_": 2}


@pytest.mark.parametrize("column,expected", [
    ("age", "age"),
    ("firstName", "firstName"),
    ("first name", "first_name"),
    ("def", "def_"),
    ("9lives", "c9lives"),
    ("%", "_3"),
])
def test_field_name(column, expected):
    assert _field_name(column, 3, set()) == expected


def test_field_name_uniquified():
    used = {"a_b"}
    assert _field_name("a b", 0, used) == "a_b__2"


def test_unique_marker_name():
    assert _unique_marker_name("DataFrameType", set()) == "DataFrameType1"
    assert _unique_marker_name("DataFrameType", {"DataFrameType1", "DataFrameType2"}) == "DataFrameType3"
