"""
Tests for the lazy Row view (frame.row(i), iteration over a frame).
"""

import pytest

from py_frame import ColumnPath, Frame
from py_frame.errors import ColumnNotFoundError, PyFrameTypeError
from py_frame.row import Row


@pytest.fixture
def frame():
    return Frame.from_records([
        {"name": {"first": "Alice", "last": "Smith"}, "age": 15, "Home Town": "Oslo"},
        {"name": {"first": "Bob", "last": "Jones"}, "age": 45, "Home Town": "Bergen"},
    ])


def test_row_attribute_access(frame):
    """Sanitized names work as attributes."""
    row = frame.row(0)
    assert row.age == 15
    assert row.home_town == "Oslo"
    with pytest.raises(AttributeError):
        row.missing


def test_row_item_access(frame):
    row = frame.row(1)
    assert row["age"] == 45
    assert row[1] == 45
    assert row["Home Town"] == "Bergen"
    with pytest.raises(ColumnNotFoundError):
        row["missing"]
    with pytest.raises(PyFrameTypeError):
        row[1.5]


def test_group_cells_are_rows(frame):
    name = frame.row(0).name
    assert isinstance(name, Row)
    assert name.first == "Alice"
    assert frame.row(0)[ColumnPath.of("name", "last")] == "Smith"


def test_path_through_value(frame):
    with pytest.raises(ColumnNotFoundError):
        frame.row(0)[ColumnPath.of("age", "x")]


def test_get_default(frame):
    row = frame.row(0)
    assert row.get("age") == 15
    assert row.get("missing") is None
    assert row.get("missing", 0) == 0


def test_mapping_protocol(frame):
    row = frame.row(0)
    assert row.keys() == ["name", "age", "Home Town"]
    assert len(row) == 3
    assert "age" in row
    assert "missing" not in row
    assert dict(row.items())["age"] == 15


def test_to_dict_nests_groups(frame):
    assert frame.row(1).to_dict() == {
        "name": {"first": "Bob", "last": "Jones"},
        "age": 45,
        "Home Town": "Bergen",
    }


def test_equality(frame):
    assert frame.row(0) == frame.row(0)
    assert frame.row(0) != frame.row(1)
    assert frame.row(0) == {"name": {"first": "Alice", "last": "Smith"}, "age": 15, "Home Town": "Oslo"}


def test_rows_are_unhashable(frame):
    with pytest.raises(TypeError):
        hash(frame.row(0))


def test_reads_through_to_columns(frame):
    """A row copies nothing: its values come from the frame's columns."""
    row = frame.row(1)
    assert row.frame is frame
    assert list(row) == [frame.get_column("name")[1], 45, "Bergen"]


def test_repr():
    frame = Frame.from_dict({"name": ["Alice"], "age": [15]})
    assert repr(frame.row(0)) == "Row(0: name='Alice', age=15)"
