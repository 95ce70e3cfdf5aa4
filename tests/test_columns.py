"""Column variants - value columns, column groups, frame columns, paths"""
import pytest

from py_frame import ColumnGroup, ColumnPath, Frame, FrameColumn, FrameSchema, ValueColumn, column_of, placeholder_column
from py_frame.errors import PyFrameIndexError, PyFrameTypeError, StructuralError
from py_frame.row import Row
from py_frame.schema import ColumnKind
from py_frame.typing import DataType


class TestColumnPath:
    def test_of(self):
        path = ColumnPath.of("name", "first")
        assert str(path) == "name.first"
        assert path.name == "first"
        assert path.depth == 2

    def test_single_string(self):
        assert ColumnPath("age") == ("age",)
        assert ColumnPath("age").depth == 1

    def test_parent_and_child(self):
        path = ColumnPath.of("a", "b")
        assert path.parent() == ColumnPath.of("a")
        assert path.child("c") == ColumnPath.of("a", "b", "c")
        assert isinstance(path.child("c"), ColumnPath)

    def test_concatenation(self):
        joined = ColumnPath.of("a") + ColumnPath.of("b", "c")
        assert isinstance(joined, ColumnPath)
        assert str(joined) == "a.b.c"

    def test_empty_path_has_placeholder_name(self):
        assert ColumnPath().name == ""


class TestValueColumn:
    """Typed leaf columns"""

    def test_inferred_type(self):
        age = ValueColumn.of("age", [15, 45])
        assert age.kind is ColumnKind.VALUE
        assert age.dtype == DataType(int)
        assert age.to_list() == [15, 45]

    def test_explicit_type_coerces(self):
        col = ValueColumn.of("x", [1, 2], float)
        assert col.dtype == DataType(float)
        assert all(type(v) is float for v in col)

    def test_explicit_type_rejects_values(self):
        with pytest.raises(PyFrameTypeError, match="'x'"):
            ValueColumn.of("x", [1.5], int)

    def test_nullable_override(self):
        with pytest.raises(PyFrameTypeError, match="non-nullable"):
            ValueColumn.of("x", [1, None], nullable=False)
        assert ValueColumn.of("x", [1, 2], nullable=True).dtype == DataType(int, True)

    def test_name_must_be_str(self):
        with pytest.raises(PyFrameTypeError):
            ValueColumn.of(3, [1])

    def test_nulls(self):
        col = ValueColumn.of("x", [1, None, 3, None])
        assert col.dtype.nullable
        assert col.has_nulls()
        assert col.count_nulls() == 2
        assert col.is_null(1)
        assert not col.is_null(-2)

    def test_distinct_and_contains(self):
        col = ValueColumn.of("tag", ["a", "b", "a"])
        assert col.distinct() == frozenset({"a", "b"})
        assert col.contains("b")
        assert "c" not in col

    def test_indexing(self):
        col = ValueColumn.of("x", [10, 20, 30])
        assert col[0] == 10
        assert col[-1] == 30
        with pytest.raises(PyFrameIndexError):
            col[3]
        with pytest.raises(PyFrameTypeError):
            col["0"]

    def test_slicing(self):
        col = ValueColumn.of("x", [10, 20, 30, 40])
        assert col[1:3].to_list() == [20, 30]
        assert col[::2].to_list() == [10, 30]
        assert col.slice(0, 4) is col
        assert col[:] is col

    def test_take(self):
        col = ValueColumn.of("x", [10, 20, 30])
        assert col.take([2, 0, -1]).to_list() == [30, 10, 30]
        with pytest.raises(PyFrameIndexError):
            col.take([5])

    def test_rename_shares_storage(self):
        col = ValueColumn.of("x", [1, 2])
        renamed = col.rename("y")
        assert renamed.name == "y"
        assert renamed.storage is col.storage
        assert col.name == "x"


class TestEquality:
    """Kind, name, type and values all take part"""

    def test_structural(self):
        assert ValueColumn.of("x", [1, 2]) == ValueColumn.of("x", [1, 2])
        assert hash(ValueColumn.of("x", [1, 2])) == hash(ValueColumn.of("x", [1, 2]))

    @pytest.mark.parametrize("other", [
        ValueColumn.of("y", [1, 2]),
        ValueColumn.of("x", [1, 3]),
        ValueColumn.of("x", [1, 2, 3]),
        ValueColumn.of("x", [1.0, 2.0]),
        ValueColumn.of("x", [1, 2], nullable=True),
    ])
    def test_differences(self, other):
        assert ValueColumn.of("x", [1, 2]) != other

    def test_coerced_values_compare_equal(self):
        assert ValueColumn.of("x", [1, 2], float) == ValueColumn.of("x", [1.0, 2.0])


@pytest.fixture
def names():
    return Frame.from_dict({"first": ["Alice", "Bob"], "last": ["Smith", "Jones"]})


class TestColumnGroup:
    """One nested row per outer row"""

    def test_rows(self, names):
        group = ColumnGroup("name", names)
        assert group.kind is ColumnKind.GROUP
        assert len(group) == 2
        assert isinstance(group[1], Row)
        assert group[1].first == "Bob"
        assert group.to_list() == [
            {"first": "Alice", "last": "Smith"},
            {"first": "Bob", "last": "Jones"},
        ]

    def test_nested_access(self, names):
        group = ColumnGroup("name", names)
        assert group.column_names() == ["first", "last"]
        assert group.get_column("last").to_list() == ["Smith", "Jones"]

    def test_length_mismatch(self, names):
        with pytest.raises(StructuralError, match="one per outer row"):
            ColumnGroup("name", names, rows_count=3)

    def test_needs_frame(self):
        with pytest.raises(PyFrameTypeError):
            ColumnGroup("name", {"first": ["Alice"]})

    def test_slice_and_take(self, names):
        group = ColumnGroup("name", names)
        assert group.slice(1).to_list() == [{"first": "Bob", "last": "Jones"}]
        assert group.take([1, 0])[0].first == "Bob"
        assert group.slice(0, 2) is group

    def test_column_schema(self, names):
        assert ColumnGroup("name", names).column_schema().schema == names.schema()


class TestFrameColumn:
    """Independently sized nested frames"""

    def test_none_becomes_empty_frame(self):
        col = FrameColumn("orders", [Frame.from_dict({"id": [1, 2]}), None])
        assert col[1].rows_count() == 0
        assert col.kind is ColumnKind.FRAME

    def test_rejects_other_cells(self):
        with pytest.raises(PyFrameTypeError, match="cells must be Frames"):
            FrameColumn("orders", [[1, 2]])

    def test_schema_is_intersection(self):
        col = FrameColumn("orders", [
            Frame.from_dict({"id": [1], "note": ["x"]}),
            Frame.from_dict({"id": [2, 3]}),
            Frame.empty(),
        ])
        assert col.schema == FrameSchema.build({"id": int})

    def test_explicit_schema(self):
        schema = FrameSchema.build({"id": int})
        col = FrameColumn("orders", [None], schema=schema)
        assert col.schema is schema
        assert col[0].schema() == schema

    def test_take_rederives_schema(self):
        col = FrameColumn("orders", [
            Frame.from_dict({"id": [1], "note": ["x"]}),
            Frame.from_dict({"id": [2]}),
        ])
        assert col.take([0]).schema == FrameSchema.build({"id": int, "note": str})

    def test_rename_keeps_schema(self):
        col = FrameColumn("orders", [Frame.from_dict({"id": [1]})])
        assert col.rename("items").schema == col.schema


class TestColumnOf:
    @pytest.mark.parametrize("values,kind", [
        ([1, 2], ColumnKind.VALUE),
        ([[1], [2, 3]], ColumnKind.VALUE),
        ([{"a": 1}, {"a": 2}], ColumnKind.GROUP),
        ([[{"a": 1}], [{"a": 2}, {"a": 3}]], ColumnKind.FRAME),
    ])
    def test_kind(self, values, kind):
        assert column_of("c", values).kind is kind

    def test_explicit_dtype_makes_value_column(self):
        col = column_of("c", [1, 2], dtype=float)
        assert col.dtype == DataType(float)

    def test_null_rows_in_group(self):
        col = column_of("name", [{"first": "Alice"}, None])
        assert col.kind is ColumnKind.GROUP
        assert col.to_list() == [{"first": "Alice"}, {"first": None}]


def test_placeholder_column():
    placeholder = placeholder_column()
    assert placeholder.is_placeholder
    assert placeholder.name == ""
    assert len(placeholder) == 0
    assert placeholder.dtype == DataType(object, True)
