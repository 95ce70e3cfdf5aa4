"""Selection DSL - combinators, resolution order, missing-column policies"""
import pytest

from py_frame import ColumnPath, Frame, MissingPolicy, ResolutionContext, ValueColumn, placeholder_column
from py_frame.errors import AmbiguousColumnError, ColumnNotFoundError, PyFrameTypeError
from py_frame.schema import ColumnKind
from py_frame.selection import (
    Col,
    Filter,
    Selector,
    Union,
    all_cols,
    col,
    cols_of_kind,
    distinct,
    frame_cols,
    group_cols,
    name_contains,
    name_starts_with,
    value_cols,
)
from py_frame.typing import DataType


@pytest.fixture
def frame():
    return Frame.from_records([
        {
            "id": 1,
            "name": {"first": "Alice", "last": "Smith", "meta": {"nick": "al"}},
            "orders": [{"sku": "x"}],
            "age": 15,
        },
        {
            "id": 2,
            "name": {"first": "Bob", "last": "Jones", "meta": {"nick": "bo"}},
            "orders": [],
            "age": 45,
        },
    ])


def paths(frame, selector, policy=None):
    return [str(r.path) for r in frame.resolve(selector, policy)]


class TestAll:
    def test_top_level_only(self, frame):
        assert paths(frame, all_cols()) == ["id", "name", "orders", "age"]

    def test_skips_placeholders(self):
        frame = Frame([placeholder_column()])
        assert paths(frame, all_cols()) == []
        frame = Frame.empty().add(ValueColumn.of("a", []))
        assert paths(frame, all_cols()) == ["a"]


class TestCol:
    def test_name(self, frame):
        (result,) = frame.resolve(col("age"))
        assert result.path == ColumnPath.of("age")
        assert result.name == "age"
        assert result.kind is ColumnKind.VALUE
        assert result.dtype == DataType(int)

    def test_path(self, frame):
        assert paths(frame, col("name", "meta", "nick")) == ["name.meta.nick"]

    def test_missing_carries_selector_and_path(self, frame):
        with pytest.raises(ColumnNotFoundError) as info:
            frame.resolve(col("missing"))
        assert info.value.selector == "col('missing')"
        assert info.value.path == ColumnPath.of("missing")

    def test_missing_policies(self, frame):
        assert frame.resolve(col("missing"), MissingPolicy.SKIP) == []
        (placeholder,) = frame.resolve(col("missing"), MissingPolicy.CREATE)
        assert placeholder.column.is_placeholder

    def test_selectors_compare_by_value(self):
        assert col("a") == col("a")
        assert col("a") == Col("a")
        assert col("a") != col("b")


class TestRecursive:
    """Depth-first pre-order through column groups, never into frame columns"""

    @pytest.mark.parametrize("include_groups,include_top_level,expected", [
        (True, True, ["id", "name", "name.first", "name.last", "name.meta", "name.meta.nick", "orders", "age"]),
        (False, True, ["id", "name.first", "name.last", "name.meta.nick", "orders", "age"]),
        (True, False, ["name.first", "name.last", "name.meta", "name.meta.nick"]),
        (False, False, ["name.first", "name.last", "name.meta.nick"]),
    ])
    def test_orderings(self, frame, include_groups, include_top_level, expected):
        selector = all_cols().recursively(include_groups, include_top_level)
        assert paths(frame, selector) == expected

    def test_from_single_column(self, frame):
        assert paths(frame, col("name").recursively()) == [
            "name", "name.first", "name.last", "name.meta", "name.meta.nick",
        ]

    def test_deterministic(self, frame):
        selector = all_cols().recursively()
        assert frame.resolve(selector) == frame.resolve(selector)

    def test_deep_nesting(self):
        record = {"leaf": 1}
        for _ in range(50):
            record = {"g": record}
        frame = Frame.from_records([record])
        results = frame.resolve(all_cols().recursively(include_groups=False))
        assert len(results) == 1
        assert results[0].path.depth == 51


class TestDive:
    def test_single_child(self, frame):
        assert paths(frame, col("name").dive(col("first"))) == ["name.first"]

    def test_multi_child(self, frame):
        assert paths(frame, col("name").dive(all_cols())) == ["name.first", "name.last", "name.meta"]

    def test_chained(self, frame):
        selector = col("name").dive(col("meta").dive(col("nick")))
        assert paths(frame, selector) == ["name.meta.nick"]
        assert frame.get_column(selector).to_list() == ["al", "bo"]

    def test_into_value_column(self, frame):
        with pytest.raises(ColumnNotFoundError, match="not a column group"):
            frame.resolve(col("age").dive(col("x")))
        assert frame.resolve(col("age").dive(col("x")), MissingPolicy.SKIP) == []

    def test_missing_parent(self, frame):
        selector = col("missing").dive(col("x"))
        assert frame.resolve(selector, MissingPolicy.SKIP) == []
        assert frame.get_column(selector, MissingPolicy.CREATE).is_placeholder

    def test_single_only_with_single_child(self):
        assert col("a").dive(col("b")).is_single
        assert not col("a").dive(all_cols()).is_single


class TestUnion:
    def test_concatenation_keeps_duplicates(self, frame):
        assert paths(frame, col("id") | col("age") | col("id")) == ["id", "age", "id"]

    def test_chain_is_flat(self):
        union = col("a") | col("b") | col("c")
        assert isinstance(union, Union)
        assert len(union.selectors) == 3

    def test_distinct_keeps_first(self, frame):
        selector = distinct(col("age"), all_cols())
        assert paths(frame, selector) == ["age", "id", "name", "orders"]


class TestFilter:
    @pytest.mark.parametrize("selector,expected", [
        (value_cols(), ["id", "age"]),
        (group_cols(), ["name"]),
        (frame_cols(), ["orders"]),
        (name_contains("a"), ["name", "age"]),
        (name_starts_with("o"), ["orders"]),
        (cols_of_kind(ColumnKind.VALUE, all_cols().recursively()),
         ["id", "name.first", "name.last", "name.meta.nick", "age"]),
    ])
    def test_helpers(self, frame, selector, expected):
        assert paths(frame, selector) == expected

    def test_predicate_sees_path(self, frame):
        selector = all_cols().recursively().filter(lambda c: c.path.depth == 2)
        assert paths(frame, selector) == ["name.first", "name.last", "name.meta"]

    def test_predicate_ignored_in_equality(self):
        assert Filter(col("a"), lambda c: True, "p") == Filter(col("a"), lambda c: False, "p")


class TestIndexed:
    @pytest.mark.parametrize("selector,expected", [
        (all_cols().first(), "id"),
        (all_cols().last(), "age"),
        (all_cols().at(1), "name"),
        (all_cols().at(-2), "orders"),
        (group_cols().single(), "name"),
    ])
    def test_modes(self, frame, selector, expected):
        assert paths(frame, selector) == [expected]

    def test_index_out_of_range(self, frame):
        with pytest.raises(ColumnNotFoundError, match="out of range"):
            frame.resolve(all_cols().at(10))

    def test_single_ambiguous(self, frame):
        with pytest.raises(AmbiguousColumnError, match="2 columns match: id, age"):
            frame.resolve(value_cols().single())

    def test_single_empty(self, frame):
        with pytest.raises(ColumnNotFoundError, match="exactly one"):
            frame.resolve(name_contains("zzz").single())

    def test_first_of_nothing(self, frame):
        with pytest.raises(ColumnNotFoundError):
            frame.resolve(name_contains("zzz").first())
        assert frame.resolve(name_contains("zzz").first(), MissingPolicy.SKIP) == []
        (placeholder,) = frame.resolve(name_contains("zzz").first(), MissingPolicy.CREATE)
        assert placeholder.column.is_placeholder

    def test_multi_selector_as_single(self, frame):
        """get_column on a multi-result selector requires exactly one match"""
        assert frame.get_column(frame_cols()).name == "orders"
        with pytest.raises(AmbiguousColumnError):
            frame.get_column(value_cols())


class TestDescribe:
    @pytest.mark.parametrize("selector,text", [
        (col("age"), "col('age')"),
        (col("name", "first"), "col('name', 'first')"),
        (col("name").dive(col("first")), "col('name').dive(col('first'))"),
        (value_cols().first(), "all().filter(kind == value).first()"),
        (all_cols().at(2), "all().at(2)"),
        (all_cols().recursively(include_groups=False), "all().recursively(include_groups=False)"),
        (col("a") | col("b"), "col('a') | col('b')"),
        (distinct(col("a"), col("b")), "distinct(col('a') | col('b'))"),
        (name_contains("x"), "all().filter(name contains 'x')"),
        (col("a").filter(lambda c: True, "always"), "col('a').filter(always)"),
    ])
    def test_describe(self, selector, text):
        assert selector.describe() == text
        assert repr(selector) == text


class TestResolutionContext:
    def test_default_policy(self, frame):
        assert ResolutionContext(frame).policy is MissingPolicy.FAIL

    def test_resolve_directly(self, frame):
        context = ResolutionContext(frame, MissingPolicy.SKIP)
        assert [r.name for r in col("age").resolve(context)] == ["age"]
        assert col("missing").resolve_single(context) is None

    def test_unknown_selector(self, frame):
        class Custom(Selector):
            def describe(self):
                return "custom()"

        with pytest.raises(PyFrameTypeError, match="Unsupported selector"):
            frame.resolve(Custom())

    def test_uncoercible_key(self, frame):
        with pytest.raises(PyFrameTypeError):
            frame.resolve(3)


def test_select_all_equals_original(frame):
    assert frame.select(all_cols()) == frame
    assert frame.select(all_cols().recursively(include_groups=False)) == frame
