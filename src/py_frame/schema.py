"""
Structural schemas of frames and their comparison.

A ``FrameSchema`` maps column names to one of three column schemas:

    ValueColumnSchema(dtype)            leaf values of a DataType
    GroupColumnSchema(schema)           one nested row per outer row
    FrameColumnSchema(schema, nullable) one nested frame per outer row

Equality and hashing are structural and independent of column order. Two
schemas are compared with :func:`compare`, which answers whether the first
extends the second (SUPERTYPE: more columns and/or narrower types), is
extended by it (SUBTYPE), matches it (EQUAL) or neither (UNRELATED).
"""

from __future__ import annotations
from enum import Enum
import json
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping, Optional

from .errors import StructuralError
from .memo import Memo
from .typing import DataType, common_type


class ColumnKind(Enum):
    VALUE = "value"
    GROUP = "group"
    FRAME = "frame"


class ColumnSchema:
    """Schema of a single column. See the three concrete variants below."""

    __slots__ = ()

    kind: ColumnKind = None
    dtype: Optional[DataType] = None
    schema: Optional["FrameSchema"] = None
    nullable: bool = False

    def __eq__(self, other):
        if not isinstance(other, ColumnSchema):
            return NotImplemented
        return _structurally_equal(self, other)

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def to_document(self, name: str) -> dict:
        raise NotImplementedError

    def create_empty_column(self, name: str, rows_count: int = 0):
        """Column of this schema filled with nulls (or empty frames)."""
        raise NotImplementedError


class ValueColumnSchema(ColumnSchema):
    __slots__ = ("dtype",)

    kind = ColumnKind.VALUE

    def __init__(self, dtype: DataType):
        if not isinstance(dtype, DataType):
            dtype = DataType(dtype)
        self.dtype = dtype

    @property
    def nullable(self) -> bool:
        return self.dtype.nullable

    def __hash__(self):
        return hash((ColumnKind.VALUE, self.dtype))

    def __repr__(self):
        return repr(self.dtype)

    def to_document(self, name: str) -> dict:
        return {"name": name, "kind": self.kind.value, **self.dtype.to_document()}

    def create_empty_column(self, name: str, rows_count: int = 0):
        from .columns import ValueColumn
        if rows_count and not self.dtype.nullable:
            raise StructuralError(
                f"Cannot create a null-filled column '{name}' of non-nullable type {self.dtype!r}"
            )
        return ValueColumn.of(name, [None] * rows_count, dtype=self.dtype)


class GroupColumnSchema(ColumnSchema):
    __slots__ = ("schema",)

    kind = ColumnKind.GROUP

    def __init__(self, schema: "FrameSchema"):
        self.schema = schema

    def __hash__(self):
        return hash((ColumnKind.GROUP, self.schema))

    def __repr__(self):
        return repr(self.schema)

    def to_document(self, name: str) -> dict:
        return {"name": name, "kind": self.kind.value, "columns": self.schema.to_document()}

    def create_empty_column(self, name: str, rows_count: int = 0):
        from .columns import ColumnGroup
        return ColumnGroup(name, self.schema.create_empty_frame(rows_count))


class FrameColumnSchema(ColumnSchema):
    __slots__ = ("schema", "nullable")

    kind = ColumnKind.FRAME

    def __init__(self, schema: "FrameSchema", nullable: bool = False):
        self.schema = schema
        self.nullable = nullable

    def __hash__(self):
        return hash((ColumnKind.FRAME, self.schema, self.nullable))

    def __repr__(self):
        return f"[{self.schema!r}]" + (" nullable" if self.nullable else "")

    def to_document(self, name: str) -> dict:
        return {
            "name": name,
            "kind": self.kind.value,
            "nullable": self.nullable,
            "columns": self.schema.to_document(),
        }

    def create_empty_column(self, name: str, rows_count: int = 0):
        from .columns import FrameColumn
        empty = self.schema.create_empty_frame()
        return FrameColumn(name, [empty] * rows_count, schema=self.schema)


def _as_column_schema(value) -> ColumnSchema:
    if isinstance(value, ColumnSchema):
        return value
    if isinstance(value, FrameSchema):
        return GroupColumnSchema(value)
    if isinstance(value, Mapping):
        return GroupColumnSchema(FrameSchema.build(value))
    if isinstance(value, list) and len(value) == 1:
        return FrameColumnSchema(_as_column_schema(value[0]).schema)
    return ValueColumnSchema(value if isinstance(value, DataType) else DataType(value))


class FrameSchema:
    """
    Ordered, immutable mapping of column name to :class:`ColumnSchema`.

    Examples
    --------
    >>> s = FrameSchema.build({"name": str, "age": int})
    >>> s
    {name: <str>, age: <int>}
    >>> s == FrameSchema.build({"age": int, "name": str})
    True
    """

    __slots__ = ("_columns", "_hash")

    def __init__(self, columns: Mapping[str, ColumnSchema] | Iterable = ()):
        self._columns = dict(columns)
        for name, column in self._columns.items():
            if not isinstance(column, ColumnSchema):
                raise StructuralError(
                    f"Schema of column '{name}' must be a ColumnSchema, not {type(column).__name__}"
                )
        self._hash = Memo(self._compute_hash)

    @classmethod
    def build(cls, columns: Mapping[str, Any]) -> "FrameSchema":
        """
        Build a schema from a loose mapping. Values may be Python classes,
        DataTypes, ColumnSchemas, FrameSchemas / nested mappings (groups) or a
        one-element list holding a nested schema (frame column).
        """
        return cls((name, _as_column_schema(value)) for name, value in columns.items())

    @property
    def columns(self) -> Mapping[str, ColumnSchema]:
        return MappingProxyType(self._columns)

    def names(self) -> list[str]:
        return list(self._columns)

    def items(self):
        return self._columns.items()

    def get(self, name: str, default=None) -> Optional[ColumnSchema]:
        return self._columns.get(name, default)

    def __getitem__(self, name: str) -> ColumnSchema:
        return self._columns[name]

    def __contains__(self, name) -> bool:
        return name in self._columns

    def __iter__(self) -> Iterator[str]:
        return iter(self._columns)

    def __len__(self) -> int:
        return len(self._columns)

    def _compute_hash(self) -> int:
        return hash(frozenset((name, hash(col)) for name, col in self._columns.items()))

    def __hash__(self):
        if not self._hash.computed:
            _warm_hashes(self)
        return self._hash.get()

    def __eq__(self, other):
        if not isinstance(other, FrameSchema):
            return NotImplemented
        return _structurally_equal(self, other)

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __repr__(self):
        return "{" + ", ".join(f"{name}: {col!r}" for name, col in self._columns.items()) + "}"

    def compare(self, other: "FrameSchema") -> "CompareResult":
        return compare(self, other)

    def to_document(self) -> list[dict]:
        """Machine-readable description: one entry per column, nested schemas inline."""
        return [column.to_document(name) for name, column in self._columns.items()]

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_document(), indent=indent)

    def create_empty_frame(self, rows_count: int = 0):
        """
        Frame with this schema: empty, or ``rows_count`` rows of nulls and
        empty nested frames.
        """
        from .frame import Frame
        columns = [column.create_empty_column(name, rows_count) for name, column in self._columns.items()]
        return Frame(columns, rows_count=rows_count)


def _warm_hashes(root: FrameSchema) -> None:
    """Memoise nested schema hashes innermost first, so no hash recurses deeper than one level."""
    seen = set()
    stack = [(root, False)]
    while stack:
        schema, expanded = stack.pop()
        if expanded:
            schema._hash.get()
            continue
        if schema._hash.computed or id(schema) in seen:
            continue
        seen.add(id(schema))
        stack.append((schema, True))
        for column in schema._columns.values():
            if column.schema is not None:
                stack.append((column.schema, False))


def _structurally_equal(left, right) -> bool:
    """Structural equality over nested schemas using an explicit work stack."""
    stack = [(left, right)]
    while stack:
        a, b = stack.pop()
        if a is b:
            continue
        if isinstance(a, FrameSchema):
            if not isinstance(b, FrameSchema) or len(a) != len(b):
                return False
            if a._hash.computed and b._hash.computed and hash(a) != hash(b):
                return False
            for name, column in a._columns.items():
                other = b._columns.get(name)
                if other is None:
                    return False
                stack.append((column, other))
            continue
        if type(a) is not type(b):
            return False
        if isinstance(a, ValueColumnSchema):
            if a.dtype != b.dtype:
                return False
        elif isinstance(a, GroupColumnSchema):
            stack.append((a.schema, b.schema))
        elif isinstance(a, FrameColumnSchema):
            if a.nullable != b.nullable:
                return False
            stack.append((a.schema, b.schema))
        else:
            return False
    return True


class CompareResult(Enum):
    """
    Outcome of comparing schema ``a`` with schema ``b``.

    EQUAL is neutral when combining, repeating a state keeps it, and opposite
    biases (SUPERTYPE with SUBTYPE) collapse to the absorbing UNRELATED.
    """

    EQUAL = "equal"
    SUPERTYPE = "supertype"
    SUBTYPE = "subtype"
    UNRELATED = "unrelated"

    def combine(self, other: "CompareResult") -> "CompareResult":
        if self is CompareResult.EQUAL:
            return other
        if self is CompareResult.UNRELATED:
            return self
        if other is CompareResult.EQUAL or other is self:
            return self
        return CompareResult.UNRELATED

    def mirror(self) -> "CompareResult":
        if self is CompareResult.SUPERTYPE:
            return CompareResult.SUBTYPE
        if self is CompareResult.SUBTYPE:
            return CompareResult.SUPERTYPE
        return self

    def is_super_or_equal(self) -> bool:
        return self is CompareResult.EQUAL or self is CompareResult.SUPERTYPE


def compare_dtypes(a: DataType, b: DataType) -> CompareResult:
    if a == b:
        return CompareResult.EQUAL
    if a.is_subtype_of(b):
        return CompareResult.SUPERTYPE
    if b.is_subtype_of(a):
        return CompareResult.SUBTYPE
    return CompareResult.UNRELATED


def compare_columns(a: ColumnSchema, b: ColumnSchema) -> CompareResult:
    """Compare two column schemas; different kinds are unrelated."""
    return _fold_compare([(a, b)])


def compare(a: FrameSchema, b: FrameSchema) -> CompareResult:
    """
    Classify schema ``a`` against schema ``b``.

    A column only in ``a`` biases toward SUPERTYPE, a column only in ``b``
    toward SUBTYPE, shared columns compare recursively. ``compare(a, b)`` is
    always the mirror of ``compare(b, a)``.
    """
    return _fold_compare([(a, b)])


def _fold_compare(stack: list) -> CompareResult:
    # combine is order-independent, so nested pairs fold into one result
    result = CompareResult.EQUAL
    while stack:
        a, b = stack.pop()
        if a is b:
            continue
        if isinstance(a, FrameSchema):
            for name, column in a.items():
                other = b.get(name)
                if other is None:
                    result = result.combine(CompareResult.SUPERTYPE)
                else:
                    stack.append((column, other))
            for name in b:
                if name not in a:
                    result = result.combine(CompareResult.SUBTYPE)
        elif a.kind is not b.kind:
            return CompareResult.UNRELATED
        elif a.kind is ColumnKind.VALUE:
            result = result.combine(compare_dtypes(a.dtype, b.dtype))
        else:
            if a.kind is ColumnKind.FRAME and a.nullable != b.nullable:
                # the non-nullable side is the narrower one
                result = result.combine(CompareResult.SUBTYPE if a.nullable else CompareResult.SUPERTYPE)
            stack.append((a.schema, b.schema))
        if result is CompareResult.UNRELATED:
            return result
    return result


def extract_schema(frame) -> FrameSchema:
    """Schema of ``frame`` (memoised on the frame instance)."""
    return frame.schema()


def intersect_schemas(schemas: Iterable[FrameSchema]) -> FrameSchema:
    """
    Columns common to every schema, in the order of the first one.

    Value columns unify to their common type, groups and frames intersect
    recursively (empty nested frame schemas are ignored), and a name whose
    kinds differ between schemas becomes an ``object`` value column.
    """
    collected: dict[str, list[ColumnSchema]] | None = None
    for schema in schemas:
        if collected is None:
            collected = {name: [column] for name, column in schema.items()}
            continue
        for name in list(collected):
            other = schema.get(name)
            if other is None:
                del collected[name]
            else:
                collected[name].append(other)

    if not collected:
        return FrameSchema()

    result = {}
    for name, columns in collected.items():
        kinds = {c.kind for c in columns}
        if len(kinds) > 1:
            result[name] = ValueColumnSchema(DataType(object, any(c.nullable for c in columns)))
            continue
        kind = columns[0].kind
        if kind is ColumnKind.VALUE:
            result[name] = ValueColumnSchema(common_type(c.dtype for c in columns))
        elif kind is ColumnKind.GROUP:
            result[name] = GroupColumnSchema(intersect_schemas(c.schema for c in columns))
        else:
            nested = [c.schema for c in columns if len(c.schema)]
            result[name] = FrameColumnSchema(
                intersect_schemas(nested),
                nullable=any(c.nullable for c in columns),
            )
    return FrameSchema(result)
