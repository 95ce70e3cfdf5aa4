"""
DataType system for py-frame value columns.

Pure metadata design:
  - DataType describes value-column semantics (Python class + nullable flag,
    plus an element type for list columns)
  - Promotion is functional (immutable DataType instances)
  - Numeric widening follows a fixed ladder over Python and numpy scalars:
        int8 -> int16 -> int32 / int -> int64 -> float64 / float
        float32 -> float64
  - Non-numeric mixes meet at their closest common public ancestor
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Type

import numpy as np


# Numeric ladder ranks
_BYTE, _SHORT, _INT, _LONG, _DOUBLE = range(5)

NUMERIC_RANKS = {
    np.int8: _BYTE,
    np.int16: _SHORT,
    np.int32: _INT,
    int: _INT,
    np.int64: _LONG,
    np.float64: _DOUBLE,
    float: _DOUBLE,
}

# float32 sits beside the integer ladder: lossless for byte/short, else double
_FLOAT32 = np.float32

# Class used when several classes share the winning rank
_CANONICAL = {
    _BYTE: np.int8,
    _SHORT: np.int16,
    _INT: int,
    _LONG: np.int64,
    _DOUBLE: float,
}


def is_numeric_class(kind) -> bool:
    """True for classes on the numeric widening ladder (bool is not numeric)."""
    return kind in NUMERIC_RANKS or kind is _FLOAT32


@dataclass(frozen=True)
class DataType:
    """
    Describes the semantic type of a value column.

    Attributes
    ----------
    kind : Type
        Python class (int, float, str, date, numpy.int64, list, etc.)
    nullable : bool
        Whether the column may contain None values
    element : DataType or None
        Element type when ``kind`` is ``list``

    Examples
    --------
    >>> DataType(int)
    <int>
    >>> DataType(int, nullable=True)
    <int nullable>
    >>> DataType(list, element=DataType(str))
    <list[str]>
    """

    kind: Type[Any]
    nullable: bool = False
    element: Optional["DataType"] = None

    def __repr__(self):
        if self.nullable:
            return f"<{self.type_name} nullable>"
        return f"<{self.type_name}>"

    @property
    def type_name(self) -> str:
        """Readable name of the kind, e.g. ``int``, ``numpy.int64``, ``list[str]``."""
        name = class_name(self.kind)
        if self.is_list and self.element is not None:
            inner = self.element.type_name + ("?" if self.element.nullable else "")
            return f"{name}[{inner}]"
        return name

    @property
    def is_numeric(self) -> bool:
        return is_numeric_class(self.kind)

    @property
    def is_list(self) -> bool:
        return self.kind is list

    @property
    def is_object(self) -> bool:
        return self.kind is object

    def with_nullable(self, nullable: bool = True) -> "DataType":
        if nullable == self.nullable:
            return self
        return DataType(self.kind, nullable, self.element)

    def is_subtype_of(self, other: "DataType") -> bool:
        """
        Ordinary subtyping: a non-null type is a subtype of its nullable
        counterpart, classes follow ``issubclass``, list types are covariant
        in their element type and ``object`` is the universal top type.
        """
        if self.nullable and not other.nullable:
            return False
        if other.kind is object:
            return True
        if self.is_list and other.is_list:
            if other.element is None:
                return True
            if self.element is None:
                return False
            return self.element.is_subtype_of(other.element)
        try:
            return issubclass(self.kind, other.kind)
        except TypeError:
            return False

    def to_document(self) -> dict:
        doc = {"type": class_name(self.kind), "nullable": self.nullable}
        if self.is_list and self.element is not None:
            doc["element"] = self.element.to_document()
        return doc


def class_name(kind) -> str:
    """Builtins by bare name, everything else module-qualified."""
    module = getattr(kind, "__module__", "builtins")
    name = getattr(kind, "__qualname__", repr(kind))
    if module == "builtins":
        return name
    return f"{module}.{name}"


def widen_numeric(classes: Iterable[type]) -> type:
    """
    Narrowest numeric class on the widening ladder that holds all ``classes``.

    >>> widen_numeric([np.int32, np.int64])
    <class 'numpy.int64'>
    >>> widen_numeric([int, float])
    <class 'float'>
    """
    classes = set(classes)
    if not classes:
        raise ValueError("widen_numeric() needs at least one class")

    ranked = {c: NUMERIC_RANKS[c] for c in classes if c is not _FLOAT32}
    if _FLOAT32 in classes:
        if all(rank <= _SHORT for rank in ranked.values()):
            return _FLOAT32
        ranked = {c: r for c, r in ranked.items() if r == _DOUBLE}
        top = _DOUBLE
    else:
        top = max(ranked.values())

    at_top = [c for c, rank in ranked.items() if rank == top]
    if len(at_top) == 1:
        return at_top[0]
    return _CANONICAL[top]


def _public_ancestors(cls) -> set:
    return {c for c in cls.__mro__ if not c.__name__.startswith('_')}


def common_class(classes: Iterable[type]) -> type:
    """
    Closest common public ancestor of ``classes``.

    The public ancestors of every class are intersected; ancestors that are a
    superclass of another surviving ancestor are dropped, and of the remaining
    leaves the one with the most superclasses wins (ties by name). Falls back
    to ``object``.
    """
    distinct = set(classes)
    if not distinct:
        return object
    if len(distinct) == 1:
        (only,) = distinct
        if not only.__name__.startswith('_'):
            return only

    common = None
    for cls in distinct:
        ancestors = _public_ancestors(cls)
        common = ancestors if common is None else common & ancestors

    leaves = [
        c for c in common
        if not any(other is not c and issubclass(other, c) for other in common)
    ]
    if not leaves:
        return object
    leaves.sort(key=class_name)
    return max(leaves, key=lambda c: len(c.__mro__))


def common_kind(classes: Iterable[type]) -> type:
    """Numeric ladder if every class is on it, else the common ancestor."""
    distinct = set(classes)
    if distinct and all(is_numeric_class(c) for c in distinct):
        return widen_numeric(distinct)
    return common_class(distinct)


def common_type(dtypes: Iterable[DataType]) -> DataType:
    """
    Least common DataType of several value types.

    Lists unify element-wise; mixing list and non-list kinds gives ``object``.
    """
    dtypes = list(dtypes)
    if not dtypes:
        return DataType(object, nullable=True)
    nullable = any(d.nullable for d in dtypes)
    lists = [d for d in dtypes if d.is_list]
    if lists and len(lists) != len(dtypes):
        return DataType(object, nullable)
    if lists:
        elements = [d.element for d in lists if d.element is not None]
        element = common_type(elements) if elements else None
        return DataType(list, nullable, element)
    return DataType(common_kind(d.kind for d in dtypes), nullable)


def validate_scalar(value: Any, dtype: DataType) -> Any:
    """
    Validate (and possibly coerce) a scalar before storing it in a column.

    Parameters
    ----------
    value : Any
        Scalar to validate
    dtype : DataType
        Target dtype

    Returns
    -------
    Any
        Validated/coerced scalar

    Raises
    ------
    TypeError
        If value is incompatible with dtype
    """
    if value is None:
        if not dtype.nullable:
            raise TypeError(
                f"Cannot store None in non-nullable {dtype.type_name} column"
            )
        return None

    if dtype.kind is object:
        return value

    vtype = type(value)

    # Exact match or subclass
    if isinstance(value, dtype.kind) and not (vtype is bool and dtype.kind is not bool):
        return value

    # Numeric coercions along the widening ladder
    if dtype.is_numeric and is_numeric_class(vtype):
        if widen_numeric([vtype, dtype.kind]) is dtype.kind:
            return dtype.kind(value)

    raise TypeError(
        f"Incompatible value {value!r} for column<{dtype.type_name}>"
    )
