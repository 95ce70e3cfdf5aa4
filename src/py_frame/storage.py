"""
Storage backends for value columns.

Pure Python implementation using array.array for numeric types,
with separate null masks for nullable dtypes. Storage is immutable: slicing
returns new storage, nothing is ever written in place.
"""

from __future__ import annotations
from array import array
from typing import Any, Protocol, Iterator
from collections.abc import Iterable

import numpy as np

from .memo import Memo


class Storage(Protocol):
    """Protocol for value-column storage backends."""

    def __len__(self) -> int:
        """Number of elements (including nulls)."""
        ...

    def __getitem__(self, i: int) -> Any:
        """Get element at index (returns None if null)."""
        ...

    def __iter__(self) -> Iterator[Any]:
        """Iterate over elements (yielding None for nulls)."""
        ...

    def slice(self, slc: slice) -> Storage:
        """Return a new Storage with sliced data."""
        ...

    def take(self, indices: Iterable[int]) -> Storage:
        """Return a new Storage with the elements at ``indices``."""
        ...

    def to_tuple(self) -> tuple:
        """Export to Python tuple (for compatibility/debug)."""
        ...

    def is_null(self, i: int) -> bool:
        """Check if element at index is null."""
        ...

    def contains(self, value: Any) -> bool:
        """Membership test against the cached distinct values."""
        ...


def _distinct(values: Iterable[Any]):
    """frozenset of values, or a tuple of first occurrences for unhashables."""
    values = list(values)
    try:
        return frozenset(values)
    except TypeError:
        pass
    out = []
    for x in values:
        if not any(x is y or x == y for y in out):
            out.append(x)
    return tuple(out)


class _DistinctMixin:
    """Lazily computed distinct-value set shared by all backends."""

    __slots__ = ()

    def _new_distinct_cell(self) -> Memo:
        return Memo(lambda: _distinct(self))

    def distinct_set(self):
        return self._distinct.get()

    def contains(self, value: Any) -> bool:
        distinct = self._distinct.get()
        try:
            return value in distinct
        except TypeError:
            # unhashable lookup against a frozenset of hashables
            return False


class ArrayStorage(_DistinctMixin):
    """
    Contiguous numeric storage using array.array + optional null mask.

    For numeric types (int, float, numpy sized scalars) and bool, with or
    without nulls. Elements come back as instances of the column's kind.
    """

    __slots__ = ('_data', '_mask', '_kind', '_box', '_distinct')

    # Map Python / numpy types to array.array typecodes
    _TYPECODE_MAP = {
        int: 'q',          # signed long long
        float: 'd',        # double
        bool: 'B',         # unsigned char (0/1)
        np.int8: 'b',
        np.int16: 'h',
        np.int32: 'i',
        np.int64: 'q',
        np.float32: 'f',
        np.float64: 'd',
    }

    def __init__(self, data: array, mask: array | None = None, kind: type = None):
        """
        Parameters
        ----------
        data : array.array
            Contiguous numeric data
        mask : array.array of 'B' or None
            Null mask (1 = null, 0 = valid), same length as data
        kind : type
            Class the elements are returned as
        """
        self._data = data
        self._mask = mask
        self._kind = kind
        # array.array already yields int/float; other kinds need boxing
        self._box = None if kind in (int, float, None) else kind
        self._distinct = self._new_distinct_cell()

    @classmethod
    def supports(cls, kind: type) -> bool:
        return kind in cls._TYPECODE_MAP

    @classmethod
    def from_iterable(cls, values: Iterable[Any], dtype_kind: type) -> ArrayStorage:
        """Create from Python iterable."""
        typecode = cls._TYPECODE_MAP.get(dtype_kind)
        if typecode is None:
            raise ValueError(f"Cannot use ArrayStorage for {dtype_kind}")

        data_list = []
        mask_list = []
        has_nulls = False

        for v in values:
            if v is None:
                has_nulls = True
                mask_list.append(1)
                data_list.append(0)  # sentinel value (ignored when masked)
            else:
                mask_list.append(0)
                data_list.append(v)

        data = array(typecode, data_list)
        mask = array('B', mask_list) if has_nulls else None

        return cls(data, mask, dtype_kind)

    @property
    def kind(self) -> type:
        return self._kind

    def __len__(self) -> int:
        return len(self._data)

    def __getitem__(self, i: int) -> Any:
        if self._mask and self._mask[i]:
            return None
        if self._box is None:
            return self._data[i]
        return self._box(self._data[i])

    def __iter__(self) -> Iterator[Any]:
        box = self._box
        if self._mask:
            for i in range(len(self._data)):
                yield None if self._mask[i] else (self._data[i] if box is None else box(self._data[i]))
        elif box is None:
            yield from self._data
        else:
            for x in self._data:
                yield box(x)

    def is_null(self, i: int) -> bool:
        return bool(self._mask and self._mask[i])

    def has_nulls(self) -> bool:
        return bool(self._mask) and any(self._mask)

    def slice(self, slc: slice) -> ArrayStorage:
        """Zero-copy slice (array.array creates new view)."""
        new_data = self._data[slc]
        new_mask = self._mask[slc] if self._mask else None
        return ArrayStorage(new_data, new_mask, self._kind)

    def take(self, indices: Iterable[int]) -> ArrayStorage:
        indices = list(indices)
        new_data = array(self._data.typecode, (self._data[i] for i in indices))
        new_mask = array('B', (self._mask[i] for i in indices)) if self._mask else None
        return ArrayStorage(new_data, new_mask, self._kind)

    def to_tuple(self) -> tuple:
        return tuple(self)


class TupleStorage(_DistinctMixin):
    """
    Python object storage using tuple.

    For non-numeric types (str, date, list, object) or mixed types.
    Nulls are stored as None inline.
    """

    __slots__ = ('_data', '_distinct')

    def __init__(self, data: tuple):
        self._data = data
        self._distinct = self._new_distinct_cell()

    @classmethod
    def from_iterable(cls, values: Iterable[Any]) -> TupleStorage:
        return cls(tuple(values))

    def __len__(self) -> int:
        return len(self._data)

    def __getitem__(self, i: int) -> Any:
        return self._data[i]

    def __iter__(self) -> Iterator[Any]:
        return iter(self._data)

    def is_null(self, i: int) -> bool:
        return self._data[i] is None

    def has_nulls(self) -> bool:
        return any(x is None for x in self._data)

    def slice(self, slc: slice) -> TupleStorage:
        return TupleStorage(self._data[slc])

    def take(self, indices: Iterable[int]) -> TupleStorage:
        data = self._data
        return TupleStorage(tuple(data[i] for i in indices))

    def to_tuple(self) -> tuple:
        return self._data


def choose_storage(values: Iterable[Any], dtype_kind: type) -> Storage:
    """
    Choose appropriate storage backend based on dtype.

    Parameters
    ----------
    values : Iterable[Any]
        Data to store
    dtype_kind : type
        Python type (int, float, str, etc.)

    Returns
    -------
    Storage
        Appropriate storage backend
    """
    values = values if isinstance(values, (list, tuple)) else tuple(values)

    # Try array.array for numeric types
    if ArrayStorage.supports(dtype_kind):
        try:
            return ArrayStorage.from_iterable(values, dtype_kind)
        except (ValueError, TypeError, OverflowError):
            pass

    # Fallback to tuple for everything else
    return TupleStorage.from_iterable(values)
