"""
Column variants and column paths.

	ValueColumn   leaf values held in a Storage backend
	ColumnGroup   a nested Frame with exactly one row per outer row
	FrameColumn   one independently sized nested Frame per outer row

Columns are immutable: rename/slice/take return new wrappers that share the
underlying storage or frames.
"""

from __future__ import annotations
from typing import Any, Iterable, Iterator, Optional

from .config import PLACEHOLDER_NAME
from .errors import PyFrameIndexError, PyFrameTypeError, StructuralError
from .inference import infer_type, _as_mapping, _is_row
from .memo import Memo
from .schema import (
	ColumnKind,
	ColumnSchema,
	FrameColumnSchema,
	FrameSchema,
	GroupColumnSchema,
	ValueColumnSchema,
	intersect_schemas,
)
from .storage import Storage, TupleStorage, choose_storage
from .typing import DataType, validate_scalar


class ColumnPath(tuple):
	"""
	Ordered sequence of column names locating a column through nested groups.

	>>> p = ColumnPath.of("name", "first")
	>>> str(p), p.name, p.depth
	('name.first', 'first', 2)
	"""

	__slots__ = ()

	def __new__(cls, names: Iterable[str] = ()):
		if isinstance(names, str):
			names = (names,)
		return super().__new__(cls, names)

	@classmethod
	def of(cls, *names: str) -> "ColumnPath":
		return cls(names)

	@property
	def name(self) -> str:
		return self[-1] if self else PLACEHOLDER_NAME

	@property
	def depth(self) -> int:
		return len(self)

	def parent(self) -> "ColumnPath":
		return ColumnPath(self[:-1])

	def child(self, name: str) -> "ColumnPath":
		return ColumnPath(self + (name,))

	def __add__(self, other) -> "ColumnPath":
		return ColumnPath(tuple(self) + tuple(other))

	def __str__(self):
		return ".".join(self)

	def __repr__(self):
		return f"ColumnPath({', '.join(repr(n) for n in self)})"


class BaseColumn:
	"""Common protocol of the three column variants."""

	__slots__ = ('_name', '_hash')

	kind: ColumnKind = None

	def __init__(self, name: str):
		if not isinstance(name, str):
			raise PyFrameTypeError(f"Column name must be str, not {type(name).__name__}")
		self._name = name
		self._hash = Memo(self._compute_hash)

	@property
	def name(self) -> str:
		return self._name

	@property
	def is_placeholder(self) -> bool:
		return self._name == PLACEHOLDER_NAME

	@property
	def dtype(self) -> Optional[DataType]:
		return None

	def __len__(self) -> int:
		raise NotImplementedError

	def _get(self, i: int) -> Any:
		raise NotImplementedError

	def _check_index(self, i: int) -> int:
		n = len(self)
		if not -n <= i < n:
			raise PyFrameIndexError(f"Row index {i} out of range for column '{self._name}' of length {n}")
		return i + n if i < 0 else i

	def __getitem__(self, key):
		if isinstance(key, slice):
			start, stop, step = key.indices(len(self))
			if step != 1:
				return self.take(range(start, stop, step))
			return self.slice(start, stop)
		if isinstance(key, bool) or not isinstance(key, int):
			raise PyFrameTypeError(f"Column indices must be int or slice, not {type(key).__name__}")
		return self._get(self._check_index(key))

	def __iter__(self) -> Iterator[Any]:
		for i in range(len(self)):
			yield self._get(i)

	def to_list(self) -> list:
		"""Plain Python values: scalars, dicts for group rows, frames for frame cells."""
		return list(self)

	def rename(self, name: str) -> "BaseColumn":
		raise NotImplementedError

	def slice(self, start: int = 0, stop: Optional[int] = None) -> "BaseColumn":
		raise NotImplementedError

	def take(self, indices: Iterable[int]) -> "BaseColumn":
		raise NotImplementedError

	def column_schema(self) -> ColumnSchema:
		raise NotImplementedError

	def _bounds(self, start, stop):
		start, stop, _ = slice(start, stop).indices(len(self))
		return start, max(start, stop)

	def _checked_indices(self, indices) -> list:
		return [self._check_index(i) for i in indices]

	def _compute_hash(self) -> int:
		return hash((self.kind, self._name, len(self)))

	def __hash__(self):
		return self._hash.get()

	def __eq__(self, other):
		if not isinstance(other, BaseColumn):
			return NotImplemented
		if self is other:
			return True
		if self.kind is not other.kind or self._name != other._name or len(self) != len(other):
			return False
		if self.column_schema() != other.column_schema():
			return False
		return self._values_equal(other)

	def __ne__(self, other):
		result = self.__eq__(other)
		if result is NotImplemented:
			return result
		return not result

	def _values_equal(self, other) -> bool:
		return all(a == b for a, b in zip(self, other, strict=True))

	def __repr__(self):
		from .display import _repr_column
		return _repr_column(self)


class ValueColumn(BaseColumn):
	"""Named, typed sequence of leaf values."""

	__slots__ = ('_storage', '_dtype')

	kind = ColumnKind.VALUE

	def __init__(self, name: str, storage: Storage, dtype: DataType):
		super().__init__(name)
		self._storage = storage
		self._dtype = dtype

	@classmethod
	def of(cls, name: str, values: Iterable[Any], dtype=None, nullable: Optional[bool] = None) -> "ValueColumn":
		"""
		Build a value column from raw values.

		With no ``dtype`` the type is inferred. An explicit ``dtype`` (a class
		or DataType) is validated value by value; numeric values are coerced
		along the widening ladder.
		"""
		values = list(values)
		if dtype is None:
			return cls._inferred(name, values, infer_type(values, nullable))
		if not isinstance(dtype, DataType):
			dtype = DataType(dtype, any(v is None for v in values) if nullable is None else nullable)
		elif nullable is not None:
			dtype = dtype.with_nullable(nullable)
		try:
			values = [validate_scalar(v, dtype) for v in values]
		except TypeError as e:
			raise PyFrameTypeError(f"Column '{name}': {e}") from e
		return cls(name, choose_storage(values, dtype.kind), dtype)

	@classmethod
	def _inferred(cls, name: str, values: list, schema: ColumnSchema) -> "ValueColumn":
		# an inferred type holds every value by construction; only a nullability override can be violated
		if schema.dtype is None:
			dtype = DataType(object, any(v is None for v in values))
		else:
			dtype = schema.dtype
		if not dtype.nullable and any(v is None for v in values):
			raise PyFrameTypeError(f"Column '{name}': Cannot store None in non-nullable {dtype.type_name} column")
		return cls(name, choose_storage(values, dtype.kind), dtype)

	@property
	def dtype(self) -> DataType:
		return self._dtype

	@property
	def storage(self) -> Storage:
		return self._storage

	def __len__(self) -> int:
		return len(self._storage)

	def _get(self, i: int) -> Any:
		return self._storage[i]

	def __iter__(self):
		return iter(self._storage)

	def is_null(self, i: int) -> bool:
		return self._storage.is_null(self._check_index(i))

	def has_nulls(self) -> bool:
		return self._storage.has_nulls()

	def count_nulls(self) -> int:
		return sum(1 for v in self._storage if v is None)

	def distinct(self):
		"""Distinct values (cached on first use)."""
		return self._storage.distinct_set()

	def contains(self, value) -> bool:
		return self._storage.contains(value)

	__contains__ = contains

	def rename(self, name: str) -> "ValueColumn":
		return ValueColumn(name, self._storage, self._dtype)

	def slice(self, start: int = 0, stop: Optional[int] = None) -> "ValueColumn":
		start, stop = self._bounds(start, stop)
		if start == 0 and stop == len(self):
			return self
		return ValueColumn(self._name, self._storage.slice(slice(start, stop)), self._dtype)

	def take(self, indices: Iterable[int]) -> "ValueColumn":
		return ValueColumn(self._name, self._storage.take(self._checked_indices(indices)), self._dtype)

	def column_schema(self) -> ValueColumnSchema:
		return ValueColumnSchema(self._dtype)


class ColumnGroup(BaseColumn):
	"""A named nested frame: row ``i`` of the group is row ``i`` of the frame."""

	__slots__ = ('_frame',)

	kind = ColumnKind.GROUP

	def __init__(self, name: str, frame, rows_count: Optional[int] = None):
		from .frame import Frame
		super().__init__(name)
		if not isinstance(frame, Frame):
			raise PyFrameTypeError(f"ColumnGroup '{name}' needs a Frame, not {type(frame).__name__}")
		if rows_count is not None and frame.rows_count() != rows_count:
			raise StructuralError(
				f"ColumnGroup '{name}' has {frame.rows_count()} nested rows, expected one per outer row ({rows_count})"
			)
		self._frame = frame

	@property
	def frame(self):
		return self._frame

	def columns(self) -> list:
		return self._frame.columns()

	def column_names(self) -> list[str]:
		return self._frame.column_names()

	def get_column(self, key, policy=None):
		return self._frame.get_column(key, policy)

	def __len__(self) -> int:
		return self._frame.rows_count()

	def _get(self, i: int):
		return self._frame.row(i)

	def to_list(self) -> list:
		return [row.to_dict() for row in self._frame.rows()]

	def rename(self, name: str) -> "ColumnGroup":
		return ColumnGroup(name, self._frame)

	def slice(self, start: int = 0, stop: Optional[int] = None) -> "ColumnGroup":
		start, stop = self._bounds(start, stop)
		if start == 0 and stop == len(self):
			return self
		return ColumnGroup(self._name, self._frame.slice(start, stop))

	def take(self, indices: Iterable[int]) -> "ColumnGroup":
		return ColumnGroup(self._name, self._frame.take(self._checked_indices(indices)))

	def column_schema(self) -> GroupColumnSchema:
		return GroupColumnSchema(self._frame.schema())

	def _values_equal(self, other) -> bool:
		return self._frame == other._frame


class FrameColumn(BaseColumn):
	"""
	A column whose cells are frames. Cells are never None: absent data is an
	empty frame. The column schema is the intersection of the cells' schemas
	unless given explicitly.
	"""

	__slots__ = ('_frames', '_schema')

	kind = ColumnKind.FRAME

	def __init__(self, name: str, frames: Iterable, schema: Optional[FrameSchema] = None):
		from .frame import Frame
		super().__init__(name)
		cells = []
		for f in frames:
			if f is None:
				f = schema.create_empty_frame() if schema is not None else Frame.empty()
			elif not isinstance(f, Frame):
				raise PyFrameTypeError(f"FrameColumn '{name}' cells must be Frames, not {type(f).__name__}")
			cells.append(f)
		self._frames = tuple(cells)
		if schema is not None:
			self._schema = Memo.of(schema)
		else:
			self._schema = Memo(self._intersect_cell_schemas)

	def _intersect_cell_schemas(self) -> FrameSchema:
		return intersect_schemas(f.schema() for f in self._frames if f.columns_count())

	@property
	def schema(self) -> FrameSchema:
		return self._schema.get()

	@property
	def frames(self) -> tuple:
		return self._frames

	def __len__(self) -> int:
		return len(self._frames)

	def _get(self, i: int):
		return self._frames[i]

	def __iter__(self):
		return iter(self._frames)

	def _derived(self, name: str, frames, schema_cell: Optional[Memo] = None) -> "FrameColumn":
		column = FrameColumn.__new__(FrameColumn)
		BaseColumn.__init__(column, name)
		column._frames = tuple(frames)
		# a subset of rows re-derives its own intersection
		column._schema = schema_cell if schema_cell is not None else Memo(column._intersect_cell_schemas)
		return column

	def rename(self, name: str) -> "FrameColumn":
		return self._derived(name, self._frames, self._schema)

	def slice(self, start: int = 0, stop: Optional[int] = None) -> "FrameColumn":
		start, stop = self._bounds(start, stop)
		if start == 0 and stop == len(self):
			return self
		return self._derived(self._name, self._frames[start:stop])

	def take(self, indices: Iterable[int]) -> "FrameColumn":
		return self._derived(self._name, [self._frames[i] for i in self._checked_indices(indices)])

	def column_schema(self) -> FrameColumnSchema:
		return FrameColumnSchema(self.schema)


def _to_frame(value, schema: FrameSchema):
	from .frame import Frame
	if value is None:
		return schema.create_empty_frame()
	if isinstance(value, Frame):
		return value
	if _is_row(value):
		return Frame.from_records([value])
	return Frame.from_records(value)


def column_of(name: str, values: Iterable[Any], dtype=None, nullable: Optional[bool] = None) -> BaseColumn:
	"""
	Build the right column variant for raw ``values``.

	Rows (``dict`` / ``Row``) make a ColumnGroup; frames or lists of rows make a
	FrameColumn; anything else a ValueColumn. An explicit ``dtype`` always
	produces a ValueColumn.

	Examples
	--------
	>>> column_of("age", [15, 45]).dtype
	<int>
	>>> column_of("name", [{"first": "A"}, {"first": "B"}]).kind
	<ColumnKind.GROUP: 'group'>
	"""
	from .frame import Frame
	values = list(values)
	if dtype is not None:
		return ValueColumn.of(name, values, dtype, nullable)
	schema = infer_type(values, nullable)
	if schema.kind is ColumnKind.GROUP:
		records = [{} if v is None else _as_mapping(v) for v in values]
		return ColumnGroup(name, Frame.from_records(records), rows_count=len(values))
	if schema.kind is ColumnKind.FRAME:
		return FrameColumn(name, [_to_frame(v, schema.schema) for v in values])
	return ValueColumn._inferred(name, values, schema)


def placeholder_column() -> ValueColumn:
	"""The anonymous, empty, nullable ``object`` column standing in for a missing one."""
	return ValueColumn(PLACEHOLDER_NAME, TupleStorage(()), DataType(object, nullable=True))
