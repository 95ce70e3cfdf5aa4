from __future__ import annotations
from typing import Any, Callable, Iterable, Iterator, Mapping, Optional

from .columns import BaseColumn, ColumnGroup, ColumnPath, FrameColumn, ValueColumn, column_of
from .errors import ColumnNotFoundError, PyFrameIndexError, PyFrameTypeError, StructuralError
from .inference import _as_mapping
from .memo import Memo
from .naming import _build_column_map
from .row import Row
from .schema import ColumnKind, FrameSchema, ValueColumnSchema
from .selection import DEFAULT_POLICY, MissingPolicy, ResolutionContext, Selector, as_selector
from .typing import common_type


def _missing_col_error(name, context="Frame"):
	return ColumnNotFoundError(f"Column '{name}' not found in {context}", path=ColumnPath(name))


class Frame:
	"""
	Ordered collection of uniquely named, equal-length columns.

	Frames are immutable. Every transformation returns a new Frame that shares
	the unchanged columns with its source.

	Examples
	--------
	>>> f = Frame.from_dict({"name": ["Alice", "Bob"], "age": [15, 45]})
	>>> f.column_names()
	['name', 'age']
	>>> f.get_column("age").dtype
	<int>
	>>> f.row(1).name
	'Bob'
	"""

	__slots__ = ('_columns', '_rows_count', '_index', '_column_map', '_schema', '_hash')

	def __init__(self, columns: Iterable[BaseColumn] = (), rows_count: Optional[int] = None):
		columns = tuple(columns)
		index = {}
		for position, column in enumerate(columns):
			if not isinstance(column, BaseColumn):
				raise PyFrameTypeError(f"Frame columns must be columns, got {type(column).__name__} at position {position}")
			if column.is_placeholder:
				continue
			if column.name in index:
				raise StructuralError(f"Duplicate column name '{column.name}'")
			index[column.name] = position

		lengths = {len(c) for c in columns}
		if len(lengths) > 1:
			detail = ", ".join(f"{c.name or '<placeholder>'}={len(c)}" for c in columns)
			raise StructuralError(f"Columns must have equal length, got {detail}")
		if lengths:
			(length,) = lengths
			if rows_count is not None and rows_count != length:
				raise StructuralError(f"Frame declares {rows_count} rows but its columns have {length}")
			rows_count = length
		elif rows_count is None:
			rows_count = 0
		elif rows_count < 0:
			raise StructuralError(f"Frame rows count must be non-negative, got {rows_count}")

		self._columns = columns
		self._rows_count = rows_count
		self._index = index
		self._column_map = _build_column_map(c.name for c in columns)
		self._schema = Memo(self._compute_schema)
		self._hash = Memo(self._compute_hash)

	# ============================================================
	# Constructors
	# ============================================================

	@classmethod
	def empty(cls, rows_count: int = 0) -> "Frame":
		"""A frame with no columns and ``rows_count`` rows."""
		return cls((), rows_count=rows_count)

	@classmethod
	def from_dict(cls, data: Mapping[str, Iterable[Any]], dtypes: Optional[Mapping[str, Any]] = None) -> "Frame":
		"""Build a frame from ``{name: values}``, inferring each column's type unless given in ``dtypes``."""
		dtypes = dtypes or {}
		return cls(column_of(name, values, dtype=dtypes.get(name)) for name, values in data.items())

	@classmethod
	def from_records(cls, records: Iterable[Any]) -> "Frame":
		"""
		Build a frame from row mappings (``dict`` or ``Row``). Columns appear in
		first-seen order; keys missing from a record read as None.
		"""
		records = [_as_mapping(r) for r in records]
		names = {}
		for record in records:
			for name in record:
				names.setdefault(name, None)
		columns = [column_of(name, [r.get(name) for r in records]) for name in names]
		return cls(columns, rows_count=len(records))

	# ============================================================
	# Structure
	# ============================================================

	def columns(self) -> list[BaseColumn]:
		return list(self._columns)

	def column_names(self) -> list[str]:
		return [c.name for c in self._columns]

	def rows_count(self) -> int:
		return self._rows_count

	def columns_count(self) -> int:
		return len(self._columns)

	def size(self) -> tuple[int, int]:
		return (self._rows_count, len(self._columns))

	def __len__(self) -> int:
		return self._rows_count

	def __contains__(self, name) -> bool:
		return name in self._index

	def _column_by_name(self, name: str) -> Optional[BaseColumn]:
		position = self._index.get(name)
		return None if position is None else self._columns[position]

	def _compute_schema(self) -> FrameSchema:
		return FrameSchema((c.name, c.column_schema()) for c in self._columns if not c.is_placeholder)

	def schema(self) -> FrameSchema:
		"""Structural schema of this frame, derived once per instance."""
		return self._schema.get()

	# ============================================================
	# Column access
	# ============================================================

	def get_column(self, key, policy: Optional[MissingPolicy] = None) -> Optional[BaseColumn]:
		"""
		Resolve one column by name, ``ColumnPath``, predicate or selector.

		Parameters
		----------
		key : str, ColumnPath, callable or Selector
			A predicate receives each ``ColumnWithPath`` at any depth and must
			match exactly one column.
		policy : MissingPolicy, optional
			FAIL (default) raises, SKIP returns None, CREATE returns an empty
			placeholder column when nothing matches.
		"""
		context = ResolutionContext(self, policy or DEFAULT_POLICY)
		result = as_selector(key).resolve_single(context)
		return None if result is None else result.column

	def resolve(self, selector, policy: Optional[MissingPolicy] = None) -> list:
		"""All ``ColumnWithPath`` results of ``selector``, in resolution order."""
		context = ResolutionContext(self, policy or DEFAULT_POLICY)
		return as_selector(selector).resolve(context)

	def __getitem__(self, key):
		if isinstance(key, slice):
			start, stop, step = key.indices(self._rows_count)
			if step != 1:
				return self.take(range(start, stop, step))
			return self.slice(start, stop)
		if isinstance(key, int) and not isinstance(key, bool):
			return self.row(key)
		if isinstance(key, (str, ColumnPath, Selector)):
			return self.get_column(key)
		if isinstance(key, list):
			return self.select(key)
		raise PyFrameTypeError(f"Frame indices must be int, slice, str, ColumnPath or Selector, not {type(key).__name__}")

	def __dir__(self):
		"""Return list of available attributes including sanitized column names."""
		base_attrs = object.__dir__(self)
		return sorted(set(base_attrs + list(self._column_map.keys())))

	def __getattr__(self, attr):
		"""Access columns by sanitized attribute name using pre-computed column map."""
		if attr.startswith('_'):
			raise AttributeError(attr)
		col_idx = self._column_map.get(attr.lower())
		if col_idx is not None:
			return self._columns[col_idx]
		raise AttributeError(f"{self.__class__.__name__!s} object has no attribute '{attr}'")

	# ============================================================
	# Rows
	# ============================================================

	def row(self, index: int) -> Row:
		"""Lazy view of row ``index``; values are read from the columns on access."""
		n = self._rows_count
		if not -n <= index < n:
			raise PyFrameIndexError(f"Row index {index} out of range for frame with {n} rows")
		return Row(self, index + n if index < 0 else index)

	def rows(self) -> Iterator[Row]:
		for i in range(self._rows_count):
			yield Row(self, i)

	def __iter__(self) -> Iterator[Row]:
		return self.rows()

	def to_dict(self) -> dict[str, list]:
		return {c.name: c.to_list() for c in self._columns}

	def to_records(self) -> list[dict]:
		return [row.to_dict() for row in self.rows()]

	# ============================================================
	# Transformations
	# ============================================================

	def slice(self, start: Optional[int] = None, stop: Optional[int] = None) -> "Frame":
		"""Rows ``start:stop``. Slicing the full range returns this frame."""
		start, stop, _ = slice(start, stop).indices(self._rows_count)
		stop = max(start, stop)
		if start == 0 and stop == self._rows_count:
			return self
		return Frame((c.slice(start, stop) for c in self._columns), rows_count=stop - start)

	def head(self, n: int = 5) -> "Frame":
		return self.slice(0, n)

	def tail(self, n: int = 5) -> "Frame":
		return self.slice(max(self._rows_count - n, 0), None)

	def take(self, indices: Iterable[int]) -> "Frame":
		indices = list(indices)
		n = self._rows_count
		for i in indices:
			if not -n <= i < n:
				raise PyFrameIndexError(f"Row index {i} out of range for frame with {n} rows")
		indices = [i + n if i < 0 else i for i in indices]
		return Frame((c.take(indices) for c in self._columns), rows_count=len(indices))

	def filter(self, predicate: Callable[[Row], bool]) -> "Frame":
		"""Rows for which ``predicate(row)`` is true."""
		return self.take(i for i, row in enumerate(self.rows()) if predicate(row))

	def select(self, selector, policy: Optional[MissingPolicy] = None) -> "Frame":
		"""
		Frame of the selected columns. Nested selections are re-wrapped in
		their enclosing groups so their paths stay valid; placeholder results
		of the CREATE policy are left out.
		"""
		tree = {}
		for result in self.resolve(selector, policy):
			if result.column.is_placeholder:
				continue
			node = tree
			for name in result.path[:-1]:
				node = node.setdefault(name, {})
				if not isinstance(node, dict):
					# the whole enclosing group is already selected
					break
			else:
				name = result.path[-1]
				if isinstance(node.get(name), dict) and result.column.kind is ColumnKind.GROUP:
					# the whole group replaces members selected before it
					node[name] = result.column
				else:
					node.setdefault(name, result.column)
		return Frame(self._build_selected(tree), rows_count=self._rows_count)

	def _build_selected(self, tree: dict) -> list[BaseColumn]:
		columns = []
		for name, node in tree.items():
			if isinstance(node, dict):
				node = ColumnGroup(name, Frame(self._build_selected(node), rows_count=self._rows_count))
			columns.append(node)
		return columns

	def add(self, *columns: BaseColumn, **values) -> "Frame":
		"""New frame with extra columns appended; keyword arguments are built with ``column_of``."""
		extra = list(columns) + [column_of(name, v) for name, v in values.items()]
		return Frame(self._columns + tuple(extra), rows_count=self._rows_count)

	def remove(self, *names: str) -> "Frame":
		for name in names:
			if name not in self._index:
				raise _missing_col_error(name)
		drop = set(names)
		return Frame((c for c in self._columns if c.name not in drop), rows_count=self._rows_count)

	def rename(self, old_name: str, new_name: str) -> "Frame":
		column = self._column_by_name(old_name)
		if column is None:
			raise _missing_col_error(old_name)
		return Frame(
			(column.rename(new_name) if c is column else c for c in self._columns),
			rows_count=self._rows_count,
		)

	def group(self, names: Iterable[str], into: str) -> "Frame":
		"""Move the ``names`` columns into a new column group ``into``, placed where the first of them was."""
		names = list(names)
		grouped = []
		for name in names:
			column = self._column_by_name(name)
			if column is None:
				raise _missing_col_error(name)
			grouped.append(column)
		group = ColumnGroup(into, Frame(grouped, rows_count=self._rows_count), rows_count=self._rows_count)
		members = {id(c) for c in grouped}
		out = []
		for column in self._columns:
			if id(column) in members:
				if group is not None:
					out.append(group)
					group = None
			else:
				out.append(column)
		return Frame(out, rows_count=self._rows_count)

	def ungroup(self, name: str) -> "Frame":
		"""Replace column group ``name`` by its nested columns."""
		column = self._column_by_name(name)
		if column is None:
			raise _missing_col_error(name)
		if column.kind is not ColumnKind.GROUP:
			raise PyFrameTypeError(f"Column '{name}' is a {column.kind.value} column, not a column group")
		out = []
		for c in self._columns:
			if c is column:
				out.extend(column.columns())
			else:
				out.append(c)
		return Frame(out, rows_count=self._rows_count)

	def flatten(self) -> "Frame":
		"""
		Replace every column group, at any depth, by its leaf columns. A leaf
		whose name collides with another keeps its dotted path as name.
		"""
		leaves = []
		stack = [(ColumnPath((c.name,)), c) for c in reversed(self._columns)]
		while stack:
			path, column = stack.pop()
			if column.kind is ColumnKind.GROUP:
				for child in reversed(column.columns()):
					stack.append((path.child(child.name), child))
			else:
				leaves.append((path, column))
		counts = {}
		for path, column in leaves:
			counts[column.name] = counts.get(column.name, 0) + 1
		out = [
			column if counts[column.name] == 1 or path.depth == 1 else column.rename(str(path))
			for path, column in leaves
		]
		return Frame(out, rows_count=self._rows_count)

	def concat(self, other: "Frame") -> "Frame":
		"""
		Rows of ``self`` followed by rows of ``other``. Columns are matched by
		name; a column missing on one side is filled with nulls (empty frames
		for frame columns).
		"""
		if not isinstance(other, Frame):
			raise PyFrameTypeError(f"Can only concat Frame, not {type(other).__name__}")
		names = list(self._index)
		names += [n for n in other._index if n not in self._index]
		columns = []
		for name in names:
			mine = self._column_by_name(name)
			theirs = other._column_by_name(name)
			columns.append(_concat_columns(name, mine, self._rows_count, theirs, other._rows_count))
		return Frame(columns, rows_count=self._rows_count + other._rows_count)

	# ============================================================
	# Equality / repr
	# ============================================================

	def _compute_hash(self) -> int:
		return hash((tuple(self.column_names()), self._rows_count))

	def __hash__(self):
		return self._hash.get()

	def __eq__(self, other):
		if not isinstance(other, Frame):
			return NotImplemented
		if self is other:
			return True
		if self._rows_count != other._rows_count or len(self._columns) != len(other._columns):
			return False
		return all(a == b for a, b in zip(self._columns, other._columns, strict=True))

	def __ne__(self, other):
		result = self.__eq__(other)
		if result is NotImplemented:
			return result
		return not result

	def __repr__(self):
		from .display import _repr_frame
		return _repr_frame(self)


def _cells(column: Optional[BaseColumn], rows_count: int) -> list:
	if column is None:
		return [None] * rows_count
	return column.to_list()


def _concat_columns(name, first, first_rows, second, second_rows) -> BaseColumn:
	if first is not None and second is not None:
		if first.kind is ColumnKind.VALUE and second.kind is ColumnKind.VALUE:
			dtype = common_type([first.dtype, second.dtype])
			return ValueColumn._inferred(name, list(first) + list(second), ValueColumnSchema(dtype))
		if first.kind is ColumnKind.FRAME and second.kind is ColumnKind.FRAME:
			return FrameColumn(name, first.frames + second.frames)
		if first.kind is ColumnKind.GROUP and second.kind is ColumnKind.GROUP:
			return ColumnGroup(name, first.frame.concat(second.frame))
	return column_of(name, _cells(first, first_rows) + _cells(second, second_rows))
