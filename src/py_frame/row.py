from __future__ import annotations

from .errors import ColumnNotFoundError, PyFrameTypeError
from .schema import ColumnKind


class Row:
	"""Lazy view of one row of a Frame with attribute access.

	Nothing is copied: every access reads the frame's columns at this index.
	Group cells come back as nested ``Row`` views, frame cells as ``Frame``.
	"""
	__slots__ = ('_frame', '_index')

	def __init__(self, frame, index: int):
		self._frame = frame
		self._index = index

	@property
	def index(self) -> int:
		return self._index

	@property
	def frame(self):
		return self._frame

	def __getattr__(self, attr):
		"""Access column values by sanitized attribute name."""
		if attr.startswith('_'):
			raise AttributeError(attr)
		col_idx = self._frame._column_map.get(attr.lower())
		if col_idx is None:
			raise AttributeError(f"Row has no attribute '{attr}'")
		return self._frame._columns[col_idx]._get(self._index)

	def __getitem__(self, key):
		"""Access column values by position, name or ColumnPath."""
		if isinstance(key, int) and not isinstance(key, bool):
			return self._frame._columns[key]._get(self._index)
		if isinstance(key, str):
			column = self._frame._column_by_name(key)
			if column is None:
				raise ColumnNotFoundError(f"Row has no column '{key}'")
			return column._get(self._index)
		if isinstance(key, tuple):
			# ColumnPath: walk down through group cells
			value = self
			for name in key:
				if not isinstance(value, Row):
					raise ColumnNotFoundError(f"Row has no column '{'.'.join(key)}'")
				value = value[name]
			return value
		raise PyFrameTypeError(f"Row indices must be int, str or ColumnPath, not {type(key).__name__}")

	def get(self, name, default=None):
		try:
			return self[name]
		except (ColumnNotFoundError, IndexError):
			return default

	def keys(self) -> list[str]:
		return self._frame.column_names()

	def values(self) -> list:
		return list(self)

	def items(self):
		return zip(self.keys(), self)

	def __iter__(self):
		"""Iterate over column values in this row."""
		idx = self._index
		for col in self._frame._columns:
			yield col._get(idx)

	def __len__(self):
		"""Return number of columns."""
		return len(self._frame._columns)

	def __contains__(self, name) -> bool:
		return name in self._frame

	def to_dict(self) -> dict:
		"""Plain dict of this row; group cells become nested dicts."""
		out = {}
		idx = self._index
		for col in self._frame._columns:
			value = col._get(idx)
			if col.kind is ColumnKind.GROUP:
				value = value.to_dict()
			out[col.name] = value
		return out

	def __eq__(self, other):
		if isinstance(other, Row):
			return self.to_dict() == other.to_dict()
		if isinstance(other, dict):
			return self.to_dict() == other
		return NotImplemented

	__hash__ = None

	def __repr__(self):
		"""Return a simple representation of the row."""
		values = [f"{name}={value!r}" if name else repr(value) for name, value in self.items()]
		return f"Row({self._index}: {', '.join(values)})"
