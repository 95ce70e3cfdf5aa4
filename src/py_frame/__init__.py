"""
py-frame: immutable, nested data frames with structural schemas

Frames are ordered collections of equal-length named columns. A column holds
plain values, one nested row per outer row (a column group), or one nested
frame per outer row (a frame column). Schemas are derived from frames,
compared structurally, and turned into a minimal set of reusable named schema
types (markers).

Main classes:
	- Frame: ordered, immutable collection of columns
	- ValueColumn / ColumnGroup / FrameColumn: the three column kinds
	- FrameSchema: structural description of a frame
	- MarkerSynthesizer / MarkerRegistry: reusable schema declarations

Selection helpers (col, all_cols, value_cols, ...) build declarative column
selectors resolved with Frame.select / Frame.get_column.
"""

from .columns import ColumnPath, ValueColumn, ColumnGroup, FrameColumn, column_of, placeholder_column
from .frame import Frame
from .row import Row
from .typing import DataType
from .inference import infer_type
from .schema import (
	ColumnKind,
	ValueColumnSchema,
	GroupColumnSchema,
	FrameColumnSchema,
	FrameSchema,
	CompareResult,
	compare,
	extract_schema,
	intersect_schemas,
)
from .selection import (
	MissingPolicy,
	ResolutionContext,
	ColumnWithPath,
	col,
	all_cols,
	distinct,
	cols_of_kind,
	value_cols,
	group_cols,
	frame_cols,
	name_contains,
	name_starts_with,
)
from .markers import Marker, MarkerField, MarkerRegistry, MarkerSynthesizer
from .errors import (
	PyFrameError,
	StructuralError,
	ResolutionError,
	ColumnNotFoundError,
	AmbiguousColumnError,
	TypeConflictError,
	PyFrameTypeError,
	PyFrameIndexError,
)
from .log import configure_logging

__version__ = "0.1.0"
__all__ = [
	"Frame",
	"Row",
	"ColumnPath",
	"ValueColumn",
	"ColumnGroup",
	"FrameColumn",
	"column_of",
	"placeholder_column",
	"DataType",
	"infer_type",
	"ColumnKind",
	"ValueColumnSchema",
	"GroupColumnSchema",
	"FrameColumnSchema",
	"FrameSchema",
	"CompareResult",
	"compare",
	"extract_schema",
	"intersect_schemas",
	"MissingPolicy",
	"ResolutionContext",
	"ColumnWithPath",
	"col",
	"all_cols",
	"distinct",
	"cols_of_kind",
	"value_cols",
	"group_cols",
	"frame_cols",
	"name_contains",
	"name_starts_with",
	"Marker",
	"MarkerField",
	"MarkerRegistry",
	"MarkerSynthesizer",
	"PyFrameError",
	"StructuralError",
	"ResolutionError",
	"ColumnNotFoundError",
	"AmbiguousColumnError",
	"TypeConflictError",
	"PyFrameTypeError",
	"PyFrameIndexError",
	"configure_logging",
]
