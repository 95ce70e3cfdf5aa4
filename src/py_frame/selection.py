"""
Declarative column selection.

A selector is resolved against a ``ResolutionContext`` (a frame plus a
missing-column policy) into an ordered list of ``ColumnWithPath``. The set of
selectors is closed:

	Col(path)                       one column by name or path
	All()                           the top-level columns
	Union(*selectors, distinct)     concatenation, optionally de-duplicated by path
	Dive(parent, child)             child selector evaluated inside a column group
	Recursive(selector, ...)        depth-first walk through group subtrees
	Filter(selector, predicate)     keep results matching a predicate
	Indexed(selector, mode, index)  first / last / at / single

Results are always ordered depth-first in frame declaration order.

Examples
--------
>>> frame.select(col("name").dive(col("first")) | col("age"))
>>> frame.get_column(value_cols().filter(lambda c: c.dtype.is_numeric).first())
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, NamedTuple, Optional

from .columns import BaseColumn, ColumnPath, placeholder_column
from .config import DEFAULT_MISSING_POLICY, PLACEHOLDER_NAME
from .errors import AmbiguousColumnError, ColumnNotFoundError, PyFrameTypeError
from .log import get_logger
from .schema import ColumnKind

logger = get_logger(__name__)


class MissingPolicy(Enum):
	"""What a lookup does when the column it needs does not exist."""

	FAIL = "fail"
	SKIP = "skip"
	CREATE = "create"


DEFAULT_POLICY = MissingPolicy(DEFAULT_MISSING_POLICY)


class ResolutionContext(NamedTuple):
	frame: Any
	policy: MissingPolicy = DEFAULT_POLICY


class ColumnWithPath(NamedTuple):
	path: ColumnPath
	column: BaseColumn

	@property
	def name(self) -> str:
		return self.column.name

	@property
	def kind(self) -> ColumnKind:
		return self.column.kind

	@property
	def dtype(self):
		return self.column.dtype


class IndexMode(Enum):
	FIRST = "first"
	LAST = "last"
	AT = "at"
	SINGLE = "single"


class Selector:
	"""Base of all selectors. Multi-result unless ``is_single``."""

	is_single = False

	def resolve(self, context: ResolutionContext) -> list[ColumnWithPath]:
		return _resolve(self, context)

	def resolve_single(self, context: ResolutionContext) -> Optional[ColumnWithPath]:
		"""
		The one result of this selector, or None when the policy allows an
		absent result. Multi-result selectors must resolve to exactly one column.
		"""
		selector = self if self.is_single else self.single()
		results = _resolve(selector, context)
		return results[0] if results else None

	def __or__(self, other: "Selector") -> "Union":
		return Union((self, other))

	def filter(self, predicate: Callable[[ColumnWithPath], bool], description: Optional[str] = None) -> "Filter":
		return Filter(self, predicate, description or getattr(predicate, "__name__", "predicate"))

	def first(self) -> "Indexed":
		return Indexed(self, IndexMode.FIRST)

	def last(self) -> "Indexed":
		return Indexed(self, IndexMode.LAST)

	def at(self, index: int) -> "Indexed":
		return Indexed(self, IndexMode.AT, index)

	def single(self) -> "Indexed":
		return Indexed(self, IndexMode.SINGLE)

	def recursively(self, include_groups: bool = True, include_top_level: bool = True) -> "Recursive":
		return Recursive(self, include_groups, include_top_level)

	def describe(self) -> str:
		raise NotImplementedError

	def __repr__(self):
		return self.describe()


@dataclass(frozen=True, repr=False)
class Col(Selector):
	path: ColumnPath

	is_single = True

	def __post_init__(self):
		if not isinstance(self.path, ColumnPath):
			object.__setattr__(self, "path", ColumnPath(self.path))

	def dive(self, child: Selector) -> "Dive":
		return Dive(self, child)

	def describe(self) -> str:
		return f"col({', '.join(repr(n) for n in self.path)})"


@dataclass(frozen=True, repr=False)
class All(Selector):
	def describe(self) -> str:
		return "all()"


@dataclass(frozen=True, repr=False)
class Union(Selector):
	selectors: tuple
	distinct: bool = False

	def __or__(self, other: Selector) -> "Union":
		if not self.distinct:
			return Union(self.selectors + (other,))
		return Union((self, other))

	def describe(self) -> str:
		text = " | ".join(s.describe() for s in self.selectors)
		return f"distinct({text})" if self.distinct else text


@dataclass(frozen=True, repr=False)
class Dive(Selector):
	parent: Selector
	child: Selector

	@property
	def is_single(self) -> bool:
		return self.child.is_single

	def describe(self) -> str:
		return f"{self.parent.describe()}.dive({self.child.describe()})"


@dataclass(frozen=True, repr=False)
class Recursive(Selector):
	selector: Selector
	include_groups: bool = True
	include_top_level: bool = True

	def describe(self) -> str:
		flags = []
		if not self.include_groups:
			flags.append("include_groups=False")
		if not self.include_top_level:
			flags.append("include_top_level=False")
		return f"{self.selector.describe()}.recursively({', '.join(flags)})"


@dataclass(frozen=True, repr=False)
class Filter(Selector):
	selector: Selector
	predicate: Callable[[ColumnWithPath], bool] = field(compare=False)
	description: str = "predicate"

	def describe(self) -> str:
		return f"{self.selector.describe()}.filter({self.description})"


@dataclass(frozen=True, repr=False)
class Indexed(Selector):
	selector: Selector
	mode: IndexMode
	index: Optional[int] = None

	is_single = True

	def describe(self) -> str:
		arg = "" if self.index is None else str(self.index)
		return f"{self.selector.describe()}.{self.mode.value}({arg})"


# ============================================================
# Resolution
# ============================================================

def _placeholder_result() -> ColumnWithPath:
	return ColumnWithPath(ColumnPath((PLACEHOLDER_NAME,)), placeholder_column())


def _no_such_element(selector: Selector, context: ResolutionContext, message: str, path=None) -> list:
	if context.policy is MissingPolicy.SKIP:
		return []
	if context.policy is MissingPolicy.CREATE:
		logger.debug("%s: %s, using placeholder column", selector.describe(), message)
		return [_placeholder_result()]
	raise ColumnNotFoundError(f"{message} (selector: {selector.describe()})", selector=selector.describe(), path=path)


def _ambiguous(selector: Selector, context: ResolutionContext, results: list) -> list:
	if context.policy is MissingPolicy.SKIP:
		return []
	paths = ", ".join(str(r.path) for r in results)
	raise AmbiguousColumnError(
		f"Selection is ambiguous, {len(results)} columns match: {paths} (selector: {selector.describe()})",
		selector=selector.describe(),
	)


def _resolve_col(selector: Col, context: ResolutionContext) -> list:
	path = selector.path
	frame = context.frame
	column = None
	for depth, name in enumerate(path):
		column = frame._column_by_name(name)
		if column is None:
			return _no_such_element(selector, context, f"Column '{path}' not found", path)
		if depth < len(path) - 1:
			if column.kind is not ColumnKind.GROUP:
				return _no_such_element(selector, context, f"Column '{ColumnPath(path[:depth + 1])}' is not a column group", path)
			frame = column.frame
	if column is None:
		return _no_such_element(selector, context, "Empty column path", path)
	return [ColumnWithPath(path, column)]


def _resolve_dive(selector: Dive, context: ResolutionContext) -> list:
	from .frame import Frame
	parent = selector.parent.resolve_single(context)
	if parent is None:
		return []
	if parent.column.kind is ColumnKind.GROUP:
		nested = parent.column.frame
	elif parent.column.is_placeholder:
		nested = Frame.empty()
	else:
		return _no_such_element(selector, context, f"Column '{parent.path}' is not a column group", parent.path)
	results = _resolve(selector.child, ResolutionContext(nested, context.policy))
	return [ColumnWithPath(parent.path + r.path, r.column) for r in results]


def _resolve_recursive(selector: Recursive, context: ResolutionContext) -> list:
	out = []
	stack = [(r, True) for r in reversed(_resolve(selector.selector, context))]
	while stack:
		result, top = stack.pop()
		is_group = result.column.kind is ColumnKind.GROUP
		if (selector.include_top_level or not top) and (selector.include_groups or not is_group):
			out.append(result)
		if is_group:
			children = result.column.columns()
			for column in reversed(children):
				stack.append((ColumnWithPath(result.path.child(column.name), column), False))
	return out


def _resolve_indexed(selector: Indexed, context: ResolutionContext) -> list:
	results = _resolve(selector.selector, context)
	mode = selector.mode
	if mode is IndexMode.SINGLE:
		if len(results) > 1:
			return _ambiguous(selector, context, results)
		if not results:
			return _no_such_element(selector, context, "Selection is empty, expected exactly one column")
		return results
	if not results:
		return _no_such_element(selector, context, f"Selection is empty, {mode.value}() needs at least one column")
	if mode is IndexMode.FIRST:
		return [results[0]]
	if mode is IndexMode.LAST:
		return [results[-1]]
	index = selector.index
	if not -len(results) <= index < len(results):
		return _no_such_element(selector, context, f"Index {index} out of range for {len(results)} selected columns")
	return [results[index]]


def _resolve(selector: Selector, context: ResolutionContext) -> list[ColumnWithPath]:
	"""Resolve any selector. Every selector class is handled here and nowhere else."""
	if isinstance(selector, Col):
		return _resolve_col(selector, context)
	if isinstance(selector, All):
		return [
			ColumnWithPath(ColumnPath((c.name,)), c)
			for c in context.frame.columns()
			if not c.is_placeholder
		]
	if isinstance(selector, Union):
		out = []
		seen = set()
		for s in selector.selectors:
			for r in _resolve(s, context):
				if selector.distinct:
					if r.path in seen:
						continue
					seen.add(r.path)
				out.append(r)
		return out
	if isinstance(selector, Dive):
		return _resolve_dive(selector, context)
	if isinstance(selector, Recursive):
		return _resolve_recursive(selector, context)
	if isinstance(selector, Filter):
		return [r for r in _resolve(selector.selector, context) if selector.predicate(r)]
	if isinstance(selector, Indexed):
		return _resolve_indexed(selector, context)
	raise PyFrameTypeError(f"Unsupported selector {type(selector).__name__}")


def as_selector(key) -> Selector:
	"""Coerce a name, path, predicate, list of names or selector into a Selector."""
	if isinstance(key, Selector):
		return key
	if isinstance(key, (str, ColumnPath)):
		return Col(key)
	if isinstance(key, (list, tuple)):
		return Union(tuple(as_selector(k) for k in key))
	if callable(key):
		return All().recursively().filter(key)
	raise PyFrameTypeError(f"Cannot select columns with {type(key).__name__}")


# ============================================================
# Helpers
# ============================================================

def col(*names: str) -> Col:
	return Col(ColumnPath(names))


def all_cols() -> All:
	return All()


def distinct(*selectors: Selector) -> Union:
	return Union(tuple(selectors), distinct=True)


def cols_of_kind(kind: ColumnKind, selector: Optional[Selector] = None) -> Filter:
	return Filter(selector or All(), lambda c: c.kind is kind, f"kind == {kind.value}")


def value_cols(selector: Optional[Selector] = None) -> Filter:
	return cols_of_kind(ColumnKind.VALUE, selector)


def group_cols(selector: Optional[Selector] = None) -> Filter:
	return cols_of_kind(ColumnKind.GROUP, selector)


def frame_cols(selector: Optional[Selector] = None) -> Filter:
	return cols_of_kind(ColumnKind.FRAME, selector)


def name_contains(text: str, selector: Optional[Selector] = None) -> Filter:
	return Filter(selector or All(), lambda c: text in c.name, f"name contains {text!r}")


def name_starts_with(prefix: str, selector: Optional[Selector] = None) -> Filter:
	return Filter(selector or All(), lambda c: c.name.startswith(prefix), f"name starts with {prefix!r}")
