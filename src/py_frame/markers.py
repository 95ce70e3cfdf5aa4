"""
Marker synthesis: reusable named schema types.

A marker is a named FrameSchema together with the base markers it extends and
the fields it declares itself. Given a target schema, the synthesizer reuses a
registered marker when one already describes it, and otherwise declares a new
marker that extends as much of the registry as possible so that only the
missing (or narrowed) fields have to be declared.

A registry lives for exactly one generation run and is never shared between
independent runs.
"""

from __future__ import annotations
from dataclasses import dataclass
import threading
from typing import Iterable, Iterator, Optional

from .config import SynthesisOptions
from .errors import PyFrameError, TypeConflictError
from .log import get_logger
from .naming import _field_name, _uniquify, _unique_marker_name
from .schema import ColumnKind, ColumnSchema, CompareResult, FrameSchema, compare, compare_columns

logger = get_logger(__name__)


@dataclass(frozen=True)
class MarkerField:
    """
    One declared field of a marker.

    Attributes
    ----------
    name : str
        Identifier of the field (always a valid Python identifier).
    column_name : str
        Name of the column the field reads.
    schema : ColumnSchema
        Schema of the column.
    marker : Marker or None
        Marker describing the nested rows of a group / frame column.
    override : bool
        True when the field narrows a field inherited from a base marker.
    """

    name: str
    column_name: str
    schema: ColumnSchema
    marker: Optional["Marker"] = None
    override: bool = False

    @property
    def kind(self) -> ColumnKind:
        return self.schema.kind

    @property
    def type_name(self) -> str:
        if self.kind is ColumnKind.VALUE:
            return self.schema.dtype.type_name
        if self.kind is ColumnKind.GROUP:
            return self.marker.name
        return f"list[{self.marker.name}]"

    def describe(self) -> dict:
        return {
            "name": self.name,
            "column_name": self.column_name,
            "kind": self.kind.value,
            "type": self.type_name,
            "nullable": self.schema.nullable,
            "override": self.override,
        }


class Marker:
    """A named schema, its open/closed flag, its bases and its own fields."""

    __slots__ = ('name', 'schema', 'is_open', 'bases', 'fields')

    def __init__(self, name: str, schema: FrameSchema, is_open: bool = False,
                 bases: Iterable["Marker"] = (), fields: Iterable[MarkerField] = ()):
        self.name = name
        self.schema = schema
        self.is_open = is_open
        self.bases = tuple(bases)
        self.fields = tuple(fields)

    def all_bases(self) -> list["Marker"]:
        """Every marker this one extends, directly or transitively, nearest first."""
        out = []
        seen = set()
        queue = list(self.bases)
        while queue:
            base = queue.pop(0)
            if id(base) in seen:
                continue
            seen.add(id(base))
            out.append(base)
            queue.extend(base.bases)
        return out

    def implements(self, other: "Marker") -> bool:
        return other is self or any(b is other for b in self.all_bases())

    def field_for(self, column_name: str) -> Optional[MarkerField]:
        """Own or inherited field that reads ``column_name``."""
        for marker in [self] + self.all_bases():
            for f in marker.fields:
                if f.column_name == column_name:
                    return f
        return None

    def all_field_names(self) -> set[str]:
        return {f.name for marker in [self] + self.all_bases() for f in marker.fields}

    def describe(self) -> dict:
        """Description handed to source emitters."""
        return {
            "name": self.name,
            "open": self.is_open,
            "bases": [b.name for b in self.bases],
            "fields": [f.describe() for f in self.fields],
        }

    def __repr__(self):
        flag = "open" if self.is_open else "closed"
        bases = f" extends {', '.join(b.name for b in self.bases)}" if self.bases else ""
        return f"Marker({self.name}, {flag}{bases}: {self.schema!r})"


class MarkerRegistry:
    """
    Markers registered during one generation run.

    Every registered marker is kept, in registration order. A live index keyed
    by (schema, open flag) holds the latest marker for each key, so no two live
    markers share identical (schema, open flag); a marker re-declared for the
    same key because it lacked newly required bases supersedes the earlier one.
    """

    def __init__(self, markers: Iterable[Marker] = ()):
        self._markers: list[Marker] = []
        self._live: dict[tuple, Marker] = {}
        self._names: dict[str, Marker] = {}
        # reentrant: nested columns synthesize their markers mid-declaration
        self.lock = threading.RLock()
        for marker in markers:
            self.register(marker)

    def register(self, marker: Marker) -> Marker:
        with self.lock:
            if marker.name in self._names:
                raise PyFrameError(f"Marker name '{marker.name}' is already registered")
            key = (marker.schema, marker.is_open)
            previous = self._live.pop(key, None)
            self._live[key] = marker
            self._names[marker.name] = marker
            self._markers.append(marker)
        if previous is not None:
            logger.info("Registered marker %s (supersedes %s)", marker.name, previous.name)
        else:
            logger.info("Registered marker %s with %d fields", marker.name, len(marker.fields))
        return marker

    def live(self) -> list[Marker]:
        """Markers currently eligible for reuse, in registration order."""
        return list(self._live.values())

    def find(self, schema: FrameSchema, is_open: bool) -> Optional[Marker]:
        return self._live.get((schema, is_open))

    def new_name(self, prefix: str, requested: Optional[str] = None) -> str:
        if requested:
            return _uniquify(requested, self._names)
        return _unique_marker_name(prefix, self._names)

    def get(self, name: str) -> Optional[Marker]:
        return self._names.get(name)

    def names(self) -> list[str]:
        return [m.name for m in self._markers]

    def __contains__(self, name) -> bool:
        return name in self._names

    def __iter__(self) -> Iterator[Marker]:
        return iter(list(self._markers))

    def __len__(self) -> int:
        return len(self._markers)


class MarkerSynthesizer:
    """
    Finds or declares the marker for a target schema.

    Parameters
    ----------
    registry : MarkerRegistry, optional
        Session registry. A fresh one is created when omitted.
    options : SynthesisOptions, optional
        Naming prefix and nested-marker openness.

    Examples
    --------
    >>> synth = MarkerSynthesizer()
    >>> person = synth.synthesize(FrameSchema.build({"name": str, "age": int}), is_open=True)
    >>> student = synth.synthesize(FrameSchema.build({"name": str, "age": int, "school": str}))
    >>> student.bases == (person,), [f.name for f in student.fields]
    (True, ['school'])
    """

    def __init__(self, registry: Optional[MarkerRegistry] = None, options: Optional[SynthesisOptions] = None):
        self.registry = registry if registry is not None else MarkerRegistry()
        self.options = options or SynthesisOptions()

    def synthesize(self, target: FrameSchema, is_open: bool = False, name: Optional[str] = None,
                   bases: Iterable[Marker] = ()) -> Marker:
        """
        Marker describing ``target``.

        Parameters
        ----------
        target : FrameSchema
            Schema to describe.
        is_open : bool
            Whether the marker may serve as a required base of larger schemas.
        name : str, optional
            Requested marker name (uniquified against the registry).
        bases : iterable of Marker
            Markers the result must implement in addition to the open markers
            the target extends.

        Raises
        ------
        TypeConflictError
            When a column of ``target`` cannot narrow the same column of a base.
        """
        with self.registry.lock:
            return self._synthesize(target, is_open, name, tuple(bases))

    def _synthesize(self, target: FrameSchema, is_open: bool, name: Optional[str], explicit: tuple) -> Marker:
        live = self.registry.live()
        relation = {id(m): compare(target, m.schema) for m in live}

        required = list(explicit)
        for m in live:
            if m.is_open and relation[id(m)].is_super_or_equal() and not any(m is r for r in required):
                required.append(m)

        for m in live:
            if (m.is_open or not is_open) and relation[id(m)] is CompareResult.EQUAL \
                    and all(m.implements(r) for r in required):
                logger.debug("Reusing marker %s for %r", m.name, target)
                return m

        selected = list(required)
        if self.options.reuse_bases:
            candidates = [
                m for m in live
                if relation[id(m)].is_super_or_equal() and not any(m is s for s in selected)
            ]
            self._greedy_cover(target, selected, candidates)

        fields = self._declare_fields(target, selected)
        leaf_bases = [
            b for b in selected
            if not any(other is not b and other.implements(b) for other in selected)
        ]
        marker = Marker(
            self.registry.new_name(self.options.name_prefix, name),
            target,
            is_open,
            leaf_bases,
            fields,
        )
        return self.registry.register(marker)

    def _greedy_cover(self, target: FrameSchema, selected: list, candidates: list) -> None:
        # columns a required base declares (equal or narrowed) are settled already
        remaining = [n for n in target if not any(n in b.schema for b in selected)]
        while remaining and candidates:
            best = None
            best_count = 0
            for m in sorted(candidates, key=lambda c: c.name):
                count = sum(1 for n in remaining if m.schema.get(n) == target[n])
                if count > best_count:
                    best, best_count = m, count
            if best is None:
                return
            selected.append(best)
            candidates.remove(best)
            remaining = [n for n in remaining if best.schema.get(n) != target[n]]

    def _declare_fields(self, target: FrameSchema, selected: list) -> list[MarkerField]:
        for base in selected:
            for column_name, column in base.schema.items():
                if column_name not in target:
                    raise TypeConflictError(column_name, None, column, base.name)

        used = {n for b in selected for n in b.all_field_names()}
        fields = []
        for index, (column_name, schema) in enumerate(target.items()):
            inherited = [(b, b.schema[column_name]) for b in selected if column_name in b.schema]
            if any(column == schema for _, column in inherited):
                continue
            for base, column in inherited:
                if compare_columns(schema, column) is not CompareResult.SUPERTYPE:
                    raise TypeConflictError(column_name, schema, column, base.name)
            override = bool(inherited)
            base = inherited[0][0] if inherited else None

            nested = None
            if schema.kind is not ColumnKind.VALUE:
                nested_bases = ()
                if override:
                    base_field = base.field_for(column_name)
                    if base_field is not None and base_field.marker is not None:
                        nested_bases = (base_field.marker,)
                nested = self._synthesize(schema.schema, self.options.nested_open, None, nested_bases)

            if override and base.field_for(column_name) is not None:
                field_name = base.field_for(column_name).name
            else:
                field_name = _field_name(column_name, index, used)
                used.add(field_name)
            fields.append(MarkerField(field_name, column_name, schema, nested, override))
        return fields


def synthesize_all(schemas: Iterable[FrameSchema], is_open: bool = False,
                   registry: Optional[MarkerRegistry] = None) -> list[Marker]:
    """Synthesize markers for several schemas in one session, in order."""
    synthesizer = MarkerSynthesizer(registry)
    return [synthesizer.synthesize(s, is_open=is_open) for s in schemas]
