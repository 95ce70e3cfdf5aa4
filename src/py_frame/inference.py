"""
Type inference over heterogeneous, untyped value sequences.

``infer_type`` never fails: values that share no useful common type widen to
``object``. That fallback is logged at DEBUG level so callers can trace where
type information was lost.
"""

from __future__ import annotations
from typing import Any, Iterable, Optional

from .log import get_logger
from .schema import (
    ColumnSchema,
    FrameColumnSchema,
    FrameSchema,
    GroupColumnSchema,
    ValueColumnSchema,
    intersect_schemas,
)
from .typing import DataType, common_kind

logger = get_logger(__name__)


def _is_row(value) -> bool:
    from .row import Row
    return isinstance(value, (dict, Row))


def _as_mapping(row) -> dict:
    if isinstance(row, dict):
        return row
    return row.to_dict()


def _is_row_list(value) -> bool:
    return isinstance(value, list) and len(value) > 0 and all(_is_row(x) for x in value)


def records_schema(records: list, null_rows: int = 0) -> FrameSchema:
    """
    Schema of the frame built from ``records`` (dicts or rows).

    Keys missing from some records, and ``null_rows`` extra all-null rows,
    make the affected columns nullable.
    """
    records = [_as_mapping(r) for r in records]
    names = {}
    for record in records:
        for name in record:
            names.setdefault(name, None)
    padding = [None] * null_rows
    return FrameSchema(
        (name, infer_type([r.get(name) for r in records] + padding))
        for name in names
    )


def _frame_like_schema(value) -> FrameSchema:
    from .frame import Frame
    if isinstance(value, Frame):
        return value.schema()
    if _is_row(value):
        return records_schema([value])
    return records_schema(value)


def infer_type(values: Iterable[Any], nullable: Optional[bool] = None) -> ColumnSchema:
    """
    Narrowest column schema able to hold every value.

    Parameters
    ----------
    values : iterable
        Raw values: scalars, ``None``, rows (``dict`` / ``Row``), frames or
        lists (of scalars, or of rows).
    nullable : bool, optional
        Overrides the nullability derived from the presence of ``None``.

    Returns
    -------
    ColumnSchema
        ``ValueColumnSchema`` for scalars and scalar lists,
        ``GroupColumnSchema`` when only rows occur, ``FrameColumnSchema`` when
        any frame-like value (a frame or a list of rows) occurs.

    Examples
    --------
    >>> infer_type([1, 2.0])
    <float>
    >>> infer_type([1, None])
    <int nullable>
    """
    from .frame import Frame

    null_count = 0
    rows = []
    frames = []
    lists = []
    empty_lists = 0
    classes = set()

    for value in values:
        if value is None:
            null_count += 1
        elif isinstance(value, Frame) or _is_row_list(value):
            frames.append(value)
        elif _is_row(value):
            rows.append(value)
        elif isinstance(value, list):
            if value:
                lists.append(value)
            else:
                # an empty list is an empty frame next to frames, else an empty list
                empty_lists += 1
        else:
            classes.add(type(value))

    flag = null_count > 0 if nullable is None else nullable

    if rows or frames:
        if lists or classes:
            logger.debug("Nested rows/frames mixed with scalar values, falling back to object")
            return ValueColumnSchema(DataType(object, flag))
        if frames or empty_lists:
            # a lone row counts as a one-row frame; empty frames carry no columns to intersect
            schemas = [_frame_like_schema(v) for v in frames + rows]
            schemas = [s for s in schemas if len(s)]
            # None entries become empty frames, so only an explicit override makes it nullable
            return FrameColumnSchema(intersect_schemas(schemas), nullable=bool(nullable))
        # a null row makes every nested column nullable
        return GroupColumnSchema(records_schema(rows, null_rows=null_count))

    if lists or empty_lists:
        if classes:
            logger.debug("List values mixed with scalars %s, falling back to object", sorted(c.__name__ for c in classes))
            return ValueColumnSchema(DataType(object, flag))
        elements = [x for lst in lists for x in lst]
        element = None
        if elements:
            inner = infer_type(elements)
            element = inner.dtype if inner.dtype is not None else DataType(object, inner.nullable)
        return ValueColumnSchema(DataType(list, flag, element))

    if not classes:
        return ValueColumnSchema(DataType(object, True if nullable is None else nullable))

    kind = common_kind(classes)
    if kind is object and object not in classes:
        logger.debug("No common ancestor for %s, falling back to object", sorted(c.__name__ for c in classes))
    return ValueColumnSchema(DataType(kind, flag))
