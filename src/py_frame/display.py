"""Display and repr logic for columns and frames."""

from __future__ import annotations
from datetime import date
from typing import List

from .config import MAX_HEAD_COLS, MAX_HEAD_ROWS
from .naming import _build_column_map
from .schema import ColumnKind


def _needs_quoting(name: str) -> bool:
	"""A name needs quoting if it contains anything outside [A-Za-z0-9_]
	OR has leading/trailing whitespace."""
	if not name:
		return False
	if name != name.strip():
		return True
	return not all(c.isalnum() or c == "_" for c in name)


def _type_label(col) -> str:
	if col.kind is ColumnKind.GROUP:
		return "group"
	if col.kind is ColumnKind.FRAME:
		return "frame"
	return col.dtype.type_name + ("?" if col.dtype.nullable else "")


def _is_right_aligned(col) -> bool:
	return col.kind is ColumnKind.VALUE and col.dtype.is_numeric


def _preview_indices(n: int, max_preview: int = MAX_HEAD_ROWS) -> list:
	"""Row positions to show, with None marking the elided middle."""
	if n > max_preview * 2:
		return list(range(max_preview)) + [None] + list(range(n - max_preview, n))
	return list(range(n))


def _format_cell(col, v) -> str:
	if v is None:
		return "None"
	if col.kind is ColumnKind.GROUP:
		return "{" + ", ".join(f"{k}: {_format_nested(x)}" for k, x in v.items()) + "}"
	if col.kind is ColumnKind.FRAME:
		rows, cols = v.size()
		return f"[{rows}×{cols}]"
	if isinstance(v, float):
		return f"{v:.1f}" if v.is_integer() else f"{v:g}"
	if isinstance(v, date):
		return v.isoformat()
	if isinstance(v, str):
		return repr(v)
	return str(v)


def _format_nested(v) -> str:
	from .frame import Frame
	from .row import Row
	if isinstance(v, Row):
		return "{" + ", ".join(f"{k}: {_format_nested(x)}" for k, x in v.items()) + "}"
	if isinstance(v, Frame):
		rows, cols = v.size()
		return f"[{rows}×{cols}]"
	return repr(v)


def _format_column(col, indices) -> List[str]:
	"""Returns a list of strings representing that column, truncated for display."""
	out = ['...' if i is None else _format_cell(col, col._get(i)) for i in indices]

	# Align: numeric right, others left
	max_len = max(len(s) for s in out) if out else 0
	if _is_right_aligned(col):
		return [s.rjust(max_len) for s in out]
	return [s.ljust(max_len) for s in out]


def _compute_headers(cols, col_indices):
	"""Given frame columns and indices, returns display_names, sanitized_names, right-alignment flags."""
	column_map = _build_column_map(c.name for c in cols)
	by_position = {idx: san for san, idx in column_map.items()}

	display_names = []
	sanitized_names = []
	right = []
	for idx in col_indices:
		col = cols[idx]
		display_names.append(col.name or "")
		sanitized_names.append(by_position[idx])
		right.append(_is_right_aligned(col))
	return display_names, sanitized_names, right


def _header_rows(display_names, sanitized_names):
	"""Decide which header rows to show based on display vs sanitized names."""
	any_display = any(n for n in display_names if n != "...")
	any_mismatch = any(
		disp and san and disp != san and san != "..."
		for disp, san in zip(display_names, sanitized_names)
	)

	rows = []

	# Row 1: display names (quoted if needed)
	if any_display:
		row = []
		for name in display_names:
			if name == "...":
				row.append("...")
			elif _needs_quoting(name):
				row.append(repr(name))
			else:
				row.append(name if name else "")
		rows.append(row)

	# Row 2: sanitized names (if mismatch or no display names)
	if any_mismatch or not any_display:
		rows.append([("." + san) if san and san != "..." else san for san in sanitized_names])

	return rows


def _align_columns(formatted_cols, header_rows, right_aligned):
	"""Pad columns and headers to consistent widths."""
	num_cols = len(formatted_cols)
	col_widths = []

	# Compute desired width per column
	for c in range(num_cols):
		body_width = max(len(s) for s in formatted_cols[c]) if formatted_cols[c] else 0
		header_width = max(
			len(header_rows[r][c]) for r in range(len(header_rows))
		) if header_rows else 0
		col_widths.append(max(body_width, header_width))

	def pad(s, c):
		return s.rjust(col_widths[c]) if right_aligned[c] else s.ljust(col_widths[c])

	aligned_cols = [[pad(s, c) for s in formatted_cols[c]] for c in range(num_cols)]
	aligned_headers = [[pad(h, c) for c, h in enumerate(row)] for row in header_rows]
	return aligned_cols, aligned_headers


def _footer(frame, type_labels, truncated=False, shown=MAX_HEAD_COLS) -> str:
	"""Generate footer line based on shape and column types."""
	rows, cols = frame.size()
	if truncated:
		d = ", ".join(type_labels[:shown]) + ", ..., " + ", ".join(type_labels[-shown:])
	else:
		d = ", ".join(type_labels)
	return f"# {rows}×{cols} frame <{d}>"


def _repr_column(col) -> str:
	"""Pretty repr for a single column."""
	formatted = _format_column(col, _preview_indices(len(col)))

	header_text = ""
	if col.name:
		header_text = repr(col.name) if _needs_quoting(col.name) else col.name

	width = max([len(s) for s in formatted] + [len(header_text)])
	right = _is_right_aligned(col)

	lines = []
	if header_text:
		lines.append(header_text.rjust(width) if right else header_text.ljust(width))
	lines.extend(s.rjust(width) if right else s.ljust(width) for s in formatted)
	lines.append("")
	lines.append(f"# {len(col)} element {col.kind.value} column <{_type_label(col)}>")
	return "\n".join(lines)


def _repr_frame(frame) -> str:
	"""Pretty repr for a Frame."""
	cols = frame.columns()
	num_cols = len(cols)

	if num_cols == 0:
		return f"# {frame.rows_count()}×0 frame"

	truncated = num_cols > MAX_HEAD_COLS * 2

	if truncated:
		col_indices = list(range(MAX_HEAD_COLS)) + list(range(num_cols - MAX_HEAD_COLS, num_cols))
	else:
		col_indices = list(range(num_cols))

	disp, san, right = _compute_headers(cols, col_indices)
	type_labels = [_type_label(col) for col in cols]

	row_indices = _preview_indices(frame.rows_count())
	formatted_cols = [_format_column(cols[i], row_indices) for i in col_indices]

	# Insert "..." column if truncated
	if truncated:
		formatted_cols.insert(MAX_HEAD_COLS, ["..." for _ in row_indices])
		disp.insert(MAX_HEAD_COLS, "...")
		san.insert(MAX_HEAD_COLS, "...")
		right.insert(MAX_HEAD_COLS, False)

	header_rows = _header_rows(disp, san)
	aligned_cols, aligned_headers = _align_columns(formatted_cols, header_rows, right)

	lines = []
	for hrow in aligned_headers:
		lines.append("  ".join(hrow).rstrip())

	for r in range(len(row_indices)):
		lines.append("  ".join(col[r] for col in aligned_cols).rstrip())

	lines.append("")
	lines.append(_footer(frame, type_labels, truncated, MAX_HEAD_COLS))
	return "\n".join(lines)
