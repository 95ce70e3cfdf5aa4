"""Column name sanitization and uniquification utilities."""

from __future__ import annotations
import keyword
import re

_INVALID_LOWER = re.compile(r'[^a-z0-9_]+')
_INVALID = re.compile(r'[^0-9a-zA-Z_]+')


def _collapse(name: str, invalid: re.Pattern) -> str:
	"""Runs of invalid characters become one ``_``, edge underscores are dropped
	and a leading digit gets a ``c`` prefix."""
	cleaned = invalid.sub('_', name).strip('_')
	if cleaned and cleaned[0].isdigit():
		cleaned = "c" + cleaned
	return cleaned


def _sanitize_user_name(name) -> str | None:
	"""Lowercased attribute name for a column, None if nothing usable remains.

	>>> _sanitize_user_name("First Name"), _sanitize_user_name(2024), _sanitize_user_name("__")
	('first_name', 'c2024', None)
	"""
	if not isinstance(name, str):
		name = str(name)
	return _collapse(name.lower(), _INVALID_LOWER) or None


def _uniquify(base: str, seen) -> str:
	"""Make a unique name by adding __2, __3, etc if needed."""
	if base not in seen:
		return base

	i = 2
	while f"{base}__{i}" in seen:
		i += 1

	return f"{base}__{i}"


def _build_column_map(names) -> dict[str, int]:
	"""Map sanitized attribute names to column positions.

	Unnamed or unsanitizable columns get the system name ``col{idx}_``.
	"""
	column_map = {}
	seen = set()
	for idx, name in enumerate(names):
		base = _sanitize_user_name(name) if name else None
		if base is None:
			sanitized = f'col{idx}_'
		else:
			sanitized = _uniquify(base, seen)
			seen.add(sanitized)
		column_map[sanitized] = idx
	return column_map


def _field_name(column_name: str, index: int, used: set[str]) -> str:
	"""Identifier used for a marker field that reads ``column_name``.

	Valid identifiers are kept as they are (case preserved). Anything else is
	sanitized; keywords get a trailing underscore; empty names become ``_{index}``.
	"""
	if column_name.isidentifier() and not keyword.iskeyword(column_name):
		base = column_name
	else:
		base = _collapse(column_name, _INVALID) or f"_{index}"
		if keyword.iskeyword(base):
			base = base + '_'
	return _uniquify(base, used)


def _unique_marker_name(prefix: str, used) -> str:
	"""First free ``{prefix}{n}`` for n = 1, 2, ..."""
	i = 1
	while f"{prefix}{i}" in used:
		i += 1
	return f"{prefix}{i}"
