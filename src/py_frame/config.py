"""Library-wide defaults."""

from __future__ import annotations
from dataclasses import dataclass


# How many rows/columns to show before inserting "..."
MAX_HEAD_ROWS = 5
MAX_HEAD_COLS = 8

# Prefix for generated marker names: DataFrameType1, DataFrameType2, ...
DEFAULT_MARKER_PREFIX = "DataFrameType"

# Name of the anonymous placeholder column
PLACEHOLDER_NAME = ""

# Missing-column policy used when a lookup does not pass one: fail, skip or create
DEFAULT_MISSING_POLICY = "fail"


@dataclass(frozen=True)
class SynthesisOptions:
    """
    Knobs for one marker synthesis session.

    Attributes
    ----------
    name_prefix : str
        Prefix for generated marker names.
    nested_open : bool
        Whether markers generated for nested group/frame columns are open.
    reuse_bases : bool
        When False, skip the greedy cover step and extend only the
        required (open) bases.
    """

    name_prefix: str = DEFAULT_MARKER_PREFIX
    nested_open: bool = False
    reuse_bases: bool = True
