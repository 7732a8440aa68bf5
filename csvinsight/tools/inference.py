"""Type inference for single cells and whole columns."""

from __future__ import annotations

import math
from typing import Iterable, Optional

from csvinsight.config import BOOLEAN_TOKENS
from csvinsight.models import BOOLEAN, EMPTY, MIXED, NUMERIC, STRING


def is_missing(value: Optional[str]) -> bool:
    return value is None or value.strip() == ""


def parse_number(value: str) -> Optional[float]:
    """Return ``value`` as a finite float, or None if it is not one.

    Only plain ASCII literals count; ``float()`` also takes digit separators
    and non-ASCII digits, which are rejected here.
    """
    if not isinstance(value, str) or not value.isascii() or "_" in value:
        return None
    try:
        number = float(value)
    except (ValueError, TypeError):
        return None
    if not math.isfinite(number):
        return None
    return number


def classify_cell(value: Optional[str]) -> Optional[str]:
    """Classify one cell as Boolean, Numeric or String.

    Boolean tokens win over numbers, so ``"0"`` and ``"1"`` are Boolean.

    Returns:
        The cell type, or None for a missing cell.
    """
    if is_missing(value):
        return None
    if value.strip().lower() in BOOLEAN_TOKENS:
        return BOOLEAN
    if parse_number(value) is not None:
        return NUMERIC
    return STRING


def reduce_types(cell_types: Iterable[str]) -> str:
    """Collapse the cell types found in a column into one column type."""
    present = set(cell_types)
    if not present:
        return EMPTY
    if len(present) == 1:
        return next(iter(present))
    if STRING in present:
        return MIXED
    if present == {NUMERIC, BOOLEAN}:
        return NUMERIC
    return MIXED


def resolve_column_type(
    sample: Iterable[str],
    distinct_values: int,
    boolean_max_distinct: int = 2,
) -> str:
    """Resolve a column's type from its sampled cells.

    A resolved non-numeric column with at most ``boolean_max_distinct``
    distinct values is re-labeled Boolean.

    Args:
        sample: Cells used for inference; missing cells are ignored.
        distinct_values: Number of distinct non-missing values in the column.
        boolean_max_distinct: Re-labeling threshold.
    """
    resolved = reduce_types(t for t in (classify_cell(v) for v in sample) if t is not None)
    if resolved not in (EMPTY, NUMERIC) and 0 < distinct_values <= boolean_max_distinct:
        return BOOLEAN
    return resolved
