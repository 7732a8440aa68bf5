"""Descriptive statistics for profiled columns."""

from __future__ import annotations

from typing import Optional, Union

import numpy as np
import pandas as pd

from csvinsight.models import NUMERIC, CategoricalStats, NumericStats, RawNumericStats
from csvinsight.tools.inference import is_missing, parse_number

# Above this magnitude squared deviations overflow, so values are rescaled
_SAFE_MAGNITUDE = 1e150


def compute_raw_numeric_stats(values: list[float]) -> Optional[RawNumericStats]:
    """Compute mean, median, population std, min and max.

    Very large inputs are scaled down by a power of two before averaging, so
    results stay finite whenever the inputs are.

    Args:
        values: Parsed numbers, in any order.

    Returns:
        Unrounded statistics, or None for an empty input.
    """
    if not values:
        return None
    arr = np.sort(np.asarray(values, dtype=float))
    shift = 0
    peak = float(np.max(np.abs(arr)))
    if peak > _SAFE_MAGNITUDE:
        shift = int(np.frexp(peak)[1]) - 1
    scaled = np.ldexp(arr, -shift)
    return RawNumericStats(
        mean=float(np.ldexp(np.mean(scaled), shift)),
        median=float(np.ldexp(np.median(scaled), shift)),
        std_dev=float(np.ldexp(np.std(scaled, ddof=0), shift)),
        min=float(arr[0]),
        max=float(arr[-1]),
    )


def describe_numeric(values: list[str], precision: int = 2) -> Optional[NumericStats]:
    """Numeric stats over the cells of a Numeric column.

    Missing cells and cells that do not parse as numbers are left out.
    """
    numbers = [n for n in (parse_number(v) for v in values if not is_missing(v)) if n is not None]
    raw = compute_raw_numeric_stats(numbers)
    if raw is None:
        return None
    return NumericStats(
        mean=round(raw.mean, precision),
        median=round(raw.median, precision),
        std_dev=round(raw.std_dev, precision),
        min=round(raw.min, precision),
        max=round(raw.max, precision),
        raw=raw,
    )


def describe_categorical(values: list[str]) -> Optional[CategoricalStats]:
    """Count each distinct non-missing value, keeping first-seen order."""
    present = [value for value in values if not is_missing(value)]
    if not present:
        return None
    counts = pd.Series(present, dtype=object).value_counts(sort=False)
    return CategoricalStats(value_counts={str(value): int(count) for value, count in counts.items()})


def compute_stats(
    column_type: str, values: list[str], precision: int = 2
) -> Optional[Union[NumericStats, CategoricalStats]]:
    """Dispatch to numeric or categorical statistics by resolved column type."""
    if column_type == NUMERIC:
        return describe_numeric(values, precision)
    return describe_categorical(values)
