"""Profile aggregator: raw CSV text in, column profiles and issues out."""

from __future__ import annotations

import logging
import math
from typing import Optional

import pandas as pd

from csvinsight.config import DEFAULT_CONFIG, ProfilerConfig
from csvinsight.csv_loader import parse_csv_text
from csvinsight.models import EMPTY, CategoricalStats, ColumnProfile, DatasetProfile, NumericStats, RawTable
from csvinsight.tools.inference import is_missing, resolve_column_type
from csvinsight.tools.statistics import compute_stats
from csvinsight.tools.validation import validate_table

logger = logging.getLogger(__name__)


def profile_column(name: str, values: list[str], config: ProfilerConfig = DEFAULT_CONFIG) -> ColumnProfile:
    """Resolve type, count missing cells and compute stats for one column.

    Args:
        name: Column name.
        values: Every cell of the column, ``""`` where a row was short.
        config: Profiling settings.
    """
    present = [v for v in values if not is_missing(v)]
    sample = values if config.sample_rows is None else values[: config.sample_rows]
    distinct = len(set(present))
    column_type = resolve_column_type(sample, distinct, config.boolean_max_distinct)
    if column_type == EMPTY and present:
        # sample held only blanks
        column_type = resolve_column_type(values, distinct, config.boolean_max_distinct)
    return ColumnProfile(
        name=name,
        type=column_type,
        total_rows=len(values),
        missing_count=len(values) - len(present),
        stats=compute_stats(column_type, present, config.precision),
    )


def profile_table(table: RawTable, config: ProfilerConfig = DEFAULT_CONFIG) -> list[ColumnProfile]:
    return [profile_column(name, table.column_values(index), config) for index, name in table.columns]


def profile_csv(text: str, config: Optional[ProfilerConfig] = None) -> DatasetProfile:
    """Run one full profiling pass.

    Every call starts from ``text`` alone; nothing from earlier passes is
    reused.

    Args:
        text: Raw comma-separated text.
        config: Profiling settings; defaults apply when None.

    Returns:
        DatasetProfile with one ColumnProfile per non-empty header and the
        validation issues.

    Raises:
        ParseFailure: If the text is blank, has no data line, or has no
            usable header.
    """
    config = config or DEFAULT_CONFIG
    table = parse_csv_text(text)
    columns = profile_table(table, config)
    issues = validate_table(table, columns)
    logger.debug(
        "Profiled %d columns over %d rows, %d issue(s)", len(columns), len(table.rows), len(issues)
    )
    return DatasetProfile(columns=columns, issues=issues, row_count=len(table.rows), raw_text=text)


def profiles_to_frame(profile: DatasetProfile) -> pd.DataFrame:
    """Return one row per column summarising the profile.

    Numeric stat columns are NaN for non-numeric columns; ``unique_values`` is
    NaN for numeric ones.
    """
    records = []
    for col in profile.columns:
        record = {
            "name": col.name,
            "type": col.type,
            "total_rows": col.total_rows,
            "missing_count": col.missing_count,
            "missing_pct": round(col.missing_count / col.total_rows * 100, 2) if col.total_rows else 0.0,
            "unique_values": math.nan,
            "mean": math.nan,
            "median": math.nan,
            "std_dev": math.nan,
            "min": math.nan,
            "max": math.nan,
        }
        if isinstance(col.stats, NumericStats):
            record.update(
                mean=col.stats.mean,
                median=col.stats.median,
                std_dev=col.stats.std_dev,
                min=col.stats.min,
                max=col.stats.max,
            )
        elif isinstance(col.stats, CategoricalStats):
            record["unique_values"] = col.stats.unique_values
        records.append(record)

    frame = pd.DataFrame.from_records(
        records,
        columns=[
            "name", "type", "total_rows", "missing_count", "missing_pct",
            "unique_values", "mean", "median", "std_dev", "min", "max",
        ],
    )
    return frame
