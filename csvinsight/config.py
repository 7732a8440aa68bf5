"""Profiling configuration for the CSV insight engine."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Optional

# Case-insensitive tokens classified as Boolean before any numeric parse.
BOOLEAN_TOKENS = frozenset({"true", "false", "yes", "no", "0", "1"})

# Fence tags recognised by the payload extractor.
DATASET_TAG = "csv"
CHART_TAG = "json"

SUPPORTED_CHART_TYPES = ("bar", "line", "area", "scatter", "pie")

# Key pair each chart type needs to be plottable.
CHART_REQUIRED_KEYS = {
    "bar": ("categoryKey", "dataKey"),
    "line": ("categoryKey", "dataKey"),
    "area": ("categoryKey", "dataKey"),
    "pie": ("categoryKey", "dataKey"),
    "scatter": ("xKey", "yKey"),
}


@dataclass(frozen=True)
class ProfilerConfig:
    """Tunable knobs for a profiling pass.

    Attributes:
        sample_rows: Number of leading data rows used to infer column types.
            ``None`` infers from every row.
        precision: Decimal places kept in the stored numeric statistics.
        boolean_max_distinct: A non-numeric column with at most this many
            distinct values is re-labeled Boolean.
        max_reported_issues: How many validation issues the gate message lists.
    """

    sample_rows: Optional[int] = 50
    precision: int = 2
    boolean_max_distinct: int = 2
    max_reported_issues: int = 5


DEFAULT_CONFIG = ProfilerConfig()


def get_config(**overrides) -> ProfilerConfig:
    """
    Build a validated ProfilerConfig from the defaults.

    Args:
        **overrides: Field values replacing the defaults.

    Returns:
        A new frozen ProfilerConfig.

    Raises:
        ValueError: If a setting is unknown or out of range.
    """
    known = {f.name for f in fields(ProfilerConfig)}
    unknown = set(overrides) - known
    if unknown:
        raise ValueError(
            f"Unknown profiler setting(s): {sorted(unknown)}. "
            f"Supported settings: {sorted(known)}"
        )

    config = replace(DEFAULT_CONFIG, **overrides)

    if config.sample_rows is not None and config.sample_rows < 1:
        raise ValueError(f"sample_rows must be positive or None, got {config.sample_rows}")
    if config.precision < 0:
        raise ValueError(f"precision must be non-negative, got {config.precision}")
    if config.boolean_max_distinct < 0:
        raise ValueError(
            f"boolean_max_distinct must be non-negative, got {config.boolean_max_distinct}"
        )
    if config.max_reported_issues < 1:
        raise ValueError(
            f"max_reported_issues must be positive, got {config.max_reported_issues}"
        )

    return config
