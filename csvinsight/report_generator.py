"""Markdown summaries of a dataset profile for the chat transcript."""

from __future__ import annotations

from typing import Optional

from csvinsight.models import CategoricalStats, DatasetProfile, NumericStats
from csvinsight.tools.validation import summarize_issues


def _format_stats(stats) -> str:
    if isinstance(stats, NumericStats):
        return (
            f"mean {stats.mean}, median {stats.median}, std {stats.std_dev}, "
            f"range {stats.min} to {stats.max}"
        )
    if isinstance(stats, CategoricalStats):
        return f"{stats.unique_values} unique value(s)"
    return "no values"


def render_upload_summary(profile: DatasetProfile, name: str, with_stats: bool = False) -> str:
    """List each column with its inferred type.

    Args:
        profile: Profile of the uploaded dataset.
        name: File name shown to the user.
        with_stats: Append a short statistics note per column.
    """
    lines = [
        f"Successfully uploaded **{name}** ({profile.row_count} rows). "
        "Inferred column types:",
        "",
    ]
    for col in profile.columns:
        line = f"*   **{col.name}**: {col.type}"
        if with_stats:
            line += f" ({_format_stats(col.stats)})"
        lines.append(line)
    return "\n".join(lines)


def render_missing_values_notice(profile: DatasetProfile) -> Optional[str]:
    """Suggest a cleaning pass when any column has missing values."""
    columns = profile.columns_with_missing_values()
    if not columns:
        return None
    names = ", ".join(f"`{col.name}`" for col in columns)
    return "\n".join([
        "**Data Quality Suggestion: Missing Values Detected**",
        "",
        f"I found missing values in the column(s): {names}.",
        "",
        "Choose a cleaning strategy for each column before analysing the data.",
    ])


def render_issue_report(profile: DatasetProfile, limit: int = 5) -> Optional[str]:
    """Markdown version of the issue gate, or None when the profile is clean."""
    summary = summarize_issues(profile.issues, limit)
    if summary is None:
        return None
    return "### Data Integrity Issues\n\n" + summary
