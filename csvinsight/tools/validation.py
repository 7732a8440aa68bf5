"""Integrity checks run over a profiled table.

Validates row shape against the header line and cell values against the
resolved column types. Issues are collected, never raised.
"""

from __future__ import annotations

from typing import Optional

from csvinsight.models import (
    INCONSISTENT_ROW_LENGTH,
    MIXED_DATA_TYPE,
    NUMERIC,
    ColumnProfile,
    RawTable,
    ValidationIssue,
)
from csvinsight.tools.inference import is_missing, parse_number


def check_row_length(row_number: int, cell_count: int, width: int) -> Optional[ValidationIssue]:
    """Return an issue when a row's cell count differs from the header width."""
    if cell_count == width:
        return None
    return ValidationIssue(
        type=INCONSISTENT_ROW_LENGTH,
        row=row_number,
        message=f"Row {row_number} has {cell_count} cells but the header has {width} columns.",
    )


def check_numeric_cell(row_number: int, column: str, value: str) -> Optional[ValidationIssue]:
    """Return an issue when a non-empty cell of a numeric column is not a number."""
    if is_missing(value) or parse_number(value) is not None:
        return None
    return ValidationIssue(
        type=MIXED_DATA_TYPE,
        row=row_number,
        column=column,
        value=value,
        message=f'Row {row_number}: value "{value}" in numeric column "{column}" is not a number.',
    )


def validate_table(table: RawTable, profiles: list[ColumnProfile]) -> list[ValidationIssue]:
    """Run the row-length and mixed-type checks over every data row.

    Args:
        table: Parsed table; ``table.columns`` must line up with ``profiles``.
        profiles: Column profiles with resolved types.

    Returns:
        Issues in row-then-column order. A row with the wrong cell count gets
        only its row-length issue.
    """
    issues: list[ValidationIssue] = []
    numeric_columns = [
        (index, profile.name)
        for (index, _), profile in zip(table.columns, profiles)
        if profile.type == NUMERIC
    ]

    for row in table.rows:
        length_issue = check_row_length(row.line, len(row.cells), table.width)
        if length_issue is not None:
            issues.append(length_issue)
            continue
        for index, name in numeric_columns:
            cell_issue = check_numeric_cell(row.line, name, row.cells[index])
            if cell_issue is not None:
                issues.append(cell_issue)

    return issues


def summarize_issues(issues: list[ValidationIssue], limit: int = 5) -> Optional[str]:
    """Build the message shown while issues block analysis.

    Lists at most ``limit`` issue messages and counts the rest.

    Returns:
        The message, or None when there are no issues.
    """
    if not issues:
        return None
    lines = [f"Found {len(issues)} data integrity issue(s). Fix them before analysing the data:"]
    lines.extend(f"- {issue.message}" for issue in issues[:limit])
    remaining = len(issues) - limit
    if remaining > 0:
        lines.append(f"...and {remaining} more issue(s).")
    return "\n".join(lines)
