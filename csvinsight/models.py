"""Core data models for the CSV profiling and payload extraction engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union

from typing_extensions import NotRequired, TypedDict

# Cell classifications
NUMERIC = "Numeric"
BOOLEAN = "Boolean"
STRING = "String"

# Column-only resolutions
MIXED = "String (Mixed)"
EMPTY = "Empty"

CELL_TYPES = (NUMERIC, BOOLEAN, STRING)
COLUMN_TYPES = (NUMERIC, BOOLEAN, STRING, MIXED, EMPTY)

# Validation issue kinds
INCONSISTENT_ROW_LENGTH = "INCONSISTENT_ROW_LENGTH"
MIXED_DATA_TYPE = "MIXED_DATA_TYPE"


class ParseFailure(ValueError):
    """Raised when raw text cannot be turned into a usable table."""


class EmptyInputError(ParseFailure):
    """Raised when the text has no header line plus at least one data line."""


class ChartPayloadMalformed(ValueError):
    """Raised when a chart block does not hold a usable chart specification."""


# ---------------------------------------------------------------------------
# Wire shapes
# ---------------------------------------------------------------------------


class NumericStatsDict(TypedDict):
    mean: float
    median: float
    stdDev: float
    min: float
    max: float


class CategoricalStatsDict(TypedDict):
    valueCounts: dict[str, int]
    uniqueValues: int


class ColumnProfileDict(TypedDict):
    name: str
    type: str
    hasMissingValues: bool
    totalRows: int
    missingCount: int
    stats: NotRequired[Union[NumericStatsDict, CategoricalStatsDict]]


class ValidationIssueDict(TypedDict):
    type: str
    row: int
    column: NotRequired[str]
    value: NotRequired[str]
    message: str


class ChartSpecDict(TypedDict):
    type: str
    data: list[dict[str, Union[str, int, float]]]
    categoryKey: NotRequired[str]
    dataKey: NotRequired[str]
    xKey: NotRequired[str]
    yKey: NotRequired[str]


# ---------------------------------------------------------------------------
# Parsed table
# ---------------------------------------------------------------------------


@dataclass
class RawRow:
    """One data line split into trimmed cells."""

    line: int
    cells: list[str]


@dataclass
class RawTable:
    """Header names and data rows as produced by the cell parser.

    ``headers`` keeps empty header names so ``width`` reflects the header line
    as written; ``columns`` lists only the usable ones with their position.
    """

    headers: list[str]
    rows: list[RawRow] = field(default_factory=list)

    @property
    def width(self) -> int:
        return len(self.headers)

    @property
    def columns(self) -> list[tuple[int, str]]:
        return [(i, name) for i, name in enumerate(self.headers) if name]

    def column_values(self, index: int) -> list[str]:
        """Return the cell at ``index`` for every row, ``""`` where a row is short."""
        return [row.cells[index] if index < len(row.cells) else "" for row in self.rows]


# ---------------------------------------------------------------------------
# Statistics and profiles
# ---------------------------------------------------------------------------


@dataclass
class RawNumericStats:
    """Unrounded numeric statistics."""

    mean: float
    median: float
    std_dev: float
    min: float
    max: float


@dataclass
class NumericStats:
    """Numeric statistics rounded for display, with the exact values in ``raw``."""

    mean: float
    median: float
    std_dev: float
    min: float
    max: float
    raw: Optional[RawNumericStats] = None

    def to_dict(self) -> NumericStatsDict:
        return {
            "mean": self.mean,
            "median": self.median,
            "stdDev": self.std_dev,
            "min": self.min,
            "max": self.max,
        }


@dataclass
class CategoricalStats:
    """Frequency of each distinct non-missing value."""

    value_counts: dict[str, int] = field(default_factory=dict)

    @property
    def unique_values(self) -> int:
        return len(self.value_counts)

    def to_dict(self) -> CategoricalStatsDict:
        return {"valueCounts": dict(self.value_counts), "uniqueValues": self.unique_values}


@dataclass
class ColumnProfile:
    """Resolved type, missing-value counts and statistics for one column."""

    name: str
    type: str
    total_rows: int
    missing_count: int
    stats: Optional[Union[NumericStats, CategoricalStats]] = None

    @property
    def has_missing_values(self) -> bool:
        return self.missing_count > 0

    def to_dict(self) -> ColumnProfileDict:
        result: ColumnProfileDict = {
            "name": self.name,
            "type": self.type,
            "hasMissingValues": self.has_missing_values,
            "totalRows": self.total_rows,
            "missingCount": self.missing_count,
        }
        if self.stats is not None:
            result["stats"] = self.stats.to_dict()
        return result


@dataclass
class ValidationIssue:
    """A row-shape or cell-type problem found after profiling."""

    type: str
    row: int
    message: str
    column: Optional[str] = None
    value: Optional[str] = None

    def to_dict(self) -> ValidationIssueDict:
        result: ValidationIssueDict = {"type": self.type, "row": self.row, "message": self.message}
        if self.column is not None:
            result["column"] = self.column
        if self.value is not None:
            result["value"] = self.value
        return result


@dataclass
class DatasetProfile:
    """Outcome of one profiling pass over a complete raw text."""

    columns: list[ColumnProfile]
    issues: list[ValidationIssue]
    row_count: int
    raw_text: str

    @property
    def is_valid(self) -> bool:
        return not self.issues

    def column(self, name: str) -> Optional[ColumnProfile]:
        """Return the first column called ``name``, or None."""
        for col in self.columns:
            if col.name == name:
                return col
        return None

    def columns_with_missing_values(self) -> list[ColumnProfile]:
        return [col for col in self.columns if col.has_missing_values]

    def to_dict(self) -> dict:
        return {
            "columns": [col.to_dict() for col in self.columns],
            "issues": [issue.to_dict() for issue in self.issues],
            "rowCount": self.row_count,
        }


# ---------------------------------------------------------------------------
# Structured payloads
# ---------------------------------------------------------------------------


@dataclass
class ChartSpec:
    """A chart recovered from a response; which key pair is set depends on ``type``."""

    type: str
    data: list[dict[str, Union[str, int, float]]]
    category_key: Optional[str] = None
    data_key: Optional[str] = None
    x_key: Optional[str] = None
    y_key: Optional[str] = None

    def to_dict(self) -> ChartSpecDict:
        result: ChartSpecDict = {"type": self.type, "data": [dict(r) for r in self.data]}
        for wire_key, value in (
            ("categoryKey", self.category_key),
            ("dataKey", self.data_key),
            ("xKey", self.x_key),
            ("yKey", self.y_key),
        ):
            if value is not None:
                result[wire_key] = value  # type: ignore[literal-required]
        return result


@dataclass
class ExtractionResult:
    """Residual text plus whatever structured payloads were recovered."""

    text: str
    chart: Optional[ChartSpec] = None
    dataset_text: Optional[str] = None
    dataset_profile: Optional[DatasetProfile] = None
    dataset_error: Optional[str] = None

    @property
    def dataset_rejected(self) -> bool:
        return self.dataset_text is not None and self.dataset_profile is None
