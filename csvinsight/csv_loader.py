"""Cell parser and CSV file loader.

Only plain comma-separated text is understood: a comma inside a quoted cell
still splits the cell, and quotes inside a cell are kept as written.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

import chardet

from csvinsight.config import ProfilerConfig
from csvinsight.models import EmptyInputError, ParseFailure, RawRow, RawTable

logger = logging.getLogger(__name__)


def clean_cell(value: str) -> str:
    """Trim whitespace and drop one pair of wrapping double quotes."""
    value = value.strip()
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        value = value[1:-1]
    return value


def split_line(line: str) -> list[str]:
    return [clean_cell(cell) for cell in line.split(",")]


def parse_csv_text(text: str) -> RawTable:
    """Split raw text into a header row and data rows of cleaned cells.

    Blank lines are skipped; every row remembers its 1-based line number in
    the text (the header line being line 1) so issues can point back at it.

    Args:
        text: Raw comma-separated text.

    Returns:
        RawTable with the header as written, empty names included.

    Raises:
        EmptyInputError: If fewer than two non-blank lines exist.
        ParseFailure: If every header name is empty.
    """
    lines = [line.rstrip("\r") for line in text.strip().split("\n")]
    numbered = [(i + 1, line) for i, line in enumerate(lines) if line.strip()]

    if len(numbered) < 2:
        raise EmptyInputError("Input needs a header line and at least one data line.")

    headers = split_line(numbered[0][1])
    if not any(headers):
        raise ParseFailure("Header line contains no column names.")

    rows = [RawRow(line=line_no, cells=split_line(line)) for line_no, line in numbered[1:]]
    return RawTable(headers=headers, rows=rows)


def _detect_encoding(file_path: str) -> str:
    """Detect file encoding using chardet, falling back to utf-8."""
    try:
        with open(file_path, "rb") as f:
            raw = f.read()
    except OSError:
        return "utf-8"
    if not raw:
        return "utf-8"
    encoding = chardet.detect(raw).get("encoding")
    return encoding or "utf-8"


def _read_with_encoding(file_path: str, encoding: str) -> Optional[str]:
    """Try reading a file with the given encoding. Returns text or None."""
    try:
        with open(file_path, "r", encoding=encoding, newline="") as f:
            return f.read()
    except (UnicodeDecodeError, LookupError):
        return None


def load_csv(file_path: str, config: Optional[ProfilerConfig] = None) -> dict:
    """Read a CSV file and profile it.

    Args:
        file_path: Path to the CSV file.
        config: Profiling settings; defaults apply when None.

    Returns:
        dict with keys:
            - "profile": DatasetProfile or None
            - "text": the decoded file text or None
            - "error": Optional[str] error message if loading failed
    """
    from csvinsight.profiler import profile_csv

    if not os.path.exists(file_path):
        return {"profile": None, "text": None, "error": f"File not found: {file_path}"}

    if not os.path.isfile(file_path):
        return {"profile": None, "text": None, "error": f"Path is not a file: {file_path}"}

    try:
        if os.path.getsize(file_path) == 0:
            return {"profile": None, "text": None, "error": "File is empty"}
    except OSError as e:
        return {"profile": None, "text": None, "error": f"Cannot read file: {e}"}

    encoding = _detect_encoding(file_path)
    text = _read_with_encoding(file_path, encoding)
    if text is None:
        text = _read_with_encoding(file_path, "utf-8")
    if text is None:
        # latin-1 maps every byte
        text = _read_with_encoding(file_path, "latin-1")
    if text is None:
        return {"profile": None, "text": None, "error": "Failed to decode file with any supported encoding"}

    if not text.strip():
        return {"profile": None, "text": text, "error": "File is empty"}

    try:
        profile = profile_csv(text, config)
    except ParseFailure as exc:
        logger.warning("Could not profile %s: %s", file_path, exc)
        return {"profile": None, "text": text, "error": f"Could not parse columns: {exc}"}

    logger.debug("Loaded %s as %s (%d rows)", file_path, encoding, profile.row_count)
    return {"profile": profile, "text": text, "error": None}
