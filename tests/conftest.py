"""Shared Hypothesis strategies for property-based tests.

Provides strategies that build well-formed CSV text with known column
contents, used across the profiling test modules.
"""

from __future__ import annotations

from hypothesis import strategies as st


# ---------------------------------------------------------------------------
# numeric_csv_texts — rectangular tables whose every cell is a number
# ---------------------------------------------------------------------------


@st.composite
def numeric_csv_texts(
    draw: st.DrawFn,
    min_rows: int = 1,
    max_rows: int = 30,
    min_cols: int = 1,
    max_cols: int = 6,
) -> dict:
    """Generate CSV text where every column holds only numbers.

    Integers 2 and above plus non-integral floats are used so no cell is
    mistaken for a Boolean token.

    Returns
    -------
    dict with keys:
        - "text": the CSV text
        - "columns": dict of column name -> list of float values
    """
    n_rows = draw(st.integers(min_value=min_rows, max_value=max_rows))
    n_cols = draw(st.integers(min_value=min_cols, max_value=max_cols))

    number = st.one_of(
        st.integers(min_value=2, max_value=10_000),
        st.floats(min_value=-1e4, max_value=1e4, allow_nan=False, allow_infinity=False).filter(
            lambda x: x != int(x)
        ),
    )

    columns: dict[str, list[float]] = {}
    for i in range(n_cols):
        columns[f"col_{i}"] = draw(st.lists(number, min_size=n_rows, max_size=n_rows))

    names = list(columns)
    lines = [",".join(names)]
    for r in range(n_rows):
        lines.append(",".join(repr(columns[name][r]) for name in names))

    return {"text": "\n".join(lines), "columns": {k: [float(v) for v in vs] for k, vs in columns.items()}}


# ---------------------------------------------------------------------------
# mixed_csv_texts — tables with blanks, words and numbers
# ---------------------------------------------------------------------------


@st.composite
def mixed_csv_texts(draw: st.DrawFn, max_rows: int = 30, max_cols: int = 5) -> str:
    """Generate rectangular CSV text with missing cells and mixed content."""
    n_rows = draw(st.integers(min_value=1, max_value=max_rows))
    n_cols = draw(st.integers(min_value=1, max_value=max_cols))

    cell = st.one_of(
        st.just(""),
        st.just("   "),
        st.sampled_from(["yes", "No", "TRUE", "0", "1"]),
        st.integers(min_value=-500, max_value=500).map(str),
        st.text(alphabet=st.characters(whitelist_categories=("L",), max_codepoint=127), min_size=1, max_size=8),
    )

    # Leading id column keeps every data line non-blank
    lines = ["id," + ",".join(f"h{i}" for i in range(n_cols))]
    for r in range(n_rows):
        cells = draw(st.lists(cell, min_size=n_cols, max_size=n_cols))
        lines.append(f"{r + 2}," + ",".join(cells))
    return "\n".join(lines)
