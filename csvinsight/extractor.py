"""Recover structured payloads embedded in free-form response text.

A response may carry one fenced ``csv`` block (a replacement dataset) and one
fenced ``json`` block (a chart specification), in any order. Recognised
blocks are removed from the text; everything else, other fenced blocks
included, is passed through for the rendering layer.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Optional

from csvinsight.config import CHART_REQUIRED_KEYS, CHART_TAG, DATASET_TAG, SUPPORTED_CHART_TYPES, ProfilerConfig
from csvinsight.models import ChartPayloadMalformed, ChartSpec, ExtractionResult, ParseFailure
from csvinsight.profiler import profile_csv

logger = logging.getLogger(__name__)

_FENCE_OPEN = re.compile(r"^ {0,3}```\s*([^\s`]*)[^`]*$")
# Tagged opener trailing other text on the same line, e.g. "Chart: ```json"
_INLINE_FENCE_OPEN = re.compile(r"(?<!`)```([A-Za-z0-9_+-]+)[ \t]*$")
_FENCE_CLOSE = re.compile(r"^ {0,3}```+\s*$")
_LEADING_BLANK_LINES = re.compile(r"\A(?:[ \t]*\r?\n)+")

_WIRE_KEYS = {
    "categoryKey": "category_key",
    "dataKey": "data_key",
    "xKey": "x_key",
    "yKey": "y_key",
}


@dataclass
class FencedBlock:
    """A fenced region; ``start``/``end`` span the fences themselves."""

    tag: str
    body: str
    start: int
    end: int


def scan_fenced_blocks(text: str) -> list[FencedBlock]:
    """Return every closed fenced block in order of appearance.

    Tags are lower-cased. A fence left open at the end of the text is not a
    block.
    """
    blocks: list[FencedBlock] = []
    offset = 0
    tag: Optional[str] = None
    start = 0
    body: list[str] = []

    for line in text.splitlines(keepends=True):
        content = line.rstrip("\r\n")
        if tag is None:
            match = _FENCE_OPEN.match(content) or _INLINE_FENCE_OPEN.search(content)
            if match:
                tag = match.group(1).lower()
                start = offset + match.start()
                body = []
        elif _FENCE_CLOSE.match(content):
            blocks.append(FencedBlock(tag=tag, body="".join(body), start=start, end=offset + len(content)))
            tag = None
        else:
            body.append(line)
        offset += len(line)

    return blocks


def select_blocks(blocks: list[FencedBlock], tags: tuple[str, ...]) -> dict[str, FencedBlock]:
    """Pick the first block for each wanted tag; later duplicates are ignored."""
    chosen: dict[str, FencedBlock] = {}
    for block in blocks:
        if block.tag in tags and block.tag not in chosen:
            chosen[block.tag] = block
    return chosen


def remove_blocks(text: str, blocks: list[FencedBlock]) -> str:
    """Cut ``blocks`` out of ``text``.

    Blank lines and trailing whitespace touching a removed block are dropped
    and the remaining pieces are joined by one blank line. Indentation of the
    first line after a block is kept.
    """
    spans = sorted((b.start, b.end) for b in blocks)
    pieces: list[str] = []
    cursor = 0
    for start, end in spans:
        pieces.append(text[cursor:start])
        cursor = end
    pieces.append(text[cursor:])

    last = len(pieces) - 1
    kept = []
    for i, piece in enumerate(pieces):
        if i > 0:
            piece = _LEADING_BLANK_LINES.sub("", piece)
        if i < last:
            piece = piece.rstrip()
        if piece.strip():
            kept.append(piece)
    return "\n\n".join(kept).strip()


def _is_flat_record(record) -> bool:
    if not isinstance(record, dict):
        return False
    return all(
        isinstance(key, str) and isinstance(value, (str, int, float)) and not isinstance(value, bool)
        for key, value in record.items()
    )


def parse_chart_spec(body: str) -> ChartSpec:
    """Parse and check a chart block body.

    Raises:
        ChartPayloadMalformed: If the body is not JSON, or the object lacks a
            supported ``type``, a ``data`` list of flat records, or the key
            pair its type needs.
    """
    try:
        payload = json.loads(body)
    except json.JSONDecodeError as exc:
        raise ChartPayloadMalformed(f"invalid JSON: {exc}") from exc

    if not isinstance(payload, dict):
        raise ChartPayloadMalformed("chart payload is not a JSON object")

    chart_type = payload.get("type")
    if chart_type not in SUPPORTED_CHART_TYPES:
        raise ChartPayloadMalformed(f"unsupported chart type: {chart_type!r}")

    data = payload.get("data")
    if not isinstance(data, list) or not all(_is_flat_record(r) for r in data):
        raise ChartPayloadMalformed("'data' must be a list of flat records")

    for key in CHART_REQUIRED_KEYS[chart_type]:
        if not isinstance(payload.get(key), str):
            raise ChartPayloadMalformed(f"{chart_type} chart requires a string '{key}'")

    keys = {
        attr: payload[wire]
        for wire, attr in _WIRE_KEYS.items()
        if isinstance(payload.get(wire), str)
    }
    return ChartSpec(type=chart_type, data=data, **keys)


def extract_payloads(text: str, config: Optional[ProfilerConfig] = None) -> ExtractionResult:
    """Split a response into clean text and its structured payloads.

    A chart block that fails to parse is dropped and logged. A dataset block
    whose text cannot be profiled is reported through ``dataset_error``.
    Both recognised blocks are removed from the returned text either way.

    Args:
        text: Free-form response text.
        config: Settings used to profile a replacement dataset.

    Returns:
        ExtractionResult with the residual text and any payloads.
    """
    chosen = select_blocks(scan_fenced_blocks(text), (DATASET_TAG, CHART_TAG))
    result = ExtractionResult(text=remove_blocks(text, list(chosen.values())))

    chart_block = chosen.get(CHART_TAG)
    if chart_block is not None:
        try:
            result.chart = parse_chart_spec(chart_block.body)
        except ChartPayloadMalformed as exc:
            logger.warning("Dropping chart block: %s", exc)

    dataset_block = chosen.get(DATASET_TAG)
    if dataset_block is not None:
        result.dataset_text = dataset_block.body
        try:
            result.dataset_profile = profile_csv(dataset_block.body, config)
        except ParseFailure as exc:
            logger.warning("Rejecting replacement dataset: %s", exc)
            result.dataset_error = str(exc)

    return result
