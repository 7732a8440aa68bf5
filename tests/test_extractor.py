"""Unit tests for the payload extractor."""

from __future__ import annotations

import json
import logging

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from csvinsight.extractor import (
    extract_payloads,
    parse_chart_spec,
    remove_blocks,
    scan_fenced_blocks,
)
from csvinsight.models import ChartPayloadMalformed, DatasetProfile


CSV_BLOCK = "```csv\nproduct,sales\nApple,150\nPear,80\n```"
CHART = {
    "type": "bar",
    "data": [{"product": "Apple", "sales": 150}, {"product": "Pear", "sales": 80}],
    "categoryKey": "product",
    "dataKey": "sales",
}
JSON_BLOCK = "```json\n" + json.dumps(CHART, indent=2) + "\n```"

# Free text around blocks; no backticks so it never forms a fence
prose = st.text(alphabet="abc XYZ.,:\n\t", max_size=40)


def _response(*blocks: str) -> str:
    return "Here is the cleaned data.\n\n" + "\n\n".join(blocks) + "\n\nLet me know what else you need."


class TestScanFencedBlocks:
    def test_finds_tagged_blocks(self):
        blocks = scan_fenced_blocks(_response(CSV_BLOCK, JSON_BLOCK))
        assert [b.tag for b in blocks] == ["csv", "json"]
        assert blocks[0].body == "product,sales\nApple,150\nPear,80\n"

    def test_tag_case_insensitive(self):
        blocks = scan_fenced_blocks("```CSV\na\n1\n```")
        assert blocks[0].tag == "csv"

    def test_untagged_block(self):
        blocks = scan_fenced_blocks("```\ncode\n```")
        assert blocks[0].tag == ""
        assert blocks[0].body == "code\n"

    def test_unterminated_fence_ignored(self):
        assert scan_fenced_blocks("text\n```csv\na,b\n1,2\n") == []

    def test_spans_cover_fences(self):
        text = "intro\n```json\n{}\n```\noutro"
        block = scan_fenced_blocks(text)[0]
        assert text[block.start:block.end] == "```json\n{}\n```"

    def test_crlf(self):
        block = scan_fenced_blocks("x\r\n```json\r\n{}\r\n```\r\ny")[0]
        assert block.tag == "json"
        assert block.body.strip() == "{}"

    def test_opener_after_text_on_same_line(self):
        text = "Chart: ```json\n{}\n```\nafter"
        block = scan_fenced_blocks(text)[0]
        assert block.tag == "json"
        assert text[block.start:block.end] == "```json\n{}\n```"

    def test_inline_code_span_not_an_opener(self):
        assert scan_fenced_blocks("use ```json``` here\n{}\n```") == []


class TestRemoveBlocks:
    def test_joins_with_blank_line(self):
        text = "before\n```csv\na\n```\n\n\nafter"
        assert remove_blocks(text, scan_fenced_blocks(text)) == "before\n\nafter"

    def test_block_at_edges(self):
        text = "```csv\na\n```\nonly text\n```json\n{}\n```"
        assert remove_blocks(text, scan_fenced_blocks(text)) == "only text"

    def test_nothing_removed(self):
        assert remove_blocks("  keep me  ", []) == "keep me"

    def test_indentation_after_block_kept(self):
        text = "Intro\n```csv\na\n1\n```\n\n    code line\nmore"
        assert remove_blocks(text, scan_fenced_blocks(text)) == "Intro\n\n    code line\nmore"


class TestParseChartSpec:
    def test_bar_chart(self):
        chart = parse_chart_spec(json.dumps(CHART))
        assert chart.type == "bar"
        assert chart.category_key == "product"
        assert chart.data_key == "sales"
        assert chart.x_key is None
        assert chart.to_dict() == CHART

    def test_scatter_chart(self):
        spec = {"type": "scatter", "data": [{"x": 1, "y": 2.5}], "xKey": "x", "yKey": "y"}
        chart = parse_chart_spec(json.dumps(spec))
        assert (chart.x_key, chart.y_key) == ("x", "y")
        assert chart.to_dict() == spec

    @pytest.mark.parametrize(
        "body",
        [
            "{not json",
            "[1, 2]",
            json.dumps({"type": "donut", "data": [], "categoryKey": "a", "dataKey": "b"}),
            json.dumps({"type": "bar", "data": {}, "categoryKey": "a", "dataKey": "b"}),
            json.dumps({"type": "bar", "data": [{"a": [1]}], "categoryKey": "a", "dataKey": "b"}),
            json.dumps({"type": "bar", "data": [{"a": True}], "categoryKey": "a", "dataKey": "b"}),
            json.dumps({"type": "bar", "data": [], "categoryKey": "a"}),
            json.dumps({"type": "scatter", "data": [], "categoryKey": "a", "dataKey": "b"}),
        ],
    )
    def test_rejected(self, body):
        with pytest.raises(ChartPayloadMalformed):
            parse_chart_spec(body)


class TestExtractPayloads:
    def test_plain_text_untouched(self):
        result = extract_payloads("  Just words.\n")
        assert result.text == "Just words."
        assert result.chart is None
        assert result.dataset_text is None

    def test_chart_and_dataset(self):
        result = extract_payloads(_response(CSV_BLOCK, JSON_BLOCK))
        assert result.text == "Here is the cleaned data.\n\nLet me know what else you need."
        assert result.chart.to_dict() == CHART
        assert isinstance(result.dataset_profile, DatasetProfile)
        assert [c.name for c in result.dataset_profile.columns] == ["product", "sales"]
        assert result.dataset_error is None
        assert not result.dataset_rejected

    def test_block_order_does_not_matter(self):
        forward = extract_payloads(_response(CSV_BLOCK, JSON_BLOCK))
        backward = extract_payloads(_response(JSON_BLOCK, CSV_BLOCK))
        assert forward.text == backward.text
        assert forward.chart == backward.chart
        assert forward.dataset_text == backward.dataset_text
        assert "```" not in forward.text

    def test_malformed_chart_dropped_and_logged(self, caplog):
        text = "Intro text.\n\n```json\n{\"type\": \"bar\", \n```\n\nOutro text."
        with caplog.at_level(logging.WARNING, logger="csvinsight.extractor"):
            result = extract_payloads(text)
        assert result.chart is None
        assert result.text == "Intro text.\n\nOutro text."
        assert "Dropping chart block" in caplog.text

    def test_rejected_dataset_keeps_text(self, caplog):
        text = "Could not clean.\n\n```csv\nonly_header\n```\n\nSorry."
        with caplog.at_level(logging.WARNING, logger="csvinsight.extractor"):
            result = extract_payloads(text)
        assert result.dataset_profile is None
        assert result.dataset_rejected
        assert result.dataset_error
        assert result.text == "Could not clean.\n\nSorry."
        assert "Rejecting replacement dataset" in caplog.text

    def test_first_block_of_each_tag_wins(self):
        second = "```json\n" + json.dumps({**CHART, "type": "line"}) + "\n```"
        result = extract_payloads(_response(JSON_BLOCK, second))
        assert result.chart.type == "bar"
        assert second in result.text

    def test_other_fences_passed_through(self):
        table = "```\n| a | b |\n|---|---|\n| 1 | 2 |\n```"
        result = extract_payloads(_response(table, JSON_BLOCK))
        assert table in result.text
        assert result.chart is not None

    def test_dataset_with_issues_still_accepted(self):
        result = extract_payloads("```csv\na,b\n1\n```")
        assert result.dataset_profile is not None
        assert not result.dataset_profile.is_valid
        assert result.text == ""

    def test_chart_opened_mid_line(self):
        result = extract_payloads("Chart: ```json\n" + json.dumps(CHART) + "\n```")
        assert result.chart.to_dict() == CHART
        assert result.text == "Chart:"

    @settings(max_examples=50, deadline=None)
    @given(prose, prose, prose)
    def test_block_order_never_matters(self, intro, middle, outro):
        def build(first, second):
            return "\n".join([intro, first, middle, second, outro])

        forward = extract_payloads(build(CSV_BLOCK, JSON_BLOCK))
        backward = extract_payloads(build(JSON_BLOCK, CSV_BLOCK))
        assert forward.text == backward.text
        assert forward.chart == backward.chart
        assert forward.dataset_text == backward.dataset_text
        assert "```" not in forward.text
