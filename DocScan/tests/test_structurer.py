"""
Tests for the document structurer.
"""

import pytest

from DocScan.schemas import HeaderElement, ParagraphElement, TableElement
from DocScan.structurer import is_separator_row, parse_document, split_row


class TestTables:
    def test_basic_table(self):
        elements = parse_document("a|b\n|---|---|\n1|2")
        assert elements == [TableElement(rows=[["a", "b"], ["1", "2"]])]

    def test_outer_pipes_and_padding(self):
        text = "| Name | Age |\n| --- | --- |\n| Rahim | 30 |\n| Karim | 25 |"
        (table,) = parse_document(text)
        assert table.rows == [["Name", "Age"], ["Rahim", "30"], ["Karim", "25"]]

    def test_stops_at_first_line_without_pipe(self):
        text = "a|b\n|---|---|\n1|2\nafter the table"
        elements = parse_document(text)
        assert elements[0] == TableElement(rows=[["a", "b"], ["1", "2"]])
        assert elements[1] == ParagraphElement(text="after the table")

    def test_ragged_rows_allowed(self):
        text = "a|b|c\n|---|---|---|\n1|2\nx|y|z|w"
        (table,) = parse_document(text)
        assert [len(r) for r in table.rows] == [3, 2, 4]

    def test_interior_empty_cell_kept(self):
        (table,) = parse_document("| a | | c |\n|---|---|---|\n| 1 | 2 | 3 |")
        assert table.rows[0] == ["a", "", "c"]

    def test_pipe_line_without_separator_is_paragraph(self):
        elements = parse_document("a|b\n1|2")
        assert elements == [ParagraphElement(text="a|b"), ParagraphElement(text="1|2")]

    def test_two_tables(self):
        text = "a|b\n|---|---|\n1|2\n\nc|d\n|---|---|\n3|4"
        elements = parse_document(text)
        assert [type(e) for e in elements] == [TableElement, TableElement]
        assert elements[1].rows == [["c", "d"], ["3", "4"]]

    def test_alignment_separator(self):
        (table,) = parse_document("a|b\n|:---|---:|\n1|2")
        assert table.rows == [["a", "b"], ["1", "2"]]


class TestHeaders:
    def test_level_two(self):
        assert parse_document("## Title") == [HeaderElement(level=2, text="Title")]

    def test_level_three(self):
        assert parse_document("### Sub") == [HeaderElement(level=3, text="Sub")]

    def test_leading_whitespace_trimmed(self):
        assert parse_document("   ####   Deep  ") == [HeaderElement(level=4, text="Deep")]

    def test_single_hash_is_paragraph(self):
        assert parse_document("# Not a header") == [ParagraphElement(text="# Not a header")]


class TestParagraphs:
    def test_verbatim(self):
        assert parse_document("  indented line") == [ParagraphElement(text="  indented line")]

    def test_blank_lines_dropped(self):
        elements = parse_document("one\n\n   \ntwo")
        assert elements == [ParagraphElement(text="one"), ParagraphElement(text="two")]

    def test_page_break_dropped(self):
        text = "page one\n\n--- Page Break ---\n\npage two"
        elements = parse_document(text)
        assert elements == [ParagraphElement(text="page one"), ParagraphElement(text="page two")]

    def test_empty_text(self):
        assert parse_document("") == []

    def test_mixed_document(self):
        text = "## Invoice\nIssued today\na|b\n|---|---|\n1|2\n### Notes\nPaid"
        kinds = [e.kind for e in parse_document(text)]
        assert kinds == ["header", "paragraph", "table", "header", "paragraph"]


class TestHelpers:
    @pytest.mark.parametrize("line", ["|---|---|", "| --- | --- |", "---|---", "|:---:|"])
    def test_separator_rows(self, line):
        assert is_separator_row(line)

    @pytest.mark.parametrize("line", ["a|b", "| --- | text |", "----", "|--|"])
    def test_not_separator_rows(self, line):
        assert not is_separator_row(line)

    def test_split_row(self):
        assert split_row("| a | b |") == ["a", "b"]
        assert split_row("a|b") == ["a", "b"]
