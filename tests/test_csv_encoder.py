"""Unit tests for csv_encoder."""
import csv
import io

import pytest
from models.table import ExtractedTable
from services.csv_encoder import (
    MERGED_FILENAME,
    encode_merged,
    encode_rows,
    encode_table,
    escape_csv_cell,
    merge_tables,
    table_filename,
)


def parse_csv(text):
    return list(csv.reader(io.StringIO(text)))


class TestEscapeCsvCell:
    """Tests for single-cell escaping."""

    def test_plain_cell_is_quoted(self):
        assert escape_csv_cell("North") == '"North"'

    def test_embedded_quotes_are_doubled(self):
        assert escape_csv_cell('say "hi"') == '"say ""hi"""'

    @pytest.mark.parametrize("cell", [None, ""])
    def test_empty_cells(self, cell):
        """None and empty strings encode as an empty quoted pair."""
        assert escape_csv_cell(cell) == '""'

    @pytest.mark.parametrize("cell", ["=SUM(A1:A3)", "+1", "-5", "@cmd"])
    def test_formula_prefix_is_neutralised(self, cell):
        """Cells starting with a formula character get a leading single quote."""
        assert escape_csv_cell(cell).startswith("\"'")
        assert escape_csv_cell(cell) == f"\"'{cell}\""

    def test_formula_guard_applies_before_quote_doubling(self):
        assert escape_csv_cell('=A1&"x"') == '"\'=A1&""x"""'

    def test_formula_character_inside_cell_is_untouched(self):
        assert escape_csv_cell("a-b") == '"a-b"'

    def test_non_string_values(self):
        assert escape_csv_cell(42) == '"42"'
        assert escape_csv_cell(0) == '"0"'


class TestEncodeTable:
    """Tests for whole-table encoding."""

    def test_rows_joined_by_newline_without_trailing_newline(self):
        text = encode_rows([["a", "b"], ["c", "d"]])
        assert text == '"a","b"\n"c","d"'

    def test_empty_table(self):
        assert encode_table(ExtractedTable(title="Empty", data=[])) == ""

    def test_round_trip_with_standard_parser(self):
        """Parsing the output recovers every cell, formula cells keep the guard quote."""
        data = [
            ["Name", "Note", "Formula"],
            ['Acme "Ltd"', "line, with comma", "=1+1"],
            ["", "multi\nline", "-3"],
        ]
        parsed = parse_csv(encode_table(ExtractedTable(title="t", data=data)))

        expected = [
            [("'" + cell) if cell[:1] in ("=", "+", "-", "@") else cell for cell in row]
            for row in data
        ]
        assert parsed == expected


class TestMergeTables:
    """Tests for multi-table merges."""

    def test_header_from_first_table_only(self):
        t1 = ExtractedTable(title="T1", data=[["H"], ["A"], ["B"]])
        t2 = ExtractedTable(title="T2", data=[["H2"], ["C"], ["D"]])

        assert merge_tables([t1, t2]) == [["H"], ["A"], ["B"], ["C"], ["D"]]

    def test_identical_headers_still_dropped(self):
        t1 = ExtractedTable(title="T1", data=[["H"], ["A"]])
        t2 = ExtractedTable(title="T2", data=[["H"], ["C"]])

        assert merge_tables([t1, t2]) == [["H"], ["A"], ["C"]]

    def test_single_table(self):
        t1 = ExtractedTable(title="T1", data=[["H"], ["A"]])
        assert merge_tables([t1]) == [["H"], ["A"]]

    def test_header_only_tables_contribute_no_rows(self):
        t1 = ExtractedTable(title="T1", data=[["H"]])
        t2 = ExtractedTable(title="T2", data=[["H2"]])
        assert merge_tables([t1, t2]) == [["H"]]

    def test_empty_first_table_has_no_header(self):
        t1 = ExtractedTable(title="T1", data=[])
        t2 = ExtractedTable(title="T2", data=[["H2"], ["C"]])
        assert merge_tables([t1, t2]) == [["C"]]

    def test_no_tables(self):
        assert merge_tables([]) == []

    def test_encode_merged(self):
        t1 = ExtractedTable(title="T1", data=[["Region", "Sales"], ["North", "100"]])
        t2 = ExtractedTable(title="T2", data=[["Region", "Sales"], ["South", "-20"]])

        assert encode_merged([t1, t2]) == '"Region","Sales"\n"North","100"\n"South","\'-20"'


class TestFilenames:
    """Tests for download filenames."""

    def test_title_is_sanitised_and_lower_cased(self):
        assert table_filename("Q3 Sales (EUR)") == "q3_sales__eur_.csv"

    def test_empty_title_uses_default(self):
        assert table_filename("") == "extracted_table.csv"

    def test_non_ascii_characters_replaced(self):
        assert table_filename("Café") == "caf_.csv"

    def test_merged_filename(self):
        assert MERGED_FILENAME == "merged_tables.csv"
