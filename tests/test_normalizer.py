"""
Normalizer and table parser tests - pytest based.
"""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

HEADER = "date,product,predicted_quantity,confidence_level"

class TestLineClassification:
    """Test fragment/complete/word classification."""

    def test_fragments(self):
        from forecast_report.backend.normalizer import LineKind, classify_line

        for line in ["2023-08-01", "SKU123", "120", "high", "Medium", "LOW"]:
            assert classify_line(line) is LineKind.FRAGMENT

    def test_complete_and_word_lines(self):
        from forecast_report.backend.normalizer import LineKind, classify_line

        assert classify_line(HEADER) is LineKind.COMPLETE
        assert classify_line("a,b,c,d,e") is LineKind.COMPLETE
        assert classify_line("ProductA") is LineKind.WORD
        assert classify_line("a,b,c") is LineKind.WORD
        assert classify_line("SKU12a") is LineKind.WORD

class TestNormalizer:
    """Test forecast CSV repair."""

    def test_well_formed_block_unchanged(self):
        from forecast_report.backend.normalizer import normalize_forecast_csv

        raw = f"{HEADER}\n2023-08-01,ProductA,120,high"
        assert normalize_forecast_csv(raw) == raw

    def test_fragmented_row_reassembled(self):
        from forecast_report.backend.normalizer import normalize_forecast_csv

        assert normalize_forecast_csv("2023-08-01\nProductA\n120\nhigh") == "2023-08-01,ProductA,120,high"

    def test_multi_word_product(self):
        from forecast_report.backend.normalizer import normalize_forecast_csv

        raw = "2023-08-01\nProduct\nAlpha\n120\nhigh"
        assert normalize_forecast_csv(raw) == "2023-08-01,Product Alpha,120,high"

    def test_whitespace_and_blank_lines(self):
        from forecast_report.backend.normalizer import normalize_forecast_csv

        raw = "  2023-08-01  \n\n SKU123\n   \n 50 \n Low "
        assert normalize_forecast_csv(raw) == "2023-08-01,SKU123,50,Low"

    def test_mixed_complete_and_fragmented(self):
        from forecast_report.backend.normalizer import normalize_forecast_csv

        raw = "\n".join([
            HEADER,
            "2023-08-01,ProductA,120,high",
            "2023-08-02",
            "ProductB",
            "80",
            "medium",
            "2023-08-03,ProductC,40,low",
        ])
        assert normalize_forecast_csv(raw).split("\n") == [
            HEADER,
            "2023-08-01,ProductA,120,high",
            "2023-08-02,ProductB,80,medium",
            "2023-08-03,ProductC,40,low",
        ]

    def test_idempotent_on_well_formed_body(self):
        from forecast_report.backend.normalizer import normalize_forecast_csv

        raw = f"{HEADER}\n2023-08-02\nProductB\n80\nmedium\n2023-08-03,ProductC,40,low"
        once = normalize_forecast_csv(raw)
        assert normalize_forecast_csv(once) == once

    def test_every_row_has_four_fields(self):
        from forecast_report.backend.normalizer import normalize_forecast_csv

        raw = "2023-08-01\nWidget\nLarge\n5\nhigh\n2023-08-02\nSKU7\n9\nlow\n2023-08-03\nGizmo"
        lines = normalize_forecast_csv(raw).split("\n")
        assert len(lines) == 2
        assert all(len(line.split(",")) == 4 for line in lines)

    def test_incomplete_trailing_row_dropped(self):
        from forecast_report.backend.normalizer import normalize_forecast_csv_with_stats

        normalized, stats = normalize_forecast_csv_with_stats(f"{HEADER}\n2023-08-01\nProductA")
        assert normalized == HEADER
        assert stats.dropped_partial_row
        assert stats.dropped_buffer == "2023-08-01,ProductA"

    def test_overlong_buffer_discarded(self):
        from forecast_report.backend.normalizer import normalize_forecast_csv_with_stats

        normalized, stats = normalize_forecast_csv_with_stats("2023-08-01\nSKU1\na,b,c")
        assert normalized == ""
        assert stats.discarded_rows == 1
        assert not stats.dropped_partial_row

    def test_stats_counters(self):
        from forecast_report.backend.normalizer import normalize_forecast_csv_with_stats

        raw = f"{HEADER}\n2023-08-01,ProductA,120,high\n2023-08-02\nProductB\n80\nmedium"
        _, stats = normalize_forecast_csv_with_stats(raw)
        assert stats.lines_read == 6
        assert stats.complete_lines == 2
        assert stats.assembled_rows == 1
        assert stats.rows_emitted == 3

    @pytest.mark.parametrize("raw", [None, "", "\n\n  \n", "high", 12345, "\x00,\"\n,,,"])
    def test_never_raises(self, raw):
        from forecast_report.backend.normalizer import normalize_forecast_csv

        assert isinstance(normalize_forecast_csv(raw), str)

class TestTableParser:
    """Test quote-aware splitting and table parsing."""

    def test_quoted_comma(self):
        from forecast_report.backend.table_parser import split_csv_line

        assert split_csv_line('a,"b,c",d') == ["a", "b,c", "d"]

    def test_cells_trimmed_and_last_cell_kept(self):
        from forecast_report.backend.table_parser import split_csv_line

        assert split_csv_line(" a , b ") == ["a", "b"]
        assert split_csv_line("a,") == ["a", ""]
        assert split_csv_line("") == [""]

    def test_unterminated_quote_tolerated(self):
        from forecast_report.backend.table_parser import split_csv_line

        assert split_csv_line('a,"b,c') == ["a", "b,c"]

    def test_conform_row(self):
        from forecast_report.backend.table_parser import conform_row

        assert conform_row(["a"], 3) == ["a", "", ""]
        assert conform_row(["a", "b", "c", "d"], 2) == ["a", "b"]

    def test_header_labels(self):
        from forecast_report.backend.table_parser import format_header_label

        assert format_header_label("predicted_quantity") == "Predicted Quantity"
        assert format_header_label("CONFIDENCE_LEVEL") == "Confidence Level"
        assert format_header_label("date") == "Date"

    def test_parse_table(self):
        from forecast_report.backend.table_parser import parse_table

        table = parse_table('date,product\r\n2023-08-01,"Widget, Large"\n\n2023-08-02\n')
        assert table.header == ["date", "product"]
        assert table.column_count == 2
        assert table.rows == [["2023-08-01", "Widget, Large"], ["2023-08-02", ""]]

    def test_parse_empty(self):
        from forecast_report.backend.table_parser import parse_table

        assert parse_table("").is_empty
        assert parse_table("\n \n").is_empty

if __name__ == "__main__":
    pytest.main([__file__, "-v"])
