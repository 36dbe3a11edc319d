"""
Structured inventory record and response helper tests.
"""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

def make_item(**overrides):
    item = {
        "name": "Widget",
        "sku": "SKU100",
        "tagId": "TAG-1",
        "description": "Standard widget",
        "category": "Tools",
        "quantity": 5,
        "threshold": 10,
        "warehouseId": "W1",
        "zoneId": "Z1",
        "shelfId": "S1",
        "binId": "B1",
        "status": "active",
        "inventoryStatus": "in_stock",
        "costPrice": 2.5,
        "retailPrice": 4,
    }
    item.update(overrides)
    return item

class TestInventoryRecords:
    """Test record conversion and validation."""

    def test_to_row(self):
        from forecast_report.backend.records import InventoryRecord

        record = InventoryRecord.from_mapping(make_item())
        assert record.to_row() == ["Widget", "SKU100", "Tools", "5", "10", "2.50", "4.00", "active", "W1/Z1/S1/B1"]
        assert record.tag_id == "TAG-1"
        assert record.inventory_status == "in_stock"
        assert record.is_low_stock

    def test_snake_case_mapping(self):
        from forecast_report.backend.records import InventoryRecord

        record = InventoryRecord.from_mapping({
            "name": "Bolt", "sku": "SKU2", "category": "Hardware",
            "quantity": "100", "threshold": "10", "cost_price": "0.1", "retail_price": 0.25,
        })
        assert record.quantity == 100
        assert record.cost_price == pytest.approx(0.1)
        assert not record.is_low_stock
        assert record.location == "///"

    def test_from_mapping_errors(self):
        from forecast_report.backend.records import InventoryRecord

        with pytest.raises(ValueError, match="missing fields"):
            InventoryRecord.from_mapping({"name": "Widget"})
        with pytest.raises(ValueError, match="non-numeric"):
            InventoryRecord.from_mapping(make_item(quantity="many"))

    def test_validate_inventory(self):
        from forecast_report.backend.records import validate_inventory

        errors = validate_inventory([make_item(), {"name": "x", "quantity": 1}, "bad"])
        assert len(errors) == 2
        assert errors[0].startswith("Item 2 missing fields: sku, tagId, description, category")
        assert "quantity" not in errors[0]
        assert errors[1] == "Item 3 is not an object"
        assert validate_inventory([make_item()]) == []

    def test_coerce_rejects_non_mapping_rows(self):
        from forecast_report.backend.records import coerce_records

        with pytest.raises(ValueError, match="Row 2 is not an inventory record: list"):
            coerce_records([make_item(), [1, 2, 3]])

    def test_records_to_rows(self):
        from forecast_report.backend.records import STRUCTURED_HEADER, InventoryRecord, records_to_rows

        header, rows = records_to_rows([make_item(), InventoryRecord.from_mapping(make_item(sku="SKU101"))])
        assert header == STRUCTURED_HEADER
        assert [row[1] for row in rows] == ["SKU100", "SKU101"]
        assert all(len(row) == len(header) for row in rows)

class TestInventorySummary:
    """Test pandas-based summary statistics."""

    def test_summary(self):
        from forecast_report.backend.records import summarize_inventory

        summary = summarize_inventory([
            make_item(),
            make_item(name="Gadget", sku="SKU200", quantity=20, costPrice=1.0),
            make_item(name="Bolt", sku="SKU300", category="Hardware", quantity=100, costPrice=0.1),
        ])

        assert summary.total_items == 3
        assert summary.total_quantity == 125
        assert summary.total_value == pytest.approx(42.5)
        assert list(summary.categories) == ["Tools", "Hardware"]
        assert summary.categories["Tools"]["count"] == 2
        assert summary.categories["Tools"]["quantity"] == 25
        assert summary.categories["Tools"]["value"] == pytest.approx(32.5)
        assert len(summary.low_stock) == 1
        assert summary.low_stock[0]["sku"] == "SKU100"
        assert summary.low_stock[0]["quantity"] == 5

        lines = summary.summary_lines()
        assert "Total Items: 3" in lines
        assert "Total Inventory Value: $42.50" in lines
        assert "- Widget (SKU100): 5 units (threshold: 10)" in lines

    def test_empty_summary(self):
        from forecast_report.backend.records import summarize_inventory

        summary = summarize_inventory([])
        assert summary.total_items == 0
        assert "- No items below threshold" in summary.summary_lines()

class TestForecastText:
    """Test response splitting and markdown cleanup."""

    def test_extract_sections(self):
        from forecast_report.utils.forecast_text import extract_forecast_sections

        response = (
            "Demand rises in August.\n"
            "```csv\n"
            "date,product,predicted_quantity,confidence_level\n"
            "2023-08-01,ProductA,120,high\n"
            "```\n"
            "Restock early."
        )
        sections = extract_forecast_sections(response)
        assert sections.has_table
        assert sections.forecast_csv == "date,product,predicted_quantity,confidence_level\n2023-08-01,ProductA,120,high"
        assert sections.forecast_text == "Demand rises in August.\n\nRestock early."

    def test_no_block(self):
        from forecast_report.utils.forecast_text import extract_forecast_sections

        sections = extract_forecast_sections("Just prose. ")
        assert sections.forecast_text == "Just prose. "
        assert sections.forecast_csv is None
        assert not sections.has_table

    def test_clean_markdown(self):
        from forecast_report.utils.forecast_text import clean_markdown

        text = "**Bold** and *it* [link](http://example.com)\n## Heading"
        assert clean_markdown(text) == "Bold and it link\nHeading"
        assert clean_markdown(None) == "No data available"
        assert clean_markdown("") == "No data available"

if __name__ == "__main__":
    pytest.main([__file__, "-v"])
