"""
Automated test suite - pytest based.
"""

import pytest
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

FRAGMENTED_RESPONSE = """**Summary**: demand for ProductA rises through August.

```csv
date,product,predicted_quantity,confidence_level
2023-08-01,ProductA,120,high
2023-08-02
ProductB
80
medium
2023-08-03
SKU42
15
low
```

Restock ProductA before mid-month."""

def large_response(rows):
    body = "\n".join(f"2023-08-{(i % 28) + 1:02d},Product{i},{100 + i},high" for i in range(rows))
    return f"Long forecast.\n```csv\ndate,product,predicted_quantity,confidence_level\n{body}\n```"

def inventory_item(i, **overrides):
    item = {
        "name": f"Item {i}", "sku": f"SKU{i:04d}", "tagId": f"TAG{i}", "description": "",
        "category": "Tools" if i % 2 else "Hardware", "quantity": i, "threshold": 5,
        "warehouseId": "W1", "zoneId": "Z1", "shelfId": "S1", "binId": f"B{i}",
        "status": "active", "inventoryStatus": "in_stock", "costPrice": 2, "retailPrice": 5,
    }
    item.update(overrides)
    return item

def pdf_text(data):
    import io
    import pypdf

    reader = pypdf.PdfReader(io.BytesIO(data))
    return reader, "\n".join(page.extract_text() or "" for page in reader.pages)

class TestConfiguration:
    """Test configuration loading."""

    def test_config_loading(self):
        from forecast_report.config import CONFIG
        assert CONFIG is not None
        assert CONFIG.table.margin > 0
        assert CONFIG.table.continued_label == "Forecast Data (Continued)"

    def test_from_env(self, monkeypatch):
        from forecast_report.config import SystemConfig

        monkeypatch.setenv("COMPANY_NAME", "Acme Stores")
        monkeypatch.setenv("PAGE_SIZE", "letter")
        monkeypatch.setenv("PAGE_MARGIN", "36")
        monkeypatch.setenv("OUTPUT_DIR", "reports")
        config = SystemConfig.from_env()
        assert config.branding.company_name == "Acme Stores"
        assert config.table.page_size == "LETTER"
        assert config.table.margin == 36.0
        assert config.output_dir == "reports"

    def test_table_style_from_config(self):
        from forecast_report.config import TableConfig
        from forecast_report.core.layout import TableStyle

        style = TableStyle.from_config(TableConfig(min_row_height=30))
        assert style.min_row_height == 30
        assert style.header_gradient == ("#003366", "#0066cc")

class TestAgents:
    """Test agent initialization and execution."""

    def test_agent_names(self):
        from forecast_report.agents.coordinator_agent import CoordinatorAgent
        coordinator = CoordinatorAgent()
        assert coordinator.name == "CoordinatorAgent"
        assert "parsing" in coordinator.agents
        assert "report" in coordinator.agents

    def test_parsing_agent(self):
        from forecast_report.agents.parsing_agent import ParsingAgent

        result = ParsingAgent().execute({"response": FRAGMENTED_RESPONSE})
        assert result.success
        assert result.data["header"] == ["date", "product", "predicted_quantity", "confidence_level"]
        assert result.data["rows"] == [
            ["2023-08-01", "ProductA", "120", "high"],
            ["2023-08-02", "ProductB", "80", "medium"],
            ["2023-08-03", "SKU42", "15", "low"],
        ]
        assert result.data["normalization"]["assembled_rows"] == 2
        assert result.data["forecast_text"].endswith("Restock ProductA before mid-month.")

    def test_parsing_agent_without_block(self):
        from forecast_report.agents.parsing_agent import ParsingAgent

        result = ParsingAgent().execute({"response": "No table today."})
        assert result.success
        assert result.data["header"] == []
        assert result.data["forecast_text"] == "No table today."

    def test_unknown_agent(self):
        from forecast_report.agents.coordinator_agent import CoordinatorAgent

        result = CoordinatorAgent()._execute_agent("missing", {})
        assert not result.success
        assert "Agent not found" in result.error

class TestReportGeneration:
    """Test PDF output end to end."""

    def test_forecast_report(self, tmp_path):
        from forecast_report.agents.coordinator_agent import CoordinatorAgent
        from forecast_report.config import CONFIG

        output = tmp_path / "forecast.pdf"
        result = CoordinatorAgent().execute({
            "task_id": "t1",
            "response": FRAGMENTED_RESPONSE,
            "output_path": str(output),
        })

        assert result.success, result.error
        assert output.exists()
        assert result.data["rows_drawn"] == 3
        assert result.data["table_rendered"]

        reader, text = pdf_text(output.read_bytes())
        assert len(reader.pages) == result.data["page_count"]
        assert reader.metadata.title == CONFIG.branding.report_title
        assert result.data["report_id"] in reader.metadata.subject
        assert "Forecast Analysis" in text
        assert "Forecast Data" in text
        assert "ProductB" in text
        assert "Summary" in text
        assert "**" not in text

    def test_multi_page_table(self):
        from forecast_report.agents.coordinator_agent import CoordinatorAgent

        result = CoordinatorAgent().execute({"response": large_response(150)})
        assert result.success, result.error
        assert result.data["rows_drawn"] == 150
        assert result.data["page_count"] >= 4

        reader, text = pdf_text(result.data["pdf"])
        assert "Forecast Data (Continued)" in text
        assert "Product149" in text
        assert "Page 1" in text

    def test_inventory_report(self):
        from forecast_report.agents.coordinator_agent import CoordinatorAgent

        records = [inventory_item(i) for i in range(1, 8)]
        result = CoordinatorAgent().execute({"response": "", "records": records, "title": "Stock Review"})
        assert result.success, result.error
        assert result.data["rows_drawn"] == 7

        reader, text = pdf_text(result.data["pdf"])
        assert reader.metadata.title == "Stock Review"
        assert "Inventory Summary" in text
        assert "Inventory Data" in text
        assert "SKU0007" in text

    def test_invalid_inventory_rejected(self):
        from forecast_report.agents.coordinator_agent import CoordinatorAgent

        result = CoordinatorAgent().execute({"response": "", "records": [{"name": "broken"}]})
        assert not result.success
        assert "Item 1 missing fields" in result.error

    def test_failed_table_keeps_narrative(self, monkeypatch):
        from forecast_report.agents.report_agent import ReportAgent
        from forecast_report.config import CONFIG

        monkeypatch.setattr(CONFIG.report, "include_inventory_summary", False)
        outcome = ReportAgent().build_pdf(
            forecast_text="Narrative survives.",
            header=["date", "product"],
            rows=[["2023-08-01", "ProductA"]],
            records=[inventory_item(1, quantity="lots")],
        )

        assert "records" in outcome.skipped_tables
        assert "forecast" in outcome.tables
        _, text = pdf_text(outcome.pdf)
        assert "Narrative survives." in text
        assert "ProductA" in text

    def test_empty_table_placeholder(self):
        from forecast_report.agents.report_agent import ReportAgent

        outcome = ReportAgent().build_pdf(forecast_text="Nothing yet.", header=["date"], rows=[])
        assert outcome.rows_drawn == 0
        _, text = pdf_text(outcome.pdf)
        assert "No forecast data available" in text

    def test_generate_pdf(self, tmp_path):
        from forecast_report.agents.report_agent import ReportAgent

        output = tmp_path / "nested" / "report.pdf"
        assert ReportAgent().generate_pdf({"forecast_text": "Plain text only."}, str(output))
        assert output.read_bytes().startswith(b"%PDF")

    def test_letter_page_size(self):
        from forecast_report.core.surface import ReportLabSurface

        surface = ReportLabSurface(page_size="letter")
        assert surface.page_width == pytest.approx(612)
        assert surface.page_height == pytest.approx(792)
        with pytest.raises(ValueError):
            ReportLabSurface(page_size="A0")

class TestCommandLine:
    """Test the main.py entry point."""

    def test_cli_generates_report(self, tmp_path, monkeypatch):
        import main

        monkeypatch.chdir(tmp_path)
        response = tmp_path / "response.txt"
        response.write_text(FRAGMENTED_RESPONSE, encoding="utf-8")
        output = tmp_path / "out" / "report.pdf"

        assert main.main(["--response", str(response), "--output", str(output)])
        assert output.exists()

    def test_cli_inventory_file(self, tmp_path, monkeypatch):
        import json
        import main

        monkeypatch.chdir(tmp_path)
        inventory = tmp_path / "inventory.json"
        inventory.write_text(json.dumps([inventory_item(1), inventory_item(2)]), encoding="utf-8")
        output = tmp_path / "inventory.pdf"

        assert main.main(["--inventory", str(inventory), "--output", str(output)])
        assert output.exists()

    def test_cli_missing_input(self, tmp_path, monkeypatch):
        import main

        monkeypatch.chdir(tmp_path)
        assert not main.main([])
        assert not main.main(["--response", str(tmp_path / "missing.txt")])

if __name__ == "__main__":
    pytest.main([__file__, "-v"])
