"""
Parsing Agent: CSV block extraction, normalization, table parsing.
"""

from dataclasses import asdict
from typing import Dict, Any
from datetime import datetime
from forecast_report.agents.base_agent import BaseAgent, AgentResult
from forecast_report.backend.normalizer import normalize_forecast_csv_with_stats
from forecast_report.backend.table_parser import parse_table
from forecast_report.utils.forecast_text import extract_forecast_sections

class ParsingAgent(BaseAgent):
    """Turns raw model output into narrative text and a normalized table."""

    def __init__(self):
        super().__init__("ParsingAgent")

    def execute(self, task: Dict[str, Any]) -> AgentResult:
        """Split the response and repair its CSV block."""
        start = datetime.now()

        try:
            response = task.get("response", "") or ""
            self.log_step(f"Parsing response of {len(response)} characters")

            sections = extract_forecast_sections(response)
            result = {
                "forecast_text": sections.forecast_text,
                "forecast_csv": sections.forecast_csv,
                "normalized_csv": "",
                "header": [],
                "rows": [],
                "normalization": {},
            }

            if sections.has_table:
                normalized, stats = normalize_forecast_csv_with_stats(sections.forecast_csv)
                table = parse_table(normalized)
                if stats.dropped_partial_row or stats.discarded_rows:
                    self.log_step(
                        f"Normalization dropped data (partial buffer: {stats.dropped_partial_row}, "
                        f"discarded rows: {stats.discarded_rows})"
                    )
                self.log_step(f"Normalized {stats.lines_read} lines into {stats.rows_emitted} rows")
                result.update({
                    "normalized_csv": normalized,
                    "header": table.header,
                    "rows": table.rows,
                    "normalization": asdict(stats),
                })
            else:
                self.log_step("No CSV block found; narrative only")

            duration = (datetime.now() - start).total_seconds()

            return AgentResult(
                agent_name=self.name,
                success=True,
                data=result,
                duration_seconds=duration
            )

        except Exception as e:
            return self.failure(e, start)
