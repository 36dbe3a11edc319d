"""
Coordinator Agent: Orchestrates parsing and report generation.
"""

from typing import Dict, Any
from datetime import datetime
from forecast_report.agents.base_agent import BaseAgent, AgentResult
from forecast_report.agents.parsing_agent import ParsingAgent
from forecast_report.agents.report_agent import ReportAgent
from forecast_report.backend.records import validate_inventory

class CoordinatorAgent(BaseAgent):
    """High-level controller for the forecast report pipeline."""

    def __init__(self):
        super().__init__("CoordinatorAgent")
        self.agents = {
            "parsing": ParsingAgent(),
            "report": ReportAgent(),
        }

    def execute(self, task: Dict[str, Any]) -> AgentResult:
        """Parse the model response, then build the PDF."""
        start = datetime.now()
        task_id = task.get("task_id", "default")

        try:
            self.log_step(f"Starting orchestration for task: {task_id}")

            records = task.get("records") or []
            if records:
                errors = validate_inventory(records)
                if errors:
                    raise ValueError(f"Invalid inventory data: {'; '.join(errors)}")

            # Phase 1: Parse model output
            parse_result = self._execute_agent("parsing", {"response": task.get("response", "")})
            if not parse_result.success:
                raise RuntimeError(f"Parsing failed: {parse_result.error}")
            parsed = parse_result.data

            # Phase 2: Build report
            report_task = {
                "forecast_text": parsed.get("forecast_text", ""),
                "header": parsed.get("header", []),
                "rows": parsed.get("rows", []),
                "records": records,
                "title": task.get("title"),
                "output_path": task.get("output_path"),
            }
            report_result = self._execute_agent("report", report_task)
            if not report_result.success:
                raise RuntimeError(f"Report generation failed: {report_result.error}")
            report = report_result.data

            result = {
                "task_id": task_id,
                "status": "completed",
                "output_path": report.get("output_path"),
                "report_id": report.get("report_id"),
                "page_count": report.get("page_count", 0),
                "rows_drawn": report.get("rows_drawn", 0),
                "table_rendered": bool(report.get("tables_rendered")),
                "tables_skipped": report.get("tables_skipped", {}),
                "normalization": parsed.get("normalization", {}),
                "pdf": report.get("pdf", b""),
            }

            duration = (datetime.now() - start).total_seconds()

            return AgentResult(
                agent_name=self.name,
                success=True,
                data=result,
                duration_seconds=duration
            )

        except Exception as e:
            return self.failure(e, start)

    def _execute_agent(self, agent_key: str, task: Dict[str, Any]) -> AgentResult:
        """Execute single agent with error handling."""
        if agent_key not in self.agents:
            return AgentResult(
                agent_name=agent_key,
                success=False,
                data={},
                error=f"Agent not found: {agent_key}"
            )

        try:
            agent = self.agents[agent_key]
            result = agent.execute(task)
            return result
        except Exception as e:
            self.log_error(f"{agent_key} execution failed: {str(e)}")
            return AgentResult(
                agent_name=agent_key,
                success=False,
                data={},
                error=str(e)
            )
