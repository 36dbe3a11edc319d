"""
Report Agent: PDF assembly with branding, narrative and forecast tables.
"""

import io
import uuid
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional, Sequence
from datetime import datetime
from pathlib import Path
from forecast_report.agents.base_agent import BaseAgent, AgentResult
from forecast_report.backend.records import summarize_inventory
from forecast_report.config import CONFIG
from forecast_report.core.layout import LayoutError, TableLayout, TableLayoutEngine
from forecast_report.core.surface import GraphicsState, Line, Margins, RenderSurface, ReportLabSurface, TextRun
from forecast_report.utils.forecast_text import clean_markdown

@dataclass
class ReportOutcome:
    """Finished document plus what ended up in it."""
    pdf: bytes
    report_id: str
    page_count: int = 0
    tables: Dict[str, TableLayout] = field(default_factory=dict)
    skipped_tables: Dict[str, str] = field(default_factory=dict)

    @property
    def rows_drawn(self) -> int:
        return sum(layout.rows_drawn for layout in self.tables.values())

class ReportAgent(BaseAgent):
    """Builds the branded forecast PDF."""

    def __init__(self):
        super().__init__("ReportAgent")
        self.engine = TableLayoutEngine()

    def execute(self, task: Dict[str, Any]) -> AgentResult:
        """Render narrative and tables, optionally writing the PDF to disk."""
        start = datetime.now()

        try:
            outcome = self.build_pdf(
                forecast_text=task.get("forecast_text", ""),
                header=task.get("header"),
                rows=task.get("rows"),
                records=task.get("records"),
                title=task.get("title"),
            )

            output_path = task.get("output_path")
            if output_path:
                self.write_pdf(outcome, output_path)

            result = {
                "report_id": outcome.report_id,
                "output_path": output_path,
                "page_count": outcome.page_count,
                "rows_drawn": outcome.rows_drawn,
                "tables_rendered": sorted(outcome.tables),
                "tables_skipped": dict(outcome.skipped_tables),
                "pdf_bytes": len(outcome.pdf),
                "pdf": outcome.pdf,
            }

            duration = (datetime.now() - start).total_seconds()

            return AgentResult(
                agent_name=self.name,
                success=True,
                data=result,
                duration_seconds=duration
            )

        except ImportError:
            return self.failure(ImportError("reportlab not installed"), start)
        except Exception as e:
            return self.failure(e, start)

    def generate_pdf(self, report_content: Dict[str, Any], output_path: str) -> bool:
        """Build the report and write it to ``output_path``."""
        try:
            outcome = self.build_pdf(
                forecast_text=report_content.get("forecast_text", ""),
                header=report_content.get("header"),
                rows=report_content.get("rows"),
                records=report_content.get("records"),
                title=report_content.get("title"),
            )
            self.write_pdf(outcome, output_path)
            return True
        except ImportError:
            self.log_error("reportlab not installed")
            return False
        except Exception as e:
            self.log_error(f"PDF generation failed: {str(e)}")
            return False

    def write_pdf(self, outcome: ReportOutcome, output_path: str) -> Path:
        """Write finished PDF bytes to ``output_path``."""
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(outcome.pdf)
        self.log_step(f"PDF written: {path} ({len(outcome.pdf)} bytes)")
        return path

    def build_pdf(
        self,
        forecast_text: str = "",
        header: Optional[Sequence[str]] = None,
        rows: Optional[Sequence[Sequence[str]]] = None,
        records: Optional[Sequence[Any]] = None,
        title: Optional[str] = None,
    ) -> ReportOutcome:
        """Lay out the whole report in memory and return the PDF bytes."""
        branding = CONFIG.branding
        report = CONFIG.report
        table = CONFIG.table
        title = title or branding.report_title

        report_id = f"forecast-{int(datetime.now().timestamp() * 1000)}-{uuid.uuid4().hex[:8]}"
        self.log_step(f"Generating PDF {report_id}")

        surface = ReportLabSurface(
            io.BytesIO(),
            page_size=table.page_size,
            margins=Margins.uniform(table.margin),
            page_decorator=self._draw_footer if branding.include_footer else None,
        )
        surface.set_metadata(
            title=title,
            author=branding.author,
            subject=f"{report.subject} ({report_id})",
            keywords=report.keywords,
            creator=report.creator,
        )

        # Title block
        self._write(surface, title, GraphicsState(
            fill_color=branding.primary_color, font_name=branding.bold_font_name, font_size=24,
        ), align="center")
        generated = datetime.now().strftime("%A, %B %d, %Y, %I:%M %p")
        self._write(surface, f"Generated on: {generated}", GraphicsState(
            fill_color=branding.muted_color, font_name=branding.font_name, font_size=12,
        ), align="center", space_before=12)
        self._rule(surface, space=12)

        if report.include_narrative:
            self._heading(surface, report.narrative_heading)
            self._paragraphs(surface, clean_markdown(forecast_text))

        if records and report.include_inventory_summary:
            summary = summarize_inventory(records)
            self._heading(surface, report.summary_heading)
            self._paragraphs(surface, "\n".join(summary.summary_lines()))

        outcome = ReportOutcome(pdf=b"", report_id=report_id)
        if records:
            self._table_section(surface, outcome, "records", report.records_heading, None, records)
        if header:
            self._table_section(surface, outcome, "forecast", report.table_heading, header, rows or [])

        outcome.page_count = surface.page_count
        outcome.pdf = surface.save()
        self.log_step(f"PDF generated: {outcome.page_count} page(s), {outcome.rows_drawn} table rows")
        return outcome

    def _table_section(
        self,
        surface: RenderSurface,
        outcome: ReportOutcome,
        key: str,
        heading: str,
        header: Optional[Sequence[str]],
        rows: Sequence[Any],
    ) -> None:
        """Start a new page with ``heading`` and the table, or skip the section."""
        state = self._heading_state()
        heading_bottom = surface.margins.top + surface.line_height(state.font_size)
        try:
            layout = self.engine.layout(header, rows, surface, start_y=heading_bottom)
        except LayoutError as e:
            # Nothing has been drawn yet, so the section is simply left out.
            self.log_error(f"Skipping {key} table: {str(e)}")
            outcome.skipped_tables[key] = str(e)
            return

        surface.begin_page()
        self._write(surface, heading, state)
        surface.replay(layout.pages)
        outcome.tables[key] = layout
        self.log_step(f"{heading}: {layout.rows_drawn} rows on {layout.page_count} page(s)")

    def _heading_state(self) -> GraphicsState:
        return GraphicsState(
            fill_color=CONFIG.branding.primary_color,
            font_name=CONFIG.branding.bold_font_name,
            font_size=18,
        )

    def _heading(self, surface: RenderSurface, text: str) -> None:
        state = self._heading_state()
        # Keep a heading together with at least one body line.
        if surface.cursor_y + 18 + surface.line_height(state.font_size) + surface.line_height(12) > surface.usable_bottom:
            surface.begin_page()
        self._write(surface, text, state, space_before=18)
        surface.cursor_y += 6

    def _paragraphs(self, surface: RenderSurface, text: str) -> None:
        state = GraphicsState(
            fill_color="#000000", font_name=CONFIG.branding.font_name, font_size=12,
        )
        for paragraph in text.split("\n"):
            self._write(surface, paragraph.strip(), state)

    def _write(
        self,
        surface: RenderSurface,
        text: str,
        state: GraphicsState,
        align: str = "left",
        space_before: float = 0,
    ) -> None:
        """Draw wrapped text at the cursor, breaking pages line by line."""
        width = surface.usable_width
        leading = surface.line_height(state.font_size)
        surface.cursor_y += space_before
        lines: List[str] = surface.safe_wrap(text, width, state.font_name, state.font_size) if text else []
        for line in lines or [""]:
            if surface.cursor_y + leading > surface.usable_bottom:
                surface.begin_page()
            surface.draw(TextRun(line, surface.margins.left, surface.cursor_y, width, align, state))
            surface.cursor_y += leading

    def _rule(self, surface: RenderSurface, space: float = 12) -> None:
        y = surface.cursor_y + space
        surface.draw(Line(
            surface.margins.left, y, surface.page_width - surface.margins.right, y,
            GraphicsState(stroke_color="#000000", line_width=1),
        ))
        surface.cursor_y = y + space

    def _draw_footer(self, surface: ReportLabSurface) -> None:
        """Branding footer and page number, drawn once per finished page."""
        from reportlab.lib.colors import HexColor

        branding = CONFIG.branding
        c = surface.canvas
        c.setFont(branding.font_name, 9)
        c.setFillColor(HexColor(branding.muted_color))
        c.drawString(surface.margins.left, 30, f"{branding.company_name} | {branding.footer_text}")
        c.drawRightString(surface.page_width - surface.margins.right, 30, f"Page {surface.page_count}")
