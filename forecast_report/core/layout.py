"""
Table layout engine: sizes columns, resolves row heights, paginates rows and
emits draw instructions for a render surface.

Layout is computed completely (measurement only) before anything is drawn,
so a failed layout never leaves a half-drawn table on the surface.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from forecast_report.backend.records import InventoryRecord, records_to_rows
from forecast_report.backend.table_parser import conform_row, format_header_label, split_csv_line
from forecast_report.config import CONFIG, TableConfig
from forecast_report.core.sizing import (
    BandedSizingPolicy,
    ColumnSizingPolicy,
    ColumnSpec,
    ContentKind,
    ContentSizingPolicy,
    FontSpec,
    SafeMetrics,
    cell_alignment,
    dominant_kind,
    truncate_text,
)
from forecast_report.core.surface import (
    GradientRect,
    GraphicsState,
    Line,
    Page,
    RenderSurface,
    RestoreState,
    SaveState,
    StrokeRect,
    TextRun,
)

logger = logging.getLogger(__name__)

MODE_CSV = "csv"
MODE_STRUCTURED = "structured"


class LayoutError(ValueError):
    """Raised when a table cannot be laid out on the given surface."""
    pass


@dataclass
class TableStyle:
    """Geometry, fonts and colors used by the layout engine."""
    cell_padding: float = 10
    text_inset: float = 5
    header_height: float = 25
    header_text_offset: float = 7
    min_row_height: float = 20
    table_gap: float = 20
    continued_gap: float = 10
    font_name: str = "Helvetica"
    header_font_name: str = "Helvetica-Bold"
    font_size: float = 12
    structured_font_size: float = 9
    continued_font_size: float = 14
    max_truncation_attempts: int = 40
    header_border_color: str = "#000033"
    row_border_color: str = "#CCCCCC"
    header_gradient: Tuple[str, str] = ("#003366", "#0066cc")
    even_row_gradient: Tuple[str, str] = ("#FFFFFF", "#F8F8F8")
    odd_row_gradient: Tuple[str, str] = ("#F5F5F5", "#E8E8E8")
    text_color: str = "#000000"
    header_text_color: str = "#FFFFFF"
    continued_color: str = "#003366"
    level_colors: dict = field(
        default_factory=lambda: {"high": "#006600", "medium": "#996600", "low": "#990000"}
    )
    continued_label: str = "Forecast Data (Continued)"
    empty_label: str = "No forecast data available"

    @classmethod
    def from_config(cls, config: TableConfig) -> "TableStyle":
        return cls(
            cell_padding=config.cell_padding,
            text_inset=config.text_inset,
            header_height=config.header_height,
            header_text_offset=config.header_text_offset,
            min_row_height=config.min_row_height,
            font_name=config.font_name,
            header_font_name=config.header_font_name,
            font_size=config.font_size,
            structured_font_size=config.structured_font_size,
            continued_font_size=config.continued_font_size,
            max_truncation_attempts=config.max_truncation_attempts,
            header_border_color=config.header_border_color,
            row_border_color=config.row_border_color,
            header_gradient=tuple(config.header_gradient),
            even_row_gradient=tuple(config.even_row_gradient),
            odd_row_gradient=tuple(config.odd_row_gradient),
            text_color=config.text_color,
            header_text_color=config.header_text_color,
            continued_color=config.continued_color,
            level_colors=dict(config.level_colors),
            continued_label=config.continued_label,
            empty_label=config.empty_label,
        )


@dataclass
class TableLayout:
    """Result of laying out one table."""
    mode: str
    header: List[str]
    labels: List[str]
    columns: List[ColumnSpec]
    rows: List[List[str]]
    display_rows: List[List[str]]
    row_heights: List[float]
    pages: List[Page] = field(default_factory=list)
    end_y: float = 0.0

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def rows_drawn(self) -> int:
        return sum(len(page.row_indices) for page in self.pages)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def table_width(self) -> float:
        return sum(column.width for column in self.columns)


def _is_structured(rows: Sequence[Any]) -> bool:
    return bool(rows) and isinstance(rows[0], (Mapping, InventoryRecord))


class TableLayoutEngine:
    """Paginated table layout in two sizing modes (CSV-derived, structured)."""

    def __init__(self, style: Optional[TableStyle] = None):
        self.style = style or TableStyle.from_config(CONFIG.table)

    # Entry points

    def render(
        self,
        header: Optional[Sequence[str]],
        rows: Sequence[Any],
        surface: RenderSurface,
        policy: Optional[ColumnSizingPolicy] = None,
        start_y: Optional[float] = None,
    ) -> TableLayout:
        """Lay out the table, then draw every page onto ``surface``."""
        layout = self.layout(header, rows, surface, policy=policy, start_y=start_y)
        surface.replay(layout.pages)
        logger.debug(f"Rendered {layout.rows_drawn} rows on {layout.page_count} page(s)")
        return layout

    def layout(
        self,
        header: Optional[Sequence[str]],
        rows: Sequence[Any],
        surface: RenderSurface,
        policy: Optional[ColumnSizingPolicy] = None,
        start_y: Optional[float] = None,
    ) -> TableLayout:
        """Compute pages of draw instructions without touching the surface."""
        rows = list(rows or [])
        structured = _is_structured(rows)
        self._check_surface(surface)

        if structured:
            try:
                default_header, str_rows = records_to_rows(rows)
            except (TypeError, ValueError) as e:
                raise LayoutError(f"Invalid structured records: {str(e)}") from e
            header = list(header) if header else default_header
            policy = policy or BandedSizingPolicy(padding=self.style.cell_padding)
            font_size = self.style.structured_font_size
        else:
            header = [str(h).strip() for h in (header or [])]
            str_rows = [split_csv_line(r) if isinstance(r, str) else list(r) for r in rows]
            policy = policy or ContentSizingPolicy(padding=self.style.cell_padding)
            font_size = self.style.font_size

        if not header:
            raise LayoutError("Table header is empty")
        try:
            policy.validate(len(header))
        except ValueError as e:
            raise LayoutError(str(e)) from e

        width = len(header)
        str_rows = [conform_row(r, width) for r in str_rows]
        labels = [format_header_label(h) for h in header]

        metrics = SafeMetrics(surface)
        fonts = FontSpec(body_font=self.style.font_name, header_font=self.style.header_font_name, size=font_size)
        resolved = policy.resolve(labels, str_rows, surface.usable_width, metrics, fonts)

        columns = []
        for i, (col_width, lo, hi) in enumerate(resolved):
            columns.append(ColumnSpec(
                index=i,
                key=header[i],
                label=labels[i],
                width=col_width,
                min_width=lo,
                max_width=hi,
                kind=dominant_kind([r[i] for r in str_rows]) if str_rows else ContentKind.TEXT,
            ))

        if policy.truncates:
            display_labels = [self._fit(label, c, metrics, fonts.header_font, font_size) for label, c in zip(labels, columns)]
            display_rows = [
                [self._fit(cell, c, metrics, fonts.body_font, font_size) for cell, c in zip(row, columns)]
                for row in str_rows
            ]
        else:
            display_labels = list(labels)
            display_rows = [list(row) for row in str_rows]

        row_heights = [self._row_height(row, columns, metrics, fonts.body_font, font_size) for row in display_rows]

        layout = TableLayout(
            mode=MODE_STRUCTURED if structured else MODE_CSV,
            header=list(header),
            labels=labels,
            columns=columns,
            rows=str_rows,
            display_rows=display_rows,
            row_heights=row_heights,
        )
        self._paginate(layout, display_labels, surface, font_size, start_y)
        return layout

    # Measurement

    def _check_surface(self, surface: RenderSurface) -> None:
        if surface.usable_width <= 0 or surface.usable_height <= 0:
            raise LayoutError(
                f"Surface has no usable area ({surface.usable_width:.1f} x {surface.usable_height:.1f}pt)"
            )
        needed = self._continued_block() + self.style.header_height + self.style.min_row_height
        if surface.usable_height < needed:
            raise LayoutError(
                f"Usable page height {surface.usable_height:.1f}pt cannot hold a header band and one row"
            )

    def _continued_block(self) -> float:
        return self.style.continued_font_size * 1.2 + self.style.continued_gap

    def _fit(self, text: str, column: ColumnSpec, metrics: SafeMetrics, font: str, size: float) -> str:
        inner = column.width - 2 * self.style.text_inset
        return truncate_text(text, inner, metrics, font, size, self.style.max_truncation_attempts)

    def _row_height(
        self,
        row: Sequence[str],
        columns: Sequence[ColumnSpec],
        metrics: SafeMetrics,
        font: str,
        size: float,
    ) -> float:
        height = self.style.min_row_height
        for cell, column in zip(row, columns):
            text_height = metrics.height(str(cell), column.width - 2 * self.style.text_inset, font, size)
            height = max(height, text_height + self.style.cell_padding)
        if not math.isfinite(height) or height <= 0:
            return self.style.min_row_height
        return height

    # Pagination

    def _paginate(
        self,
        layout: TableLayout,
        labels: Sequence[str],
        surface: RenderSurface,
        font_size: float,
        start_y: Optional[float],
    ) -> None:
        style = self.style
        x0 = surface.margins.left
        bottom = surface.usable_bottom
        table_width = max(surface.usable_width, layout.table_width)
        col_x = []
        offset = x0
        for column in layout.columns:
            col_x.append(offset)
            offset += column.width

        y = (surface.cursor_y if start_y is None else start_y) + style.table_gap
        page = Page(index=0)

        if not layout.rows:
            placeholder_height = style.font_size * 1.2
            if y + placeholder_height > bottom and y > surface.margins.top + style.table_gap:
                page.starts_new_page = True
                y = surface.margins.top
            page.add(TextRun(
                text=style.empty_label,
                x=x0,
                y=y,
                width=surface.usable_width,
                align="center",
                state=GraphicsState(fill_color=style.text_color, font_name=style.font_name, font_size=style.font_size),
            ))
            page.bottom = y + placeholder_height
            layout.pages = [page]
            layout.end_y = page.bottom
            return

        first_height = layout.row_heights[0]
        if y + style.header_height + first_height > bottom and y > surface.margins.top + style.table_gap:
            # Not even one row fits below the current cursor.
            page.starts_new_page = True
            y = surface.margins.top

        y = self._header_band(page, labels, layout.columns, col_x, x0, y, table_width, font_size)
        pages = [page]

        for index, (row, height) in enumerate(zip(layout.display_rows, layout.row_heights)):
            if page.row_indices and y + height > bottom:
                page.bottom = y
                page = Page(index=len(pages), continued=True, starts_new_page=True)
                pages.append(page)
                logger.debug(f"Page break before row {index}")
                y = self._continued_title(page, surface, x0)
                y = self._header_band(page, labels, layout.columns, col_x, x0, y, table_width, font_size)
            self._data_row(page, index, row, height, layout.columns, col_x, x0, y, table_width, font_size)
            page.row_indices.append(index)
            y += height

        page.bottom = y
        layout.pages = pages
        layout.end_y = y

    def _continued_title(self, page: Page, surface: RenderSurface, x0: float) -> float:
        style = self.style
        y = surface.margins.top
        page.add(TextRun(
            text=style.continued_label,
            x=x0,
            y=y,
            width=surface.usable_width,
            align="center",
            state=GraphicsState(
                fill_color=style.continued_color,
                font_name=style.header_font_name,
                font_size=style.continued_font_size,
            ),
        ))
        return y + self._continued_block()

    def _header_band(
        self,
        page: Page,
        labels: Sequence[str],
        columns: Sequence[ColumnSpec],
        col_x: Sequence[float],
        x0: float,
        y: float,
        table_width: float,
        font_size: float,
    ) -> float:
        style = self.style
        border = GraphicsState(stroke_color=style.header_border_color, line_width=1.5)
        text_state = GraphicsState(
            fill_color=style.header_text_color,
            font_name=style.header_font_name,
            font_size=font_size,
        )

        page.add(SaveState())
        page.add(GradientRect(x0, y, table_width, style.header_height, *style.header_gradient))
        page.add(StrokeRect(x0, y, table_width, style.header_height, border))
        for i, (label, column) in enumerate(zip(labels, columns)):
            if i > 0:
                page.add(Line(col_x[i], y, col_x[i], y + style.header_height, border))
            page.add(TextRun(
                text=label,
                x=col_x[i] + style.text_inset,
                y=y + style.header_text_offset,
                width=max(column.width - 2 * style.text_inset, 0),
                align="center",
                state=text_state,
            ))
        page.add(RestoreState())
        return y + style.header_height

    def _data_row(
        self,
        page: Page,
        index: int,
        row: Sequence[str],
        height: float,
        columns: Sequence[ColumnSpec],
        col_x: Sequence[float],
        x0: float,
        y: float,
        table_width: float,
        font_size: float,
    ) -> None:
        style = self.style
        border = GraphicsState(stroke_color=style.row_border_color, line_width=0.5)
        gradient = style.odd_row_gradient if index % 2 else style.even_row_gradient

        page.add(SaveState())
        page.add(GradientRect(x0, y, table_width, height, *gradient))
        page.add(StrokeRect(x0, y, table_width, height, border))
        for i, (cell, column) in enumerate(zip(row, columns)):
            if i > 0:
                page.add(Line(col_x[i], y, col_x[i], y + height, border))
            text = str(cell)
            color = style.level_colors.get(text.strip().lower(), style.text_color)
            page.add(TextRun(
                text=text,
                x=col_x[i] + style.text_inset,
                y=y + style.text_inset,
                width=max(column.width - 2 * style.text_inset, 0),
                align=cell_alignment(text),
                state=GraphicsState(
                    fill_color=color,
                    stroke_color=style.row_border_color,
                    line_width=0.5,
                    font_name=style.font_name,
                    font_size=font_size,
                ),
            ))
        page.add(RestoreState())


def layout_table(
    header: Optional[Sequence[str]],
    rows: Sequence[Any],
    surface: RenderSurface,
    policy: Optional[ColumnSizingPolicy] = None,
    style: Optional[TableStyle] = None,
    start_y: Optional[float] = None,
) -> TableLayout:
    """Pure layout; nothing is drawn."""
    return TableLayoutEngine(style).layout(header, rows, surface, policy=policy, start_y=start_y)


def render_table(
    header: Optional[Sequence[str]],
    rows: Sequence[Any],
    surface: RenderSurface,
    policy: Optional[ColumnSizingPolicy] = None,
    style: Optional[TableStyle] = None,
    start_y: Optional[float] = None,
) -> TableLayout:
    """Lay out and draw a table; check ``rows_drawn`` to see if anything was drawn."""
    return TableLayoutEngine(style).render(header, rows, surface, policy=policy, start_y=start_y)
