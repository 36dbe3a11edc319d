"""
System configuration: branding, table layout, report defaults.
"""

import os
from dataclasses import dataclass, field
from typing import Dict


@dataclass
class BrandingConfig:
    """PDF branding configuration."""
    company_name: str = "NextGen Retail"
    report_title: str = "NextGen Retail Forecast Report"
    author: str = "NextGen AI"
    primary_color: str = "#003366"
    secondary_color: str = "#0066cc"
    muted_color: str = "#666666"
    font_name: str = "Helvetica"
    bold_font_name: str = "Helvetica-Bold"
    footer_text: str = "Confidential - AI Generated Forecast"
    include_footer: bool = True


@dataclass
class TableConfig:
    """Table layout configuration (points unless noted)."""
    page_size: str = "A4"
    margin: float = 50
    cell_padding: float = 10
    text_inset: float = 5
    header_height: float = 25
    header_text_offset: float = 7
    min_row_height: float = 20
    font_name: str = "Helvetica"
    header_font_name: str = "Helvetica-Bold"
    font_size: float = 12
    structured_font_size: float = 9
    continued_font_size: float = 14
    max_truncation_attempts: int = 40
    header_border_color: str = "#000033"
    row_border_color: str = "#CCCCCC"
    header_gradient: tuple = ("#003366", "#0066cc")
    even_row_gradient: tuple = ("#FFFFFF", "#F8F8F8")
    odd_row_gradient: tuple = ("#F5F5F5", "#E8E8E8")
    text_color: str = "#000000"
    header_text_color: str = "#FFFFFF"
    continued_color: str = "#003366"
    level_colors: Dict[str, str] = field(
        default_factory=lambda: {"high": "#006600", "medium": "#996600", "low": "#990000"}
    )
    continued_label: str = "Forecast Data (Continued)"
    empty_label: str = "No forecast data available"


@dataclass
class ReportConfig:
    """Report generation configuration."""
    include_narrative: bool = True
    include_inventory_summary: bool = True
    narrative_heading: str = "Forecast Analysis"
    table_heading: str = "Forecast Data"
    records_heading: str = "Inventory Data"
    summary_heading: str = "Inventory Summary"
    keywords: str = "forecast, inventory, ai, analytics"
    subject: str = "Inventory Forecast"
    creator: str = "NextGen Retail AI System"


@dataclass
class SystemConfig:
    """Master system configuration."""
    branding: BrandingConfig = field(default_factory=BrandingConfig)
    table: TableConfig = field(default_factory=TableConfig)
    report: ReportConfig = field(default_factory=ReportConfig)

    # Paths
    output_dir: str = "outputs"
    log_dir: str = "logs"

    # Runtime
    debug_mode: bool = bool(os.getenv("DEBUG", "False").lower() == "true")

    @classmethod
    def from_env(cls):
        """Load complete config from environment."""
        return cls(
            branding=BrandingConfig(
                company_name=os.getenv("COMPANY_NAME", "NextGen Retail"),
                report_title=os.getenv("REPORT_TITLE", "NextGen Retail Forecast Report"),
                primary_color=os.getenv("PRIMARY_COLOR", "#003366"),
                secondary_color=os.getenv("SECONDARY_COLOR", "#0066cc"),
            ),
            table=TableConfig(
                page_size=os.getenv("PAGE_SIZE", "A4").upper(),
                margin=float(os.getenv("PAGE_MARGIN", "50")),
                font_size=float(os.getenv("TABLE_FONT_SIZE", "12")),
            ),
            output_dir=os.getenv("OUTPUT_DIR", "outputs"),
        )

# Global config instance
CONFIG = SystemConfig.from_env()
