"""
Helpers for raw text-generator output: CSV block extraction and markdown cleanup.
"""

import re
from dataclasses import dataclass
from typing import Optional

CSV_BLOCK_PATTERN = re.compile(r"```csv\n([\s\S]*?)\n```")

MARKDOWN_RULES = [
    (re.compile(r"\*\*([^*]+)\*\*"), r"\1"),          # **bold**
    (re.compile(r"\*([^*]+)\*"), r"\1"),              # *italic*
    (re.compile(r"#{1,6}\s?([^#\n]+)"), r"\1"),       # # heading
    (re.compile(r"\[([^\]]+)\]\([^)]+\)"), r"\1"),    # [text](url)
]


@dataclass
class ForecastResponse:
    """Narrative text and the optional CSV block of one model response."""
    forecast_text: str
    forecast_csv: Optional[str] = None

    @property
    def has_table(self) -> bool:
        return bool(self.forecast_csv and self.forecast_csv.strip())


def extract_forecast_sections(response: str) -> ForecastResponse:
    """Split a response into narrative and the first ```csv fenced block."""
    response = response or ""
    match = CSV_BLOCK_PATTERN.search(response)
    if not match:
        return ForecastResponse(forecast_text=response, forecast_csv=None)

    narrative = CSV_BLOCK_PATTERN.sub("", response, count=1).strip()
    return ForecastResponse(forecast_text=narrative, forecast_csv=match.group(1))


def clean_markdown(text: Optional[str]) -> str:
    """Strip bold/italic/heading/link markers for plain PDF text."""
    if not text:
        return "No data available"
    for pattern, replacement in MARKDOWN_RULES:
        text = pattern.sub(replacement, text)
    return text.strip()
