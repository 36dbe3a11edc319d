"""
Column sizing: content classification, safe text metrics, and the
content-only / banded width policies.
"""

import logging
import math
import re
from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from forecast_report.core.surface import RenderSurface

logger = logging.getLogger(__name__)

ELLIPSIS = "..."

NUMERIC_PATTERN = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
LEVEL_WORDS = ("high", "medium", "low")


class ContentKind(Enum):
    NUMERIC = "numeric"
    DATE = "date"
    LEVEL = "level"
    IDENTIFIER = "identifier"
    TEXT = "text"


ALIGNMENTS = {
    ContentKind.NUMERIC: "right",
    ContentKind.DATE: "right",
    ContentKind.LEVEL: "center",
    ContentKind.IDENTIFIER: "left",
    ContentKind.TEXT: "left",
}


def classify_cell(text: str) -> ContentKind:
    """Content kind of a single cell; level words win over everything."""
    value = str(text).strip()
    lowered = value.lower()
    if lowered in LEVEL_WORDS:
        return ContentKind.LEVEL
    if value.upper().startswith("SKU"):
        return ContentKind.IDENTIFIER
    if DATE_PATTERN.match(value):
        return ContentKind.DATE
    if NUMERIC_PATTERN.match(value):
        return ContentKind.NUMERIC
    return ContentKind.TEXT


def cell_alignment(text: str) -> str:
    return ALIGNMENTS[classify_cell(text)]


def dominant_kind(cells: Sequence[str]) -> ContentKind:
    """Most common kind among non-empty cells (TEXT when empty)."""
    kinds = Counter(classify_cell(c) for c in cells if str(c).strip())
    if not kinds:
        return ContentKind.TEXT
    return kinds.most_common(1)[0][0]


class SafeMetrics:
    """Surface measurements that degrade to zero instead of raising."""

    def __init__(self, surface: RenderSurface):
        self.surface = surface

    def width(self, text: str, font_name: str, font_size: float) -> float:
        try:
            value = float(self.surface.measure_width(text, font_name, font_size))
        except Exception as e:
            logger.debug(f"Width measurement failed for {text[:20]!r}: {str(e)}")
            return 0.0
        return value if math.isfinite(value) and value > 0 else 0.0

    def height(self, text: str, width: float, font_name: str, font_size: float) -> float:
        try:
            value = float(self.surface.measure_height(text, max(width, 1.0), font_name, font_size))
        except Exception as e:
            logger.debug(f"Height measurement failed for {text[:20]!r}: {str(e)}")
            return 0.0
        return value if math.isfinite(value) and value > 0 else 0.0


def truncate_text(
    text: str,
    max_width: float,
    metrics: SafeMetrics,
    font_name: str,
    font_size: float,
    max_attempts: int = 40,
) -> str:
    """Shorten ``text`` so that ``text + '...'`` fits within ``max_width``.

    Drops one character per attempt; after ``max_attempts`` the cut point is
    estimated from the average character width and then trimmed until it
    fits. Returns ``""`` when not even the ellipsis fits.
    """
    if not text or metrics.width(text, font_name, font_size) <= max_width:
        return text

    if metrics.width(ELLIPSIS, font_name, font_size) > max_width:
        return ""

    candidate = text
    for _ in range(max_attempts):
        if not candidate:
            break
        candidate = candidate[:-1]
        if metrics.width(candidate + ELLIPSIS, font_name, font_size) <= max_width:
            return candidate.rstrip() + ELLIPSIS if candidate.rstrip() else ELLIPSIS

    full_width = metrics.width(text, font_name, font_size)
    average = full_width / len(text) if full_width > 0 else 1.0
    keep = max(int(max_width / average) - len(ELLIPSIS), 0)
    candidate = text[:min(keep, len(candidate))]
    while candidate and metrics.width(candidate + ELLIPSIS, font_name, font_size) > max_width:
        candidate = candidate[:-1]
    candidate = candidate.rstrip()
    return candidate + ELLIPSIS if candidate else ELLIPSIS


@dataclass
class ColumnSpec:
    """Resolved geometry and content hint for one column."""
    index: int
    key: str
    label: str
    width: float = 0.0
    min_width: Optional[float] = None
    max_width: Optional[float] = None
    kind: ContentKind = ContentKind.TEXT


@dataclass(frozen=True)
class FontSpec:
    """Fonts used when measuring a table."""
    body_font: str = "Helvetica"
    header_font: str = "Helvetica-Bold"
    size: float = 12


class ColumnSizingPolicy(ABC):
    """Decides column widths and whether cell text is truncated."""

    truncates = False

    def __init__(self, padding: float = 10):
        self.padding = padding

    def content_widths(
        self,
        labels: Sequence[str],
        rows: Sequence[Sequence[str]],
        metrics: SafeMetrics,
        fonts: FontSpec,
    ) -> List[float]:
        widths = [metrics.width(label, fonts.header_font, fonts.size) + self.padding for label in labels]
        for row in rows:
            for i, cell in enumerate(row[:len(labels)]):
                widths[i] = max(widths[i], metrics.width(str(cell), fonts.body_font, fonts.size) + self.padding)
        return widths

    def validate(self, column_count: int) -> None:
        """Raise ValueError when the policy cannot size ``column_count`` columns."""
        pass

    @abstractmethod
    def resolve(
        self,
        labels: Sequence[str],
        rows: Sequence[Sequence[str]],
        available_width: float,
        metrics: SafeMetrics,
        fonts: FontSpec,
    ) -> List[Tuple[float, Optional[float], Optional[float]]]:
        """Return ``(width, min_width, max_width)`` per column."""
        pass


class ContentSizingPolicy(ColumnSizingPolicy):
    """Widths from observed content, scaled down proportionally to fit."""

    def resolve(self, labels, rows, available_width, metrics, fonts):
        widths = self.content_widths(labels, rows, metrics, fonts)
        total = sum(widths)
        if total > available_width and total > 0:
            ratio = available_width / total
            widths = [w * ratio for w in widths]
        return [(w, None, None) for w in widths]


# (min, max) width bands for the structured inventory columns, by position.
DEFAULT_BANDS: List[Tuple[float, float]] = [
    (70, 150),   # name
    (55, 100),   # sku
    (50, 90),    # category
    (35, 55),    # quantity
    (35, 55),    # threshold
    (45, 70),    # cost price
    (45, 70),    # retail price
    (45, 75),    # status
    (60, 130),   # location
]


class BandedSizingPolicy(ColumnSizingPolicy):
    """Content widths clamped to per-column bands; overflow text truncated."""

    truncates = True

    def __init__(self, bands: Optional[Sequence[Tuple[float, float]]] = None, padding: float = 10):
        super().__init__(padding=padding)
        self.bands = list(bands or DEFAULT_BANDS)

    def validate(self, column_count: int) -> None:
        if column_count != len(self.bands):
            raise ValueError(
                f"Banded sizing expects {len(self.bands)} columns, got {column_count}"
            )

    def resolve(self, labels, rows, available_width, metrics, fonts):
        self.validate(len(labels))
        content = self.content_widths(labels, rows, metrics, fonts)
        widths = [min(max(w, lo), hi) for w, (lo, hi) in zip(content, self.bands)]
        widths = self._shrink(widths, available_width)
        return [(w, lo, hi) for w, (lo, hi) in zip(widths, self.bands)]

    def _shrink(self, widths: List[float], available_width: float) -> List[float]:
        """Scale down towards ``available_width`` without crossing band minimums."""
        minimums = [lo for lo, _ in self.bands]
        pinned = [False] * len(widths)
        for _ in range(len(widths)):
            total = sum(widths)
            if total <= available_width:
                break
            fixed = sum(w for w, p in zip(widths, pinned) if p)
            flexible = sum(w for w, p in zip(widths, pinned) if not p)
            if flexible <= 0:
                break
            ratio = max(available_width - fixed, 0) / flexible
            newly_pinned = False
            for i, w in enumerate(widths):
                if pinned[i]:
                    continue
                scaled = w * ratio
                if scaled <= minimums[i]:
                    widths[i] = minimums[i]
                    pinned[i] = True
                    newly_pinned = True
                else:
                    widths[i] = scaled
            if not newly_pinned:
                break

        if sum(widths) > available_width + 0.01:
            logger.warning(
                f"Column minimums ({sum(widths):.1f}pt) exceed available width ({available_width:.1f}pt)"
            )
        return widths
