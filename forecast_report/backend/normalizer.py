"""
Forecast CSV normalizer: reassembles line-wrapped rows from model output.

The text generator is prompted for ``date,product,predicted_quantity,
confidence_level`` rows but regularly breaks a row across several physical
lines. Rows are rebuilt with a fixed four-field heuristic rather than a
general CSV grammar; rows that never complete are dropped.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple

logger = logging.getLogger(__name__)

ROW_FIELD_COUNT = 4

FRAGMENT_PATTERNS = [
    re.compile(r"^\d{4}-\d{2}-\d{2}$"),       # date
    re.compile(r"^SKU\d+$"),                  # identifier
    re.compile(r"^\d+$"),                     # quantity
    re.compile(r"^(low|medium|high)$", re.IGNORECASE),  # confidence
]


class LineKind(Enum):
    """How a physical line contributes to a row."""
    FRAGMENT = "fragment"
    COMPLETE = "complete"
    WORD = "word"


@dataclass
class NormalizationStats:
    """Counters collected while normalizing one block."""
    lines_read: int = 0
    rows_emitted: int = 0
    complete_lines: int = 0
    assembled_rows: int = 0
    discarded_rows: int = 0
    dropped_buffer: str = ""

    @property
    def dropped_partial_row(self) -> bool:
        return bool(self.dropped_buffer)


def classify_line(line: str) -> LineKind:
    """Classify a trimmed, non-empty line."""
    if any(pattern.match(line) for pattern in FRAGMENT_PATTERNS):
        return LineKind.FRAGMENT
    if len(line.split(",")) >= ROW_FIELD_COUNT:
        return LineKind.COMPLETE
    return LineKind.WORD


class RowAssembler:
    """Pending-row buffer fed one classified line at a time.

    Fragments are written as ``value,``; words as ``value `` so that
    consecutive words build one multi-word field. A fragment arriving while
    a word field is open closes that field first.
    """

    def __init__(self):
        self.buffer = ""
        self.discarded: List[str] = []

    def field_count(self) -> int:
        body = self.buffer.strip().rstrip(",")
        if not body:
            return 0
        return len(body.split(","))

    def feed(self, line: str, kind: LineKind) -> Tuple[List[str], bool]:
        """Consume a line; return (rows emitted, whether one was assembled)."""
        emitted: List[str] = []
        if kind is LineKind.FRAGMENT:
            if self.buffer.endswith(" "):
                self.buffer = self.buffer.rstrip() + ","
            self.buffer += line + ","
        elif kind is LineKind.COMPLETE:
            emitted.append(line)
        else:
            self.buffer += line + " "

        assembled = False
        fields = self.field_count()
        if fields == ROW_FIELD_COUNT:
            emitted.append(self.buffer.strip().rstrip(","))
            self.buffer = ""
            assembled = True
        elif fields > ROW_FIELD_COUNT:
            # Overshot the row shape; it can never complete.
            logger.debug(f"Discarding over-long row buffer ({fields} fields)")
            self.discarded.append(self.buffer.strip())
            self.buffer = ""
        return emitted, assembled

    def pending(self) -> str:
        return self.buffer.strip()


def normalize_forecast_csv_with_stats(raw_text: str) -> Tuple[str, NormalizationStats]:
    """Normalize a CSV block and report what happened to its lines."""
    stats = NormalizationStats()
    if not raw_text:
        return "", stats

    lines = [line.strip() for line in str(raw_text).split("\n")]
    lines = [line for line in lines if line]

    assembler = RowAssembler()
    normalized: List[str] = []

    for line in lines:
        stats.lines_read += 1
        kind = classify_line(line)
        if kind is LineKind.COMPLETE:
            stats.complete_lines += 1
        rows, assembled = assembler.feed(line, kind)
        if assembled:
            stats.assembled_rows += 1
        normalized.extend(rows)

    stats.rows_emitted = len(normalized)
    stats.discarded_rows = len(assembler.discarded)
    stats.dropped_buffer = assembler.pending()
    if stats.dropped_buffer:
        # Incomplete trailing rows are discarded; callers must tolerate missing rows.
        logger.debug(f"Dropped incomplete row buffer ({len(stats.dropped_buffer)} chars)")

    return "\n".join(normalized), stats


def normalize_forecast_csv(raw_text: str) -> str:
    """Rebuild complete comma-separated rows from fragmented model output."""
    normalized, _ = normalize_forecast_csv_with_stats(raw_text)
    return normalized
