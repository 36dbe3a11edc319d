"""
Table parser: turns normalized forecast CSV into a header and padded rows.
"""

from dataclasses import dataclass, field
from typing import List, Sequence


@dataclass
class ParsedTable:
    """Header plus data rows, every row conformed to the header length."""
    header: List[str]
    rows: List[List[str]] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.header

    @property
    def column_count(self) -> int:
        return len(self.header)


def split_csv_line(line: str) -> List[str]:
    """Split one row on commas, keeping commas inside double quotes.

    Quotes toggle the inside-quotes flag and are not kept. The final cell
    is always emitted, so an unterminated quote swallows the rest of the
    line instead of failing.
    """
    cells: List[str] = []
    current: List[str] = []
    in_quotes = False

    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            cells.append("".join(current).strip())
            current = []
        else:
            current.append(char)

    cells.append("".join(current).strip())
    return cells


def conform_row(cells: Sequence[str], width: int) -> List[str]:
    """Pad with empty strings or drop extra cells to match ``width``."""
    row = [str(cell) for cell in list(cells)[:width]]
    if len(row) < width:
        row.extend([""] * (width - len(row)))
    return row


def format_header_label(name: str) -> str:
    """``predicted_quantity`` -> ``Predicted Quantity``."""
    words = str(name).strip().split("_")
    return " ".join(word[:1].upper() + word[1:].lower() for word in words)


def parse_table(normalized_csv: str) -> ParsedTable:
    """Parse normalized CSV text; the first non-blank line is the header."""
    if not normalized_csv:
        return ParsedTable(header=[])

    lines = [line.strip() for line in normalized_csv.replace("\r", "").split("\n")]
    lines = [line for line in lines if line]
    if not lines:
        return ParsedTable(header=[])

    header = [cell.strip() for cell in lines[0].split(",")]
    rows = [conform_row(split_csv_line(line), len(header)) for line in lines[1:]]
    return ParsedTable(header=header, rows=rows)
