"""
Render surfaces: draw instructions, explicit graphics state, and the
ReportLab canvas / in-memory implementations.

All coordinates are top-down points: ``(0, 0)`` is the top-left corner of
the page and ``y`` grows towards the bottom edge.
"""

import io
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional, Sequence, Union

logger = logging.getLogger(__name__)

LINE_HEIGHT_RATIO = 1.2
ASCENT_RATIO = 0.8


@dataclass(frozen=True)
class GraphicsState:
    """Fill/stroke/font state carried by every draw instruction."""
    fill_color: str = "#000000"
    stroke_color: str = "#000000"
    line_width: float = 1.0
    font_name: str = "Helvetica"
    font_size: float = 12

    def with_(self, **changes) -> "GraphicsState":
        return replace(self, **changes)


class GraphicsStateStack:
    """Explicit save/restore stack; never shared between renders."""

    def __init__(self, initial: Optional[GraphicsState] = None):
        self._stack: List[GraphicsState] = [initial or GraphicsState()]

    @property
    def current(self) -> GraphicsState:
        return self._stack[-1]

    @property
    def depth(self) -> int:
        return len(self._stack)

    def apply(self, state: GraphicsState) -> GraphicsState:
        self._stack[-1] = state
        return state

    def save(self) -> None:
        self._stack.append(self._stack[-1])

    def restore(self) -> GraphicsState:
        if len(self._stack) == 1:
            raise RuntimeError("Graphics state restore without matching save")
        self._stack.pop()
        return self._stack[-1]


@dataclass(frozen=True)
class SaveState:
    pass


@dataclass(frozen=True)
class RestoreState:
    pass


@dataclass(frozen=True)
class GradientRect:
    """Rectangle filled with a horizontal two-stop gradient."""
    x: float
    y: float
    width: float
    height: float
    start_color: str
    end_color: str


@dataclass(frozen=True)
class StrokeRect:
    x: float
    y: float
    width: float
    height: float
    state: GraphicsState


@dataclass(frozen=True)
class Line:
    x1: float
    y1: float
    x2: float
    y2: float
    state: GraphicsState


@dataclass(frozen=True)
class TextRun:
    """Text wrapped to ``width`` with its top edge at ``y``."""
    text: str
    x: float
    y: float
    width: float
    align: str
    state: GraphicsState


DrawInstruction = Union[SaveState, RestoreState, GradientRect, StrokeRect, Line, TextRun]


@dataclass
class Margins:
    top: float = 50
    right: float = 50
    bottom: float = 50
    left: float = 50

    @classmethod
    def uniform(cls, value: float) -> "Margins":
        return cls(top=value, right=value, bottom=value, left=value)


@dataclass
class Page:
    """One page worth of table instructions."""
    index: int
    instructions: List[DrawInstruction] = field(default_factory=list)
    row_indices: List[int] = field(default_factory=list)
    continued: bool = False
    starts_new_page: bool = False
    bottom: float = 0.0

    def add(self, instruction: DrawInstruction) -> None:
        self.instructions.append(instruction)

    def text_runs(self) -> List[TextRun]:
        return [i for i in self.instructions if isinstance(i, TextRun)]


class RenderSurface(ABC):
    """Paginated drawing canvas with text measurement."""

    def __init__(self, page_width: float, page_height: float, margins: Optional[Margins] = None):
        self.page_width = page_width
        self.page_height = page_height
        self.margins = margins or Margins()
        self.cursor_y = self.margins.top
        self.page_count = 1
        self.state_stack = GraphicsStateStack()

    @property
    def usable_width(self) -> float:
        return self.page_width - self.margins.left - self.margins.right

    @property
    def usable_bottom(self) -> float:
        return self.page_height - self.margins.bottom

    @property
    def usable_height(self) -> float:
        return self.usable_bottom - self.margins.top

    @abstractmethod
    def measure_width(self, text: str, font_name: str, font_size: float) -> float:
        """Width of ``text`` on one line."""
        pass

    @abstractmethod
    def wrap_lines(self, text: str, width: float, font_name: str, font_size: float) -> List[str]:
        """Split ``text`` into lines no wider than ``width``."""
        pass

    def line_height(self, font_size: float) -> float:
        return font_size * LINE_HEIGHT_RATIO

    def safe_wrap(self, text: str, width: float, font_name: str, font_size: float) -> List[str]:
        """``wrap_lines`` that keeps ``text`` on one line when metrics fail."""
        try:
            return self.wrap_lines(text, width, font_name, font_size)
        except Exception as e:
            logger.debug(f"Wrapping failed for {text[:20]!r}: {str(e)}")
            return [text]

    def measure_height(self, text: str, width: float, font_name: str, font_size: float) -> float:
        """Height of ``text`` wrapped at ``width``."""
        if not text:
            return 0.0
        return len(self.wrap_lines(text, width, font_name, font_size)) * self.line_height(font_size)

    def begin_page(self) -> None:
        """Finish the current page and start a fresh one."""
        self._start_page()
        self.page_count += 1
        self.cursor_y = self.margins.top
        self.state_stack = GraphicsStateStack()

    @abstractmethod
    def _start_page(self) -> None:
        pass

    def draw(self, instruction: DrawInstruction) -> None:
        if isinstance(instruction, SaveState):
            self.state_stack.save()
            self._save()
        elif isinstance(instruction, RestoreState):
            self.state_stack.restore()
            self._restore()
        elif isinstance(instruction, GradientRect):
            self._gradient_rect(instruction)
        elif isinstance(instruction, StrokeRect):
            self.state_stack.apply(instruction.state)
            self._stroke_rect(instruction)
        elif isinstance(instruction, Line):
            self.state_stack.apply(instruction.state)
            self._line(instruction)
        elif isinstance(instruction, TextRun):
            self.state_stack.apply(instruction.state)
            self._text(instruction)
        else:
            raise TypeError(f"Unsupported draw instruction: {type(instruction).__name__}")

    def replay(self, pages: Sequence[Page]) -> None:
        """Draw laid-out pages in order, starting new pages where flagged."""
        for page in pages:
            if page.starts_new_page:
                self.begin_page()
            for instruction in page.instructions:
                self.draw(instruction)
            self.cursor_y = page.bottom

    @abstractmethod
    def _save(self) -> None:
        pass

    @abstractmethod
    def _restore(self) -> None:
        pass

    @abstractmethod
    def _gradient_rect(self, instruction: GradientRect) -> None:
        pass

    @abstractmethod
    def _stroke_rect(self, instruction: StrokeRect) -> None:
        pass

    @abstractmethod
    def _line(self, instruction: Line) -> None:
        pass

    @abstractmethod
    def _text(self, instruction: TextRun) -> None:
        pass


class RecordingSurface(RenderSurface):
    """In-memory surface with fixed-ratio glyph metrics.

    Every character is ``font_size * char_width_ratio`` wide, which makes
    layouts predictable for previews and tests.
    """

    def __init__(
        self,
        page_width: float = 595.28,
        page_height: float = 841.89,
        margins: Optional[Margins] = None,
        char_width_ratio: float = 0.5,
    ):
        super().__init__(page_width, page_height, margins)
        self.char_width_ratio = char_width_ratio
        self.pages: List[List[DrawInstruction]] = [[]]

    @property
    def instructions(self) -> List[DrawInstruction]:
        return [i for page in self.pages for i in page]

    def measure_width(self, text: str, font_name: str, font_size: float) -> float:
        return len(text) * font_size * self.char_width_ratio

    def wrap_lines(self, text: str, width: float, font_name: str, font_size: float) -> List[str]:
        char_width = font_size * self.char_width_ratio
        max_chars = max(int(width // char_width), 1) if char_width > 0 else max(len(text), 1)
        lines: List[str] = []
        for paragraph in text.split("\n"):
            current = ""
            for word in paragraph.split():
                while len(word) > max_chars:
                    if current:
                        lines.append(current)
                        current = ""
                    lines.append(word[:max_chars])
                    word = word[max_chars:]
                candidate = f"{current} {word}" if current else word
                if len(candidate) <= max_chars:
                    current = candidate
                else:
                    lines.append(current)
                    current = word
            lines.append(current)
        return lines

    def _start_page(self) -> None:
        self.pages.append([])

    def _record(self, instruction: DrawInstruction) -> None:
        self.pages[-1].append(instruction)

    def _save(self) -> None:
        self._record(SaveState())

    def _restore(self) -> None:
        self._record(RestoreState())

    def _gradient_rect(self, instruction: GradientRect) -> None:
        self._record(instruction)

    def _stroke_rect(self, instruction: StrokeRect) -> None:
        self._record(instruction)

    def _line(self, instruction: Line) -> None:
        self._record(instruction)

    def _text(self, instruction: TextRun) -> None:
        self._record(instruction)


class ReportLabSurface(RenderSurface):
    """Surface backed by a ReportLab canvas."""

    def __init__(
        self,
        output: Union[str, io.BytesIO, None] = None,
        page_size: str = "A4",
        margins: Optional[Margins] = None,
        page_decorator: Optional[Callable[["ReportLabSurface"], None]] = None,
    ):
        from reportlab.lib.pagesizes import A4, LETTER
        from reportlab.pdfgen import canvas

        sizes = {"A4": A4, "LETTER": LETTER}
        if page_size.upper() not in sizes:
            raise ValueError(f"Unsupported page size: {page_size}")
        width, height = sizes[page_size.upper()]
        super().__init__(width, height, margins)

        self.output = output if output is not None else io.BytesIO()
        self.canvas = canvas.Canvas(self.output, pagesize=(width, height))
        self.page_decorator = page_decorator

    def set_metadata(self, title: str = "", author: str = "", subject: str = "",
                     keywords: str = "", creator: str = "") -> None:
        self.canvas.setTitle(title)
        self.canvas.setAuthor(author)
        self.canvas.setSubject(subject)
        self.canvas.setKeywords(keywords)
        self.canvas.setCreator(creator)

    def measure_width(self, text: str, font_name: str, font_size: float) -> float:
        from reportlab.pdfbase.pdfmetrics import stringWidth

        return stringWidth(text, font_name, font_size)

    def wrap_lines(self, text: str, width: float, font_name: str, font_size: float) -> List[str]:
        from reportlab.lib.utils import simpleSplit

        return simpleSplit(text, font_name, font_size, width)

    def _pdf_y(self, y: float) -> float:
        return self.page_height - y

    def _decorate(self) -> None:
        if self.page_decorator:
            self.canvas.saveState()
            try:
                self.page_decorator(self)
            finally:
                self.canvas.restoreState()

    def _start_page(self) -> None:
        self._decorate()
        self.canvas.showPage()

    def _save(self) -> None:
        self.canvas.saveState()

    def _restore(self) -> None:
        self.canvas.restoreState()

    def _apply(self, state: GraphicsState) -> None:
        from reportlab.lib.colors import HexColor

        self.canvas.setFillColor(HexColor(state.fill_color))
        self.canvas.setStrokeColor(HexColor(state.stroke_color))
        self.canvas.setLineWidth(state.line_width)
        self.canvas.setFont(state.font_name, state.font_size)

    def _gradient_rect(self, instruction: GradientRect) -> None:
        from reportlab.lib.colors import HexColor

        x, width, height = instruction.x, instruction.width, instruction.height
        bottom = self._pdf_y(instruction.y + height)
        self.canvas.saveState()
        path = self.canvas.beginPath()
        path.rect(x, bottom, width, height)
        self.canvas.clipPath(path, stroke=0, fill=0)
        self.canvas.linearGradient(
            x, bottom, x + width, bottom,
            (HexColor(instruction.start_color), HexColor(instruction.end_color)),
            extend=False,
        )
        self.canvas.restoreState()

    def _stroke_rect(self, instruction: StrokeRect) -> None:
        self._apply(instruction.state)
        self.canvas.rect(
            instruction.x,
            self._pdf_y(instruction.y + instruction.height),
            instruction.width,
            instruction.height,
            stroke=1,
            fill=0,
        )

    def _line(self, instruction: Line) -> None:
        self._apply(instruction.state)
        self.canvas.line(
            instruction.x1, self._pdf_y(instruction.y1),
            instruction.x2, self._pdf_y(instruction.y2),
        )

    def _text(self, instruction: TextRun) -> None:
        state = instruction.state
        self._apply(state)
        leading = self.line_height(state.font_size)
        lines = self.safe_wrap(instruction.text, instruction.width, state.font_name, state.font_size)
        for i, line in enumerate(lines):
            baseline = self._pdf_y(instruction.y + state.font_size * ASCENT_RATIO + i * leading)
            if instruction.align == "center":
                self.canvas.drawCentredString(instruction.x + instruction.width / 2, baseline, line)
            elif instruction.align == "right":
                self.canvas.drawRightString(instruction.x + instruction.width, baseline, line)
            else:
                self.canvas.drawString(instruction.x, baseline, line)

    def save(self) -> bytes:
        """Finish the document; returns the PDF bytes when writing to memory."""
        self._decorate()
        self.canvas.save()
        if isinstance(self.output, io.BytesIO):
            return self.output.getvalue()
        return b""
