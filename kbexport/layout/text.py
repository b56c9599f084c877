"""Styled text layout: greedy line breaking of inline runs and drawing them."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from ..config import ExportConfig
from ..fonts import resolve_font, text_width
from ..models import InlineRun
from .flow import BLACK, LINK, RGB, FlowController

INLINE_CODE_SHADE: RGB = (230, 230, 230)

_TOKENS = re.compile(r" +|[^ ]+")


@dataclass(slots=True)
class TextStyle:
    size: float = 11.0
    line_height: float = 5.0
    color: RGB = BLACK
    bold: bool = False
    italic: bool = False
    family: Optional[str] = None


@dataclass(slots=True)
class Fragment:
    run: InlineRun
    text: str
    font: str
    width: float


@dataclass(slots=True)
class TextLine:
    fragments: List[Fragment] = field(default_factory=list)

    @property
    def width(self) -> float:
        return sum(fragment.width for fragment in self.fragments)

    @property
    def text(self) -> str:
        return "".join(fragment.text for fragment in self.fragments)


class TextLayout:
    """Breaks runs into lines that fit a width and draws them through the flow."""

    def __init__(self, config: ExportConfig):
        self.config = config

    def font_for(self, run: InlineRun, style: TextStyle) -> str:
        if run.monospace:
            family = self.config.mono_font_family
        else:
            family = style.family or self.config.font_family
        return resolve_font(family, bold=style.bold or run.bold, italic=style.italic or run.italic)

    def break_runs(self, runs: List[InlineRun], max_width: float, style: TextStyle,
                   preserve_spaces: bool = False) -> List[TextLine]:
        """
        Greedy line breaking.

        Args:
            runs: Inline runs; ``"\\n"`` inside a run forces a line break
            max_width: Available width in mm
            style: Base style (size, bold/italic added to each run's flags)
            preserve_spaces: Keep leading spaces on each line (code blocks)

        Returns:
            Lines in order; a word wider than ``max_width`` is split by characters
        """
        lines: List[TextLine] = []
        current = TextLine()
        used = 0.0

        def append(run: InlineRun, text: str, font: str, width: float) -> None:
            nonlocal used
            last = current.fragments[-1] if current.fragments else None
            if last is not None and last.run is run:
                last.text += text
                last.width += width
            else:
                current.fragments.append(Fragment(run, text, font, width))
            used += width

        def close_line() -> None:
            nonlocal current, used
            lines.append(_rstrip_line(current, style.size))
            current = TextLine()
            used = 0.0

        for run in runs:
            font = self.font_for(run, style)
            for index, segment in enumerate(run.text.split("\n")):
                if index > 0:
                    close_line()
                for token in _TOKENS.findall(segment):
                    token_width = text_width(token, font, style.size)
                    if token[0] == " ":
                        if current.fragments or preserve_spaces:
                            append(run, token, font, token_width)
                        continue
                    if used + token_width > max_width and current.fragments:
                        close_line()
                    if token_width > max_width:
                        pieces = _split_word(token, font, style.size, max_width)
                        for piece in pieces[:-1]:
                            append(run, piece, font, text_width(piece, font, style.size))
                            close_line()
                        token = pieces[-1]
                        token_width = text_width(token, font, style.size)
                    append(run, token, font, token_width)

        if current.fragments or not lines:
            close_line()
        return lines

    def measure(self, runs: List[InlineRun], max_width: float, style: TextStyle) -> float:
        return len(self.break_runs(runs, max_width, style)) * style.line_height

    def draw_line(self, flow: FlowController, line: TextLine, x: float, y: float, style: TextStyle) -> None:
        for fragment in line.fragments:
            run = fragment.run
            if run.monospace and fragment.text.strip():
                flow.fill_rect(x, y + 0.5, fragment.width, style.line_height - 1.0, INLINE_CODE_SHADE)
            color = LINK if run.is_link else style.color
            flow.set_font(fragment.font, style.size)
            flow.set_fill_color(color)
            flow.draw_text(x, y, fragment.text, style.line_height)
            if run.underline:
                underline_y = flow.baseline(y, style.line_height) + 0.4
                flow.draw_line(x, underline_y, x + fragment.width, underline_y, color=color, width=0.15)
            x += fragment.width

    def draw_runs(self, flow: FlowController, runs: List[InlineRun], style: TextStyle,
                  x: Optional[float] = None, width: Optional[float] = None, align: str = "left",
                  preserve_spaces: bool = False,
                  before_line: Optional[Callable[[float], None]] = None) -> int:
        """
        Draw runs line by line, breaking the page between lines when needed.

        Returns:
            Number of lines drawn
        """
        x = flow.left if x is None else x
        width = flow.content_width - (x - flow.left) if width is None else width
        lines = self.break_runs(runs, width, style, preserve_spaces=preserve_spaces)
        for line in lines:
            flow.ensure_room(style.line_height)
            if before_line is not None:
                before_line(flow.y)
            offset = (width - line.width) / 2.0 if align == "center" else 0.0
            self.draw_line(flow, line, x + max(offset, 0.0), flow.y, style)
            flow.ln(style.line_height)
        return len(lines)

    def write(self, flow: FlowController, text: str, style: TextStyle, align: str = "left",
              x: Optional[float] = None) -> int:
        """Draw a plain string with one style (titles, labels, notes)."""
        return self.draw_runs(flow, [InlineRun(text)], style, x=x, align=align)


def _rstrip_line(line: TextLine, size: float) -> TextLine:
    while line.fragments and not line.fragments[-1].text.strip(" "):
        line.fragments.pop()
    if line.fragments:
        last = line.fragments[-1]
        stripped = last.text.rstrip(" ")
        if stripped != last.text:
            last.text = stripped
            last.width = text_width(stripped, last.font, size)
    return line


def _split_word(word: str, font: str, size: float, max_width: float) -> List[str]:
    pieces: List[str] = []
    current = ""
    for char in word:
        if current and text_width(current + char, font, size) > max_width:
            pieces.append(current)
            current = char
        else:
            current += char
    pieces.append(current)
    return pieces
