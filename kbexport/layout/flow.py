"""
Pagination and vertical flow.

The flow controller is the single context object every block renderer draws
through. It owns the ReportLab canvas, the vertical cursor (millimetres,
measured top-down) and the page state machine::

    IDLE -> PAGE1_ACTIVE -> NEXT_PAGE -> PAGEN_ACTIVE -> ... -> FINALIZING -> DONE

Renderers ask for room before drawing a block (``ensure_room``); if the block
does not fit, the page is broken before it, never in the middle of it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple, Union

from reportlab.pdfgen.canvas import Canvas

from ..config import ExportConfig
from ..exceptions import LayoutError
from ..fonts import resolve_font
from ..geometry import Margins, mm_to_points, points_to_mm

logger = logging.getLogger(__name__)

RGB = Tuple[int, int, int]

BLACK: RGB = (0, 0, 0)
MUTED: RGB = (150, 150, 150)
RULE: RGB = (200, 200, 200)
LINK: RGB = (0, 0, 255)

_EPSILON = 1e-6


class FlowState(Enum):
    """Page state machine of one render."""
    IDLE = "idle"
    PAGE1_ACTIVE = "page1_active"
    NEXT_PAGE = "next_page"
    PAGEN_ACTIVE = "pagen_active"
    FINALIZING = "finalizing"
    DONE = "done"


ACTIVE_STATES = (FlowState.PAGE1_ACTIVE, FlowState.PAGEN_ACTIVE)


@dataclass(slots=True)
class PageCursor:
    """Current drawing position. ``y`` grows downwards from the top edge."""
    x: float
    y: float
    page_width: float
    page_height: float
    margins: Margins
    page_index: int = 0

    @property
    def top_limit(self) -> float:
        return self.margins.top

    @property
    def bottom_limit(self) -> float:
        return self.page_height - self.margins.bottom

    @property
    def remaining(self) -> float:
        return self.bottom_limit - self.y

    def within_bounds(self) -> bool:
        return self.top_limit - _EPSILON <= self.y <= self.bottom_limit + _EPSILON

    def reset_to_top(self) -> None:
        self.x = self.margins.left
        self.y = self.margins.top


def _to_unit(color: RGB) -> Tuple[float, float, float]:
    return tuple(channel / 255.0 for channel in color)


class FlowController:
    """Vertical cursor, page breaking and mm-based drawing on one canvas."""

    def __init__(self, canvas: Canvas, config: ExportConfig):
        self.canvas = canvas
        self.config = config
        self.cursor = PageCursor(
            x=config.margins.left,
            y=config.margins.top,
            page_width=config.page_size.width,
            page_height=config.page_size.height,
            margins=config.margins,
        )
        self.state = FlowState.IDLE
        self.page_breaks = 0
        self.failed_blocks = 0
        self._font: Tuple[str, float] = (resolve_font(config.font_family), config.base_font_size)
        self._fill: RGB = BLACK
        self._stroke: RGB = BLACK

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self.state is not FlowState.IDLE:
            raise LayoutError("Flow controller already started", self.state.value)
        self.cursor.reset_to_top()
        self.state = FlowState.PAGE1_ACTIVE
        self._apply_graphics_state()
        logger.debug("Flow started on page 1")

    @property
    def is_active(self) -> bool:
        return self.state in ACTIVE_STATES

    @property
    def page_count(self) -> int:
        return self.cursor.page_index + 1

    @property
    def left(self) -> float:
        return self.config.margins.left

    @property
    def content_width(self) -> float:
        return self.config.content_width

    @property
    def y(self) -> float:
        return self.cursor.y

    @property
    def at_page_top(self) -> bool:
        return abs(self.cursor.y - self.cursor.top_limit) < _EPSILON

    def _require_active(self) -> None:
        if not self.is_active:
            raise LayoutError("Flow controller is not on an active page", self.state.value)

    # ------------------------------------------------------------------
    # Vertical flow
    # ------------------------------------------------------------------

    def fits(self, height: float) -> bool:
        return self.cursor.y + height <= self.cursor.bottom_limit + _EPSILON

    def ensure_room(self, height: float) -> bool:
        """
        Break the page before a block of ``height`` mm if it does not fit.

        No break happens at the top of a page: a block taller than a whole
        page is placed there and clipped by the bottom margin.

        Returns:
            True if a page break was issued
        """
        self._require_active()
        if self.fits(height) or self.at_page_top:
            return False
        logger.debug(
            f"Page break before block: y={self.cursor.y:.2f} + {height:.2f} > {self.cursor.bottom_limit:.2f}"
        )
        self.page_break()
        return True

    def page_break(self) -> None:
        self._require_active()
        self.canvas.showPage()
        self.state = FlowState.NEXT_PAGE
        self.cursor.page_index += 1
        self.cursor.reset_to_top()
        self.page_breaks += 1
        self._apply_graphics_state()
        self.state = FlowState.PAGEN_ACTIVE
        logger.debug(f"Started page {self.page_count}")

    def ln(self, height: float) -> None:
        """Move to the start of the next line ``height`` mm further down."""
        self._require_active()
        self.cursor.x = self.left
        self.cursor.y = min(self.cursor.y + max(height, 0.0), self.cursor.bottom_limit)

    advance = ln

    # ------------------------------------------------------------------
    # Drawing (mm, top-down)
    # ------------------------------------------------------------------

    def _apply_graphics_state(self) -> None:
        self.canvas.setFont(*self._font)
        self.canvas.setFillColorRGB(*_to_unit(self._fill))
        self.canvas.setStrokeColorRGB(*_to_unit(self._stroke))

    def _px(self, x: float) -> float:
        return mm_to_points(x)

    def _py(self, y: float) -> float:
        return mm_to_points(self.cursor.page_height - y)

    def set_font(self, name: str, size: float) -> None:
        if self._font != (name, size):
            self._font = (name, size)
            self.canvas.setFont(name, size)

    def set_fill_color(self, color: RGB) -> None:
        if self._fill != color:
            self._fill = color
            self.canvas.setFillColorRGB(*_to_unit(color))

    def set_stroke_color(self, color: RGB) -> None:
        if self._stroke != color:
            self._stroke = color
            self.canvas.setStrokeColorRGB(*_to_unit(color))

    def baseline(self, y: float, cell_height: float) -> float:
        """Baseline of text vertically centred in a cell starting at ``y``."""
        size_mm = points_to_mm(self._font[1])
        return y + (cell_height + size_mm * 0.7) / 2.0

    def draw_text(self, x: float, y: float, text: str, cell_height: float) -> None:
        self.canvas.drawString(self._px(x), self._py(self.baseline(y, cell_height)), text)

    def draw_centered_text(self, y: float, text: str, cell_height: float) -> None:
        center = self.left + self.content_width / 2.0
        self.canvas.drawCentredString(self._px(center), self._py(self.baseline(y, cell_height)), text)

    def draw_line(self, x1: float, y1: float, x2: float, y2: float,
                  color: RGB = RULE, width: float = 0.2) -> None:
        self.set_stroke_color(color)
        self.canvas.setLineWidth(mm_to_points(width))
        self.canvas.line(self._px(x1), self._py(y1), self._px(x2), self._py(y2))

    def fill_rect(self, x: float, y: float, width: float, height: float, color: RGB) -> None:
        previous = self._fill
        self.set_fill_color(color)
        self.canvas.rect(self._px(x), self._py(y + height), mm_to_points(width), mm_to_points(height),
                         stroke=0, fill=1)
        self.set_fill_color(previous)

    def draw_image(self, path: Union[str, Path], x: float, y: float, width: float, height: float) -> None:
        self.canvas.drawImage(
            str(path),
            self._px(x),
            self._py(y + height),
            width=mm_to_points(width),
            height=mm_to_points(height),
            mask="auto",
            preserveAspectRatio=False,
        )

    # ------------------------------------------------------------------
    # Finalization
    # ------------------------------------------------------------------

    def finalize(self, footer: Optional[str] = None) -> None:
        """Draw the footer on the last page and close the document."""
        self._require_active()
        self.state = FlowState.FINALIZING
        if footer:
            self.set_font(resolve_font(self.config.font_family, italic=True), 8)
            self.set_fill_color(MUTED)
            footer_y = self.cursor.page_height - self.config.footer_offset
            self.draw_centered_text(footer_y, footer, 10.0)
        self.canvas.save()
        self.state = FlowState.DONE
        logger.debug(f"Flow finalized with {self.page_count} pages ({self.page_breaks} breaks)")
