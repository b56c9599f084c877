"""Table rendering: every row is flattened to one separator-joined line."""

from __future__ import annotations

import logging
from typing import List, Sequence

from ..config import ExportConfig
from ..models import InlineRun, TableBlock
from .flow import FlowController
from .text import TextLayout, TextStyle

logger = logging.getLogger(__name__)

FONT_SIZE = 10.0
SPACING = 5.0


def flatten_row(cells: Sequence[str], separator: str = " | ") -> str:
    """Join trimmed cell texts, dropping trailing empty cells."""
    texts = [cell.strip() for cell in cells]
    while texts and not texts[-1]:
        texts.pop()
    return separator.join(texts)


class TableRenderer:
    def __init__(self, config: ExportConfig, text_layout: TextLayout):
        self.config = config
        self.text = text_layout

    def render(self, flow: FlowController, block: TableBlock) -> List[str]:
        """
        Draw a table, one line per non-empty row, rows in source order.

        A row that wraps is kept on one page.

        Returns:
            The flattened row texts that were drawn
        """
        style = TextStyle(size=FONT_SIZE, line_height=self.config.line_height)
        drawn: List[str] = []
        flow.ln(SPACING)
        for cells in block.rows:
            row_text = flatten_row(cells, self.config.table_separator)
            if not row_text:
                continue
            lines = self.text.break_runs([InlineRun(row_text)], flow.content_width, style)
            flow.ensure_room(len(lines) * style.line_height)
            for line in lines:
                flow.ensure_room(style.line_height)
                self.text.draw_line(flow, line, flow.left, flow.y, style)
                flow.ln(style.line_height)
            drawn.append(row_text)
        flow.ln(SPACING)
        logger.debug(f"Rendered table with {len(drawn)} of {len(block.rows)} rows")
        return drawn
