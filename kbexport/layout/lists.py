"""
List layout.

Each item is drawn as one prefixed line (wrapped with a hanging indent when
it is too long) followed by its nested lists one level deeper. Numbering of
ordered lists always starts at 1 for every list node.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

from ..config import ExportConfig
from ..fonts import glyph_font, resolve_font, text_width
from ..models import ListBlock, ListItem, runs_text
from .flow import BLACK, FlowController
from .text import TextLayout, TextStyle

logger = logging.getLogger(__name__)

SPACING_BEFORE = 5.0
SPACING_AFTER = 3.0
MARKER_GAP = 1.5


@dataclass(slots=True)
class ListEntry:
    """One drawn item line: what was drawn and where."""
    depth: int
    marker: str
    indent: float
    text: str
    page_index: int


class ListRenderer:
    def __init__(self, config: ExportConfig, text_layout: TextLayout):
        self.config = config
        self.text = text_layout

    def font_size(self, depth: int) -> float:
        return self.config.base_font_size if depth == 0 else self.config.base_font_size - 1

    def marker(self, ordered: bool, number: int, depth: int) -> str:
        if ordered:
            return f"{number}."
        return self.config.bullet_for_depth(depth)

    def render(self, flow: FlowController, block: ListBlock, depth: int = 0) -> List[ListEntry]:
        """
        Draw a list and its nested lists.

        Args:
            flow: Flow controller of the current render
            block: List node
            depth: Nesting depth, 0 for a top-level list

        Returns:
            Entries for every drawn item line, in drawing order
        """
        if depth == 0:
            flow.ln(SPACING_BEFORE)
        entries: List[ListEntry] = []
        for number, item in enumerate(block.items, start=1):
            entries.extend(self.render_item(flow, item, depth, self.marker(block.ordered, number, depth),
                                            ordered=block.ordered))
        if depth == 0:
            flow.ln(SPACING_AFTER)
        logger.debug(f"Rendered {'ordered' if block.ordered else 'unordered'} list at depth {depth} with {len(block.items)} items")
        return entries

    def render_item(self, flow: FlowController, item: ListItem, depth: int, marker: str,
                    ordered: bool = False) -> List[ListEntry]:
        size = self.font_size(depth)
        line_height = self.config.line_height
        indent = self.config.list_indent(depth)
        marker_x = flow.left + indent

        base_font = resolve_font(self.config.font_family)
        marker_font = base_font if ordered else glyph_font(base_font)
        marker_width = text_width(marker, marker_font, size) + MARKER_GAP
        text_x = marker_x + marker_width
        style = TextStyle(size=size, line_height=line_height, color=BLACK)
        lines = self.text.break_runs(item.runs, flow.left + flow.content_width - text_x, style)

        # The item line(s) stay together on one page
        flow.ensure_room(len(lines) * line_height)
        entry = ListEntry(depth, marker, indent, runs_text(item.runs), flow.cursor.page_index)

        flow.set_font(marker_font, size)
        flow.set_fill_color(BLACK)
        flow.draw_text(marker_x, flow.y, marker, line_height)
        for line in lines:
            flow.ensure_room(line_height)
            self.text.draw_line(flow, line, text_x, flow.y, style)
            flow.ln(line_height)

        entries = [entry]
        for nested in item.nested_lists:
            entries.extend(self.render(flow, nested, depth + 1))
        return entries
