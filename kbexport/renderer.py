"""
Block renderer.

Dispatches every content node to the handler registered for its kind. The
handler table covers the whole ``NodeKind`` enumeration; a failure inside one
handler is contained to that block and replaced by a visible marker.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, Optional

from .config import ExportConfig
from .exceptions import RenderingError
from .models import (
    Blockquote,
    CodeBlock,
    ContentNode,
    Heading,
    ImageBlock,
    InlineRun,
    ListBlock,
    ListItem,
    NodeKind,
    Paragraph,
    TableBlock,
)
from .layout.flow import FlowController
from .layout.images import ImageEngine
from .layout.lists import ListRenderer
from .layout.tables import TableRenderer
from .layout.text import TextLayout, TextStyle

logger = logging.getLogger(__name__)

# level -> (font size pt, cell height mm)
HEADING_STYLES = {
    1: (16.0, 8.0),
    2: (14.0, 7.0),
    3: (12.0, 6.0),
}
DEFAULT_HEADING_STYLE = (11.0, 6.0)
HEADING_SPACING_BEFORE = 5.0
HEADING_SPACING_AFTER = 3.0

PARAGRAPH_SPACING = 3.0
LINE_BREAK_HEIGHT = 3.0

BLOCKQUOTE_INDENT = 6.0
BLOCKQUOTE_COLOR = (100, 100, 100)
BLOCKQUOTE_RULE = (180, 180, 180)

CODE_FONT_SIZE = 10.0
CODE_SHADE = (245, 245, 245)
CODE_SPACING_AFTER = 5.0

ERROR_COLOR = (200, 0, 0)

Handler = Callable[[FlowController, ContentNode, TextStyle], None]


class BlockRenderer:
    """Draws content nodes through a flow controller."""

    def __init__(self, config: ExportConfig, text_layout: Optional[TextLayout] = None,
                 images: Optional[ImageEngine] = None):
        self.config = config
        self.text = text_layout or TextLayout(config)
        self.lists = ListRenderer(config, self.text)
        self.tables = TableRenderer(config, self.text)
        self.images = images or ImageEngine(config, self.text)
        self._handlers: Dict[NodeKind, Handler] = {
            NodeKind.PARAGRAPH: self._paragraph,
            NodeKind.HEADING: self._heading,
            NodeKind.LIST: self._list,
            NodeKind.LIST_ITEM: self._list_item,
            NodeKind.IMAGE: self._image,
            NodeKind.TABLE: self._table,
            NodeKind.BLOCKQUOTE: self._blockquote,
            NodeKind.CODE_BLOCK: self._code_block,
            NodeKind.LINE_BREAK: self._line_break,
        }

    @property
    def handled_kinds(self) -> frozenset:
        return frozenset(self._handlers)

    def body_style(self, font_size: Optional[float] = None) -> TextStyle:
        return TextStyle(size=font_size or self.config.base_font_size, line_height=self.config.line_height)

    def render_blocks(self, flow: FlowController, blocks: Iterable[ContentNode],
                      font_size: Optional[float] = None) -> int:
        """
        Render a block sequence.

        Args:
            flow: Flow controller of the current render
            blocks: Content nodes in source order
            font_size: Body font size (replies use a smaller size)

        Returns:
            Number of blocks replaced by an error marker
        """
        style = self.body_style(font_size)
        failures = 0
        for block in blocks:
            if not self.render_block(flow, block, style):
                failures += 1
        return failures

    def render_block(self, flow: FlowController, block: ContentNode, style: Optional[TextStyle] = None) -> bool:
        """
        Render one block inside an error boundary.

        Returns:
            False if the block failed and a marker was drawn instead

        Raises:
            RenderingError: If no handler is registered for the node kind
        """
        handler = self._handlers.get(block.kind)
        if handler is None:
            raise RenderingError("No handler registered for node kind", str(block.kind))
        try:
            handler(flow, block, style or self.body_style())
        except Exception as exc:
            logger.error(f"Failed to render {block.kind.value} block: {exc}", exc_info=True)
            flow.failed_blocks += 1
            self._error_marker(flow, block.kind)
            return False
        return True

    def _error_marker(self, flow: FlowController, kind: NodeKind) -> None:
        marker_style = TextStyle(size=9, line_height=self.config.line_height, color=ERROR_COLOR, italic=True)
        self.text.write(flow, f"[Render error: {kind.value} block skipped]", marker_style)
        flow.ln(2.0)

    def _paragraph(self, flow: FlowController, block: Paragraph, style: TextStyle) -> None:
        self.text.draw_runs(flow, block.runs, style)
        flow.ln(PARAGRAPH_SPACING)

    def _heading(self, flow: FlowController, block: Heading, style: TextStyle) -> None:
        size, cell_height = HEADING_STYLES.get(block.level, DEFAULT_HEADING_STYLE)
        heading_style = TextStyle(size=size, line_height=cell_height, bold=True)
        runs = [InlineRun(block.text)]
        flow.ln(HEADING_SPACING_BEFORE)
        flow.ensure_room(self.text.measure(runs, flow.content_width, heading_style))
        self.text.draw_runs(flow, runs, heading_style)
        flow.ln(HEADING_SPACING_AFTER)

    def _list(self, flow: FlowController, block: ListBlock, style: TextStyle) -> None:
        self.lists.render(flow, block)

    def _list_item(self, flow: FlowController, block: ListItem, style: TextStyle) -> None:
        self.lists.render_item(flow, block, 0, self.config.bullet_for_depth(0))

    def _image(self, flow: FlowController, block: ImageBlock, style: TextStyle) -> None:
        self.images.place(flow, block)

    def _table(self, flow: FlowController, block: TableBlock, style: TextStyle) -> None:
        self.tables.render(flow, block)

    def _blockquote(self, flow: FlowController, block: Blockquote, style: TextStyle) -> None:
        quote_style = TextStyle(size=style.size, line_height=style.line_height, color=BLOCKQUOTE_COLOR, italic=True)
        rule_x = flow.left + BLOCKQUOTE_INDENT / 3.0

        def draw_rule(y: float) -> None:
            flow.draw_line(rule_x, y, rule_x, y + quote_style.line_height, color=BLOCKQUOTE_RULE, width=0.6)

        self.text.draw_runs(flow, block.runs, quote_style, x=flow.left + BLOCKQUOTE_INDENT, before_line=draw_rule)
        flow.ln(PARAGRAPH_SPACING)

    def _code_block(self, flow: FlowController, block: CodeBlock, style: TextStyle) -> None:
        code_style = TextStyle(size=CODE_FONT_SIZE, line_height=self.config.line_height,
                               family=self.config.mono_font_family)

        def draw_band(y: float) -> None:
            flow.fill_rect(flow.left, y, flow.content_width, code_style.line_height, CODE_SHADE)

        padding = 2.0
        self.text.draw_runs(flow, [InlineRun(block.text.expandtabs(4))], code_style,
                            x=flow.left + padding, width=flow.content_width - 2 * padding,
                            preserve_spaces=True, before_line=draw_band)
        flow.ln(CODE_SPACING_AFTER)

    def _line_break(self, flow: FlowController, block: ContentNode, style: TextStyle) -> None:
        flow.ln(LINE_BREAK_HEIGHT)
