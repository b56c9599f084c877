"""
Block segmenter.

One recursive walk over the normalized tree turns markup into an ordered list
of content nodes. This is the only place markup is interpreted: the renderers
consume nodes, never markup.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Dict, List, Optional

from lxml import html

from ..models import (
    Blockquote,
    CodeBlock,
    ContentNode,
    Heading,
    ImageBlock,
    InlineRun,
    LineBreak,
    ListBlock,
    ListItem,
    Paragraph,
    TableBlock,
    runs_text,
)
from .inline import InlineFormatter, finalize_runs
from .normalizer import ContentNormalizer

logger = logging.getLogger(__name__)

LIST_TAGS = ("ul", "ol")

_SPACES = re.compile(r"\s+")


class BlockSegmenter:
    """Builds the content node sequence for one markup document."""

    def __init__(self, normalizer: Optional[ContentNormalizer] = None,
                 formatter: Optional[InlineFormatter] = None):
        self.normalizer = normalizer or ContentNormalizer()
        self.inline = formatter or InlineFormatter()
        self._handlers: Dict[str, Callable[[html.HtmlElement, List[ContentNode]], None]] = {
            "p": self._paragraph,
            "div": self._container,
            "td": self._container,
            "th": self._container,
            "blockquote": self._blockquote,
            "pre": self._preformatted,
            "ul": self._list,
            "ol": self._list,
            "li": self._orphan_item,
            "img": self._image,
            "table": self._table,
            "tr": self._orphan_row,
        }
        for level in range(1, 7):
            self._handlers[f"h{level}"] = self._heading

    def segment(self, markup: Optional[str]) -> List[ContentNode]:
        """
        Normalize ``markup`` and segment it into block nodes.

        Args:
            markup: Stored markup of one post or reply body

        Returns:
            Content nodes in source order
        """
        root = self.normalizer.normalize(markup)
        blocks = self.segment_element(root)
        logger.debug(f"Segmented markup into {len(blocks)} blocks")
        return blocks

    def segment_element(self, root: html.HtmlElement) -> List[ContentNode]:
        blocks: List[ContentNode] = []
        self._flow(root, blocks, line_breaks=True)
        return blocks

    def _flow(self, element: html.HtmlElement, blocks: List[ContentNode], line_breaks: bool) -> None:
        pending: List[InlineRun] = []
        for event in self.inline.iter_events(element):
            if isinstance(event, InlineRun):
                if line_breaks and event.text == "\n" and not runs_text(pending).strip():
                    pending = []
                    blocks.append(LineBreak())
                else:
                    pending.append(event)
                continue
            self._flush(pending, blocks)
            pending = []
            self._dispatch(event, blocks)
        self._flush(pending, blocks)

    def _flush(self, pending: List[InlineRun], blocks: List[ContentNode]) -> None:
        runs = finalize_runs(pending)
        if runs_text(runs).strip():
            blocks.append(Paragraph(runs))

    def _dispatch(self, element: html.HtmlElement, blocks: List[ContentNode]) -> None:
        handler = self._handlers.get(element.tag)
        if handler is None:
            self._container(element, blocks)
            return
        handler(element, blocks)

    def _container(self, element, blocks) -> None:
        self._flow(element, blocks, line_breaks=True)

    def _paragraph(self, element, blocks) -> None:
        self._flow(element, blocks, line_breaks=False)

    def _heading(self, element, blocks) -> None:
        text = _single_line(runs_text(self.inline.format(element)))
        if text:
            blocks.append(Heading(int(element.tag[1]), text))

    def _blockquote(self, element, blocks) -> None:
        runs = self.inline.format(element)
        if runs_text(runs).strip():
            blocks.append(Blockquote(runs))

    def _preformatted(self, element, blocks) -> None:
        text = _preformatted_text(element).strip("\r\n")
        if text.strip():
            blocks.append(CodeBlock(text))

    def _image(self, element, blocks) -> None:
        blocks.append(ImageBlock(src=(element.get("src") or "").strip(), alt=(element.get("alt") or "").strip()))

    def _list(self, element, blocks) -> None:
        block = self.build_list(element)
        if block.items:
            blocks.append(block)

    def _orphan_item(self, element, blocks) -> None:
        blocks.append(self.build_item(element))

    def _table(self, element, blocks) -> None:
        rows = [self._row_cells(row) for row in element.iter("tr")
                if next(row.iterancestors("table"), None) is element]
        if rows:
            blocks.append(TableBlock(rows))

    def _orphan_row(self, element, blocks) -> None:
        blocks.append(TableBlock([self._row_cells(element)]))

    def build_list(self, element: html.HtmlElement) -> ListBlock:
        """Build a list node from the direct ``li`` children of ``ul``/``ol``."""
        block = ListBlock(ordered=element.tag == "ol")
        for child in element:
            if child.tag == "li":
                block.items.append(self.build_item(child))
            elif child.tag in LIST_TAGS:
                # Sublist placed directly in the list belongs to the preceding item
                if not block.items:
                    block.items.append(ListItem())
                block.items[-1].nested_lists.append(self.build_list(child))
        return block

    def build_item(self, element: html.HtmlElement) -> ListItem:
        runs = self.inline.format(element, skip=LIST_TAGS)
        # Lists wrapped in div/span/strong inside the item still belong to it
        nested = [self.build_list(child) for child in element.iter(*LIST_TAGS)
                  if next(child.iterancestors("li", *LIST_TAGS), None) is element]
        return ListItem(runs=runs, nested_lists=[block for block in nested if block.items])

    def _row_cells(self, row: html.HtmlElement) -> List[str]:
        cells = [cell for cell in row if cell.tag == "td"]
        if not cells:
            cells = [cell for cell in row if cell.tag == "th"]
        return [_single_line(runs_text(self.inline.format(cell))) for cell in cells]


def _single_line(text: str) -> str:
    return _SPACES.sub(" ", text.replace("\n", " ")).strip()


def _preformatted_text(element: html.HtmlElement) -> str:
    parts = [element.text or ""]
    for child in element:
        parts.append("\n" if child.tag == "br" else _preformatted_text(child))
        parts.append(child.tail or "")
    return "".join(parts)
