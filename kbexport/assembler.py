"""
Document assembler.

Lays out one exported post: header, body, attachment list, the threaded
updates and the closing footer. Also builds the suggested output filename.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import List, Optional

from reportlab.pdfgen.canvas import Canvas

from .config import ExportConfig
from .exceptions import RenderingError
from .layout.flow import RULE, FlowController
from .layout.text import TextStyle
from .models import Attachment, Document, Reply
from .parser.segmenter import BlockSegmenter
from .records import ContentRecord
from .renderer import BlockRenderer

logger = logging.getLogger(__name__)

SUBJECT = "Knowledge Base Export"

HEADER_COLOR = (100, 100, 100)
EDITED_COLOR = (150, 150, 150)
REPLY_FONT_SIZE = 10.0

_SLUG_INVALID = re.compile(r"[^A-Za-z0-9_-]")


def format_timestamp(value: datetime) -> str:
    """Display form used in headers, e.g. ``Jan 5, 2024 at 3:04 PM``."""
    hour = value.hour % 12 or 12
    return f"{value:%b} {value.day}, {value.year} at {hour}:{value:%M} {value:%p}"


def format_date(value: datetime) -> str:
    return f"{value:%b} {value.day}, {value.year}"


def slugify(title: str, max_length: int = 50) -> str:
    """Lowercase ``title`` and replace every character outside ``[A-Za-z0-9_-]`` with ``_``."""
    return _SLUG_INVALID.sub("_", title.lower())[:max_length]


def build_filename(record_id: int, title: str, config: ExportConfig,
                   exported_at: Optional[datetime] = None) -> str:
    exported_at = exported_at or datetime.now()
    return config.filename_template.format(
        id=record_id,
        slug=slugify(title, config.slug_max_length),
        date=exported_at.strftime(config.date_format),
        ext=config.extension,
    )


class DocumentAssembler:
    """Builds the document model of a record and draws it page by page."""

    def __init__(self, config: ExportConfig, segmenter: Optional[BlockSegmenter] = None,
                 renderer: Optional[BlockRenderer] = None):
        self.config = config
        self.segmenter = segmenter or BlockSegmenter()
        self.renderer = renderer or BlockRenderer(config)
        self.text = self.renderer.text

    def build_document(self, record: ContentRecord) -> Document:
        replies = [
            Reply(
                blocks=self.segmenter.segment(reply.content_html),
                attachments=list(reply.attachments),
                posted_at=reply.created_at,
                edited=reply.edited,
            )
            for reply in sorted(record.replies, key=lambda reply: reply.created_at)
        ]
        return Document(
            title=record.title,
            breadcrumb=record.breadcrumb,
            posted_at=record.created_at,
            blocks=self.segmenter.segment(record.html_content),
            attachments=list(record.attachments),
            replies=replies,
        )

    def render(self, document: Document, canvas: Canvas,
               exported_at: Optional[datetime] = None) -> FlowController:
        """
        Draw ``document`` on ``canvas`` and save it.

        Args:
            document: Document model
            canvas: Fresh canvas; it is saved on return
            exported_at: Export time shown in the footer

        Returns:
            The finished flow controller (page count, failed blocks)

        Raises:
            RenderingError: If the canvas cannot be written
        """
        exported_at = exported_at or datetime.now()
        self._set_metadata(canvas, document)
        flow = FlowController(canvas, self.config)
        flow.start()

        self._render_header(flow, document)
        self.renderer.render_blocks(flow, document.blocks)
        flow.ln(4)
        self._render_attachments(flow, document.attachments)
        self._render_updates(flow, document.replies)

        footer = self.config.footer_text.format(producer=self.config.producer, date=format_date(exported_at))
        try:
            flow.finalize(footer)
        except (OSError, ValueError) as exc:
            raise RenderingError("Failed to write PDF document", str(exc)) from exc

        logger.info(
            f"Rendered '{document.title}': {flow.page_count} pages, {len(document.replies)} updates, "
            f"{flow.failed_blocks} failed blocks"
        )
        return flow

    def _set_metadata(self, canvas: Canvas, document: Document) -> None:
        canvas.setTitle(document.title)
        canvas.setAuthor(self.config.producer)
        canvas.setCreator(self.config.producer)
        canvas.setSubject(SUBJECT)

    def _render_header(self, flow: FlowController, document: Document) -> None:
        self.text.write(flow, document.title, TextStyle(size=18, line_height=10, bold=True))
        flow.ln(2)
        muted = TextStyle(size=10, line_height=6, color=HEADER_COLOR)
        self.text.write(flow, document.breadcrumb, muted)
        flow.ln(2)
        self.text.write(flow, f"Posted: {format_timestamp(document.posted_at)}", muted)
        flow.ln(4)
        flow.draw_line(flow.left, flow.y, flow.left + flow.content_width, flow.y, color=RULE)
        flow.ln(6)

    def _render_attachments(self, flow: FlowController, attachments: List[Attachment]) -> None:
        if not attachments:
            return
        flow.ensure_room(8 + 5)
        self.text.write(flow, "Attachments:", TextStyle(size=12, line_height=8, bold=True))
        item_style = TextStyle(size=10, line_height=5)
        for attachment in attachments:
            self.text.write(flow, f"- {attachment.original_filename}", item_style)
        self.text.write(flow, "(See online version for file downloads)",
                        TextStyle(size=9, line_height=5, color=HEADER_COLOR, italic=True))
        flow.ln(4)

    def _render_updates(self, flow: FlowController, replies: List[Reply]) -> None:
        # No "Updates (0)" header for posts without replies
        if not replies:
            return
        flow.ln(4)
        flow.ensure_room(8 + 2 + 6 + self.config.line_height)
        self.text.write(flow, f"Updates ({len(replies)})", TextStyle(size=14, line_height=8, bold=True))
        flow.ln(2)
        for number, reply in enumerate(replies, start=1):
            self._render_reply(flow, number, reply)

    def _render_reply(self, flow: FlowController, number: int, reply: Reply) -> None:
        flow.ensure_room(6 + self.config.line_height)
        self.text.write(flow, f"Update #{number} — {format_timestamp(reply.posted_at)}",
                        TextStyle(size=11, line_height=6, bold=True))
        if reply.edited:
            self.text.write(flow, "edited", TextStyle(size=9, line_height=4, color=EDITED_COLOR, italic=True))
        self.renderer.render_blocks(flow, reply.blocks, font_size=REPLY_FONT_SIZE)
        if reply.attachments:
            names = ", ".join(attachment.original_filename for attachment in reply.attachments)
            self.text.write(flow, f"Attachments: {names}",
                            TextStyle(size=9, line_height=4, color=HEADER_COLOR, italic=True))
        flow.ln(4)
