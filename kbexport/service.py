"""
Export service.

Entry point for callers: takes one materialized content record and returns
the PDF bytes together with the suggested download filename. Each call owns
its own canvas, flow controller and node tree.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from io import BytesIO
from typing import Any, Mapping, Optional, Union

from reportlab.pdfgen.canvas import Canvas

from .assembler import DocumentAssembler, build_filename
from .config import ExportConfig
from .exceptions import ContentRecordError
from .geometry import mm_to_points
from .records import ContentRecord

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"


@dataclass(slots=True)
class ExportResult:
    pdf_bytes: bytes
    filename: str
    content_type: str = PDF_CONTENT_TYPE
    page_count: int = 1
    failed_blocks: int = 0


class ExportService:
    """Renders content records to PDF."""

    def __init__(self, config: Optional[ExportConfig] = None, assembler: Optional[DocumentAssembler] = None):
        self.config = config or ExportConfig()
        self.assembler = assembler or DocumentAssembler(self.config)

    def render(self, record: Union[ContentRecord, Mapping[str, Any], None],
               exported_at: Optional[datetime] = None) -> ExportResult:
        """
        Render one record.

        Args:
            record: ``ContentRecord`` or a mapping in the content-store format
            exported_at: Export time (footer date and filename date); defaults to now

        Returns:
            ExportResult with the PDF bytes and suggested filename

        Raises:
            ContentRecordError: If the record is missing or malformed
            RenderingError: If the PDF cannot be written
        """
        if record is None:
            raise ContentRecordError("Content record not found")
        if not isinstance(record, ContentRecord):
            record = ContentRecord.from_mapping(record)

        exported_at = exported_at or datetime.now()
        logger.info(f"Exporting record {record.id} ({len(record.replies)} replies)")

        document = self.assembler.build_document(record)
        buffer = BytesIO()
        page_size = (mm_to_points(self.config.page_size.width), mm_to_points(self.config.page_size.height))
        canvas = Canvas(buffer, pagesize=page_size, pageCompression=1)
        flow = self.assembler.render(document, canvas, exported_at)

        return ExportResult(
            pdf_bytes=buffer.getvalue(),
            filename=build_filename(record.id, record.title, self.config, exported_at),
            page_count=flow.page_count,
            failed_blocks=flow.failed_blocks,
        )
