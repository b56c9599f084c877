"""
kbexport - knowledge-base post exporter.

Converts stored rich-text posts and their threaded updates into paginated
A4 PDF documents.

Quick Start:
    from kbexport import ExportService

    result = ExportService().render(record)
    Path(result.filename).write_bytes(result.pdf_bytes)
"""

from .version import __version__, __version_info__

from .exceptions import (
    ConfigError,
    ContentRecordError,
    ImageResolutionError,
    KbExportError,
    LayoutError,
    RenderingError,
)
from .config import ExportConfig
from .models import (
    Attachment,
    Blockquote,
    CodeBlock,
    ContentNode,
    Document,
    Heading,
    ImageBlock,
    ImagePlacement,
    InlineRun,
    LineBreak,
    ListBlock,
    ListItem,
    NodeKind,
    Paragraph,
    Reply,
    TableBlock,
)
from .records import ContentRecord, ReplyRecord
from .parser import BlockSegmenter, ContentNormalizer, InlineFormatter
from .assembler import DocumentAssembler, build_filename, format_timestamp, slugify
from .renderer import BlockRenderer
from .service import ExportResult, ExportService

__all__ = [
    "__version__",
    "__version_info__",
    # Exceptions
    "ConfigError",
    "ContentRecordError",
    "ImageResolutionError",
    "KbExportError",
    "LayoutError",
    "RenderingError",
    # Configuration
    "ExportConfig",
    # Content model
    "Attachment",
    "Blockquote",
    "CodeBlock",
    "ContentNode",
    "Document",
    "Heading",
    "ImageBlock",
    "ImagePlacement",
    "InlineRun",
    "LineBreak",
    "ListBlock",
    "ListItem",
    "NodeKind",
    "Paragraph",
    "Reply",
    "TableBlock",
    # Records
    "ContentRecord",
    "ReplyRecord",
    # Pipeline
    "BlockRenderer",
    "BlockSegmenter",
    "ContentNormalizer",
    "DocumentAssembler",
    "ExportResult",
    "ExportService",
    "InlineFormatter",
    "build_filename",
    "format_timestamp",
    "slugify",
]
