"""
Content model built from normalized markup.

A render call builds one tree of these nodes, lays it out and throws it away.
Every block-level node carries a ``kind`` tag; renderers dispatch on it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import ClassVar, List, Optional, Tuple


class NodeKind(Enum):
    """Closed set of content node kinds."""
    PARAGRAPH = "paragraph"
    HEADING = "heading"
    LIST = "list"
    LIST_ITEM = "list_item"
    IMAGE = "image"
    TABLE = "table"
    BLOCKQUOTE = "blockquote"
    CODE_BLOCK = "code_block"
    LINE_BREAK = "line_break"


@dataclass(frozen=True, slots=True)
class InlineRun:
    """Maximal span of text sharing one style combination."""
    text: str
    bold: bool = False
    italic: bool = False
    underline: bool = False
    monospace: bool = False
    link_target: Optional[str] = None

    @property
    def style_key(self) -> Tuple[bool, bool, bool, bool, Optional[str]]:
        return (self.bold, self.italic, self.underline, self.monospace, self.link_target)

    @property
    def is_link(self) -> bool:
        return self.link_target is not None

    def with_text(self, text: str) -> "InlineRun":
        return InlineRun(text, self.bold, self.italic, self.underline, self.monospace, self.link_target)


def runs_text(runs: List[InlineRun]) -> str:
    return "".join(run.text for run in runs)


class ContentNode:
    """Base class of all content nodes."""
    kind: ClassVar[NodeKind]


@dataclass(slots=True)
class Paragraph(ContentNode):
    kind: ClassVar[NodeKind] = NodeKind.PARAGRAPH
    runs: List[InlineRun] = field(default_factory=list)

    @property
    def text(self) -> str:
        return runs_text(self.runs)


@dataclass(slots=True)
class Heading(ContentNode):
    kind: ClassVar[NodeKind] = NodeKind.HEADING
    level: int = 1
    text: str = ""


@dataclass(slots=True)
class ListItem(ContentNode):
    kind: ClassVar[NodeKind] = NodeKind.LIST_ITEM
    runs: List[InlineRun] = field(default_factory=list)
    nested_lists: List["ListBlock"] = field(default_factory=list)

    @property
    def text(self) -> str:
        return runs_text(self.runs)

    @property
    def nested_list(self) -> Optional["ListBlock"]:
        return self.nested_lists[0] if self.nested_lists else None


@dataclass(slots=True)
class ListBlock(ContentNode):
    kind: ClassVar[NodeKind] = NodeKind.LIST
    ordered: bool = False
    items: List[ListItem] = field(default_factory=list)


@dataclass(slots=True)
class ImageBlock(ContentNode):
    kind: ClassVar[NodeKind] = NodeKind.IMAGE
    src: str = ""
    alt: str = ""

    @property
    def placeholder(self) -> str:
        """Text stand-in used when the image cannot be embedded."""
        return f"[Image: {self.alt}]" if self.alt else "[Image]"


@dataclass(slots=True)
class TableBlock(ContentNode):
    kind: ClassVar[NodeKind] = NodeKind.TABLE
    rows: List[List[str]] = field(default_factory=list)


@dataclass(slots=True)
class Blockquote(ContentNode):
    kind: ClassVar[NodeKind] = NodeKind.BLOCKQUOTE
    runs: List[InlineRun] = field(default_factory=list)

    @property
    def text(self) -> str:
        return runs_text(self.runs)


@dataclass(slots=True)
class CodeBlock(ContentNode):
    kind: ClassVar[NodeKind] = NodeKind.CODE_BLOCK
    text: str = ""


@dataclass(slots=True)
class LineBreak(ContentNode):
    kind: ClassVar[NodeKind] = NodeKind.LINE_BREAK


@dataclass(slots=True)
class ImagePlacement:
    """Result of resolving and scaling one image."""
    resolved_path: Optional[Path]
    display_width: float
    display_height: float
    caption: str = ""
    x: float = 0.0
    scale: float = 1.0


@dataclass(slots=True)
class Attachment:
    original_filename: str
    path: str = ""


@dataclass(slots=True)
class Reply:
    blocks: List[ContentNode]
    attachments: List[Attachment]
    posted_at: datetime
    edited: bool = False


@dataclass(slots=True)
class Document:
    title: str
    breadcrumb: str
    posted_at: datetime
    blocks: List[ContentNode]
    attachments: List[Attachment] = field(default_factory=list)
    replies: List[Reply] = field(default_factory=list)
