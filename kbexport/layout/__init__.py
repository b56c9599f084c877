"""Page layout: flow control, text, lists, images and tables."""

from .flow import FlowController, FlowState, PageCursor
from .images import ImageEngine, ImageResolver, is_remote, measure
from .lists import ListEntry, ListRenderer
from .tables import TableRenderer, flatten_row
from .text import TextLayout, TextLine, TextStyle

__all__ = [
    "FlowController",
    "FlowState",
    "ImageEngine",
    "ImageResolver",
    "ListEntry",
    "ListRenderer",
    "PageCursor",
    "TableRenderer",
    "TextLayout",
    "TextLine",
    "TextStyle",
    "flatten_row",
    "is_remote",
    "measure",
]
