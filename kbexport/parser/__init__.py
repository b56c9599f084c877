"""Markup parsing: normalization, inline runs and block segmentation."""

from .inline import InlineFormatter, finalize_runs
from .normalizer import ALLOWED_TAGS, ContentNormalizer, decode_entities
from .segmenter import BlockSegmenter

__all__ = [
    "ALLOWED_TAGS",
    "BlockSegmenter",
    "ContentNormalizer",
    "InlineFormatter",
    "decode_entities",
    "finalize_runs",
]
