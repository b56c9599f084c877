"""
Image placement.

Resolves an image ``src`` against the document root, measures it with Pillow,
scales it into the configured box and draws it centred. Anything that keeps
an image from being embedded degrades to placeholder text.
"""

from __future__ import annotations

import logging
import os
import posixpath
from pathlib import Path
from typing import List, Optional, Tuple, Union
from urllib.parse import urlsplit

from PIL import Image

from ..config import ExportConfig
from ..exceptions import ImageResolutionError, LayoutError
from ..geometry import px_to_mm
from ..models import ImageBlock, ImagePlacement
from .flow import FlowController
from .text import TextLayout, TextStyle

logger = logging.getLogger(__name__)

REMOTE_SCHEMES = ("http", "https")

PLACEHOLDER_COLOR = (150, 150, 150)
SOURCE_COLOR = (200, 100, 100)
CAPTION_COLOR = (100, 100, 100)

SPACING_BEFORE = 3.0
CAPTION_GAP = 2.0
CAPTION_HEIGHT = 5.0
SPACING_AFTER = 5.0
MAX_SOURCE_LENGTH = 80


def is_remote(src: str) -> bool:
    """True for ``http(s)://`` and protocol-relative ``//`` sources."""
    src = src.strip()
    if src.startswith("//"):
        return True
    return urlsplit(src).scheme.lower() in REMOTE_SCHEMES


def remote_basename(src: str) -> str:
    name = posixpath.basename(urlsplit(src).path.rstrip("/"))
    return name or src


def truncate_source(src: str, limit: int = MAX_SOURCE_LENGTH) -> str:
    if len(src) <= limit:
        return src
    return src[:limit - 3] + "..."


class ImageResolver:
    """Finds the local file behind an image ``src``."""

    def __init__(self, docroot: Union[str, Path]):
        self.docroot = Path(docroot)

    def candidates(self, src: str) -> List[Path]:
        """
        Candidate paths in lookup order.

        Root-relative sources are tried under the docroot, then by basename in
        ``uploads/images``. Relative sources are tried under the docroot, then
        by basename in ``uploads/images`` and ``uploads/files``.
        """
        path_part = urlsplit(src).path or src
        name = posixpath.basename(path_part)
        if path_part.startswith("/"):
            paths = [self.docroot / path_part.lstrip("/")]
            if name:
                paths.append(self.docroot / "uploads" / "images" / name)
            return paths
        paths = [self.docroot / path_part]
        if name:
            paths.append(self.docroot / "uploads" / "images" / name)
            paths.append(self.docroot / "uploads" / "files" / name)
        return paths

    def resolve(self, src: str) -> Optional[Path]:
        root = self.docroot.resolve()
        for candidate in self.candidates(src):
            try:
                if not candidate.resolve().is_relative_to(root):
                    logger.debug(f"Skipping image candidate outside docroot: {candidate}")
                    continue
                if candidate.is_file() and os.access(candidate, os.R_OK):
                    logger.debug(f"Resolved image {src!r} to {candidate}")
                    return candidate
            except OSError as exc:
                logger.debug(f"Skipping image candidate {candidate}: {exc}")
        return None


def measure(path: Union[str, Path]) -> Tuple[int, int]:
    """Natural pixel size of an image. The file handle is closed on return."""
    try:
        with Image.open(path) as image:
            return image.size
    except OSError as exc:
        raise ImageResolutionError("Cannot read image", str(path), str(exc)) from exc


class ImageEngine:
    """Resolves, scales and places image blocks."""

    def __init__(self, config: ExportConfig, text_layout: TextLayout,
                 resolver: Optional[ImageResolver] = None):
        self.config = config
        self.text = text_layout
        self.resolver = resolver or ImageResolver(config.docroot)

    def max_box(self, content_width: float) -> Tuple[float, float]:
        max_width = min(self.config.max_image_width, content_width - 2 * self.config.image_side_margin)
        return max_width, self.config.max_image_height

    def compute_placement(self, path: Optional[Path], width_px: int, height_px: int,
                          content_width: float, left: float = 0.0, caption: str = "") -> ImagePlacement:
        """
        Scale natural pixel dimensions into the image box.

        Raises:
            LayoutError: If either dimension is not positive
        """
        if width_px <= 0 or height_px <= 0:
            raise LayoutError("Image has degenerate dimensions", f"{width_px}x{height_px}")
        width_mm = px_to_mm(width_px, self.config.px_to_mm)
        height_mm = px_to_mm(height_px, self.config.px_to_mm)
        max_width, max_height = self.max_box(content_width)
        if max_width <= 0 or max_height <= 0:
            raise LayoutError("No room for images", f"box {max_width:.1f}x{max_height:.1f} mm")

        scale = min(max_width / width_mm, max_height / height_mm)
        if not self.config.allow_upscale:
            scale = min(scale, 1.0)
        display_width = width_mm * scale
        display_height = height_mm * scale
        x = left + (content_width - display_width) / 2.0
        return ImagePlacement(path, display_width, display_height, caption=caption, x=x, scale=scale)

    def required_height(self, placement: ImagePlacement) -> float:
        height = SPACING_BEFORE + placement.display_height + SPACING_AFTER
        if placement.caption:
            height += CAPTION_GAP + CAPTION_HEIGHT
        return height

    def place(self, flow: FlowController, block: ImageBlock) -> Optional[ImagePlacement]:
        """
        Draw an image block.

        Returns:
            The placement when the image was embedded, ``None`` when a
            placeholder was drawn instead
        """
        src = block.src.strip()
        if not src:
            self._placeholder(flow, "[Image - no source]")
            return None
        if is_remote(src):
            self._placeholder(flow, f"[External Image: {remote_basename(src)}]")
            return None

        path = self.resolver.resolve(src)
        if path is None:
            logger.warning(f"Image not found: {src}")
            self._placeholder(flow, block.placeholder, source=src)
            return None

        try:
            width_px, height_px = measure(path)
        except ImageResolutionError as exc:
            logger.warning(f"Image could not be measured: {exc}")
            self._placeholder(flow, block.placeholder, source=src)
            return None

        placement = self.compute_placement(path, width_px, height_px, flow.content_width,
                                           left=flow.left, caption=block.alt)
        flow.ensure_room(max(self.config.image_reserve, self.required_height(placement)))

        flow.ln(SPACING_BEFORE)
        try:
            flow.draw_image(path, placement.x, flow.y, placement.display_width, placement.display_height)
        except OSError as exc:
            logger.warning(f"Image could not be embedded: {path}: {exc}")
            self._placeholder(flow, block.placeholder, source=src)
            return None
        flow.ln(placement.display_height)

        if placement.caption:
            flow.ln(CAPTION_GAP)
            self.text.write(flow, placement.caption,
                            TextStyle(size=9, line_height=CAPTION_HEIGHT, color=CAPTION_COLOR, italic=True),
                            align="center")
        flow.ln(SPACING_AFTER)
        logger.debug(
            f"Placed image {path.name} at {placement.display_width:.1f}x{placement.display_height:.1f} mm "
            f"(scale {placement.scale:.3f})"
        )
        return placement

    def _placeholder(self, flow: FlowController, text: str, source: Optional[str] = None) -> None:
        self.text.write(flow, text, TextStyle(size=10, line_height=5.0, color=PLACEHOLDER_COLOR, italic=True))
        if source:
            self.text.write(flow, f"Original src: {truncate_source(source)}",
                            TextStyle(size=8, line_height=3.0, color=SOURCE_COLOR))
        flow.ln(2.0)
