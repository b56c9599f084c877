"""
Fixed font set used by the exporter.

Body text uses the standard PDF base-14 families (no embedding needed).
DejaVuSans is registered when a TTF copy can be found, so list glyphs outside
WinAnsi ("◦", "▪") render as real characters instead of notdef boxes.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFError, TTFont

from .geometry import points_to_mm

logger = logging.getLogger(__name__)

SEARCH_DIRECTORIES: List[Path] = [
    Path("/usr/share/fonts"),
    Path("/usr/share/fonts/truetype/dejavu"),
    Path("/usr/local/share/fonts"),
    Path.home() / ".fonts",
    Path.home() / ".local/share/fonts",
    Path("C:/Windows/Fonts"),
    Path("/System/Library/Fonts"),
    Path("/Library/Fonts"),
]

GLYPH_FONT = "DejaVuSans"

FONT_VARIANTS: Dict[str, Dict[str, Iterable[str]]] = {
    GLYPH_FONT: {
        "": ("DejaVuSans.ttf", "DejaVuSans-Regular.ttf"),
        "-Bold": ("DejaVuSans-Bold.ttf",),
        "-Oblique": ("DejaVuSans-Oblique.ttf", "DejaVuSans-Italic.ttf"),
        "-BoldOblique": ("DejaVuSans-BoldOblique.ttf", "DejaVuSans-BoldItalic.ttf"),
    },
}

# (regular, bold, italic, bold-italic) names of the base-14 families
STANDARD_FAMILIES: Dict[str, Tuple[str, str, str, str]] = {
    "Helvetica": ("Helvetica", "Helvetica-Bold", "Helvetica-Oblique", "Helvetica-BoldOblique"),
    "Courier": ("Courier", "Courier-Bold", "Courier-Oblique", "Courier-BoldOblique"),
    "Times": ("Times-Roman", "Times-Bold", "Times-Italic", "Times-BoldItalic"),
    "Times-Roman": ("Times-Roman", "Times-Bold", "Times-Italic", "Times-BoldItalic"),
}

_REGISTERED: set[str] = set()


@lru_cache()
def _build_font_index() -> Dict[str, Path]:
    index: Dict[str, Path] = {}
    for root in SEARCH_DIRECTORIES:
        if not root.is_dir():
            continue
        try:
            for candidate in root.rglob("*.ttf"):
                index.setdefault(candidate.name.lower(), candidate)
        except OSError as exc:
            logger.debug(f"Cannot scan font directory {root}: {exc}")
    return index


def _locate_font_file(candidates: Iterable[str]) -> Optional[Path]:
    index = _build_font_index()
    for name in candidates:
        path = index.get(name.lower())
        if path:
            return path
    return None


def register_default_fonts() -> bool:
    """
    Register the DejaVuSans family if its TTF files are available.

    Returns:
        True when the regular DejaVuSans face is registered
    """
    for family, variants in FONT_VARIANTS.items():
        for suffix, candidate_names in variants.items():
            font_id = f"{family}{suffix}"
            if font_id in _REGISTERED:
                continue
            font_path = _locate_font_file(candidate_names)
            if not font_path:
                logger.debug(f"Font file for {font_id} not found (looked for {candidate_names})")
                continue
            try:
                pdfmetrics.registerFont(TTFont(font_id, str(font_path)))
            except (TTFError, OSError) as exc:
                logger.warning(f"Cannot register font {font_id}: {exc}")
                continue
            _REGISTERED.add(font_id)
            logger.debug(f"Registered font {font_id} ({font_path})")
    return GLYPH_FONT in _REGISTERED


def resolve_font(family: str, bold: bool = False, italic: bool = False) -> str:
    """Map a family plus style flags to a concrete registered font name."""
    variants = STANDARD_FAMILIES.get(family)
    if variants is not None:
        return variants[(1 if bold else 0) + (2 if italic else 0)]

    suffix = ""
    if bold and italic:
        suffix = "-BoldOblique"
    elif bold:
        suffix = "-Bold"
    elif italic:
        suffix = "-Oblique"
    candidate = f"{family}{suffix}"
    if candidate in _REGISTERED:
        return candidate
    if family in _REGISTERED:
        return family
    logger.debug(f"Font family {family} unavailable, using Helvetica")
    return STANDARD_FAMILIES["Helvetica"][(1 if bold else 0) + (2 if italic else 0)]


def glyph_font(fallback: str) -> str:
    """Font used for list bullets: DejaVuSans when registered, otherwise ``fallback``."""
    if register_default_fonts():
        return GLYPH_FONT
    return fallback


def text_width(text: str, font_name: str, font_size: float) -> float:
    """Width of ``text`` in millimetres."""
    return points_to_mm(pdfmetrics.stringWidth(text, font_name, font_size))
