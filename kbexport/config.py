"""
Export configuration.

Every layout constant used by the exporter lives here so callers can tune
page geometry, image boxes, fonts and list styling without touching the
layout code.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple, Union

from .exceptions import ConfigError
from .geometry import PX_TO_MM, Margins, Size

logger = logging.getLogger(__name__)


A4 = Size(210.0, 297.0)


@dataclass(slots=True)
class ExportConfig:
    """Configuration for a single export call."""

    # Page geometry (mm)
    page_size: Size = field(default_factory=lambda: Size(A4.width, A4.height))
    margins: Margins = field(default_factory=lambda: Margins.uniform(15.0))

    # Images
    max_image_width: float = 140.0
    max_image_height: float = 90.0
    image_side_margin: float = 20.0
    px_to_mm: float = PX_TO_MM
    allow_upscale: bool = False
    image_reserve: float = 100.0
    docroot: Path = field(default_factory=Path.cwd)

    # Fonts
    font_family: str = "Helvetica"
    mono_font_family: str = "Courier"
    base_font_size: float = 11.0
    line_height: float = 5.0

    # Lists
    list_base_indent: float = 10.0
    list_level_indent: float = 20.0
    bullet_glyphs: Tuple[str, ...] = ("•", "◦", "▪")

    # Tables
    table_separator: str = " | "

    # Output naming
    filename_template: str = "post_{id}_{slug}_{date}.{ext}"
    slug_max_length: int = 50
    date_format: str = "%Y-%m-%d"
    extension: str = "pdf"

    # Document metadata and footer
    producer: str = "Work Knowledge Base"
    footer_text: str = "Exported from {producer} on {date}"
    footer_offset: float = 20.0

    @property
    def content_width(self) -> float:
        return self.page_size.width - self.margins.left - self.margins.right

    @property
    def bottom_limit(self) -> float:
        """Lowest y (mm from top) content may reach before a page break."""
        return self.page_size.height - self.margins.bottom

    def list_indent(self, depth: int) -> float:
        return self.list_base_indent + max(depth, 0) * self.list_level_indent

    def bullet_for_depth(self, depth: int) -> str:
        glyphs = self.bullet_glyphs or ("•",)
        if depth < len(glyphs):
            return glyphs[depth]
        return glyphs[0]

    def with_overrides(self, **overrides: Any) -> "ExportConfig":
        return replace(self, **overrides)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ExportConfig":
        """
        Build a config from a plain mapping (e.g. parsed JSON).

        Args:
            data: Field overrides. ``page_size`` accepts ``[width, height]``,
                ``margins`` accepts a number or a mapping of sides.

        Returns:
            ExportConfig with defaults for every missing field

        Raises:
            ConfigError: If a key is unknown or a value has the wrong shape
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError("Unknown configuration keys", ", ".join(unknown))

        values: Dict[str, Any] = {}
        try:
            for key, value in data.items():
                if key == "page_size":
                    values[key] = Size.from_tuple(value)
                elif key == "margins":
                    if isinstance(value, (int, float)):
                        values[key] = Margins.uniform(float(value))
                    else:
                        values[key] = Margins(**{side: float(v) for side, v in value.items()})
                elif key == "docroot":
                    values[key] = Path(value)
                elif key == "bullet_glyphs":
                    values[key] = tuple(str(glyph) for glyph in value)
                else:
                    values[key] = value
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid value for configuration key '{key}'", str(exc)) from exc

        config = cls(**values)
        logger.debug(f"Export config loaded with overrides: {sorted(values)}")
        return config

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "ExportConfig":
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise ConfigError(f"Cannot read configuration file {path}", str(exc)) from exc
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration file {path} must contain a JSON object")
        return cls.from_mapping(data)
