"""Geometry primitives and unit helpers for page layout.

All layout distances are millimetres measured top-down from the page edge.
ReportLab points are only produced at the draw call.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from reportlab.lib.units import mm


PX_TO_MM = 0.264583  # 96 DPI
PT_TO_MM = 25.4 / 72.0


@dataclass(slots=True)
class Size:
    width: float
    height: float

    @classmethod
    def from_tuple(cls, value: Iterable[float]) -> "Size":
        width, height = value
        return cls(float(width), float(height))


@dataclass(slots=True)
class Margins:
    top: float = 0.0
    bottom: float = 0.0
    left: float = 0.0
    right: float = 0.0

    @classmethod
    def uniform(cls, value: float) -> "Margins":
        return cls(value, value, value, value)


def mm_to_points(value: float) -> float:
    return float(value) * mm


def points_to_mm(value: float) -> float:
    return float(value) * PT_TO_MM


def px_to_mm(value: float, ratio: float = PX_TO_MM) -> float:
    return float(value) * ratio
