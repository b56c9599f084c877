"""
Tests for geometry primitives and unit conversions.
"""

import pytest

from kbexport.geometry import PX_TO_MM, Margins, Size, mm_to_points, points_to_mm, px_to_mm


class TestConversions:
    def test_points_round_trip(self):
        assert points_to_mm(mm_to_points(25.4)) == pytest.approx(25.4)

    def test_points_to_mm(self):
        """Test 72 points are one inch."""
        assert points_to_mm(72) == pytest.approx(25.4)

    def test_px_to_mm_default_ratio(self):
        """Test 96 px are one inch at the default ratio."""
        assert px_to_mm(96) == pytest.approx(96 * PX_TO_MM)
        assert px_to_mm(96) == pytest.approx(25.4, abs=1e-3)

    def test_px_to_mm_custom_ratio(self):
        assert px_to_mm(100, ratio=0.5) == 50.0


class TestPrimitives:
    def test_size_from_tuple(self):
        assert Size.from_tuple((210, 297)) == Size(210.0, 297.0)

    def test_uniform_margins(self):
        assert Margins.uniform(15.0) == Margins(15.0, 15.0, 15.0, 15.0)
