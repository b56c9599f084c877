"""
Tests for image resolution, scaling and placement.
"""

from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from kbexport.config import ExportConfig
from kbexport.exceptions import ImageResolutionError, LayoutError
from kbexport.layout.images import (
    ImageEngine,
    ImageResolver,
    is_remote,
    measure,
    remote_basename,
    truncate_source,
)
from kbexport.layout.text import TextLayout
from kbexport.models import ImageBlock


def engine_for(config, resolver=None):
    return ImageEngine(config, TextLayout(config), resolver)


def written_texts(write_mock):
    return [call.args[1] for call in write_mock.call_args_list]


class TestComputePlacement:
    """Test cases for image scaling."""

    def test_large_image_fits_box(self, export_config):
        """Test a 1920x1080 image is scaled by min(max_w / w, max_h / h)."""
        engine = engine_for(export_config)
        placement = engine.compute_placement(None, 1920, 1080, content_width=180.0)

        width_mm = 1920 * export_config.px_to_mm
        height_mm = 1080 * export_config.px_to_mm
        expected_scale = min(140.0 / width_mm, 90.0 / height_mm)

        assert placement.scale == pytest.approx(expected_scale)
        assert placement.display_width == pytest.approx(140.0)
        assert placement.display_width <= 140.0 + 1e-6
        assert placement.display_height <= 90.0 + 1e-6
        assert placement.display_width / placement.display_height == pytest.approx(1920 / 1080)

    def test_tall_image_limited_by_height(self, export_config):
        """Test a portrait image is bounded by the maximum height."""
        placement = engine_for(export_config).compute_placement(None, 600, 2400, content_width=180.0)

        assert placement.display_height == pytest.approx(90.0)
        assert placement.display_width == pytest.approx(22.5)

    def test_small_image_not_upscaled(self, export_config):
        """Test images smaller than the box keep their natural size."""
        placement = engine_for(export_config).compute_placement(None, 100, 50, content_width=180.0)

        assert placement.scale == 1.0
        assert placement.display_width == pytest.approx(100 * export_config.px_to_mm)
        assert placement.display_height == pytest.approx(50 * export_config.px_to_mm)

    def test_upscale_when_allowed(self, tmp_docroot):
        """Test allow_upscale fills the box."""
        config = ExportConfig(docroot=tmp_docroot, allow_upscale=True)
        placement = engine_for(config).compute_placement(None, 100, 50, content_width=180.0)

        assert placement.scale > 1.0
        assert placement.display_width == pytest.approx(140.0)

    def test_side_margin_narrows_box(self, export_config):
        """Test the box is never wider than content width minus the side margins."""
        placement = engine_for(export_config).compute_placement(None, 1920, 1080, content_width=150.0)

        assert placement.display_width == pytest.approx(110.0)

    def test_image_centred(self, export_config):
        """Test the image x offset centres it in the content area."""
        placement = engine_for(export_config).compute_placement(None, 1920, 1080, content_width=180.0, left=15.0)

        assert placement.x == pytest.approx(15.0 + (180.0 - 140.0) / 2)

    @pytest.mark.parametrize("size", [(0, 100), (100, 0), (-5, 10)])
    def test_degenerate_dimensions(self, export_config, size):
        """Test zero or negative dimensions are rejected."""
        with pytest.raises(LayoutError):
            engine_for(export_config).compute_placement(None, *size, content_width=180.0)


class TestImageResolver:
    """Test cases for source lookup under the document root."""

    def test_root_relative_source(self, tmp_docroot):
        """Test a root-relative src resolves under the docroot."""
        resolved = ImageResolver(tmp_docroot).resolve("/uploads/images/photo.png")
        assert resolved == tmp_docroot / "uploads" / "images" / "photo.png"

    def test_root_relative_falls_back_to_uploads(self, tmp_docroot):
        """Test an unknown directory falls back to uploads/images by basename."""
        resolved = ImageResolver(tmp_docroot).resolve("/old/location/photo.png")
        assert resolved == tmp_docroot / "uploads" / "images" / "photo.png"

    def test_relative_source(self, tmp_docroot):
        """Test a relative src resolves against the docroot first."""
        resolved = ImageResolver(tmp_docroot).resolve("images/small.png")
        assert resolved == tmp_docroot / "images" / "small.png"

    def test_relative_falls_back_to_files(self, tmp_docroot):
        """Test relative sources also look in uploads/files."""
        resolved = ImageResolver(tmp_docroot).resolve("attached.png")
        assert resolved == tmp_docroot / "uploads" / "files" / "attached.png"

    def test_candidate_order(self, tmp_docroot):
        """Test lookup order for a relative source."""
        candidates = ImageResolver(tmp_docroot).candidates("pics/a.png")
        assert candidates == [
            tmp_docroot / "pics" / "a.png",
            tmp_docroot / "uploads" / "images" / "a.png",
            tmp_docroot / "uploads" / "files" / "a.png",
        ]

    def test_query_string_ignored(self, tmp_docroot):
        """Test the query part of a src is not part of the path."""
        resolved = ImageResolver(tmp_docroot).resolve("/uploads/images/photo.png?v=3")
        assert resolved == tmp_docroot / "uploads" / "images" / "photo.png"

    def test_missing_file(self, tmp_docroot):
        """Test a missing file resolves to None."""
        assert ImageResolver(tmp_docroot).resolve("/uploads/images/missing.png") is None

    def test_outside_docroot(self, tmp_docroot):
        """Test sources escaping the docroot are never resolved."""
        secret = tmp_docroot.parent / "secret.png"
        secret.write_bytes(b"x")

        assert ImageResolver(tmp_docroot).resolve("../secret.png") is None

    def test_directory_is_not_a_file(self, tmp_docroot):
        """Test a directory candidate is skipped."""
        assert ImageResolver(tmp_docroot).resolve("/uploads") is None


class TestHelpers:
    """Test cases for module helpers."""

    @pytest.mark.parametrize("src, expected", [
        ("http://example.com/a.png", True),
        ("HTTPS://example.com/a.png", True),
        ("//cdn.example.com/a.png", True),
        ("/uploads/images/a.png", False),
        ("images/a.png", False),
        ("data:image/png;base64,AAAA", False),
    ])
    def test_is_remote(self, src, expected):
        assert is_remote(src) is expected

    def test_remote_basename(self):
        assert remote_basename("https://cdn.example.com/a/pic.png?x=1") == "pic.png"
        assert remote_basename("https://cdn.example.com/") == "https://cdn.example.com/"

    def test_truncate_source(self):
        """Test long sources are shortened to the limit with an ellipsis."""
        long_src = "/uploads/" + "a" * 200 + ".png"
        truncated = truncate_source(long_src)

        assert len(truncated) == 80
        assert truncated.endswith("...")
        assert truncate_source("/short.png") == "/short.png"

    def test_measure(self, tmp_docroot):
        """Test natural pixel size is read with Pillow."""
        assert measure(tmp_docroot / "uploads" / "images" / "photo.png") == (1920, 1080)

    def test_measure_unreadable(self, tmp_docroot):
        """Test a corrupt file raises ImageResolutionError."""
        with pytest.raises(ImageResolutionError):
            measure(tmp_docroot / "broken.png")


class TestPlace:
    """Test cases for drawing image blocks."""

    def test_remote_source_not_looked_up(self, flow, export_config):
        """Test remote images become a placeholder without any filesystem access."""
        resolver = Mock(spec=ImageResolver)
        engine = engine_for(export_config, resolver)

        with patch.object(engine.text, "write", wraps=engine.text.write) as write, \
                patch.object(Path, "is_file") as is_file, \
                patch("os.path.exists") as exists:
            result = engine.place(flow, ImageBlock(src="https://cdn.example.com/a/pic.png?x=1"))

        assert result is None
        resolver.resolve.assert_not_called()
        is_file.assert_not_called()
        exists.assert_not_called()
        assert written_texts(write) == ["[External Image: pic.png]"]

    def test_missing_image_placeholder(self, flow, export_config):
        """Test a missing file gives the alt placeholder and the original src."""
        engine = engine_for(export_config)

        with patch.object(engine.text, "write", wraps=engine.text.write) as write:
            result = engine.place(flow, ImageBlock(src="/uploads/images/missing.png", alt="Diagram"))

        assert result is None
        assert written_texts(write) == ["[Image: Diagram]", "Original src: /uploads/images/missing.png"]

    def test_empty_source(self, flow, export_config):
        """Test an image without a source."""
        engine = engine_for(export_config)

        with patch.object(engine.text, "write", wraps=engine.text.write) as write:
            result = engine.place(flow, ImageBlock(src="   "))

        assert result is None
        assert written_texts(write) == ["[Image - no source]"]

    def test_unreadable_image_placeholder(self, flow, export_config):
        """Test a corrupt image file degrades to the placeholder."""
        engine = engine_for(export_config)

        with patch.object(engine.text, "write", wraps=engine.text.write) as write:
            result = engine.place(flow, ImageBlock(src="broken.png"))

        assert result is None
        assert written_texts(write)[0] == "[Image]"

    def test_image_drawn(self, flow, export_config):
        """Test a resolvable image is embedded and advances the cursor."""
        engine = engine_for(export_config)
        start_y = flow.y

        placement = engine.place(flow, ImageBlock(src="/uploads/images/photo.png"))

        assert placement is not None
        assert placement.display_width == pytest.approx(140.0)
        assert flow.y == pytest.approx(start_y + engine.required_height(placement))
        assert flow.page_breaks == 0

    def test_caption_written(self, flow, export_config):
        """Test the alt text is drawn as a caption below the image."""
        engine = engine_for(export_config)

        with patch.object(engine.text, "write", wraps=engine.text.write) as write:
            engine.place(flow, ImageBlock(src="/uploads/images/photo.png", alt="Front panel"))

        assert written_texts(write) == ["Front panel"]
        assert write.call_args.kwargs["align"] == "center"

    def test_image_near_bottom_moves_to_next_page(self, flow, export_config):
        """Test the space guard breaks the page before a tall image."""
        engine = engine_for(export_config)
        flow.cursor.y = flow.cursor.bottom_limit - 50

        placement = engine.place(flow, ImageBlock(src="/uploads/images/photo.png"))

        assert placement is not None
        assert flow.page_breaks == 1
        assert flow.cursor.page_index == 1
        assert flow.cursor.within_bounds()

    def test_embed_failure_placeholder(self, mock_flow, export_config):
        """Test an image the canvas cannot embed becomes a placeholder."""
        engine = engine_for(export_config)
        mock_flow.canvas.drawImage.side_effect = OSError("cannot embed")

        with patch.object(engine.text, "write") as write:
            result = engine.place(mock_flow, ImageBlock(src="/uploads/images/photo.png", alt="Panel"))

        assert result is None
        assert written_texts(write)[0] == "[Image: Panel]"


class TestPixelRatio:
    def test_custom_ratio(self, tmp_docroot):
        """Test natural sizes are converted with the configured px-to-mm ratio."""
        config = ExportConfig(docroot=tmp_docroot, px_to_mm=0.1)
        placement = engine_for(config).compute_placement(None, 100, 50, content_width=180.0)

        assert placement.display_width == pytest.approx(10.0)
        assert placement.display_height == pytest.approx(5.0)
