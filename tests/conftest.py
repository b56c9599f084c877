"""
Pytest configuration for kbexport
"""

import logging
import sys
import tempfile
from io import BytesIO
from pathlib import Path
from unittest.mock import Mock

import pytest
from PIL import Image
from reportlab.pdfgen.canvas import Canvas

from kbexport.config import ExportConfig
from kbexport.geometry import mm_to_points
from kbexport.layout.flow import FlowController


@pytest.fixture(autouse=True)
def configure_logging():
    """Configure logging for tests to avoid file handler issues."""
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.WARNING)  # Only show warnings and errors during tests

    formatter = logging.Formatter(
        '%(name)s - %(levelname)s - %(message)s'
    )
    console_handler.setFormatter(formatter)

    root_logger.addHandler(console_handler)
    root_logger.setLevel(logging.WARNING)

    yield

    root_logger.handlers.clear()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


def _save_png(path: Path, size) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", size, (200, 30, 30)).save(path, format="PNG")
    return path


@pytest.fixture
def tmp_docroot(temp_dir):
    """
    Document root with image fixtures:

    - uploads/images/photo.png   1920x1080
    - images/small.png           100x50
    - uploads/files/attached.png 200x100
    - broken.png                 not an image
    """
    docroot = temp_dir / "www"
    _save_png(docroot / "uploads" / "images" / "photo.png", (1920, 1080))
    _save_png(docroot / "images" / "small.png", (100, 50))
    _save_png(docroot / "uploads" / "files" / "attached.png", (200, 100))
    (docroot / "broken.png").write_bytes(b"this is not a png")
    return docroot


@pytest.fixture
def export_config(tmp_docroot):
    return ExportConfig(docroot=tmp_docroot)


@pytest.fixture
def pdf_canvas(export_config):
    """Real ReportLab canvas writing into memory."""
    page_size = (mm_to_points(export_config.page_size.width), mm_to_points(export_config.page_size.height))
    return Canvas(BytesIO(), pagesize=page_size)


@pytest.fixture
def flow(pdf_canvas, export_config):
    """Started flow controller on a real canvas."""
    controller = FlowController(pdf_canvas, export_config)
    controller.start()
    return controller


@pytest.fixture
def mock_canvas():
    return Mock(spec=Canvas)


@pytest.fixture
def mock_flow(mock_canvas, export_config):
    """Started flow controller on a mocked canvas."""
    controller = FlowController(mock_canvas, export_config)
    controller.start()
    return controller


@pytest.fixture
def sample_record():
    """Content record in the content-store format."""
    return {
        "id": 42,
        "title": "Printer Setup: Floor 3",
        "category_name": "IT",
        "subcategory_name": "Printers",
        "created_at": "2024-01-05 15:04:00",
        "html_content": (
            "<h2>Overview</h2>"
            "<p>Hello <strong>World</strong> &mdash; see <a href=\"https://kb.example.com\">the wiki</a>.</p>"
            "<ul><li>A</li><li>B<ul><li>B1</li></ul></li></ul>"
            "<p><img src=\"/uploads/images/photo.png\" alt=\"Front panel\"></p>"
            "<table><tr><th>Model</th><th>Room</th></tr><tr><td>HP 4000</td><td>3.12</td></tr></table>"
        ),
        "attachments": [{"original_filename": "driver.zip", "path": "uploads/files/driver.zip"}],
        "replies": [
            {
                "content_html": "<p>Second update</p>",
                "created_at": "2024-02-01T09:30:00",
                "edited": True,
                "attachments": ["log.txt"],
            },
            {
                "content_html": "<p>First update</p>",
                "created_at": "2024-01-10T08:00:00",
                "edited": False,
                "attachments": [],
            },
        ],
    }
