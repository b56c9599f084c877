"""
Tests for BlockRenderer dispatch and its per-block error boundary.
"""

from unittest.mock import Mock, patch

import pytest

from kbexport.exceptions import RenderingError
from kbexport.layout.images import ImageEngine, ImageResolver
from kbexport.layout.text import TextLayout
from kbexport.models import (
    Blockquote,
    CodeBlock,
    Heading,
    ImageBlock,
    InlineRun,
    LineBreak,
    ListBlock,
    ListItem,
    NodeKind,
    Paragraph,
    TableBlock,
)
from kbexport.parser.segmenter import BlockSegmenter
from kbexport.renderer import BlockRenderer


def all_kinds():
    """One node of every kind."""
    return [
        Heading(level=1, text="Title"),
        Paragraph([InlineRun("Plain "), InlineRun("bold", bold=True), InlineRun(" code", monospace=True)]),
        ListBlock(items=[ListItem([InlineRun("one")], [ListBlock(ordered=True, items=[ListItem([InlineRun("a")])])])]),
        ListItem([InlineRun("orphan")]),
        ImageBlock(src="/uploads/images/photo.png", alt="Photo"),
        TableBlock(rows=[["a", "b"], ["c", "d"]]),
        Blockquote([InlineRun("quoted")]),
        CodeBlock("def f():\n\treturn 1"),
        LineBreak(),
    ]


def written_texts(write_mock):
    return [call.args[1] for call in write_mock.call_args_list]


class TestDispatch:
    """Test cases for the handler table."""

    def test_every_kind_handled(self, export_config):
        """Test the handler table covers the whole node kind enumeration."""
        assert BlockRenderer(export_config).handled_kinds == frozenset(NodeKind)

    def test_every_kind_renders(self, flow, export_config):
        """Test one node of each kind renders without failures."""
        renderer = BlockRenderer(export_config)

        failures = renderer.render_blocks(flow, all_kinds())

        assert failures == 0
        assert flow.failed_blocks == 0
        assert flow.cursor.within_bounds()

    def test_missing_handler(self, flow, export_config):
        """Test a kind without a handler is a programming error, not a skipped block."""
        renderer = BlockRenderer(export_config)
        del renderer._handlers[NodeKind.TABLE]

        with pytest.raises(RenderingError):
            renderer.render_block(flow, TableBlock(rows=[["a"]]))

    def test_reply_font_size(self, export_config):
        renderer = BlockRenderer(export_config)

        assert renderer.body_style().size == 11.0
        assert renderer.body_style(10.0).size == 10.0

    def test_heading_spacing(self, flow, export_config):
        """Test a level 2 heading takes its spacing plus one 7 mm line."""
        start_y = flow.y
        BlockRenderer(export_config).render_block(flow, Heading(level=2, text="Overview"))

        assert flow.y - start_y == pytest.approx(5.0 + 7.0 + 3.0)

    def test_paragraphs_flow_to_next_page(self, flow, export_config):
        """Test a long run of paragraphs breaks pages and stays in bounds."""
        blocks = BlockSegmenter().segment("".join(f"<p>Paragraph number {n}</p>" for n in range(120)))
        BlockRenderer(export_config).render_blocks(flow, blocks)

        assert flow.page_count > 1
        assert flow.cursor.within_bounds()


class TestErrorBoundary:
    """Test cases for failure containment."""

    def test_failing_block_replaced_by_marker(self, flow, export_config):
        """Test a crash in one block leaves a marker and the rest still renders."""
        renderer = BlockRenderer(export_config)
        renderer.images.place = Mock(side_effect=RuntimeError("boom"))
        blocks = [Paragraph([InlineRun("before")]), ImageBlock(src="/x.png"), Paragraph([InlineRun("after")])]

        with patch.object(renderer.text, "write", wraps=renderer.text.write) as write, \
                patch.object(renderer.text, "draw_runs", wraps=renderer.text.draw_runs) as draw_runs:
            failures = renderer.render_blocks(flow, blocks)

        assert failures == 1
        assert flow.failed_blocks == 1
        assert "[Render error: image block skipped]" in written_texts(write)
        drawn = [call.args[1][0].text for call in draw_runs.call_args_list]
        assert drawn[0] == "before"
        assert drawn[-1] == "after"

    def test_degenerate_image_contained(self, flow, export_config, tmp_docroot):
        """Test an image with zero dimensions only fails its own block."""
        resolver = Mock(spec=ImageResolver)
        resolver.resolve.return_value = tmp_docroot / "uploads" / "images" / "photo.png"
        text = TextLayout(export_config)
        renderer = BlockRenderer(export_config, text, ImageEngine(export_config, text, resolver))

        with patch("kbexport.layout.images.measure", return_value=(0, 0)), \
                patch.object(renderer.text, "write", wraps=renderer.text.write) as write:
            failures = renderer.render_blocks(flow, [ImageBlock(src="zero.png"), Paragraph([InlineRun("next")])])

        assert failures == 1
        assert written_texts(write) == ["[Render error: image block skipped]"]

    def test_error_logged(self, flow, export_config, caplog):
        renderer = BlockRenderer(export_config)
        renderer.tables.render = Mock(side_effect=ValueError("bad row"))

        renderer.render_block(flow, TableBlock(rows=[["a"]]))

        assert "Failed to render table block" in caplog.text
