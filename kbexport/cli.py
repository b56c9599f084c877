"""
Command-line interface for kbexport.

Usage:
    kbexport render record.json --output post.pdf
    kbexport render record.json --docroot /var/www/kb --config export.json
    kbexport version
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import ExportConfig
from .exceptions import KbExportError
from .utils.logger import LOG_LEVELS, configure_logging

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="kbexport",
        description="Export knowledge-base posts to PDF",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  kbexport render record.json
  kbexport render record.json -o post.pdf --docroot /var/www/kb
  kbexport version
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    render_parser = subparsers.add_parser("render", help="Render a content record (JSON) to PDF")
    render_parser.add_argument("input", help="JSON file with the content record")
    render_parser.add_argument(
        "-o", "--output",
        help="Output PDF path (default: suggested filename in the current directory)"
    )
    render_parser.add_argument(
        "--docroot",
        help="Directory image sources are resolved against"
    )
    render_parser.add_argument(
        "--config",
        help="JSON file with export configuration overrides"
    )
    render_parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default="WARNING",
        help="Log level (default: WARNING)"
    )
    render_parser.add_argument(
        "--log-file",
        help="Also write logs to this file"
    )

    subparsers.add_parser("version", help="Show version information")

    return parser


def load_record(path: Path) -> dict:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise KbExportError(f"Cannot read content record {path}", str(exc)) from exc
    if not isinstance(data, dict):
        raise KbExportError(f"Content record {path} must contain a JSON object")
    return data


def cmd_render(args) -> int:
    """Handle render command."""
    from .service import ExportService

    configure_logging(args.log_level, log_file=args.log_file, use_rich=True)

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: File not found: {input_path}", file=sys.stderr)
        return 1

    try:
        config = ExportConfig.from_json_file(args.config) if args.config else ExportConfig()
        if args.docroot:
            config = config.with_overrides(docroot=Path(args.docroot))
        result = ExportService(config).render(load_record(input_path))
        output_path = Path(args.output) if args.output else Path.cwd() / result.filename
        output_path.write_bytes(result.pdf_bytes)
    except KbExportError as exc:
        logger.error(f"Export failed: {exc}")
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        logger.error(f"Cannot write output: {exc}")
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(output_path)
    if result.failed_blocks:
        print(f"Warning: {result.failed_blocks} blocks could not be rendered", file=sys.stderr)
    return 0


def cmd_version(args=None) -> int:
    """Handle version command."""
    from .version import __version__

    print(f"kbexport v{__version__}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command == "render":
        return cmd_render(args)
    if args.command == "version":
        return cmd_version(args)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main() or 0)
