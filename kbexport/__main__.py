"""
Entry point for running kbexport as a module.

Usage:
    python -m kbexport render record.json --output post.pdf
    python -m kbexport version
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
