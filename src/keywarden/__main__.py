"""Main entry point for keywarden.

Usage:
    python -m keywarden [--status] [--verbose] [--threshold N]
    python -m keywarden --help       # Show help
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
