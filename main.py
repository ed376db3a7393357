"""Main entry point for the yEnc tools."""

import sys

from yenc_engine.cli import main


if __name__ == "__main__":
    sys.exit(main())
