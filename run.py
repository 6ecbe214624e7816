"""CLI entry point for the tabhost browser server."""
import sys

from tabhost.cli import main

if __name__ == "__main__":
    sys.exit(main())
