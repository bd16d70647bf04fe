"""
Main entry point for running eenv as a module.

Usage:
    python -m eenv <command> [options]
"""

from .cli import main
import sys

if __name__ == "__main__":
    sys.exit(main())
