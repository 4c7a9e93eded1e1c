"""Entry point for running Notetasks as a module or CLI command.

Usage:
    # Run as a module
    python -m notetasks

    # After pip install, run as a command
    notetasks
"""

from __future__ import annotations

import sys

from .notetasks import main


def cli() -> None:
    """CLI entry point installed by pip.

    Registered in pyproject.toml as the console script entry point.
    """
    sys.exit(main())


if __name__ == "__main__":
    cli()
