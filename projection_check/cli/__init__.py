"""CLI module for the differential projection check.

Provides the `projcheck` command-line interface.
"""

from projection_check.cli.main import app

__all__ = ["app"]
