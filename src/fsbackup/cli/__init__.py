"""
fsbackup CLI Module.

Provides command-line interface for fsbackup operations.
"""

from fsbackup.cli.main import cli, main

__all__ = ["main", "cli"]
