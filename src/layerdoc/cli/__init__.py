"""
CLI module for layerdoc.

Provides the command-line interface using Click.
"""

from layerdoc.cli.main import cli, main

__all__ = ["cli", "main"]
