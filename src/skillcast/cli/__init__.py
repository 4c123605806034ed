"""
Command-line interface for skillcast.
"""

from skillcast.cli.main import cli, main

__all__ = ["cli", "main"]
