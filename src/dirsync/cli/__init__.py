"""
DirSync CLI - Command-line interface.
"""

from dirsync.cli.main import cli, main

__all__ = ["cli", "main"]
