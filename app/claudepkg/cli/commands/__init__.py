"""CLI commands for claudepkg.

This package contains all subcommand implementations.
"""

from claudepkg.cli.commands import build, cache, config

__all__ = ["build", "cache", "config"]
