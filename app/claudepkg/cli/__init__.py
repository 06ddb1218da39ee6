"""Command-line interface for claudepkg."""
