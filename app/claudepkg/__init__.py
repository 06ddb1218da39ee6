"""claudepkg - build an Arch Linux package of Claude Desktop."""

__version__ = "0.1.0"
