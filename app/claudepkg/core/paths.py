"""XDG-compliant path management for claudepkg.

The tool runs under sudo, so every per-user location is resolved against
the *real* user's home directory rather than ``Path.home()`` (which would
point at /root).

XDG defaults:
- Config: ~/.config/claudepkg/
- Cache: ~/.cache/claudepkg/
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "claudepkg"


def _get_xdg_dir(env_var: str, default_subdir: str, home: Path | None = None) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").
        home: Home directory to resolve against. Defaults to ``Path.home()``.

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return (home or Path.home()) / default_subdir / APP_NAME


def get_config_dir(home: Path | None = None) -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/claudepkg/ (or XDG_CONFIG_HOME/claudepkg/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config", home)


def get_cache_dir(home: Path | None = None) -> Path:
    """Get the cache directory path.

    Returns:
        Path to ~/.cache/claudepkg/ (or XDG_CACHE_HOME/claudepkg/).
    """
    return _get_xdg_dir("XDG_CACHE_HOME", ".cache", home)


def get_build_config_path(home: Path | None = None) -> Path:
    """Get the build configuration file path.

    Returns:
        Path to ~/.config/claudepkg/build.toml.
    """
    return get_config_dir(home) / "build.toml"


def get_download_cache_dir(home: Path | None = None) -> Path:
    """Get the installer download cache directory.

    This is the only state intentionally kept between runs.

    Returns:
        Path to ~/.cache/claudepkg/downloads/.
    """
    return get_cache_dir(home) / "downloads"


def get_default_workspace() -> Path:
    """Get the default per-run workspace.

    Returns:
        Path to ./build under the current working directory.
    """
    return Path.cwd() / "build"
