"""Unit tests for XDG path resolution."""

from pathlib import Path

import pytest
from claudepkg.core.paths import (
    get_build_config_path,
    get_cache_dir,
    get_config_dir,
    get_default_workspace,
    get_download_cache_dir,
)


@pytest.fixture(autouse=True)
def clear_xdg(monkeypatch: pytest.MonkeyPatch) -> None:
    """Start every test without XDG overrides."""
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    monkeypatch.delenv("XDG_CACHE_HOME", raising=False)


class TestPaths:
    """Tests for path helpers."""

    def test_config_dir_under_real_home(self, tmp_path: Path) -> None:
        """The config directory follows the given home, not the process home."""
        assert get_config_dir(tmp_path) == tmp_path / ".config" / "claudepkg"

    def test_cache_dir_under_real_home(self, tmp_path: Path) -> None:
        """The cache directory follows the given home."""
        assert get_cache_dir(tmp_path) == tmp_path / ".cache" / "claudepkg"

    def test_xdg_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """XDG variables take precedence."""
        monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "xdg"))

        assert get_cache_dir(Path("/home/other")) == tmp_path / "xdg" / "claudepkg"

    def test_build_config_path(self, tmp_path: Path) -> None:
        """The build config lives in build.toml."""
        assert get_build_config_path(tmp_path) == tmp_path / ".config" / "claudepkg" / "build.toml"

    def test_download_cache_dir(self, tmp_path: Path) -> None:
        """Downloads are cached in a dedicated subdirectory."""
        assert get_download_cache_dir(tmp_path) == tmp_path / ".cache" / "claudepkg" / "downloads"

    def test_default_workspace(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """The default workspace is ./build."""
        monkeypatch.chdir(tmp_path)

        assert get_default_workspace() == tmp_path / "build"
