"""Unit tests for the two-step installer extraction."""

from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest
from claudepkg.core.context import ToolRunner
from claudepkg.core.errors import ExtractionError
from claudepkg.core.workspace import BuildWorkspace
from claudepkg.stages.unpack import ArchiveUnpacker, nupkg_name


@pytest.fixture
def workspace(tmp_path: Path) -> BuildWorkspace:
    """Workspace holding a copied installer."""
    root = tmp_path / "build"
    root.mkdir()
    (root / "Claude-Setup-x64.exe").write_bytes(b"MZ")
    return BuildWorkspace(root)


def test_nupkg_name() -> None:
    """The nested package name embeds the version."""
    assert nupkg_name("0.7.7") == "AnthropicClaude-0.7.7-full.nupkg"


class TestArchiveUnpacker:
    """Tests for ArchiveUnpacker."""

    def test_extracts_both_layers(
        self, runner: ToolRunner, workspace: BuildWorkspace, fake_tools: Any
    ) -> None:
        """The installer and then the nested package are extracted."""
        unpacker = ArchiveUnpacker(runner, workspace)

        with patch("claudepkg.core.context.run_command", fake_tools):
            resources = unpacker.run(workspace.root / "Claude-Setup-x64.exe", "9.9.9")

        assert resources == workspace.resources
        assert (resources / "claude.exe").is_file()
        assert fake_tools.calls == [
            ["7z", "x", "-y", "Claude-Setup-x64.exe"],
            ["7z", "x", "-y", "AnthropicClaude-9.9.9-full.nupkg"],
        ]

    def test_uses_given_binary(
        self, runner: ToolRunner, workspace: BuildWorkspace, fake_tools: Any
    ) -> None:
        """The detected 7-Zip binary is used."""
        unpacker = ArchiveUnpacker(runner, workspace, seven_zip="p7zip")

        with patch("claudepkg.core.context.run_command", fake_tools):
            with pytest.raises(ExtractionError):
                unpacker.run(workspace.root / "Claude-Setup-x64.exe", "9.9.9")

        assert fake_tools.calls[0][0] == "p7zip"

    def test_wrong_version(
        self, runner: ToolRunner, workspace: BuildWorkspace, fake_tools: Any
    ) -> None:
        """A version that does not match the installer names the nupkg."""
        unpacker = ArchiveUnpacker(runner, workspace)

        with patch("claudepkg.core.context.run_command", fake_tools):
            with pytest.raises(ExtractionError, match="AnthropicClaude-1.0.0-full.nupkg"):
                unpacker.run(workspace.root / "Claude-Setup-x64.exe", "1.0.0")

        assert len(fake_tools.calls) == 1

    @pytest.mark.parametrize("archive", [".exe", ".nupkg"])
    def test_tool_failure_is_fatal(
        self,
        runner: ToolRunner,
        workspace: BuildWorkspace,
        fake_tools: Any,
        archive: str,
    ) -> None:
        """A failing 7-Zip run aborts with ExtractionError."""
        fake_tools.fail_when = lambda argv: argv[-1].endswith(archive)
        unpacker = ArchiveUnpacker(runner, workspace)

        with patch("claudepkg.core.context.run_command", fake_tools):
            with pytest.raises(ExtractionError, match="simulated failure"):
                unpacker.run(workspace.root / "Claude-Setup-x64.exe", "9.9.9")
