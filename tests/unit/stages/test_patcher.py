"""Unit tests for app.asar patching."""

import shlex
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest
from claudepkg.core.context import PrivilegeContext, ToolRunner
from claudepkg.core.errors import PatchError
from claudepkg.stages.native_stub import render_stub
from claudepkg.stages.patcher import ApplicationPatcher, nvm_shell


@pytest.fixture
def resources_dir(tmp_path: Path, fake_tools: Any) -> Path:
    """lib/net45/resources as produced by the fake 7-Zip."""
    root = tmp_path / "build"
    root.mkdir()
    fake_tools._tool_7z(["7z", "x", "-y", "AnthropicClaude-9.9.9-full.nupkg"], root)
    fake_tools.calls.clear()
    return root / "lib" / "net45" / "resources"


@pytest.fixture
def patcher(
    runner: ToolRunner, privileges: PrivilegeContext, tmp_path: Path
) -> ApplicationPatcher:
    """Patcher working in electron-app."""
    return ApplicationPatcher(
        runner,
        privileges,
        tmp_path / "build" / "electron-app",
        Path("/home/alice/.nvm/nvm.sh"),
        "18",
    )


class TestNvmShell:
    """Tests for nvm_shell function."""

    def test_selects_node_version(self) -> None:
        """The command runs after nvm installs and selects the version."""
        nvm = Path("/home/alice/.nvm/nvm.sh")

        argv = nvm_shell(nvm, "18", ["npx", "asar", "pack", "a", "b"])

        assert argv[:2] == ["bash", "-c"]
        script = argv[2]
        assert script.startswith(". /home/alice/.nvm/nvm.sh && nvm install 18")
        assert "nvm use 18" in script
        assert script.endswith("npx asar pack a b")

    def test_quotes_paths(self) -> None:
        """Paths with spaces stay one word."""
        argv = nvm_shell(Path("/home/a b/nvm.sh"), "18", ["true"])

        assert argv[2].startswith(". '/home/a b/nvm.sh'")


class TestApplicationPatcher:
    """Tests for ApplicationPatcher."""

    def test_run_replaces_native_module(
        self,
        patcher: ApplicationPatcher,
        resources_dir: Path,
        fake_tools: Any,
    ) -> None:
        """The repacked archive contains the stub, not the original module."""
        with patch("claudepkg.core.context.run_command", fake_tools):
            archive = patcher.run(resources_dir)

        assert archive == patcher.archive
        assert render_stub().encode() in archive.read_bytes()
        assert b"claude-native-binding" not in archive.read_bytes()

    def test_run_order(
        self, patcher: ApplicationPatcher, resources_dir: Path, fake_tools: Any
    ) -> None:
        """asar extract runs before asar pack, both through nvm."""
        with patch("claudepkg.core.context.run_command", fake_tools):
            patcher.run(resources_dir)

        scripts = [argv[2] for argv in fake_tools.calls]
        assert len(scripts) == 2
        assert scripts[0].endswith("npx --yes asar extract app.asar app.asar.contents")
        assert scripts[1].endswith("npx --yes asar pack app.asar.contents app.asar")

    def test_npx_never_prompts(
        self, patcher: ApplicationPatcher, resources_dir: Path, fake_tools: Any
    ) -> None:
        """npx installs asar without asking for confirmation."""
        with patch("claudepkg.core.context.run_command", fake_tools):
            patcher.run(resources_dir)

        for argv in fake_tools.calls:
            words = shlex.split(argv[2].rsplit(" && ", 1)[-1])
            assert words[:3] == ["npx", "--yes", "asar"]

    def test_stages_sidecar_and_tray_icons(
        self, patcher: ApplicationPatcher, resources_dir: Path, fake_tools: Any
    ) -> None:
        """app.asar.unpacked and the Tray images are carried over."""
        with patch("claudepkg.core.context.run_command", fake_tools):
            patcher.run(resources_dir)

        assert (patcher.unpacked / "node_modules" / "binding.node").is_file()
        tray = sorted(p.name for p in (patcher.contents / "resources").iterdir())
        assert tray == ["TrayIconTemplate-Dark.png", "TrayIconTemplate.png"]

    def test_missing_tray_icons_warn(
        self,
        patcher: ApplicationPatcher,
        tmp_path: Path,
        runner: ToolRunner,
    ) -> None:
        """No Tray images is a warning, not an error."""
        empty = tmp_path / "resources"
        empty.mkdir()

        assert patcher.copy_tray_icons(empty) == []
        assert len(runner.warnings) == 1
        assert "No tray icons" in runner.warnings[0]

    def test_missing_archive(self, patcher: ApplicationPatcher, tmp_path: Path) -> None:
        """A tree without app.asar cannot be patched."""
        with pytest.raises(PatchError, match="app.asar"):
            patcher.run(tmp_path)

    @pytest.mark.parametrize("step", ["asar extract", "asar pack"])
    def test_asar_failure_is_fatal(
        self,
        patcher: ApplicationPatcher,
        resources_dir: Path,
        fake_tools: Any,
        step: str,
    ) -> None:
        """A failing asar invocation aborts with PatchError."""
        fake_tools.fail_when = lambda argv: argv[0] == "bash" and step in argv[-1]

        with patch("claudepkg.core.context.run_command", fake_tools):
            with pytest.raises(PatchError, match="simulated failure"):
                patcher.run(resources_dir)

    def test_runs_as_real_user(
        self, resources_dir: Path, tmp_path: Path, fake_tools: Any
    ) -> None:
        """asar runs as the real user when the build is elevated."""
        privileges = PrivilegeContext(
            real_user="alice",
            real_home=tmp_path,
            uid=1000,
            gid=1000,
            elevated=True,
        )
        patcher = ApplicationPatcher(
            ToolRunner(privileges),
            privileges,
            tmp_path / "build" / "electron-app",
            tmp_path / ".nvm" / "nvm.sh",
            "18",
        )
        received: list[list[str]] = []

        def recording(args: list[str], **kwargs: Any) -> Any:
            received.append(list(args))
            return fake_tools(args, **kwargs)

        with (
            patch("claudepkg.core.context.run_command", recording),
            patch("claudepkg.core.context.os.lchown"),
        ):
            patcher.run(resources_dir)

        assert all(argv[:4] == ["sudo", "-u", "alice", "-H"] for argv in received)
