"""Pytest configuration and shared fixtures.

The external build tools are never executed. ``FakeTools`` stands in for
``run_command`` and reproduces the file-system effects each tool would
have, so stages can be exercised end to end inside ``tmp_path``.
"""

import io
import os
import re
import shutil
from collections.abc import Callable
from pathlib import Path

import pytest
from claudepkg.core.context import PrivilegeContext, ToolRunner
from claudepkg.core.environment import HostEnvironment
from claudepkg.stages.icons import ICON_FILES
from claudepkg.utils.shell import CommandResult
from PIL import Image

INSTALLER_BYTES = b"MZ fake installer payload"

ORIGINAL_NATIVE_MODULE = "module.exports = require('./claude-native-binding.node');\n"


def png_bytes(width: int, height: int) -> bytes:
    """Encode a transparent PNG of the given size."""
    buffer = io.BytesIO()
    Image.new("RGBA", (width, height)).save(buffer, format="PNG")
    return buffer.getvalue()


class FakeTools:
    """Replacement for ``run_command`` that simulates the build tools.

    Attributes:
        version: Installer version the fake 7-Zip pretends to contain.
        payload: Bytes the fake wget downloads.
        calls: Every argv received, in order (privilege prefix stripped).
        omit_icons: Sizes icotool "forgets" to produce.
        tray_icons: Whether the nested package ships Tray* images.
        fail_when: Predicate selecting calls that exit non-zero.
    """

    def __init__(self, version: str = "9.9.9") -> None:
        self.version = version
        self.payload = INSTALLER_BYTES
        self.calls: list[list[str]] = []
        self.omit_icons: set[int] = set()
        self.tray_icons = True
        self.fail_when: Callable[[list[str]], bool] = lambda argv: False

    def __call__(
        self,
        args: list[str],
        *,
        check: bool = False,
        timeout: float | None = None,
        cwd: str | None = None,
    ) -> CommandResult:
        argv = list(args)
        if argv[:2] == ["sudo", "-u"]:
            argv = argv[4:]
        self.calls.append(argv)

        if self.fail_when(argv):
            return CommandResult(stdout="", stderr=f"{argv[0]}: simulated failure", returncode=2)

        workdir = Path(cwd) if cwd else Path.cwd()
        handler = getattr(self, f"_tool_{argv[0].replace('-', '_')}", None)
        outcome = handler(argv, workdir) if handler is not None else None
        return outcome or CommandResult(stdout="", stderr="", returncode=0)

    def count(self, tool: str) -> int:
        """Number of calls to a tool."""
        return sum(1 for argv in self.calls if argv[0] == tool)

    def _tool_wget(self, argv: list[str], cwd: Path) -> None:
        target = Path(argv[argv.index("-O") + 1])
        target.write_bytes(self.payload)

    def _tool_7z(self, argv: list[str], cwd: Path) -> None:
        archive = argv[-1]
        if archive.endswith(".exe"):
            (cwd / f"AnthropicClaude-{self.version}-full.nupkg").write_bytes(b"nupkg")
            return
        net45 = cwd / "lib" / "net45"
        resources = net45 / "resources"
        (resources / "app.asar.unpacked" / "node_modules").mkdir(parents=True)
        (net45 / "claude.exe").write_bytes(b"MZ claude")
        (resources / "app.asar").write_bytes(b"asar original")
        (resources / "app.asar.unpacked" / "node_modules" / "binding.node").write_bytes(b"elf")
        if self.tray_icons:
            (resources / "TrayIconTemplate.png").write_bytes(png_bytes(16, 16))
            (resources / "TrayIconTemplate-Dark.png").write_bytes(png_bytes(16, 16))

    def _tool_wrestool(self, argv: list[str], cwd: Path) -> None:
        Path(argv[argv.index("-o") + 1]).write_bytes(b"ico")

    def _tool_icotool(self, argv: list[str], cwd: Path) -> None:
        for size, name in ICON_FILES.items():
            if size not in self.omit_icons:
                (cwd / name).write_bytes(png_bytes(size, size))

    def _tool_bash(self, argv: list[str], cwd: Path) -> None:
        script = argv[-1]
        if "asar extract" in script:
            native = cwd / "app.asar.contents" / "node_modules" / "claude-native"
            native.mkdir(parents=True)
            (native / "index.js").write_text(ORIGINAL_NATIVE_MODULE)
        elif "asar pack" in script:
            stub = cwd / "app.asar.contents" / "node_modules" / "claude-native" / "index.js"
            (cwd / "app.asar").write_bytes(b"asar patched\n" + stub.read_bytes())

    def _tool_makepkg(self, argv: list[str], cwd: Path) -> CommandResult | None:
        pkgbuild = (cwd / "PKGBUILD").read_text()
        fields = dict(re.findall(r"^(pkgname|pkgver|pkgrel)=(\S+)$", pkgbuild, re.MULTILINE))
        arch = re.search(r"^arch=\('([^']+)'\)$", pkgbuild, re.MULTILINE)
        assert arch is not None

        # makepkg owns $startdir/pkg: it is wiped and recreated before package()
        pkgdirbase = cwd / "pkg"
        shutil.rmtree(pkgdirbase, ignore_errors=True)
        pkgdir = pkgdirbase / fields["pkgname"]
        pkgdir.mkdir(parents=True)

        copy = re.search(r'^\s*cp -r "(.+)"/\* "\$pkgdir/"$', pkgbuild, re.MULTILINE)
        assert copy is not None
        source = Path(copy.group(1))
        if source.resolve().is_relative_to(pkgdirbase.resolve()) or not source.is_dir():
            stderr = f"cp: cannot copy '{source}' into '{pkgdir}'\n==> ERROR: package() failed"
            return CommandResult(stdout="", stderr=stderr, returncode=4)
        shutil.copytree(source, pkgdir, symlinks=True, dirs_exist_ok=True)

        name = f"{fields['pkgname']}-{fields['pkgver']}-{fields['pkgrel']}-{arch.group(1)}"
        (cwd / f"{name}.pkg.tar.zst").write_bytes(b"zstd package")
        return None


@pytest.fixture
def make_png() -> Callable[[int, int], bytes]:
    """Factory for encoded PNG images."""
    return png_bytes


@pytest.fixture
def fake_tools() -> FakeTools:
    """Fresh tool simulator for version 9.9.9."""
    return FakeTools()


@pytest.fixture
def privileges(tmp_path: Path) -> PrivilegeContext:
    """Non-elevated privilege context for the current test user."""
    home = tmp_path / "home"
    home.mkdir()
    return PrivilegeContext(
        real_user="tester",
        real_home=home,
        uid=os.getuid(),
        gid=os.getgid(),
        elevated=False,
    )


@pytest.fixture
def runner(privileges: PrivilegeContext) -> ToolRunner:
    """Tool runner bound to the test privilege context."""
    return ToolRunner(privileges)


@pytest.fixture
def host(privileges: PrivilegeContext) -> HostEnvironment:
    """Probed host with nvm installed for the test user."""
    nvm = privileges.real_home / ".nvm" / "nvm.sh"
    nvm.parent.mkdir(parents=True)
    nvm.write_text("# nvm\n")
    return HostEnvironment(
        distribution="Arch Linux",
        privileges=privileges,
        nvm_script=nvm,
    )
