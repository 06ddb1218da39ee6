"""Host environment probing.

Checks that the build can run at all: an Arch Linux host, root
privileges, and nvm installed for the real user. Also works out who the
real user is so later stages can drop privileges to them.
"""

from __future__ import annotations

import logging
import os
import pwd
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path

from claudepkg.core.context import PrivilegeContext
from claudepkg.core.errors import HostEnvironmentError

logger = logging.getLogger(__name__)

ARCH_RELEASE_FILE = Path("/etc/arch-release")
OS_RELEASE_FILE = Path("/etc/os-release")


@dataclass(frozen=True, slots=True)
class HostEnvironment:
    """Result of a successful environment probe.

    Attributes:
        distribution: PRETTY_NAME from os-release, or "unknown".
        privileges: Privilege context for the rest of the run.
        nvm_script: Path to the real user's nvm.sh.
    """

    distribution: str
    privileges: PrivilegeContext
    nvm_script: Path


def read_pretty_name(os_release: Path = OS_RELEASE_FILE) -> str:
    """Read the distribution's PRETTY_NAME.

    Args:
        os_release: Path to the os-release file.

    Returns:
        The pretty name, or "unknown" if the file is absent or lacks it.
    """
    try:
        lines = os_release.read_text(encoding="utf-8").splitlines()
    except OSError:
        return "unknown"
    for line in lines:
        key, _, value = line.partition("=")
        if key.strip() == "PRETTY_NAME":
            return value.strip().strip('"') or "unknown"
    return "unknown"


def resolve_real_user(environ: Mapping[str, str]) -> str:
    """Determine the user who invoked sudo.

    Args:
        environ: Process environment.

    Returns:
        SUDO_USER, else USER, else the login name of the current uid.
    """
    user = environ.get("SUDO_USER") or environ.get("USER")
    if user:
        return user
    return pwd.getpwuid(os.getuid()).pw_name


def find_nvm_script(home: Path, environ: Mapping[str, str]) -> Path | None:
    """Locate nvm.sh for the real user.

    ``NVM_DIR`` is only trusted when it lives under the real user's home,
    since sudo may leak root's value.

    Args:
        home: Real user's home directory.
        environ: Process environment.

    Returns:
        Path to nvm.sh, or None if nvm is not installed.
    """
    candidates: list[Path] = []
    nvm_dir = environ.get("NVM_DIR")
    if nvm_dir and Path(nvm_dir).is_relative_to(home):
        candidates.append(Path(nvm_dir) / "nvm.sh")
    candidates.append(home / ".nvm" / "nvm.sh")
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None


def probe_environment(
    *,
    environ: Mapping[str, str] | None = None,
    release_file: Path = ARCH_RELEASE_FILE,
    os_release: Path = OS_RELEASE_FILE,
    geteuid: Callable[[], int] = os.geteuid,
    getpwnam: Callable[[str], pwd.struct_passwd] = pwd.getpwnam,
) -> HostEnvironment:
    """Verify the host and build the privilege context.

    Args:
        environ: Process environment (defaults to ``os.environ``).
        release_file: File whose presence marks an Arch Linux host.
        os_release: os-release file used for the diagnostic name.
        geteuid: Effective uid source.
        getpwnam: Password database lookup.

    Returns:
        HostEnvironment describing the real user and host.

    Raises:
        HostEnvironmentError: If the host is not Arch Linux, the process
            is not root, the real user is unknown, or nvm is missing.
    """
    env = os.environ if environ is None else environ

    if not release_file.exists():
        raise HostEnvironmentError("This build requires Arch Linux")

    if geteuid() != 0:
        raise HostEnvironmentError("Please run this build with sudo")

    real_user = resolve_real_user(env)
    try:
        entry = getpwnam(real_user)
    except KeyError as e:
        raise HostEnvironmentError(f"Unknown user: {real_user}") from e
    real_home = Path(entry.pw_dir)

    nvm_script = find_nvm_script(real_home, env)
    if nvm_script is None:
        msg = (
            f"nvm not found for {real_user} (expected {real_home / '.nvm' / 'nvm.sh'}). "
            "Install nvm as that user first."
        )
        raise HostEnvironmentError(msg)

    distribution = read_pretty_name(os_release)
    logger.info("Host %s, real user %s (%s)", distribution, real_user, real_home)

    privileges = PrivilegeContext(
        real_user=real_user,
        real_home=real_home,
        uid=entry.pw_uid,
        gid=entry.pw_gid,
        elevated=True,
    )
    return HostEnvironment(
        distribution=distribution,
        privileges=privileges,
        nvm_script=nvm_script,
    )


def current_privileges(
    *,
    environ: Mapping[str, str] | None = None,
    geteuid: Callable[[], int] = os.geteuid,
    getpwnam: Callable[[str], pwd.struct_passwd] = pwd.getpwnam,
) -> PrivilegeContext:
    """Build a privilege context without enforcing any host requirement.

    Used by commands that only touch the real user's config and cache,
    which work with or without sudo.

    Args:
        environ: Process environment (defaults to ``os.environ``).
        geteuid: Effective uid source.
        getpwnam: Password database lookup.

    Returns:
        PrivilegeContext for the real user. Falls back to the current
        home directory and ids if the user is unknown.
    """
    env = os.environ if environ is None else environ
    real_user = resolve_real_user(env)
    try:
        entry = getpwnam(real_user)
    except KeyError:
        return PrivilegeContext(
            real_user=real_user,
            real_home=Path.home(),
            uid=os.getuid(),
            gid=os.getgid(),
            elevated=False,
        )
    return PrivilegeContext(
        real_user=real_user,
        real_home=Path(entry.pw_dir),
        uid=entry.pw_uid,
        gid=entry.pw_gid,
        elevated=geteuid() == 0,
    )
