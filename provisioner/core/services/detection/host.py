"""
Host detection — OS family/version gate, architecture, timezone, privileges.

Reads ``/etc/os-release`` through the filesystem adapter so tests can
hand it any distribution.  Anything outside the supported matrix is a
``PreconditionError`` raised before a single package is touched.
"""

from __future__ import annotations

import logging
import os
import platform

from provisioner.adapters.shell.filesystem import FilesystemAdapter
from provisioner.core.errors import PreconditionError
from provisioner.core.models.host import HostProfile, OSFamily

logger = logging.getLogger(__name__)

OS_RELEASE = "/etc/os-release"

# Distro ID → supported VERSION_IDs (major only for RHEL-like)
SUPPORTED_RELEASES: dict[str, tuple[str, ...]] = {
    "ubuntu": ("18.04", "20.04", "22.04", "24.04"),
    "debian": ("10", "11", "12"),
    "rhel": ("8",),
    "centos": ("8",),
    "rocky": ("8",),
    "almalinux": ("8",),
}

DISTRO_FAMILIES: dict[str, OSFamily] = {
    "ubuntu": "debian",
    "debian": "debian",
    "rhel": "rhel",
    "centos": "rhel",
    "rocky": "rhel",
    "almalinux": "rhel",
}

# uname -m → release asset architecture
ARCHITECTURES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
}


def parse_os_release(text: str) -> dict[str, str]:
    """Parse ``/etc/os-release`` KEY=value lines (values may be quoted)."""
    fields: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        fields[key] = value.strip().strip('"').strip("'")
    return fields


def normalize_arch(machine: str) -> str:
    arch = ARCHITECTURES.get(machine.lower())
    if arch is None:
        raise PreconditionError(
            f"Unsupported architecture '{machine}': only x86_64 and aarch64 hosts are supported"
        )
    return arch


def build_profile(os_release: dict[str, str], machine: str, timezone: str = "UTC") -> HostProfile:
    """Validate a parsed os-release against the supported matrix.

    Raises:
        PreconditionError: Unknown distribution, unsupported release or
            unsupported architecture.
    """
    distro = os_release.get("ID", "").lower()
    raw_version = os_release.get("VERSION_ID", "")

    family = DISTRO_FAMILIES.get(distro)
    if family is None:
        name = os_release.get("PRETTY_NAME") or distro or "unknown"
        raise PreconditionError(
            f"Unsupported operating system: {name}. "
            "Supported: Ubuntu 18.04-24.04, Debian 10-12, RHEL/CentOS/Rocky/AlmaLinux 8"
        )

    version = raw_version.split(".")[0] if family == "rhel" else raw_version
    if version not in SUPPORTED_RELEASES[distro]:
        raise PreconditionError(
            f"Unsupported {distro} release '{raw_version or 'unknown'}'. "
            f"Supported: {', '.join(SUPPORTED_RELEASES[distro])}"
        )

    return HostProfile(
        family=family,
        distro_id=distro,
        version=version,
        codename=os_release.get("VERSION_CODENAME", ""),
        arch=normalize_arch(machine),
        timezone=timezone,
    )


def detect_timezone(fs: FilesystemAdapter) -> str:
    """Host timezone from ``/etc/timezone`` or the ``/etc/localtime`` link."""
    content = fs.read_text("/etc/timezone")
    if content and content.strip():
        return content.strip()

    link = fs.readlink("/etc/localtime")
    if link and "zoneinfo/" in link:
        return link.split("zoneinfo/", 1)[1]

    return "UTC"


def require_root(euid: int | None = None) -> None:
    if euid is None:
        euid = os.geteuid()
    if euid != 0:
        raise PreconditionError("This installer must be run as root (try: sudo provisioner install)")


def detect_host(
    fs: FilesystemAdapter,
    *,
    machine: str | None = None,
    euid: int | None = None,
    check_root: bool = True,
) -> HostProfile:
    """Resolve the HostProfile of the machine behind ``fs``.

    Args:
        fs: Filesystem adapter rooted at the host (or a fake root).
        machine: ``uname -m`` value; detected when None.
        euid: Effective user id; detected when None.
        check_root: Enforce the privilege gate.

    Raises:
        PreconditionError: Unsupported host or not running as root.
    """
    text = fs.read_text(OS_RELEASE)
    if text is None:
        raise PreconditionError(f"Cannot identify the operating system: {OS_RELEASE} is missing")

    profile = build_profile(
        parse_os_release(text),
        machine or platform.machine(),
        timezone=detect_timezone(fs),
    )
    if check_root:
        require_root(euid)

    logger.info("Detected %s (%s family)", profile.label, profile.family)
    return profile
