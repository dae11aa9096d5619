"""
Detect use case — what host is this, and can it be provisioned?

Read-only: never requires root.  The only command run is the
hypervisor check (``systemd-detect-virt`` or ``virt-what``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from provisioner.adapters.base import CommandRunner
from provisioner.adapters.os_family import select_adapter
from provisioner.adapters.shell.command import ShellRunner
from provisioner.adapters.shell.filesystem import FilesystemAdapter
from provisioner.core.errors import PreconditionError
from provisioner.core.models.host import HostProfile
from provisioner.core.services.detection import SUPPORTED_RELEASES, Preflight, detect_host, run_preflight

logger = logging.getLogger(__name__)


@dataclass
class DetectResult:
    """Result of host detection."""

    profile: HostProfile | None = None
    preflight: Preflight | None = None
    supported: bool = False
    package_manager: str = ""
    php_fpm_socket: str = ""
    error: str | None = None

    def to_dict(self) -> dict:
        result: dict = {"supported": self.supported}
        if self.error:
            result["error"] = self.error
        if self.profile:
            result["profile"] = self.profile.model_dump()
        if self.preflight:
            result.update(self.preflight.to_dict())
        if self.supported:
            result["package_manager"] = self.package_manager
            result["php_fpm_socket"] = self.php_fpm_socket
        return result


def run_detect(
    fs: FilesystemAdapter | None = None,
    machine: str | None = None,
    runner: CommandRunner | None = None,
    kernel: str | None = None,
) -> DetectResult:
    """Detect the host behind ``fs`` (the real root by default)."""
    fs = fs or FilesystemAdapter()
    runner = runner or ShellRunner()
    result = DetectResult()
    try:
        result.profile = detect_host(fs, machine=machine, check_root=False)
        result.preflight = run_preflight(runner, kernel)
    except PreconditionError as e:
        result.error = str(e)
        return result

    adapter = select_adapter(result.profile)
    result.supported = True
    result.package_manager = adapter.package_manager
    result.php_fpm_socket = adapter.php_fpm_socket()
    return result


def supported_releases() -> dict[str, list[str]]:
    """Supported distributions and their versions, for help output."""
    return {distro: sorted(versions) for distro, versions in SUPPORTED_RELEASES.items()}
