"""
Preflight — hypervisor and kernel checks run right after the OS gate.

Wings runs game servers in Docker, so the host has to be able to run
containers.  A few kernels never can (OVH's custom builds, OpenVZ 6);
those stop the run.  Everything else that is merely unusual becomes a
warning for the operator.
"""

from __future__ import annotations

import logging
import platform
from dataclasses import dataclass, field

from provisioner.adapters.base import CommandRunner
from provisioner.core.errors import PreconditionError

logger = logging.getLogger(__name__)

BARE_METAL = "none"
UNKNOWN = "unknown"

# Hypervisors Docker is known to work on (systemd-detect-virt and virt-what names)
SUPPORTED_VIRTUALIZATION = frozenset({
    BARE_METAL,
    "kvm",
    "qemu",
    "vmware",
    "microsoft",
    "hyperv",
    "xen",
    "xen xen-hvm",
    "xen xen-hvm aws",
    "amazon",
    "openvz lxc",
})

NAT_WARNING = (
    "When creating allocations for this node, use the internal IP: "
    "the cloud provider routes traffic through NAT."
)


@dataclass
class Preflight:
    """Hypervisor and kernel of the host."""

    virtualization: str = UNKNOWN
    kernel: str = ""
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "virtualization": self.virtualization,
            "kernel": self.kernel,
            "warnings": list(self.warnings),
        }


def detect_virtualization(runner: CommandRunner) -> str:
    """Hypervisor name, ``none`` on bare metal, ``unknown`` without a detection tool.

    ``systemd-detect-virt`` exits non-zero and prints ``none`` on bare
    metal, so only its output is read.
    """
    for tool in ("systemd-detect-virt", "virt-what"):
        if runner.is_available(tool):
            result = runner.run([tool])
            return " ".join(result.stdout.split()) or BARE_METAL
    logger.info("Neither systemd-detect-virt nor virt-what is installed")
    return UNKNOWN


def check_kernel(release: str) -> list[str]:
    """Warnings for ``release``.

    Raises:
        PreconditionError: The kernel cannot run Docker.
    """
    if "xxxx" in release:
        raise PreconditionError(
            f"OVH kernel detected ({release}); Docker will not work on it. "
            "Reinstall the server with the distribution kernel "
            "(custom installation, 'use distribution kernel')."
        )
    if "stab" in release and release.startswith("2.6"):
        raise PreconditionError(
            f"OpenVZ 6 kernel detected ({release}); this host cannot run Docker."
        )

    warnings = []
    if "pve" in release:
        warnings.append("Proxmox LXC kernel detected; Docker may not work inside this container.")
    if "gcp" in release:
        warnings.append(
            "Google Cloud kernel detected. Use a static IP, and allow the node's "
            "ports in the GCP firewall. " + NAT_WARNING
        )
    return warnings


def virtualization_warnings(virtualization: str) -> list[str]:
    if virtualization == UNKNOWN:
        return []
    warnings = []
    if virtualization not in SUPPORTED_VIRTUALIZATION:
        warnings.append(
            f"Unsupported virtualization '{virtualization}'. Ask your hosting "
            "provider whether this server can run Docker; continuing at your own risk."
        )
    if "aws" in virtualization or virtualization == "amazon":
        warnings.append(NAT_WARNING)
    return warnings


def run_preflight(runner: CommandRunner, kernel: str | None = None) -> Preflight:
    """Check the hypervisor and the kernel release (``uname -r`` by default).

    Raises:
        PreconditionError: The kernel cannot run Docker.
    """
    kernel = kernel if kernel is not None else platform.release()
    warnings = check_kernel(kernel)
    virtualization = detect_virtualization(runner)
    warnings += virtualization_warnings(virtualization)
    logger.debug("Preflight: virtualization=%s kernel=%s", virtualization, kernel)
    return Preflight(virtualization=virtualization, kernel=kernel, warnings=warnings)
