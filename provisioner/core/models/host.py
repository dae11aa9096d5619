"""
Host profile model — what machine are we provisioning.

Resolved once, before anything is installed, and frozen afterwards.
Every step branches on it through the OS-family adapter.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict

OSFamily = Literal["debian", "rhel"]


class HostProfile(BaseModel):
    """Detected operating system, version, architecture and timezone."""

    model_config = ConfigDict(frozen=True)

    family: OSFamily
    distro_id: str                  # ubuntu, debian, rhel, centos, rocky, almalinux
    version: str                    # VERSION_ID, major-only for rhel-like
    codename: str = ""              # VERSION_CODENAME (debian-like only)
    arch: str = "amd64"             # normalized: amd64 | arm64
    timezone: str = "UTC"

    @property
    def label(self) -> str:
        """Human-readable name, e.g. ``ubuntu 22.04 (amd64)``."""
        return f"{self.distro_id} {self.version} ({self.arch})"
