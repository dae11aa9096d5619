"""OS-family adapters, selected once per run from the HostProfile."""

from __future__ import annotations

from provisioner.adapters.os_family.base import OSAdapter
from provisioner.adapters.os_family.debian import DebianAdapter
from provisioner.adapters.os_family.rhel import RhelAdapter
from provisioner.core.models.host import HostProfile

_ADAPTERS: dict[str, type[OSAdapter]] = {
    "debian": DebianAdapter,
    "rhel": RhelAdapter,
}


def select_adapter(profile: HostProfile, php_version: str = "8.2") -> OSAdapter:
    """Return the adapter for ``profile.family``."""
    return _ADAPTERS[profile.family](profile, php_version=php_version)


__all__ = [
    "DebianAdapter",
    "OSAdapter",
    "RhelAdapter",
    "select_adapter",
]
