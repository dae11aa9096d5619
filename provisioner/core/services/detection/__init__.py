"""Detection — what host we are on and whether its domain points here."""

from provisioner.core.services.detection.host import (
    SUPPORTED_RELEASES,
    build_profile,
    detect_host,
    detect_timezone,
    parse_os_release,
    require_root,
)
from provisioner.core.services.detection.network import (
    DnsCheck,
    check_dns,
    is_valid_email,
    is_valid_fqdn,
    public_ip,
)
from provisioner.core.services.detection.virtualization import (
    Preflight,
    check_kernel,
    detect_virtualization,
    run_preflight,
)

__all__ = [
    "DnsCheck",
    "Preflight",
    "SUPPORTED_RELEASES",
    "build_profile",
    "check_dns",
    "check_kernel",
    "detect_host",
    "detect_timezone",
    "detect_virtualization",
    "is_valid_email",
    "is_valid_fqdn",
    "parse_os_release",
    "public_ip",
    "require_root",
    "run_preflight",
]
