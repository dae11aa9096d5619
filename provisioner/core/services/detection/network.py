"""
Network checks — public IP lookup and the domain → host DNS check.

Certificates and the panel URL only work when the domain's A record
points at this machine, so the operator is warned before anything is
installed.
"""

from __future__ import annotations

import logging
import re
import socket
from collections.abc import Callable
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

PUBLIC_IP_URL = "https://checkip.amazonaws.com"

FQDN_PATTERN = re.compile(
    r"^(?=.{1,253}$)(?!-)[A-Za-z0-9-]{1,63}(?<!-)(\.(?!-)[A-Za-z0-9-]{1,63}(?<!-))*\.[A-Za-z]{2,63}$"
)
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$")

DNS_GUIDANCE = (
    "The entered domain does not resolve to the primary public IP of this server.",
    "Create an A record pointing to your server's IP. For example, if you create an "
    "A record called 'panel' pointing to your server's IP, your FQDN is panel.domain.tld",
    "If you are using Cloudflare, disable the orange cloud.",
)


def is_valid_fqdn(value: str) -> bool:
    return bool(FQDN_PATTERN.match(value))


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value))


@dataclass
class DnsCheck:
    """Outcome of comparing a domain's A records with the public IP."""

    domain: str
    public_ip: str | None = None
    records: list[str] = field(default_factory=list)
    error: str = ""

    @property
    def matches(self) -> bool:
        return self.public_ip is not None and self.public_ip in self.records


def public_ip(fetcher) -> str | None:
    """This host's public IPv4 address, or None if the lookup failed."""
    result = fetcher.fetch(PUBLIC_IP_URL)
    if not result.ok:
        logger.debug("Public IP lookup failed: %s", result.error)
        return None
    return result.text.strip() or None


def resolve_domain(domain: str) -> list[str]:
    """IPv4 addresses ``domain`` resolves to (empty if it does not)."""
    try:
        infos = socket.getaddrinfo(domain, None, socket.AF_INET)
    except (socket.gaierror, UnicodeError) as e:
        logger.debug("DNS lookup for %s failed: %s", domain, e)
        return []
    return sorted({info[4][0] for info in infos})


def check_dns(
    domain: str,
    fetcher,
    resolver: Callable[[str], list[str]] = resolve_domain,
) -> DnsCheck:
    check = DnsCheck(domain=domain, public_ip=public_ip(fetcher), records=resolver(domain))
    if check.public_ip is None:
        check.error = "Could not determine this server's public IP"
    elif not check.records:
        check.error = f"{domain} has no A record"
    return check
