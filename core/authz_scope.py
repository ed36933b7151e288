"""
Scope enforcement: ensures scan targets resolve to public infrastructure
only. Private, loopback, link-local, unique-local and unparseable addresses
are never scannable; anything ambiguous is treated as private.
"""

import asyncio
import ipaddress
import logging
import re
import socket
from typing import List, Optional, Union

from .config import settings
from .errors import InvalidTarget
from .models import ResolvedTarget

log = logging.getLogger(__name__)

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

PRIVATE_V4_NETWORKS = [
    ipaddress.ip_network(cidr)
    for cidr in (
        "10.0.0.0/8",
        "127.0.0.0/8",
        "0.0.0.0/8",
        "169.254.0.0/16",
        "172.16.0.0/12",
        "192.168.0.0/16",
    )
]

PRIVATE_V6_NETWORKS = [
    ipaddress.ip_network(cidr)
    for cidr in (
        "::1/128",  # loopback
        "::/128",  # unspecified
        "fe80::/10",  # link-local
        "fc00::/7",  # unique-local (fc.. / fd..)
    )
]

_LABEL = r"(?!-)[A-Za-z0-9-]{1,63}(?<!-)"
_DOMAIN_RE = re.compile(rf"{_LABEL}(?:\.{_LABEL})+", re.ASCII)


def _parse_ip(value: str) -> Optional[IPAddress]:
    try:
        return ipaddress.ip_address(value)
    except ValueError:
        return None


def is_private_ip(address) -> bool:
    """
    Classify a literal address. Returns True for the private ranges and for
    anything that is not a well-formed IPv4/IPv6 literal (fail-closed).
    """
    if not address or not isinstance(address, str):
        return True
    ip_obj = _parse_ip(address)
    if ip_obj is None:
        return True
    if isinstance(ip_obj, ipaddress.IPv6Address):
        # textual prefixes also catch compressed forms like fc::1 (= 00fc::1)
        if address.lower().startswith(("fc", "fd", "fe80:")):
            return True
        if ip_obj.ipv4_mapped is not None:
            return is_private_ip(str(ip_obj.ipv4_mapped))
        return any(ip_obj in net for net in PRIVATE_V6_NETWORKS)
    return any(ip_obj in net for net in PRIVATE_V4_NETWORKS)


def is_valid_domain(target: str) -> bool:
    return bool(_DOMAIN_RE.fullmatch(target))


async def _resolve_host(host: str) -> List[str]:
    """A/AAAA lookup; addresses keep the resolver's order, duplicates dropped."""
    loop = asyncio.get_running_loop()
    infos = await asyncio.wait_for(
        loop.getaddrinfo(host, None, type=socket.SOCK_STREAM),
        timeout=settings.dns_timeout_s,
    )
    return list(dict.fromkeys(info[4][0] for info in infos))


async def resolve_target(target) -> ResolvedTarget:
    """
    Validate target (IP literal or domain) and bind it to one public address.
    Domains resolve to all A/AAAA records; the first public one wins, so the
    pick follows whatever order the system resolver returns.
    """
    if not target or not isinstance(target, str):
        raise InvalidTarget("Target is required")
    trimmed = target.strip()
    if not trimmed:
        raise InvalidTarget("Target is required")
    if trimmed.lower() == "localhost":
        raise InvalidTarget("Localhost is not allowed")

    if _parse_ip(trimmed) is not None:
        if is_private_ip(trimmed):
            log.warning("rejected private address %s", trimmed)
            raise InvalidTarget("Private IPs are not allowed")
        return ResolvedTarget(hostname=trimmed, address=trimmed)

    if not is_valid_domain(trimmed):
        raise InvalidTarget("Invalid domain name")

    try:
        addresses = await _resolve_host(trimmed)
    except (OSError, asyncio.TimeoutError) as exc:
        log.warning("dns lookup failed for %s: %s", trimmed, exc)
        raise InvalidTarget("Unable to resolve target") from exc

    public = next((addr for addr in addresses if not is_private_ip(addr)), None)
    if public is None:
        log.warning("%s resolves only to private addresses %s", trimmed, addresses)
        raise InvalidTarget("Target resolves to a private IP")
    log.debug("resolved %s -> %s (candidates=%s)", trimmed, public, addresses)
    return ResolvedTarget(hostname=trimmed, address=public)
