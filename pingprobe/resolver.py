# pingprobe/resolver.py
import asyncio
import ipaddress
import logging
import socket
from typing import Callable, List, Optional

from pingprobe.errors import ResolutionError
from pingprobe.schemas import IPAddress

logger = logging.getLogger(__name__)

Lookup = Callable[[str], List[IPAddress]]


def parse_ip_literal(host: str) -> Optional[IPAddress]:
    try:
        return ipaddress.ip_address(host)
    except ValueError:
        return None


def lookup_host(host: str) -> List[IPAddress]:
    """Blocking lookup through the system resolver, in the order it answers."""
    infos = socket.getaddrinfo(host, None, type=socket.SOCK_STREAM)
    out: List[IPAddress] = []
    for family, _, _, _, sockaddr in infos:
        if family not in (socket.AF_INET, socket.AF_INET6):
            continue
        ip = ipaddress.ip_address(sockaddr[0])
        if ip not in out:
            out.append(ip)
    return out


async def resolve_host(host: str, lookup: Optional[Lookup] = None) -> IPAddress:
    """
    Turn a host string into exactly one address.

    IP literals are returned as-is without touching the resolver. Names go
    through `lookup` on a worker thread and the first answer wins; no
    preference between IPv4 and IPv6 is applied. There is no timeout here,
    a slow DNS server makes the call slow.
    """
    ip = parse_ip_literal(host)
    if ip is not None:
        logger.debug("%s is an IP literal, skipping DNS", host)
        return ip

    lookup = lookup or lookup_host
    loop = asyncio.get_running_loop()
    try:
        addresses = await loop.run_in_executor(None, lookup, host)
    except (OSError, UnicodeError) as e:
        # IDNA encoding of over-long or empty labels fails before any query
        raise ResolutionError(f"DNS lookup failed: {e}") from e

    if not addresses:
        raise ResolutionError("No valid IP address found")

    logger.debug("resolved %s -> %s (%d candidates)", host, addresses[0], len(addresses))
    return addresses[0]
