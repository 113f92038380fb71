"""Rate limiting for the Wakeful backend.

Clients are keyed by IP. ``X-Forwarded-For`` is honored only when the
direct peer is a trusted proxy, otherwise any caller could pick its own key.
"""

import ipaddress
import logging
import os
from functools import lru_cache

from slowapi import Limiter
from slowapi.util import get_remote_address

logger = logging.getLogger("wakeful.api")

# Override with WAKEFUL_TRUSTED_PROXY_CIDRS (comma-separated CIDRs)
DEFAULT_TRUSTED_CIDRS = (
    "10.0.0.0/8",
    "172.16.0.0/12",
    "192.168.0.0/16",
    "127.0.0.0/8",
    "::1/128",
)


@lru_cache
def trusted_networks() -> tuple:
    """Parse trusted proxy CIDRs once per process."""
    raw = os.environ.get("WAKEFUL_TRUSTED_PROXY_CIDRS", "")
    cidrs = [s.strip() for s in raw.split(",") if s.strip()] or list(DEFAULT_TRUSTED_CIDRS)
    networks = []
    for cidr in cidrs:
        try:
            networks.append(ipaddress.ip_network(cidr, strict=False))
        except ValueError:
            logger.warning(f"Ignoring invalid trusted proxy CIDR: {cidr!r}")
    return tuple(networks)


def is_trusted_proxy(ip_str: str) -> bool:
    try:
        addr = ipaddress.ip_address(ip_str)
    except ValueError:
        return False
    return any(addr in network for network in trusted_networks())


def get_client_ip(request) -> str:
    """Leftmost forwarded address behind a trusted proxy, else the peer address."""
    direct_ip = get_remote_address(request)
    if is_trusted_proxy(direct_ip):
        forwarded_for = request.headers.get("x-forwarded-for", "")
        client_ip = forwarded_for.split(",")[0].strip()
        if client_ip:
            return client_ip
    return direct_ip


limiter = Limiter(key_func=get_client_ip)
