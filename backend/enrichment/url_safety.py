"""
SSRF protection for photo URLs supplied by third parties.

A URL is only fetched when:
- the scheme is https
- the hostname is (a subdomain of) an expected image host
- the hostname is not an internal name (localhost, *.internal, ...)
- every address it resolves to is public (no private, loopback,
  link-local, reserved, multicast or unspecified ranges)
"""

import asyncio
import ipaddress
import logging
import socket
from typing import Awaitable, Callable, Iterable, Optional
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

# Hosts that legitimately serve profile photos and avatars
ALLOWED_IMAGE_DOMAINS: tuple[str, ...] = (
    "licdn.com",
    "linkedin.com",
    "gravatar.com",
    "generated.photos",
    "thispersondoesnotexist.com",
    "ui-avatars.com",
    "googleusercontent.com",
    "amazonaws.com",
    "cloudfront.net",
    "clearbit.com",
    "brandfetch.io",
)

BLOCKED_HOSTNAMES = {"localhost", "metadata", "metadata.google.internal", "instance-data"}
BLOCKED_SUFFIXES = (".localhost", ".local", ".internal", ".localdomain")

Resolver = Callable[[str], Awaitable[list[str]]]


def is_blocked_hostname(host: str) -> bool:
    host = host.lower().rstrip(".")
    return host in BLOCKED_HOSTNAMES or host.endswith(BLOCKED_SUFFIXES)


def is_public_address(address: str) -> bool:
    """False for private, loopback, link-local, reserved, multicast or unspecified IPs."""
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        return False

    # IPv4-mapped IPv6 (::ffff:10.0.0.1) is judged by the embedded IPv4 address
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        ip = ip.ipv4_mapped

    return not (
        ip.is_private
        or ip.is_loopback
        or ip.is_link_local
        or ip.is_reserved
        or ip.is_multicast
        or ip.is_unspecified
    )


def matches_allowed_domain(host: str, allowed_domains: Iterable[str]) -> bool:
    host = host.lower().rstrip(".")
    return any(host == domain or host.endswith(f".{domain}") for domain in allowed_domains)


async def resolve_host(host: str) -> list[str]:
    """Resolve a hostname to its IP addresses (empty list on failure)."""
    loop = asyncio.get_running_loop()
    try:
        infos = await loop.getaddrinfo(host, None, type=socket.SOCK_STREAM)
    except (socket.gaierror, UnicodeError):
        return []
    return sorted({info[4][0] for info in infos})


async def is_safe_image_url(
    url: str,
    allowed_domains: Iterable[str] = ALLOWED_IMAGE_DOMAINS,
    resolve: Optional[Resolver] = None,
) -> bool:
    """
    Decide whether a third-party image URL may be fetched.

    Args:
        url: Candidate photo URL
        allowed_domains: Expected image hosts (suffix match)
        resolve: DNS resolver (injected in tests)

    Returns:
        True only if every check passes
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        return False

    if parsed.scheme != "https":
        return False

    host = (parsed.hostname or "").lower().rstrip(".")
    if not host or is_blocked_hostname(host):
        return False

    # Literal IPs are never on the allow-list
    try:
        ipaddress.ip_address(host)
        logger.debug(f"Rejected literal IP image host: {host}")
        return False
    except ValueError:
        pass

    if not matches_allowed_domain(host, allowed_domains):
        logger.debug(f"Rejected image host outside allow-list: {host}")
        return False

    addresses = await (resolve or resolve_host)(host)
    if not addresses:
        return False

    if not all(is_public_address(address) for address in addresses):
        logger.warning(f"Rejected image host resolving to non-public address: {host} -> {addresses}")
        return False

    return True


def safe_image_url_checker(resolve: Optional[Resolver] = None) -> Callable[[str], Awaitable[bool]]:
    """Bind a resolver into a one-argument check for per-redirect use."""

    async def check(url: str) -> bool:
        return await is_safe_image_url(url, resolve=resolve)

    return check
