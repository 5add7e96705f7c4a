"""Navigation URL guard."""
from __future__ import annotations

import ipaddress
from urllib.parse import urlparse


ALLOWED_SCHEMES = {"http", "https"}
BLOCKED_HOSTNAMES = {"localhost"}
BLOCKED_SUFFIXES = (".localhost", ".internal", ".local")


class NavigationError(ValueError):
    """Raised when a URL must not be navigated to."""


def _is_blocked_address(host: str) -> bool:
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return False
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped:
        address = address.ipv4_mapped
    return (
        address.is_private
        or address.is_loopback
        or address.is_link_local
        or address.is_unspecified
        or address.is_reserved
        or address.is_multicast
    )


def validate_navigation_url(url: str) -> str:
    """Return ``url`` if it is a public http(s) address, else raise NavigationError."""
    text = (url or "").strip()
    parsed = urlparse(text)
    scheme = (parsed.scheme or "").lower()
    if scheme not in ALLOWED_SCHEMES:
        raise NavigationError(
            f'Blocked navigation to "{text}": only http and https URLs are allowed'
        )

    host = (parsed.hostname or "").lower().rstrip(".")
    if not host:
        raise NavigationError(f'Blocked navigation to "{text}": URL has no host')
    if host in BLOCKED_HOSTNAMES or host.endswith(BLOCKED_SUFFIXES):
        raise NavigationError(f'Blocked navigation to "{text}": local hostnames are not allowed')
    if _is_blocked_address(host):
        raise NavigationError(
            f'Blocked navigation to "{text}": private, loopback and link-local addresses are not allowed'
        )
    return text
