"""
URL canonicalization and origin checks.
"""
from __future__ import annotations

from typing import Optional
from urllib.parse import urlsplit, urlunsplit

DEFAULT_PORTS = {"http": 80, "https": 443}


def normalize_url(url: str) -> Optional[str]:
    """
    Canonicalize a URL so that equal pages compare equal.

    - Lowercases scheme and host
    - Strips trailing slashes from the path (the root becomes an empty path)
    - Removes default ports (:80 for http, :443 for https)
    - Drops fragments (#...) and userinfo
    - Keeps querystrings untouched (they matter for uniqueness)

    Returns None when the URL cannot be parsed or is not absolute.
    """
    if not url:
        return None

    try:
        parsed = urlsplit(url.strip())
        port = parsed.port
    except ValueError:
        return None

    scheme = parsed.scheme.lower()
    hostname = parsed.hostname
    if not scheme or not hostname:
        return None

    # hostname loses the brackets around IPv6 literals
    if ":" in hostname:
        hostname = f"[{hostname}]"

    if port is None or DEFAULT_PORTS.get(scheme) == port:
        netloc = hostname
    else:
        netloc = f"{hostname}:{port}"

    return urlunsplit((
        scheme,
        netloc,
        parsed.path.rstrip("/"),
        parsed.query,
        "",  # No fragment
    ))


def host_of(url: str) -> Optional[str]:
    """Return the lowercased host of an absolute URL, or None."""
    try:
        return urlsplit(url).hostname or None
    except ValueError:
        return None


def is_same_origin(base_url: str, url: str) -> bool:
    """Check if both URLs parse and share a host. Scheme and port are ignored."""
    base_host = host_of(base_url)
    return base_host is not None and base_host == host_of(url)
