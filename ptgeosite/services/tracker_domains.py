"""
Tracker URL classification.

Turns announce URLs into the hostnames routing rules can match on. Only
name-resolvable HTTP(S) trackers qualify: UDP/WebSocket trackers and trackers
addressed by a literal IP have no hostname worth routing on.

Hosts are returned exactly as written in the URL. No case folding happens, so
``Tracker.Example.com`` and ``tracker.example.com`` are distinct entries.
"""

import ipaddress
import logging
import re
from typing import Iterable, Iterator, Optional
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

# Characters allowed in a reg-name host; non-ASCII is left to IDNA-aware clients
_HOST_RE = re.compile(r"[A-Za-z0-9\-._~!$&'()*+,;=%\u0080-\U0010ffff]+")


def _is_ip_literal(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


def _is_malformed(url: str) -> bool:
    # urlsplit silently strips leading blanks and drops tabs and newlines
    return url[0].isspace() or any(ord(ch) < 0x20 or ch == "\x7f" for ch in url)


def _split_host(netloc: str) -> Optional[str]:
    """Return the host of ``netloc`` in its original case, without userinfo or port."""
    hostport = netloc.rpartition("@")[2]
    if hostport.startswith("["):
        # Bracketed hosts are IPv6 literals, never a routable name
        return None
    return hostport.partition(":")[0]


def tracker_domain(announce_url: Optional[str]) -> Optional[str]:
    """
    Extract the hostname from a tracker announce URL.

    Args:
        announce_url: Raw announce URL as reported by the torrent client

    Returns:
        The hostname, verbatim, or None when the URL is unparsable, its scheme
        does not start with "http", its host is empty, or its host is an IP
        literal
    """
    if not announce_url or _is_malformed(announce_url):
        return None

    try:
        parts = urlsplit(announce_url)
        # Raises on a non-numeric or out-of-range port
        parts.port
    except ValueError:
        logger.debug(f"Unparsable tracker URL skipped: {announce_url!r}")
        return None

    if not parts.scheme.startswith("http"):
        return None

    host = _split_host(parts.netloc)
    if not host:
        return None

    if _is_ip_literal(host):
        return None

    if not _HOST_RE.fullmatch(host):
        logger.debug(f"Tracker URL with invalid host skipped: {announce_url!r}")
        return None

    return host


def tracker_domains(announce_urls: Iterable[Optional[str]]) -> Iterator[str]:
    """Yield the accepted hostnames of ``announce_urls``, in input order."""
    for url in announce_urls:
        host = tracker_domain(url)
        if host:
            yield host
