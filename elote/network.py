"""Connectivity probe used before any request is attempted."""

from __future__ import annotations

import logging
import socket
from urllib.parse import urlparse

DEFAULT_PROBE_URL = "https://api.openai.com"


def is_network_reachable(url: str = DEFAULT_PROBE_URL) -> bool:
    """Return True when the host of ``url`` can be resolved."""

    parsed = urlparse(url)
    host = parsed.hostname or url
    port = parsed.port or (443 if parsed.scheme != "http" else 80)
    try:
        socket.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    except OSError as exc:
        logging.debug("Network probe for %s failed: %s", host, exc)
        return False
    return True
