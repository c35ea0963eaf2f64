"""Observability helpers (correlation IDs, client keys for logging and limits)."""
from __future__ import annotations
import ipaddress
import uuid
from typing import Iterable, Mapping

from starlette.requests import Request

from hoarding_app.config import NETWORK_SETTINGS

REQUEST_ID_HEADER = "X-Request-ID"
FORWARDED_FOR_HEADER = "X-Forwarded-For"

def ensure_request_id(headers: Mapping[str, str]) -> str:
    return headers.get(REQUEST_ID_HEADER, None) or str(uuid.uuid4())

def is_trusted_proxy(host: str, trusted: Iterable[str]) -> bool:
    """Exact match, or membership of a CIDR range when ``host`` is an IP address."""
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        address = None
    for entry in trusted:
        if host == entry:
            return True
        if address is None:
            continue
        try:
            if address in ipaddress.ip_network(entry, strict=False):
                return True
        except ValueError:
            continue
    return False

def client_address(request: Request) -> str:
    """Caller address used for rate limit keys and request logs.

    ``X-Forwarded-For`` is honoured only when the socket peer is a trusted
    proxy; the hops are then walked from the right and the first untrusted
    one wins, so a client cannot pick its own key by prepending entries.
    """
    peer = request.client.host if request.client else "unknown"
    trusted = NETWORK_SETTINGS["trusted_proxies"]
    if not trusted or not is_trusted_proxy(peer, trusted):
        return peer
    forwarded = request.headers.get(FORWARDED_FOR_HEADER)
    if not forwarded:
        return peer
    hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
    for hop in reversed(hops):
        if not is_trusted_proxy(hop, trusted):
            return hop
    return hops[0] if hops else peer

__all__ = ["ensure_request_id", "client_address", "is_trusted_proxy", "REQUEST_ID_HEADER"]
