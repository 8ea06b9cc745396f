"""Best-effort client identification for audit entries and rate limiting.

The forwarding headers below are set by whoever is in front of the app, so a
client talking to the app directly can put anything in them. Configure
``TRUSTED_PROXIES`` with the addresses of the reverse proxies that overwrite
these headers; requests arriving from any other peer are then identified by
their socket address instead.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from fastapi import Request
from fastapi.datastructures import Headers

from evops.core.config import settings

CLIENT_IP_HEADERS = ("CF-Connecting-IP", "X-Real-IP", "X-Forwarded-For")
UNKNOWN_CLIENT = "unknown"


def _header(headers: Mapping[str, str], name: str) -> str | None:
    if isinstance(headers, Headers):
        # case-insensitive, first line wins on repeats
        return headers.get(name)
    name = name.lower()
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None


def get_client_ip(headers: Mapping[str, str]) -> str | None:
    """First address from the highest-priority forwarding header present."""
    for name in CLIENT_IP_HEADERS:
        value = _header(headers, name)
        if value:
            # X-Forwarded-For is "client, proxy1, proxy2"
            return value.split(",")[0].strip() or None
    return None


def get_user_agent(headers: Mapping[str, str]) -> str | None:
    return _header(headers, "User-Agent") or None


@dataclass(frozen=True)
class RequestContext:
    ip_address: str | None = None
    user_agent: str | None = None
    endpoint: str | None = None

    @property
    def client_key(self) -> str:
        return self.ip_address or UNKNOWN_CLIENT


def resolve_client_ip(request: Request) -> str | None:
    peer = request.client.host if request.client else None
    trusted = settings.trusted_proxies
    if trusted and peer not in trusted:
        return peer
    return get_client_ip(request.headers) or peer


def request_context(request: Request) -> RequestContext:
    """FastAPI dependency collecting the request details audit entries record."""
    return RequestContext(
        ip_address=resolve_client_ip(request),
        user_agent=get_user_agent(request.headers),
        endpoint=request.url.path,
    )
