"""
Provenance helpers for signature records
"""

from typing import Optional

from fastapi import Request

# Proxy headers consulted for the caller address, most trusted first
CLIENT_IP_HEADERS = ("X-Forwarded-For", "X-Real-IP")

UNKNOWN = "unknown"


def get_client_ip(request: Request) -> str:
    """
    Address recorded on a signature.

    Uses the first hop of a proxy header when present, else the peer
    address of the connection.
    """
    for header in CLIENT_IP_HEADERS:
        value: Optional[str] = request.headers.get(header)
        if value:
            # X-Forwarded-For is "client, proxy1, proxy2"
            return value.split(",")[0].strip()

    if request.client:
        return request.client.host
    return UNKNOWN


def get_user_agent(request: Request) -> str:
    return request.headers.get("User-Agent", UNKNOWN)
