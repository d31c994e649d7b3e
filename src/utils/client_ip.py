"""Client address resolution for rate limiting and audit entries."""

from fastapi import Request

UNKNOWN_CLIENT = "unknown"


def get_client_ip(request: Request) -> str:
    """Best-effort originating address of a request.

    Proxy headers are consulted in order: ``CF-Connecting-IP``, the first
    ``X-Forwarded-For`` hop, ``X-Real-IP``. Without them the socket peer is
    used.
    """
    cf_ip = request.headers.get("CF-Connecting-IP")
    if cf_ip and cf_ip.strip():
        return cf_ip.strip()

    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop

    real_ip = request.headers.get("X-Real-IP")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_CLIENT


def rate_limit_key(request: Request) -> str:
    return f"track:{get_client_ip(request)}"
