"""Client IP resolution and the shared rate limiter."""

import ipaddress

from fastapi import Request
from slowapi import Limiter

from utm_connect.core.settings import get_settings


def _is_valid_ip(ip_str: str) -> bool:
    """Validate IP address format."""
    try:
        ipaddress.ip_address(ip_str)
        return True
    except ValueError:
        return False


def get_real_client_ip(request: Request) -> str:
    """
    Get real client IP with trusted proxy validation and IP format verification.

    X-Forwarded-For and X-Real-IP are honoured only when the direct peer is a
    configured trusted proxy, so clients cannot spoof their way past rate limits.

    Args:
        request: FastAPI request object

    Returns:
        Client IP address, or "unknown"
    """
    trusted_proxies = get_settings().get_trusted_proxies()
    client_host = request.client.host if request.client else "unknown"

    if trusted_proxies and client_host in trusted_proxies:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            # Rightmost address that is not one of our proxies
            for ip in reversed([ip.strip() for ip in forwarded.split(",")]):
                if ip not in trusted_proxies and _is_valid_ip(ip):
                    return ip

        real_ip = (request.headers.get("X-Real-IP") or "").strip()
        if real_ip and real_ip not in trusted_proxies and _is_valid_ip(real_ip):
            return real_ip

    return client_host if _is_valid_ip(client_host) else "unknown"


def login_rate_limit() -> str:
    """Limit string for credential endpoints, read at request time."""
    return get_settings().login_rate_limit


limiter = Limiter(key_func=get_real_client_ip)
