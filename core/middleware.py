import ipaddress
import logging
import time
from typing import Optional

from django.conf import settings

logger = logging.getLogger("farmland.requests")


def get_client_ip(request) -> str:
    """
    Client address. X-Forwarded-For is only trusted when NINJA_NUM_PROXIES
    says how many proxies sit in front of the app; the hop that many entries
    from the right is the client.
    """
    remote_addr = request.META.get("REMOTE_ADDR", "")
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR")
    num_proxies = getattr(settings, "NINJA_NUM_PROXIES", None)
    if not num_proxies or not forwarded:
        return remote_addr
    hops = forwarded.split(",")
    return hops[-min(num_proxies, len(hops))].strip()


def valid_ip(value: str) -> Optional[str]:
    """Return ``value`` if it parses as an IPv4/IPv6 address, else None"""
    try:
        return str(ipaddress.ip_address(value.strip()))
    except (AttributeError, ValueError):
        return None


def request_metadata(request) -> dict:
    """Client details stored alongside leads, views and analytics events"""
    return {
        "ip_address": valid_ip(get_client_ip(request)),
        "user_agent": request.META.get("HTTP_USER_AGENT", "")[:500],
        "referrer": request.META.get("HTTP_REFERER", "")[:500],
    }


class RequestLoggingMiddleware:
    """Logs one line per request: method, path, status, duration, client ip"""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        started = time.monotonic()
        response = self.get_response(request)
        duration_ms = (time.monotonic() - started) * 1000

        level = logging.INFO
        if response.status_code >= 500:
            level = logging.ERROR
        elif response.status_code >= 400:
            level = logging.WARNING

        logger.log(
            level,
            "%s %s %s %.1fms ip=%s",
            request.method,
            request.get_full_path(),
            response.status_code,
            duration_ms,
            get_client_ip(request),
        )
        return response
