"""
Per-client rate limiting on top of django-ninja's throttling.

Ninja only understands single-unit windows ("5/m"); the limits here are
expressed as "<requests>/<count><unit>", e.g. "100/15m".
"""
import re
from typing import Optional, Tuple

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from ninja.throttling import SimpleRateThrottle

from core.middleware import get_client_ip

RATE_PATTERN = re.compile(r"^\s*(\d+)\s*/\s*(\d*)\s*([smhd])\w*\s*$")
UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_rate(rate: Optional[str]) -> Tuple[Optional[int], Optional[int]]:
    """Parse "100/15m" into (100, 900)"""
    if rate is None:
        return (None, None)
    match = RATE_PATTERN.match(rate)
    if not match:
        raise ImproperlyConfigured(f"Invalid rate limit: {rate!r}")
    num_requests, multiplier, unit = match.groups()
    return int(num_requests), int(multiplier or 1) * UNIT_SECONDS[unit]


class IPRateThrottle(SimpleRateThrottle):
    """Limits requests per client IP within a sliding window, one bucket per scope"""

    def __init__(self, rate: str, scope: str):
        self.scope = scope
        super().__init__(rate)

    def parse_rate(self, rate: Optional[str]) -> Tuple[Optional[int], Optional[int]]:
        return parse_rate(rate)

    def get_ident(self, request) -> str:
        return get_client_ip(request)

    def get_cache_key(self, request) -> Optional[str]:
        return self.cache_format % {"scope": self.scope, "ident": self.get_ident(request)}


class UserRateThrottle(IPRateThrottle):
    """Limits authenticated requests per user; anonymous requests fall back to IP"""

    def get_cache_key(self, request) -> Optional[str]:
        user = getattr(request, "auth", None)
        ident = getattr(user, "pk", None) or self.get_ident(request)
        return self.cache_format % {"scope": self.scope, "ident": ident}


global_throttle = IPRateThrottle(settings.RATE_LIMIT_GLOBAL, scope="global")
strict_throttle = IPRateThrottle(settings.RATE_LIMIT_STRICT, scope="strict")
auth_throttle = IPRateThrottle(settings.RATE_LIMIT_AUTH, scope="auth")
profile_throttle = UserRateThrottle(settings.RATE_LIMIT_PROFILE, scope="profile")
