import logging
import jwt
from datetime import datetime, timedelta, timezone
from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from ninja.security import HttpBearer
from django.http import HttpRequest
from typing import Optional

from authentication.models import User
from core.exceptions import AuthenticationError, AuthorizationError
from core.middleware import get_client_ip

logger = logging.getLogger(__name__)

REQUIRED_CLAIMS = ["sub", "email", "role", "exp", "iat", "iss", "aud"]


def generate_token(user: User) -> str:
    """Create a signed, time-limited access token for ``user``"""
    now = datetime.now(timezone.utc)
    payload = {
        'sub': str(user.id),
        'email': user.email,
        'role': user.role,
        'iat': now,
        'exp': now + timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES),
        'iss': settings.JWT_ISSUER,
        'aud': settings.JWT_AUDIENCE,
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str) -> Optional[dict]:
    """Return the token's claims, or None for any signature/expiry/claim failure"""
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            issuer=settings.JWT_ISSUER,
            audience=settings.JWT_AUDIENCE,
            options={'require': REQUIRED_CLAIMS},
        )
    except jwt.ExpiredSignatureError:
        logger.debug("Rejected expired token")
        return None
    except jwt.InvalidTokenError as e:
        logger.debug(f"Rejected invalid token: {e}")
        return None


class JWTAuth(HttpBearer):
    """JWT Authentication for Django Ninja"""

    def authenticate(self, request: HttpRequest, token: str) -> Optional[User]:
        """Verify JWT token and return the active user it names"""
        claims = verify_token(token)
        if claims is None:
            raise AuthenticationError("Invalid or expired token", code="AUTH_TOKEN_INVALID")
        try:
            user = User.objects.get(id=claims['sub'], is_active=True)
        except (User.DoesNotExist, DjangoValidationError, ValueError):
            raise AuthenticationError("Invalid or expired token", code="AUTH_TOKEN_INVALID")
        return user


class AdminAuth(JWTAuth):
    """JWT authentication restricted to admin accounts"""

    def authenticate(self, request: HttpRequest, token: str) -> Optional[User]:
        user = super().authenticate(request, token)
        if not user.is_admin:
            logger.warning(
                f"Unauthorized admin access attempt: user={user.id} email={user.email} "
                f"ip={get_client_ip(request)} endpoint={request.method} {request.path}"
            )
            raise AuthorizationError("Admin access required", code="AUTH_INSUFFICIENT_PERMISSIONS")
        return user


# Global instances
jwt_auth = JWTAuth()
admin_auth = AdminAuth()
