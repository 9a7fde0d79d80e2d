"""
Exception handlers: the single place where errors become HTTP responses.
"""
import logging
import math

from django.conf import settings
from django.http import Http404
from ninja import NinjaAPI
from ninja.errors import AuthenticationError as NinjaAuthenticationError
from ninja.errors import HttpError, Throttled
from ninja.errors import ValidationError as NinjaValidationError

from core.exceptions import AppError, RateLimitError
from core.middleware import get_client_ip

logger = logging.getLogger(__name__)

# Parameter names used for request bodies / query schemas in the routers
SCHEMA_PARAM_NAMES = {"data", "filters"}

HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "AUTH_ERROR",
    403: "AUTHORIZATION_ERROR",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


def _field_name(loc) -> str:
    parts = [str(part) for part in loc]
    if parts and parts[0] in ("body", "query", "path", "header", "form"):
        parts = parts[1:]
    if parts and parts[0] in SCHEMA_PARAM_NAMES:
        parts = parts[1:]
    return ".".join(parts)


def validation_details(errors) -> list:
    """Convert pydantic/ninja error dicts into [{field, message, code}]"""
    details = []
    for error in errors:
        details.append({
            "field": _field_name(error.get("loc", ())),
            "message": error.get("msg", "Invalid value"),
            "code": error.get("type", "invalid"),
        })
    return details


def register_exception_handlers(api: NinjaAPI) -> None:

    @api.exception_handler(AppError)
    def handle_app_error(request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{exc.code} on {request.method} {request.path}: {exc.message}")
        response = api.create_response(request, exc.to_dict(), status=exc.status_code)
        if isinstance(exc, RateLimitError) and exc.retry_after is not None:
            response["Retry-After"] = str(exc.retry_after)
        return response

    @api.exception_handler(NinjaValidationError)
    def handle_validation_error(request, exc: NinjaValidationError):
        body = {
            "error": "Validation failed",
            "code": "VALIDATION_ERROR",
            "details": validation_details(exc.errors),
        }
        return api.create_response(request, body, status=400)

    @api.exception_handler(NinjaAuthenticationError)
    def handle_missing_credentials(request, exc):
        body = {"error": "Authorization token required", "code": "AUTH_TOKEN_MISSING"}
        return api.create_response(request, body, status=401)

    @api.exception_handler(Throttled)
    def handle_throttled(request, exc: Throttled):
        retry_after = math.ceil(exc.wait) if exc.wait is not None else None
        logger.warning(f"Rate limit exceeded: ip={get_client_ip(request)} path={request.path}")
        return handle_app_error(request, RateLimitError(retry_after=retry_after))

    @api.exception_handler(HttpError)
    def handle_http_error(request, exc: HttpError):
        code = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
        body = {"error": str(exc), "code": code}
        return api.create_response(request, body, status=exc.status_code)

    @api.exception_handler(Http404)
    def handle_not_found(request, exc):
        body = {"error": "Resource not found", "code": "NOT_FOUND"}
        return api.create_response(request, body, status=404)

    @api.exception_handler(Exception)
    def handle_unexpected(request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.path}: {exc}", exc_info=True)
        body = {"error": "Internal server error", "code": "INTERNAL_ERROR"}
        if settings.DEBUG:
            body["details"] = [{"field": "", "message": str(exc), "code": type(exc).__name__}]
        return api.create_response(request, body, status=500)
