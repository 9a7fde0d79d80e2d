import logging

from ninja import Router

from analytics.models import AnalyticsEvent
from authentication.jwt_auth import generate_token, jwt_auth
from authentication.schemas import (
    LoginSchema,
    ProfileUpdateSchema,
    RegisterSchema,
    TokenResponse,
    UserDetailResponseSchema,
)
from core.exceptions import AuthenticationError
from core.middleware import request_metadata
from core.schemas import ErrorResponseSchema
from core.throttling import auth_throttle, global_throttle, profile_throttle, strict_throttle
from services.storage import get_storage

logger = logging.getLogger(__name__)

router = Router()


@router.post(
    "/register",
    response={201: TokenResponse, 400: ErrorResponseSchema, 409: ErrorResponseSchema},
    throttle=[global_throttle, strict_throttle],
)
def register(request, data: RegisterSchema):
    """Register a new customer account"""
    storage = get_storage()
    user = storage.create_user(data)
    storage.record_event(
        AnalyticsEvent.EVENT_USER_REGISTERED,
        user=user,
        ip_address=request_metadata(request)["ip_address"],
    )
    return 201, {
        "data": {"user": user, "token": generate_token(user)},
        "message": "Registration successful",
    }


@router.post(
    "/login",
    response={200: TokenResponse, 401: ErrorResponseSchema},
    throttle=[global_throttle, auth_throttle],
)
def login(request, data: LoginSchema):
    """Login and get JWT token"""
    user = get_storage().authenticate_user(data.email, data.password)
    if user is None:
        raise AuthenticationError("Invalid email or password", code="INVALID_CREDENTIALS")
    logger.info(f"User logged in: {user.id}")
    return {
        "data": {"user": user, "token": generate_token(user)},
        "message": "Login successful",
    }


@router.get("/me", response=UserDetailResponseSchema, auth=jwt_auth)
def me(request):
    return {"data": request.auth}


@router.put(
    "/me",
    response={200: UserDetailResponseSchema, 400: ErrorResponseSchema},
    auth=jwt_auth,
    throttle=[global_throttle, profile_throttle],
)
def update_me(request, data: ProfileUpdateSchema):
    user = get_storage().update_user(request.auth, data)
    return {"data": user, "message": "Profile updated successfully"}
