"""
Identity API endpoints with JWT authentication.

Provides register, login, logout, token refresh, password change and
admin user management endpoints. Tokens are returned in the response body
and also set as httpOnly cookies.
"""
from typing import Optional
from uuid import UUID
from ninja import Query, Router, Schema
from django.conf import settings
from django.http import HttpRequest, HttpResponse
from ninja.errors import HttpError

from .models import User
from .dtos import UserDTO, UserCreate, UserUpdate, RegisterIn, ChangePasswordIn, UserPage
from .services import (
    AuthenticationFailed,
    authenticate_user,
    change_password,
    create_user,
    delete_user,
    get_user_dto,
    list_users,
    register_user,
    update_user,
)
from .permissions import Permissions
from .decorators import has_permission, require_auth
from .jwt_auth import (
    ACCESS_TOKEN_COOKIE,
    REFRESH_TOKEN_COOKIE,
    create_token_pair,
    create_access_token,
    get_user_id_from_token,
    ACCESS,
    REFRESH,
    token_cookie_settings,
)

router = Router(tags=["Identity"])


# =============================================================================
# Schemas
# =============================================================================

class LoginSchema(Schema):
    username: str  # username or email
    password: str


class TokenResponse(Schema):
    success: bool
    access_token: Optional[str] = None
    user: Optional[UserDTO] = None
    message: Optional[str] = None


class MessageResponse(Schema):
    success: bool
    message: str


# =============================================================================
# Helper Functions
# =============================================================================

def is_production() -> bool:
    return not settings.DEBUG


def _token_response(user: User, status: int = 200) -> HttpResponse:
    """Build a JSON response carrying fresh tokens, and set them as cookies."""
    access_token, refresh_token = create_token_pair(user.id, user.username, user.role)

    body = TokenResponse(success=True, access_token=access_token, user=get_user_dto(user.id))
    response = HttpResponse(body.model_dump_json(), content_type='application/json', status=status)

    prod = is_production()
    response.set_cookie(ACCESS_TOKEN_COOKIE, access_token, **token_cookie_settings(ACCESS, prod))
    response.set_cookie(REFRESH_TOKEN_COOKIE, refresh_token, **token_cookie_settings(REFRESH, prod))
    return response


# =============================================================================
# Auth Endpoints
# =============================================================================

@router.post("/register", response={201: TokenResponse}, auth=None)
def register(request: HttpRequest, payload: RegisterIn):
    """
    Create an account and log it in.

    Field problems are reported together as a 400 with ``field_errors``.
    """
    user = register_user(payload)
    return _token_response(user, status=201)


@router.post("/login", response=TokenResponse, auth=None)
def login_user(request: HttpRequest, payload: LoginSchema):
    """
    Authenticate by username or email and set JWT tokens in httpOnly cookies.
    """
    try:
        user = authenticate_user(payload.username, payload.password)
    except AuthenticationFailed as e:
        raise HttpError(401, str(e))

    return _token_response(user)


@router.post("/logout", response=TokenResponse, auth=None)
def logout_user(request: HttpRequest):
    """
    Clear authentication cookies.
    """
    response = HttpResponse(
        TokenResponse(success=True, message="Logged out").model_dump_json(),
        content_type='application/json'
    )
    response.delete_cookie(ACCESS_TOKEN_COOKIE, path='/')
    response.delete_cookie(REFRESH_TOKEN_COOKIE, path='/')
    return response


@router.post("/refresh", response=TokenResponse, auth=None)
def refresh_token(request: HttpRequest):
    """
    Issue a new access token from the refresh token cookie.
    """
    refresh_token_value = request.COOKIES.get(REFRESH_TOKEN_COOKIE)
    if not refresh_token_value:
        raise HttpError(401, "No refresh token")

    user_id = get_user_id_from_token(refresh_token_value, token_type=REFRESH)
    user = User.objects.filter(id=user_id, is_active=True).first() if user_id else None
    if not user:
        raise HttpError(401, "Invalid refresh token")

    new_access_token = create_access_token(user.id, user.username, user.role)
    response = HttpResponse(
        TokenResponse(
            success=True, access_token=new_access_token, user=get_user_dto(user.id)
        ).model_dump_json(),
        content_type='application/json'
    )
    response.set_cookie(
        ACCESS_TOKEN_COOKIE, new_access_token, **token_cookie_settings(ACCESS, is_production())
    )
    return response


@router.get("/me", response=UserDTO, auth=None)
def get_me(request: HttpRequest):
    user = require_auth(request)
    user_dto = get_user_dto(user.id)
    if not user_dto:
        raise HttpError(404, "User not found")
    return user_dto


@router.post("/change-password", response=MessageResponse, auth=None)
def change_own_password(request: HttpRequest, payload: ChangePasswordIn):
    """
    Change the caller's password. A wrong current password is a 409.
    """
    user = require_auth(request)
    try:
        changed = change_password(user.id, payload.current_password, payload.new_password)
    except ValueError as e:
        raise HttpError(409, str(e))
    if not changed:
        raise HttpError(404, "User not found")
    return MessageResponse(success=True, message="Password updated")


# =============================================================================
# User Management Endpoints (admin only)
# =============================================================================

@router.get("/users", response=UserPage, auth=None)
@has_permission(Permissions.IDENTITY_VIEW_USER)
def list_all_users(
    request: HttpRequest,
    search: Optional[str] = None,
    role: Optional[str] = None,
    is_active: Optional[bool] = None,
    org_id: Optional[UUID] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    items, total = list_users(
        search=search, role=role, is_active=is_active, org_id=org_id,
        limit=limit, offset=offset,
    )
    return UserPage(items=items, total_count=total, limit=limit, offset=offset)


@router.get("/users/{user_id}", response=UserDTO, auth=None)
@has_permission(Permissions.IDENTITY_VIEW_USER)
def get_user(request: HttpRequest, user_id: UUID):
    user_dto = get_user_dto(user_id)
    if not user_dto:
        raise HttpError(404, "User not found")
    return user_dto


@router.post("/users", response={201: UserDTO}, auth=None)
@has_permission(Permissions.IDENTITY_MANAGE_USER)
def create_new_user(request: HttpRequest, payload: UserCreate):
    return 201, create_user(payload)


@router.put("/users/{user_id}", response=UserDTO, auth=None)
@has_permission(Permissions.IDENTITY_MANAGE_USER)
def update_existing_user(request: HttpRequest, user_id: UUID, payload: UserUpdate):
    updated = update_user(user_id, payload.dict(exclude_unset=True))
    if not updated:
        raise HttpError(404, "User not found")
    return updated


@router.delete("/users/{user_id}", response={204: None}, auth=None)
@has_permission(Permissions.IDENTITY_MANAGE_USER)
def delete_existing_user(request: HttpRequest, user_id: UUID):
    if user_id == request.user.id:
        raise HttpError(400, "You cannot delete your own account")
    if not delete_user(user_id):
        raise HttpError(404, "User not found")
    return 204, None
