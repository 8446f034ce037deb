from functools import wraps
from typing import Callable
from ninja.errors import HttpError
from django.http import HttpRequest
from .permissions import get_user_permissions


def require_auth(request: HttpRequest):
    """Return the authenticated caller (session or JWT), else 401."""
    if not request.user.is_authenticated:
        raise HttpError(401, "Authentication required")
    return request.user


def require_permission(request: HttpRequest, permission: str):
    """Return the caller if their role grants ``permission``, else 401/403."""
    user = require_auth(request)
    if permission not in get_user_permissions(user):
        raise HttpError(403, "Permission denied")
    return user


def has_permission(required_perm: str):
    """
    Endpoint decorator form of ``require_permission``:

        @router.delete("/{key}", auth=None)
        @has_permission(Permissions.ENUM_MANAGE)
        def delete_enum(request, key: str):
            ...
    """
    def decorator(view_func: Callable):
        @wraps(view_func)
        def wrapper(request: HttpRequest, *args, **kwargs):
            require_permission(request, required_perm)
            return view_func(request, *args, **kwargs)
        return wrapper
    return decorator
