from typing import List, Dict
from .models import UserRole, User

# Define all available permissions here for reference
class Permissions:
    # Catalog
    CATALOG_CREATE_APP = "catalog.create_app"
    CATALOG_VIEW_DASHBOARD = "catalog.view_dashboard"

    # Media
    MEDIA_UPLOAD = "media.upload"

    # Timeline
    TIMELINE_CREATE_EVENT = "timeline.create_event"

    # Identity
    IDENTITY_VIEW_USER = "identity.view_user"
    IDENTITY_MANAGE_USER = "identity.manage_user"

    # Organizations
    ORGANIZATION_MANAGE = "organization.manage"

    # Enums
    ENUM_MANAGE = "enums.manage"


# Static Role -> Permission Mapping
ROLE_PERMISSIONS: Dict[str, List[str]] = {
    UserRole.ADMIN: [
        # Catalog - Full access
        Permissions.CATALOG_CREATE_APP,
        Permissions.CATALOG_VIEW_DASHBOARD,
        # Media
        Permissions.MEDIA_UPLOAD,
        # Timeline
        Permissions.TIMELINE_CREATE_EVENT,
        # Identity
        Permissions.IDENTITY_VIEW_USER,
        Permissions.IDENTITY_MANAGE_USER,
        # Organizations
        Permissions.ORGANIZATION_MANAGE,
        # Enums
        Permissions.ENUM_MANAGE,
    ],
    UserRole.DEVELOPER: [
        # Catalog - Own apps only, enforced at the service level
        Permissions.CATALOG_CREATE_APP,
        # Media
        Permissions.MEDIA_UPLOAD,
        # Timeline
        Permissions.TIMELINE_CREATE_EVENT,
    ],
    UserRole.VIEWER: [
        # Public catalog reads need no permission
    ],
}


def get_user_permissions(user: User) -> List[str]:
    """
    Returns a list of permission strings for the given user based on their role.
    """
    if not user or not user.is_active:
        return []

    if user.is_superuser:
        return ROLE_PERMISSIONS[UserRole.ADMIN]

    return ROLE_PERMISSIONS.get(user.role, [])


def is_admin(user: User) -> bool:
    """Superusers and users with the admin role manage everything."""
    return bool(user and user.is_authenticated and (user.is_superuser or user.role == UserRole.ADMIN))
