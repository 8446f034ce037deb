"""
API Router for Catalog app.

Public reads honour app visibility; writes are limited to admins and the
app's creator.
"""
from typing import List
from uuid import UUID
from ninja import Router, Query
from ninja.errors import HttpError
from django.core.exceptions import PermissionDenied
from django.http import HttpRequest

from apps.identity.decorators import has_permission, require_auth
from apps.identity.permissions import Permissions
from .dtos import (
    AppFilters, AppIn, AppOut, AppPage, AppUpdate, AppVersionIn, AppVersionOut,
    DashboardStats, FlagResult, ToggleResult,
)
from . import services

router = Router(tags=["Apps"])


def _get_readable_app(request: HttpRequest, app_id: UUID) -> AppOut:
    app = services.get_app_dto(app_id, request.user)
    if not app:
        raise HttpError(404, "App not found")
    return app


# =============================================================================
# Collection Endpoints
# =============================================================================

@router.get("", response=List[AppOut], auth=None)
def list_apps(
    request: HttpRequest,
    filters: AppFilters = Query(...),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    items, _ = services.list_apps(filters, request.user, limit=limit, offset=offset)
    return items


@router.get("/paginated", response=AppPage, auth=None)
def list_apps_paginated(
    request: HttpRequest,
    filters: AppFilters = Query(...),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    items, total = services.list_apps(filters, request.user, limit=limit, offset=offset)
    return AppPage(items=items, total_count=total, limit=limit, offset=offset)


@router.get("/tags", response=List[str], auth=None)
def list_tags(request: HttpRequest):
    return services.get_all_tags()


@router.get("/timeline", response=List[AppOut], auth=None)
def timeline_apps(
    request: HttpRequest,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    return services.get_timeline_apps(limit=limit, offset=offset)


@router.get("/dashboard", response=DashboardStats, auth=None)
@has_permission(Permissions.CATALOG_VIEW_DASHBOARD)
def dashboard_stats(request: HttpRequest):
    return services.get_dashboard_stats()


@router.get("/liked", response=List[UUID], auth=None)
def my_liked_apps(request: HttpRequest):
    user = require_auth(request)
    return services.get_user_liked_app_ids(user.id)


@router.get("/viewed", response=List[UUID], auth=None)
def my_viewed_apps(request: HttpRequest):
    user = require_auth(request)
    return services.get_user_viewed_app_ids(user.id)


@router.get("/slug/{slug}", response=AppOut, auth=None)
def get_app_by_slug(request: HttpRequest, slug: str):
    app = services.get_app_by_slug(slug, request.user)
    if not app:
        raise HttpError(404, "App not found")
    return app


@router.post("", response={201: AppOut}, auth=None)
@has_permission(Permissions.CATALOG_CREATE_APP)
def create_app(request: HttpRequest, payload: AppIn):
    """
    Create an app owned by the caller. Publishing queues notifications.
    """
    return 201, services.create_app(request.user, payload)


# =============================================================================
# Single App Endpoints
# =============================================================================

@router.get("/{app_id}", response=AppOut, auth=None)
def get_app(request: HttpRequest, app_id: UUID):
    return _get_readable_app(request, app_id)


@router.put("/{app_id}", response=AppOut, auth=None)
def update_app(request: HttpRequest, app_id: UUID, payload: AppUpdate):
    user = require_auth(request)
    try:
        app = services.update_app(app_id, user, payload.dict(exclude_unset=True))
    except PermissionDenied as e:
        raise HttpError(403, str(e))
    if not app:
        raise HttpError(404, "App not found")
    return app


@router.delete("/{app_id}", response={204: None}, auth=None)
def delete_app(request: HttpRequest, app_id: UUID):
    user = require_auth(request)
    try:
        deleted = services.delete_app(app_id, user)
    except PermissionDenied as e:
        raise HttpError(403, str(e))
    if not deleted:
        raise HttpError(404, "App not found")
    return 204, None


@router.post("/{app_id}/view", response=ToggleResult, auth=None)
def record_view(request: HttpRequest, app_id: UUID):
    """
    Count a view once per user. Anonymous views are not counted.
    """
    if not request.user.is_authenticated:
        return ToggleResult(changed=False)
    _get_readable_app(request, app_id)
    return ToggleResult(changed=services.increment_view(app_id, request.user.id))


@router.post("/{app_id}/like", response=ToggleResult, auth=None)
def record_like(request: HttpRequest, app_id: UUID):
    if not request.user.is_authenticated:
        return ToggleResult(changed=False)
    _get_readable_app(request, app_id)
    return ToggleResult(changed=services.increment_like(app_id, request.user.id))


@router.get("/{app_id}/liked", response=FlagResult, auth=None)
def has_liked(request: HttpRequest, app_id: UUID):
    user = require_auth(request)
    return FlagResult(value=services.has_user_liked(app_id, user.id))


@router.get("/{app_id}/viewed", response=FlagResult, auth=None)
def has_viewed(request: HttpRequest, app_id: UUID):
    user = require_auth(request)
    return FlagResult(value=services.has_user_viewed(app_id, user.id))


# =============================================================================
# Version Endpoints
# =============================================================================

@router.get("/{app_id}/versions", response=List[AppVersionOut], auth=None)
def list_versions(request: HttpRequest, app_id: UUID):
    _get_readable_app(request, app_id)
    return services.list_versions(app_id)


@router.post("/{app_id}/versions", response={201: AppVersionOut}, auth=None)
def create_version(request: HttpRequest, app_id: UUID, payload: AppVersionIn):
    user = require_auth(request)
    try:
        version = services.create_version(app_id, user, payload)
    except PermissionDenied as e:
        raise HttpError(403, str(e))
    if not version:
        raise HttpError(404, "App not found")
    return 201, version


@router.post("/{app_id}/versions/{version_id}/latest", response=AppVersionOut, auth=None)
def set_latest_version(request: HttpRequest, app_id: UUID, version_id: UUID):
    user = require_auth(request)
    try:
        version = services.set_latest_version(app_id, version_id, user)
    except PermissionDenied as e:
        raise HttpError(403, str(e))
    if not version:
        raise HttpError(404, "Version not found")
    return version


@router.delete("/{app_id}/versions/{version_id}", response={204: None}, auth=None)
def delete_version(request: HttpRequest, app_id: UUID, version_id: UUID):
    user = require_auth(request)
    try:
        deleted = services.delete_version(app_id, version_id, user)
    except PermissionDenied as e:
        raise HttpError(403, str(e))
    if not deleted:
        raise HttpError(404, "Version not found")
    return 204, None
