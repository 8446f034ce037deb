from uuid import UUID
from typing import List
from ninja import Query, Router
from ninja.errors import HttpError
from django.core.exceptions import PermissionDenied
from django.http import HttpRequest

from apps.catalog.services import can_manage_app, get_app_dto
from apps.identity.decorators import has_permission, require_auth
from apps.identity.permissions import Permissions
from .dtos import TimelineEventIn, TimelineEventOut, TimelineEventPage, TimelineEventUpdate
from . import services

router = Router(tags=["Timeline"])


@router.get("", response=TimelineEventPage, auth=None)
def list_events(
    request: HttpRequest,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    """Public events across all apps, newest first."""
    items, total = services.list_public_events(limit=limit, offset=offset)
    return TimelineEventPage(items=items, total_count=total, limit=limit, offset=offset)


@router.post("", response={201: TimelineEventOut}, auth=None)
@has_permission(Permissions.TIMELINE_CREATE_EVENT)
def create_event(request: HttpRequest, payload: TimelineEventIn):
    try:
        event = services.create_event(request.user, payload)
    except PermissionDenied as e:
        raise HttpError(403, str(e))
    if not event:
        raise HttpError(404, "App not found")
    return 201, event


@router.get("/apps/{app_id}", response=List[TimelineEventOut], auth=None)
def list_app_events(request: HttpRequest, app_id: UUID, include_private: bool = False):
    """
    Events of one app. Private events are only included for callers who
    manage the app; others get the public ones.
    """
    if not get_app_dto(app_id, request.user):
        raise HttpError(404, "App not found")
    if include_private and not can_manage_app(app_id, request.user):
        include_private = False
    return services.list_app_events(app_id, include_private=include_private)


@router.get("/{event_id}", response=TimelineEventOut, auth=None)
def get_event(request: HttpRequest, event_id: UUID):
    event = services.get_event(event_id)
    if not event or (not event.is_public and not can_manage_app(event.app_id, request.user)):
        raise HttpError(404, "Timeline event not found")
    return event


@router.put("/{event_id}", response=TimelineEventOut, auth=None)
def update_event(request: HttpRequest, event_id: UUID, payload: TimelineEventUpdate):
    user = require_auth(request)
    try:
        event = services.update_event(event_id, user, payload.dict(exclude_unset=True))
    except PermissionDenied as e:
        raise HttpError(403, str(e))
    if not event:
        raise HttpError(404, "Timeline event not found")
    return event


@router.delete("/{event_id}", response={204: None}, auth=None)
def delete_event(request: HttpRequest, event_id: UUID):
    user = require_auth(request)
    try:
        deleted = services.delete_event(event_id, user)
    except PermissionDenied as e:
        raise HttpError(403, str(e))
    if not deleted:
        raise HttpError(404, "Timeline event not found")
    return 204, None
