"""
Timeline events: releases, milestones and announcements attached to apps.
"""
import logging
import re
from typing import List, Tuple
from uuid import UUID

from django.core.exceptions import PermissionDenied

from apps.catalog.services import can_manage_app
from apps.core.exceptions import FieldError, ValidationFailed
from .dtos import TimelineEventIn, TimelineEventOut
from .models import EventType, TimelineEvent

logger = logging.getLogger(__name__)

URL_REGEX = re.compile(r'^https?://.+')


def validate_event_data(data: dict, partial: bool = False) -> None:
    """
    Raises:
        ValidationFailed: with one FieldError per problem found
    """
    errors = []

    if not partial or 'title' in data:
        title = (data.get('title') or '').strip()
        if not title:
            errors.append(FieldError('title', 'Title is required', 'REQUIRED_FIELD'))
        elif len(title) > 200:
            errors.append(FieldError('title', 'Title must be at most 200 characters', 'TITLE_TOO_LONG'))

    if data.get('type') is not None and data['type'] not in EventType.values:
        errors.append(FieldError(
            'type', f"Type must be one of: {', '.join(EventType.values)}", 'INVALID_EVENT_TYPE'
        ))

    if data.get('url') and not URL_REGEX.match(data['url']):
        errors.append(FieldError('url', 'URL must start with http:// or https://', 'INVALID_URL'))

    if errors:
        raise ValidationFailed(errors)


def get_event(event_id: UUID) -> TimelineEventOut | None:
    event = TimelineEvent.objects.filter(id=event_id).first()
    return TimelineEventOut.from_orm(event) if event else None


def create_event(user, payload: TimelineEventIn) -> TimelineEventOut | None:
    """
    Returns None if the app does not exist.

    Raises:
        PermissionDenied: caller cannot manage the app
    """
    allowed = can_manage_app(payload.app_id, user)
    if allowed is None:
        return None
    if not allowed:
        raise PermissionDenied("You can only add events to your own apps")

    data = payload.dict()
    validate_event_data(data)
    event = TimelineEvent.objects.create(created_by_id=user.id, **data)
    logger.info(f"Created {event.type} event {event.id} for app {event.app_id}")
    return TimelineEventOut.from_orm(event)


def list_public_events(limit: int = 20, offset: int = 0) -> Tuple[List[TimelineEventOut], int]:
    """Returns (page of public events, total public count), newest first."""
    events = TimelineEvent.objects.filter(is_public=True)
    total = events.count()
    page = events.order_by('-date')[offset:offset + limit]
    return [TimelineEventOut.from_orm(e) for e in page], total


def list_app_events(app_id: UUID, include_private: bool = False) -> List[TimelineEventOut]:
    events = TimelineEvent.objects.filter(app_id=app_id)
    if not include_private:
        events = events.filter(is_public=True)
    return [TimelineEventOut.from_orm(e) for e in events.order_by('-date')]


def _ensure_can_edit(event: TimelineEvent, user, action: str):
    if event.created_by_id == user.id:
        return
    if not can_manage_app(event.app_id, user):
        raise PermissionDenied(f"You can only {action} events of your own apps")


def update_event(event_id: UUID, user, data: dict) -> TimelineEventOut | None:
    """
    Raises:
        PermissionDenied: caller neither created the event nor manages the app
    """
    event = TimelineEvent.objects.filter(id=event_id).first()
    if not event:
        return None
    _ensure_can_edit(event, user, "update")

    # An explicit null only clears nullable columns
    data = {
        key: value for key, value in data.items()
        if value is not None or TimelineEvent._meta.get_field(key).null
    }
    validate_event_data(data, partial=True)
    for key, value in data.items():
        setattr(event, key, value)
    event.save()
    return TimelineEventOut.from_orm(event)


def delete_event(event_id: UUID, user) -> bool:
    """
    Raises:
        PermissionDenied: caller neither created the event nor manages the app
    """
    event = TimelineEvent.objects.filter(id=event_id).first()
    if not event:
        return False
    _ensure_can_edit(event, user, "delete")
    event.delete()
    logger.info(f"Deleted timeline event {event_id} by {user.id}")
    return True
