"""Field validation for app payloads."""
import re
from typing import List, Optional
from uuid import UUID

from apps.core.exceptions import FieldError, ValidationFailed
from .models import App, AppStatus, AppVisibility, Platform

SLUG_REGEX = re.compile(r'^[a-z0-9-_]+$')
URL_REGEX = re.compile(r'^https?://.+')
URL_FIELDS = ('website', 'repository', 'demo_url', 'download_url', 'app_store_url', 'play_store_url')


def allowed_platforms() -> List[str]:
    """Platform values from the APP_PLATFORM enum, or the built-in defaults."""
    from apps.enums.services import get_option_values
    return get_option_values('APP_PLATFORM') or list(Platform.values)


def validate_app_data(data: dict, exclude_app_id: Optional[UUID] = None, partial: bool = False) -> None:
    """
    Raises:
        ValidationFailed: with one FieldError per problem found
    """
    errors: List[FieldError] = []

    if not partial or 'title' in data:
        title = (data.get('title') or '').strip()
        if not title:
            errors.append(FieldError('title', 'Title is required', 'REQUIRED_FIELD'))
        elif len(title) > 200:
            errors.append(FieldError('title', 'Title must be less than 200 characters', 'TITLE_TOO_LONG'))

    if not partial or 'short_desc' in data:
        short_desc = (data.get('short_desc') or '').strip()
        if not short_desc:
            errors.append(FieldError('short_desc', 'Short description is required', 'REQUIRED_FIELD'))
        elif len(short_desc) > 300:
            errors.append(FieldError(
                'short_desc', 'Short description must be less than 300 characters', 'SHORT_DESC_TOO_LONG'
            ))

    if data.get('slug') is not None:
        errors += _validate_slug(data['slug'], exclude_app_id)

    if data.get('status') is not None and data['status'] not in AppStatus.values:
        errors.append(FieldError(
            'status', f"Invalid status. Must be one of: {', '.join(AppStatus.values)}", 'INVALID_STATUS'
        ))
    if data.get('visibility') is not None and data['visibility'] not in AppVisibility.values:
        errors.append(FieldError(
            'visibility',
            f"Invalid visibility. Must be one of: {', '.join(AppVisibility.values)}",
            'INVALID_VISIBILITY',
        ))

    if data.get('platforms'):
        allowed = allowed_platforms()
        unknown = [p for p in data['platforms'] if p not in allowed]
        if unknown:
            errors.append(FieldError(
                'platforms', f"Unknown platforms: {', '.join(unknown)}", 'INVALID_PLATFORM'
            ))

    for field in URL_FIELDS:
        value = data.get(field)
        if value and not URL_REGEX.match(value):
            errors.append(FieldError(field, 'Please enter a valid URL (e.g., https://example.com)', 'INVALID_URL'))

    if errors:
        raise ValidationFailed(errors)


def _validate_slug(slug: str, exclude_app_id: Optional[UUID]) -> List[FieldError]:
    slug = slug.lower()
    if not SLUG_REGEX.match(slug):
        return [FieldError(
            'slug',
            'Slug can only contain lowercase letters, numbers, hyphens, and underscores',
            'INVALID_SLUG_FORMAT',
        )]
    if len(slug) > 100:
        return [FieldError('slug', 'Slug must be less than 100 characters', 'SLUG_TOO_LONG')]

    others = App.objects.all()
    if exclude_app_id:
        others = others.exclude(id=exclude_app_id)
    if others.filter(slug=slug).exists():
        return [FieldError('slug', f"Slug '{slug}' already exists", 'DUPLICATE_SLUG')]
    return []
