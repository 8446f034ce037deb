"""Field validation for organization payloads."""
import re
from typing import List, Optional
from uuid import UUID

from apps.core.exceptions import FieldError, ValidationFailed
from .models import Organization

SLUG_REGEX = re.compile(r'^[a-z0-9-_]+$')
WEBSITE_REGEX = re.compile(r'^https?://.+\..+')
LOGO_REGEX = re.compile(r'^https?://.+')
IMAGE_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.gif', '.svg', '.webp')


def validate_organization_data(
    data: dict,
    exclude_org_id: Optional[UUID] = None,
    partial: bool = False,
) -> None:
    """
    Validate organization fields.

    With ``partial`` set (updates), only the keys present in ``data`` are
    checked; otherwise name and slug are required.

    Raises:
        ValidationFailed: with one FieldError per problem found
    """
    errors: List[FieldError] = []

    if not partial or 'name' in data:
        errors += _validate_name(data.get('name'), exclude_org_id)
    if not partial or 'slug' in data:
        errors += _validate_slug(data.get('slug'), exclude_org_id)
    if data.get('description') and len(data['description']) > 500:
        errors.append(FieldError(
            'description', 'Description must be less than 500 characters', 'DESCRIPTION_TOO_LONG'
        ))
    if data.get('website'):
        errors += _validate_website(data['website'])
    if data.get('logo'):
        errors += _validate_logo(data['logo'])

    if errors:
        raise ValidationFailed(errors)


def _others(exclude_org_id: Optional[UUID]):
    qs = Organization.objects.all()
    if exclude_org_id:
        qs = qs.exclude(id=exclude_org_id)
    return qs


def _validate_name(name: Optional[str], exclude_org_id) -> List[FieldError]:
    if not name or not name.strip():
        return [FieldError('name', 'Organization name is required', 'REQUIRED_FIELD')]

    errors = []
    if len(name) < 2:
        errors.append(FieldError(
            'name', 'Organization name must be at least 2 characters long', 'NAME_TOO_SHORT'
        ))
    if len(name) > 100:
        errors.append(FieldError(
            'name', 'Organization name must be less than 100 characters', 'NAME_TOO_LONG'
        ))
    if not errors and _others(exclude_org_id).filter(name__iexact=name).exists():
        errors.append(FieldError(
            'name', f"Organization name '{name}' already exists", 'DUPLICATE_NAME'
        ))
    return errors


def _validate_slug(slug: Optional[str], exclude_org_id) -> List[FieldError]:
    if not slug or not slug.strip():
        return [FieldError('slug', 'Organization slug is required', 'REQUIRED_FIELD')]

    errors = []
    if not SLUG_REGEX.match(slug):
        errors.append(FieldError(
            'slug',
            'Slug can only contain lowercase letters, numbers, hyphens, and underscores',
            'INVALID_SLUG_FORMAT',
        ))
    if len(slug) < 2:
        errors.append(FieldError('slug', 'Slug must be at least 2 characters long', 'SLUG_TOO_SHORT'))
    if len(slug) > 50:
        errors.append(FieldError('slug', 'Slug must be less than 50 characters', 'SLUG_TOO_LONG'))
    if not errors and _others(exclude_org_id).filter(slug=slug).exists():
        errors.append(FieldError('slug', f"Slug '{slug}' already exists", 'DUPLICATE_SLUG'))
    return errors


def _validate_website(website: str) -> List[FieldError]:
    errors = []
    if not WEBSITE_REGEX.match(website):
        errors.append(FieldError(
            'website',
            'Please enter a valid website URL (e.g., https://example.com)',
            'INVALID_WEBSITE_FORMAT',
        ))
    if len(website) > 255:
        errors.append(FieldError(
            'website', 'Website URL must be less than 255 characters', 'WEBSITE_TOO_LONG'
        ))
    return errors


def _validate_logo(logo: str) -> List[FieldError]:
    errors = []
    if not LOGO_REGEX.match(logo):
        errors.append(FieldError(
            'logo',
            'Please enter a valid logo URL (e.g., https://example.com/logo.png)',
            'INVALID_LOGO_FORMAT',
        ))
    if len(logo) > 255:
        errors.append(FieldError('logo', 'Logo URL must be less than 255 characters', 'LOGO_TOO_LONG'))
    if not any(ext in logo.lower() for ext in IMAGE_EXTENSIONS):
        errors.append(FieldError(
            'logo',
            'Logo URL should point to an image file (.jpg, .png, .gif, .svg, .webp)',
            'INVALID_IMAGE_FORMAT',
        ))
    return errors
