"""
Field validation for user payloads.

Every check appends to a list of FieldError so that a form can show all
problems at once. Uniqueness checks exclude the user being updated.
"""
import re
from typing import List, Optional
from urllib.parse import urlparse
from uuid import UUID

from apps.core.exceptions import FieldError, ValidationFailed
from .models import User, UserRole

EMAIL_REGEX = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
USERNAME_REGEX = re.compile(r'^[a-zA-Z0-9_]+$')


def validate_user_data(data: dict, exclude_user_id: Optional[UUID] = None) -> None:
    """
    Validate the user fields present in ``data``.

    Raises:
        ValidationFailed: with one FieldError per problem found
    """
    errors: List[FieldError] = []

    if data.get('email') is not None:
        errors += _validate_email(data['email'], exclude_user_id)
    if data.get('username') is not None:
        errors += _validate_username(data['username'], exclude_user_id)
    if data.get('name') is not None:
        errors += _validate_name(data['name'])
    if data.get('role') is not None:
        errors += _validate_role(data['role'])
    if data.get('avatar'):
        errors += _validate_avatar(data['avatar'])

    if errors:
        raise ValidationFailed(errors)


def _others(exclude_user_id: Optional[UUID]):
    qs = User.objects.all()
    if exclude_user_id:
        qs = qs.exclude(id=exclude_user_id)
    return qs


def _validate_email(email: str, exclude_user_id: Optional[UUID]) -> List[FieldError]:
    errors = []

    if not EMAIL_REGEX.match(email):
        if '@' not in email:
            message = 'Email must contain @ symbol'
        elif email.count('@') > 1:
            message = 'Email can only contain one @ symbol'
        elif '.' not in email.split('@')[1]:
            message = 'Domain must contain a valid extension (e.g., .com, .org)'
        else:
            message = 'Please enter a valid email address'
        errors.append(FieldError('email', message, 'INVALID_EMAIL_FORMAT'))

    if len(email) > 255:
        errors.append(FieldError('email', 'Email must be less than 255 characters', 'EMAIL_TOO_LONG'))

    if not errors and _others(exclude_user_id).filter(email__iexact=email).exists():
        errors.append(FieldError('email', f"Email '{email}' already exists", 'DUPLICATE_EMAIL'))

    return errors


def _validate_username(username: str, exclude_user_id: Optional[UUID]) -> List[FieldError]:
    errors = []

    if len(username) < 3:
        errors.append(FieldError(
            'username', 'Username must be at least 3 characters long', 'USERNAME_TOO_SHORT'
        ))
    if len(username) > 50:
        errors.append(FieldError(
            'username', 'Username must be less than 50 characters', 'USERNAME_TOO_LONG'
        ))
    if not USERNAME_REGEX.match(username):
        errors.append(FieldError(
            'username',
            'Username can only contain letters, numbers, and underscores',
            'INVALID_USERNAME_FORMAT',
        ))

    if not errors and _others(exclude_user_id).filter(username__iexact=username).exists():
        errors.append(FieldError(
            'username', f"Username '{username}' already exists", 'DUPLICATE_USERNAME'
        ))

    return errors


def _validate_name(name: str) -> List[FieldError]:
    if len(name) < 2:
        return [FieldError('name', 'Name must be at least 2 characters long', 'NAME_TOO_SHORT')]
    if len(name) > 100:
        return [FieldError('name', 'Name must be less than 100 characters', 'NAME_TOO_LONG')]
    return []


def _validate_role(role: str) -> List[FieldError]:
    if role not in UserRole.values:
        return [FieldError(
            'role',
            f"Invalid role. Must be one of: {', '.join(UserRole.values)}",
            'INVALID_ROLE',
        )]
    return []


def _validate_avatar(avatar: str) -> List[FieldError]:
    errors = []
    parsed = urlparse(avatar)
    if parsed.scheme not in ('http', 'https') or not parsed.netloc:
        errors.append(FieldError('avatar', 'Avatar must be a valid URL', 'INVALID_AVATAR_URL'))
    if len(avatar) > 500:
        errors.append(FieldError(
            'avatar', 'Avatar URL must be less than 500 characters', 'AVATAR_URL_TOO_LONG'
        ))
    return errors
