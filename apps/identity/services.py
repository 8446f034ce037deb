"""Services for Identity app."""
import logging
from typing import Optional, Tuple, List
from uuid import UUID

from django.contrib.auth.hashers import check_password
from django.db import IntegrityError, transaction
from django.db.models import Count, Q
from django.utils import timezone

from apps.core.exceptions import ValidationFailed
from apps.core.task_service import TaskService, queue_after_commit
from .models import User, UserRole
from .dtos import UserDTO, UserCreate, RegisterIn
from .permissions import get_user_permissions
from .validation import validate_user_data

logger = logging.getLogger(__name__)


class AuthenticationFailed(Exception):
    """Raised when credentials are rejected."""


def _to_dto(user: User) -> UserDTO:
    return UserDTO(
        id=user.id,
        username=user.username,
        email=user.email,
        name=user.name,
        role=user.role,
        org_id=user.org_id,
        avatar=user.avatar,
        is_active=user.is_active,
        permissions=get_user_permissions(user),
        last_login_at=user.last_login,
        created_at=user.date_joined,
    )


def get_user_dto(user_id) -> UserDTO | None:
    try:
        return _to_dto(User.objects.get(id=user_id))
    except User.DoesNotExist:
        return None


def _create(username, email, password, name, role, org_id=None, avatar=None) -> User:
    validate_user_data({
        'username': username,
        'email': email,
        'name': name,
        'role': role,
        'avatar': avatar,
    })
    try:
        with transaction.atomic():
            return User.objects.create_user(
                username=username,
                email=email.lower(),
                password=password,
                name=name,
                role=role,
                org_id=org_id,
                avatar=avatar or "",
                is_active=True,
            )
    except IntegrityError:
        # Lost a race against a concurrent signup with the same email/username
        raise ValidationFailed.duplicate_field('email', email)


def register_user(payload: RegisterIn) -> User:
    """
    Self-service signup. Queues a welcome email for the new account.
    """
    user = _create(
        username=payload.username,
        email=payload.email,
        password=payload.password,
        name=payload.name,
        role=payload.role or UserRole.VIEWER,
    )
    logger.info(f"Registered user {user.username} ({user.id})")

    queue_after_commit(
        TaskService.send_email,
        to=user.email,
        subject="Welcome to Showcase Apps",
        template="welcome",
        context={"name": user.name or user.username, "username": user.username},
    )
    return user


def authenticate_user(identifier: str, password: str) -> User:
    """
    Check credentials given a username or an email.

    Raises:
        AuthenticationFailed: unknown user, wrong password or inactive account
    """
    user = User.objects.filter(
        Q(username__iexact=identifier) | Q(email__iexact=identifier)
    ).first()

    if user is None or not check_password(password, user.password):
        logger.info(f"Rejected login for {identifier}")
        raise AuthenticationFailed("Invalid credentials")

    if not user.is_active:
        raise AuthenticationFailed("Account is deactivated")

    user.last_login = timezone.now()
    user.save(update_fields=['last_login'])
    return user


def change_password(user_id: UUID, current_password: str, new_password: str) -> bool:
    """
    Returns False when the user does not exist.

    Raises:
        ValueError: if the current password is wrong
    """
    try:
        user = User.objects.get(id=user_id)
    except User.DoesNotExist:
        return False

    if not user.check_password(current_password):
        raise ValueError("Current password is incorrect")

    user.set_password(new_password)
    user.save(update_fields=['password', 'updated_at'])
    logger.info(f"Password changed for user {user_id}")
    return True


def create_user(payload: UserCreate) -> UserDTO:
    user = _create(
        username=payload.username,
        email=payload.email,
        password=payload.password,
        name=payload.name,
        role=payload.role,
        org_id=payload.org_id,
        avatar=payload.avatar,
    )
    return _to_dto(user)


def list_users(
    search: Optional[str] = None,
    role: Optional[str] = None,
    is_active: Optional[bool] = None,
    org_id: Optional[UUID] = None,
    limit: int = 20,
    offset: int = 0,
) -> Tuple[List[UserDTO], int]:
    """
    Returns (page of users, total matching count), newest first.
    """
    users = User.objects.all()
    if search:
        users = users.filter(
            Q(name__icontains=search)
            | Q(username__icontains=search)
            | Q(email__icontains=search)
        )
    if role:
        users = users.filter(role=role)
    if is_active is not None:
        users = users.filter(is_active=is_active)
    if org_id:
        users = users.filter(org_id=org_id)

    total = users.count()
    page = users.order_by('-date_joined')[offset:offset + limit]
    return [_to_dto(u) for u in page], total


def update_user(user_id, data: dict) -> UserDTO | None:
    try:
        user = User.objects.get(id=user_id)
    except User.DoesNotExist:
        return None

    # An explicit null only clears nullable columns
    data = {
        key: value for key, value in data.items()
        if value is not None or User._meta.get_field(key).null
    }
    validate_user_data(data, exclude_user_id=user.id)

    if 'email' in data:
        data['email'] = data['email'].lower()

    for key, value in data.items():
        setattr(user, key, value)

    try:
        with transaction.atomic():
            user.save()
    except IntegrityError:
        raise ValidationFailed.duplicate_field('email', data.get('email', user.email))

    return _to_dto(user)


def delete_user(user_id) -> bool:
    deleted, _ = User.objects.filter(id=user_id).delete()
    if deleted:
        logger.info(f"Deleted user {user_id}")
    return bool(deleted)


def get_org_user_ids(org_id: UUID) -> List[UUID]:
    return list(User.objects.filter(org_id=org_id).values_list('id', flat=True))


def delete_org_users(org_id: UUID) -> int:
    deleted, _ = User.objects.filter(org_id=org_id).delete()
    return deleted


def count_users() -> int:
    return User.objects.count()


def rename_role(old_value: str, new_value: str) -> int:
    updated = User.objects.filter(role=old_value).update(role=new_value)
    logger.info(f"Updated {updated} users with role {old_value} -> {new_value}")
    return updated


def count_roles() -> dict:
    rows = User.objects.values('role').annotate(count=Count('id')).order_by()
    return {row['role']: row['count'] for row in rows}
