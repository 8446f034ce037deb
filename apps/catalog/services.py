"""
Services for Catalog app.
This is the public API for other apps to interact with apps and their versions.
"""
import json
import logging
from typing import List, Optional, Tuple
from uuid import UUID

from django.conf import settings
from django.core.exceptions import PermissionDenied
from django.db import IntegrityError, transaction
from django.db.models import Count, F, Q, Sum
from django.utils import timezone
from django.utils.text import slugify

from apps.core.exceptions import ValidationFailed
from apps.core.task_service import TaskService, queue_after_commit
from apps.identity import services as identity_services
from apps.identity.permissions import is_admin
from .models import App, AppLike, AppStatus, AppVersion, AppView, AppVisibility
from .dtos import AppFilters, AppIn, AppOut, AppVersionIn, AppVersionOut, DashboardStats
from .validation import validate_app_data

logger = logging.getLogger(__name__)


# =============================================================================
# Lookups
# =============================================================================

def _visible_to(queryset, user):
    """Admins see everything; others see public published apps plus their own."""
    if is_admin(user):
        return queryset
    public = Q(status=AppStatus.PUBLISHED, visibility=AppVisibility.PUBLIC)
    if user is not None and user.is_authenticated:
        return queryset.filter(public | Q(created_by_id=user.id))
    return queryset.filter(public)


def _can_read(app: App, user) -> bool:
    if is_admin(user):
        return True
    if user is not None and user.is_authenticated and app.created_by_id == user.id:
        return True
    return app.status == AppStatus.PUBLISHED and app.visibility != AppVisibility.PRIVATE


def get_app_dto(app_id, user=None) -> AppOut | None:
    app = App.objects.filter(id=app_id).first()
    if not app or not _can_read(app, user):
        return None
    return AppOut.from_orm(app)


def get_app_by_slug(slug: str, user=None) -> AppOut | None:
    app = App.objects.filter(slug=slug.lower()).first()
    if not app or not _can_read(app, user):
        return None
    return AppOut.from_orm(app)


def get_app_refs(app_id) -> Optional[dict]:
    """
    Creator and organization of an app, used by media and timeline for
    ownership checks. None if the app does not exist.
    """
    return App.objects.filter(id=app_id).values('created_by_id', 'organization_id').first()


def can_manage_app(app_id, user) -> Optional[bool]:
    """
    Whether ``user`` may manage the app's media and timeline: admins, the
    creator, and the owner of the app's organization. None if the app does
    not exist.
    """
    refs = get_app_refs(app_id)
    if refs is None:
        return None
    if not user or not user.is_authenticated:
        return False
    if is_admin(user) or refs['created_by_id'] == user.id:
        return True
    if refs['organization_id']:
        from apps.organizations.services import get_organization_dto
        org = get_organization_dto(refs['organization_id'])
        return bool(org and org.owner_id == user.id)
    return False


def _filtered_apps(filters: AppFilters, user):
    apps = _visible_to(App.objects.all(), user)

    if filters.status:
        apps = apps.filter(status=filters.status)
    if filters.visibility:
        apps = apps.filter(visibility=filters.visibility)
    if filters.organization_id:
        apps = apps.filter(organization_id=filters.organization_id)
    if filters.platforms:
        apps = apps.filter(_any_of('platforms', filters.platforms))
    if filters.tags:
        apps = apps.filter(_any_of('tags', filters.tags))
    if filters.search:
        term = filters.search.strip()
        apps = apps.filter(
            Q(title__icontains=term)
            | Q(short_desc__icontains=term)
            | Q(long_desc__icontains=term)
            | Q(tags__icontains=term)
        )
    return apps


def _any_of(field: str, values: List[str]) -> Q:
    """Match rows whose JSON list in ``field`` contains at least one of ``values``."""
    query = Q()
    for value in values:
        query |= Q(**{f"{field}__icontains": json.dumps(value)})
    return query


def list_apps(
    filters: AppFilters,
    user=None,
    limit: int = 20,
    offset: int = 0,
) -> Tuple[List[AppOut], int]:
    """
    Returns (page of apps, total matching count), newest first.
    """
    apps = _filtered_apps(filters, user)
    total = apps.count()
    page = apps.order_by('-created_at')[offset:offset + limit]
    return [AppOut.from_orm(app) for app in page], total


def get_timeline_apps(limit: int = 20, offset: int = 0) -> List[AppOut]:
    """Published public apps, most recently released first."""
    apps = App.objects.filter(
        status=AppStatus.PUBLISHED, visibility=AppVisibility.PUBLIC
    ).order_by(F('release_date').desc(nulls_last=True), '-created_at')
    return [AppOut.from_orm(app) for app in apps[offset:offset + limit]]


def get_all_tags() -> List[str]:
    tags = set()
    for app_tags in App.objects.values_list('tags', flat=True):
        tags.update(app_tags or [])
    return sorted(tags)


# =============================================================================
# Mutations
# =============================================================================

def _unique_slug(title: str) -> str:
    base = slugify(title)[:90] or 'app'
    slug = base
    suffix = 2
    while App.objects.filter(slug=slug).exists():
        slug = f"{base}-{suffix}"
        suffix += 1
    return slug


def create_app(user, payload: AppIn) -> AppOut:
    """
    Create an app owned by ``user`` in the user's organization.
    """
    data = payload.dict()
    validate_app_data(data)
    data['slug'] = data['slug'].lower() if data.get('slug') else _unique_slug(data['title'])

    try:
        with transaction.atomic():
            app = App.objects.create(
                created_by_id=user.id,
                organization_id=user.org_id,
                **data
            )
    except IntegrityError:
        raise ValidationFailed.duplicate_field('slug', data['slug'])

    logger.info(f"Created app {app.slug} ({app.id}) by {user.id}")
    if app.status == AppStatus.PUBLISHED:
        notify_app_published(app)
    return AppOut.from_orm(app)


def _ensure_can_manage(app: App, user, action: str):
    if not is_admin(user) and app.created_by_id != user.id:
        raise PermissionDenied(f"You can only {action} your own apps")


def update_app(app_id, user, data: dict) -> AppOut | None:
    """
    Raises:
        PermissionDenied: caller is neither an admin nor the creator
    """
    app = App.objects.filter(id=app_id).first()
    if not app:
        return None
    _ensure_can_manage(app, user, "update")

    # An explicit null only clears nullable columns
    data = {
        key: value for key, value in data.items()
        if value is not None or App._meta.get_field(key).null
    }
    validate_app_data(data, exclude_app_id=app.id, partial=True)

    was_published = app.status == AppStatus.PUBLISHED
    for key, value in data.items():
        setattr(app, key, value)

    try:
        with transaction.atomic():
            app.save()
    except IntegrityError:
        raise ValidationFailed.duplicate_field('slug', app.slug)

    if app.status == AppStatus.PUBLISHED and not was_published:
        notify_app_published(app)
    return AppOut.from_orm(app)


def delete_app(app_id, user) -> bool:
    """
    Raises:
        PermissionDenied: caller is neither an admin nor the creator
    """
    app = App.objects.filter(id=app_id).first()
    if not app:
        return False
    _ensure_can_manage(app, user, "delete")
    app.delete()
    logger.info(f"Deleted app {app_id} by {user.id}")
    return True


def delete_apps_created_by(user_ids: List[UUID]) -> int:
    """Bulk delete, used when an organization is removed."""
    if not user_ids:
        return 0
    count = App.objects.filter(created_by_id__in=user_ids).count()
    App.objects.filter(created_by_id__in=user_ids).delete()
    return count


def notify_app_published(app: App):
    """
    Queue the creator email and the configured webhooks for a newly published
    app, once the change is committed.
    """
    app_url = f"{settings.PUBLIC_SITE_URL.rstrip('/')}/apps/{app.slug}"

    creator = identity_services.get_user_dto(app.created_by_id)
    if creator and creator.email:
        queue_after_commit(
            TaskService.send_email,
            to=creator.email,
            subject=f"Your app {app.title} is now live",
            template="app-published",
            context={
                "name": creator.name or creator.username,
                "app_title": app.title,
                "app_url": app_url,
            },
        )

    payload = {
        "event": "app.published",
        "timestamp": timezone.now().isoformat(),
        "app": {
            "id": str(app.id),
            "title": app.title,
            "slug": app.slug,
            "short_desc": app.short_desc,
            "url": app_url,
        },
    }
    for url in getattr(settings, 'APP_WEBHOOK_URLS', []):
        queue_after_commit(TaskService.send_webhook, url=url, payload=payload)


# =============================================================================
# Views & likes
# =============================================================================

def increment_view(app_id, user_id: UUID) -> bool:
    """
    Record a view by ``user_id``. The counter only moves the first time.
    """
    return _record_once(AppView, 'view_count', app_id, user_id)


def increment_like(app_id, user_id: UUID) -> bool:
    """
    Record a like by ``user_id``. The counter only moves the first time.
    """
    return _record_once(AppLike, 'like_count', app_id, user_id)


def _record_once(model, counter: str, app_id, user_id: UUID) -> bool:
    if not App.objects.filter(id=app_id).exists():
        return False
    try:
        with transaction.atomic():
            _, created = model.objects.get_or_create(app_id=app_id, user_id=user_id)
            if created:
                App.objects.filter(id=app_id).update(**{counter: F(counter) + 1})
    except IntegrityError:
        # Concurrent request already recorded it
        return False
    return created


def has_user_liked(app_id, user_id: UUID) -> bool:
    return AppLike.objects.filter(app_id=app_id, user_id=user_id).exists()


def has_user_viewed(app_id, user_id: UUID) -> bool:
    return AppView.objects.filter(app_id=app_id, user_id=user_id).exists()


def get_user_liked_app_ids(user_id: UUID) -> List[UUID]:
    return list(AppLike.objects.filter(user_id=user_id).values_list('app_id', flat=True))


def get_user_viewed_app_ids(user_id: UUID) -> List[UUID]:
    return list(AppView.objects.filter(user_id=user_id).values_list('app_id', flat=True))


# =============================================================================
# Versions
# =============================================================================

def list_versions(app_id) -> List[AppVersionOut]:
    versions = AppVersion.objects.filter(app_id=app_id).order_by('-released_at', '-created_at')
    return [AppVersionOut.from_orm(v) for v in versions]


def create_version(app_id, user, payload: AppVersionIn) -> AppVersionOut | None:
    """
    Raises:
        PermissionDenied: caller is neither an admin nor the creator
        ValidationFailed: version string already used for this app
    """
    app = App.objects.filter(id=app_id).first()
    if not app:
        return None
    _ensure_can_manage(app, user, "release versions of")

    data = payload.dict()
    if not data['version'].strip():
        raise ValidationFailed.invalid_field('version', 'Version is required')
    if data['released_at'] is None:
        data['released_at'] = timezone.now()

    try:
        with transaction.atomic():
            version = AppVersion.objects.create(app=app, released_by_id=user.id, **data)
            if version.is_latest:
                _clear_other_latest(version)
    except IntegrityError:
        raise ValidationFailed.duplicate_field('version', data['version'])

    return AppVersionOut.from_orm(version)


def set_latest_version(app_id, version_id, user) -> AppVersionOut | None:
    version = AppVersion.objects.select_related('app').filter(id=version_id, app_id=app_id).first()
    if not version:
        return None
    _ensure_can_manage(version.app, user, "release versions of")

    with transaction.atomic():
        version.is_latest = True
        version.save(update_fields=['is_latest', 'updated_at'])
        _clear_other_latest(version)
    return AppVersionOut.from_orm(version)


def _clear_other_latest(version: AppVersion):
    AppVersion.objects.filter(app_id=version.app_id, is_latest=True).exclude(
        id=version.id
    ).update(is_latest=False)


def delete_version(app_id, version_id, user) -> bool:
    version = AppVersion.objects.select_related('app').filter(id=version_id, app_id=app_id).first()
    if not version:
        return False
    _ensure_can_manage(version.app, user, "release versions of")
    version.delete()
    return True


# =============================================================================
# Enum value maintenance
# =============================================================================

RENAMEABLE_FIELDS = ("status", "visibility")


def rename_field_value(field: str, old_value: str, new_value: str) -> int:
    """Rewrite ``status`` or ``visibility`` values in bulk. Returns rows updated."""
    if field not in RENAMEABLE_FIELDS:
        raise ValueError(f"Cannot rename values of {field}")
    updated = App.objects.filter(**{field: old_value}).update(**{field: new_value})
    logger.info(f"Updated {updated} apps with {field} {old_value} -> {new_value}")
    return updated


def rename_platform(old_value: str, new_value: str) -> int:
    """Replace a platform in every app that lists it, without duplicating ``new_value``."""
    updated = 0
    for app in App.objects.filter(_any_of('platforms', [old_value])):
        if old_value not in app.platforms:
            continue
        platforms = [p for p in app.platforms if p != old_value]
        if new_value not in platforms:
            platforms.append(new_value)
        app.platforms = platforms
        app.save(update_fields=['platforms', 'updated_at'])
        updated += 1
    logger.info(f"Updated platforms {old_value} -> {new_value} on {updated} apps")
    return updated


def count_field_values(field: str) -> dict:
    """``{value: count}`` for ``status``, ``visibility`` or the ``platforms`` list."""
    if field == 'platforms':
        counts = {}
        for platforms in App.objects.values_list('platforms', flat=True):
            for platform in platforms or []:
                counts[platform] = counts.get(platform, 0) + 1
        return counts
    if field not in RENAMEABLE_FIELDS:
        raise ValueError(f"Cannot count values of {field}")
    rows = App.objects.values(field).annotate(count=Count('id')).order_by()
    return {row[field]: row['count'] for row in rows}


# =============================================================================
# Dashboard
# =============================================================================

def get_dashboard_stats() -> DashboardStats:
    from apps.organizations.services import count_organizations

    apps = App.objects.all()
    totals = apps.aggregate(views=Sum('view_count'), likes=Sum('like_count'))
    return DashboardStats(
        total_apps=apps.count(),
        published_apps=apps.filter(status=AppStatus.PUBLISHED).count(),
        draft_apps=apps.filter(status=AppStatus.DRAFT).count(),
        archived_apps=apps.filter(status=AppStatus.ARCHIVED).count(),
        total_views=totals['views'] or 0,
        total_likes=totals['likes'] or 0,
        total_users=identity_services.count_users(),
        total_organizations=count_organizations(),
        recent_apps=[AppOut.from_orm(app) for app in apps.order_by('-created_at')[:10]],
    )
