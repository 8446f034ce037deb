"""
Services for Organizations app.
This is the public API for other apps to interact with organizations.
"""
import logging
from typing import List
from uuid import UUID

from django.db import IntegrityError, transaction

from apps.core.exceptions import ValidationFailed
from apps.identity import services as identity_services
from apps.catalog import services as catalog_services
from .models import Organization
from .dtos import OrganizationIn, OrganizationOut
from .validation import validate_organization_data

logger = logging.getLogger(__name__)


def get_organization_dto(org_id) -> OrganizationOut | None:
    """
    Get an organization by ID and return as DTO.
    This is the only way other apps should access organization data.
    """
    try:
        return OrganizationOut.from_orm(Organization.objects.get(id=org_id))
    except Organization.DoesNotExist:
        return None


def get_organization_by_slug(slug: str) -> OrganizationOut | None:
    try:
        return OrganizationOut.from_orm(Organization.objects.get(slug=slug.lower()))
    except Organization.DoesNotExist:
        return None


def list_organizations() -> List[OrganizationOut]:
    return [OrganizationOut.from_orm(org) for org in Organization.objects.all()]


def count_organizations() -> int:
    return Organization.objects.count()


def create_organization(owner_id: UUID, payload: OrganizationIn) -> OrganizationOut:
    data = payload.dict()
    validate_organization_data(data)
    try:
        with transaction.atomic():
            org = Organization.objects.create(owner_id=owner_id, **data)
    except IntegrityError:
        raise ValidationFailed.duplicate_field('slug', data['slug'])

    logger.info(f"Created organization {org.slug} ({org.id}) for owner {owner_id}")
    return OrganizationOut.from_orm(org)


def update_organization(org_id: UUID, data: dict) -> OrganizationOut | None:
    try:
        org = Organization.objects.get(id=org_id)
    except Organization.DoesNotExist:
        return None

    # An explicit null only clears nullable columns
    data = {
        key: value for key, value in data.items()
        if value is not None or Organization._meta.get_field(key).null
    }
    validate_organization_data(data, exclude_org_id=org.id, partial=True)

    for attr, value in data.items():
        setattr(org, attr, value)

    try:
        with transaction.atomic():
            org.save()
    except IntegrityError:
        raise ValidationFailed.duplicate_field('slug', org.slug)

    return OrganizationOut.from_orm(org)


def delete_organization(org_id: UUID) -> bool:
    """
    Delete an organization together with its members and their apps.

    Order: apps created by the organization's users, then the users,
    then the organization itself.
    """
    if not Organization.objects.filter(id=org_id).exists():
        return False

    with transaction.atomic():
        user_ids = identity_services.get_org_user_ids(org_id)
        apps_deleted = catalog_services.delete_apps_created_by(user_ids)
        users_deleted = identity_services.delete_org_users(org_id)
        Organization.objects.filter(id=org_id).delete()

    logger.info(
        f"Deleted organization {org_id} with {users_deleted} users and {apps_deleted} apps"
    )
    return True
