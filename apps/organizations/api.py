from typing import List
from uuid import UUID
from ninja import Router
from ninja.errors import HttpError
from django.http import HttpRequest

from apps.identity.decorators import has_permission, require_auth
from apps.identity.permissions import Permissions, is_admin
from .dtos import OrganizationOut, OrganizationIn, OrganizationUpdate
from . import services

router = Router(tags=["Organizations"])


def _require_admin_or_owner(request: HttpRequest, org_id: UUID) -> OrganizationOut:
    user = require_auth(request)
    org = services.get_organization_dto(org_id)
    if not org:
        raise HttpError(404, "Organization not found")
    if not is_admin(user) and org.owner_id != user.id:
        raise HttpError(403, "You can only manage your own organization")
    return org


@router.get("", response=List[OrganizationOut], auth=None)
def list_organizations(request: HttpRequest):
    return services.list_organizations()


@router.post("", response={201: OrganizationOut}, auth=None)
def create_organization(request: HttpRequest, payload: OrganizationIn):
    """
    Create an organization owned by the caller.
    """
    user = require_auth(request)
    return 201, services.create_organization(user.id, payload)


@router.get("/slug/{slug}", response=OrganizationOut, auth=None)
def get_organization_by_slug(request: HttpRequest, slug: str):
    org = services.get_organization_by_slug(slug)
    if not org:
        raise HttpError(404, "Organization not found")
    return org


@router.get("/{org_id}", response=OrganizationOut, auth=None)
def get_organization(request: HttpRequest, org_id: UUID):
    org = services.get_organization_dto(org_id)
    if not org:
        raise HttpError(404, "Organization not found")
    return org


@router.put("/{org_id}", response=OrganizationOut, auth=None)
def update_organization(request: HttpRequest, org_id: UUID, payload: OrganizationUpdate):
    _require_admin_or_owner(request, org_id)
    org = services.update_organization(org_id, payload.dict(exclude_unset=True))
    if not org:
        raise HttpError(404, "Organization not found")
    return org


@router.delete("/{org_id}", response={204: None}, auth=None)
@has_permission(Permissions.ORGANIZATION_MANAGE)
def delete_organization(request: HttpRequest, org_id: UUID):
    """
    Delete an organization, its members and the apps they created.
    """
    if not services.delete_organization(org_id):
        raise HttpError(404, "Organization not found")
    return 204, None
