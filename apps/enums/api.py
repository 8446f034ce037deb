"""
API Router for Enums app.

Reads are public so clients can render labels; changes need ENUM_MANAGE.
"""
from typing import List
from ninja import Router
from ninja.errors import HttpError
from django.http import HttpRequest

from apps.identity.decorators import has_permission
from apps.identity.permissions import Permissions
from .dtos import EnumCreate, EnumOptionIn, EnumOut, EnumUpdate, EnumUsage
from . import services

router = Router(tags=["Enums"])


@router.get("", response=List[EnumOut], auth=None)
def list_enums(request: HttpRequest):
    return services.list_enums()


@router.post("", response={201: EnumOut}, auth=None)
@has_permission(Permissions.ENUM_MANAGE)
def create_enum(request: HttpRequest, payload: EnumCreate):
    try:
        return 201, services.create_enum(payload)
    except services.EnumConflict as e:
        raise HttpError(409, str(e))
    except ValueError as e:
        raise HttpError(400, str(e))


@router.post("/reset", response=List[EnumOut], auth=None)
@has_permission(Permissions.ENUM_MANAGE)
def reset_all_enums(request: HttpRequest):
    """Restore every built-in enum to its default options."""
    return services.reset_all_enums()


@router.get("/{key}", response=EnumOut, auth=None)
def get_enum(request: HttpRequest, key: str):
    enum = services.get_enum(key)
    if not enum:
        raise HttpError(404, f'Enum with key "{key}" not found')
    return enum


@router.put("/{key}", response=EnumOut, auth=None)
@has_permission(Permissions.ENUM_MANAGE)
def update_enum(request: HttpRequest, key: str, payload: EnumUpdate):
    """
    Replace all options. Options that keep their label but change value
    have the new value written to existing apps and users.
    """
    try:
        enum = services.update_enum(key, payload.options)
    except ValueError as e:
        raise HttpError(400, str(e))
    if not enum:
        raise HttpError(404, f'Enum with key "{key}" not found')
    return enum


@router.delete("/{key}", response={204: None}, auth=None)
@has_permission(Permissions.ENUM_MANAGE)
def delete_enum(request: HttpRequest, key: str):
    if not services.delete_enum(key):
        raise HttpError(404, f'Enum with key "{key}" not found')
    return 204, None


@router.post("/{key}/options", response={201: EnumOut}, auth=None)
@has_permission(Permissions.ENUM_MANAGE)
def add_option(request: HttpRequest, key: str, payload: EnumOptionIn):
    try:
        enum = services.add_option(key, payload)
    except services.EnumConflict as e:
        raise HttpError(409, str(e))
    if not enum:
        raise HttpError(404, f'Enum with key "{key}" not found')
    return 201, enum


@router.put("/{key}/options/{option_id}", response=EnumOut, auth=None)
@has_permission(Permissions.ENUM_MANAGE)
def update_option(request: HttpRequest, key: str, option_id: str, payload: EnumOptionIn):
    try:
        enum = services.update_option(key, option_id, payload)
    except services.EnumConflict as e:
        raise HttpError(409, str(e))
    except ValueError as e:
        raise HttpError(400, str(e))
    if not enum:
        raise HttpError(404, "Enum or option not found")
    return enum


@router.delete("/{key}/options/{option_id}", response=EnumOut, auth=None)
@has_permission(Permissions.ENUM_MANAGE)
def remove_option(request: HttpRequest, key: str, option_id: str):
    enum = services.remove_option(key, option_id)
    if not enum:
        raise HttpError(404, "Enum or option not found")
    return enum


@router.post("/{key}/reset", response=EnumOut, auth=None)
@has_permission(Permissions.ENUM_MANAGE)
def reset_enum(request: HttpRequest, key: str):
    try:
        return services.reset_enum(key)
    except KeyError:
        raise HttpError(404, f'No default enum found for key "{key}"')


@router.get("/{key}/usage", response=EnumUsage, auth=None)
@has_permission(Permissions.ENUM_MANAGE)
def get_usage(request: HttpRequest, key: str):
    """Record counts per stored value, for checking a change before making it."""
    return services.get_usage(key)
