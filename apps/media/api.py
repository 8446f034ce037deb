"""
API Routers for Media app.

``app_media_router`` is mounted under /apps/ and serves presigned upload
URLs, direct uploads and listing for one app. ``router`` is mounted under
/media/ and manages individual media records.
"""
from typing import List, Optional
from uuid import UUID
from ninja import Router, File, Form
from ninja.files import UploadedFile
from ninja.errors import HttpError
from django.http import HttpRequest

from apps.catalog.services import can_manage_app, get_app_dto
from apps.identity.decorators import require_permission
from apps.identity.permissions import Permissions
from .dtos import MediaIn, MediaOut, MediaUpdate, PresignedUrlRequest, PresignedUrlResponse
from .models import MediaType
from . import services

app_media_router = Router(tags=["Media"])
router = Router(tags=["Media"])


# =============================================================================
# Helper Functions
# =============================================================================

def require_app_manager(request: HttpRequest, app_id: UUID):
    """Caller must be an admin, the app's creator or its organization's owner."""
    user = require_permission(request, Permissions.MEDIA_UPLOAD)
    allowed = can_manage_app(app_id, user)
    if allowed is None:
        raise HttpError(404, "App not found")
    if not allowed:
        raise HttpError(403, "Permission denied. Only app owner or admin can manage media.")
    return user


def _presign(request: HttpRequest, app_id: UUID, media_type: str, payload: PresignedUrlRequest):
    require_app_manager(request, app_id)
    try:
        return services.create_presigned_upload(app_id, media_type, payload.content_type)
    except ValueError as e:
        raise HttpError(400, str(e))


# =============================================================================
# Per-App Endpoints (/apps/{app_id}/media/...)
# =============================================================================

@app_media_router.post("/{app_id}/media/logo", response=PresignedUrlResponse, auth=None)
def presign_logo_upload(request: HttpRequest, app_id: UUID, payload: PresignedUrlRequest):
    """
    Get a presigned URL for uploading the app logo straight to storage.

    Only one active logo is allowed per app.
    """
    return _presign(request, app_id, MediaType.LOGO, payload)


@app_media_router.post("/{app_id}/media/screenshot", response=PresignedUrlResponse, auth=None)
def presign_screenshot_upload(request: HttpRequest, app_id: UUID, payload: PresignedUrlRequest):
    """Get a presigned URL for uploading a screenshot straight to storage."""
    return _presign(request, app_id, MediaType.SCREENSHOT, payload)


@app_media_router.post("/{app_id}/media/upload", response={201: MediaOut}, auth=None)
def upload_app_media(
    request: HttpRequest,
    app_id: UUID,
    media_type: str = Form(MediaType.SCREENSHOT),
    order: int = Form(0),
    file: UploadedFile = File(...),
):
    """Upload an image through the API (max 5 MB). A new logo replaces the old one."""
    user = require_app_manager(request, app_id)
    if media_type not in (MediaType.LOGO, MediaType.SCREENSHOT):
        raise HttpError(400, "Only LOGO and SCREENSHOT uploads are supported")
    try:
        media = services.upload_media_file(user, app_id, media_type, file, order=order)
    except ValueError as e:
        raise HttpError(400, str(e))
    if not media:
        raise HttpError(404, "App not found")
    return 201, media


@app_media_router.get("/{app_id}/media", response=List[MediaOut], auth=None)
def list_app_media(request: HttpRequest, app_id: UUID, media_type: Optional[str] = None):
    if not get_app_dto(app_id, request.user):
        raise HttpError(404, "App not found")
    return services.list_app_media(app_id, media_type)


# =============================================================================
# Media Record Endpoints (/media/...)
# =============================================================================

@router.post("", response={201: MediaOut}, auth=None)
def create_media(request: HttpRequest, payload: MediaIn):
    """Register an object uploaded with a presigned URL."""
    user = require_app_manager(request, payload.app_id)
    try:
        media = services.create_media(user, payload)
    except ValueError as e:
        raise HttpError(400, str(e))
    if not media:
        raise HttpError(404, "App not found")
    return 201, media


def _get_managed_media(request: HttpRequest, media_id: UUID) -> MediaOut:
    media = services.get_media(media_id)
    if not media:
        raise HttpError(404, "Media not found")
    require_app_manager(request, media.app_id)
    return media


@router.get("/{media_id}", response=MediaOut, auth=None)
def get_media(request: HttpRequest, media_id: UUID):
    media = services.get_media(media_id)
    if not media or not get_app_dto(media.app_id, request.user):
        raise HttpError(404, "Media not found")
    return media


@router.put("/{media_id}", response=MediaOut, auth=None)
def update_media(request: HttpRequest, media_id: UUID, payload: MediaUpdate):
    _get_managed_media(request, media_id)
    return services.update_media(media_id, payload.dict(exclude_unset=True))


@router.delete("/{media_id}", response={204: None}, auth=None)
def delete_media(request: HttpRequest, media_id: UUID):
    """Remove the object, its thumbnails and the record."""
    _get_managed_media(request, media_id)
    services.delete_media(media_id)
    return 204, None
