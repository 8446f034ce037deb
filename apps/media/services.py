"""
Media service for app logos, screenshots and other attachments.

Uploads either go straight to object storage with a presigned URL (the
client then registers the object with create_media) or through the API as
a multipart upload. Either way a process_media job verifies the object
afterwards and renders thumbnails for images.
"""
import io
import logging
import os
import uuid
from typing import List, Optional
from uuid import UUID

from django.conf import settings
from django.core.files.base import ContentFile
from django.db import transaction
from PIL import Image, ImageOps, UnidentifiedImageError

from apps.core.task_service import TaskService
from apps.catalog.services import get_app_refs
from .models import Media, MediaType
from .dtos import MediaIn, MediaOut, PresignedUrlResponse
from . import storage_service

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = ['image/jpeg', 'image/jpg', 'image/png', 'image/webp']

MAX_FILE_SIZE = 5 * 1024 * 1024  # 5 MB

# (name, width, height), smallest first
THUMBNAIL_SIZES = [
    ('small', 300, 200),
    ('medium', 600, 400),
    ('large', 1200, 800),
]
THUMBNAIL_QUALITY = 80

KEY_FOLDERS = {
    MediaType.LOGO: 'logos',
    MediaType.SCREENSHOT: 'screenshots',
}


def _validate_content_type(content_type: str) -> str:
    if not content_type:
        raise ValueError("Content-Type is required")
    normalized = content_type.lower()
    if normalized not in ALLOWED_IMAGE_TYPES:
        raise ValueError(
            f"Invalid file type. Allowed: {', '.join(ALLOWED_IMAGE_TYPES)}. Received: {content_type}"
        )
    return normalized


def key_prefix(app_id: UUID, media_type: str) -> str:
    folder = KEY_FOLDERS.get(media_type, f"{media_type.lower()}s")
    return f"apps/{app_id}/{folder}/"


def build_object_key(app_id: UUID, media_type: str, content_type: str) -> str:
    """``apps/<app_id>/<logos|screenshots>/<uuid>.<ext>``"""
    extension = content_type.split('/')[1]
    return f"{key_prefix(app_id, media_type)}{uuid.uuid4()}.{extension}"


def has_active_logo(app_id: UUID) -> bool:
    return Media.objects.filter(app_id=app_id, type=MediaType.LOGO, is_active=True).exists()


def create_presigned_upload(app_id: UUID, media_type: str, content_type: str) -> PresignedUrlResponse:
    """
    Sign a direct-to-bucket upload for a logo or screenshot.

    Raises:
        ValueError: unsupported content type, or the app already has a logo
    """
    content_type = _validate_content_type(content_type)

    if media_type == MediaType.LOGO and has_active_logo(app_id):
        raise ValueError("App already has a logo. Only one logo is allowed per app.")

    key = build_object_key(app_id, media_type, content_type)
    expires_in = settings.PRESIGNED_URL_EXPIRES_SECONDS
    upload_url = storage_service.get_presigned_upload_url(key, content_type, expires_in)

    logger.info(f"Issued presigned {media_type} upload for app {app_id}: {key}")
    return PresignedUrlResponse(upload_url=upload_url, filename=key, expires_in=expires_in)


def _validate_object_key(app_id: UUID, media_type: str, key: str):
    """Registered keys must live in the app's own folder for their type."""
    prefix = key_prefix(app_id, media_type)
    name = key[len(prefix):] if key.startswith(prefix) else ''
    if not name or '/' in name or name in ('.', '..'):
        raise ValueError(f"Invalid filename for this app's {media_type.lower()} media: {key}")


def _replace_logo(app_id: UUID):
    """Deactivate existing logos and remove their objects from storage."""
    for logo in Media.objects.filter(app_id=app_id, type=MediaType.LOGO, is_active=True):
        try:
            storage_service.delete_file(logo.filename)
        except Exception as e:
            logger.warning(f"Failed to delete old logo {logo.filename}: {e}")
        logo.is_active = False
        logo.save(update_fields=['is_active', 'updated_at'])


def create_media(user, payload: MediaIn) -> MediaOut | None:
    """
    Register an uploaded object. A new logo replaces the current one.

    Returns None if the app does not exist.

    Raises:
        ValueError: unknown type, or a filename outside the app's folder
    """
    if payload.type not in MediaType.values:
        raise ValueError(f"Invalid media type: {payload.type}")

    refs = get_app_refs(payload.app_id)
    if refs is None:
        return None
    _validate_object_key(payload.app_id, payload.type, payload.filename)

    with transaction.atomic():
        if payload.type == MediaType.LOGO:
            _replace_logo(payload.app_id)

        data = payload.dict()
        data['url'] = data['url'] or storage_service.public_url(payload.filename)
        media = Media.objects.create(
            organization_id=refs['organization_id'],
            user_id=user.id,
            uploaded_by_id=user.id,
            created_by_id=user.id,
            **data
        )

    logger.info(f"Created {media.type} media {media.id} for app {media.app_id}")
    TaskService.process_media(media_id=media.id)
    return MediaOut.from_orm(Media.objects.get(id=media.id))


def upload_media_file(user, app_id: UUID, media_type: str, file, order: int = 0) -> MediaOut | None:
    """
    Store a multipart upload and register it.

    Raises:
        ValueError: if file validation fails
    """
    content_type = _validate_content_type(file.content_type)
    if file.size > MAX_FILE_SIZE:
        raise ValueError(f"File too large. Maximum size is {MAX_FILE_SIZE // (1024 * 1024)} MB")

    if get_app_refs(app_id) is None:
        return None

    key = storage_service.save_file(build_object_key(app_id, media_type, content_type), file)
    return create_media(user, MediaIn(
        app_id=app_id,
        type=media_type,
        filename=key,
        url=storage_service.public_url(key),
        original_name=file.name or "",
        mime_type=content_type,
        size=file.size,
        order=order,
    ))


def get_media(media_id: UUID) -> MediaOut | None:
    media = Media.objects.filter(id=media_id).first()
    return MediaOut.from_orm(media) if media else None


def list_app_media(app_id: UUID, media_type: Optional[str] = None) -> List[MediaOut]:
    """Active media of an app, by order then upload time."""
    media = Media.objects.filter(app_id=app_id, is_active=True)
    if media_type:
        media = media.filter(type=media_type)
    return [MediaOut.from_orm(m) for m in media.order_by('order', 'created_at')]


def update_media(media_id: UUID, data: dict) -> MediaOut | None:
    """Merge ``meta`` into the existing metadata and set order / is_active."""
    media = Media.objects.filter(id=media_id).first()
    if not media:
        return None

    if data.get('meta') is not None:
        media.meta = {**media.meta, **data['meta']}
    if data.get('order') is not None:
        media.order = data['order']
    if data.get('is_active') is not None:
        media.is_active = data['is_active']
    media.save()
    return MediaOut.from_orm(media)


def delete_media(media_id: UUID) -> bool:
    """
    Delete the stored object, its thumbnails and the record.

    Storage failures are logged and do not block removing the record.
    """
    media = Media.objects.filter(id=media_id).first()
    if not media:
        return False

    try:
        storage_service.delete_file(media.filename)
    except Exception as e:
        logger.warning(f"Failed to delete media object {media.filename}: {e}")

    for thumbnail in media.meta.get('thumbnails') or []:
        url = thumbnail.get('url') if isinstance(thumbnail, dict) else None
        if not url:
            continue
        key = storage_service.key_from_url(url)
        if not key:
            logger.warning(f"Could not parse thumbnail URL: {url}")
            continue
        if not key.startswith(f"apps/{media.app_id}/"):
            logger.warning(f"Skipping thumbnail outside app {media.app_id}: {key}")
            continue
        try:
            storage_service.delete_file(key)
        except Exception as e:
            logger.warning(f"Failed to delete thumbnail {url}: {e}")

    media.delete()
    logger.info(f"Deleted media {media_id}")
    return True


def process_media(media_id: UUID) -> Optional[bool]:
    """
    Post-upload processing: confirm the object exists, record its stored
    size and, for images, render the JPEG thumbnails in THUMBNAIL_SIZES
    into ``meta.thumbnails``.

    Returns None when the record is gone, False when the object is not in
    storage yet, True once processed.
    """
    media = Media.objects.filter(id=media_id).first()
    if not media:
        logger.warning(f"Media {media_id} not found, skipping processing")
        return None

    size = storage_service.get_object_size(media.filename)
    if size is None:
        logger.warning(f"Object {media.filename} for media {media_id} not found in storage")
        return False

    meta = {**media.meta, 'processed': True}
    media.size = size
    if media.mime_type in ALLOWED_IMAGE_TYPES:
        try:
            media.width, media.height, meta['thumbnails'] = _render_thumbnails(media.filename)
        except (UnidentifiedImageError, OSError) as e:
            logger.warning(f"Could not render thumbnails for media {media_id}: {e}")

    media.meta = meta
    media.save(update_fields=['size', 'width', 'height', 'meta', 'updated_at'])
    logger.info(f"Processed media {media_id} ({size} bytes)")
    return True


def _render_thumbnails(key: str):
    """Returns the original's (width, height) and the stored ``[{size, url}]`` list."""
    with Image.open(io.BytesIO(storage_service.read_file(key))) as original:
        image = ImageOps.exif_transpose(original).convert('RGB')

    width, height = image.size
    # Downscale once to fit the largest box, never enlarging
    image.thumbnail(THUMBNAIL_SIZES[-1][1:], Image.LANCZOS)

    base = os.path.splitext(key)[0]
    thumbnails = []
    for name, box_width, box_height in THUMBNAIL_SIZES:
        thumb = ImageOps.fit(image, (box_width, box_height), Image.LANCZOS)
        buffer = io.BytesIO()
        thumb.save(buffer, 'JPEG', quality=THUMBNAIL_QUALITY)
        saved = storage_service.save_file(f"{base}_{name}.jpg", ContentFile(buffer.getvalue()))
        thumbnails.append({'size': name, 'url': storage_service.public_url(saved)})
    return width, height, thumbnails
