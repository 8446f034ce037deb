"""
Object storage access for media files.

Reads, writes and deletes go through Django's default storage (django-storages
S3Storage in production, FileSystemStorage in development). Presigned upload
URLs are signed with boto3 against the S3-compatible endpoint, since clients
PUT directly into the bucket.
"""
import logging
from typing import Optional
from urllib.parse import urlparse

from django.conf import settings
from django.core.files.storage import default_storage

logger = logging.getLogger(__name__)

_s3_client = None


def s3_client():
    """Lazy initialization of the S3 client."""
    global _s3_client
    if _s3_client is None:
        import boto3
        from botocore.config import Config
        _s3_client = boto3.client(
            's3',
            config=Config(
                signature_version='s3v4',
                s3={'addressing_style': getattr(settings, 'AWS_S3_ADDRESSING_STYLE', 'auto')},
            ),
            endpoint_url=settings.AWS_S3_ENDPOINT_URL,
            region_name=settings.AWS_S3_REGION_NAME,
            aws_access_key_id=getattr(settings, 'AWS_ACCESS_KEY_ID', None),
            aws_secret_access_key=getattr(settings, 'AWS_SECRET_ACCESS_KEY', None),
        )
    return _s3_client


def get_presigned_upload_url(key: str, content_type: str, expires_in: int) -> str:
    """Signed PUT URL for uploading ``key`` directly into the bucket."""
    return s3_client().generate_presigned_url(
        'put_object',
        Params={
            'Bucket': settings.AWS_STORAGE_BUCKET_NAME,
            'Key': key,
            'ContentType': content_type,
        },
        ExpiresIn=expires_in,
    )


def public_url(key: str) -> str:
    """Public GET URL of a stored object."""
    base = getattr(settings, 'MEDIA_PUBLIC_BASE_URL', '')
    if base:
        return f"{base.rstrip('/')}/{key}"
    return default_storage.url(key)


def save_file(key: str, file) -> str:
    """Store ``file`` under ``key`` and return the key actually used."""
    saved_key = default_storage.save(key, file)
    logger.info(f"Stored media object {saved_key}")
    return saved_key


def get_object_size(key: str) -> Optional[int]:
    """Size in bytes of a stored object, or None if it does not exist."""
    if not default_storage.exists(key):
        return None
    return default_storage.size(key)


def delete_file(key: str):
    default_storage.delete(key)
    logger.info(f"Deleted media object {key}")


def key_from_url(url: str) -> Optional[str]:
    """
    Recover the object key from a public URL.

    Handles URLs under MEDIA_PUBLIC_BASE_URL and path-style bucket URLs
    (``http://host/<bucket>/<key>``).
    """
    base = getattr(settings, 'MEDIA_PUBLIC_BASE_URL', '')
    if base and url.startswith(base.rstrip('/') + '/'):
        return url[len(base.rstrip('/')) + 1:]

    parts = urlparse(url).path.lstrip('/').split('/')
    bucket = settings.AWS_STORAGE_BUCKET_NAME
    if bucket in parts:
        index = parts.index(bucket)
        if index + 1 < len(parts):
            return '/'.join(parts[index + 1:])

    media_url = getattr(settings, 'MEDIA_URL', '/media/')
    path = urlparse(url).path
    if path.startswith(media_url):
        return path[len(media_url):]
    return None


def read_file(key: str) -> bytes:
    with default_storage.open(key, 'rb') as f:
        return f.read()
