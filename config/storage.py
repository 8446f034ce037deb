"""
Media storage settings.

With USE_S3_STORAGE=true, files go to an S3-compatible bucket through
django-storages (AWS S3, or MinIO when AWS_S3_ENDPOINT_URL is set). Otherwise
they are written under MEDIA_ROOT. The bucket settings are defined either
way because presigned upload URLs are always signed against the bucket.
"""
import os
from pathlib import Path

USE_S3 = os.getenv('USE_S3_STORAGE', 'false').lower() == 'true'

STATICFILES_STORAGE = {'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage'}


def get_storage_settings(base_dir: Path) -> dict:
    bucket = {
        'AWS_STORAGE_BUCKET_NAME': os.getenv('AWS_STORAGE_BUCKET_NAME', 'showcase-media'),
        'AWS_S3_REGION_NAME': os.getenv('AWS_S3_REGION_NAME', 'us-east-1'),
        'AWS_S3_ENDPOINT_URL': os.getenv('AWS_S3_ENDPOINT_URL') or None,
        'AWS_ACCESS_KEY_ID': os.getenv('AWS_ACCESS_KEY_ID'),
        'AWS_SECRET_ACCESS_KEY': os.getenv('AWS_SECRET_ACCESS_KEY'),
        # Base of the public GET URL stored on Media records
        'MEDIA_PUBLIC_BASE_URL': os.getenv('MEDIA_PUBLIC_BASE_URL', ''),
        'PRESIGNED_URL_EXPIRES_SECONDS': int(os.getenv('PRESIGNED_URL_EXPIRES_SECONDS', '3600')),
        'MEDIA_URL': '/media/',
        'MEDIA_ROOT': base_dir / 'media',
    }

    if not USE_S3:
        return {
            **bucket,
            'STORAGES': {
                'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
                'staticfiles': STATICFILES_STORAGE,
            },
        }

    return {
        **bucket,
        'STORAGES': {
            'default': {'BACKEND': 'storages.backends.s3.S3Storage'},
            'staticfiles': STATICFILES_STORAGE,
        },
        'AWS_S3_FILE_OVERWRITE': False,
        'AWS_DEFAULT_ACL': None,
        'AWS_S3_CUSTOM_DOMAIN': os.getenv('AWS_S3_CUSTOM_DOMAIN') or None,
        # MinIO needs path-style addressing
        'AWS_S3_ADDRESSING_STYLE': 'path' if os.getenv('AWS_S3_ENDPOINT_URL') else 'auto',
        'AWS_QUERYSTRING_AUTH': False,
        'AWS_S3_OBJECT_PARAMETERS': {'CacheControl': 'max-age=86400'},
    }


def is_s3_enabled() -> bool:
    return USE_S3
