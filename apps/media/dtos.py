"""Schemas for Media app."""
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from ninja import Schema


class MediaOut(Schema):
    id: UUID
    app_id: UUID
    organization_id: Optional[UUID] = None
    user_id: Optional[UUID] = None
    type: str
    url: str
    filename: str
    original_name: str
    mime_type: str
    size: int
    width: Optional[int] = None
    height: Optional[int] = None
    order: int
    is_active: bool
    meta: Dict[str, Any]
    uploaded_by_id: UUID
    created_by_id: UUID
    created_at: datetime
    updated_at: datetime


class PresignedUrlRequest(Schema):
    content_type: str


class PresignedUrlResponse(Schema):
    upload_url: str
    filename: str
    expires_in: int


class MediaIn(Schema):
    """Registers an object that was uploaded with a presigned URL."""
    app_id: UUID
    type: str
    filename: str
    url: Optional[str] = None
    original_name: str = ""
    mime_type: str
    size: int = 0
    width: Optional[int] = None
    height: Optional[int] = None
    order: int = 0


class MediaUpdate(Schema):
    meta: Optional[Dict[str, Any]] = None
    order: Optional[int] = None
    is_active: Optional[bool] = None
