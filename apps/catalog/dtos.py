"""Schemas for Catalog app."""
from datetime import datetime
from typing import List, Optional, Dict, Any
from uuid import UUID

from ninja import Schema
from .models import AppStatus, AppVisibility


class AppOut(Schema):
    id: UUID
    title: str
    slug: str
    short_desc: str
    long_desc: str
    status: str
    visibility: str
    release_date: Optional[datetime] = None
    platforms: List[str]
    languages: List[str]
    tags: List[str]
    organization_id: Optional[UUID] = None
    created_by_id: UUID
    website: str
    repository: str
    demo_url: str
    download_url: str
    app_store_url: str
    play_store_url: str
    view_count: int
    like_count: int
    created_at: datetime
    updated_at: datetime


class AppIn(Schema):
    title: str
    slug: Optional[str] = None
    short_desc: str
    long_desc: str = ""
    status: str = AppStatus.DRAFT
    visibility: str = AppVisibility.PUBLIC
    release_date: Optional[datetime] = None
    platforms: List[str] = []
    languages: List[str] = []
    tags: List[str] = []
    website: str = ""
    repository: str = ""
    demo_url: str = ""
    download_url: str = ""
    app_store_url: str = ""
    play_store_url: str = ""


class AppUpdate(Schema):
    title: Optional[str] = None
    slug: Optional[str] = None
    short_desc: Optional[str] = None
    long_desc: Optional[str] = None
    status: Optional[str] = None
    visibility: Optional[str] = None
    release_date: Optional[datetime] = None
    platforms: Optional[List[str]] = None
    languages: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    website: Optional[str] = None
    repository: Optional[str] = None
    demo_url: Optional[str] = None
    download_url: Optional[str] = None
    app_store_url: Optional[str] = None
    play_store_url: Optional[str] = None


class AppFilters(Schema):
    status: Optional[str] = None
    visibility: Optional[str] = None
    platforms: List[str] = []
    tags: List[str] = []
    search: Optional[str] = None
    organization_id: Optional[UUID] = None


class AppPage(Schema):
    items: List[AppOut]
    total_count: int
    limit: int
    offset: int


class ToggleResult(Schema):
    changed: bool


class FlagResult(Schema):
    value: bool


class AppVersionOut(Schema):
    id: UUID
    app_id: UUID
    version: str
    changelog: str
    released_at: datetime
    released_by_id: UUID
    is_latest: bool
    download_url: str
    release_notes: str
    metadata: Dict[str, Any]
    created_at: datetime


class AppVersionIn(Schema):
    version: str
    changelog: str = ""
    released_at: Optional[datetime] = None
    is_latest: bool = False
    download_url: str = ""
    release_notes: str = ""
    metadata: Dict[str, Any] = {}


class DashboardStats(Schema):
    total_apps: int
    published_apps: int
    draft_apps: int
    archived_apps: int
    total_views: int
    total_likes: int
    total_users: int
    total_organizations: int
    recent_apps: List[AppOut]
