from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from ninja import Schema

from .models import EventType


class TimelineEventOut(Schema):
    id: UUID
    app_id: UUID
    title: str
    description: str
    type: str
    date: datetime
    is_public: bool
    version: str
    url: str
    metadata: Dict[str, Any]
    created_by_id: UUID
    created_at: datetime
    updated_at: datetime


class TimelineEventIn(Schema):
    app_id: UUID
    title: str
    description: str = ""
    type: str = EventType.ANNOUNCEMENT
    date: datetime
    is_public: bool = True
    version: str = ""
    url: str = ""
    metadata: Dict[str, Any] = {}


class TimelineEventUpdate(Schema):
    title: Optional[str] = None
    description: Optional[str] = None
    type: Optional[str] = None
    date: Optional[datetime] = None
    is_public: Optional[bool] = None
    version: Optional[str] = None
    url: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class TimelineEventPage(Schema):
    items: List[TimelineEventOut]
    total_count: int
    limit: int
    offset: int
