from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from ninja import Schema


class EnumOption(Schema):
    id: str
    value: str
    label: str


class EnumOut(Schema):
    id: UUID
    key: str
    options: List[EnumOption]
    created_at: datetime
    updated_at: datetime


class EnumOptionIn(Schema):
    """``id`` is kept when given, otherwise a new one is generated."""
    value: str
    label: str
    id: Optional[str] = None


class EnumCreate(Schema):
    key: str
    options: List[EnumOptionIn]


class EnumUpdate(Schema):
    options: List[EnumOptionIn]


class EnumUsage(Schema):
    key: str
    counts: Dict[str, int] = {}
    message: Optional[str] = None
