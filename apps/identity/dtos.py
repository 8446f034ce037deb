"""DTOs for Identity app."""
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID
from typing import Optional, List

from ninja import Schema
from .models import UserRole


@dataclass(frozen=True)
class UserDTO:
    id: UUID
    username: str
    email: str
    name: str
    role: str
    org_id: Optional[UUID]
    avatar: str
    is_active: bool
    permissions: List[str]
    last_login_at: Optional[datetime]
    created_at: datetime


class UserCreate(Schema):
    username: str
    email: str
    password: str
    name: str
    role: str = UserRole.VIEWER
    org_id: Optional[UUID] = None
    avatar: Optional[str] = None


class RegisterIn(Schema):
    username: str
    email: str
    password: str
    name: str
    role: Optional[str] = None


class UserUpdate(Schema):
    username: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = None
    org_id: Optional[UUID] = None
    avatar: Optional[str] = None
    is_active: Optional[bool] = None


class ChangePasswordIn(Schema):
    current_password: str
    new_password: str


class UserPage(Schema):
    items: List[UserDTO]
    total_count: int
    limit: int
    offset: int
