from ninja import Schema
from ninja.orm import create_schema
from typing import Optional
from .models import Organization

OrganizationOut = create_schema(Organization)


class OrganizationIn(Schema):
    name: str
    slug: str
    description: str = ""
    logo: str = ""
    website: str = ""
    is_active: bool = True


class OrganizationUpdate(Schema):
    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    logo: Optional[str] = None
    website: Optional[str] = None
    is_active: Optional[bool] = None
