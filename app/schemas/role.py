from datetime import datetime
from typing import Dict, List
from uuid import UUID

from pydantic import BaseModel, Field

from app.core.permissions import Category, PageKey
from app.models.enums import RoleTarget


# ---------------------------------------------------------
# WRITE (create and update carry the full role)
# ---------------------------------------------------------
class RoleData(BaseModel):
    name: str
    for_role: RoleTarget = RoleTarget.staff
    # complete map: update overwrites, it never merges
    permissions: Dict[str, str] = Field(default_factory=dict)


class RoleCreate(RoleData):
    pass


class RoleUpdate(RoleData):
    pass


# ---------------------------------------------------------
# READ
# ---------------------------------------------------------
class RoleRead(BaseModel):
    id: UUID
    store_id: UUID
    name: str
    for_role: RoleTarget
    permissions: Dict[str, str]
    is_system_role: bool
    created_at: datetime

    class Config:
        from_attributes = True


class RoleMemberRead(BaseModel):
    id: UUID
    display_name: str
    role: str

    class Config:
        from_attributes = True


class CategoryStateRead(BaseModel):
    category: Category
    pages: List[PageKey]
    all_none: bool
    all_view: bool
    all_edit: bool
