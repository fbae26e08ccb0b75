from typing import Optional
from uuid import UUID
from pydantic import BaseModel
from app.models.enums import ProfileRole


class RoleAssignmentRequest(BaseModel):
    role_id: Optional[UUID] = None   # null clears the binding


class AdminDesignationRequest(BaseModel):
    is_admin: bool


class ProfileRead(BaseModel):
    id: UUID
    store_id: UUID
    display_name: str
    role: ProfileRole
    role_id: Optional[UUID] = None

    class Config:
        from_attributes = True
