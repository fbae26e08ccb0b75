# app/models/store_role.py

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import Boolean, DateTime, JSON, String
from sqlalchemy import Enum as SAEnum
from datetime import datetime, timezone
import uuid
from typing import Dict

from app.models.enums import RoleTarget


class StoreRole(SQLModel, table=True):
    __tablename__ = "store_roles"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    store_id: uuid.UUID = Field(nullable=False, index=True)

    name: str = Field(sa_column=Column(String(128), nullable=False))

    for_role: RoleTarget = Field(
        sa_column=Column(SAEnum(RoleTarget, name="role_target"), nullable=False)
    )

    # {"attendance": "view", "menus": "edit"}; missing keys mean "none".
    # Always replaced as a whole, never mutated in place.
    permissions: Dict[str, str] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False)
    )

    is_system_role: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, default=False)
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
