# app/models/profile.py

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import DateTime
from sqlalchemy import Enum as SAEnum
from datetime import datetime, timezone
import uuid
from typing import Optional

from app.models.enums import ProfileRole


class Profile(SQLModel, table=True):
    __tablename__ = "profiles"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    store_id: uuid.UUID = Field(nullable=False, index=True)

    display_name: str = Field(default="", nullable=False)

    # coarse class; only staff <-> admin is ever changed by this service
    role: ProfileRole = Field(
        sa_column=Column(SAEnum(ProfileRole, name="profile_role"), nullable=False)
    )

    # No foreign key: deleting a role leaves profiles pointing at nothing,
    # and the resolver treats that as "no role".
    role_id: Optional[uuid.UUID] = Field(default=None, nullable=True, index=True)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
