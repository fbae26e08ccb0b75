# app/models/store_feature.py

from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint
from typing import Optional
import uuid


class StoreFeature(SQLModel, table=True):
    """Per-store page toggle. No row for a page means the page is shown."""

    __tablename__ = "store_features"
    __table_args__ = (UniqueConstraint("store_id", "page_key", name="uq_store_feature"),)

    id: Optional[int] = Field(default=None, primary_key=True)

    store_id: uuid.UUID = Field(nullable=False, index=True)
    page_key: str = Field(nullable=False, max_length=64)
    visible: bool = Field(default=True, nullable=False)
