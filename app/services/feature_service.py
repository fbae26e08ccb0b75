# app/services/feature_service.py

import uuid
from types import MappingProxyType
from typing import Iterator, Mapping

from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.permissions import PageKey
from app.models.store_feature import StoreFeature


class FeatureFlags(Mapping[str, bool]):
    """
    Read-only view of a store's page toggles.

    Only stored rows are kept; any page without a row is visible, so pages
    added after a store was set up show up by default.
    """

    def __init__(self, stored: Mapping[str, bool] | None = None):
        self._stored = MappingProxyType(dict(stored or {}))

    @classmethod
    def all_visible(cls) -> "FeatureFlags":
        return cls()

    def is_visible(self, page_key: PageKey | str) -> bool:
        key = page_key.value if isinstance(page_key, PageKey) else str(page_key)
        return self._stored.get(key, True)

    def __getitem__(self, page_key: str) -> bool:
        return self.is_visible(page_key)

    def __contains__(self, page_key: object) -> bool:
        # "has a stored row", not "is visible"
        key = page_key.value if isinstance(page_key, PageKey) else page_key
        return key in self._stored

    def __iter__(self) -> Iterator[str]:
        return iter(self._stored)

    def __len__(self) -> int:
        return len(self._stored)

    def __repr__(self) -> str:
        return f"FeatureFlags({dict(self._stored)!r})"


async def get_feature_flags(session: AsyncSession, store_id: uuid.UUID) -> FeatureFlags:
    result = await session.execute(
        select(StoreFeature.page_key, StoreFeature.visible).where(StoreFeature.store_id == store_id)
    )
    return FeatureFlags({key: visible for key, visible in result.all()})


async def is_visible(session: AsyncSession, store_id: uuid.UUID, page_key: PageKey | str) -> bool:
    key = page_key.value if isinstance(page_key, PageKey) else str(page_key)
    result = await session.execute(
        select(StoreFeature.visible).where(
            (StoreFeature.store_id == store_id) &
            (StoreFeature.page_key == key)
        )
    )
    visible = result.scalar_one_or_none()
    return True if visible is None else visible
