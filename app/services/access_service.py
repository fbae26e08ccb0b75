# app/services/access_service.py

"""Entry points the rest of the application calls before rendering a page."""

import uuid
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.permissions import PageKey, PermissionLevel, all_pages
from app.models.enums import ProfileRole
from app.models.profile import Profile
from app.models.store_role import StoreRole
from app.services.feature_service import FeatureFlags, get_feature_flags
from app.services.permission_service import effective_level, role_for_profile, visible_pages
from app.services.role_service import get_role


async def load_profile_role(session: AsyncSession, store_id: uuid.UUID, profile: Profile) -> Optional[StoreRole]:
    """The role that governs ``profile``, or None.

    A role_id that no longer exists (deleted role) resolves to None, as does
    a role meant for the other class of profile.
    """
    if profile.role_id is None or profile.store_id != store_id:
        return None
    role = await get_role(session, store_id, profile.role_id)
    return role_for_profile(profile.role, role)


def _admin_level(flags: FeatureFlags, page_key: PageKey) -> PermissionLevel:
    # admins skip role permissions, but a page the store switched off stays off
    return PermissionLevel.edit if flags.is_visible(page_key) else PermissionLevel.none


async def resolve_access(
    session: AsyncSession,
    store_id: uuid.UUID,
    profile: Profile,
    page_key: PageKey | str,
) -> PermissionLevel:
    page_key = PageKey(page_key)
    if profile.store_id != store_id:
        return PermissionLevel.none

    flags = await get_feature_flags(session, store_id)
    if profile.role == ProfileRole.admin:
        return _admin_level(flags, page_key)

    role = await load_profile_role(session, store_id, profile)
    return effective_level(role, flags, page_key)


async def list_visible_pages(session: AsyncSession, store_id: uuid.UUID, profile: Profile) -> list[PageKey]:
    if profile.store_id != store_id:
        return []

    flags = await get_feature_flags(session, store_id)
    if profile.role == ProfileRole.admin:
        return [key for key in all_pages() if flags.is_visible(key)]

    role = await load_profile_role(session, store_id, profile)
    return visible_pages(role, flags)
