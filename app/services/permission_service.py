# app/services/permission_service.py

"""Pure permission resolution.

Nothing in here touches the database; callers load the role and the store's
feature flags and pass them in.
"""

from dataclasses import dataclass
from typing import Mapping, Optional

from app.core.permissions import (
    Category,
    PageKey,
    PermissionLevel,
    categories_of,
    coerce_level,
    pages_in,
)
from app.models.enums import ProfileRole, RoleTarget
from app.models.store_role import StoreRole
from app.services.feature_service import FeatureFlags


@dataclass(frozen=True)
class CategoryState:
    """Which quick-set button of a category is active. Not mutually exclusive."""

    all_none: bool
    all_view: bool
    all_edit: bool


def _stored_level(permissions: Mapping[str, str], page_key: PageKey) -> PermissionLevel:
    raw = permissions.get(page_key.value)
    if raw is None:
        return PermissionLevel.none
    try:
        return PermissionLevel(raw)
    except ValueError:
        # rows written before a level was renamed resolve to nothing
        return PermissionLevel.none


def effective_level(
    role: Optional[StoreRole],
    flags: FeatureFlags,
    page_key: PageKey | str,
) -> PermissionLevel:
    page_key = PageKey(page_key)
    if role is None or not flags.is_visible(page_key):
        return PermissionLevel.none
    return _stored_level(role.permissions or {}, page_key)


def has_access(level: PermissionLevel | str) -> bool:
    return PermissionLevel(level).at_least(PermissionLevel.view)


def can_edit(level: PermissionLevel | str) -> bool:
    return PermissionLevel(level).at_least(PermissionLevel.edit)


def visible_pages(role: Optional[StoreRole], flags: FeatureFlags) -> list[PageKey]:
    """Pages the role can open, in navigation order (category, then page)."""
    return [
        page_key
        for category in categories_of()
        for page_key in pages_in(category)
        if has_access(effective_level(role, flags, page_key))
    ]


def shown_pages_in(category: Category | str, flags: FeatureFlags) -> list[PageKey]:
    return [key for key in pages_in(category) if flags.is_visible(key)]


def category_state(
    role: Optional[StoreRole],
    flags: FeatureFlags,
    category: Category | str,
) -> CategoryState:
    permissions = role.permissions if role is not None else {}
    return permissions_category_state(permissions or {}, flags, category)


def permissions_category_state(
    permissions: Mapping[str, str],
    flags: FeatureFlags,
    category: Category | str,
) -> CategoryState:
    # Hidden pages do not count. An empty category reports every state active.
    levels = [_stored_level(permissions, key) for key in shown_pages_in(category, flags)]
    return CategoryState(
        all_none=all(level == PermissionLevel.none for level in levels),
        all_view=all(level == PermissionLevel.view for level in levels),
        all_edit=all(level == PermissionLevel.edit for level in levels),
    )


def apply_category_level(
    permissions: Mapping[str, str],
    category: Category | str,
    level: PermissionLevel | str,
    flags: FeatureFlags,
) -> dict[str, str]:
    """Return a copy of ``permissions`` with every shown page of ``category`` set to ``level``."""
    level = coerce_level(level)
    updated = dict(permissions)
    for key in shown_pages_in(category, flags):
        updated[key.value] = level.value
    return updated


def role_for_profile(profile_role: ProfileRole, role: Optional[StoreRole]) -> Optional[StoreRole]:
    """
    Drop a role that does not belong to the profile's class.

    Cast profiles only ever resolve through cast roles, staff profiles only
    through staff roles. Guests never hold a role.
    """
    if role is None:
        return None
    if profile_role == ProfileRole.cast:
        return role if role.for_role == RoleTarget.cast else None
    if profile_role in (ProfileRole.staff, ProfileRole.admin):
        return role if role.for_role == RoleTarget.staff else None
    return None
