# app/services/assignment_service.py

import uuid
from typing import Optional

from loguru import logger
from sqlmodel import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    IneligibleClassError,
    InvalidAssignmentError,
    ProfileNotFoundError,
    SelfDemotionError,
)
from app.core.rbac import Actor, require_store_admin
from app.models.enums import ProfileRole, RoleTarget
from app.models.profile import Profile
from app.services.role_service import get_role

# Which role target each profile class may hold. Guests hold none.
ASSIGNABLE_TARGETS = {
    ProfileRole.admin: RoleTarget.staff,
    ProfileRole.staff: RoleTarget.staff,
    ProfileRole.cast: RoleTarget.cast,
}


async def get_profile(session: AsyncSession, store_id: uuid.UUID, profile_id: uuid.UUID) -> Profile | None:
    result = await session.execute(
        select(Profile).where(
            (Profile.id == profile_id) &
            (Profile.store_id == store_id)
        ).with_for_update()
    )
    return result.scalar_one_or_none()


async def _save(session: AsyncSession, profile: Profile) -> Profile:
    session.add(profile)
    try:
        await session.commit()
    except SQLAlchemyError:
        await session.rollback()
        logger.exception("Profile write failed for {}", profile.id)
        raise
    await session.refresh(profile)
    return profile


# ============================================================================
# ROLE BINDING
# ============================================================================
async def assign_role(
    session: AsyncSession,
    actor: Actor,
    profile_id: uuid.UUID,
    role_id: Optional[uuid.UUID],
) -> Profile:
    """Bind ``profile_id`` to ``role_id`` (or clear the binding with None)."""

    await require_store_admin(session, actor)

    profile = await get_profile(session, actor.store_id, profile_id)
    if profile is None:
        logger.warning("Assignment refused: profile {} is not in store {}", profile_id, actor.store_id)
        raise InvalidAssignmentError("Profile not found in this store")

    if role_id is not None:
        role = await get_role(session, actor.store_id, role_id)
        if role is None:
            logger.warning("Assignment refused: role {} is not in store {}", role_id, actor.store_id)
            raise InvalidAssignmentError("Role not found in this store")

        if ASSIGNABLE_TARGETS.get(profile.role) != role.for_role:
            raise InvalidAssignmentError(
                f"A {role.for_role.value} role cannot be given to a {profile.role.value} profile"
            )

    profile.role_id = role_id
    profile = await _save(session, profile)

    logger.info("Profile {} bound to role {} by {}", profile.id, role_id, actor.profile_id)
    return profile


# ============================================================================
# ADMIN DESIGNATION (staff <-> admin only)
# ============================================================================
async def set_admin_designation(
    session: AsyncSession,
    actor: Actor,
    profile_id: uuid.UUID,
    make_admin: bool,
) -> Profile:
    await require_store_admin(session, actor)

    if profile_id == actor.profile_id and not make_admin:
        logger.warning("Admin {} tried to remove their own admin permission", actor.profile_id)
        raise SelfDemotionError()

    profile = await get_profile(session, actor.store_id, profile_id)
    if profile is None:
        raise ProfileNotFoundError()

    if profile.role not in (ProfileRole.staff, ProfileRole.admin):
        # cast and guest never move through this path, in either direction
        raise IneligibleClassError()

    target = ProfileRole.admin if make_admin else ProfileRole.staff
    if profile.role == target:
        return profile

    profile.role = target
    profile = await _save(session, profile)

    logger.info(
        "Profile {} is now '{}' (changed by {})", profile.id, target.value, actor.profile_id
    )
    return profile
