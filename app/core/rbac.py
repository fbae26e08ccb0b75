# app/core/rbac.py

import uuid
from dataclasses import dataclass

from loguru import logger
from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import UnauthorizedError
from app.models.enums import ProfileRole
from app.models.profile import Profile


@dataclass(frozen=True)
class Actor:
    """
    Who is calling, as handed over by the authentication layer.

    Only the identity is trusted. The actor's class is always re-read from
    their profile row before a mutation, so a stale or forged "admin" claim
    never grants anything.
    """

    profile_id: uuid.UUID
    store_id: uuid.UUID

    @classmethod
    def of(cls, profile: Profile) -> "Actor":
        return cls(profile_id=profile.id, store_id=profile.store_id)


async def require_store_admin(session: AsyncSession, actor: Actor) -> Profile:
    """
    Load the actor's profile inside the caller's transaction and make sure it
    is an admin of ``actor.store_id``.

    The row is locked until the caller commits, so the check and the write
    that follows it happen in one transaction.
    """
    result = await session.execute(
        select(Profile).where(Profile.id == actor.profile_id).with_for_update()
    )
    profile = result.scalar_one_or_none()

    if profile is None or profile.store_id != actor.store_id:
        logger.warning("Rejected actor {}: no profile in store {}", actor.profile_id, actor.store_id)
        raise UnauthorizedError()

    if profile.role != ProfileRole.admin:
        logger.warning("Rejected actor {}: role '{}' is not admin", profile.id, profile.role.value)
        raise UnauthorizedError()

    return profile
