# app/services/role_service.py

import uuid
from dataclasses import dataclass

from loguru import logger
from sqlmodel import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ImmutableRoleError, RoleNotFoundError, RoleValidationError
from app.core.permissions import PermissionLevel, all_pages, default_permissions, validate_permissions
from app.core.rbac import Actor, require_store_admin
from app.models.enums import RoleTarget
from app.models.profile import Profile
from app.models.store_role import StoreRole
from app.schemas.role import RoleData

MAX_NAME_LENGTH = 128


@dataclass(frozen=True)
class SystemRoleDefinition:
    """Seed data for the built-in, immutable roles every store gets."""

    name: str
    for_role: RoleTarget
    permissions: dict


SYSTEM_ROLES: tuple[SystemRoleDefinition, ...] = (
    SystemRoleDefinition(
        name="Manager",
        for_role=RoleTarget.staff,
        permissions={key.value: PermissionLevel.edit.value for key in all_pages()},
    ),
    SystemRoleDefinition(
        name="Cast",
        for_role=RoleTarget.cast,
        permissions=default_permissions(RoleTarget.cast),
    ),
)


def _clean_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise RoleValidationError("Role name is required")
    if len(cleaned) > MAX_NAME_LENGTH:
        raise RoleValidationError(f"Role name must be at most {MAX_NAME_LENGTH} characters")
    return cleaned


async def _commit(session: AsyncSession) -> None:
    try:
        await session.commit()
    except SQLAlchemyError:
        await session.rollback()
        logger.exception("Role write failed")
        raise


# ============================================================================
# READS
# ============================================================================
async def get_role(session: AsyncSession, store_id: uuid.UUID, role_id: uuid.UUID) -> StoreRole | None:
    # filtering on store_id makes another store's role look exactly like a missing one
    result = await session.execute(
        select(StoreRole).where(
            (StoreRole.id == role_id) &
            (StoreRole.store_id == store_id)
        )
    )
    return result.scalar_one_or_none()


async def list_roles(
    session: AsyncSession,
    store_id: uuid.UUID,
    for_role: RoleTarget | None = None,
) -> list[StoreRole]:
    query = select(StoreRole).where(StoreRole.store_id == store_id)
    if for_role is not None:
        query = query.where(StoreRole.for_role == for_role)

    result = await session.execute(query.order_by(StoreRole.created_at.asc()))
    return list(result.scalars().all())


async def list_role_members(session: AsyncSession, store_id: uuid.UUID, role_id: uuid.UUID) -> list[Profile]:
    if await get_role(session, store_id, role_id) is None:
        raise RoleNotFoundError()

    result = await session.execute(
        select(Profile).where(
            (Profile.store_id == store_id) &
            (Profile.role_id == role_id)
        ).order_by(Profile.created_at.asc())
    )
    return list(result.scalars().all())


async def _get_role_for_update(session: AsyncSession, store_id: uuid.UUID, role_id: uuid.UUID) -> StoreRole:
    result = await session.execute(
        select(StoreRole).where(
            (StoreRole.id == role_id) &
            (StoreRole.store_id == store_id)
        ).with_for_update()
    )
    role = result.scalar_one_or_none()
    if role is None:
        raise RoleNotFoundError()
    return role


# ============================================================================
# CREATE
# ============================================================================
async def create_role(session: AsyncSession, actor: Actor, data: RoleData) -> StoreRole:
    await require_store_admin(session, actor)

    role = StoreRole(
        store_id=actor.store_id,
        name=_clean_name(data.name),
        for_role=data.for_role,
        permissions=validate_permissions(data.for_role, data.permissions),
        is_system_role=False,
    )
    session.add(role)
    await _commit(session)
    await session.refresh(role)

    logger.info("Role '{}' ({}) created in store {} by {}", role.name, role.id, role.store_id, actor.profile_id)
    return role


# ============================================================================
# UPDATE (whole-record overwrite)
# ============================================================================
async def update_role(session: AsyncSession, actor: Actor, role_id: uuid.UUID, data: RoleData) -> StoreRole:
    await require_store_admin(session, actor)
    role = await _get_role_for_update(session, actor.store_id, role_id)

    if role.is_system_role:
        logger.warning("Refused to update system role {} for {}", role.id, actor.profile_id)
        raise ImmutableRoleError("System roles cannot be changed")

    name = _clean_name(data.name)
    permissions = validate_permissions(data.for_role, data.permissions)

    role.name = name
    role.for_role = data.for_role
    role.permissions = permissions

    session.add(role)
    await _commit(session)
    await session.refresh(role)

    logger.info("Role {} updated by {}", role.id, actor.profile_id)
    return role


# ============================================================================
# DELETE (profiles keep their role_id; the resolver treats it as no role)
# ============================================================================
async def delete_role(session: AsyncSession, actor: Actor, role_id: uuid.UUID) -> None:
    await require_store_admin(session, actor)
    role = await _get_role_for_update(session, actor.store_id, role_id)

    if role.is_system_role:
        logger.warning("Refused to delete system role {} for {}", role.id, actor.profile_id)
        raise ImmutableRoleError("System roles cannot be deleted")

    await session.delete(role)
    await _commit(session)

    logger.info("Role {} deleted by {}", role_id, actor.profile_id)


# ============================================================================
# SYSTEM ROLES
# ============================================================================
async def seed_system_roles(session: AsyncSession, store_id: uuid.UUID) -> list[StoreRole]:
    """Insert any built-in role the store is missing. Safe to run repeatedly."""

    result = await session.execute(
        select(StoreRole.name).where(
            (StoreRole.store_id == store_id) &
            (StoreRole.is_system_role == True)  # noqa: E712
        )
    )
    existing = set(result.scalars().all())

    created = []
    for definition in SYSTEM_ROLES:
        if definition.name in existing:
            continue
        role = StoreRole(
            store_id=store_id,
            name=definition.name,
            for_role=definition.for_role,
            permissions=dict(definition.permissions),
            is_system_role=True,
        )
        session.add(role)
        created.append(role)

    if created:
        await _commit(session)
        logger.info("Seeded {} system role(s) for store {}", len(created), store_id)
    return created
