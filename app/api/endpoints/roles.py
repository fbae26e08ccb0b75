# app/api/endpoints/roles.py

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_actor, get_db_session, require_role_viewer
from app.core.exceptions import RoleNotFoundError
from app.core.permissions import categories_of
from app.core.rbac import Actor
from app.models.enums import RoleTarget
from app.models.profile import Profile
from app.schemas.role import CategoryStateRead, RoleCreate, RoleMemberRead, RoleRead, RoleUpdate
from app.services.feature_service import get_feature_flags
from app.services.permission_service import category_state, shown_pages_in
from app.services.role_service import (
    create_role,
    delete_role,
    get_role,
    list_role_members,
    list_roles,
    update_role,
)

router = APIRouter(prefix="/api/roles", tags=["Roles"])


# -------------------------------------------------------------------
# List roles of the caller's store (oldest first)
# -------------------------------------------------------------------
@router.get("", response_model=List[RoleRead])
async def list_store_roles(
    for_role: Optional[RoleTarget] = None,
    current: Profile = Depends(require_role_viewer),
    session: AsyncSession = Depends(get_db_session),
):
    return await list_roles(session, current.store_id, for_role=for_role)


# -------------------------------------------------------------------
# Create (admin only, checked in the service)
# -------------------------------------------------------------------
@router.post("", response_model=RoleRead, status_code=status.HTTP_201_CREATED)
async def create_store_role(
    data: RoleCreate,
    actor: Actor = Depends(get_current_actor),
    session: AsyncSession = Depends(get_db_session),
):
    return await create_role(session, actor, data)


@router.get("/{role_id}", response_model=RoleRead)
async def get_store_role(
    role_id: UUID,
    current: Profile = Depends(require_role_viewer),
    session: AsyncSession = Depends(get_db_session),
):
    role = await get_role(session, current.store_id, role_id)
    if not role:
        raise RoleNotFoundError()
    return role


@router.put("/{role_id}", response_model=RoleRead)
async def update_store_role(
    role_id: UUID,
    data: RoleUpdate,
    actor: Actor = Depends(get_current_actor),
    session: AsyncSession = Depends(get_db_session),
):
    return await update_role(session, actor, role_id, data)


@router.delete("/{role_id}")
async def delete_store_role(
    role_id: UUID,
    actor: Actor = Depends(get_current_actor),
    session: AsyncSession = Depends(get_db_session),
):
    await delete_role(session, actor, role_id)
    return {"detail": "Role deleted successfully"}


# -------------------------------------------------------------------
# Who holds this role
# -------------------------------------------------------------------
@router.get("/{role_id}/members", response_model=List[RoleMemberRead])
async def get_role_members(
    role_id: UUID,
    current: Profile = Depends(require_role_viewer),
    session: AsyncSession = Depends(get_db_session),
):
    return await list_role_members(session, current.store_id, role_id)


# -------------------------------------------------------------------
# Quick-set button state per category (editor helper)
# -------------------------------------------------------------------
@router.get("/{role_id}/categories", response_model=List[CategoryStateRead])
async def get_role_category_states(
    role_id: UUID,
    current: Profile = Depends(require_role_viewer),
    session: AsyncSession = Depends(get_db_session),
):
    role = await get_role(session, current.store_id, role_id)
    if not role:
        raise RoleNotFoundError()

    flags = await get_feature_flags(session, current.store_id)
    states = []
    for category in categories_of():
        state = category_state(role, flags, category)
        states.append(CategoryStateRead(
            category=category,
            pages=shown_pages_in(category, flags),
            all_none=state.all_none,
            all_view=state.all_view,
            all_edit=state.all_edit,
        ))
    return states
