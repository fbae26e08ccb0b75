# app/api/endpoints/profiles.py

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_actor, get_db_session
from app.core.rbac import Actor
from app.schemas.profile import AdminDesignationRequest, ProfileRead, RoleAssignmentRequest
from app.services.assignment_service import assign_role, set_admin_designation

router = APIRouter(prefix="/api/profiles", tags=["Profiles"])


# Bind a profile to a store role (null role_id unbinds)
@router.put("/{profile_id}/role", response_model=ProfileRead)
async def assign_profile_role(
    profile_id: UUID,
    data: RoleAssignmentRequest,
    actor: Actor = Depends(get_current_actor),
    session: AsyncSession = Depends(get_db_session),
):
    return await assign_role(session, actor, profile_id, data.role_id)


# Grant or revoke admin for a staff member
@router.put("/{profile_id}/admin", response_model=ProfileRead)
async def set_profile_admin(
    profile_id: UUID,
    data: AdminDesignationRequest,
    actor: Actor = Depends(get_current_actor),
    session: AsyncSession = Depends(get_db_session),
):
    return await set_admin_designation(session, actor, profile_id, data.is_admin)
