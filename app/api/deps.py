# app/api/deps.py

from typing import AsyncGenerator
import uuid

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.security import decode_token
from app.core.database import get_session
from app.core.rbac import Actor
from app.models.enums import ProfileRole
from app.models.profile import Profile


# ------------------------------------------------------------
# HTTP Bearer Authentication
# ------------------------------------------------------------
bearer_scheme = HTTPBearer(auto_error=True)


# ------------------------------------------------------------
# DB Session
# ------------------------------------------------------------
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_session():
        yield session


# ------------------------------------------------------------
# Current profile from the bearer token
# ------------------------------------------------------------
async def get_current_profile(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_db_session),
) -> Profile:
    """
    The token only names the profile. Store and class come from the row,
    never from claims.
    """
    try:
        payload = decode_token(credentials.credentials)
        profile_id = uuid.UUID(str(payload.get("id")))
    except (jwt.InvalidTokenError, ValueError):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Could not validate credentials")

    result = await session.execute(select(Profile).where(Profile.id == profile_id))
    profile = result.scalar_one_or_none()

    if not profile:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Profile not found")

    return profile


async def get_current_actor(profile: Profile = Depends(get_current_profile)) -> Actor:
    return Actor.of(profile)


# ------------------------------------------------------------
# Coarse class gate for read-only screens
# ------------------------------------------------------------
def allow_classes(*allowed: ProfileRole):
    """
    Reject profiles whose class is not in ``allowed``.

    Mutations do not rely on this; the services re-check admin rights
    themselves inside their own transaction.
    """
    allowed_values = {ProfileRole(r) for r in allowed}

    async def checker(profile: Profile = Depends(get_current_profile)) -> Profile:
        if profile.role not in allowed_values:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied for role '{profile.role.value}'"
            )
        return profile

    return checker


require_role_viewer = allow_classes(ProfileRole.admin, ProfileRole.staff)
