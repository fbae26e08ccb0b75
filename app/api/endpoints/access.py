# app/api/endpoints/access.py

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_profile, get_db_session
from app.core.permissions import PageKey
from app.models.profile import Profile
from app.schemas.access import PageAccessRead, VisiblePagesRead
from app.services.access_service import list_visible_pages, resolve_access
from app.services.permission_service import can_edit, has_access

router = APIRouter(prefix="/api/access", tags=["Access"])


# Navigation menu for the caller
@router.get("/pages", response_model=VisiblePagesRead)
async def my_visible_pages(
    current: Profile = Depends(get_current_profile),
    session: AsyncSession = Depends(get_db_session),
):
    pages = await list_visible_pages(session, current.store_id, current)
    return VisiblePagesRead(pages=pages)


# What the caller may do on one page
@router.get("/pages/{page_key}", response_model=PageAccessRead)
async def my_page_access(
    page_key: PageKey,
    current: Profile = Depends(get_current_profile),
    session: AsyncSession = Depends(get_db_session),
):
    level = await resolve_access(session, current.store_id, current, page_key)
    return PageAccessRead(
        page_key=page_key,
        level=level,
        has_access=has_access(level),
        can_edit=can_edit(level),
    )
