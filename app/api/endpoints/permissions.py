# app/api/endpoints/permissions.py

from fastapi import APIRouter

from app.core.permissions import (
    CAST_AVAILABLE_PAGES,
    CATEGORIES,
    PAGE_REGISTRY,
    PermissionLevel,
)
from app.schemas.access import CategoryRead, PageRead, VocabularyRead

router = APIRouter(prefix="/api/permissions", tags=["Permissions"])


@router.get("/vocabulary", response_model=VocabularyRead)
async def get_vocabulary():
    """Static page list the role editor renders; identical for every store."""
    return VocabularyRead(
        levels=list(PermissionLevel),
        categories=[
            CategoryRead(
                key=category.key,
                label=category.label,
                pages=[
                    PageRead(
                        key=key,
                        label=PAGE_REGISTRY[key].label,
                        cast_available=PAGE_REGISTRY[key].cast_available,
                    )
                    for key in category.pages
                ],
            )
            for category in CATEGORIES
        ],
        cast_pages=list(CAST_AVAILABLE_PAGES),
    )
