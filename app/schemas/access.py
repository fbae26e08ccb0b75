from typing import List
from pydantic import BaseModel

from app.core.permissions import Category, PageKey, PermissionLevel


class PageAccessRead(BaseModel):
    page_key: PageKey
    level: PermissionLevel
    has_access: bool
    can_edit: bool


class VisiblePagesRead(BaseModel):
    pages: List[PageKey]


# ---------------------------------------------------------
# VOCABULARY
# ---------------------------------------------------------
class PageRead(BaseModel):
    key: PageKey
    label: str
    cast_available: bool


class CategoryRead(BaseModel):
    key: Category
    label: str
    pages: List[PageRead]


class VocabularyRead(BaseModel):
    levels: List[PermissionLevel]
    categories: List[CategoryRead]
    cast_pages: List[PageKey]
