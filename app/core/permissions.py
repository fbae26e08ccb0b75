# app/core/permissions.py

"""Canonical page-permission vocabulary.

Every page the wider application can gate lives here, together with its
category and whether cast members can be shown it. Nothing else in the
codebase should re-declare page keys.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping

from app.core.exceptions import RoleValidationError
from app.models.enums import RoleTarget


class PermissionLevel(str, Enum):
    none = "none"
    view = "view"
    edit = "edit"

    @property
    def rank(self) -> int:
        return _LEVEL_RANK[self]

    def at_least(self, other: "PermissionLevel") -> bool:
        return self.rank >= other.rank


_LEVEL_RANK = {
    PermissionLevel.none: 0,
    PermissionLevel.view: 1,
    PermissionLevel.edit: 2,
}


class Category(str, Enum):
    shift = "shift"
    user = "user"
    floor = "floor"
    store = "store"
    community = "community"


class PageKey(str, Enum):
    # shift
    timecard = "timecard"
    my_shifts = "my-shifts"
    attendance = "attendance"
    shifts = "shifts"
    pickup = "pickup"
    # user
    users = "users"
    users_personal_info = "users-personal-info"
    invitations = "invitations"
    resumes = "resumes"
    roles = "roles"
    # floor
    floor = "floor"
    slips = "slips"
    menus = "menus"
    bottles = "bottles"
    reservations = "reservations"
    queue = "queue"
    orders = "orders"
    # store
    sales = "sales"
    payroll = "payroll"
    pricing_systems = "pricing-systems"
    salary_systems = "salary-systems"
    seats = "seats"
    shopping = "shopping"
    # community
    board = "board"
    ranking = "ranking"
    sns = "sns"
    ai_create = "ai-create"
    services = "services"


@dataclass(frozen=True)
class PageDefinition:
    key: PageKey
    label: str
    category: Category
    cast_available: bool = False


@dataclass(frozen=True)
class CategoryDefinition:
    key: Category
    label: str
    pages: tuple[PageKey, ...]


# Declaration order here drives navigation order.
PAGES: tuple[PageDefinition, ...] = (
    PageDefinition(PageKey.timecard, "Timecard", Category.shift, cast_available=True),
    PageDefinition(PageKey.my_shifts, "My shifts", Category.shift, cast_available=True),
    PageDefinition(PageKey.attendance, "Attendance", Category.shift),
    PageDefinition(PageKey.shifts, "Shifts", Category.shift),
    PageDefinition(PageKey.pickup, "Pickup", Category.shift),
    PageDefinition(PageKey.users, "Profiles", Category.user),
    PageDefinition(PageKey.users_personal_info, "Personal information", Category.user),
    PageDefinition(PageKey.invitations, "Invitations", Category.user),
    PageDefinition(PageKey.resumes, "Resumes", Category.user),
    PageDefinition(PageKey.roles, "Roles", Category.user),
    PageDefinition(PageKey.floor, "Floor", Category.floor),
    PageDefinition(PageKey.slips, "Slips", Category.floor),
    PageDefinition(PageKey.menus, "Menus", Category.floor),
    PageDefinition(PageKey.bottles, "Bottle keep", Category.floor),
    PageDefinition(PageKey.reservations, "Reservations", Category.floor),
    PageDefinition(PageKey.queue, "Queue", Category.floor),
    PageDefinition(PageKey.orders, "Orders", Category.floor),
    PageDefinition(PageKey.sales, "Sales", Category.store),
    PageDefinition(PageKey.payroll, "Payroll", Category.store),
    PageDefinition(PageKey.pricing_systems, "Pricing systems", Category.store),
    PageDefinition(PageKey.salary_systems, "Salary systems", Category.store),
    PageDefinition(PageKey.seats, "Seats", Category.store),
    PageDefinition(PageKey.shopping, "Shopping list", Category.store),
    PageDefinition(PageKey.board, "Board", Category.community, cast_available=True),
    PageDefinition(PageKey.ranking, "Ranking", Category.community, cast_available=True),
    PageDefinition(PageKey.sns, "SNS", Category.community),
    PageDefinition(PageKey.ai_create, "AI create", Category.community),
    PageDefinition(PageKey.services, "Services", Category.community),
)

_CATEGORY_LABELS: Mapping[Category, str] = {
    Category.shift: "Shifts & attendance",
    Category.user: "Users",
    Category.floor: "Floor",
    Category.store: "Store",
    Category.community: "Community",
}

PAGE_REGISTRY: Mapping[PageKey, PageDefinition] = {page.key: page for page in PAGES}

CATEGORIES: tuple[CategoryDefinition, ...] = tuple(
    CategoryDefinition(
        key=category,
        label=_CATEGORY_LABELS[category],
        pages=tuple(page.key for page in PAGES if page.category == category),
    )
    for category in Category
)

_CATEGORY_REGISTRY: Mapping[Category, CategoryDefinition] = {c.key: c for c in CATEGORIES}

CAST_AVAILABLE_PAGES: tuple[PageKey, ...] = tuple(p.key for p in PAGES if p.cast_available)

# Levels a cast role may hold; cast pages are either shown or hidden.
CAST_LEVELS = frozenset({PermissionLevel.none, PermissionLevel.edit})


# ----------------------------------------------------------------
# Lookups
# ----------------------------------------------------------------
def categories_of() -> tuple[Category, ...]:
    return tuple(c.key for c in CATEGORIES)


def pages_in(category: Category | str) -> tuple[PageKey, ...]:
    return _CATEGORY_REGISTRY[Category(category)].pages


def all_pages() -> tuple[PageKey, ...]:
    """Every page key, category first, then declaration order."""
    return tuple(key for c in CATEGORIES for key in c.pages)


def is_cast_available(page_key: PageKey | str) -> bool:
    return PAGE_REGISTRY[PageKey(page_key)].cast_available


def category_of(page_key: PageKey | str) -> Category:
    return PAGE_REGISTRY[PageKey(page_key)].category


def page_label(page_key: PageKey | str) -> str:
    return PAGE_REGISTRY[PageKey(page_key)].label


def category_label(category: Category | str) -> str:
    return _CATEGORY_REGISTRY[Category(category)].label


def pages_for(for_role: RoleTarget) -> tuple[PageKey, ...]:
    if for_role == RoleTarget.cast:
        return CAST_AVAILABLE_PAGES
    return all_pages()


def default_permissions(for_role: RoleTarget) -> dict[str, str]:
    """Starting permission map for a freshly drafted role.

    Cast drafts show every cast page; staff drafts start with nothing.
    """
    if for_role == RoleTarget.cast:
        return {key.value: PermissionLevel.edit.value for key in CAST_AVAILABLE_PAGES}
    return {key.value: PermissionLevel.none.value for key in all_pages()}


# ----------------------------------------------------------------
# Validation
# ----------------------------------------------------------------
def coerce_level(value: PermissionLevel | str) -> PermissionLevel:
    try:
        return PermissionLevel(value)
    except ValueError:
        raise RoleValidationError(f"Unknown permission level '{value}'")


def coerce_page(value: PageKey | str) -> PageKey:
    try:
        return PageKey(value)
    except ValueError:
        raise RoleValidationError(f"Unknown page '{value}'")


def check_assignable(for_role: RoleTarget, page_key: PageKey, level: PermissionLevel) -> None:
    if for_role != RoleTarget.cast:
        return
    if not is_cast_available(page_key):
        raise RoleValidationError(f"Page '{page_key.value}' is not available to cast roles")
    if level not in CAST_LEVELS:
        raise RoleValidationError("Cast roles can only show or hide a page")


def validate_permissions(
    for_role: RoleTarget,
    permissions: Mapping[str, str] | Iterable[tuple[str, str]],
) -> dict[str, str]:
    """Return a normalized copy of ``permissions`` or raise RoleValidationError."""

    items = permissions.items() if isinstance(permissions, Mapping) else permissions
    normalized: dict[str, str] = {}
    for raw_key, raw_level in items:
        key = coerce_page(raw_key)
        level = coerce_level(raw_level)
        check_assignable(for_role, key, level)
        normalized[key.value] = level.value
    return normalized
