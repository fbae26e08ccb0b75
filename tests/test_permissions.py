import pytest

from app.core.exceptions import RoleValidationError
from app.core.permissions import (
    CAST_AVAILABLE_PAGES,
    Category,
    PageKey,
    PermissionLevel,
    all_pages,
    categories_of,
    category_of,
    default_permissions,
    is_cast_available,
    pages_in,
    validate_permissions,
)
from app.models.enums import RoleTarget


def test_categories_in_declaration_order():
    assert categories_of() == (
        Category.shift, Category.user, Category.floor, Category.store, Category.community
    )


def test_every_page_belongs_to_exactly_one_category():
    seen = [key for category in categories_of() for key in pages_in(category)]
    assert len(seen) == len(set(seen)) == len(PageKey)
    assert tuple(seen) == all_pages()
    assert category_of("attendance") == Category.shift
    assert PageKey.menus in pages_in("floor")


def test_cast_pages_are_a_strict_subset():
    assert set(CAST_AVAILABLE_PAGES) < set(all_pages())
    assert set(CAST_AVAILABLE_PAGES) == {
        PageKey.timecard, PageKey.my_shifts, PageKey.ranking, PageKey.board
    }
    assert is_cast_available("board")
    assert not is_cast_available("payroll")


def test_levels_are_totally_ordered():
    none, view, edit = PermissionLevel.none, PermissionLevel.view, PermissionLevel.edit
    assert none.rank < view.rank < edit.rank
    assert edit.at_least(view) and view.at_least(none)
    assert not none.at_least(view)


def test_default_permissions_per_target():
    cast = default_permissions(RoleTarget.cast)
    assert cast == {key.value: "edit" for key in CAST_AVAILABLE_PAGES}

    staff = default_permissions(RoleTarget.staff)
    assert set(staff) == {key.value for key in all_pages()}
    assert set(staff.values()) == {"none"}


def test_validate_permissions_normalizes_known_keys():
    result = validate_permissions(RoleTarget.staff, {"attendance": "view", PageKey.menus: PermissionLevel.edit})
    assert result == {"attendance": "view", "menus": "edit"}


@pytest.mark.parametrize("permissions", [
    {"not-a-page": "edit"},
    {"attendance": "admin"},
])
def test_validate_permissions_rejects_unknown_values(permissions):
    with pytest.raises(RoleValidationError):
        validate_permissions(RoleTarget.staff, permissions)


def test_cast_roles_are_binary_and_limited_to_cast_pages():
    assert validate_permissions(RoleTarget.cast, {"timecard": "none", "board": "edit"}) == {
        "timecard": "none", "board": "edit"
    }
    with pytest.raises(RoleValidationError):
        validate_permissions(RoleTarget.cast, {"timecard": "view"})
    with pytest.raises(RoleValidationError):
        validate_permissions(RoleTarget.cast, {"payroll": "edit"})
