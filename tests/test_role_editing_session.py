import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from app.core.exceptions import ImmutableRoleError, RoleEditingError, RoleValidationError
from app.core.permissions import Category, PageKey, pages_in
from app.core.rbac import Actor
from app.models.enums import RoleTarget
from app.services import role_editing_session as editing_module
from app.services.feature_service import FeatureFlags
from app.services.role_editing_session import RoleEditingSession
from app.services.role_service import get_role

DELAY = 0.05


@pytest.mark.asyncio
async def test_draft_defaults_and_no_writes_before_create(prepare_db, admin):
    staff_editor = RoleEditingSession(Actor.of(admin), for_role=RoleTarget.staff, delay=DELAY)
    assert not staff_editor.is_bound
    assert set(staff_editor.permissions.values()) == {"none"}

    with patch.object(editing_module, "update_role", new=AsyncMock()) as mock_update:
        staff_editor.set_name("Hall")
        staff_editor.set_permission("menus", "view")
        await asyncio.sleep(DELAY * 3)
        mock_update.assert_not_called()

    assert not staff_editor.has_pending_save
    await staff_editor.close()


@pytest.mark.asyncio
async def test_create_binds_once(prepare_db, admin, db_session):
    editor = RoleEditingSession(Actor.of(admin), delay=DELAY)
    editor.set_name("Kitchen")
    editor.set_permission(PageKey.orders, "edit")

    role = await editor.create()

    assert editor.is_bound and editor.role_id == role.id
    assert role.permissions["orders"] == "edit"
    assert not editor.is_dirty
    with pytest.raises(RoleEditingError):
        await editor.create()

    stored = await get_role(db_session, admin.store_id, role.id)
    assert stored.name == "Kitchen"
    await editor.close()


@pytest.mark.asyncio
async def test_create_requires_a_name(prepare_db, admin):
    editor = RoleEditingSession(Actor.of(admin), delay=DELAY)
    with pytest.raises(RoleValidationError):
        await editor.create()
    assert not editor.is_bound


@pytest.mark.asyncio
async def test_rapid_edits_coalesce_into_one_write(prepare_db, admin, make_role, db_session):
    role = await make_role(admin.store_id, name="Before")
    editor = RoleEditingSession(Actor.of(admin), role=role, delay=DELAY)

    with patch.object(editing_module, "update_role", wraps=editing_module.update_role) as spy:
        editor.set_name("After")
        editor.set_category_level(Category.shift, "view")
        editor.set_category_level(Category.floor, "edit")
        editor.set_permission("menus", "none")
        editor.set_category_level(Category.shift, "edit")
        assert editor.has_pending_save and editor.is_dirty

        await editor.wait_idle()

        assert spy.await_count == 1
        sent = spy.await_args.args[3]
        assert sent.name == "After"
        assert sent.permissions == editor.permissions

    assert not editor.is_dirty
    await db_session.refresh(role)
    assert role.name == "After"
    assert role.permissions["menus"] == "none"
    assert all(role.permissions[key.value] == "edit" for key in pages_in(Category.shift))
    await editor.close()


@pytest.mark.asyncio
async def test_separate_windows_write_separately(prepare_db, admin, make_role):
    role = await make_role(admin.store_id)
    editor = RoleEditingSession(Actor.of(admin), role=role, delay=DELAY)

    with patch.object(editing_module, "update_role", new=AsyncMock(return_value=role)) as mock_update:
        editor.set_permission("sales", "view")
        await editor.wait_idle()
        editor.set_permission("sales", "edit")
        await editor.wait_idle()

    assert mock_update.await_count == 2
    assert mock_update.await_args_list[-1].args[3].permissions["sales"] == "edit"
    await editor.close()


@pytest.mark.asyncio
async def test_close_cancels_pending_write(prepare_db, admin, make_role, db_session):
    role = await make_role(admin.store_id, name="Untouched")
    editor = RoleEditingSession(Actor.of(admin), role=role, delay=DELAY)

    with patch.object(editing_module, "update_role", new=AsyncMock()) as mock_update:
        editor.set_name("Abandoned")
        await editor.close()
        await asyncio.sleep(DELAY * 3)
        mock_update.assert_not_called()

    await db_session.refresh(role)
    assert role.name == "Untouched"
    with pytest.raises(RoleEditingError):
        editor.set_name("Again")


@pytest.mark.asyncio
async def test_flush_after_close_writes_nothing(prepare_db, admin, make_role, db_session):
    role = await make_role(admin.store_id, name="Start")
    editor = RoleEditingSession(Actor.of(admin), role=role, delay=DELAY)

    editor.set_name("Abandoned")
    await editor.close()
    with pytest.raises(RoleEditingError):
        await editor.flush()

    await db_session.refresh(role)
    assert role.name == "Start"


@pytest.mark.asyncio
async def test_slow_write_is_not_overtaken(prepare_db, admin, make_role, db_session):
    role = await make_role(admin.store_id, name="Start")
    editor = RoleEditingSession(Actor.of(admin), role=role, delay=DELAY)
    real_update = editing_module.update_role
    sent = []

    async def slow_first_update(session, actor, role_id, data):
        sent.append(data.name)
        if len(sent) == 1:
            await asyncio.sleep(DELAY * 6)
        return await real_update(session, actor, role_id, data)

    with patch.object(editing_module, "update_role", new=slow_first_update):
        editor.set_name("First")
        # first window closes, its write is still running
        await asyncio.sleep(DELAY * 2)
        editor.set_name("Second")
        await editor.wait_idle()

    assert sent == ["First", "Second"]
    await db_session.refresh(role)
    assert role.name == "Second"
    assert editor.role.name == "Second"
    assert not editor.is_dirty
    await editor.close()


@pytest.mark.asyncio
async def test_failed_write_keeps_local_state(prepare_db, admin, make_role):
    role = await make_role(admin.store_id)
    editor = RoleEditingSession(Actor.of(admin), role=role, delay=DELAY)

    with patch.object(editing_module, "update_role", new=AsyncMock(side_effect=RuntimeError("connection reset"))):
        editor.set_permission("payroll", "edit")
        await editor.wait_idle()

    assert editor.permissions["payroll"] == "edit"
    assert isinstance(editor.last_error, RuntimeError)
    assert editor.is_dirty

    # next successful write reconciles
    editor.set_permission("sales", "view")
    await editor.wait_idle()
    assert editor.last_error is None
    assert not editor.is_dirty
    assert editor.role.permissions["payroll"] == "edit"
    await editor.close()


@pytest.mark.asyncio
async def test_blank_name_skips_autosave(prepare_db, admin, make_role):
    role = await make_role(admin.store_id)
    editor = RoleEditingSession(Actor.of(admin), role=role, delay=DELAY)

    with patch.object(editing_module, "update_role", new=AsyncMock()) as mock_update:
        editor.set_name("   ")
        await editor.wait_idle()
        mock_update.assert_not_called()
    await editor.close()


@pytest.mark.asyncio
async def test_bulk_set_respects_flags(prepare_db, admin, make_role):
    role = await make_role(admin.store_id, permissions={"pickup": "none", "menus": "view"})
    flags = FeatureFlags({"pickup": False})
    editor = RoleEditingSession(Actor.of(admin), role=role, flags=flags, delay=DELAY)

    with patch.object(editing_module, "update_role", new=AsyncMock(return_value=role)):
        editor.set_category_level("shift", "edit")
        state = editor.category_state("shift")
        await editor.close()

    assert state.all_edit is True
    assert editor.permissions["pickup"] == "none"
    assert editor.permissions["menus"] == "view"
    assert editor.permissions["attendance"] == "edit"


@pytest.mark.asyncio
async def test_cast_editor_is_binary(prepare_db, admin):
    editor = RoleEditingSession(Actor.of(admin), for_role=RoleTarget.cast, delay=DELAY)

    with pytest.raises(RoleValidationError):
        editor.set_permission("board", "view")
    with pytest.raises(RoleValidationError):
        editor.set_permission("payroll", "edit")
    with pytest.raises(RoleValidationError):
        editor.set_category_level("community", "view")

    editor.set_category_level("community", "none")
    assert editor.permissions["board"] == "none"
    assert editor.permissions["ranking"] == "none"
    assert "sns" not in editor.permissions
    await editor.close()


@pytest.mark.asyncio
async def test_system_role_editor_is_read_only(prepare_db, admin, make_role):
    role = await make_role(admin.store_id, name="Manager", is_system_role=True)
    editor = RoleEditingSession(Actor.of(admin), role=role, delay=DELAY)

    with pytest.raises(ImmutableRoleError):
        editor.set_name("Changed")
    with pytest.raises(ImmutableRoleError):
        editor.set_category_level("shift", "none")
    assert not editor.has_pending_save
    await editor.close()


@pytest.mark.asyncio
async def test_delete_through_editor(prepare_db, admin, db_session):
    async with RoleEditingSession(Actor.of(admin), delay=DELAY) as editor:
        editor.set_name("Temporary")
        role = await editor.create()
        editor.set_name("Temporary 2")
        await editor.delete()
        assert editor.is_closed

    assert await get_role(db_session, admin.store_id, role.id) is None
