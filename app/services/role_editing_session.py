# app/services/role_editing_session.py

"""Create-then-autosave editing of a single store role.

A session starts either as a local draft (no id yet) or bound to an existing
role. Once bound, every change is applied locally right away and a single
debounced write carrying the whole current state follows after the editor
goes quiet for ``delay`` seconds. Bursts of changes collapse into one
``update_role`` call.

Writes from one session go out one at a time, in order, each carrying the
state as it is when the write starts. Failed writes do not roll local state
back. The failure is kept in ``last_error`` and ``is_dirty`` stays true until
a later write succeeds. Concurrent editors of the same role race; the last
write wins.
"""

import asyncio
from typing import Callable, Optional, Set

from loguru import logger

from app.core.config import settings
from app.core.database import AsyncSessionLocal
from app.core.exceptions import ImmutableRoleError, RoleEditingError, RoleValidationError
from app.core.permissions import (
    CAST_LEVELS,
    Category,
    PageKey,
    PermissionLevel,
    check_assignable,
    coerce_level,
    coerce_page,
    default_permissions,
    is_cast_available,
)
from app.core.rbac import Actor
from app.models.enums import RoleTarget
from app.models.store_role import StoreRole
from app.schemas.role import RoleCreate, RoleUpdate
from app.services.feature_service import FeatureFlags
from app.services.permission_service import (
    CategoryState,
    apply_category_level,
    permissions_category_state,
    shown_pages_in,
)
from app.services.role_service import create_role, delete_role, update_role


class RoleEditingSession:

    def __init__(
        self,
        actor: Actor,
        for_role: RoleTarget = RoleTarget.staff,
        role: Optional[StoreRole] = None,
        flags: Optional[FeatureFlags] = None,
        delay: Optional[float] = None,
        session_factory: Optional[Callable] = None,
    ):
        self.actor = actor
        self.flags = flags if flags is not None else FeatureFlags.all_visible()
        self.delay = settings.ROLE_AUTOSAVE_DELAY_SECONDS if delay is None else delay
        self._session_factory = session_factory or AsyncSessionLocal

        self.role = role
        if role is not None:
            self.for_role = role.for_role
            self.name = role.name
            self.permissions = dict(role.permissions or {})
        else:
            self.for_role = for_role
            self.name = ""
            self.permissions = default_permissions(for_role)

        self.last_error: Optional[Exception] = None

        self._version = 0
        self._saved_version = 0
        self._pending: Optional[asyncio.Task] = None
        self._in_flight: Set[asyncio.Task] = set()
        self._write_lock = asyncio.Lock()
        self._creating = False
        self._closed = False

    # ------------------------------------------------------------------
    # state
    # ------------------------------------------------------------------
    @property
    def role_id(self):
        return self.role.id if self.role is not None else None

    @property
    def is_bound(self) -> bool:
        return self.role is not None

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def has_pending_save(self) -> bool:
        return self._pending is not None and not self._pending.done()

    @property
    def is_dirty(self) -> bool:
        """Local changes that have not been written successfully yet."""
        return self.is_bound and self._version != self._saved_version

    def category_state(self, category: Category | str) -> CategoryState:
        return permissions_category_state(self.permissions, self.flags, category)

    def _ensure_editable(self) -> None:
        if self._closed:
            raise RoleEditingError("This role editor has been closed")
        if self.role is not None and self.role.is_system_role:
            raise ImmutableRoleError("System roles cannot be changed")

    # ------------------------------------------------------------------
    # draft -> persisted
    # ------------------------------------------------------------------
    async def create(self) -> StoreRole:
        if self._closed:
            raise RoleEditingError("This role editor has been closed")
        if self.is_bound or self._creating:
            raise RoleEditingError("This role has already been created")

        snapshot = self._version
        data = RoleCreate(name=self.name.strip(), for_role=self.for_role, permissions=dict(self.permissions))

        self._creating = True
        try:
            async with self._session_factory() as session:
                role = await create_role(session, self.actor, data)
        finally:
            self._creating = False

        self.role = role
        self._saved_version = snapshot
        if self._version != snapshot and not self._closed:
            # edits made while the insert was in flight
            self._schedule()
        return role

    # ------------------------------------------------------------------
    # mutations (optimistic)
    # ------------------------------------------------------------------
    def set_name(self, name: str) -> None:
        self._ensure_editable()
        self.name = name
        self._changed()

    def set_permission(self, page_key: PageKey | str, level: PermissionLevel | str) -> None:
        self._ensure_editable()
        key = coerce_page(page_key)
        level = coerce_level(level)
        check_assignable(self.for_role, key, level)

        self.permissions = {**self.permissions, key.value: level.value}
        self._changed()

    def set_category_level(self, category: Category | str, level: PermissionLevel | str) -> None:
        """Set every shown page of ``category`` to ``level``."""
        self._ensure_editable()
        category = Category(category)
        level = coerce_level(level)

        if self.for_role == RoleTarget.cast:
            if level not in CAST_LEVELS:
                raise RoleValidationError("Cast roles can only show or hide a page")
            updated = dict(self.permissions)
            for key in shown_pages_in(category, self.flags):
                if is_cast_available(key):
                    updated[key.value] = level.value
            self.permissions = updated
        else:
            self.permissions = apply_category_level(self.permissions, category, level, self.flags)
        self._changed()

    def _changed(self) -> None:
        self._version += 1
        if self.is_bound:
            self._schedule()

    # ------------------------------------------------------------------
    # debounce
    # ------------------------------------------------------------------
    def _schedule(self) -> None:
        self._cancel_pending()
        self._pending = asyncio.get_running_loop().create_task(self._save_after_delay())

    def _cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    async def _save_after_delay(self) -> None:
        await asyncio.sleep(self.delay)
        # past this point the write belongs to the store, not to the timer
        self._pending = None
        task = asyncio.current_task()
        self._in_flight.add(task)
        try:
            await self._persist()
        finally:
            self._in_flight.discard(task)

    async def _persist(self) -> None:
        # one write at a time; the snapshot is taken once the previous one landed
        async with self._write_lock:
            name = self.name.strip()
            if not name:
                logger.debug("Autosave skipped for role {}: empty name", self.role_id)
                return

            snapshot = self._version
            data = RoleUpdate(name=name, for_role=self.for_role, permissions=dict(self.permissions))
            try:
                async with self._session_factory() as session:
                    role = await update_role(session, self.actor, self.role_id, data)
            except Exception as exc:
                # keep the optimistic state; the next successful write reconciles it
                self.last_error = exc
                logger.exception("Autosave failed for role {}", self.role_id)
                return

            self.last_error = None
            if snapshot >= self._saved_version:
                if role is not None:
                    self.role = role
                self._saved_version = snapshot

    async def flush(self) -> None:
        """Write the current state now instead of waiting for the timer."""
        if not self.is_bound:
            raise RoleEditingError("Create the role before saving changes")
        if self._closed:
            raise RoleEditingError("This role editor has been closed")
        self._cancel_pending()
        await self._persist()

    async def wait_idle(self) -> None:
        """Wait for the pending timer (if any) and every write already sent."""
        while self.has_pending_save or self._in_flight:
            tasks = set(self._in_flight)
            if self.has_pending_save:
                tasks.add(self._pending)
            await asyncio.gather(*tasks, return_exceptions=True)

    # ------------------------------------------------------------------
    # teardown
    # ------------------------------------------------------------------
    async def close(self) -> None:
        """Drop any unsent change. Writes already sent are left alone."""
        self._cancel_pending()
        self._closed = True

    async def delete(self) -> None:
        if not self.is_bound:
            raise RoleEditingError("Nothing to delete: the role was never created")
        if self._closed:
            raise RoleEditingError("This role editor has been closed")

        self._cancel_pending()
        async with self._session_factory() as session:
            await delete_role(session, self.actor, self.role_id)
        await self.close()

    async def __aenter__(self) -> "RoleEditingSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
