import os
import tempfile
import uuid

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# ------------------------------------------------------------------
# FORCE TESTING MODE
# This must be done BEFORE importing app.main so that settings and the
# engine in database.py pick up the throwaway SQLite file.
# ------------------------------------------------------------------
_DB_FILE = os.path.join(tempfile.mkdtemp(prefix="store-roles-"), "test.db")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_FILE}"
os.environ["SECRET_KEY"] = "test-secret-key-with-enough-bytes-for-hs256"
os.environ["ENV"] = "test"
os.environ.pop("SEED_STORE_ID", None)

from app.main import app  # noqa: E402
from app.core.database import AsyncSessionLocal, drop_db, init_db  # noqa: E402
from app.core.rbac import Actor  # noqa: E402
from app.core.security import create_access_token  # noqa: E402
from app.models.enums import ProfileRole, RoleTarget  # noqa: E402
from app.models.profile import Profile  # noqa: E402
from app.models.store_feature import StoreFeature  # noqa: E402
from app.models.store_role import StoreRole  # noqa: E402


@pytest_asyncio.fixture
async def prepare_db():
    """Fresh tables for every test."""
    await drop_db()
    await init_db()
    yield


@pytest_asyncio.fixture
async def db_session(prepare_db):
    async with AsyncSessionLocal() as session:
        yield session


@pytest_asyncio.fixture
async def client(prepare_db):
    """
    Uses ASGITransport (httpx >= 0.27). Startup events do not run here,
    prepare_db creates the tables instead.
    """
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac


@pytest.fixture
def store_id():
    return uuid.uuid4()


@pytest.fixture
def other_store_id():
    return uuid.uuid4()


# ------------------------------------------------------------------
# Factories
# ------------------------------------------------------------------
@pytest.fixture
def make_profile(db_session):
    async def _make(store_id, role=ProfileRole.staff, role_id=None, display_name="Someone"):
        profile = Profile(store_id=store_id, role=role, role_id=role_id, display_name=display_name)
        db_session.add(profile)
        await db_session.commit()
        await db_session.refresh(profile)
        return profile
    return _make


@pytest.fixture
def make_role(db_session):
    async def _make(store_id, name="Floor staff", for_role=RoleTarget.staff, permissions=None, is_system_role=False):
        role = StoreRole(
            store_id=store_id,
            name=name,
            for_role=for_role,
            permissions=dict(permissions or {}),
            is_system_role=is_system_role,
        )
        db_session.add(role)
        await db_session.commit()
        await db_session.refresh(role)
        return role
    return _make


@pytest.fixture
def set_flag(db_session):
    async def _set(store_id, page_key, visible):
        db_session.add(StoreFeature(store_id=store_id, page_key=page_key, visible=visible))
        await db_session.commit()
    return _set


@pytest_asyncio.fixture
async def admin(make_profile, store_id):
    return await make_profile(store_id, role=ProfileRole.admin, display_name="Owner")


@pytest.fixture
def admin_actor(admin):
    return Actor.of(admin)


def auth_headers(profile):
    token = create_access_token(subject=str(profile.id))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for():
    return auth_headers
