# app/core/database.py

import ssl
from dotenv import load_dotenv
from typing import AsyncGenerator

from loguru import logger
from sqlmodel import SQLModel
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine
)
from sqlalchemy.pool import NullPool
from sqlalchemy import text

# ----------------------------------------------------
# Load environment
# ----------------------------------------------------
load_dotenv()

from app.core.config import settings  # noqa: E402

# Table models must be imported so SQLModel.metadata knows them
from app.models import profile, store_feature, store_role  # noqa: E402,F401

DATABASE_URL = settings.DATABASE_URL


# ----------------------------------------------------
# SSL for Supabase Pooler
# ----------------------------------------------------
def make_ssl():
    ctx = ssl.create_default_context()
    if not settings.DB_SSL_VERIFY:
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
    return ctx


def build_connect_args(url: str) -> dict:
    if url.startswith("postgresql+asyncpg"):
        return {
            "ssl": make_ssl(),
            "statement_cache_size": 0,           # disable prepared statements
            "prepared_statement_name_func": None # prevent SQLAlchemy from naming statements
        }
    return {}


logger.info("Configuring database engine ({})", DATABASE_URL.split("://", 1)[0])


# ----------------------------------------------------
# Engine (NO POOLING → Supabase pooler handles it)
# ----------------------------------------------------
engine = create_async_engine(
    DATABASE_URL,
    echo=settings.SQL_ECHO,
    future=True,
    connect_args=build_connect_args(DATABASE_URL),
    pool_pre_ping=True,
    poolclass=NullPool,
)


# ----------------------------------------------------
# Sessions
# ----------------------------------------------------
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


# ----------------------------------------------------
# Create tables
# ----------------------------------------------------
async def init_db():
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def drop_db():
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)


# ----------------------------------------------------
# Test Connection (SAFE)
# ----------------------------------------------------
async def test_connection():
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
        logger.debug("DB connection OK")
