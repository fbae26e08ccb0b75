# app/main.py

import sys
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from app.core.config import settings
from app.core.database import AsyncSessionLocal, init_db, test_connection
from app.core.exceptions import RoleEngineError
from app.services.role_service import seed_system_roles

# Routers
from app.api.endpoints import (
    access as access_router,
    permissions as permissions_router,
    profiles as profiles_router,
    roles as roles_router,
)

# ------------------------------------------------------------
# LOGURU CONFIGURATION
# ------------------------------------------------------------
logger.remove()
logger.add(
    sys.stdout,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
           "<level>{level}</level> | "
           "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
           "<level>{message}</level>",
    colorize=True,
    backtrace=True,
    diagnose=settings.ENV != "prod",
)

# ------------------------------------------------------------
# FASTAPI APP INIT
# ------------------------------------------------------------
app = FastAPI(
    title="Store Roles Backend",
    version="1.0.0",
    description="Per-store roles and page-level permissions.",
)


# ------------------------------------------------------------
# DOMAIN ERRORS → short JSON messages
# ------------------------------------------------------------
@app.exception_handler(RoleEngineError)
async def role_engine_error_handler(request: Request, exc: RoleEngineError):
    logger.info("{} {} -> {} ({})", request.method, request.url.path, exc.status_code, type(exc).__name__)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# ------------------------------------------------------------
# CORS CONFIGURATION
# ------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"] if settings.ENV == "prod" else ["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

# ------------------------------------------------------------
# REGISTER ROUTERS
# ------------------------------------------------------------
app.include_router(permissions_router.router)
app.include_router(access_router.router)
app.include_router(roles_router.router)
app.include_router(profiles_router.router)


# ------------------------------------------------------------
# APPLICATION STARTUP EVENTS
# ------------------------------------------------------------
@app.on_event("startup")
async def on_startup():
    logger.info("Starting Store Roles Backend...")

    # 1) Database connection test
    try:
        await test_connection()
        logger.success("Database connection established.")
    except Exception:
        logger.exception("Startup aborted: Database connection failed.")
        raise

    # 2) Initialize database tables
    await init_db()
    logger.success("Database tables ready.")

    # 3) Built-in roles for the configured store
    if settings.SEED_STORE_ID:
        async with AsyncSessionLocal() as session:
            await seed_system_roles(session, uuid.UUID(settings.SEED_STORE_ID))

    logger.success("Backend startup completed successfully.")


# ------------------------------------------------------------
# ROOT HEALTH CHECK
# ------------------------------------------------------------
@app.get("/", tags=["System"])
async def root():
    return {
        "status": "ok",
        "service": "Store Roles Backend",
        "version": app.version,
    }
