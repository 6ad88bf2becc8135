"""FastAPI main application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from adminpanel.core.config import settings
from adminpanel.core.middleware import setup_middleware
from adminpanel.core.exceptions import AdminPlatformError, StorageError

from adminpanel.api.auth import router as auth_router
from adminpanel.api.users import router as users_router
from adminpanel.api.permissions import router as permissions_router
from adminpanel.api.admin import router as admin_router

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("adminpanel")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("Starting %s API", settings.APP_NAME)
    from adminpanel.services.cache_service import cache_service
    if cache_service.health_check():
        logger.info("Redis connected")
    else:
        logger.warning("Redis not available, permission cache disabled")

    yield

    logger.info("Shutting down %s API", settings.APP_NAME)


app = FastAPI(
    title=f"{settings.APP_NAME} API",
    description="Users, permissions, and audit trail administration",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Middleware
setup_middleware(app)


@app.exception_handler(AdminPlatformError)
async def platform_exception_handler(request: Request, exc: AdminPlatformError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
    )


@app.exception_handler(SQLAlchemyError)
async def storage_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return await platform_exception_handler(
        request, StorageError("Database operation failed")
    )


# Register routers
app.include_router(auth_router, prefix="/api")
app.include_router(users_router, prefix="/api")
app.include_router(permissions_router, prefix="/api")
app.include_router(admin_router, prefix="/api")


@app.get("/")
async def root():
    return {
        "name": settings.APP_NAME,
        "version": "0.1.0",
        "docs": "/docs",
    }


@app.get("/api/health")
async def health():
    """Quick health check endpoint."""
    return {"status": "ok"}
