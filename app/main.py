"""Application entrypoint for the coupon and account service.

This module wires together the FastAPI application with its lifespan hooks,
database metadata, the coupon expiry scheduler, error handlers, media
serving, and CORS configuration.
"""

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.api.routes import auth_router, coupon_router, profile_router
from app.core.config import settings
from app.core.errors import add_exception_handlers
from app.core.logging import setup_logging
from app.db import models  # noqa: F401
from app.db.base import Base
from app.db.session import engine
from app.services import coupon_scheduler


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and start the coupon scheduler; stop it and dispose the engine on shutdown."""

    setup_logging()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    coupon_scheduler.start(app)
    yield
    await coupon_scheduler.stop(app)
    await engine.dispose()


def create_application() -> FastAPI:
    """Assemble and configure the FastAPI application instance."""

    application = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.PROJECT_VERSION,
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )

    add_exception_handlers(application)

    application.include_router(auth_router)
    application.include_router(profile_router)
    application.include_router(coupon_router)

    Path(settings.MEDIA_ROOT).mkdir(parents=True, exist_ok=True)
    application.mount(settings.MEDIA_URL_PREFIX, StaticFiles(directory=settings.MEDIA_ROOT), name="media")

    @application.get("/")
    async def healthcheck():
        """Lightweight health endpoint used by uptime monitors."""
        return {"message": "Coupon Backend API is running"}

    return application


app = create_application()
