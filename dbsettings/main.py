import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional, Type

from fastapi import FastAPI

from dbsettings.api.settings import build_settings_router
from dbsettings.config import settings
from dbsettings.core.descriptor import SettingsModel
from dbsettings.core.settings_loader import settings_cache
from dbsettings.database import Base, engine
from dbsettings.logging import log_config

import dbsettings.models  # noqa: F401  (registers tables on Base.metadata)

logger = logging.getLogger(__name__)


def create_app(model_cls: Type[SettingsModel], defaults: Optional[SettingsModel] = None) -> FastAPI:
    """
    Build an app serving ``model_cls`` under /api/settings.
    When ``defaults`` is given, missing rows are seeded on startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log_config.setup_logging()

        if settings.database_url.startswith("sqlite:///"):
            Path(settings.database_url.replace("sqlite:///", "")).parent.mkdir(parents=True, exist_ok=True)

        # Creates missing tables only, never alters existing ones
        Base.metadata.create_all(bind=engine)

        if defaults is not None:
            settings_cache.initialize_defaults(defaults)

        logger.info(f"{settings.app_name} {settings.version} started")
        yield
        logger.info(f"{settings.app_name} shutting down...")

    app = FastAPI(title=settings.app_name, lifespan=lifespan)

    app.include_router(build_settings_router(model_cls), prefix="/api/settings", tags=["settings"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "service": settings.app_name}

    return app
