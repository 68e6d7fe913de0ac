"""Application factory that serves both the API and the registration page."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI

from .api import create_app as create_api_app
from .config import Settings, load_settings
from .database import Database
from .web import create_app as create_web_app

logger = logging.getLogger("registration.application")


def create_application(
    *,
    database: Optional[Database] = None,
    settings: Optional[Settings] = None,
    config_path: Optional[Path] = None,
) -> FastAPI:
    """Create the combined ASGI application."""

    if settings is None:
        settings = load_settings(config_path)

    if database is None:
        database = Database(settings.database_path)
    database.initialize()

    api_app = create_api_app(database=database, settings=settings)
    web_app = create_web_app(title=settings.title, api_base_url=settings.api_prefix)

    app = FastAPI(
        title=settings.title,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.database = database
    app.state.api = api_app
    app.state.web = web_app

    app.mount(settings.api_prefix, api_app)
    app.mount("/", web_app)

    logger.info("Serving API under %s with database %s", settings.api_prefix, database.path)
    return app


__all__ = ["create_application"]
