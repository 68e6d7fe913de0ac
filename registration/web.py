"""Registration page served alongside the JSON API."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from .config import DEFAULT_API_PREFIX, DEFAULT_TITLE
from .models import MAX_AGE, MIN_AGE, NAME_MAX_LENGTH

logger = logging.getLogger("registration.web")


def _template_environment() -> Jinja2Templates:
    base_dir = Path(__file__).resolve().parent
    templates = Jinja2Templates(directory=str(base_dir / "templates"))
    return templates


def register_ui_routes(app: FastAPI, *, title: str, api_base_url: str) -> None:
    """Attach the single-page registration form to ``app``."""

    templates = _template_environment()
    router = APIRouter()

    def _page_context() -> Dict[str, object]:
        return {
            "title": title,
            "api_base_url": api_base_url.rstrip("/"),
            "min_age": MIN_AGE,
            "max_age": MAX_AGE,
            "name_max_length": NAME_MAX_LENGTH,
        }

    @router.get("/", response_class=HTMLResponse, name="ui_home")
    async def home(request: Request) -> HTMLResponse:
        return templates.TemplateResponse(request, "register.html", _page_context())

    @router.get("/register", response_class=HTMLResponse, name="ui_register")
    async def register_page(request: Request) -> HTMLResponse:
        return templates.TemplateResponse(request, "register.html", _page_context())

    app.include_router(router)


def create_app(*, title: str = DEFAULT_TITLE, api_base_url: str = DEFAULT_API_PREFIX) -> FastAPI:
    app = FastAPI(title=title, docs_url=None, redoc_url=None, openapi_url=None)
    register_ui_routes(app, title=title, api_base_url=api_base_url)
    logger.debug("Registration page will call the API at %s", api_base_url)
    return app


__all__ = ["create_app", "register_ui_routes"]
