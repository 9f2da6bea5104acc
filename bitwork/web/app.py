"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from jinja2 import Environment, FileSystemLoader
from starlette.middleware.sessions import SessionMiddleware

from bitwork.config import AppConfig, load_config
from bitwork.services import revalidate
from bitwork.storage.database import Database

from .applications import router as applications_router
from .auth import router as auth_router
from .dashboard import router as dashboard_router
from .dependencies import get_current_user, pop_flash
from .jobs import router as jobs_router
from .messages import router as messages_router
from .notifications import router as notifications_router
from .profile import router as profile_router

logger = logging.getLogger("bitwork.web")

WEB_DIR = Path(__file__).parent
TEMPLATES_DIR = WEB_DIR / "templates"
STATIC_DIR = WEB_DIR / "static"


def _create_jinja_env() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=True,
    )
    env.filters["money"] = lambda value: f"${value:,}" if value is not None else "-"
    env.filters["date"] = lambda value: value.strftime("%b %d, %Y") if value else ""
    return env


class _Templates:
    """Thin wrapper that mimics Jinja2Templates from starlette."""

    def __init__(self):
        self.env = _create_jinja_env()

    def TemplateResponse(self, name: str, context: dict, status_code: int = 200):
        template = self.env.get_template(name)

        request = context.get("request")
        if request is not None:
            context.setdefault("user", None)
            if "flash_message" not in context:
                flash = pop_flash(request)
                if flash:
                    context["flash_message"], context["flash_type"] = flash

        html = template.render(**context)
        return HTMLResponse(html, status_code=status_code)


def _log_stale_page(path: str) -> None:
    logger.debug("Stale page: %s", path)


def create_app(config: Optional[AppConfig] = None, database: Optional[Database] = None) -> FastAPI:
    config = config or load_config()
    database = database or Database(config.database.url, echo=config.database.echo)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database.open()
        if config.database.auto_create:
            database.create_all()
        revalidate.register(_log_stale_page)
        logger.info("Bitwork web app started")
        try:
            yield
        finally:
            revalidate.unregister(_log_stale_page)
            database.close()

    app = FastAPI(title="Bitwork", lifespan=lifespan)
    app.state.config = config
    app.state.database = database
    app.state.templates = _Templates()

    app.add_middleware(SessionMiddleware, secret_key=config.web.session_secret)

    if STATIC_DIR.is_dir():
        app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

    app.include_router(auth_router)
    app.include_router(dashboard_router)
    app.include_router(jobs_router)
    app.include_router(applications_router)
    app.include_router(notifications_router)
    app.include_router(profile_router)
    app.include_router(messages_router)

    @app.get("/")
    def landing(request: Request):
        with request.app.state.database.session() as db:
            user = get_current_user(request, db)
        if user:
            return RedirectResponse("/dashboard", status_code=303)
        return request.app.state.templates.TemplateResponse("landing.html", {"request": request})

    return app
