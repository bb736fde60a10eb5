from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from catalog import format_byte_size
from config import config
from .renderer import Renderer
from .session import SessionRegistry, WidgetSession
from .routes import staging, upload

logger = logging.getLogger(__name__)

# --------- Статика и шаблоны ----------
STATIC_DIR = Path(__file__).parent / "static"
TEMPLATES_DIR = Path(__file__).parent / "templates"
templates = Jinja2Templates(directory=TEMPLATES_DIR)

sessions = SessionRegistry(config)


def renderer_for(session: WidgetSession) -> Renderer:
    return Renderer(templates, session.previews)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    Path(config.staging_dir).mkdir(parents=True, exist_ok=True)
    yield
    # Все ещё открытые сессии держат временные файлы
    logger.info("Closing %d open upload session(s)", len(sessions))
    sessions.close_all()


app = FastAPI(title="DocDrop", lifespan=lifespan)
app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")


@app.get("/")
async def serve_index(request: Request):
    """Отдать страницу загрузки с новой, пустой сессией."""
    sessions.close(request.cookies.get(config.session_cookie))
    session = sessions.open()
    renderer = renderer_for(session)
    view = renderer.build_view(session.store, session.controller)
    response = templates.TemplateResponse(
        request,
        "index.html",
        {
            "widget": renderer.render(view),
            "max_files": session.store.max_files,
            "max_size": format_byte_size(session.store.max_size_bytes),
        },
    )
    response.set_cookie(config.session_cookie, session.id, httponly=True, samesite="strict")
    return response


# --------- Подключение маршрутов ----------
app.include_router(staging.router)
app.include_router(upload.router)


__all__ = ["app", "sessions", "templates", "renderer_for"]
