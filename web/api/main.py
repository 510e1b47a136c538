"""FastAPI app: session, public, mock and htmx routes plus static assets."""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

import config
from db import init_db
from web.api.htmx_routes import router as htmx_router
from web.api.mock_routes import router as mock_router
from web.api.public_routes import router as public_router
from web.api.session_routes import router as session_router
from web.errors import configure_error_handling

logger = logging.getLogger("webapp")

_static_dir = Path(__file__).resolve().parent.parent / "static"


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    yield


def _static_files(cfg: config.WebappConfig) -> StaticFiles:
    """Serve assets from the source tree while developing, from the installed package otherwise."""
    if cfg.use_file_system_assets:
        return StaticFiles(directory=str(_static_dir))
    return StaticFiles(packages=[("web", "static")])


def create_app(cfg: config.WebappConfig) -> FastAPI:
    app = FastAPI(title="WebApp", lifespan=lifespan)
    configure_error_handling(app)
    app.include_router(public_router)
    app.include_router(session_router)
    app.include_router(htmx_router)
    app.include_router(mock_router)
    # Last, so every route above wins over a same-named asset
    app.mount("/", _static_files(cfg), name="static")
    return app


app = create_app(config.settings)
