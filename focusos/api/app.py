from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI

from ..clock import Clock
from ..config import default_settings_path
from ..db import default_db_path
from ..status import StaticStatusProvider, StatusProvider
from .routes.health import router as health_router
from .routes.meta import router as meta_router
from .routes.sessions import router as sessions_router
from .routes.stats import router as stats_router
from .routes.status import router as status_router
from .routes.timer import router as timer_router
from .timer_service import timer_service


@asynccontextmanager
async def _lifespan(_: FastAPI) -> AsyncIterator[None]:
    yield
    timer_service.shutdown()


def create_app(
    db_path: Path | None = None,
    settings_path: Path | None = None,
    clock: Clock | None = None,
    status_provider: StatusProvider | None = None,
) -> FastAPI:
    resolved_db = Path(db_path or default_db_path())
    resolved_settings = Path(settings_path or default_settings_path())
    timer_service.configure(resolved_db, settings_path=resolved_settings, clock=clock)

    app = FastAPI(title="FocusOS API", version="0.1.0", lifespan=_lifespan)
    app.state.db_path = str(resolved_db)
    app.state.status_provider = status_provider or StaticStatusProvider()

    app.include_router(health_router)
    app.include_router(meta_router)
    app.include_router(sessions_router)
    app.include_router(stats_router)
    app.include_router(timer_router)
    app.include_router(status_router)
    return app
