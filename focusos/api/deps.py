from __future__ import annotations

from pathlib import Path

from fastapi import Request

from ..db import SessionStore
from ..status import StatusProvider


def get_store(request: Request) -> SessionStore:
    db_path = Path(request.app.state.db_path)
    return SessionStore(db_path)


def get_status_provider(request: Request) -> StatusProvider:
    return request.app.state.status_provider
