from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from ...db import SessionStore
from ..deps import get_store
from ..schemas import SessionOut

router = APIRouter(prefix="/api/v1", tags=["sessions"])


@router.get("/sessions", response_model=list[SessionOut])
def list_sessions(
    limit: int = Query(default=30, ge=1, le=2000),
    store: SessionStore = Depends(get_store),
) -> list[SessionOut]:
    return [SessionOut.from_record(item) for item in store.recent(limit=limit)]


@router.get("/sessions/{session_id}", response_model=SessionOut)
def get_session(session_id: str, store: SessionStore = Depends(get_store)) -> SessionOut:
    item = store.get(session_id)
    if item is not None:
        return SessionOut.from_record(item)
    raise HTTPException(status_code=404, detail="session not found")
