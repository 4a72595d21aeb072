from __future__ import annotations

from fastapi import APIRouter, Depends

from ...db import SessionStore
from ...reporting import build_stats
from ..deps import get_store
from ..schemas import StatsOut

router = APIRouter(prefix="/api/v1", tags=["stats"])


@router.get("/stats", response_model=StatsOut)
def get_stats(store: SessionStore = Depends(get_store)) -> StatsOut:
    return StatsOut.from_stats(build_stats(store.all()))
