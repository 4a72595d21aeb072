from __future__ import annotations

from fastapi import APIRouter

from ..schemas import HealthOut
from ..timer_service import timer_service

router = APIRouter(prefix="/api/v1", tags=["system"])


@router.get("/health", response_model=HealthOut)
def health() -> HealthOut:
    state = timer_service.state()
    return HealthOut(timer_mode=state.mode.value, timer_running=state.running)
