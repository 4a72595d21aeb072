from __future__ import annotations

from fastapi import APIRouter, Depends

from ...db import Mode
from ...status import StatusProvider, resolve_status
from ..deps import get_status_provider
from ..schemas import ModeName, StatusOut
from ..timer_service import timer_service

router = APIRouter(prefix="/api/v1", tags=["status"])


@router.get("/status", response_model=StatusOut)
def get_status(
    mode: ModeName | None = None,
    provider: StatusProvider = Depends(get_status_provider),
) -> StatusOut:
    target = Mode(mode) if mode else timer_service.state().mode
    status = resolve_status(provider, target)
    return StatusOut(module=status.module, message=status.message)
