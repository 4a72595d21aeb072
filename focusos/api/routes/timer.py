from __future__ import annotations

import json
import queue
from typing import Iterator

from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from ..schemas import CompletionOut, SettingsIn, SettingsOut, TimerActionOut, TimerStateOut
from ..timer_service import timer_service

router = APIRouter(prefix="/api/v1", tags=["timer"])


@router.get("/timer/state", response_model=TimerStateOut)
def timer_state() -> TimerStateOut:
    return TimerStateOut.from_state(timer_service.state())


@router.post("/timer/start", response_model=TimerActionOut)
def start_timer() -> TimerActionOut:
    applied, state = timer_service.start()
    return TimerActionOut(applied=applied, state=TimerStateOut.from_state(state))


@router.post("/timer/pause", response_model=TimerActionOut)
def pause_timer() -> TimerActionOut:
    applied, state = timer_service.pause()
    return TimerActionOut(applied=applied, state=TimerStateOut.from_state(state))


@router.post("/timer/reset", response_model=TimerStateOut)
def reset_timer() -> TimerStateOut:
    return TimerStateOut.from_state(timer_service.reset())


@router.post("/timer/skip", response_model=CompletionOut)
def skip_timer() -> CompletionOut:
    completion = timer_service.skip()
    return CompletionOut.from_completion(completion, timer_service.state())


@router.get("/timer/settings", response_model=SettingsOut)
def get_settings() -> SettingsOut:
    return SettingsOut.from_settings(timer_service.settings())


@router.put("/timer/settings", response_model=TimerStateOut)
def put_settings(payload: SettingsIn) -> TimerStateOut:
    return TimerStateOut.from_state(timer_service.update_settings(payload.to_settings()))


@router.get("/timer/stream")
def timer_stream() -> StreamingResponse:
    subscriber = timer_service.subscribe()

    def event_iter() -> Iterator[str]:
        try:
            while True:
                try:
                    event = subscriber.get(timeout=10)
                    yield f"data: {json.dumps(event, ensure_ascii=False, default=str)}\n\n"
                except queue.Empty:
                    yield ": keepalive\n\n"
        finally:
            timer_service.unsubscribe(subscriber)

    return StreamingResponse(event_iter(), media_type="text/event-stream")
