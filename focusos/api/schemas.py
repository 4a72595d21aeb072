from __future__ import annotations

from datetime import date
from typing import Literal

from pydantic import BaseModel, Field

from ..config import TimerSettings
from ..db import SessionRecord
from ..reporting import WeeklyStats
from ..timer import Completion, TimerState

ModeName = Literal["WORK", "REST"]


class SessionOut(BaseModel):
    id: str
    mode: ModeName
    durationSeconds: int
    timestampMillis: int

    @classmethod
    def from_record(cls, record: SessionRecord) -> SessionOut:
        return cls(**record.to_dict())


class DailyMinutesOut(BaseModel):
    day: date
    weekday: str
    minutes: int


class StatsOut(BaseModel):
    dailyMinutes: list[DailyMinutesOut]
    totalStudyHours: str
    totalSessions: int
    streak: int

    @classmethod
    def from_stats(cls, stats: WeeklyStats) -> StatsOut:
        return cls(
            dailyMinutes=[
                DailyMinutesOut(day=item.day, weekday=item.weekday, minutes=item.minutes)
                for item in stats.daily_minutes
            ],
            totalStudyHours=stats.total_hours_text,
            totalSessions=stats.total_sessions,
            streak=stats.streak,
        )


class TimerStateOut(BaseModel):
    mode: ModeName
    remaining_sec: int
    total_sec: int
    running: bool
    anchor_end_ms: int | None = None

    @classmethod
    def from_state(cls, state: TimerState) -> TimerStateOut:
        return cls(**state.to_dict())


class TimerActionOut(BaseModel):
    applied: bool
    state: TimerStateOut


class CompletionOut(BaseModel):
    finished_mode: ModeName
    next_mode: ModeName
    session: SessionOut | None = None
    persisted: bool
    error: str | None = None
    state: TimerStateOut

    @classmethod
    def from_completion(cls, completion: Completion, state: TimerState) -> CompletionOut:
        return cls(
            finished_mode=completion.finished_mode.value,
            next_mode=completion.next_mode.value,
            session=SessionOut.from_record(completion.record) if completion.record else None,
            persisted=completion.persisted,
            error=completion.error,
            state=TimerStateOut.from_state(state),
        )


class SettingsIn(BaseModel):
    work_minutes: float = Field(default=25.0, gt=0, le=24 * 60)
    break_minutes: float = Field(default=5.0, gt=0, le=24 * 60)
    auto_advance: bool = False
    notifications_enabled: bool = False
    sound_enabled: bool = True

    def to_settings(self) -> TimerSettings:
        return TimerSettings(**self.model_dump())


class SettingsOut(SettingsIn):
    @classmethod
    def from_settings(cls, settings: TimerSettings) -> SettingsOut:
        return cls(**settings.to_dict())


class StatusOut(BaseModel):
    module: str
    message: str


class HealthOut(BaseModel):
    status: str = Field(default="ok")
    timer_mode: ModeName
    timer_running: bool


class MetaOut(BaseModel):
    app: str
    version: str
    db_path: str
    platform: str
