from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Iterable

from .db import Mode, SessionRecord

WEEK_DAYS = 7
WEEKDAY_LABELS = ("周一", "周二", "周三", "周四", "周五", "周六", "周日")


@dataclass(frozen=True)
class DailyMinutes:
    day: date
    minutes: int

    @property
    def weekday(self) -> str:
        return WEEKDAY_LABELS[self.day.weekday()]


@dataclass(frozen=True)
class WeeklyStats:
    daily_minutes: list[DailyMinutes]
    total_work_sec: int
    total_sessions: int
    streak: int

    @property
    def total_work_hours(self) -> float:
        return self.total_work_sec / 3600

    @property
    def total_hours_text(self) -> str:
        return f"{self.total_work_hours:.1f}"


def format_duration(seconds: int) -> str:
    total = max(0, int(seconds))
    minutes, sec = divmod(total, 60)
    hours, minutes = divmod(minutes, 60)
    if hours > 0:
        return f"{hours}小时{minutes:02d}分{sec:02d}秒"
    return f"{minutes}分{sec:02d}秒"


def _reference(now: datetime | None) -> datetime:
    ref = now or datetime.now().astimezone()
    if ref.tzinfo is None:
        ref = ref.astimezone()
    return ref


def _day_zone(ref: datetime) -> tzinfo | None:
    """Zone used to turn timestamps into calendar days.

    ``datetime.astimezone()`` yields a fixed offset that is only valid at
    ``ref`` itself. When ``ref`` carries that system-local offset, return
    ``None`` so each timestamp is converted with the offset in effect at
    that moment (DST included). Real zones and explicit offsets are kept.
    """
    zone = ref.tzinfo
    if not isinstance(zone, timezone):
        return zone
    system = ref.astimezone()
    if ref.utcoffset() == system.utcoffset() and ref.tzname() == system.tzname():
        return None
    return zone


def _today(ref: datetime, zone: tzinfo | None) -> date:
    return ref.astimezone(zone).date()


def _local_day(record: SessionRecord, zone: tzinfo | None) -> date:
    return datetime.fromtimestamp(record.timestamp_ms / 1000, tz=zone).date()


def _work_records(records: Iterable[SessionRecord]) -> list[SessionRecord]:
    return [item for item in records if item.mode is Mode.WORK]


def weekly_histogram(records: Iterable[SessionRecord], now: datetime | None = None) -> list[DailyMinutes]:
    """Work minutes for each of the last seven local calendar days, oldest first."""
    ref = _reference(now)
    zone = _day_zone(ref)
    today = _today(ref, zone)
    days = [today - timedelta(days=offset) for offset in range(WEEK_DAYS - 1, -1, -1)]

    seconds_by_day: dict[date, int] = {day: 0 for day in days}
    for item in _work_records(records):
        day = _local_day(item, zone)
        if day in seconds_by_day:
            seconds_by_day[day] += item.duration_sec

    return [DailyMinutes(day=day, minutes=seconds_by_day[day] // 60) for day in days]


def work_totals(records: Iterable[SessionRecord]) -> tuple[int, int]:
    """Return ``(total_work_seconds, work_session_count)``."""
    work = _work_records(records)
    return sum(item.duration_sec for item in work), len(work)


def compute_streak(records: Iterable[SessionRecord], now: datetime | None = None) -> int:
    """Consecutive local days with work, anchored on the most recent session.

    The chain survives when the latest session was today or yesterday and
    breaks on any missing day.
    """
    ref = _reference(now)
    zone = _day_zone(ref)
    work = sorted(_work_records(records), key=lambda item: item.timestamp_ms, reverse=True)
    if not work:
        return 0

    one_day = timedelta(days=1)
    last_day = _local_day(work[0], zone)
    if _today(ref, zone) - last_day > one_day:
        return 0

    streak = 1
    current_day = last_day
    for item in work[1:]:
        day = _local_day(item, zone)
        if day == current_day:
            continue
        if current_day - day == one_day:
            streak += 1
            current_day = day
        else:
            break
    return streak


def build_stats(records: Iterable[SessionRecord], now: datetime | None = None) -> WeeklyStats:
    items = list(records)
    ref = _reference(now)
    total_sec, total_sessions = work_totals(items)
    return WeeklyStats(
        daily_minutes=weekly_histogram(items, now=ref),
        total_work_sec=total_sec,
        total_sessions=total_sessions,
        streak=compute_streak(items, now=ref),
    )
