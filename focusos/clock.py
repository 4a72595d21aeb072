"""Time sources for the timer engine.

The engine only ever asks for "now" and derives everything else from the
interval's end anchor, so swapping the clock is enough to simulate late
ticks, suspend/resume and wall-clock jumps in tests.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        ...

    def sleep(self, seconds: float) -> None:
        ...


def to_epoch_ms(value: datetime) -> int:
    """Wall-clock milliseconds; naive values are read as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(round(value.timestamp() * 1000))


class RealClock:
    def now(self) -> datetime:
        return datetime.now().astimezone()

    def sleep(self, seconds: float) -> None:
        time.sleep(max(0.0, seconds))


class FakeClock:
    """Manually driven wall clock.

    ``sleep`` moves time forward by exactly the requested amount, ``advance``
    moves it by any amount (negative for a clock set backwards) and
    ``jump_to`` sets it outright. ``interrupt_on_sleep_call`` makes the n-th
    sleep raise KeyboardInterrupt, which is how a console run sees Ctrl-C.
    """

    def __init__(
        self,
        start: datetime | None = None,
        interrupt_on_sleep_call: int | None = None,
    ) -> None:
        self._current = self._aware(start or datetime(2026, 1, 1, tzinfo=timezone.utc))
        self._interrupt_on_sleep_call = interrupt_on_sleep_call
        self.sleep_calls = 0

    @staticmethod
    def _aware(moment: datetime) -> datetime:
        return moment if moment.tzinfo is not None else moment.replace(tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._current

    def advance(self, seconds: float) -> None:
        self._current += timedelta(seconds=seconds)

    def jump_to(self, moment: datetime) -> None:
        self._current = self._aware(moment)

    def sleep(self, seconds: float) -> None:
        self.sleep_calls += 1
        if self._interrupt_on_sleep_call is not None and self.sleep_calls >= self._interrupt_on_sleep_call:
            raise KeyboardInterrupt
        self.advance(max(0.0, seconds))
