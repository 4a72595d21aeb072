from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from threading import RLock
from typing import Any, Callable
import uuid

from .clock import Clock, to_epoch_ms
from .config import TimerSettings, minutes_to_seconds
from .db import Mode, SessionRecord, SessionStore, SessionStoreError
from .notifier import NullNotifier, Notifier

logger = logging.getLogger(__name__)

WARNING_THRESHOLDS = (60, 10)

ProgressCallback = Callable[[str, dict[str, Any]], None]

__all__ = [
    "Completion",
    "ProgressCallback",
    "TimerEngine",
    "TimerState",
    "WARNING_THRESHOLDS",
    "format_countdown",
    "minutes_to_seconds",
]


@dataclass(frozen=True)
class TimerState:
    mode: Mode
    remaining_sec: int
    total_sec: int
    running: bool
    anchor_end_ms: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode.value,
            "remaining_sec": self.remaining_sec,
            "total_sec": self.total_sec,
            "running": self.running,
            "anchor_end_ms": self.anchor_end_ms,
        }


@dataclass(frozen=True)
class Completion:
    finished_mode: Mode
    next_mode: Mode
    record: SessionRecord | None
    persisted: bool
    error: str | None = None


def format_countdown(seconds: int) -> str:
    total = max(0, seconds)
    minutes, sec = divmod(total, 60)
    hours, minutes = divmod(minutes, 60)
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{sec:02d}"
    return f"{minutes:02d}:{sec:02d}"


class TimerEngine:
    """Wall-clock anchored work/rest countdown.

    While running, the remaining time is always derived from the absolute
    anchor (``anchor_end_ms - now``), never decremented per tick, so late or
    missed ticks and system sleep do not introduce drift.

    All mutations are serialized by one lock. Notifier and listener calls
    are queued while the lock is held and delivered after it is released,
    one batch at a time, in the order they were queued.
    """

    def __init__(
        self,
        store: SessionStore,
        clock: Clock,
        notifier: Notifier | None = None,
        settings: TimerSettings | None = None,
        listener: ProgressCallback | None = None,
    ) -> None:
        self.store = store
        self.clock = clock
        self.notifier: Notifier = notifier or NullNotifier()
        self.listener = listener
        self._settings = settings or TimerSettings()
        self._lock = RLock()
        # Held while delivering; events leave in queue order.
        self._dispatch_lock = RLock()
        self._pending: list[tuple[str, dict[str, Any]]] = []

        self._mode = Mode.WORK
        self._total = self._settings.duration_for(Mode.WORK)
        self._remaining = self._total
        self._running = False
        self._anchor_end_ms: int | None = None
        self._fired: set[int] = set()

    @property
    def settings(self) -> TimerSettings:
        return self._settings

    def state(self) -> TimerState:
        with self._lock:
            return self._snapshot()

    def start(self) -> bool:
        with self._lock:
            applied = self._start_locked()
        self._dispatch()
        return applied

    def pause(self) -> bool:
        with self._lock:
            if not self._running:
                return False
            self._running = False
            self._anchor_end_ms = None
            self._queue("state", **self._snapshot().to_dict())
        self._dispatch()
        return True

    def reset(self) -> TimerState:
        with self._lock:
            self._running = False
            self._anchor_end_ms = None
            self._load_interval(self._mode)
            self._queue("state", **self._snapshot().to_dict())
            snapshot = self._snapshot()
        self._dispatch()
        return snapshot

    def tick(self) -> Completion | None:
        completion: Completion | None = None
        with self._lock:
            if not self._running or self._anchor_end_ms is None:
                return None

            remaining = math.ceil((self._anchor_end_ms - self._now_ms()) / 1000)
            previous = self._remaining
            if remaining <= 0:
                self._remaining = 0
                completion = self._complete_locked()
            else:
                self._remaining = remaining
                for threshold in WARNING_THRESHOLDS:
                    if threshold in self._fired:
                        continue
                    if remaining <= threshold < previous:
                        self._fired.add(threshold)
                        self._queue("warning", mode=self._mode, remaining_sec=remaining, threshold=threshold)
                self._queue("tick", mode=self._mode.value, remaining_sec=remaining, total_sec=self._total)
        self._dispatch()
        return completion

    def skip(self) -> Completion:
        with self._lock:
            completion = self._complete_locked()
        self._dispatch()
        return completion

    def update_configuration(self, settings: TimerSettings) -> TimerState:
        if not isinstance(settings, TimerSettings):
            raise TypeError(f"expected TimerSettings, got {type(settings).__name__}")
        with self._lock:
            previous = self._settings
            self._settings = settings
            changed = previous.duration_for(self._mode) != settings.duration_for(self._mode)
            if changed and not self._running:
                self._load_interval(self._mode)
                self._queue("state", **self._snapshot().to_dict())
            snapshot = self._snapshot()
        self._dispatch()
        return snapshot

    def _start_locked(self) -> bool:
        if self._running:
            return False
        self._anchor_end_ms = self._now_ms() + self._remaining * 1000
        self._running = True
        self._queue("state", **self._snapshot().to_dict())
        return True

    def _complete_locked(self) -> Completion:
        finished = self._mode
        next_mode = finished.other()
        record: SessionRecord | None = None
        persisted = True
        error: str | None = None

        if finished is Mode.WORK:
            record = SessionRecord(
                id=uuid.uuid4().hex,
                mode=Mode.WORK,
                duration_sec=self._total,
                timestamp_ms=self._now_ms(),
            )
            try:
                self.store.append(record)
            except SessionStoreError as exc:
                # The interval still counts as finished; only the statistics lose it.
                persisted = False
                error = str(exc)
                logger.warning("session %s not persisted: %s", record.id, exc)

        self._queue("complete", mode=finished, next_mode=next_mode, persisted=persisted)

        self._mode = next_mode
        self._running = False
        self._anchor_end_ms = None
        self._load_interval(next_mode)

        if self._settings.auto_advance:
            self._start_locked()
        else:
            self._queue("state", **self._snapshot().to_dict())

        return Completion(
            finished_mode=finished,
            next_mode=next_mode,
            record=record,
            persisted=persisted,
            error=error,
        )

    def _load_interval(self, mode: Mode) -> None:
        self._total = self._settings.duration_for(mode)
        self._remaining = self._total
        self._fired = set()

    def _snapshot(self) -> TimerState:
        return TimerState(
            mode=self._mode,
            remaining_sec=self._remaining,
            total_sec=self._total,
            running=self._running,
            anchor_end_ms=self._anchor_end_ms,
        )

    def _now_ms(self) -> int:
        return to_epoch_ms(self.clock.now())

    def _queue(self, event: str, **payload: Any) -> None:
        self._pending.append((event, payload))

    def _dispatch(self) -> None:
        with self._dispatch_lock:
            with self._lock:
                pending, self._pending = self._pending, []
            self._deliver(pending)

    def _deliver(self, pending: list[tuple[str, dict[str, Any]]]) -> None:
        for event, payload in pending:
            try:
                if event == "warning":
                    self.notifier.on_warning_threshold(payload["mode"], payload["remaining_sec"])
                elif event == "complete":
                    self.notifier.on_interval_complete(payload["mode"], payload["next_mode"])
            except Exception:
                logger.exception("notifier failed on %s event", event)

            if self.listener is None:
                continue
            normalized = {
                key: (value.value if isinstance(value, Mode) else value)
                for key, value in payload.items()
            }
            try:
                self.listener(event, normalized)
            except Exception:
                logger.exception("listener failed on %s event", event)
