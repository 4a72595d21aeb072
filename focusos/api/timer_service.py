from __future__ import annotations

import logging
from pathlib import Path
import queue
from threading import Event, Lock, Thread
from typing import Any

from ..clock import Clock, RealClock
from ..config import TimerSettings, default_settings_path, load_settings, save_settings
from ..db import SessionStore, default_db_path
from ..notifier import DesktopNotifier
from ..timer import Completion, TimerEngine, TimerState

logger = logging.getLogger(__name__)


class TickLoop:
    """Background thread that feeds the engine one tick per interval."""

    def __init__(self, engine: TimerEngine, interval_sec: float = 1.0) -> None:
        self.engine = engine
        self.interval_sec = interval_sec
        self._stop = Event()
        self._thread: Thread | None = None

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def ensure_started(self) -> None:
        if self.is_alive():
            return
        self._stop.clear()
        self._thread = Thread(target=self._run, name="focusos-tick", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 2.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
        self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self.interval_sec):
            self.engine.tick()


class TimerService:
    def __init__(self) -> None:
        self._lock = Lock()
        self._subscribers: list[queue.Queue[dict[str, Any]]] = []
        self._engine: TimerEngine | None = None
        self._loop: TickLoop | None = None
        self._notifier = DesktopNotifier()
        self._settings_path = default_settings_path()

    def configure(
        self,
        db_path: Path,
        settings_path: Path | None = None,
        clock: Clock | None = None,
        tick_interval: float = 1.0,
    ) -> None:
        self.shutdown()
        if settings_path is not None:
            self._settings_path = Path(settings_path)
        settings = load_settings(self._settings_path)
        self._notifier = DesktopNotifier(
            notifications_enabled=settings.notifications_enabled,
            sound_enabled=settings.sound_enabled,
        )
        self._store_path = Path(db_path)
        self._engine = TimerEngine(
            store=SessionStore(self._store_path),
            clock=clock or RealClock(),
            notifier=self._notifier,
            settings=settings,
            listener=self._on_event,
        )
        self._loop = TickLoop(self._engine, interval_sec=tick_interval)

    @property
    def engine(self) -> TimerEngine:
        if self._engine is None:
            self.configure(default_db_path())
        if self._engine is None:
            raise RuntimeError("timer service failed to build its engine")
        return self._engine

    def state(self) -> TimerState:
        return self.engine.state()

    def settings(self) -> TimerSettings:
        return self.engine.settings

    def start(self) -> tuple[bool, TimerState]:
        applied = self.engine.start()
        if self._loop is not None:
            self._loop.ensure_started()
        return applied, self.engine.state()

    def pause(self) -> tuple[bool, TimerState]:
        applied = self.engine.pause()
        return applied, self.engine.state()

    def reset(self) -> TimerState:
        return self.engine.reset()

    def skip(self) -> Completion:
        completion = self.engine.skip()
        if self.engine.state().running and self._loop is not None:
            self._loop.ensure_started()
        return completion

    def update_settings(self, settings: TimerSettings, persist: bool = True) -> TimerState:
        self._notifier.configure(settings.notifications_enabled, settings.sound_enabled)
        state = self.engine.update_configuration(settings)
        if persist:
            try:
                save_settings(settings, self._settings_path)
            except OSError as exc:
                logger.warning("settings not saved to %s: %s", self._settings_path, exc)
        return state

    def shutdown(self) -> None:
        if self._loop is not None:
            self._loop.stop()

    def subscribe(self) -> queue.Queue[dict[str, Any]]:
        q: queue.Queue[dict[str, Any]] = queue.Queue(maxsize=200)
        with self._lock:
            self._subscribers.append(q)
        return q

    def unsubscribe(self, q: queue.Queue[dict[str, Any]]) -> None:
        with self._lock:
            self._subscribers = [item for item in self._subscribers if item is not q]

    def _on_event(self, event: str, payload: dict[str, Any]) -> None:
        normalized = {"event": event, **payload}
        with self._lock:
            alive: list[queue.Queue[dict[str, Any]]] = []
            for q in self._subscribers:
                try:
                    q.put_nowait(normalized)
                    alive.append(q)
                except queue.Full:
                    continue
            self._subscribers = alive


timer_service = TimerService()
