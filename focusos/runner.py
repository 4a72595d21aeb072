from __future__ import annotations

from dataclasses import dataclass
import sys
from typing import TextIO

from .clock import Clock
from .notifier import MODE_LABELS
from .timer import Completion, TimerEngine, format_countdown


@dataclass(frozen=True)
class RunResult:
    interrupted: bool
    completed_intervals: int
    lost_sessions: int


class ConsoleRunner:
    """Foreground driver: one tick per ``tick_seconds`` with a live countdown line."""

    def __init__(
        self,
        engine: TimerEngine,
        clock: Clock,
        stream: TextIO | None = None,
        tick_seconds: float = 1.0,
    ) -> None:
        self.engine = engine
        self.clock = clock
        self.stream = stream or sys.stdout
        self.tick_seconds = tick_seconds
        self._stop_requested = False

    def request_stop(self) -> None:
        self._stop_requested = True

    def run(self, max_intervals: int | None = None) -> RunResult:
        self._stop_requested = False
        completed = 0
        lost = 0
        self.engine.start()

        state = self.engine.state()
        self.stream.write(
            f"开始 FocusOS：{MODE_LABELS[state.mode]} {format_countdown(state.remaining_sec)}\n"
        )
        self.stream.flush()

        while True:
            if self._stop_requested:
                return self._interrupt(completed, lost, "已手动停止")

            try:
                self.clock.sleep(self.tick_seconds)
            except KeyboardInterrupt:
                return self._interrupt(completed, lost, "Ctrl-C")

            completion = self.engine.tick()
            state = self.engine.state()
            if completion is None:
                self._render(MODE_LABELS[state.mode], state.remaining_sec)
                continue

            completed += 1
            if not completion.persisted:
                lost += 1
            self._report(completion)

            if not state.running:
                break
            if max_intervals is not None and completed >= max_intervals:
                self.engine.pause()
                break

        return RunResult(False, completed, lost)

    def _interrupt(self, completed: int, lost: int, reason: str) -> RunResult:
        self.engine.pause()
        self._clear_line()
        state = self.engine.state()
        self.stream.write(
            f"计时已暂停（{reason}），{MODE_LABELS[state.mode]}剩余 {format_countdown(state.remaining_sec)}\n"
        )
        self.stream.flush()
        return RunResult(True, completed, lost)

    def _report(self, completion: Completion) -> None:
        self._clear_line()
        finished = MODE_LABELS[completion.finished_mode]
        upcoming = MODE_LABELS[completion.next_mode]
        self.stream.write(f"{finished}阶段完成，下一阶段：{upcoming}\n")
        if completion.error:
            self.stream.write(f"记录保存失败：{completion.error}\n")
        self.stream.flush()

    def _render(self, label: str, remaining_seconds: int) -> None:
        self.stream.write(f"\r{label} 剩余 {format_countdown(remaining_seconds)}")
        self.stream.flush()

    def _clear_line(self) -> None:
        self.stream.write("\r" + (" " * 80) + "\r")
        self.stream.flush()
