from __future__ import annotations

import platform
import shutil
import subprocess
import sys
from typing import Protocol, TextIO

from .db import Mode

MODE_LABELS = {Mode.WORK: "专注", Mode.REST: "休息"}


class Notifier(Protocol):
    def on_warning_threshold(self, mode: Mode, remaining_sec: int) -> None:
        ...

    def on_interval_complete(self, mode: Mode, next_mode: Mode) -> None:
        ...


class NullNotifier:
    def on_warning_threshold(self, mode: Mode, remaining_sec: int) -> None:
        return None

    def on_interval_complete(self, mode: Mode, next_mode: Mode) -> None:
        return None


class DesktopNotifier:
    """Desktop popups via osascript / notify-send, console line as fallback."""

    def __init__(
        self,
        stream: TextIO | None = None,
        notifications_enabled: bool = False,
        sound_enabled: bool = True,
    ) -> None:
        self.stream = stream or sys.stdout
        self.notifications_enabled = notifications_enabled
        self.sound_enabled = sound_enabled

    def configure(self, notifications_enabled: bool, sound_enabled: bool) -> None:
        self.notifications_enabled = notifications_enabled
        self.sound_enabled = sound_enabled

    def on_warning_threshold(self, mode: Mode, remaining_sec: int) -> None:
        self._bell()
        if self.notifications_enabled:
            self.notify("警报", f"{MODE_LABELS[mode]}时间即将结束！剩余 {remaining_sec} 秒")

    def on_interval_complete(self, mode: Mode, next_mode: Mode) -> None:
        self._bell()
        if self.notifications_enabled:
            self.notify("任务完成", f"{MODE_LABELS[mode]}结束，准备进入{MODE_LABELS[next_mode]}阶段。")

    def notify(self, title: str, message: str) -> None:
        sent = False
        system_name = platform.system().lower()

        try:
            if system_name == "darwin" and shutil.which("osascript"):
                script = (
                    "display notification "
                    f"\"{self._escape(message)}\" with title \"{self._escape(title)}\""
                )
                result = subprocess.run(
                    ["osascript", "-e", script],
                    check=False,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                )
                sent = result.returncode == 0
            elif system_name == "linux" and shutil.which("notify-send"):
                result = subprocess.run(
                    ["notify-send", title, message],
                    check=False,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                )
                sent = result.returncode == 0
        except OSError:
            sent = False

        if not sent:
            self.stream.write(f"[通知] {title}: {message}\n")
            self.stream.flush()

    def _bell(self) -> None:
        if not self.sound_enabled:
            return
        self.stream.write("\a")
        self.stream.flush()

    @staticmethod
    def _escape(text: str) -> str:
        return text.replace("\\", "\\\\").replace('"', '\\"')
