from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Protocol

from .db import Mode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SystemStatus:
    module: str
    message: str


class StatusProvider(Protocol):
    def fetch_status(self, mode: Mode) -> SystemStatus:
        ...


FALLBACK_STATUS = {
    Mode.WORK: SystemStatus(
        module="KERNEL_PANIC_PREVENTION",
        message="正在分配最大资源至前台任务。后台进程已挂起。",
    ),
    Mode.REST: SystemStatus(
        module="KERNEL_PANIC_PREVENTION",
        message="系统冷却已激活。正在降低时钟频率以延长寿命。",
    ),
}


class StaticStatusProvider:
    def __init__(self, messages: dict[Mode, SystemStatus] | None = None) -> None:
        self.messages = dict(messages or FALLBACK_STATUS)

    def fetch_status(self, mode: Mode) -> SystemStatus:
        return self.messages[mode]


def resolve_status(provider: StatusProvider | None, mode: Mode) -> SystemStatus:
    if provider is None:
        return FALLBACK_STATUS[mode]
    try:
        status = provider.fetch_status(mode)
    except Exception as exc:
        logger.warning("status provider failed for %s: %s", mode.value, exc)
        return FALLBACK_STATUS[mode]
    if not status.module or not status.message:
        return FALLBACK_STATUS[mode]
    return status
