from __future__ import annotations

import argparse
from dataclasses import replace
from datetime import datetime
import logging
from pathlib import Path
import sys

from .clock import RealClock
from .config import TimerSettings, default_settings_path, load_settings, save_settings
from .db import SessionStore, SessionStoreError, default_db_path
from .notifier import DesktopNotifier
from .reporting import build_stats, format_duration
from .runner import ConsoleRunner
from .timer import TimerEngine

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _positive_minutes(value: str) -> float:
    try:
        minutes = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"无效的分钟数：{value}") from exc
    if minutes <= 0:
        raise argparse.ArgumentTypeError("时长必须大于 0")
    return minutes


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="focusos",
        description="FocusOS：番茄钟计时、会话记录与专注统计",
    )
    parser.add_argument(
        "--db",
        default=str(default_db_path()),
        help="SQLite 数据库路径（默认在 focusos/data/focusos.sqlite）",
    )
    parser.add_argument(
        "--settings",
        default=str(default_settings_path()),
        help="设置文件路径（默认 ~/.focusos/settings.json）",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="输出调试日志")

    subparsers = parser.add_subparsers(dest="command", required=True)

    start_parser = subparsers.add_parser("start", help="在前台开始计时")
    _add_setting_overrides(start_parser)
    start_parser.add_argument(
        "--intervals",
        type=int,
        default=None,
        help="自动衔接时最多完成的阶段数",
    )
    start_parser.add_argument(
        "--tick-seconds",
        type=float,
        default=1.0,
        help="倒计时刷新间隔（秒，>0）",
    )

    log_parser = subparsers.add_parser("log", help="查看最近的专注记录")
    log_parser.add_argument("--limit", type=int, default=20, help="最多显示条数")

    subparsers.add_parser("stats", help="查看最近 7 天统计与连续天数")

    config_parser = subparsers.add_parser("config", help="查看或修改设置")
    config_sub = config_parser.add_subparsers(dest="config_command", required=True)
    config_sub.add_parser("show", help="显示当前设置")
    set_parser = config_sub.add_parser("set", help="修改并保存设置")
    _add_setting_overrides(set_parser)

    serve_parser = subparsers.add_parser("serve", help="启动本地 HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="监听地址")
    serve_parser.add_argument("--port", type=int, default=8765, help="监听端口")

    return parser


def _add_setting_overrides(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--work", type=_positive_minutes, default=None, help="专注时长（分钟）")
    parser.add_argument(
        "--break",
        dest="break_minutes",
        type=_positive_minutes,
        default=None,
        help="休息时长（分钟）",
    )
    parser.add_argument(
        "--auto-advance",
        dest="auto_advance",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="阶段结束后自动开始下一阶段",
    )
    parser.add_argument(
        "--notify",
        dest="notifications_enabled",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="启用桌面通知",
    )
    parser.add_argument(
        "--sound",
        dest="sound_enabled",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="启用提示音",
    )


def apply_overrides(settings: TimerSettings, args: argparse.Namespace) -> TimerSettings:
    changes: dict[str, object] = {}
    if args.work is not None:
        changes["work_minutes"] = float(args.work)
    if args.break_minutes is not None:
        changes["break_minutes"] = float(args.break_minutes)
    for key in ("auto_advance", "notifications_enabled", "sound_enabled"):
        value = getattr(args, key)
        if value is not None:
            changes[key] = bool(value)
    return replace(settings, **changes)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format=LOG_FORMAT,
    )

    settings_path = Path(args.settings)
    if args.command == "config":
        return _handle_config(args, settings_path)
    if args.command == "serve":
        return _handle_serve(args, settings_path)

    try:
        store = SessionStore(Path(args.db))
    except SessionStoreError as exc:
        print(f"无法打开数据库：{exc}", file=sys.stderr)
        return 1

    try:
        if args.command == "start":
            return _handle_start(args, store, settings_path, parser)
        if args.command == "log":
            return _handle_log(args, store)
        if args.command == "stats":
            return _handle_stats(store)
    except SessionStoreError as exc:
        print(f"读取会话记录失败：{exc}", file=sys.stderr)
        return 1

    parser.print_help()
    return 2


def _handle_start(
    args: argparse.Namespace,
    store: SessionStore,
    settings_path: Path,
    parser: argparse.ArgumentParser,
) -> int:
    if args.tick_seconds <= 0:
        parser.error("--tick-seconds 必须大于 0")
    if args.intervals is not None and args.intervals < 1:
        parser.error("--intervals 必须大于等于 1")

    settings = apply_overrides(load_settings(settings_path), args)
    notifier = DesktopNotifier(
        stream=sys.stdout,
        notifications_enabled=settings.notifications_enabled,
        sound_enabled=settings.sound_enabled,
    )
    clock = RealClock()
    engine = TimerEngine(store=store, clock=clock, notifier=notifier, settings=settings)
    runner = ConsoleRunner(engine, clock, stream=sys.stdout, tick_seconds=args.tick_seconds)
    result = runner.run(max_intervals=args.intervals)
    return 130 if result.interrupted else 0


def _handle_log(args: argparse.Namespace, store: SessionStore) -> int:
    sessions = store.recent(limit=args.limit)
    if not sessions:
        print("没有专注记录。")
        return 0

    for item in sessions:
        finished = datetime.fromtimestamp(item.timestamp_ms / 1000).astimezone()
        print(
            f"{finished.strftime('%Y-%m-%d %H:%M:%S')} | {item.mode.value} | "
            f"{format_duration(item.duration_sec)} | {item.id}"
        )
    return 0


def _handle_stats(store: SessionStore) -> int:
    stats = build_stats(store.all())
    print("[最近 7 天]")
    for entry in stats.daily_minutes:
        print(f"{entry.day.isoformat()} {entry.weekday}: {entry.minutes} 分钟")
    print("")
    print(f"累计专注: {stats.total_hours_text} 小时")
    print(f"专注会话: {stats.total_sessions} 次")
    print(f"连续天数: {stats.streak} 天")
    return 0


def _handle_config(args: argparse.Namespace, settings_path: Path) -> int:
    settings = load_settings(settings_path)
    if args.config_command == "set":
        settings = apply_overrides(settings, args)
        save_settings(settings, settings_path)
        print(f"设置已保存：{settings_path}")

    for key, value in settings.to_dict().items():
        print(f"{key} = {value}")
    return 0


def _handle_serve(args: argparse.Namespace, settings_path: Path) -> int:
    try:
        import uvicorn
    except ImportError as exc:
        print(f"无法启动 API：缺少依赖 uvicorn。{exc}", file=sys.stderr)
        return 2

    from .api.app import create_app

    app = create_app(db_path=Path(args.db), settings_path=settings_path)
    uvicorn.run(app, host=args.host, port=args.port, log_level="warning")
    return 0
