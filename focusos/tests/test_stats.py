from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
import os
import time
import unittest
from unittest import mock
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from focusos.clock import to_epoch_ms
from focusos.db import Mode, SessionRecord, SessionStore
from focusos.reporting import (
    WEEKDAY_LABELS,
    build_stats,
    compute_streak,
    format_duration,
    weekly_histogram,
    work_totals,
)
from focusos.tests.test_helpers import local_tmp_dir

NOW = datetime(2026, 2, 13, 12, 0, tzinfo=timezone.utc)


def _at(days_ago: int, hour: int = 9, mode: Mode = Mode.WORK, duration: int = 1500) -> SessionRecord:
    moment = NOW.replace(hour=hour) - timedelta(days=days_ago)
    return SessionRecord(
        id=f"{mode.value}-{days_ago}-{hour}",
        mode=mode,
        duration_sec=duration,
        timestamp_ms=to_epoch_ms(moment),
    )


class TestStreak(unittest.TestCase):
    def test_no_sessions(self) -> None:
        self.assertEqual(compute_streak([], now=NOW), 0)

    def test_two_sessions_same_day(self) -> None:
        self.assertEqual(compute_streak([_at(0, 9), _at(0, 11)], now=NOW), 1)

    def test_today_and_yesterday(self) -> None:
        self.assertEqual(compute_streak([_at(0), _at(1)], now=NOW), 2)

    def test_three_consecutive_days(self) -> None:
        self.assertEqual(compute_streak([_at(2), _at(0), _at(1)], now=NOW), 3)

    def test_gap_stops_walk(self) -> None:
        self.assertEqual(compute_streak([_at(0), _at(2)], now=NOW), 1)

    def test_yesterday_keeps_streak_alive(self) -> None:
        self.assertEqual(compute_streak([_at(1), _at(2), _at(2, 15)], now=NOW), 2)

    def test_last_session_three_days_ago(self) -> None:
        self.assertEqual(compute_streak([_at(3), _at(4)], now=NOW), 0)

    def test_rest_sessions_ignored(self) -> None:
        records = [_at(0, mode=Mode.REST, duration=300), _at(1)]
        self.assertEqual(compute_streak(records, now=NOW), 1)


class TestWeeklyHistogram(unittest.TestCase):
    def test_one_session_per_day(self) -> None:
        records = [_at(days) for days in range(7)]
        stats = build_stats(records, now=NOW)

        self.assertEqual([item.minutes for item in stats.daily_minutes], [25] * 7)
        self.assertEqual(stats.daily_minutes[0].day, date(2026, 2, 7))
        self.assertEqual(stats.daily_minutes[-1].day, date(2026, 2, 13))
        self.assertEqual(stats.total_hours_text, "2.9")
        self.assertEqual(stats.total_sessions, 7)
        self.assertEqual(stats.streak, 7)

    def test_window_bounds_and_rest_excluded(self) -> None:
        records = [
            _at(7),
            _at(0, hour=0),
            _at(0, hour=10, duration=119),
            _at(0, hour=11, mode=Mode.REST, duration=600),
        ]
        minutes = [item.minutes for item in weekly_histogram(records, now=NOW)]
        self.assertEqual(minutes, [0, 0, 0, 0, 0, 0, 26])

    def test_local_calendar_days(self) -> None:
        tz = timezone(timedelta(hours=8))
        now = datetime(2026, 2, 13, 1, 0, tzinfo=tz)
        late_utc = SessionRecord(
            id="late",
            mode=Mode.WORK,
            duration_sec=600,
            timestamp_ms=to_epoch_ms(datetime(2026, 2, 12, 20, 0, tzinfo=timezone.utc)),
        )
        minutes = [item.minutes for item in weekly_histogram([late_utc], now=now)]
        self.assertEqual(minutes[-1], 10)

    def test_days_carry_weekday_labels(self) -> None:
        days = weekly_histogram([], now=NOW)
        self.assertEqual(days[-1].weekday, "周五")
        self.assertEqual(days[0].weekday, "周六")
        self.assertEqual([item.weekday for item in days], [WEEKDAY_LABELS[item.day.weekday()] for item in days])


def _work_at(moment: datetime, duration: int = 1500) -> SessionRecord:
    return SessionRecord(
        id=f"work-{moment.isoformat()}",
        mode=Mode.WORK,
        duration_sec=duration,
        timestamp_ms=to_epoch_ms(moment),
    )


@unittest.skipUnless(hasattr(time, "tzset"), "needs time.tzset")
class TestLocalDaysAcrossDst(unittest.TestCase):
    # 2026-03-08 02:00 America/New_York switches EST (-5) to EDT (-4).
    LATE_SATURDAY = datetime(2026, 3, 8, 4, 30, tzinfo=timezone.utc)  # 03-07 23:30 EST
    MONDAY_MORNING = datetime(2026, 3, 9, 14, 0, tzinfo=timezone.utc)  # 03-09 10:00 EDT

    def setUp(self) -> None:
        self.addCleanup(time.tzset)
        patcher = mock.patch.dict(os.environ, {"TZ": "America/New_York"})
        patcher.start()
        self.addCleanup(patcher.stop)
        time.tzset()
        if time.localtime(to_epoch_ms(self.LATE_SATURDAY) / 1000).tm_hour != 23:
            self.skipTest("America/New_York rules unavailable")

    def test_system_local_now_buckets_with_offset_of_each_session(self) -> None:
        now = datetime(2026, 3, 10, 12, 0).astimezone()
        days = weekly_histogram([_work_at(self.LATE_SATURDAY)], now=now)

        self.assertEqual(days[-1].day, date(2026, 3, 10))
        by_day = {item.day: item.minutes for item in days}
        self.assertEqual(by_day[date(2026, 3, 7)], 25)
        self.assertEqual(by_day[date(2026, 3, 8)], 0)

    def test_streak_not_bridged_by_dst_shift(self) -> None:
        now = datetime(2026, 3, 10, 12, 0).astimezone()
        records = [_work_at(self.LATE_SATURDAY), _work_at(self.MONDAY_MORNING)]
        self.assertEqual(compute_streak(records, now=now), 1)

    def test_default_now_uses_system_local_days(self) -> None:
        stats = build_stats([_work_at(self.LATE_SATURDAY)], now=None)
        self.assertEqual(stats.total_sessions, 1)
        self.assertEqual(len(stats.daily_minutes), 7)

    def test_named_zone_now_keeps_its_rules(self) -> None:
        try:
            zone = ZoneInfo("America/New_York")
        except ZoneInfoNotFoundError:
            self.skipTest("tz database unavailable")
        now = datetime(2026, 3, 10, 12, 0, tzinfo=zone)
        by_day = {item.day: item.minutes for item in weekly_histogram([_work_at(self.LATE_SATURDAY)], now=now)}
        self.assertEqual(by_day[date(2026, 3, 7)], 25)


class TestTotals(unittest.TestCase):
    def test_totals_include_older_sessions(self) -> None:
        records = [_at(0), _at(30, duration=3600), _at(1, mode=Mode.REST, duration=300)]
        self.assertEqual(work_totals(records), (5100, 2))

    def test_stats_from_store(self) -> None:
        with local_tmp_dir() as tmp:
            store = SessionStore(tmp / "focusos.sqlite")
            store.append(_at(0))
            store.append(_at(1))
            stats = build_stats(store.all(), now=NOW)
            self.assertEqual(stats.streak, 2)
            self.assertEqual(stats.total_work_sec, 3000)
            self.assertAlmostEqual(stats.total_work_hours, 3000 / 3600)

    def test_format_duration(self) -> None:
        self.assertEqual(format_duration(59), "0分59秒")
        self.assertEqual(format_duration(3725), "1小时02分05秒")


if __name__ == "__main__":
    unittest.main()
