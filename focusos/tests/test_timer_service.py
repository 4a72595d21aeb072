from __future__ import annotations

import unittest
from unittest import mock

from focusos.api import timer_service as timer_service_module
from focusos.api.timer_service import TimerService
from focusos.clock import FakeClock
from focusos.config import TimerSettings, load_settings
from focusos.db import Mode
from focusos.tests.test_helpers import local_tmp_dir


class TestTimerService(unittest.TestCase):
    def test_engine_built_lazily_from_default_paths(self) -> None:
        with local_tmp_dir() as tmp:
            db_path = tmp / "data" / "focusos.sqlite"
            settings_path = tmp / "settings.json"
            with mock.patch.object(timer_service_module, "default_db_path", return_value=db_path), \
                    mock.patch.object(timer_service_module, "default_settings_path", return_value=settings_path):
                service = TimerService()
                self.assertFalse(db_path.exists())
                try:
                    state = service.state()
                    self.assertEqual(state.mode, Mode.WORK)
                    self.assertEqual(state.remaining_sec, 1500)
                    self.assertTrue(db_path.exists())
                    self.assertIs(service.engine, service.engine)
                finally:
                    service.shutdown()

    def test_engine_failure_raises_instead_of_returning_none(self) -> None:
        service = TimerService()
        with mock.patch.object(TimerService, "configure", return_value=None):
            with self.assertRaises(RuntimeError):
                service.engine

    def test_events_fan_out_to_subscribers(self) -> None:
        with local_tmp_dir() as tmp:
            service = TimerService()
            service.configure(tmp / "focusos.sqlite", settings_path=tmp / "settings.json", clock=FakeClock())
            subscriber = service.subscribe()
            try:
                service.update_settings(TimerSettings(work_minutes=2))
                event = subscriber.get_nowait()
                self.assertEqual(event["event"], "state")
                self.assertEqual(event["remaining_sec"], 120)
                self.assertEqual(load_settings(tmp / "settings.json").work_minutes, 2)
            finally:
                service.unsubscribe(subscriber)
                service.shutdown()


if __name__ == "__main__":
    unittest.main()
