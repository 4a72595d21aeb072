from __future__ import annotations

import unittest
from pathlib import Path
from tempfile import TemporaryDirectory

from focusos.config import TimerSettings, default_settings_path, load_settings, save_settings
from focusos.db import Mode


class TimerSettingsTests(unittest.TestCase):
    def test_load_defaults_when_file_missing(self) -> None:
        with TemporaryDirectory() as tmp:
            settings = load_settings(Path(tmp) / "missing.json")
            self.assertEqual(settings, TimerSettings())
            self.assertEqual(settings.duration_for(Mode.WORK), 1500)
            self.assertEqual(settings.duration_for(Mode.REST), 300)

    def test_save_and_load_roundtrip(self) -> None:
        with TemporaryDirectory() as tmp:
            settings_path = Path(tmp) / "nested" / "settings.json"
            original = TimerSettings(
                work_minutes=50,
                break_minutes=10,
                auto_advance=True,
                notifications_enabled=True,
                sound_enabled=False,
            )
            save_settings(original, settings_path)
            self.assertEqual(load_settings(settings_path), original)
            self.assertFalse(settings_path.with_suffix(".json.tmp").exists())

    def test_default_settings_path_under_home(self) -> None:
        with TemporaryDirectory() as tmp:
            path = default_settings_path(Path(tmp))
            self.assertTrue(str(path).startswith(tmp))
            self.assertEqual(path.name, "settings.json")

    def test_load_invalid_json_falls_back_to_defaults(self) -> None:
        with TemporaryDirectory() as tmp:
            settings_path = Path(tmp) / "settings.json"
            settings_path.write_text("{broken-json\n", encoding="utf-8")
            with self.assertLogs("focusos.config", level="WARNING"):
                settings = load_settings(settings_path)
            self.assertEqual(settings, TimerSettings())

    def test_from_dict_parses_values_safely(self) -> None:
        settings = TimerSettings.from_dict(
            {
                "work_minutes": "-3",
                "break_minutes": "not-a-number",
                "auto_advance": "yes",
                "notifications_enabled": 1,
                "sound_enabled": "off",
            }
        )
        self.assertEqual(settings.work_minutes, 25.0)
        self.assertEqual(settings.break_minutes, 5.0)
        self.assertTrue(settings.auto_advance)
        self.assertTrue(settings.notifications_enabled)
        self.assertFalse(settings.sound_enabled)

    def test_fractional_minutes_round_to_seconds(self) -> None:
        settings = TimerSettings(work_minutes=0.05, break_minutes=0.001)
        self.assertEqual(settings.duration_for(Mode.WORK), 3)
        self.assertEqual(settings.duration_for(Mode.REST), 1)


if __name__ == "__main__":
    unittest.main()
