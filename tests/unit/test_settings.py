"""Tests for config persistence and tuning-value sanitization.

Malformed or out-of-range values must fall back to defaults or be clamped,
never break startup.
"""

from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from vibewatch import config


class SettingsLoadTests(unittest.TestCase):
    def test_missing_file_yields_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with mock.patch("vibewatch.config.CONFIG_PATH", Path(tmp) / "config.json"):
                settings = config.load_settings()

        self.assertEqual(settings, config.Settings())
        self.assertAlmostEqual(settings.debounce_seconds, 0.1)
        self.assertEqual(settings.channel_capacity, 64)
        self.assertAlmostEqual(settings.cache_freshness_seconds, 1.0)

    def test_valid_values_are_converted_to_seconds(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "config.json"
            with mock.patch("vibewatch.config.CONFIG_PATH", config_path):
                config.save_config(
                    {
                        "debounce_ms": 250,
                        "channel_capacity": 16,
                        "cache_freshness_ms": 0,
                        "git_timeout_seconds": 2.5,
                        "max_entries": 10,
                        "style": " dracula ",
                    }
                )
                settings = config.load_settings()

        self.assertAlmostEqual(settings.debounce_seconds, 0.25)
        self.assertEqual(settings.channel_capacity, 16)
        self.assertEqual(settings.cache_freshness_seconds, 0.0)
        self.assertEqual(settings.git_timeout_seconds, 2.5)
        self.assertEqual(settings.max_entries, 10)
        self.assertEqual(settings.style, "dracula")

    def test_invalid_values_fall_back_or_clamp(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "config.json"
            with mock.patch("vibewatch.config.CONFIG_PATH", config_path):
                config.save_config(
                    {
                        "debounce_ms": 5,
                        "channel_capacity": True,
                        "cache_freshness_ms": 10**9,
                        "git_timeout_seconds": -1,
                        "max_entries": "many",
                        "style": "",
                    }
                )
                settings = config.load_settings()

        defaults = config.Settings()
        self.assertEqual(settings.debounce_seconds, defaults.debounce_seconds)
        self.assertEqual(settings.channel_capacity, defaults.channel_capacity)
        self.assertEqual(settings.cache_freshness_seconds, 60.0)
        self.assertEqual(settings.git_timeout_seconds, defaults.git_timeout_seconds)
        self.assertEqual(settings.max_entries, defaults.max_entries)
        self.assertEqual(settings.style, defaults.style)

    def test_large_capacity_is_clamped(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "config.json"
            with mock.patch("vibewatch.config.CONFIG_PATH", config_path):
                config.save_config({"channel_capacity": 1_000_000, "debounce_ms": 99999})
                settings = config.load_settings()

        self.assertEqual(settings.channel_capacity, 4096)
        self.assertAlmostEqual(settings.debounce_seconds, 5.0)

    def test_malformed_json_is_ignored(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "config.json"
            config_path.write_text("{not json", encoding="utf-8")
            with mock.patch("vibewatch.config.CONFIG_PATH", config_path):
                self.assertEqual(config.load_config(), {})
                self.assertEqual(config.load_settings(), config.Settings())

    def test_non_object_json_is_ignored(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "config.json"
            config_path.write_text("[1, 2, 3]", encoding="utf-8")
            with mock.patch("vibewatch.config.CONFIG_PATH", config_path):
                self.assertEqual(config.load_config(), {})


class SettingsSaveTests(unittest.TestCase):
    def test_save_settings_writes_disk_units_and_keeps_unknown_keys(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "nested" / "config.json"
            with mock.patch("vibewatch.config.CONFIG_PATH", config_path):
                config.save_config({"theme_note": "keep me"})
                config.save_settings(config.Settings(debounce_seconds=0.3, max_entries=50))
                saved = json.loads(config_path.read_text(encoding="utf-8"))
                reloaded = config.load_settings()

        self.assertEqual(saved["theme_note"], "keep me")
        self.assertEqual(saved["debounce_ms"], 300)
        self.assertEqual(saved["cache_freshness_ms"], 1000)
        self.assertEqual(reloaded.max_entries, 50)
        self.assertAlmostEqual(reloaded.debounce_seconds, 0.3)

    def test_save_config_ignores_unwritable_location(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            blocker = Path(tmp) / "blocker"
            blocker.write_text("", encoding="utf-8")
            with mock.patch("vibewatch.config.CONFIG_PATH", blocker / "config.json"):
                config.save_config({"style": "monokai"})

            self.assertTrue(blocker.is_file())


if __name__ == "__main__":
    unittest.main()
