"""Tests for configuration loading."""

from __future__ import annotations

import logging
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from yenc_engine.config import Config, load_config
from yenc_engine.utils import ConfigError


class TestConfig(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.missing = Path(self.temp_dir.name) / "missing.env"

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_defaults(self) -> None:
        with mock.patch.dict(os.environ, {}, clear=True):
            config = load_config(self.missing)
        self.assertEqual(config.line_length, 128)
        self.assertEqual(config.part_size, 0)
        self.assertEqual(config.io_buffer_size, 64 * 1024)
        self.assertEqual(config.log_level, logging.INFO)
        self.assertEqual(config.encode_options().line_length, 128)
        self.assertFalse(config.dot_stuff)

    def test_dotenv_file(self) -> None:
        env_file = Path(self.temp_dir.name) / ".env"
        env_file.write_text(
            "YENC_LINE_LENGTH=64\nYENC_PART_SIZE=500000\nYENC_LOG_LEVEL=debug\n",
            encoding="utf-8",
        )
        with mock.patch.dict(os.environ, {}, clear=True):
            config = load_config(env_file)
        self.assertEqual(config.line_length, 64)
        self.assertEqual(config.part_size, 500000)
        self.assertEqual(config.log_level, logging.DEBUG)

    def test_environment_wins_over_dotenv(self) -> None:
        env_file = Path(self.temp_dir.name) / ".env"
        env_file.write_text("YENC_LINE_LENGTH=64\n", encoding="utf-8")
        with mock.patch.dict(os.environ, {"YENC_LINE_LENGTH": "32"}, clear=True):
            config = load_config(env_file)
        self.assertEqual(config.line_length, 32)

    def test_invalid_values(self) -> None:
        for env in (
            {"YENC_LINE_LENGTH": "1"},
            {"YENC_LINE_LENGTH": "wide"},
            {"YENC_PART_SIZE": "-5"},
            {"YENC_LOG_LEVEL": "chatty"},
        ):
            with mock.patch.dict(os.environ, env, clear=True):
                with self.assertRaises(ConfigError):
                    load_config(self.missing)

    def test_dot_stuff_and_encode_options(self) -> None:
        with mock.patch.dict(os.environ, {"YENC_DOT_STUFF": "true"}, clear=True):
            config = load_config(self.missing)
        self.assertTrue(config.dot_stuff)
        options = config.encode_options(64)
        self.assertEqual(options.line_length, 64)
        self.assertTrue(options.dot_stuff)
        with mock.patch.dict(os.environ, {"YENC_DOT_STUFF": "maybe"}, clear=True):
            with self.assertRaises(ConfigError):
                load_config(self.missing)

    def test_singleton(self) -> None:
        with mock.patch.object(Config, "_instance", None):
            with mock.patch.dict(os.environ, {}, clear=True):
                first = Config.get_instance()
                self.assertIs(Config.get_instance(), first)


if __name__ == "__main__":
    unittest.main()
