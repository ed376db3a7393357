"""Configuration management for the yEnc tools."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar, Optional

from dotenv import load_dotenv

from .common.constants import DEFAULT_LINE_LENGTH, MIN_LINE_LENGTH
from .common.types import EncodeOptions
from .utils import ConfigError, get_io_buffer_size

ENV_LINE_LENGTH = "YENC_LINE_LENGTH"
ENV_PART_SIZE = "YENC_PART_SIZE"
ENV_LOG_LEVEL = "YENC_LOG_LEVEL"
ENV_DOT_STUFF = "YENC_DOT_STUFF"


def _base_dir() -> Path:
    return Path(__file__).resolve().parents[1]


def _env_path() -> Path:
    return _base_dir() / ".env"


@dataclass(frozen=True)
class Config:
    """Singleton configuration object."""

    line_length: int
    part_size: int
    io_buffer_size: int
    log_level: int
    dot_stuff: bool = False

    _instance: ClassVar[Optional["Config"]] = None

    @classmethod
    def get_instance(cls) -> "Config":
        """
        Retrieve a singleton instance of Config.

        Returns:
            Config singleton instance.
        """
        if cls._instance is None:
            cls._instance = load_config()
        return cls._instance

    def encode_options(self, line_length: Optional[int] = None) -> EncodeOptions:
        """
        Single-part encode options from the configuration.

        Args:
            line_length: Overrides the configured line length when given.

        Returns:
            EncodeOptions instance.
        """
        return EncodeOptions(
            line_length=self.line_length if line_length is None else line_length,
            dot_stuff=self.dot_stuff,
        )


def _parse_int(value: str, name: str, minimum: int = 1) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise ConfigError(f"Invalid integer for {name}.") from exc
    if parsed < minimum:
        raise ConfigError(f"{name} must be at least {minimum}.")
    return parsed


def _parse_log_level(value: str) -> int:
    level = logging.getLevelName(value.upper())
    if not isinstance(level, int):
        raise ConfigError(f"Unknown log level for {ENV_LOG_LEVEL}: {value}.")
    return level


def _parse_bool(value: str, name: str) -> bool:
    lowered = value.lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("", "0", "false", "no", "off"):
        return False
    raise ConfigError(f"Invalid boolean for {name}.")


def load_config(env_file: Optional[Path] = None) -> Config:
    """
    Load and validate configuration from the environment and .env file.

    Args:
        env_file: Optional .env path; defaults to the project root.

    Returns:
        Config instance.
    """
    env_file = env_file or _env_path()
    if env_file.exists():
        load_dotenv(env_file)

    line_length = os.getenv(ENV_LINE_LENGTH, str(DEFAULT_LINE_LENGTH)).strip()
    part_size = os.getenv(ENV_PART_SIZE, "0").strip()
    log_level = os.getenv(ENV_LOG_LEVEL, "INFO").strip()
    dot_stuff = os.getenv(ENV_DOT_STUFF, "").strip()

    return Config(
        line_length=_parse_int(line_length, ENV_LINE_LENGTH, MIN_LINE_LENGTH),
        part_size=_parse_int(part_size, ENV_PART_SIZE, 0),
        io_buffer_size=get_io_buffer_size(),
        log_level=_parse_log_level(log_level),
        dot_stuff=_parse_bool(dot_stuff, ENV_DOT_STUFF),
    )
