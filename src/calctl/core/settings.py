"""Centralized application configuration using Pydantic Settings (v2).

This module exposes a single, cached `settings` instance that reads from:
- Real environment variables (highest precedence)
- `.env` files in the working directory: .env, .env.local

The data file location is only *read* here. The CLI resolves it once and
passes it explicitly into the store, so nothing below the command layer
depends on this module-level singleton.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["dev", "test", "prod"]
LogLevelName = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _default_data_file() -> Path:
    """Return the default backing file: ``~/.calctl/events.json``."""
    return Path.home() / ".calctl" / "events.json"


class Settings(BaseSettings):
    """Typed application configuration loaded from env and `.env` files.

    Attributes
    ----------
    environment : EnvName
        Runtime environment flag; maps from `CALCTL_ENV`.
    log_level : LogLevelName
        Global log level string; maps from `LOG_LEVEL`. Defaults to WARNING
        so that normal command output is not interleaved with log lines.
    data_file : Path
        Location of the JSON event document; maps from `CALCTL_DATA_FILE`.
    """

    environment: EnvName = Field(default="dev", alias="CALCTL_ENV")
    log_level: LogLevelName = Field(default="WARNING", alias="LOG_LEVEL")
    data_file: Path = Field(default_factory=_default_data_file, alias="CALCTL_DATA_FILE")

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_dev(self) -> bool:
        """Return True if running in the development environment."""
        return self.environment == "dev"

    @property
    def is_test(self) -> bool:
        """Return True if running in the test environment."""
        return self.environment == "test"

    def log_level_numeric(self) -> int:
        """Return the numeric logging level corresponding to `self.log_level`."""
        return getattr(logging, self.log_level, logging.WARNING)

    def resolved_data_file(self) -> Path:
        """Return `data_file` with a leading ``~`` expanded."""
        return self.data_file.expanduser()


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Create and cache a `Settings` instance.

    Tests can force a rebuild via `load_settings.cache_clear()` after
    mutating `os.environ`.
    """
    os.environ.setdefault("CALCTL_ENV", "dev")
    return Settings()


# Export a ready-to-use singleton (import-time read of env / .env files).
settings: Settings = load_settings()


def get_logger(name: str = "calctl") -> logging.Logger:
    """Return a process-global logger configured to the current log level."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        )
        logger.addHandler(handler)
    logger.setLevel(load_settings().log_level_numeric())
    logger.propagate = False
    return logger
