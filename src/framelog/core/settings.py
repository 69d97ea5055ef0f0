"""Centralized application configuration using Pydantic Settings (v2).

This module exposes a single, cached `settings` instance that reads from:
- Real environment variables (highest precedence)
- `.env` files at the repository root: .env, .env.local, .env.dev/.env.test/.env.prod

Storage locations and the design-file key are *not* kept in module state;
they are threaded into :class:`~framelog.core.storage.commit_store.StorageContext`
at construction time (see :func:`framelog.core.storage.commit_store.build_context`).
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


class Settings(BaseSettings):
    """Typed application configuration loaded from env and `.env` files.

    Attributes
    ----------
    environment : EnvName
        Runtime environment flag; maps from `FRAMELOG_ENV`.
    log_level : LogLevelName
        Global log level string; maps from `LOG_LEVEL`.
    data_dir : Path
        Root directory of the file-backed key-value stores; maps from `FRAMELOG_DATA_DIR`.
    file_key : str
        Identifier of the design file being versioned. Scopes the backup
        namespace; maps from `FRAMELOG_FILE_KEY`.
    chunk_size : int
        Number of commit records per primary chunk key.
    max_value_bytes : int
        Per-key value bound enforced by the primary store.
    figma_token : Optional[str]
        Fallback credential used when no `pat` is persisted. Maps from `FIGMA_TOKEN`.
    """

    environment: EnvName = Field(default="dev", alias="FRAMELOG_ENV")
    log_level: LogLevelName = Field(default="INFO", alias="LOG_LEVEL")
    data_dir: Path = Field(default=Path(".framelog"), alias="FRAMELOG_DATA_DIR")
    file_key: str = Field(default="local", alias="FRAMELOG_FILE_KEY")
    chunk_size: int = Field(default=10, ge=1, alias="FRAMELOG_CHUNK_SIZE")
    max_value_bytes: int = Field(default=100_000, ge=1024, alias="FRAMELOG_MAX_VALUE_BYTES")
    figma_token: str | None = Field(default=None, alias="FIGMA_TOKEN")
    figma_api_base: str = Field(default="https://api.figma.com/v1", alias="FIGMA_API_BASE")
    request_timeout: float = Field(default=15.0, gt=0, alias="FRAMELOG_HTTP_TIMEOUT")

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local", ".env.dev", ".env.test", ".env.prod"),
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

    @property
    def is_prod(self) -> bool:
        """Return True if running in the production environment."""
        return self.environment == "prod"

    def log_level_numeric(self) -> int:
        """Return the numeric logging level corresponding to `self.log_level`."""
        return getattr(logging, self.log_level, logging.INFO)


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Create and cache a `Settings` instance.

    Tests force a rebuild via `load_settings.cache_clear()` after mutating
    `os.environ`.
    """
    os.environ.setdefault("FRAMELOG_ENV", "dev")
    return Settings()


# Ready-to-use instance (import-time read of env / .env files).
settings: Settings = load_settings()


def get_logger(name: str = "framelog") -> logging.Logger:
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
