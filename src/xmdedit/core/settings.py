"""Editor configuration and the shared logger factory.

Environment variables take precedence over ``.env``/``.env.local`` in the
working directory. Read ``settings`` for the process-wide values; call
``load_settings.cache_clear()`` after changing the environment in tests.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["dev", "test", "prod"]
LogLevelName = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

_LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


class Settings(BaseSettings):
    """Knobs for the edit pipeline, the panel and the API server.

    Attributes
    ----------
    environment : EnvName
        ``XMDEDIT_ENV``; the API server reloads on code changes under ``dev``.
    log_level : LogLevelName
        ``LOG_LEVEL``; applied to every logger from :func:`get_logger`.
    edit_model : str
        ``XMDEDIT_EDIT_MODEL``; registry alias or raw model id for edits.
    conversation_window : int
        ``XMDEDIT_CONVERSATION_WINDOW``; chat turns sent along with a prompt.
    toolbar_keep_visible_ms : int
        ``XMDEDIT_TOOLBAR_KEEP_VISIBLE_MS``; grace period before a toolbar hides.
    """

    environment: EnvName = Field(default="dev", alias="XMDEDIT_ENV")
    log_level: LogLevelName = Field(default="INFO", alias="LOG_LEVEL")
    edit_model: str = Field(default="component_edit", alias="XMDEDIT_EDIT_MODEL")
    conversation_window: int = Field(default=8, ge=1, alias="XMDEDIT_CONVERSATION_WINDOW")
    toolbar_keep_visible_ms: int = Field(
        default=1200, ge=0, alias="XMDEDIT_TOOLBAR_KEEP_VISIBLE_MS"
    )

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_dev(self) -> bool:
        return self.environment == "dev"


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    return Settings()


settings: Settings = load_settings()


def get_logger(name: str = "xmdedit") -> logging.Logger:
    """Logger with one stderr handler, leveled from the current settings."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False
    logger.setLevel(load_settings().log_level)
    return logger
