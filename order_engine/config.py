"""Environment-driven settings and logging setup."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Optional

import structlog

LOG_FORMATS = ("json", "console")


@dataclass(frozen=True)
class Settings:
    log_level: str = "info"
    log_format: str = "json"
    currency: str = "PHP"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> Settings:
        """Read settings from the environment.

        Environment variables:
            ORDER_ENGINE_LOG_LEVEL: debug, info (default), warning or error
            ORDER_ENGINE_LOG_FORMAT: "json" (default) or "console"
            ORDER_ENGINE_CURRENCY: Currency label printed on receipts (default: PHP)
        """
        env = os.environ if environ is None else environ
        log_format = env.get("ORDER_ENGINE_LOG_FORMAT", "json").lower()
        if log_format not in LOG_FORMATS:
            log_format = "json"
        return cls(
            log_level=env.get("ORDER_ENGINE_LOG_LEVEL", "info").lower(),
            log_format=log_format,
            currency=env.get("ORDER_ENGINE_CURRENCY", "PHP"),
        )

    @property
    def level_number(self) -> int:
        level = logging.getLevelName(self.log_level.upper())
        return level if isinstance(level, int) else logging.INFO


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure structlog with ISO timestamps and level filtering."""
    settings = settings or Settings.from_env()
    renderer = (
        structlog.dev.ConsoleRenderer()
        if settings.log_format == "console"
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(settings.level_number),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
    )
