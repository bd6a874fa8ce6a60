# -*- coding: utf-8 -*-
"""Logging configuration for structlog + Logfire.

Every event carries the service context plus the watched ticker, and any
configured secret (bot token, RPC URL credentials) is masked before rendering.
"""

from __future__ import annotations

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlsplit

import logfire
import structlog
from structlog.types import EventDict, Processor

from kaspa_trade_watcher.config import Settings, get_settings

LOG_LEVEL_TO_LOGFIRE: dict[str, str] = {
    "DEBUG": "debug",
    "INFO": "info",
    "WARNING": "warn",
    "ERROR": "error",
    "CRITICAL": "fatal",
}

# httpx logs full request URLs at INFO, and Telegram URLs embed the bot token.
_NOISY_LOGGERS: tuple[str, ...] = ("httpx", "httpcore", "telegram", "aiohttp.access")

REDACTED = "***"


def collect_secrets(settings: Settings) -> list[str]:
    """Strings that must never reach a log sink.

    Hosted RPC endpoints usually carry the API key as userinfo, query string
    or the last path segment, so all three are collected.
    """
    secrets: list[str] = []
    if settings.telegram.api_key:
        secrets.append(settings.telegram.api_key)
    if settings.logging.logfire_token:
        secrets.append(settings.logging.logfire_token)

    parts = urlsplit(settings.chain.rpc_url)
    if parts.password:
        secrets.append(parts.password)
    if parts.query:
        secrets.append(parts.query)
    tail = parts.path.rstrip("/").rsplit("/", 1)[-1]
    if len(tail) >= 20:
        secrets.append(tail)
    return [s for s in secrets if len(s) >= 6]


class SecretRedactor:
    """structlog processor replacing configured secrets inside string values."""

    def __init__(self, secrets: list[str]) -> None:
        # Longest first so a secret containing another is masked whole.
        self._secrets = sorted(set(secrets), key=len, reverse=True)

    def _mask(self, value: str) -> str:
        for secret in self._secrets:
            if secret in value:
                value = value.replace(secret, REDACTED)
        return value

    def __call__(self, logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        if not self._secrets:
            return event_dict
        for key, value in event_dict.items():
            if isinstance(value, str):
                event_dict[key] = self._mask(value)
        return event_dict


class ServiceContext:
    """structlog processor adding logger name, service identity and watched ticker."""

    def __init__(self, settings: Settings) -> None:
        app = settings.app
        self._static: dict[str, Any] = {
            "app_name": app.app_name,
            "environment": app.environment,
            "watch_ticker": settings.marketplace.ticker,
        }
        if app.service_name:
            self._static["service_name"] = app.service_name
        if app.service_version:
            self._static["service_version"] = app.service_version

    def __call__(self, logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        stdlib_logger = getattr(logger, "_logger", None)
        event_dict["logger"] = (
            getattr(stdlib_logger, "name", None) or getattr(logger, "name", "") or ""
        )
        for key, value in self._static.items():
            event_dict.setdefault(key, value)
        return event_dict


def _build_handlers(settings: Settings) -> tuple[list[logging.Handler], list[int]]:
    """Create the stdlib handlers enabled in settings and their levels."""
    logging_settings = settings.logging
    handlers: list[logging.Handler] = []
    enabled_levels: list[int] = []

    if logging_settings.log_to_console:
        console_level = getattr(logging, logging_settings.console_level.upper(), logging.INFO)
        console_handler = logging.StreamHandler()
        console_handler.setLevel(console_level)
        console_handler.setFormatter(logging.Formatter("%(message)s"))
        handlers.append(console_handler)
        enabled_levels.append(console_level)

    if logging_settings.log_to_file:
        file_level = getattr(logging, logging_settings.file_level.upper(), logging.INFO)
        log_file_path = Path(logging_settings.log_file_path)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            log_file_path,
            when=logging_settings.log_file_when,
            interval=logging_settings.log_file_interval,
            backupCount=logging_settings.log_file_backup_count,
            encoding="utf-8",
            utc=logging_settings.log_file_utc,
        )
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter("%(message)s"))
        handlers.append(file_handler)
        enabled_levels.append(file_level)

    return handlers, enabled_levels


def build_processors(settings: Settings) -> list[Processor]:
    """Processor chain for the given settings, renderer last."""
    logging_settings = settings.logging
    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        ServiceContext(settings),
        SecretRedactor(collect_secrets(settings)),
    ]

    if logging_settings.logfire_enabled:
        processors.append(logfire.StructlogProcessor())  # type: ignore[arg-type]

    # File output is always JSON; console follows json_format unless a file is also enabled.
    if logging_settings.log_to_console or logging_settings.log_to_file:
        use_json = logging_settings.log_to_file or logging_settings.json_format
        renderer: Any = (
            structlog.processors.JSONRenderer() if use_json else structlog.dev.ConsoleRenderer()
        )
        processors.append(renderer)
    return processors


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure stdlib handlers, Logfire and structlog from settings."""
    settings = settings or get_settings()
    app_settings = settings.app
    logging_settings = settings.logging

    handlers, enabled_levels = _build_handlers(settings)
    if handlers:
        logging.basicConfig(level=min(enabled_levels), handlers=handlers, force=True)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if logging_settings.logfire_enabled:
        logfire.configure(
            token=logging_settings.logfire_token,
            service_name=app_settings.service_name or app_settings.app_name,
            service_version=app_settings.service_version,
            min_level=LOG_LEVEL_TO_LOGFIRE.get(logging_settings.logfire_level, "info"),  # type: ignore[arg-type]
            environment=app_settings.environment,
        )

    structlog.configure(
        processors=build_processors(settings),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
