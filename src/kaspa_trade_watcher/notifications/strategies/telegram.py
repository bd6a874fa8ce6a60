# -*- coding: utf-8 -*-
"""Telegram notification strategy (async)."""

from __future__ import annotations

import asyncio
import time
import structlog
from collections.abc import Awaitable
from typing import Any, Callable, Optional, TYPE_CHECKING, cast

from telegram import Bot, InlineKeyboardButton, InlineKeyboardMarkup
from telegram.error import (
    BadRequest,
    Forbidden,
    NetworkError,
    RetryAfter,
    TelegramError,
    TimedOut,
)
from telegram.request import HTTPXRequest

from kaspa_trade_watcher.notifications.types import NotificationMessage
from kaspa_trade_watcher.notifications.strategies.base import BaseNotificationStrategy

if TYPE_CHECKING:
    from kaspa_trade_watcher.config.config import Settings
    from kaspa_trade_watcher.notifications.types import NotificationStyler

SendCall = Callable[[], Awaitable[Any]]


class TelegramNotifier(BaseNotificationStrategy):
    """Send notifications to Telegram using python-telegram-bot.

    Routing by payload audience: `admin` goes to the operator chat (dropped when
    none is configured); `levels` goes to the levels thread when set, otherwise
    to the market thread; everything else goes to the market thread of the
    target chat. A configured media slot (photo, animation or video) or the NFT
    image is sent with the text as caption; if that fails the text is sent alone.
    """

    def __init__(
        self,
        settings: "Settings",
        styler: "NotificationStyler",
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        super().__init__(settings, muted_events=settings.telegram.muted_events)
        self._logger = get_logger(logger_name or self.__class__.__name__)
        self._styler: "NotificationStyler" = styler

        cfg = self.settings.telegram
        token = cfg.api_key
        chat_id = cfg.chat_id
        if not cfg.enabled or not token or not chat_id:
            raise ValueError("TelegramNotifier requires token and chat_id.")

        self.token: str = str(token)
        self.chat_id: str = str(chat_id)
        self.admin_chat_id: Optional[str] = str(cfg.admin_chat_id) if cfg.admin_chat_id else None
        self.market_thread_id = cfg.market_thread_id
        self.levels_thread_id = cfg.levels_thread_id
        self.messages_per_minute = cfg.messages_per_minute
        self.max_retries = cfg.max_retries
        self.backoff_base_seconds = cfg.backoff_base_seconds

        self.connect_timeout = cfg.connect_timeout
        self.read_timeout = cfg.read_timeout
        self.write_timeout = cfg.write_timeout
        self.pool_timeout = cfg.pool_timeout

        self._bot: Optional[Bot] = None
        self._running = False
        self._message_timestamps: list[float] = []

    @property
    def is_running(self) -> bool:
        return self._running

    async def initialize(self) -> None:
        if not self.settings.telegram.enabled:
            return
        if self._running:
            self._logger.warning("telegram_already_running")
            return

        try:
            request = HTTPXRequest(
                connect_timeout=self.connect_timeout,
                read_timeout=self.read_timeout,
                write_timeout=self.write_timeout,
                pool_timeout=self.pool_timeout,
            )
            self._bot = Bot(token=self.token, request=request)
        except Exception as exc:  # pragma: no cover - fallback path
            self._logger.warning(
                "telegram_http_request_fallback",
                error_type=type(exc).__name__,
                error_message=str(exc),
            )
            self._bot = Bot(token=self.token)

        self._running = True

    async def shutdown(self) -> None:
        if not self._running:
            return

        self._bot = None
        self._running = False

    def route(self, message: NotificationMessage) -> Optional[tuple[str, Optional[int]]]:
        """Return (chat_id, message_thread_id) for a message, or None to drop it."""
        audience = message.audience
        if message.is_admin:
            return (self.admin_chat_id, None) if self.admin_chat_id else None
        if audience == "levels" and self.levels_thread_id:
            return self.chat_id, self.levels_thread_id
        return self.chat_id, self.market_thread_id

    async def send_notification(self, message: NotificationMessage) -> None:
        if not self._running:
            self._logger.warning("telegram_not_running_cannot_send")
            return
        if not self.accepts(message):
            return
        bot = self._bot
        if bot is None:
            self._logger.error("telegram_bot_not_initialized")
            return

        target = self.route(message)
        if target is None:
            self._logger.debug("telegram_message_unrouted", notification_event_type=message.event_type)
            return
        chat_id, thread_id = target
        payload = message.payload or {}
        text = self._styler.render(message, parse_html=True)
        options: dict[str, Any] = {"parse_mode": "HTML", "message_thread_id": thread_id}
        markup = self._reply_markup(payload)
        if markup is not None:
            options["reply_markup"] = markup

        image_url = payload.get("image_url")
        media_call = self._media_call(bot, chat_id, payload, text, options)
        if media_call is not None:
            if await self._deliver(media_call):
                return
            if image_url:
                text = f"{text}\n\n📷 {image_url}"

        await self._deliver(lambda: bot.send_message(chat_id=chat_id, text=text, **options))

    @staticmethod
    def _reply_markup(payload: dict[str, Any]) -> Optional[InlineKeyboardMarkup]:
        url = payload.get("button_url")
        label = payload.get("button_text")
        if not url or not label:
            return None
        return InlineKeyboardMarkup([[InlineKeyboardButton(text=str(label), url=str(url))]])

    @staticmethod
    def _media_call(
        bot: Bot,
        chat_id: str,
        payload: dict[str, Any],
        caption: str,
        options: dict[str, Any],
    ) -> Optional[SendCall]:
        """Configured slot media first, then the NFT image URL; None sends text only."""
        media = payload.get("media")
        if isinstance(media, dict):
            ref = cast(dict[str, Any], media)
            kind, file_id = ref.get("kind"), ref.get("file_id")
            if file_id and kind == "photo":
                return lambda: bot.send_photo(chat_id=chat_id, photo=file_id, caption=caption, **options)
            if file_id and kind == "animation":
                return lambda: bot.send_animation(
                    chat_id=chat_id, animation=file_id, caption=caption, **options
                )
            if file_id and kind == "video":
                return lambda: bot.send_video(chat_id=chat_id, video=file_id, caption=caption, **options)
        image_url = payload.get("image_url")
        if image_url:
            return lambda: bot.send_photo(chat_id=chat_id, photo=image_url, caption=caption, **options)
        return None

    async def _deliver(self, send: SendCall) -> bool:
        """Run one Telegram call with rate limiting and retries. Returns False if it was dropped."""
        await self._apply_rate_limit()
        attempt = 1
        while attempt <= self.max_retries:
            try:
                await send()
                self._message_timestamps.append(time.time())
                return True
            except RetryAfter as exc:
                retry_after = exc.retry_after
                retry_seconds = (
                    retry_after.total_seconds() if hasattr(retry_after, "total_seconds") else float(retry_after)
                )
                self._logger.warning(
                    "telegram_rate_limit_retry_after",
                    retry_seconds=retry_seconds,
                )
                await asyncio.sleep(retry_seconds)
            except (BadRequest, Forbidden) as exc:
                self._logger.error(
                    "telegram_fatal_error",
                    error_type=type(exc).__name__,
                    error_message=str(exc),
                )
                return False
            except (NetworkError, TimedOut) as exc:
                backoff = min(60.0, self.backoff_base_seconds * (2 ** (attempt - 1)))
                self._logger.warning(
                    "telegram_network_error_retry",
                    error_type=type(exc).__name__,
                    attempt=attempt,
                    max_retries=self.max_retries,
                    backoff_seconds=backoff,
                )
                await asyncio.sleep(backoff)
            except TelegramError as exc:
                backoff = min(60.0, self.backoff_base_seconds * (2 ** (attempt - 1)))
                self._logger.warning(
                    "telegram_error_retry",
                    error_type=type(exc).__name__,
                    attempt=attempt,
                    max_retries=self.max_retries,
                    backoff_seconds=backoff,
                )
                await asyncio.sleep(backoff)
            attempt += 1

        self._logger.error("telegram_max_retries_exceeded_message_dropped")
        return False

    async def _apply_rate_limit(self) -> None:
        if self.messages_per_minute <= 0:
            return

        now = time.time()
        window_start = now - 60
        self._message_timestamps = [t for t in self._message_timestamps if t >= window_start]
        if len(self._message_timestamps) >= self.messages_per_minute:
            sleep_time = 60 - (now - self._message_timestamps[0])
            if sleep_time > 0:
                await asyncio.sleep(sleep_time)
