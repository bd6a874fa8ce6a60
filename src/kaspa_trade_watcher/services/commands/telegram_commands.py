# -*- coding: utf-8 -*-
"""Telegram transport for operator commands (python-telegram-bot long polling)."""

from __future__ import annotations

from collections.abc import Awaitable
from typing import TYPE_CHECKING, Any, Callable, Optional

import structlog
from telegram import Update
from telegram.error import TelegramError
from telegram.ext import Application, ApplicationBuilder, CommandHandler, ContextTypes, MessageHandler, filters

from kaspa_trade_watcher.models.snapshot import MEDIA_SLOTS, MediaRef
from kaspa_trade_watcher.services.commands.operator_commands import CommandReply, OperatorCommands

if TYPE_CHECKING:
    from kaspa_trade_watcher.config import Settings

Handler = Callable[[Update, ContextTypes.DEFAULT_TYPE], Awaitable[None]]


def extract_media(message: Any) -> Optional[MediaRef]:
    """Pick the reusable file_id from a chat message.

    Photos use the largest size. A document is only accepted when it is a GIF,
    and is then stored as an animation.
    """
    if message is None:
        return None
    photo = getattr(message, "photo", None)
    if photo:
        return MediaRef(kind="photo", file_id=photo[-1].file_id)
    animation = getattr(message, "animation", None)
    if animation is not None:
        return MediaRef(kind="animation", file_id=animation.file_id)
    video = getattr(message, "video", None)
    if video is not None:
        return MediaRef(kind="video", file_id=video.file_id)
    document = getattr(message, "document", None)
    if document is not None:
        mime = (document.mime_type or "").lower()
        name = (document.file_name or "").lower()
        if "gif" in mime or name.endswith(".gif"):
            return MediaRef(kind="animation", file_id=document.file_id)
    return None


def _first_arg(context: Any) -> Optional[str]:
    args = getattr(context, "args", None) or []
    return args[0] if args else None


class TelegramCommandListener:
    """Polls the bot for commands from the configured chats and answers them."""

    def __init__(
        self,
        commands: OperatorCommands,
        settings: "Settings",
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        cfg = settings.telegram
        if not cfg.api_key:
            raise ValueError("TelegramCommandListener requires a bot token.")
        self._commands = commands
        self._settings = settings
        self._token = str(cfg.api_key)
        self._logger = get_logger(logger_name or self.__class__.__name__)
        self._application: Optional[Application] = None

    @property
    def is_running(self) -> bool:
        return self._application is not None

    def allowed_chat_ids(self) -> list[int]:
        """Numeric ids of the market and operator chats; `@channel` names are skipped."""
        ids: list[int] = []
        for raw in (self._settings.telegram.chat_id, self._settings.telegram.admin_chat_id):
            try:
                ids.append(int(str(raw)))
            except (TypeError, ValueError):
                continue
        return ids

    def handlers(self) -> list[tuple[str, Handler]]:
        """(command, callback) pairs registered on the application."""
        routes: list[tuple[str, Handler]] = [
            ("start", self.on_help),
            ("help", self.on_help),
            ("ping", self.on_ping),
            ("chatid", self.on_chat_id),
            ("scan", self.on_scan),
            ("debug", self.on_debug),
            ("resetstate", self.on_reset),
            ("level", self.on_level),
            ("rarity", self.on_rarity),
            ("clearmedia", self.on_clear_media),
        ]
        routes += [(f"set{slot}media", self._media_setter(slot)) for slot in MEDIA_SLOTS]
        return routes

    def build_application(self) -> Application:
        cfg = self._settings.telegram
        application = (
            ApplicationBuilder()
            .token(self._token)
            .connect_timeout(cfg.connect_timeout)
            .read_timeout(cfg.read_timeout)
            .write_timeout(cfg.write_timeout)
            .pool_timeout(cfg.pool_timeout)
            .build()
        )
        chat_ids = self.allowed_chat_ids()
        chats = filters.Chat(chat_id=chat_ids) if chat_ids else filters.ALL
        for command, callback in self.handlers():
            application.add_handler(CommandHandler(command, callback, filters=chats))
        media = filters.PHOTO | filters.ANIMATION | filters.VIDEO | filters.Document.ALL
        application.add_handler(MessageHandler(media & chats, self.on_media))
        application.add_error_handler(self.on_error)
        return application

    async def start(self) -> None:
        if self._application is not None:
            self._logger.warning("commands_already_running")
            return
        application = self.build_application()
        await application.initialize()
        try:
            await application.start()
            if application.updater is not None:
                await application.updater.start_polling(drop_pending_updates=True)
        except TelegramError:
            if application.running:
                await application.stop()
            await application.shutdown()
            raise
        self._application = application
        self._logger.info("commands_listening", commands_chat_count=len(self.allowed_chat_ids()))

    async def stop(self) -> None:
        application = self._application
        if application is None:
            return
        self._application = None
        try:
            if application.updater is not None and application.updater.running:
                await application.updater.stop()
            if application.running:
                await application.stop()
        finally:
            await application.shutdown()
        self._logger.info("commands_stopped")

    async def _reply(self, update: Update, reply: CommandReply) -> None:
        message = update.effective_message
        if message is None:
            return
        text = reply.text
        if reply.photo_url:
            try:
                await message.reply_photo(photo=reply.photo_url, caption=reply.text)
                return
            except TelegramError as e:
                self._logger.warning(
                    "commands_photo_reply_failed",
                    error_type=type(e).__name__,
                    error_message=str(e),
                )
                text = f"{reply.text}\n\n📷 {reply.photo_url}"
        await message.reply_text(text)

    async def on_help(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._reply(update, self._commands.help())

    async def on_ping(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._reply(update, self._commands.ping())

    async def on_chat_id(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        chat = update.effective_chat
        message = update.effective_message
        thread_id = getattr(message, "message_thread_id", None)
        await self._reply(update, self._commands.chat_info(chat.id if chat else None, thread_id))

    async def on_scan(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._reply(update, CommandReply("🔎 Scanning…"))
        await self._reply(update, await self._commands.scan())

    async def on_debug(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._reply(update, await self._commands.debug())

    async def on_reset(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._reply(update, await self._commands.reset())

    async def on_level(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._reply(update, await self._commands.level(_first_arg(context)))

    async def on_rarity(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._reply(update, await self._commands.rarity(_first_arg(context)))

    async def on_clear_media(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._reply(update, await self._commands.clear_media(_first_arg(context)))

    def _media_setter(self, slot: str) -> Handler:
        async def _handler(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
            await self._reply(update, await self._commands.await_media(slot))

        return _handler

    async def on_media(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        reply = await self._commands.save_media(extract_media(update.effective_message))
        if reply is not None:
            await self._reply(update, reply)

    async def on_error(self, update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        error = context.error
        self._logger.error(
            "commands_handler_failed",
            error_type=type(error).__name__,
            error_message=str(error),
        )
