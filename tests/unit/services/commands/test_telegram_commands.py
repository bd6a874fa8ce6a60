# -*- coding: utf-8 -*-
"""Unit tests for the Telegram command listener and media extraction."""

from __future__ import annotations

from collections.abc import Callable
from types import SimpleNamespace
from typing import Any, cast
from unittest.mock import AsyncMock, MagicMock

import pytest
from telegram.error import TelegramError
from telegram.ext import CommandHandler, MessageHandler

from kaspa_trade_watcher.config import Settings
from kaspa_trade_watcher.models.snapshot import MEDIA_SLOTS, MediaRef
from kaspa_trade_watcher.services.commands import CommandReply, TelegramCommandListener, extract_media


def _message(**fields: Any) -> SimpleNamespace:
    base: dict[str, Any] = {
        "photo": (),
        "animation": None,
        "video": None,
        "document": None,
        "message_thread_id": None,
        "reply_text": AsyncMock(),
        "reply_photo": AsyncMock(),
    }
    base.update(fields)
    return SimpleNamespace(**base)


def _update(message: SimpleNamespace, chat_id: int = -100777) -> Any:
    return cast(Any, SimpleNamespace(effective_message=message, effective_chat=SimpleNamespace(id=chat_id)))


def _context(*args: str) -> Any:
    return cast(Any, SimpleNamespace(args=list(args)))


def _commands() -> SimpleNamespace:
    return SimpleNamespace(
        help=MagicMock(return_value=CommandReply("help")),
        ping=MagicMock(return_value=CommandReply("🏓 pong")),
        chat_info=MagicMock(side_effect=lambda chat, thread: CommandReply(f"{chat}/{thread}")),
        scan=AsyncMock(return_value=CommandReply("✅ Scan done.\nnew posts: 0")),
        debug=AsyncMock(return_value=CommandReply("debug")),
        reset=AsyncMock(return_value=CommandReply("✅ State reset.")),
        level=AsyncMock(return_value=CommandReply("level")),
        rarity=AsyncMock(return_value=CommandReply("🏆 RARITY", photo_url="https://img.example/12.png")),
        clear_media=AsyncMock(return_value=CommandReply("cleared")),
        await_media=AsyncMock(side_effect=lambda slot: CommandReply(f"await {slot}")),
        save_media=AsyncMock(return_value=CommandReply("Media saved ✅ (photo)")),
    )


@pytest.fixture
def command_settings(settings_factory: Callable[..., Settings]) -> Settings:
    return settings_factory(
        telegram={
            "enabled": True,
            "api_key": "123456:TEST-TOKEN",
            "chat_id": "-100777",
            "admin_chat_id": "@ops_channel",
            "commands_enabled": True,
        }
    )


def _listener(settings: Settings, commands: SimpleNamespace | None = None) -> TelegramCommandListener:
    return TelegramCommandListener(cast(Any, commands or _commands()), settings)


def test_extract_media_prefers_the_largest_photo() -> None:
    sizes = (SimpleNamespace(file_id="small"), SimpleNamespace(file_id="large"))
    assert extract_media(_message(photo=sizes)) == MediaRef(kind="photo", file_id="large")


def test_extract_media_animation_video_and_gif_document() -> None:
    assert extract_media(_message(animation=SimpleNamespace(file_id="anim"))) == MediaRef("animation", "anim")
    assert extract_media(_message(video=SimpleNamespace(file_id="vid"))) == MediaRef("video", "vid")

    gif_by_mime = SimpleNamespace(file_id="doc1", mime_type="image/gif", file_name=None)
    gif_by_name = SimpleNamespace(file_id="doc2", mime_type=None, file_name="Bonkey.GIF")
    assert extract_media(_message(document=gif_by_mime)) == MediaRef("animation", "doc1")
    assert extract_media(_message(document=gif_by_name)) == MediaRef("animation", "doc2")


def test_extract_media_rejects_other_documents() -> None:
    pdf = SimpleNamespace(file_id="doc", mime_type="application/pdf", file_name="notes.pdf")
    assert extract_media(_message(document=pdf)) is None
    assert extract_media(_message()) is None
    assert extract_media(None) is None


def test_listener_requires_bot_token(settings: Settings) -> None:
    with pytest.raises(ValueError):
        TelegramCommandListener(cast(Any, _commands()), settings)


def test_only_numeric_chat_ids_restrict_commands(command_settings: Settings) -> None:
    assert _listener(command_settings).allowed_chat_ids() == [-100777]


def test_application_registers_every_command(command_settings: Settings) -> None:
    application = _listener(command_settings).build_application()

    registered = application.handlers[0]
    commands = {name for h in registered if isinstance(h, CommandHandler) for name in h.commands}

    assert {"start", "ping", "chatid", "scan", "debug", "resetstate", "level", "rarity", "clearmedia"} <= commands
    assert {f"set{slot}media" for slot in MEDIA_SLOTS} <= commands
    assert any(isinstance(h, MessageHandler) for h in registered)


async def test_scan_acknowledges_before_running(command_settings: Settings) -> None:
    commands = _commands()
    message = _message()

    await _listener(command_settings, commands).on_scan(_update(message), _context())

    commands.scan.assert_awaited_once()
    texts = [c.args[0] for c in message.reply_text.await_args_list]
    assert texts == ["🔎 Scanning…", "✅ Scan done.\nnew posts: 0"]


async def test_media_setter_passes_its_slot(command_settings: Settings) -> None:
    commands = _commands()
    listener = _listener(command_settings, commands)
    handlers = dict(listener.handlers())
    message = _message()

    await handlers["setdexmedia"](_update(message), _context())

    commands.await_media.assert_awaited_once_with("dex")
    message.reply_text.assert_awaited_once_with("await dex")


async def test_arguments_are_forwarded(command_settings: Settings) -> None:
    commands = _commands()
    listener = _listener(command_settings, commands)

    await listener.on_level(_update(_message()), _context("257"))
    await listener.on_clear_media(_update(_message()), _context())

    commands.level.assert_awaited_once_with("257")
    commands.clear_media.assert_awaited_once_with(None)


async def test_chat_id_reports_thread(command_settings: Settings) -> None:
    commands = _commands()
    message = _message(message_thread_id=9)

    await _listener(command_settings, commands).on_chat_id(_update(message, chat_id=-55), _context())

    message.reply_text.assert_awaited_once_with("-55/9")


async def test_uploaded_media_is_saved(command_settings: Settings) -> None:
    commands = _commands()
    message = _message(photo=(SimpleNamespace(file_id="AgAD"),))

    await _listener(command_settings, commands).on_media(_update(message), _context())

    commands.save_media.assert_awaited_once_with(MediaRef(kind="photo", file_id="AgAD"))
    message.reply_text.assert_awaited_once_with("Media saved ✅ (photo)")


async def test_media_is_silent_when_nothing_is_awaited(command_settings: Settings) -> None:
    commands = _commands()
    commands.save_media = AsyncMock(return_value=None)
    message = _message(video=SimpleNamespace(file_id="BAAD"))

    await _listener(command_settings, commands).on_media(_update(message), _context())

    message.reply_text.assert_not_awaited()


async def test_rarity_photo_failure_falls_back_to_text(command_settings: Settings) -> None:
    message = _message(reply_photo=AsyncMock(side_effect=TelegramError("wrong file identifier")))

    await _listener(command_settings).on_rarity(_update(message), _context("12"))

    message.reply_photo.assert_awaited_once_with(photo="https://img.example/12.png", caption="🏆 RARITY")
    message.reply_text.assert_awaited_once_with("🏆 RARITY\n\n📷 https://img.example/12.png")


async def test_stop_before_start_is_a_noop(command_settings: Settings) -> None:
    listener = _listener(command_settings)

    await listener.stop()

    assert not listener.is_running
