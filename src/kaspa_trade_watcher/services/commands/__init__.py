"""Operator chat commands (manual scan, state reset, media slots, lookups)."""

from kaspa_trade_watcher.services.commands.operator_commands import CommandReply, OperatorCommands
from kaspa_trade_watcher.services.commands.telegram_commands import TelegramCommandListener, extract_media

__all__ = ["CommandReply", "OperatorCommands", "TelegramCommandListener", "extract_media"]
