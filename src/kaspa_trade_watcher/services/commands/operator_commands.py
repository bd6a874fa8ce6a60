# -*- coding: utf-8 -*-
"""Operator commands: manual scan, state reset, media slots and metadata lookups.

Transport-agnostic; every command returns a CommandReply that a chat listener
posts back. Snapshot edits go through TickOrchestrator so they never interleave
with a tick.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import structlog

from kaspa_trade_watcher.models.snapshot import MEDIA_SLOTS, MediaRef, Snapshot
from kaspa_trade_watcher.services.notifications.trade_events import collection_name, image_url_for_token
from kaspa_trade_watcher.utils.validation import normalize_token_id

if TYPE_CHECKING:
    from kaspa_trade_watcher.config import Settings
    from kaspa_trade_watcher.services.metadata import LevelsCache, RarityCache
    from kaspa_trade_watcher.services.tick_orchestrator import TickOrchestrator


@dataclass(frozen=True, slots=True)
class CommandReply:
    """Text to post back, optionally as the caption of a photo."""

    text: str
    photo_url: str | None = None


def _iso(epoch_ms: int) -> str:
    if not epoch_ms:
        return "never"
    return datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc).isoformat()


def _or_none(value: Any) -> str:
    return "null" if value is None else str(value)


class OperatorCommands:
    """Command implementations shared by every chat transport."""

    def __init__(
        self,
        orchestrator: TickOrchestrator,
        levels: LevelsCache,
        rarity: RarityCache,
        settings: Settings,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        self._orchestrator = orchestrator
        self._levels = levels
        self._rarity = rarity
        self._settings = settings
        self._logger = get_logger(logger_name or self.__class__.__name__)

    def help(self) -> CommandReply:
        media = "\n".join(f"/set{slot}media" for slot in MEDIA_SLOTS)
        return CommandReply(
            f"✅ {collection_name(self._settings)} watcher online.\n\n"
            "Commands:\n/ping\n/chatid\n/scan\n/debug\n/resetstate\n/rarity <id>\n/level <id>\n\n"
            f"Media setup:\n{media}\n/clearmedia <{'|'.join(MEDIA_SLOTS)}>"
        )

    def ping(self) -> CommandReply:
        return CommandReply("🏓 pong")

    def chat_info(self, chat_id: int | str | None, thread_id: int | None) -> CommandReply:
        return CommandReply(f"chat_id: {chat_id}\nthread_id: {thread_id if thread_id is not None else 'none'}")

    async def scan(self) -> CommandReply:
        """Run a manual tick; waits for a tick already in progress."""
        queued = self._orchestrator.busy
        self._logger.info("command_scan", command_scan_queued=queued)
        report = await self._orchestrator.tick("manual")
        lines = ["✅ Scan done."]
        if queued:
            lines.append("(waited for the running tick)")
        lines.append(f"new posts: {report.emitted}")
        if report.failed:
            lines.append(f"failed: {', '.join(report.failed)}")
        return CommandReply("\n".join(lines))

    async def reset(self) -> CommandReply:
        await self._orchestrator.reset()
        self._logger.warning("command_reset_state")
        return CommandReply("✅ State reset.")

    async def await_media(self, slot: str) -> CommandReply:
        """Mark `slot` as waiting for the next photo, animation or video."""
        if slot not in MEDIA_SLOTS:
            raise ValueError(f"Unknown media slot: {slot!r}")

        def _mark(snapshot: Snapshot) -> None:
            snapshot.awaiting = slot

        await self._orchestrator.update_snapshot(_mark)
        return CommandReply(f"Send the media now (photo / gif / video) for: {slot.upper()}")

    async def save_media(self, media: MediaRef | None) -> CommandReply | None:
        """Store media in the awaited slot. None when no slot is awaiting (message ignored)."""

        def _store(snapshot: Snapshot) -> str | None:
            slot = snapshot.awaiting
            if slot is None or media is None:
                return slot
            snapshot.media[slot] = media
            snapshot.awaiting = None
            return slot

        slot = await self._orchestrator.update_snapshot(_store)
        if slot is None:
            return None
        if media is None:
            return CommandReply("I did not detect media. Send a photo, GIF/animation, or mp4 video.")
        self._logger.info("command_media_saved", media_slot=slot, media_kind=media.kind)
        return CommandReply(f"Media saved ✅ ({media.kind})")

    async def clear_media(self, arg: str | None) -> CommandReply:
        slot = str(arg or "").strip().lower()
        if slot not in MEDIA_SLOTS:
            return CommandReply(f"Usage: /clearmedia {'|'.join(MEDIA_SLOTS)}")

        def _clear(snapshot: Snapshot) -> None:
            snapshot.media[slot] = None
            snapshot.awaiting = None

        await self._orchestrator.update_snapshot(_clear)
        return CommandReply(f"Cleared media: {slot} ✅")

    async def _fresh_level(self, token_id: str) -> int | None:
        try:
            await self._levels.ensure_fresh()
        except Exception as e:
            # Stale levels are still worth answering with.
            self._logger.warning(
                "command_levels_refresh_failed",
                error_type=type(e).__name__,
                error_message=str(e),
            )
        return self._levels.get(token_id)

    async def level(self, arg: str | None) -> CommandReply:
        token_id = normalize_token_id(arg)
        if token_id is None:
            return CommandReply("Usage: /level 257")
        level = await self._fresh_level(token_id)
        return CommandReply(
            f"🎮 Level #{token_id}: {_or_none(level)}\nmeta: {_iso(self._levels.fetched_at)}"
        )

    async def rarity(self, arg: str | None) -> CommandReply:
        token_id = normalize_token_id(arg)
        if token_id is None:
            return CommandReply("Usage: /rarity 257")
        rarity = self._rarity.get(token_id)
        level = await self._fresh_level(token_id)

        lines = [
            "🏆 RARITY",
            f"{collection_name(self._settings)} #{token_id}",
            f"ID: {token_id}",
            f"🎮 Level: {_or_none(level)}",
        ]
        if rarity.continent:
            lines.append(f"🌍 Continent: {rarity.continent}")
        lines.append(f"🏆 Rank: {_or_none(rarity.rank)}")
        lines.append(f"🎁 Rewards: {_or_none(rarity.rewards)}")
        if self._settings.metadata.show_rarity_score:
            lines.append(f"✨ Score: {_or_none(rarity.score)}")
        return CommandReply("\n".join(lines), photo_url=image_url_for_token(self._settings, token_id))

    async def debug(self) -> CommandReply:
        """Configuration and state counters; never includes credentials."""
        s = self._settings
        snapshot = await self._orchestrator.read_snapshot()
        tg = s.telegram
        lines = [
            f"chat_id={tg.chat_id}",
            f"market_thread_id={tg.market_thread_id if tg.market_thread_id is not None else 'none'}",
            f"levels_thread_id={tg.levels_thread_id if tg.levels_thread_id is not None else 'none'}",
            f"ticker={s.marketplace.ticker}",
            f"rarity_json_path={s.metadata.rarity_json_path}",
            f"rarity_loaded={'YES' if self._rarity.loaded_from else 'NO'}",
            f"show_rarity_score={s.metadata.show_rarity_score}",
            "",
            f"active_listings={len(snapshot.listings)}",
            f"sales_dedupe={len(snapshot.sales)}",
            f"token_trades_dedupe={len(snapshot.token_trades)}",
            f"dex_trades_dedupe={len(snapshot.dex_trades)}",
            "",
        ]
        for slot in MEDIA_SLOTS:
            ref = snapshot.media_for(slot)
            lines.append(f"media.{slot}={ref.kind if ref else 'null'}")
        meta = self._levels.meta
        lines += [
            "",
            f"levels_url={s.metadata.levels_url}",
            f"levels_refresh_seconds={s.metadata.levels_refresh_seconds}",
            f"levels_fetched_at={_iso(self._levels.fetched_at)}",
            f"levels_count={meta.get('count', 0)}",
            "",
            f"token_sales_path={s.marketplace.token_sales_path}",
            f"token_sold_minutes={s.marketplace.token_sold_minutes}",
            f"quote_token={s.chain.quote_token_address or 'missing'}",
        ]
        for dex in s.dexes:
            state = snapshot.dexes.get(dex.name)
            lines += [
                "",
                f"{dex.name}.factory={dex.factory or 'missing'}",
                f"{dex.name}.token={dex.token_address or 'missing'}",
                f"{dex.name}.pair={_or_none(state.pair_address if state else None)}",
                f"{dex.name}.last_block={state.last_scanned_block if state else 0}",
            ]
        lines += ["", f"big_buy_threshold={s.alerts.big_buy_threshold}"]
        return CommandReply("\n".join(lines))
