# -*- coding: utf-8 -*-
"""Event-based notification styler with emoji headers (Telegram-style HTML or plain text)."""

from __future__ import annotations

import html
import re
from datetime import datetime, timezone
from typing import Any, cast

from kaspa_trade_watcher.models.market import to_decimal as _decimal
from kaspa_trade_watcher.notifications.types import NotificationMessage, NotificationStyler
from kaspa_trade_watcher.utils.validation import short_kaspa_address

_NFT_EVENT_TYPES = frozenset({"nft_listed", "nft_sold", "level_update"})
_TAG_RE = re.compile(r"<[^>]+>")


def _trim(text: str) -> str:
    return text.rstrip("0").rstrip(".") if "." in text else text


class EventNotificationStyler(NotificationStyler):
    """Render notifications by event_type: NFT posts, token/DEX trades and operator reports."""

    def render(self, message: NotificationMessage, *, parse_html: bool = False) -> str:
        """Dispatch to the appropriate renderer based on event_type."""
        if message.event_type in _NFT_EVENT_TYPES:
            text = self._render_nft(message)
        elif message.event_type == "token_trade":
            text = self._render_token_trade(message)
        elif message.event_type == "dex_trade":
            text = self._render_dex_trade(message)
        elif message.event_type in ("dex_initialized", "dex_init_failed"):
            text = self._render_dex_init(message)
        else:
            text = self._render_generic(message)
        if parse_html:
            return text
        return html.unescape(_TAG_RE.sub("", text))

    def _render_nft(self, message: NotificationMessage) -> str:
        """Render listed / sold / level update posts for one NFT."""
        payload = message.payload or {}
        emoji, title = self._title(message.event_type)
        token_id = self._e(payload.get("token_id"))
        label = payload.get("quote_label") or "KAS"
        lines = [
            f"{emoji} <b>{title.upper()}</b>",
            f"<b>{self._e(payload.get('collection'))} #{token_id}</b>",
            f"ID: <code>{token_id}</code>",
        ]

        price = _decimal(payload.get("price"))
        if message.event_type in ("nft_listed", "nft_sold") and price is not None:
            lines.append(f"Price: <b>{self.format_compact(price)} {self._e(label)}</b>")

        level = payload.get("level")
        old_level = payload.get("old_level")
        if message.event_type == "level_update" and old_level is not None:
            lines.append(f"🎮 Level: <b>{self._e(old_level)} → {self._e(level)}</b>")
        else:
            lines.append(f"🎮 Level: <b>{self._e(level) if level is not None else 'unknown'}</b>")

        rarity = payload.get("rarity")
        if isinstance(rarity, dict):
            show_score = bool(payload.get("show_rarity_score"))
            lines.extend(self._rarity_lines(cast(dict[str, Any], rarity), show_score))

        url = payload.get("url")
        if url:
            lines.append(self._e(url))
        return "\n".join(lines)

    def _rarity_lines(self, rarity: dict[str, Any], show_score: bool) -> list[str]:
        lines: list[str] = []
        if rarity.get("continent"):
            lines.append(f"🌍 Continent: <b>{self._e(rarity['continent'])}</b>")
        if rarity.get("rank") is None:
            return lines
        lines.append(f"🏆 Rank: <b>{self._e(rarity['rank'])}</b>")
        if rarity.get("rewards"):
            lines.append(f"🎁 Rewards: <b>{self._e(rarity['rewards'])}</b>")
        if show_score and rarity.get("score") is not None:
            score = _decimal(rarity["score"])
            shown = f"{score:.2f}" if score is not None else str(rarity["score"])
            lines.append(f"✨ Score: <b>{self._e(shown)}</b>")
        return lines

    def _render_token_trade(self, message: NotificationMessage) -> str:
        """Render a KRC20 buy from the marketplace order book."""
        payload = message.payload or {}
        ticker = self._e(payload.get("ticker"))
        label = self._e(payload.get("quote_label") or "KAS")
        header = "🔥 <b>KRC20 BIG BUY</b> 🔥" if payload.get("is_big_buy") else "🟢 <b>KRC20 BUY</b>"
        ppt = _decimal(payload.get("price_per_token"))
        lines = [
            header,
            f"<b>{ticker} ({self._e(payload.get('venue') or 'Kaspa.com')})</b>",
            f"Amount: <b>{self.format_compact(payload.get('amount'))} {ticker}</b>",
            f"Total: <b>{self.format_compact(payload.get('total_price'))} {label}</b>",
            f"Price/Token: <b>{_trim(f'{ppt:.10f}') if ppt is not None else '??'} {label}</b>",
        ]
        for label_text, key in (("Buyer", "buyer_address"), ("Seller", "seller_address")):
            if payload.get(key):
                lines.append(f"{label_text}: <code>{self._e(short_kaspa_address(payload[key]))}</code>")
        executed_at = self._format_epoch_ms(payload.get("executed_at"))
        if executed_at:
            lines.append(f"Time: <code>{executed_at}</code>")
        if payload.get("ticker_used"):
            lines.append(f"tickerUsed: <code>{self._e(payload['ticker_used'])}</code>")
        return "\n".join(lines)

    def _render_dex_trade(self, message: NotificationMessage) -> str:
        """Render an on-chain swap (BUY / SELL / BIG BUY)."""
        payload = message.payload or {}
        dex = self._e(payload.get("dex_name"))
        if payload.get("is_big_buy"):
            header = f"🔥 <b>{dex} BIG BUY</b> 🔥"
        elif payload.get("direction") == "SELL":
            header = f"🔴 <b>{dex} SELL</b>"
        else:
            header = f"🟢 <b>{dex} BUY</b>"
        symbol = self._e(payload.get("token_symbol"))
        label = self._e(payload.get("quote_label") or "KAS")
        price = _decimal(payload.get("price_per_token"))
        lines = [
            header,
            f"<b>{symbol} / {self._e(payload.get('quote_symbol'))} ({dex})</b>",
            f"Amount: <b>{self.format_compact(payload.get('token_amount'))} {symbol}</b>",
            f"Total: <b>{self.format_compact(payload.get('quote_amount'))} {label}</b>",
            f"Price: <b>{f'{price:.8f}' if price else '??'} {label}</b>",
            f"Tx: <code>{self._e(payload.get('tx_hash'))}</code>",
        ]
        return "\n".join(lines)

    def _render_dex_init(self, message: NotificationMessage) -> str:
        """Render operator reports about DEX pair resolution."""
        payload = message.payload or {}
        if message.event_type == "dex_init_failed":
            return (
                f"❌ <b>{self._e(payload.get('dex_name'))} init failed</b>\n"
                f"{self._e(payload.get('error_message'))}"
            )
        rows = [
            ("pair", payload.get("pair_address")),
            ("startBlock", payload.get("start_block")),
            ("token0", payload.get("token0")),
            ("token1", payload.get("token1")),
            ("tokenSlot", payload.get("token_slot")),
            ("tokenSymbol", payload.get("token_symbol")),
            ("tokenDecimals", payload.get("token_decimals")),
            ("quoteSymbol", payload.get("quote_symbol")),
            ("quoteDecimals", payload.get("quote_decimals")),
            ("swapVariant", payload.get("swap_variant")),
        ]
        lines = [f"✅ <b>{self._e(payload.get('dex_name'))} init OK</b>"]
        lines.extend(f"{key}=<code>{self._e(value)}</code>" for key, value in rows if value is not None)
        return "\n".join(lines)

    def _render_generic(self, message: NotificationMessage) -> str:
        """Render unknown event types using message and payload."""
        emoji, title = self._title(message.event_type)
        lines = [f"{emoji} <b>{self._e(title)}</b>", self._e(message.message)]
        if message.payload:
            for key in sorted(message.payload.keys()):
                value = message.payload.get(key)
                if value is not None:
                    lines.append(f"<b>{self._e(key)}:</b> {self._e(value)}")
        return "\n".join(lines).strip()

    @staticmethod
    def _title(event_type: str) -> tuple[str, str]:
        """Get the emoji and title for the given event type."""
        mapping = {
            "nft_listed": ("🟢", "Listed"),
            "nft_sold": ("🔴", "Sold"),
            "level_update": ("🟣", "Level Update"),
        }
        return mapping.get(event_type, ("ℹ️", event_type.replace("_", " ").title()))

    @staticmethod
    def _e(value: Any) -> str:
        return html.escape("" if value is None else str(value), quote=False)

    @staticmethod
    def format_compact(value: Any) -> str:
        """Human amount: integers with separators from 1000, else 2/4/8 decimals trimmed."""
        d = _decimal(value)
        if d is None:
            return "??"
        magnitude = abs(d)
        if magnitude >= 1000:
            return f"{d:,.0f}"
        places = 8 if magnitude < 1 else 4 if magnitude < 100 else 2
        return _trim(f"{d:.{places}f}")

    @staticmethod
    def _format_epoch_ms(value: Any) -> str | None:
        """Format epoch milliseconds into ISO-8601 UTC when possible."""
        d = _decimal(value)
        if d is None:
            return None
        try:
            return datetime.fromtimestamp(float(d) / 1000, tz=timezone.utc).isoformat()
        except (OSError, OverflowError, ValueError):
            return None
