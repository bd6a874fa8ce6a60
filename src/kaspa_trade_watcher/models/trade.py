# -*- coding: utf-8 -*-
"""On-chain swap models: raw logs, decoded amounts and classified trades."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, cast


class TradeDirection(str, Enum):
    """Direction of a swap relative to the tracked token."""

    BUY = "BUY"
    """Tracked token left the pair, quote token entered it."""
    SELL = "SELL"
    """Tracked token entered the pair, quote token left it."""
    NOISE = "NOISE"
    """Neither shape (e.g. flash swap or dust); recorded but never announced."""


def _hex_int(value: Any) -> int:
    """Parse a JSON-RPC quantity (hex string) or a plain int."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        s = value.strip()
        return int(s, 16) if s.lower().startswith("0x") else int(s)
    raise ValueError(f"Not a quantity: {value!r}")


@dataclass(frozen=True, slots=True)
class RawSwapLog:
    """Log entry as returned by eth_getLogs; opaque until decoded."""

    transaction_hash: str
    log_index: int
    topics: tuple[str, ...]
    data: str
    block_number: int | None = None
    address: str | None = None

    @classmethod
    def from_rpc(cls, raw: dict[str, Any]) -> RawSwapLog:
        """Build from a JSON-RPC log object (hex quantities)."""
        topics_raw = raw.get("topics") or []
        block = raw.get("blockNumber")
        return cls(
            transaction_hash=str(raw.get("transactionHash") or ""),
            log_index=_hex_int(raw.get("logIndex", 0)),
            topics=tuple(str(t) for t in cast(list[Any], topics_raw)),
            data=str(raw.get("data") or "0x"),
            block_number=_hex_int(block) if block is not None else None,
            address=raw.get("address"),
        )


@dataclass(frozen=True, slots=True)
class SwapAmounts:
    """Decoded Swap event fields (raw on-chain integers)."""

    amount0_in: int
    amount1_in: int
    amount0_out: int
    amount1_out: int
    sender: str | None = None
    recipient: str | None = None
    discount_eligible: bool | None = None
    """Trailing flag of the discount-flag variant; None for the standard event."""


@dataclass(frozen=True, slots=True)
class ClassifiedTrade:
    """Swap classified against the tracked token. Never persisted; only its dedupe key is."""

    direction: TradeDirection
    token_amount: Decimal
    quote_amount: Decimal
    is_big_buy: bool
    tx_hash: str
    log_index: int
    price_per_token: Decimal | None = None
    """quote_amount / token_amount, or None when token_amount is zero."""

    @property
    def is_trade(self) -> bool:
        return self.direction is not TradeDirection.NOISE
