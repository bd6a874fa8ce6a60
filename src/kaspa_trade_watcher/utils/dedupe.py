"""Bounded, time-expiring dedupe store and dedupe key builders.

A dedupe map is a plain ``dict[str, int]`` of key -> last-seen timestamp in
epoch milliseconds, so it serializes as-is inside the persisted snapshot.
"""

from __future__ import annotations

import math
import time
from typing import TYPE_CHECKING, Any, TypeAlias

if TYPE_CHECKING:
    from kaspa_trade_watcher.models.market import SaleRecord, TokenSaleRecord

DedupeMap: TypeAlias = dict[str, Any]


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def _as_timestamp(value: Any) -> float | None:
    """Return value as a finite number, or None (bools are not timestamps)."""
    if isinstance(value, bool):
        return None
    try:
        n = float(value)
    except (TypeError, ValueError):
        return None
    return n if math.isfinite(n) else None


def seen(dedupe: DedupeMap, key: str) -> bool:
    """Return True if key has been recorded."""
    return key in dedupe


def record(dedupe: DedupeMap, key: str, now: int) -> None:
    """Record key as seen at `now` (epoch ms). Re-recording refreshes the timestamp."""
    dedupe[key] = int(now)


def purge(dedupe: DedupeMap, now: int, ttl_ms: int, max_keys: int) -> int:
    """Drop expired keys, then evict the oldest until at most max_keys remain.

    Keys whose timestamp is not a finite number are treated as expired.

    Args:
        dedupe: Map to purge in place.
        now: Current time (epoch ms).
        ttl_ms: Maximum age of a retained key.
        max_keys: Maximum number of retained keys.

    Returns:
        Number of removed keys.
    """
    before = len(dedupe)
    for key in list(dedupe.keys()):
        ts = _as_timestamp(dedupe[key])
        if ts is None or (now - ts) > ttl_ms:
            del dedupe[key]

    overflow = len(dedupe) - max(0, max_keys)
    if overflow > 0:
        # sorted() is stable: equal timestamps keep insertion order.
        oldest_first = sorted(dedupe.items(), key=lambda kv: float(kv[1]))
        for key, _ in oldest_first[:overflow]:
            del dedupe[key]
    return before - len(dedupe)


def coerce_timestamps(raw: Any, now: int) -> DedupeMap:
    """Build a dedupe map from persisted data.

    Legacy ``true`` markers and unparseable values become `now`, so they age
    out through the normal TTL instead of living forever.
    """
    out: DedupeMap = {}
    if not isinstance(raw, dict):
        return out
    for key, value in raw.items():
        ts = _as_timestamp(value)
        out[str(key)] = int(ts) if ts is not None else now
    return out


def dex_trade_key(dex_name: str, tx_hash: str, log_index: int) -> str:
    """Stable key for one swap log: {dex}:{txHash}:{logIndex}."""
    return f"{dex_name}:{tx_hash}:{log_index}"


def sale_key(sale: SaleRecord) -> str:
    """Key for an NFT sale: upstream id, else {tokenId}:{soldAt}."""
    if sale.id:
        return str(sale.id)
    return f"{sale.token_id}:{'' if sale.sold_at is None else sale.sold_at}"


def token_trade_key(order: TokenSaleRecord) -> str:
    """Key for a KRC20 sold order: upstream id, else a composite of its stable fields."""
    if order.id:
        return f"krc20:{order.id}"

    def _s(v: Any) -> str:
        return "" if v is None else str(v)

    when = order.fulfillment_timestamp or order.created_at
    return (
        f"krc20:{_s(order.ticker)}:{_s(when)}:{_s(order.amount)}"
        f":{_s(order.total_price)}:{_s(order.buyer_address)}"
    )
