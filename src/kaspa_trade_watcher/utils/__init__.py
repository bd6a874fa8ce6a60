# -*- coding: utf-8 -*-
"""Utility modules."""

from kaspa_trade_watcher.utils.dedupe import (
    DedupeMap,
    dex_trade_key,
    now_ms,
    purge,
    record,
    sale_key,
    seen,
    token_trade_key,
)
from kaspa_trade_watcher.utils.fields import extract_rows, pick, pick_price, project, tickers_to_try
from kaspa_trade_watcher.utils.validation import (
    ZERO_ADDRESS,
    is_hex_address,
    is_zero_address,
    mask_address,
    normalize_token_id,
    same_address,
    short_kaspa_address,
)

__all__ = [
    "DedupeMap",
    "ZERO_ADDRESS",
    "dex_trade_key",
    "extract_rows",
    "is_hex_address",
    "is_zero_address",
    "mask_address",
    "normalize_token_id",
    "now_ms",
    "pick",
    "pick_price",
    "project",
    "purge",
    "record",
    "sale_key",
    "same_address",
    "seen",
    "short_kaspa_address",
    "tickers_to_try",
    "token_trade_key",
]
