# -*- coding: utf-8 -*-
"""Domain models."""

from kaspa_trade_watcher.models.market import ListingRecord, SaleRecord, TokenSaleRecord, to_decimal
from kaspa_trade_watcher.models.snapshot import MEDIA_SLOTS, MediaRef, PairState, Snapshot
from kaspa_trade_watcher.models.trade import (
    ClassifiedTrade,
    RawSwapLog,
    SwapAmounts,
    TradeDirection,
)

__all__ = [
    "ClassifiedTrade",
    "ListingRecord",
    "MEDIA_SLOTS",
    "MediaRef",
    "PairState",
    "RawSwapLog",
    "SaleRecord",
    "Snapshot",
    "SwapAmounts",
    "TokenSaleRecord",
    "TradeDirection",
    "to_decimal",
]
