"""On-chain DEX swap feed: decoder, pair resolver, block-range scanner, poller."""

from kaspa_trade_watcher.services.dex.block_scanner import BlockRangeScanner, ScanResult
from kaspa_trade_watcher.services.dex.dex_poller import DexPoller
from kaspa_trade_watcher.services.dex.pair_resolver import PairResolver, is_resolved
from kaspa_trade_watcher.services.dex.swap_decoder import (
    SwapEventVariant,
    classify_swap,
    decode_swap_log,
    to_units,
)

__all__ = [
    "BlockRangeScanner",
    "DexPoller",
    "PairResolver",
    "ScanResult",
    "SwapEventVariant",
    "classify_swap",
    "decode_swap_log",
    "is_resolved",
    "to_units",
]
