"""Notification-related services (trade event builders and notifier)."""

from kaspa_trade_watcher.services.notifications.trade_events import (
    TradeEventNotifier,
    build_dex_init_failed,
    build_dex_initialized,
    build_dex_trade,
    build_level_update,
    build_nft_listed,
    build_nft_sold,
    build_token_trade,
    image_url_for_token,
)

__all__ = [
    "TradeEventNotifier",
    "build_dex_init_failed",
    "build_dex_initialized",
    "build_dex_trade",
    "build_level_update",
    "build_nft_listed",
    "build_nft_sold",
    "build_token_trade",
    "image_url_for_token",
]
