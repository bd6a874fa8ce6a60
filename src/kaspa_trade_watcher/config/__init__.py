"""Configuration subpackage."""

from kaspa_trade_watcher.config.config import (
    AlertSettings,
    ApiSettings,
    AppSettings,
    ChainSettings,
    ConsoleNotificationSettings,
    DedupeSettings,
    DexSettings,
    KaspaComDexSettings,
    LoggingSettings,
    MarketplaceSettings,
    MetadataSettings,
    Settings,
    StateSettings,
    SwapVariantName,
    TelegramNotificationSettings,
    TrackingSettings,
    ZealousDexSettings,
    get_settings,
)

__all__ = [
    "AlertSettings",
    "ApiSettings",
    "AppSettings",
    "ChainSettings",
    "ConsoleNotificationSettings",
    "DedupeSettings",
    "DexSettings",
    "KaspaComDexSettings",
    "LoggingSettings",
    "MarketplaceSettings",
    "MetadataSettings",
    "Settings",
    "StateSettings",
    "SwapVariantName",
    "TelegramNotificationSettings",
    "TrackingSettings",
    "ZealousDexSettings",
    "get_settings",
]
