# -*- coding: utf-8 -*-
"""Configuration loaded from environment via Pydantic Settings.

Nested env vars use <section>__<key>, e.g. LOGGING__CONSOLE_LEVEL, ZEALOUS__FACTORY.
"""

from __future__ import annotations

from decimal import Decimal
from functools import lru_cache
from typing import Any, Literal, Optional

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

SwapVariantName = Literal["standard", "discount_flag"]


class AppSettings(BaseSettings):
    """General application configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    app_name: str = "kaspa-trade-watcher"
    service_name: Optional[str] = None
    service_version: Optional[str] = None
    environment: Literal["development", "test", "production"] = "development"


class LoggingSettings(BaseSettings):
    """Structured logging configuration for structlog/stdlib/Logfire."""

    model_config = SettingsConfigDict(extra="ignore")

    # Per-target levels (only the 5 standard levels)
    console_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    file_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    logfire_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # Local outputs
    log_to_console: bool = True
    log_to_file: bool = False
    log_file_path: str = "logs/trade_watcher.log"
    # TimedRotatingFileHandler: when to rotate (S/M/H/D/W0–W6/midnight), interval, backups to keep
    log_file_when: Literal[
        "S", "M", "H", "D", "W0", "W1", "W2", "W3", "W4", "W5", "W6", "midnight"
    ] = "midnight"
    log_file_interval: int = 1
    log_file_backup_count: int = 30
    log_file_utc: bool = True

    # Main output format: JSONRenderer if True, ConsoleRenderer if False
    json_format: bool = False

    # Logfire integration via structlog
    logfire_enabled: bool = False
    logfire_token: Optional[str] = None


class ApiSettings(BaseSettings):
    """HTTP transport settings shared by the REST and JSON-RPC clients."""

    model_config = SettingsConfigDict(extra="ignore")

    timeout_seconds: float = Field(
        default=20.0,
        ge=1.0,
        le=120.0,
        description="HTTP request timeout in seconds.",
    )
    max_retries: int = Field(
        default=3,
        ge=1,
        le=20,
        description="Maximum number of attempts for failed requests.",
    )


class MarketplaceSettings(BaseSettings):
    """Kaspa.com marketplace endpoints (KRC721 listings/sales, KRC20 sold orders)."""

    model_config = SettingsConfigDict(extra="ignore")

    api_base: str = Field(default="https://api.kaspa.com", description="Marketplace API base URL.")
    listings_path: str = "/api/krc721/listed-orders"
    sales_path: str = "/api/krc721/sold-orders"
    token_sales_path: str = "/api/sold-orders"
    ticker: str = Field(default="BONKEY", description="Collection / KRC20 ticker to watch.")
    listings_limit: int = Field(default=200, ge=1, le=1000)
    sold_minutes: int = Field(default=2, ge=1, le=1440, description="NFT sales look-back window.")
    token_sold_minutes: int = Field(
        default=1, ge=1, le=1440, description="KRC20 sold orders look-back window."
    )
    collection_url: str = "https://kaspa.com/nft/collections/BONKEY"
    image_base: str = "https://ipfs.io/ipfs"
    images_cid: Optional[str] = Field(default=None, description="IPFS CID holding <tokenId>.png images.")


class MetadataSettings(BaseSettings):
    """Rarity and level lookups for NFT posts."""

    model_config = SettingsConfigDict(extra="ignore")

    levels_url: str = "https://nftgame.kaspabonkey.be/api/nft-levels"
    levels_refresh_seconds: float = Field(default=250.0, ge=1.0)
    levels_timeout_seconds: float = Field(default=30.0, ge=1.0, le=300.0)
    max_level_updates_per_refresh: int = Field(default=80, ge=1, le=1000)
    levels_dir: str = "./levels"
    rarity_json_path: str = "./bonkeys_rarity_full.json"
    show_rarity_score: bool = True


class ChainSettings(BaseSettings):
    """Kasplex L2 JSON-RPC access and block scanning."""

    model_config = SettingsConfigDict(extra="ignore")

    rpc_url: str = Field(default="https://evmrpc.kasplex.org", description="L2 JSON-RPC endpoint.")
    quote_token_address: Optional[str] = Field(
        default=None,
        description="Quote token of every watched pair (WKAS). Env: CHAIN__QUOTE_TOKEN_ADDRESS.",
    )
    quote_symbol_fallback: str = "WKAS"
    block_span: int = Field(
        default=1500,
        ge=1,
        le=100_000,
        description="Maximum width of a single eth_getLogs range.",
    )
    token_metadata_cache_size: int = Field(default=256, ge=1, le=10_000)


class DexSettings(BaseSettings):
    """One watched DEX pair (factory + tracked token against the chain quote token)."""

    model_config = SettingsConfigDict(extra="ignore")

    name: str = "DEX"
    factory: Optional[str] = None
    token_address: Optional[str] = None
    buy_link: Optional[str] = None
    swap_variant: SwapVariantName = "standard"


class ZealousDexSettings(DexSettings):
    """ZealousSwap pair (Swap event carries a trailing discount flag). Env: ZEALOUS__*."""

    name: str = "ZealousSwap"
    swap_variant: SwapVariantName = "discount_flag"


class KaspaComDexSettings(DexSettings):
    """KaspaCom DEX pair (standard UniswapV2 Swap event). Env: KASPACOM__*."""

    name: str = "KaspaCom"
    swap_variant: SwapVariantName = "standard"


class DedupeSettings(BaseSettings):
    """Retention policy applied to every dedupe map once per tick."""

    model_config = SettingsConfigDict(extra="ignore")

    ttl_hours: float = Field(default=6.0, gt=0.0)
    max_keys: int = Field(default=5000, ge=1)

    @computed_field
    @property
    def ttl_ms(self) -> int:
        """TTL in milliseconds (dedupe timestamps are epoch milliseconds)."""
        return int(self.ttl_hours * 3600 * 1000)


class AlertSettings(BaseSettings):
    """Classification thresholds."""

    model_config = SettingsConfigDict(extra="ignore")

    big_buy_threshold: Decimal = Field(
        default=Decimal("500"),
        ge=0,
        description="Quote amount (KAS) at or above which a buy is a big buy.",
    )
    quote_label: str = "KAS"


class StateSettings(BaseSettings):
    """Persisted snapshot location."""

    model_config = SettingsConfigDict(extra="ignore")

    state_file: str = "./state.json"


class TelegramNotificationSettings(BaseSettings):
    """Telegram notifications (from env TELEGRAM__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    enabled: bool = False
    api_key: Optional[str] = Field(default=None, description="Telegram bot API key.")
    chat_id: Optional[str] = Field(default=None, description="Telegram chat ID.")
    market_thread_id: Optional[int] = Field(default=None, description="Forum thread for trades.")
    levels_thread_id: Optional[int] = Field(default=None, description="Forum thread for level updates.")
    admin_chat_id: Optional[str] = Field(default=None, description="Operator chat for init reports.")
    messages_per_minute: int = Field(default=30, ge=1, le=120)
    max_retries: int = Field(default=5, ge=0, le=20)
    backoff_base_seconds: float = Field(default=1.0, ge=0.1, le=60.0)
    connect_timeout: float = Field(default=10.0, ge=0.1, le=60.0)
    read_timeout: float = Field(default=20.0, ge=0.1, le=120.0)
    write_timeout: float = Field(default=20.0, ge=0.1, le=120.0)
    pool_timeout: float = Field(default=10.0, ge=0.1, le=60.0)
    muted_events: list[str] = Field(
        default_factory=list,
        description='Event types never posted to Telegram, e.g. ["dex_initialized"].',
    )
    commands_enabled: bool = Field(
        default=False,
        description="Poll the bot for operator commands (/scan, /resetstate, media setup).",
    )


class ConsoleNotificationSettings(BaseSettings):
    """Console notification settings."""

    model_config = SettingsConfigDict(extra="ignore")

    enabled: bool = True
    muted_events: list[str] = Field(default_factory=list, description="Event types not printed.")
    show_audience: bool = Field(default=True, description="Prefix each post with its routing audience.")


class TrackingSettings(BaseSettings):
    """Configuration for the polling loop."""

    model_config = SettingsConfigDict(extra="ignore")

    poll_seconds: float = Field(
        default=20.0,
        ge=1.0,
        le=3600.0,
        description="Interval between ticks in seconds.",
    )
    notification_queue_size: int = Field(default=1000, ge=1, le=10_000)
    notification_drain_seconds: float = Field(
        default=15.0,
        ge=0.0,
        le=300.0,
        description="Max seconds to wait for queued notifications on shutdown.",
    )


class Settings(BaseSettings):
    """Root application configuration.

    Groups all sub-configurations so the rest of the code does not
    read environment variables directly. Nested overrides use
    <section>__<key>, e.g. LOGGING__CONSOLE_LEVEL, KASPACOM__TOKEN_ADDRESS.
    """

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    app: AppSettings = Field(default_factory=AppSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)
    marketplace: MarketplaceSettings = Field(default_factory=MarketplaceSettings)
    metadata: MetadataSettings = Field(default_factory=MetadataSettings)
    chain: ChainSettings = Field(default_factory=ChainSettings)
    zealous: ZealousDexSettings = Field(default_factory=ZealousDexSettings)
    kaspacom: KaspaComDexSettings = Field(default_factory=KaspaComDexSettings)
    dedupe: DedupeSettings = Field(default_factory=DedupeSettings)
    alerts: AlertSettings = Field(default_factory=AlertSettings)
    state: StateSettings = Field(default_factory=StateSettings)
    tracking: TrackingSettings = Field(default_factory=TrackingSettings)
    telegram: TelegramNotificationSettings = Field(default_factory=TelegramNotificationSettings)
    console: ConsoleNotificationSettings = Field(default_factory=ConsoleNotificationSettings)

    @property
    def dexes(self) -> list[DexSettings]:
        """Watched DEXes in polling order."""
        return [self.zealous, self.kaspacom]

    @classmethod
    def from_env(cls, **overrides: Any) -> Settings:
        """Build settings from environment (and .env), with optional overrides.

        Nested overrides can be passed as flat keys or nested dicts, e.g.:
        - from_env(dedupe={"max_keys": 100})
        - from_env(chain={"block_span": 500})

        Returns:
            A new Settings instance.
        """
        return cls(**overrides)


@lru_cache
def get_settings() -> Settings:
    """Return a single cached instance of Settings.

    Typical usage:

        from kaspa_trade_watcher.config import get_settings

        settings = get_settings()
        ttl_ms = settings.dedupe.ttl_ms
        span = settings.chain.block_span
    """
    return Settings()
