"""Trade event notifications: build NotificationMessage payloads and hand them to NotificationService."""

from __future__ import annotations

from collections.abc import Callable
from decimal import Decimal
from typing import TYPE_CHECKING, Any

import structlog

from kaspa_trade_watcher.models.trade import ClassifiedTrade, TradeDirection
from kaspa_trade_watcher.notifications.types import Audience, NotificationMessage

if TYPE_CHECKING:
    from kaspa_trade_watcher.config import DexSettings, Settings
    from kaspa_trade_watcher.models.market import ListingRecord, SaleRecord, TokenSaleRecord
    from kaspa_trade_watcher.models.snapshot import MediaRef, PairState
    from kaspa_trade_watcher.notifications.notification_manager import NotificationService
    from kaspa_trade_watcher.services.metadata.rarity import Rarity


def _str_or_none(v: Any) -> str | None:
    if v is None:
        return None
    if isinstance(v, Decimal):
        return format(v, "f")
    return str(v)


def _media(media: MediaRef | None) -> dict[str, str] | None:
    return media.to_dict() if media is not None else None


def image_url_for_token(settings: Settings, token_id: str) -> str | None:
    """`{image_base}/{cid}/{tokenId}.png`, or None when no image CID is configured."""
    market = settings.marketplace
    if not market.images_cid:
        return None
    return f"{market.image_base.rstrip('/')}/{market.images_cid}/{token_id}.png"


def collection_name(settings: Settings) -> str:
    return settings.marketplace.ticker.strip().title()


def _nft_payload(
    settings: Settings,
    *,
    token_id: str,
    level: int | None,
    rarity: Rarity | None,
    media_slot: str,
    media: MediaRef | None,
    audience: Audience,
) -> dict[str, Any]:
    return {
        "audience": audience,
        "collection": collection_name(settings),
        "token_id": token_id,
        "level": level,
        "rarity": rarity.to_dict() if rarity is not None else None,
        "show_rarity_score": settings.metadata.show_rarity_score,
        "image_url": image_url_for_token(settings, token_id),
        "button_url": settings.marketplace.collection_url,
        "button_text": f"🛒 Buy {collection_name(settings)} NFT",
        "media_slot": media_slot,
        "media": _media(media),
        "quote_label": settings.alerts.quote_label,
    }


def build_nft_listed(
    settings: Settings,
    listing: ListingRecord,
    *,
    level: int | None = None,
    rarity: Rarity | None = None,
    media: MediaRef | None = None,
) -> NotificationMessage:
    token_id = str(listing.token_id)
    payload = _nft_payload(
        settings,
        token_id=token_id,
        level=level,
        rarity=rarity,
        media_slot="listed",
        media=media,
        audience="market",
    )
    payload.update({"price": _str_or_none(listing.price), "url": listing.url})
    return NotificationMessage(
        event_type="nft_listed",
        message=f"{payload['collection']} #{token_id} listed",
        title="Listed",
        payload=payload,
    )


def build_nft_sold(
    settings: Settings,
    sale: SaleRecord,
    *,
    level: int | None = None,
    rarity: Rarity | None = None,
    media: MediaRef | None = None,
) -> NotificationMessage:
    token_id = str(sale.token_id)
    payload = _nft_payload(
        settings,
        token_id=token_id,
        level=level,
        rarity=rarity,
        media_slot="sold",
        media=media,
        audience="market",
    )
    payload.update(
        {
            "price": _str_or_none(sale.price),
            "sold_at": _str_or_none(sale.sold_at),
            "url": sale.url,
            "sale_id": sale.id,
        }
    )
    return NotificationMessage(
        event_type="nft_sold",
        message=f"{payload['collection']} #{token_id} sold",
        title="Sold",
        payload=payload,
    )


def build_level_update(
    settings: Settings,
    token_id: str,
    *,
    old_level: int,
    new_level: int,
    rarity: Rarity | None = None,
    media: MediaRef | None = None,
) -> NotificationMessage:
    payload = _nft_payload(
        settings,
        token_id=token_id,
        level=new_level,
        rarity=rarity,
        media_slot="level",
        media=media,
        audience="levels",
    )
    payload["old_level"] = old_level
    return NotificationMessage(
        event_type="level_update",
        message=f"{payload['collection']} #{token_id} level {old_level} -> {new_level}",
        title="Level Update",
        payload=payload,
    )


def build_token_trade(
    settings: Settings,
    record: TokenSaleRecord,
    *,
    is_big_buy: bool,
    ticker_used: str | None = None,
    media: MediaRef | None = None,
) -> NotificationMessage:
    ticker = str(record.ticker or settings.marketplace.ticker).upper()
    payload: dict[str, Any] = {
        "audience": "market",
        "venue": "Kaspa.com",
        "ticker": ticker,
        "amount": _str_or_none(record.amount),
        "total_price": _str_or_none(record.total_price),
        "price_per_token": _str_or_none(record.price_per_token),
        "buyer_address": record.buyer_address,
        "seller_address": record.seller_address,
        "executed_at": _str_or_none(record.executed_at),
        "order_id": record.id,
        "is_big_buy": is_big_buy,
        "ticker_used": ticker_used,
        "media_slot": "bigbuy" if is_big_buy else "token",
        "media": _media(media),
        "quote_label": settings.alerts.quote_label,
    }
    return NotificationMessage(
        event_type="token_trade",
        message=f"{'KRC20 BIG BUY' if is_big_buy else 'KRC20 BUY'} {ticker}",
        title=f"{ticker} (Kaspa.com)",
        payload=payload,
    )


def build_dex_trade(
    settings: Settings,
    dex: DexSettings,
    state: PairState,
    trade: ClassifiedTrade,
    *,
    media: MediaRef | None = None,
) -> NotificationMessage:
    label = "BIG BUY" if trade.is_big_buy else trade.direction.value
    payload: dict[str, Any] = {
        "audience": "market",
        "dex_name": dex.name,
        "direction": trade.direction.value,
        "is_big_buy": trade.is_big_buy,
        "token_amount": _str_or_none(trade.token_amount),
        "quote_amount": _str_or_none(trade.quote_amount),
        "price_per_token": _str_or_none(trade.price_per_token),
        "token_symbol": state.token_symbol,
        "quote_symbol": state.quote_symbol,
        "tx_hash": trade.tx_hash,
        "log_index": trade.log_index,
        "pair_address": state.pair_address,
        "button_url": dex.buy_link,
        "button_text": f"Buy {state.token_symbol}" if dex.buy_link else None,
        "media_slot": "bigbuy" if trade.is_big_buy else "dex",
        "media": _media(media),
        "quote_label": settings.alerts.quote_label,
    }
    return NotificationMessage(
        event_type="dex_trade",
        message=f"{dex.name} {label}",
        title=f"{state.token_symbol} / {state.quote_symbol} ({dex.name})",
        payload=payload,
    )


def build_dex_initialized(dex: DexSettings, state: PairState) -> NotificationMessage:
    slot = "token0" if state.token_is_first_slot else "token1"
    return NotificationMessage(
        event_type="dex_initialized",
        message=f"{dex.name} init OK",
        title=dex.name,
        payload={
            "audience": "admin",
            "dex_name": dex.name,
            "pair_address": state.pair_address,
            "start_block": state.last_scanned_block,
            "token0": state.token0,
            "token1": state.token1,
            "token_slot": slot,
            "token_symbol": state.token_symbol,
            "token_decimals": state.token_decimals,
            "quote_symbol": state.quote_symbol,
            "quote_decimals": state.quote_decimals,
            "swap_variant": state.swap_variant,
        },
    )


def build_dex_init_failed(dex: DexSettings, error: Exception) -> NotificationMessage:
    return NotificationMessage(
        event_type="dex_init_failed",
        message=f"{dex.name} init failed: {error}",
        title=dex.name,
        payload={
            "audience": "admin",
            "dex_name": dex.name,
            "factory": dex.factory,
            "token_address": dex.token_address,
            "error_type": type(error).__name__,
            "error_message": str(error),
        },
    )


class TradeEventNotifier:
    """Builds trade event notifications and enqueues them on NotificationService."""

    def __init__(
        self,
        notification_service: NotificationService,
        settings: Settings,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        self._notification_service = notification_service
        self._settings = settings
        self._logger = get_logger(logger_name or self.__class__.__name__)

    def _send(self, message: NotificationMessage) -> None:
        self._notification_service.notify(message)
        self._logger.debug("trade_event_notified", event_type=message.event_type)

    def nft_listed(
        self,
        listing: ListingRecord,
        *,
        level: int | None = None,
        rarity: Rarity | None = None,
        media: MediaRef | None = None,
    ) -> None:
        self._send(build_nft_listed(self._settings, listing, level=level, rarity=rarity, media=media))

    def nft_sold(
        self,
        sale: SaleRecord,
        *,
        level: int | None = None,
        rarity: Rarity | None = None,
        media: MediaRef | None = None,
    ) -> None:
        self._send(build_nft_sold(self._settings, sale, level=level, rarity=rarity, media=media))

    def level_update(
        self,
        token_id: str,
        *,
        old_level: int,
        new_level: int,
        rarity: Rarity | None = None,
        media: MediaRef | None = None,
    ) -> None:
        self._send(
            build_level_update(
                self._settings,
                token_id,
                old_level=old_level,
                new_level=new_level,
                rarity=rarity,
                media=media,
            )
        )

    def token_trade(
        self,
        record: TokenSaleRecord,
        *,
        is_big_buy: bool,
        ticker_used: str | None = None,
        media: MediaRef | None = None,
    ) -> None:
        self._send(
            build_token_trade(
                self._settings, record, is_big_buy=is_big_buy, ticker_used=ticker_used, media=media
            )
        )

    def dex_trade(
        self,
        dex: DexSettings,
        state: PairState,
        trade: ClassifiedTrade,
        *,
        media: MediaRef | None = None,
    ) -> None:
        if trade.direction is TradeDirection.NOISE:
            return
        self._send(build_dex_trade(self._settings, dex, state, trade, media=media))

    def dex_initialized(self, dex: DexSettings, state: PairState) -> None:
        self._send(build_dex_initialized(dex, state))

    def dex_init_failed(self, dex: DexSettings, error: Exception) -> None:
        self._send(build_dex_init_failed(dex, error))
