"""Normalized marketplace records (KRC721 listings/sales, KRC20 sold orders).

Upstream field names vary between endpoints and API versions; records are
projected through the alias tables in utils.fields.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from kaspa_trade_watcher.utils.fields import (
    LISTING_ALIASES,
    SALE_ALIASES,
    TOKEN_SALE_ALIASES,
    pick_price,
    project,
)


def to_decimal(value: Any) -> Decimal | None:
    """Parse an upstream number; None when missing or not numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        d = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return d if d.is_finite() else None


def _opt_str(value: Any) -> str | None:
    return None if value is None else str(value)


@dataclass(frozen=True, slots=True)
class ListingRecord:
    token_id: str | None
    price: Any = None
    url: str | None = None

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> ListingRecord:
        f = project(raw, LISTING_ALIASES)
        return cls(token_id=_opt_str(f["token_id"]), price=pick_price(raw), url=_opt_str(f["url"]))


@dataclass(frozen=True, slots=True)
class SaleRecord:
    id: str | None
    token_id: str | None
    price: Any = None
    sold_at: Any = None
    url: str | None = None

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> SaleRecord:
        f = project(raw, SALE_ALIASES)
        return cls(
            id=_opt_str(f["id"]),
            token_id=_opt_str(f["token_id"]),
            price=pick_price(raw),
            sold_at=f["sold_at"],
            url=_opt_str(f["url"]),
        )


@dataclass(frozen=True, slots=True)
class TokenSaleRecord:
    """Fulfilled KRC20 order: someone bought `amount` tokens for `total_price` KAS."""

    id: str | None
    ticker: str | None
    amount: Any = None
    price_per_token: Any = None
    total_price: Any = None
    seller_address: str | None = None
    buyer_address: str | None = None
    created_at: Any = None
    fulfillment_timestamp: Any = None
    status: str | None = None

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> TokenSaleRecord:
        f = project(raw, TOKEN_SALE_ALIASES)
        return cls(
            id=_opt_str(f["id"]),
            ticker=_opt_str(f["ticker"]),
            amount=f["amount"],
            price_per_token=f["price_per_token"],
            total_price=f["total_price"],
            seller_address=_opt_str(f["seller_address"]),
            buyer_address=_opt_str(f["buyer_address"]),
            created_at=f["created_at"],
            fulfillment_timestamp=f["fulfillment_timestamp"],
            status=_opt_str(f["status"]),
        )

    @property
    def executed_at(self) -> Any:
        return self.fulfillment_timestamp or self.created_at
