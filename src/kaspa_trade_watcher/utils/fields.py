"""Field aliasing for heterogeneous upstream JSON shapes.

Each logical field maps to an ordered tuple of candidate keys; the first key
holding a non-empty value wins. Extend the tables, not the code.
"""

from __future__ import annotations

from typing import Any, Mapping, cast

PRICE_ALIASES: tuple[str, ...] = (
    "totalPrice",
    "price",
    "listPrice",
    "listedPrice",
    "askPrice",
    "amount",
    "kasPrice",
    "priceKAS",
    "price_kas",
)

LISTING_ALIASES: dict[str, tuple[str, ...]] = {
    "token_id": ("tokenId", "token_id", "id"),
    "url": ("url", "link", "marketplaceUrl"),
}

SALE_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("_id", "id"),
    "token_id": ("tokenId", "token_id", "id"),
    "sold_at": ("fulfillmentTimestamp", "createdAt", "timestamp", "time"),
    "url": ("url", "link", "marketplaceUrl"),
}

TOKEN_SALE_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("_id", "id", "orderId", "order_id"),
    "ticker": ("ticker", "tick", "symbol"),
    "amount": ("amount", "tokenAmount", "qty"),
    "price_per_token": ("pricePerToken", "price_per_token"),
    "total_price": ("totalPrice", "total_price", "price", "kasAmount"),
    "seller_address": ("sellerAddress", "seller", "from"),
    "buyer_address": ("buyerAddress", "buyer", "to"),
    "created_at": ("createdAt", "timestamp", "time"),
    "fulfillment_timestamp": ("fulfillmentTimestamp", "fulfilledAt"),
    "status": ("status",),
}

# Collection keys that may wrap the row array in a response body.
ROW_CONTAINER_KEYS: tuple[str, ...] = ("orders", "data")


def pick(obj: Any, keys: tuple[str, ...]) -> Any:
    """Return the first value among keys that is not None or an empty string."""
    if not isinstance(obj, Mapping):
        return None
    mapping = cast(Mapping[str, Any], obj)
    for key in keys:
        value = mapping.get(key)
        if value is not None and value != "":
            return value
    return None


def project(obj: Any, aliases: dict[str, tuple[str, ...]]) -> dict[str, Any]:
    """Project a raw record onto logical field names using an alias table."""
    return {field: pick(obj, keys) for field, keys in aliases.items()}


def pick_price(obj: Any) -> Any:
    """Price from the record itself, else from a nested `order` object."""
    price = pick(obj, PRICE_ALIASES)
    if price is None and isinstance(obj, Mapping):
        price = pick(cast(Mapping[str, Any], obj).get("order"), PRICE_ALIASES)
    return price


def extract_rows(data: Any) -> list[dict[str, Any]]:
    """Return the row list of a response that is an array or {orders|data: [...]}."""
    rows: Any = data
    if isinstance(data, Mapping):
        rows = None
        for key in ROW_CONTAINER_KEYS:
            candidate = cast(Mapping[str, Any], data).get(key)
            if isinstance(candidate, list):
                rows = candidate
                break
    if not isinstance(rows, list):
        return []
    return [cast(dict[str, Any], r) for r in cast(list[Any], rows) if isinstance(r, dict)]


def tickers_to_try(base: str | None) -> list[str]:
    """Casing variants of a ticker in try order: as given, UPPER, lower, Title (deduplicated)."""
    b = str(base or "").strip()
    lower = b.lower()
    title = lower[:1].upper() + lower[1:] if lower else b
    variants = [b, b.upper(), lower, title]
    return list(dict.fromkeys(variants))
