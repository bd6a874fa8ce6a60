# -*- coding: utf-8 -*-
"""Swap event decoding and trade classification for UniswapV2-style pairs.

Two event shapes are supported; the pair's DEX decides which one applies:

    STANDARD       Swap(address indexed sender, uint256 amount0In, uint256 amount1In,
                        uint256 amount0Out, uint256 amount1Out, address indexed to)
    DISCOUNT_FLAG  same, plus a trailing `bool isDiscountEligible` in the data
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Any

from eth_abi import decode as abi_decode
from eth_utils import keccak, to_checksum_address

from kaspa_trade_watcher.exceptions import SwapDecodeError
from kaspa_trade_watcher.models.trade import (
    ClassifiedTrade,
    RawSwapLog,
    SwapAmounts,
    TradeDirection,
)


class SwapEventVariant(str, Enum):
    """Swap event shape emitted by a pair contract."""

    STANDARD = "standard"
    """Plain UniswapV2 Swap event."""
    DISCOUNT_FLAG = "discount_flag"
    """Swap event with a trailing discount-eligibility flag (ZealousSwap)."""

    @property
    def signature(self) -> str:
        return _SIGNATURES[self]

    @property
    def topic(self) -> str:
        """topic0 of the event: 0x-prefixed keccak256 of the signature."""
        return _TOPICS[self]

    @property
    def data_types(self) -> list[str]:
        """ABI types of the non-indexed fields, in log data order."""
        return list(_DATA_TYPES[self])


_SIGNATURES: dict[SwapEventVariant, str] = {
    SwapEventVariant.STANDARD: "Swap(address,uint256,uint256,uint256,uint256,address)",
    SwapEventVariant.DISCOUNT_FLAG: "Swap(address,uint256,uint256,uint256,uint256,address,bool)",
}
_TOPICS: dict[SwapEventVariant, str] = {
    variant: "0x" + keccak(text=signature).hex() for variant, signature in _SIGNATURES.items()
}
_DATA_TYPES: dict[SwapEventVariant, tuple[str, ...]] = {
    SwapEventVariant.STANDARD: ("uint256", "uint256", "uint256", "uint256"),
    SwapEventVariant.DISCOUNT_FLAG: ("uint256", "uint256", "uint256", "uint256", "bool"),
}

# topic0 + indexed sender + indexed to
_EXPECTED_TOPICS = 3


def _topic_address(topic: str) -> str:
    s = topic[2:] if topic.startswith("0x") else topic
    return to_checksum_address("0x" + s[-40:])


def decode_swap_log(log: RawSwapLog, variant: SwapEventVariant) -> SwapAmounts:
    """Decode a raw log as the given Swap variant.

    Raises:
        SwapDecodeError: If topic0 is not the variant topic, the topic count is
            wrong, or the data does not ABI-decode.
    """
    if not log.topics or log.topics[0].lower() != variant.topic:
        raise SwapDecodeError(f"Log topic0 does not match {variant.value} Swap event")
    if len(log.topics) != _EXPECTED_TOPICS:
        raise SwapDecodeError(
            f"Expected {_EXPECTED_TOPICS} topics for Swap event, got {len(log.topics)}"
        )
    try:
        data = bytes.fromhex(log.data[2:] if log.data.startswith("0x") else log.data)
        values: tuple[Any, ...] = abi_decode(variant.data_types, data)
        sender = _topic_address(log.topics[1])
        recipient = _topic_address(log.topics[2])
    except Exception as e:
        raise SwapDecodeError(f"Swap log data does not decode: {e}") from e

    return SwapAmounts(
        amount0_in=int(values[0]),
        amount1_in=int(values[1]),
        amount0_out=int(values[2]),
        amount1_out=int(values[3]),
        sender=sender,
        recipient=recipient,
        discount_eligible=bool(values[4]) if variant is SwapEventVariant.DISCOUNT_FLAG else None,
    )


def to_units(raw: int, decimals: int) -> Decimal:
    """Scale a raw on-chain integer by 10**decimals, exactly."""
    return Decimal(f"{int(raw)}e{-int(decimals)}")


def classify_swap(
    amounts: SwapAmounts,
    *,
    token_is_first_slot: bool,
    token_decimals: int,
    quote_decimals: int,
    big_buy_threshold: Decimal,
    tx_hash: str,
    log_index: int,
) -> ClassifiedTrade:
    """Classify a decoded swap as BUY, SELL or NOISE relative to the tracked token.

    BUY when the token left the pair and the quote entered it, SELL for the
    reverse; anything else is NOISE with zero amounts.
    """
    if token_is_first_slot:
        token_out, quote_in = amounts.amount0_out, amounts.amount1_in
        token_in, quote_out = amounts.amount0_in, amounts.amount1_out
    else:
        token_out, quote_in = amounts.amount1_out, amounts.amount0_in
        token_in, quote_out = amounts.amount1_in, amounts.amount0_out

    if token_out > 0 and quote_in > 0:
        direction = TradeDirection.BUY
        raw_token, raw_quote = token_out, quote_in
    elif token_in > 0 and quote_out > 0:
        direction = TradeDirection.SELL
        raw_token, raw_quote = token_in, quote_out
    else:
        return ClassifiedTrade(
            direction=TradeDirection.NOISE,
            token_amount=Decimal(0),
            quote_amount=Decimal(0),
            is_big_buy=False,
            tx_hash=tx_hash,
            log_index=log_index,
        )

    token_amount = to_units(raw_token, token_decimals)
    quote_amount = to_units(raw_quote, quote_decimals)
    return ClassifiedTrade(
        direction=direction,
        token_amount=token_amount,
        quote_amount=quote_amount,
        is_big_buy=direction is TradeDirection.BUY and quote_amount >= big_buy_threshold,
        tx_hash=tx_hash,
        log_index=log_index,
        price_per_token=quote_amount / token_amount if token_amount > 0 else None,
    )
