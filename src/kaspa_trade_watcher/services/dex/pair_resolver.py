# -*- coding: utf-8 -*-
"""Resolve a DEX pair (address, slot order, token metadata) and seed its scan cursor."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog
from structlog.contextvars import bound_contextvars

from kaspa_trade_watcher.clients.rpc_client import TokenMetadata
from kaspa_trade_watcher.exceptions import PairNotFoundError
from kaspa_trade_watcher.utils.validation import is_hex_address, is_zero_address, mask_address, same_address

if TYPE_CHECKING:
    from kaspa_trade_watcher.clients.rpc_client import RpcClient
    from kaspa_trade_watcher.config import DexSettings, Settings
    from kaspa_trade_watcher.models.snapshot import PairState

DEFAULT_DECIMALS = 18


def is_resolved(state: PairState) -> bool:
    """True once the pair is known and its cursor has been seeded."""
    return (
        is_hex_address(state.pair_address)
        and isinstance(state.token_is_first_slot, bool)
        and state.last_scanned_block > 0
    )


class PairResolver:
    """One-time pair discovery through the DEX factory."""

    def __init__(
        self,
        rpc_client: RpcClient,
        settings: Settings,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            rpc_client: JSON-RPC client.
            settings: Application settings (chain quote token and symbol fallback, marketplace ticker).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._rpc = rpc_client
        self._settings = settings
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def resolve(self, dex: DexSettings, state: PairState) -> bool:
        """Populate `state` for `dex` unless it is already resolved.

        The cursor starts at the chain head observed before resolution, so only
        swaps after startup are reported. `state` is modified only when every
        required read succeeded.

        Returns:
            True if the pair was resolved by this call, False if it already was.

        Raises:
            PairNotFoundError: If the factory has no pair for (token, quote).
            RpcError, UpstreamAPIError: If a required read fails.
        """
        if is_resolved(state):
            return False

        token = str(dex.token_address)
        quote = str(self._settings.chain.quote_token_address)
        with bound_contextvars(dex_name=dex.name):
            head = await self._rpc.get_block_number()
            pair = await self._rpc.get_pair(str(dex.factory), token, quote)
            if is_zero_address(pair):
                raise PairNotFoundError(dex.name, token, quote)
            token0, token1 = await self._rpc.get_pair_tokens(pair)

            token_meta = await self._metadata(token, self._settings.marketplace.ticker)
            quote_meta = await self._metadata(quote, self._settings.chain.quote_symbol_fallback)

            state.pair_address = pair
            state.token0 = token0
            state.token1 = token1
            state.token_is_first_slot = same_address(token0, token)
            state.last_scanned_block = head
            state.token_decimals = token_meta.decimals
            state.token_symbol = token_meta.symbol
            state.quote_decimals = quote_meta.decimals
            state.quote_symbol = quote_meta.symbol
            state.swap_variant = dex.swap_variant

            self._logger.info(
                "dex_pair_resolved",
                dex_pair=mask_address(pair),
                dex_start_block=head,
                dex_token_is_first_slot=state.token_is_first_slot,
                dex_token_symbol=state.token_symbol,
                dex_quote_symbol=state.quote_symbol,
            )
        return True

    async def _metadata(self, address: str, fallback_symbol: str) -> TokenMetadata:
        """Token decimals/symbol; a failed read falls back to 18 decimals and `fallback_symbol`."""
        try:
            meta = await self._rpc.get_token_metadata(address)
        except Exception as e:
            self._logger.warning(
                "dex_token_metadata_fallback",
                dex_token=mask_address(address),
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return TokenMetadata(decimals=DEFAULT_DECIMALS, symbol=fallback_symbol)
        return TokenMetadata(decimals=meta.decimals, symbol=meta.symbol or fallback_symbol)
