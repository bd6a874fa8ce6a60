# -*- coding: utf-8 -*-
"""Per-DEX poller: resolve the pair once, then scan new blocks each tick."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog
from structlog.contextvars import bound_contextvars

from kaspa_trade_watcher.exceptions import PairNotFoundError
from kaspa_trade_watcher.models.snapshot import PairState
from kaspa_trade_watcher.models.trade import ClassifiedTrade
from kaspa_trade_watcher.services.dex.swap_decoder import SwapEventVariant
from kaspa_trade_watcher.services.pollers.base import FeedPoller, PollOutcome
from kaspa_trade_watcher.utils.validation import is_hex_address

if TYPE_CHECKING:
    from kaspa_trade_watcher.config import DexSettings, Settings
    from kaspa_trade_watcher.models.snapshot import Snapshot
    from kaspa_trade_watcher.services.dex.block_scanner import BlockRangeScanner
    from kaspa_trade_watcher.services.dex.pair_resolver import PairResolver
    from kaspa_trade_watcher.services.notifications.trade_events import TradeEventNotifier


class DexPoller(FeedPoller):
    """Swap feed of one DEX pair (tracked token / quote token).

    Disabled while the factory, token or quote address is not a valid address.
    A missing pair is reported to the operator once per configuration and
    resolution is retried on the next tick.
    """

    def __init__(
        self,
        dex: DexSettings,
        resolver: PairResolver,
        scanner: BlockRangeScanner,
        notifier: TradeEventNotifier,
        settings: Settings,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        self._dex = dex
        self._resolver = resolver
        self._scanner = scanner
        self._notifier = notifier
        self._settings = settings
        self._logger = get_logger(logger_name or self.__class__.__name__)
        self._reported_failure: tuple[str | None, ...] | None = None
        self.name = f"dex:{dex.name}"

    @property
    def dex(self) -> DexSettings:
        return self._dex

    def enabled(self) -> bool:
        return (
            is_hex_address(self._dex.factory)
            and is_hex_address(self._dex.token_address)
            and is_hex_address(self._settings.chain.quote_token_address)
        )

    def _config_signature(self) -> tuple[str | None, ...]:
        return (self._dex.factory, self._dex.token_address, self._settings.chain.quote_token_address)

    async def poll(self, snapshot: Snapshot) -> PollOutcome:
        if not self.enabled():
            return PollOutcome(poller=self.name, disabled=True)

        state = snapshot.pair_state(
            self._dex.name,
            defaults=PairState(
                token_symbol=self._settings.marketplace.ticker,
                quote_symbol=self._settings.chain.quote_symbol_fallback,
            ),
        )
        with bound_contextvars(poller=self.name, dex_name=self._dex.name):
            try:
                resolved_now = await self._resolver.resolve(self._dex, state)
            except PairNotFoundError as e:
                self._logger.warning("dex_pair_not_found", error_message=str(e))
                if self._reported_failure != self._config_signature():
                    self._notifier.dex_init_failed(self._dex, e)
                    self._reported_failure = self._config_signature()
                return PollOutcome(
                    poller=self.name,
                    disabled=True,
                    error_type=type(e).__name__,
                    error_message=str(e),
                )
            if resolved_now:
                self._reported_failure = None
                self._notifier.dex_initialized(self._dex, state)

            variant = SwapEventVariant(self._dex.swap_variant)
            state.swap_variant = variant.value

            def emit(trade: ClassifiedTrade) -> None:
                self._notifier.dex_trade(
                    self._dex,
                    state,
                    trade,
                    media=snapshot.media_for("bigbuy" if trade.is_big_buy else "dex"),
                )

            result = await self._scanner.scan(
                self._dex.name,
                state,
                snapshot.dex_trades,
                variant,
                emit,
                big_buy_threshold=self._settings.alerts.big_buy_threshold,
            )
        return PollOutcome(
            poller=self.name,
            emitted=result.emitted,
            skipped=result.skipped_duplicates,
            detail={
                "from_block": result.from_block,
                "to_block": result.to_block,
                "logs_seen": result.logs_seen,
                "noise": result.noise,
                "decode_failures": result.decode_failures,
                "resolved_now": resolved_now,
            },
        )
