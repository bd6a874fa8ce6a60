# -*- coding: utf-8 -*-
"""Incremental, resumable scan of a pair's Swap logs over bounded block ranges."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any

import structlog
from structlog.contextvars import bound_contextvars

from kaspa_trade_watcher.exceptions import SwapDecodeError
from kaspa_trade_watcher.models.trade import ClassifiedTrade, RawSwapLog
from kaspa_trade_watcher.services.dex.swap_decoder import (
    SwapEventVariant,
    classify_swap,
    decode_swap_log,
)
from kaspa_trade_watcher.utils.dedupe import DedupeMap, dex_trade_key, now_ms, record, seen

if TYPE_CHECKING:
    from kaspa_trade_watcher.clients.rpc_client import RpcClient
    from kaspa_trade_watcher.config import Settings
    from kaspa_trade_watcher.models.snapshot import PairState

TradeSink = Callable[[ClassifiedTrade], None]


@dataclass(frozen=True, slots=True)
class ScanResult:
    """Outcome of one scan. from_block > to_block means nothing was scanned."""

    from_block: int
    to_block: int
    logs_seen: int = 0
    emitted: int = 0
    noise: int = 0
    skipped_duplicates: int = 0
    decode_failures: int = 0

    @property
    def scanned(self) -> bool:
        return self.from_block <= self.to_block


class BlockRangeScanner:
    """Scans [last_scanned_block + 1, min(head, last_scanned_block + 1 + span)] per call.

    Every log gets a dedupe key `{dex}:{txHash}:{logIndex}`. Trades are emitted
    before their key is recorded, so a crash between the two re-emits rather
    than drops. The cursor moves only after the whole range was processed.
    """

    def __init__(
        self,
        rpc_client: RpcClient,
        settings: Settings,
        *,
        clock: Callable[[], int] = now_ms,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        self._rpc = rpc_client
        self._settings = settings
        self._clock = clock
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def scan(
        self,
        dex_name: str,
        state: PairState,
        dedupe: DedupeMap,
        variant: SwapEventVariant,
        sink: TradeSink,
        *,
        big_buy_threshold: Decimal,
    ) -> ScanResult:
        """Scan the next block range of `state.pair_address`.

        Raises:
            RpcError, UpstreamAPIError: If the head or the logs cannot be read;
                the cursor is left unchanged.
        """
        last = state.last_scanned_block
        head = await self._rpc.get_block_number()
        if head <= last:
            return ScanResult(from_block=last + 1, to_block=last)

        from_block = last + 1
        to_block = min(head, from_block + self._settings.chain.block_span)
        with bound_contextvars(dex_name=dex_name, dex_from_block=from_block, dex_to_block=to_block):
            raw_logs = await self._rpc.get_logs(
                str(state.pair_address), from_block, to_block, [variant.topic]
            )
            emitted = noise = skipped = failures = 0
            for raw in raw_logs:
                try:
                    log = RawSwapLog.from_rpc(raw)
                except ValueError as e:
                    failures += 1
                    self._logger.warning(
                        "dex_log_malformed",
                        error_type=type(e).__name__,
                        error_message=str(e),
                    )
                    continue

                key = dex_trade_key(dex_name, log.transaction_hash, log.log_index)
                if seen(dedupe, key):
                    skipped += 1
                    continue

                try:
                    amounts = decode_swap_log(log, variant)
                except SwapDecodeError as e:
                    failures += 1
                    record(dedupe, key, self._clock())
                    self._logger.debug(
                        "dex_log_decode_skipped",
                        dex_tx_hash=log.transaction_hash,
                        error_message=str(e),
                    )
                    continue

                trade = classify_swap(
                    amounts,
                    token_is_first_slot=bool(state.token_is_first_slot),
                    token_decimals=state.token_decimals,
                    quote_decimals=state.quote_decimals,
                    big_buy_threshold=big_buy_threshold,
                    tx_hash=log.transaction_hash,
                    log_index=log.log_index,
                )
                if not trade.is_trade:
                    noise += 1
                    record(dedupe, key, self._clock())
                    continue

                sink(trade)
                record(dedupe, key, self._clock())
                emitted += 1

            state.advance_to(to_block)
            result = ScanResult(
                from_block=from_block,
                to_block=to_block,
                logs_seen=len(raw_logs),
                emitted=emitted,
                noise=noise,
                skipped_duplicates=skipped,
                decode_failures=failures,
            )
            self._logger.debug(
                "dex_scan_range",
                dex_logs_seen=result.logs_seen,
                dex_emitted=result.emitted,
                dex_noise=result.noise,
                dex_skipped_duplicates=result.skipped_duplicates,
                dex_decode_failures=result.decode_failures,
            )
            return result
