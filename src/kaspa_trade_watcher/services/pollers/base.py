# -*- coding: utf-8 -*-
"""Feed poller interface and per-poll outcome."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from kaspa_trade_watcher.models.snapshot import Snapshot


@dataclass(slots=True)
class PollOutcome:
    """What one poller did during a tick."""

    poller: str
    emitted: int = 0
    skipped: int = 0
    ticker_used: str | None = None
    disabled: bool = False
    """Poller did not run (missing configuration or unresolved DEX pair)."""
    error_type: str | None = None
    error_message: str | None = None
    detail: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.error_type is None


class FeedPoller(ABC):
    """One feed polled once per tick against the shared snapshot."""

    name: str

    @abstractmethod
    async def poll(self, snapshot: Snapshot) -> PollOutcome:
        """Fetch the feed, announce new events and record them in `snapshot`.

        Raises:
            TradeWatcherError: On upstream failure; the snapshot keeps its previous state
                for this feed.
        """
        ...
