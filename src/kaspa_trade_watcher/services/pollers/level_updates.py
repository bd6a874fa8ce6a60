# -*- coding: utf-8 -*-
"""Level update poller: announces NFTs whose level changed since the previous snapshot."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog
from structlog.contextvars import bound_contextvars

from kaspa_trade_watcher.services.pollers.base import FeedPoller, PollOutcome

if TYPE_CHECKING:
    from kaspa_trade_watcher.config import Settings
    from kaspa_trade_watcher.models.snapshot import Snapshot
    from kaspa_trade_watcher.services.metadata import LevelsCache, RarityCache
    from kaspa_trade_watcher.services.notifications.trade_events import TradeEventNotifier


class LevelUpdatePoller(FeedPoller):
    """Compares previous and current level snapshots, then rotates previous <- current.

    Tokens absent from the previous snapshot are not announced, so the first
    run only establishes the baseline. At most `max_level_updates_per_refresh`
    changes are announced per rotation.
    """

    name = "level_updates"

    def __init__(
        self,
        levels: LevelsCache,
        rarity: RarityCache,
        notifier: TradeEventNotifier,
        settings: Settings,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        self._levels = levels
        self._rarity = rarity
        self._notifier = notifier
        self._settings = settings
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def poll(self, snapshot: Snapshot) -> PollOutcome:
        current = self._levels.current()
        if not current:
            # Never fetched: rotating now would erase the baseline.
            return PollOutcome(poller=self.name, disabled=True)

        previous = self._levels.load_previous()
        limit = max(1, self._settings.metadata.max_level_updates_per_refresh)
        changed = 0
        emitted = 0
        with bound_contextvars(poller=self.name):
            for token_id, new_level in current.items():
                old_level = previous.get(token_id)
                if old_level is None or old_level == new_level:
                    continue
                changed += 1
                if emitted >= limit:
                    continue
                self._notifier.level_update(
                    token_id,
                    old_level=old_level,
                    new_level=new_level,
                    rarity=self._rarity.get(token_id),
                    media=snapshot.media_for("level"),
                )
                emitted += 1

            self._levels.rotate_previous()
            if changed > emitted:
                self._logger.warning(
                    "level_updates_truncated",
                    level_updates_changed=changed,
                    level_updates_posted=emitted,
                )
        return PollOutcome(poller=self.name, emitted=emitted, skipped=changed - emitted)
