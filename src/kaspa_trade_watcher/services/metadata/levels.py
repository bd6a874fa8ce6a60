# -*- coding: utf-8 -*-
"""Rotating NFT level snapshots: current, previous and fetch metadata on disk."""

from __future__ import annotations

import time
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any, cast

import structlog

from kaspa_trade_watcher.models.market import to_decimal
from kaspa_trade_watcher.persistence.atomic import load_json_safe, write_json_atomic

if TYPE_CHECKING:
    from kaspa_trade_watcher.clients.levels_api import LevelsApiClient

LevelMap = dict[str, int]

CURRENT_FILE = "levels_curr.json"
PREVIOUS_FILE = "levels_prev.json"
META_FILE = "levels_meta.json"


def _epoch_ms() -> int:
    return int(time.time() * 1000)


def coerce_levels(raw: Any) -> LevelMap:
    """Keep only integral numeric levels from a persisted {tokenId: level} object."""
    if not isinstance(raw, dict):
        return {}
    out: LevelMap = {}
    for token_id, value in cast(dict[Any, Any], raw).items():
        level = to_decimal(value)
        if level is not None and level == level.to_integral_value():
            out[str(token_id)] = int(level)
    return out


class LevelsCache:
    """Level lookups backed by `<levels_dir>/levels_curr.json`, refreshed on a TTL.

    The previous snapshot (`levels_prev.json`) is only read and rotated by the
    level update poller.
    """

    def __init__(
        self,
        levels_client: LevelsApiClient,
        levels_dir: str | Path,
        refresh_seconds: float,
        *,
        clock: Callable[[], int] = _epoch_ms,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the cache.

        Args:
            levels_client: Client for the levels API.
            levels_dir: Directory holding the current/previous/meta files.
            refresh_seconds: Maximum age of the current snapshot before ensure_fresh() refetches.
            clock: Epoch-ms clock.
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._client = levels_client
        self._dir = Path(levels_dir)
        self._ttl_ms = int(refresh_seconds * 1000)
        self._clock = clock
        self._logger = get_logger(logger_name or self.__class__.__name__)
        self._levels: LevelMap | None = None
        self._meta: dict[str, Any] = {}

    @property
    def current_path(self) -> Path:
        return self._dir / CURRENT_FILE

    @property
    def previous_path(self) -> Path:
        return self._dir / PREVIOUS_FILE

    @property
    def meta_path(self) -> Path:
        return self._dir / META_FILE

    @property
    def fetched_at(self) -> int:
        """Epoch ms of the last successful fetch, 0 if never."""
        value = to_decimal(self._meta.get("fetchedAt"))
        return int(value) if value is not None else 0

    @property
    def meta(self) -> dict[str, Any]:
        return dict(self._meta)

    def load_once(self) -> None:
        """Read the current snapshot and its metadata from disk (first call only)."""
        if self._levels is not None:
            return
        self._levels = coerce_levels(load_json_safe(self.current_path, {}))
        meta = load_json_safe(self.meta_path, {})
        self._meta = cast(dict[str, Any], meta) if isinstance(meta, dict) else {}

    def is_stale(self) -> bool:
        self.load_once()
        fetched_at = self.fetched_at
        return not fetched_at or self._clock() - fetched_at > self._ttl_ms

    async def ensure_fresh(self) -> bool:
        """Refresh when never fetched or older than the TTL. Returns True if a fetch happened."""
        if not self.is_stale():
            return False
        await self.refresh()
        return True

    async def refresh(self) -> LevelMap:
        """Fetch all levels and atomically write the current snapshot and its metadata.

        Raises:
            UpstreamAPIError: If the fetch fails; the on-disk snapshot is left untouched.
        """
        self.load_once()
        levels = await self._client.get_levels()
        write_json_atomic(self.current_path, levels)
        self._levels = levels
        self._meta = {
            "fetchedAt": self._clock(),
            "source": self._client.url,
            "count": len(levels),
        }
        write_json_atomic(self.meta_path, self._meta)
        self._logger.info("levels_refreshed", levels_count=len(levels))
        return dict(levels)

    def get(self, token_id: str | int) -> int | None:
        self.load_once()
        return (self._levels or {}).get(str(token_id))

    def current(self) -> LevelMap:
        self.load_once()
        return dict(self._levels or {})

    def load_previous(self) -> LevelMap:
        return coerce_levels(load_json_safe(self.previous_path, {}))

    def rotate_previous(self) -> None:
        """Persist the current snapshot as the previous one."""
        write_json_atomic(self.previous_path, self.current())
