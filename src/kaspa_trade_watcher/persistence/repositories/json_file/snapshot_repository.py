# -*- coding: utf-8 -*-
"""Snapshot repository backed by a single JSON document on disk."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import structlog

from kaspa_trade_watcher.models.snapshot import Snapshot
from kaspa_trade_watcher.persistence.atomic import write_json_atomic
from kaspa_trade_watcher.persistence.repositories.interfaces.snapshot_repository import (
    ISnapshotRepository,
)
from kaspa_trade_watcher.utils.dedupe import now_ms


class JsonFileSnapshotRepository(ISnapshotRepository):
    """Persist the Snapshot as JSON via temp-file-then-rename.

    A missing, unreadable or corrupt file loads as empty defaults.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        clock: Callable[[], int] = now_ms,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the repository.

        Args:
            path: Snapshot file path (e.g. ./state.json).
            clock: Epoch-ms clock used to date legacy dedupe markers on load.
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._path = Path(path)
        self._clock = clock
        self._logger = get_logger(logger_name or self.__class__.__name__)

    @property
    def path(self) -> Path:
        return self._path

    async def load(self) -> Snapshot:
        if not self._path.exists():
            self._logger.debug("snapshot_load_missing", snapshot_path=str(self._path))
            return Snapshot()
        # JSONDecodeError is a ValueError; out-of-range numbers surface as ArithmeticError.
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            return Snapshot.from_dict(raw, now=self._clock())
        except (OSError, UnicodeDecodeError, TypeError, ValueError, ArithmeticError) as e:
            self._logger.warning(
                "snapshot_load_corrupt",
                snapshot_path=str(self._path),
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return Snapshot()

    async def save(self, snapshot: Snapshot) -> None:
        write_json_atomic(self._path, snapshot.to_dict(), indent=2)
        self._logger.debug(
            "snapshot_saved",
            snapshot_path=str(self._path),
            snapshot_sales_keys=len(snapshot.sales),
            snapshot_token_trade_keys=len(snapshot.token_trades),
            snapshot_dex_trade_keys=len(snapshot.dex_trades),
        )
