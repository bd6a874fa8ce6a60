# -*- coding: utf-8 -*-
"""In-memory snapshot repository (stores the serialized form, like the file repository)."""

from __future__ import annotations

import copy
from typing import Any

from kaspa_trade_watcher.models.snapshot import Snapshot
from kaspa_trade_watcher.persistence.repositories.interfaces.snapshot_repository import (
    ISnapshotRepository,
)
from kaspa_trade_watcher.utils.dedupe import now_ms


class InMemorySnapshotRepository(ISnapshotRepository):
    """In-memory implementation of ISnapshotRepository."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        """Initialize with an optional serialized snapshot."""
        self._data: dict[str, Any] | None = copy.deepcopy(initial) if initial is not None else None
        self.save_count = 0

    async def load(self) -> Snapshot:
        """Return a fresh Snapshot built from the stored data (never shared with callers)."""
        if self._data is None:
            return Snapshot()
        return Snapshot.from_dict(copy.deepcopy(self._data), now=now_ms())

    async def save(self, snapshot: Snapshot) -> None:
        """Store a deep copy of the serialized snapshot."""
        self._data = copy.deepcopy(snapshot.to_dict())
        self.save_count += 1

    @property
    def data(self) -> dict[str, Any] | None:
        """Last saved serialized snapshot."""
        return self._data
