"""Abstract interface for snapshot storage (JSON file, in-memory, etc.)."""

from __future__ import annotations

from abc import ABC, abstractmethod

from kaspa_trade_watcher.models.snapshot import Snapshot


class ISnapshotRepository(ABC):
    """Interface for loading and persisting the engine Snapshot."""

    @abstractmethod
    async def load(self) -> Snapshot:
        """Return the persisted snapshot, or empty defaults if none is readable. Never raises on bad data."""
        ...

    @abstractmethod
    async def save(self, snapshot: Snapshot) -> None:
        """Persist the snapshot atomically (readers never observe a partial write)."""
        ...

    async def reset(self) -> Snapshot:
        """Replace the persisted snapshot with empty defaults and return them."""
        empty = Snapshot()
        await self.save(empty)
        return empty
