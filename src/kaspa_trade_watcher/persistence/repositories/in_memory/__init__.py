"""In-memory repository implementations."""

from kaspa_trade_watcher.persistence.repositories.in_memory.snapshot_repository import (
    InMemorySnapshotRepository,
)

__all__ = ["InMemorySnapshotRepository"]
