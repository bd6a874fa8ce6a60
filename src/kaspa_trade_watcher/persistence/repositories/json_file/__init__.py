"""JSON-file repository implementations."""

from kaspa_trade_watcher.persistence.repositories.json_file.snapshot_repository import (
    JsonFileSnapshotRepository,
)

__all__ = ["JsonFileSnapshotRepository"]
