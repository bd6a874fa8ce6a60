"""Persistence layer (repositories, atomic file helpers)."""

from kaspa_trade_watcher.persistence.atomic import load_json_safe, write_json_atomic
from kaspa_trade_watcher.persistence.repositories import (
    InMemorySnapshotRepository,
    ISnapshotRepository,
    JsonFileSnapshotRepository,
)

__all__ = [
    "ISnapshotRepository",
    "InMemorySnapshotRepository",
    "JsonFileSnapshotRepository",
    "load_json_safe",
    "write_json_atomic",
]
