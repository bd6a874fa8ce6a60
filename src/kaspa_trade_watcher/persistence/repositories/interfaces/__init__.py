# -*- coding: utf-8 -*-
"""Repository interfaces (abstractions). Implementations live in in_memory/, json_file/."""

from kaspa_trade_watcher.persistence.repositories.interfaces.snapshot_repository import (
    ISnapshotRepository,
)

__all__ = ["ISnapshotRepository"]
