# -*- coding: utf-8 -*-
"""Repositories: interfaces (abstractions) and implementations (in_memory, json_file)."""

from kaspa_trade_watcher.persistence.repositories.interfaces import ISnapshotRepository
from kaspa_trade_watcher.persistence.repositories.in_memory import InMemorySnapshotRepository
from kaspa_trade_watcher.persistence.repositories.json_file import JsonFileSnapshotRepository

__all__ = [
    "ISnapshotRepository",
    "InMemorySnapshotRepository",
    "JsonFileSnapshotRepository",
]
