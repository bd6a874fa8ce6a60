# -*- coding: utf-8 -*-
"""Unit tests for LevelUpdatePoller."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from types import SimpleNamespace
from typing import Any, cast
from unittest.mock import AsyncMock, MagicMock

from kaspa_trade_watcher.config import Settings
from kaspa_trade_watcher.models.snapshot import Snapshot
from kaspa_trade_watcher.persistence.atomic import write_json_atomic
from kaspa_trade_watcher.services.metadata.levels import LevelsCache
from kaspa_trade_watcher.services.metadata.rarity import Rarity
from kaspa_trade_watcher.services.pollers import LevelUpdatePoller


def _levels(tmp_path: Path, current: dict[str, int], previous: dict[str, int] | None) -> LevelsCache:
    client = SimpleNamespace(get_levels=AsyncMock(return_value=current), url="https://levels.example")
    cache = LevelsCache(cast(Any, client), tmp_path / "levels", 250, clock=lambda: 1)
    write_json_atomic(cache.current_path, current)
    if previous is not None:
        write_json_atomic(cache.previous_path, previous)
    return cache


def _poller(settings: Settings, levels: LevelsCache, notifier: SimpleNamespace) -> LevelUpdatePoller:
    rarity = SimpleNamespace(get=MagicMock(return_value=Rarity()))
    return LevelUpdatePoller(levels, cast(Any, rarity), cast(Any, notifier), settings)


async def test_first_run_only_establishes_baseline(
    tmp_path: Path, settings: Settings, notifier: SimpleNamespace, snapshot: Snapshot
) -> None:
    levels = _levels(tmp_path, {"1": 2, "2": 3}, previous=None)

    outcome = await _poller(settings, levels, notifier).poll(snapshot)

    assert outcome.emitted == 0
    notifier.level_update.assert_not_called()
    assert levels.load_previous() == {"1": 2, "2": 3}


async def test_announces_changed_levels_then_rotates(
    tmp_path: Path, settings: Settings, notifier: SimpleNamespace, snapshot: Snapshot
) -> None:
    levels = _levels(tmp_path, {"1": 3, "2": 3, "9": 1}, previous={"1": 2, "2": 3})

    outcome = await _poller(settings, levels, notifier).poll(snapshot)

    assert outcome.emitted == 1
    notifier.level_update.assert_called_once()
    assert notifier.level_update.call_args.args == ("1",)
    assert notifier.level_update.call_args.kwargs["old_level"] == 2
    assert notifier.level_update.call_args.kwargs["new_level"] == 3
    assert levels.load_previous() == {"1": 3, "2": 3, "9": 1}


async def test_limit_truncates_announcements(
    tmp_path: Path,
    settings_factory: Callable[..., Settings],
    notifier: SimpleNamespace,
    snapshot: Snapshot,
) -> None:
    settings = settings_factory(metadata={"max_level_updates_per_refresh": 2})
    previous = {str(i): 1 for i in range(5)}
    current = {str(i): 2 for i in range(5)}
    levels = _levels(tmp_path, current, previous)

    outcome = await _poller(settings, levels, notifier).poll(snapshot)

    assert outcome.emitted == 2
    assert outcome.skipped == 3
    assert notifier.level_update.call_count == 2
    assert levels.load_previous() == current


async def test_empty_current_map_does_not_rotate(
    tmp_path: Path, settings: Settings, notifier: SimpleNamespace, snapshot: Snapshot
) -> None:
    levels = _levels(tmp_path, {}, previous={"1": 2})

    outcome = await _poller(settings, levels, notifier).poll(snapshot)

    assert outcome.disabled
    assert levels.load_previous() == {"1": 2}
