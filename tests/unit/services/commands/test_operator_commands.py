# -*- coding: utf-8 -*-
"""Unit tests for OperatorCommands (manual scan, reset, media slots, lookups)."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from pathlib import Path
from types import SimpleNamespace
from typing import Any, cast
from unittest.mock import AsyncMock

from kaspa_trade_watcher.config import Settings
from kaspa_trade_watcher.exceptions import UpstreamAPIError
from kaspa_trade_watcher.models.snapshot import MEDIA_SLOTS, MediaRef, Snapshot
from kaspa_trade_watcher.persistence.repositories.in_memory import InMemorySnapshotRepository
from kaspa_trade_watcher.services.commands import OperatorCommands
from kaspa_trade_watcher.services.metadata import Rarity
from kaspa_trade_watcher.services.pollers.base import FeedPoller, PollOutcome
from kaspa_trade_watcher.services.tick_orchestrator import TickOrchestrator


class _GatedPoller(FeedPoller):
    """Records one sales key per poll; optionally blocks until released."""

    def __init__(self, name: str = "sales", *, gated: bool = False) -> None:
        self.name = name
        self.calls = 0
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        if not gated:
            self.release.set()

    async def poll(self, snapshot: Snapshot) -> PollOutcome:
        self.calls += 1
        self.started.set()
        await self.release.wait()
        snapshot.sales[f"{self.name}:{self.calls}"] = 1
        return PollOutcome(poller=self.name, emitted=1)


def _levels(*, level: int | None = 7, error: Exception | None = None) -> SimpleNamespace:
    return SimpleNamespace(
        ensure_fresh=AsyncMock(side_effect=error) if error else AsyncMock(return_value=False),
        get=lambda token_id: level,
        fetched_at=1_760_000_000_000,
        meta={"fetchedAt": 1_760_000_000_000, "count": 3},
    )


def _rarity(value: Rarity | None = None) -> SimpleNamespace:
    return SimpleNamespace(
        get=lambda token_id: value or Rarity(),
        loaded_from=Path("rarity.json") if value else None,
    )


def _commands(
    settings: Settings,
    repo: InMemorySnapshotRepository,
    *,
    pollers: list[FeedPoller] | None = None,
    levels: SimpleNamespace | None = None,
    rarity: SimpleNamespace | None = None,
) -> tuple[OperatorCommands, TickOrchestrator]:
    levels = levels or _levels()
    orchestrator = TickOrchestrator(
        repo,
        pollers if pollers is not None else [_GatedPoller()],
        cast(Any, levels),
        settings,
        clock=lambda: 1_760_000_000_000,
    )
    commands = OperatorCommands(orchestrator, cast(Any, levels), cast(Any, rarity or _rarity()), settings)
    return commands, orchestrator


def test_help_lists_every_media_setter(settings: Settings) -> None:
    commands, _ = _commands(settings, InMemorySnapshotRepository())

    text = commands.help().text

    assert text.startswith("✅ Bonkey watcher online.")
    for slot in MEDIA_SLOTS:
        assert f"/set{slot}media" in text
    assert "/clearmedia <listed|sold|level|token|dex|bigbuy>" in text


def test_ping_and_chat_info(settings: Settings) -> None:
    commands, _ = _commands(settings, InMemorySnapshotRepository())

    assert commands.ping().text == "🏓 pong"
    assert commands.chat_info(-100123, 42).text == "chat_id: -100123\nthread_id: 42"
    assert commands.chat_info(555, None).text == "chat_id: 555\nthread_id: none"


async def test_scan_runs_one_manual_tick(settings: Settings) -> None:
    repo = InMemorySnapshotRepository()
    poller = _GatedPoller()
    commands, _ = _commands(settings, repo, pollers=[poller])

    reply = await commands.scan()

    assert reply.text == "✅ Scan done.\nnew posts: 1"
    assert poller.calls == 1
    assert repo.data is not None and "sales:1" in repo.data["sales"]


async def test_scan_reports_failed_pollers(settings: Settings) -> None:
    class _Broken(FeedPoller):
        name = "listings"

        async def poll(self, snapshot: Snapshot) -> PollOutcome:
            raise UpstreamAPIError("down")

    commands, _ = _commands(settings, InMemorySnapshotRepository(), pollers=[_Broken()])

    reply = await commands.scan()

    assert "failed: listings" in reply.text


async def test_scan_during_running_tick_waits_and_says_so(settings: Settings) -> None:
    poller = _GatedPoller(gated=True)
    commands, orchestrator = _commands(settings, InMemorySnapshotRepository(), pollers=[poller])

    running = asyncio.create_task(orchestrator.tick("interval"))
    await poller.started.wait()
    assert orchestrator.busy
    scan = asyncio.create_task(commands.scan())
    await asyncio.sleep(0)
    assert not scan.done()

    poller.release.set()
    await running
    reply = await scan

    assert "(waited for the running tick)" in reply.text
    assert poller.calls == 2
    assert not orchestrator.busy


async def test_reset_empties_persisted_state(settings: Settings) -> None:
    repo = InMemorySnapshotRepository({"sales": {"a": 1}, "listings": {"1:Bonkey": True}, "awaiting": "dex"})
    commands, _ = _commands(settings, repo)

    reply = await commands.reset()

    assert reply.text == "✅ State reset."
    assert repo.data is not None
    assert repo.data["sales"] == {}
    assert repo.data["listings"] == {}
    assert repo.data["awaiting"] is None


async def test_media_upload_fills_the_awaited_slot(settings: Settings) -> None:
    repo = InMemorySnapshotRepository()
    commands, _ = _commands(settings, repo)

    prompt = await commands.await_media("bigbuy")
    assert prompt.text == "Send the media now (photo / gif / video) for: BIGBUY"
    assert repo.data is not None and repo.data["awaiting"] == "bigbuy"

    saved = await commands.save_media(MediaRef(kind="animation", file_id="CgAD"))

    assert saved is not None and saved.text == "Media saved ✅ (animation)"
    assert repo.data["media"]["bigbuy"] == {"kind": "animation", "file_id": "CgAD"}
    assert repo.data["awaiting"] is None


async def test_media_without_awaited_slot_is_ignored(settings: Settings) -> None:
    repo = InMemorySnapshotRepository()
    commands, _ = _commands(settings, repo)

    assert await commands.save_media(MediaRef(kind="photo", file_id="AgAD")) is None
    assert repo.data is not None
    assert all(ref is None for ref in repo.data["media"].values())


async def test_unrecognized_upload_keeps_waiting(settings: Settings) -> None:
    repo = InMemorySnapshotRepository({"awaiting": "sold"})
    commands, _ = _commands(settings, repo)

    reply = await commands.save_media(None)

    assert reply is not None
    assert reply.text == "I did not detect media. Send a photo, GIF/animation, or mp4 video."
    assert repo.data is not None and repo.data["awaiting"] == "sold"


async def test_clear_media(settings: Settings) -> None:
    repo = InMemorySnapshotRepository(
        {"media": {"listed": {"kind": "photo", "file_id": "AgAD"}}, "awaiting": "dex"}
    )
    commands, _ = _commands(settings, repo)

    usage = await commands.clear_media("banner")
    assert usage.text == "Usage: /clearmedia listed|sold|level|token|dex|bigbuy"
    assert repo.data is not None and repo.data["media"]["listed"] is not None

    cleared = await commands.clear_media(" LISTED ")

    assert cleared.text == "Cleared media: listed ✅"
    assert repo.data["media"]["listed"] is None
    assert repo.data["awaiting"] is None


async def test_media_edit_during_tick_is_applied_after_it(settings: Settings) -> None:
    repo = InMemorySnapshotRepository()
    poller = _GatedPoller(gated=True)
    commands, orchestrator = _commands(settings, repo, pollers=[poller])

    running = asyncio.create_task(orchestrator.tick("interval"))
    await poller.started.wait()
    edit = asyncio.create_task(commands.await_media("token"))
    await asyncio.sleep(0)
    assert not edit.done()

    poller.release.set()
    await running
    await edit

    assert repo.data is not None
    assert repo.data["awaiting"] == "token"
    assert "sales:1" in repo.data["sales"]


async def test_level_answers_from_stale_cache_when_refresh_fails(settings: Settings) -> None:
    levels = _levels(level=12, error=UpstreamAPIError("levels down"))
    commands, _ = _commands(settings, InMemorySnapshotRepository(), levels=levels)

    reply = await commands.level("257")

    assert reply.text.startswith("🎮 Level #257: 12\nmeta: 2025-10-09T")
    assert (await commands.level("abc")).text == "Usage: /level 257"


async def test_rarity_reply_with_image(settings_factory: Callable[..., Settings]) -> None:
    settings = settings_factory(marketplace={"images_cid": "bafyCID"})
    rarity = _rarity(Rarity(rank=3, score=98.5, rewards="Gold", continent="Asia"))
    commands, _ = _commands(settings, InMemorySnapshotRepository(), rarity=rarity)

    reply = await commands.rarity("12")

    assert reply.photo_url == "https://ipfs.io/ipfs/bafyCID/12.png"
    assert reply.text.splitlines() == [
        "🏆 RARITY",
        "Bonkey #12",
        "ID: 12",
        "🎮 Level: 7",
        "🌍 Continent: Asia",
        "🏆 Rank: 3",
        "🎁 Rewards: Gold",
        "✨ Score: 98.5",
    ]


async def test_rarity_hides_score_and_unknown_continent(settings_factory: Callable[..., Settings]) -> None:
    settings = settings_factory(metadata={"show_rarity_score": False})
    commands, _ = _commands(settings, InMemorySnapshotRepository(), levels=_levels(level=None))

    reply = await commands.rarity("5")

    assert reply.photo_url is None
    assert "🎮 Level: null" in reply.text
    assert "Continent" not in reply.text
    assert "Score" not in reply.text


async def test_debug_reports_state_without_credentials(settings_factory: Callable[..., Settings]) -> None:
    settings = settings_factory(telegram={"api_key": "123456:SECRET-TOKEN", "chat_id": "-100777"})
    repo = InMemorySnapshotRepository(
        {
            "sales": {"a": 1, "b": 2},
            "media": {"dex": {"kind": "video", "file_id": "BAAD"}},
            "dexes": {"KaspaCom": {"pair_address": "0xpair", "last_scanned_block": 321}},
        }
    )
    commands, _ = _commands(settings, repo)

    text = (await commands.debug()).text

    assert "SECRET-TOKEN" not in text
    assert "chat_id=-100777" in text
    assert "sales_dedupe=2" in text
    assert "media.dex=video" in text
    assert "media.listed=null" in text
    assert "levels_count=3" in text
    assert "KaspaCom.last_block=321" in text
