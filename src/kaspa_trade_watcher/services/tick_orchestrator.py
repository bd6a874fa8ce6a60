# -*- coding: utf-8 -*-
"""Tick orchestrator: one serialized load -> purge -> poll -> save cycle over every feed."""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TypeVar

import structlog
from structlog.contextvars import bound_contextvars

from kaspa_trade_watcher.services.pollers.base import FeedPoller, PollOutcome
from kaspa_trade_watcher.utils.dedupe import now_ms, purge

if TYPE_CHECKING:
    from kaspa_trade_watcher.config import Settings
    from kaspa_trade_watcher.models.snapshot import Snapshot
    from kaspa_trade_watcher.persistence.repositories.interfaces import ISnapshotRepository
    from kaspa_trade_watcher.services.metadata import LevelsCache

T = TypeVar("T")


@dataclass(slots=True)
class TickReport:
    """Per-tick summary: purge counts, levels refresh and one outcome per poller."""

    reason: str
    started_at: int
    finished_at: int | None = None
    purged: dict[str, int] = field(default_factory=dict)
    levels_refreshed: bool = False
    levels_error: str | None = None
    outcomes: list[PollOutcome] = field(default_factory=list)
    saved: bool = False

    @property
    def emitted(self) -> int:
        return sum(o.emitted for o in self.outcomes)

    @property
    def failed(self) -> list[str]:
        return [o.poller for o in self.outcomes if not o.ok]

    def outcome(self, poller: str) -> PollOutcome | None:
        return next((o for o in self.outcomes if o.poller == poller), None)


class TickOrchestrator:
    """Runs every poller once per tick against a freshly loaded snapshot.

    Ticks never overlap. A failing poller is logged and recorded in the report;
    the remaining pollers still run and the snapshot is always persisted.
    """

    def __init__(
        self,
        repository: ISnapshotRepository,
        pollers: Sequence[FeedPoller],
        levels: LevelsCache,
        settings: Settings,
        *,
        clock: Callable[[], int] = now_ms,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            repository: Snapshot storage.
            pollers: Pollers in run order (listings, sales, token trades, DEX-A, DEX-B, level updates).
            levels: Levels cache, refreshed before the pollers run.
            settings: Application settings (uses settings.dedupe).
            clock: Epoch-ms clock.
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._repository = repository
        self._pollers = list(pollers)
        self._levels = levels
        self._settings = settings
        self._clock = clock
        self._logger = get_logger(logger_name or self.__class__.__name__)
        self._lock = asyncio.Lock()

    @property
    def pollers(self) -> list[FeedPoller]:
        return list(self._pollers)

    @property
    def busy(self) -> bool:
        """True while a tick, reset or snapshot edit holds the lock."""
        return self._lock.locked()

    async def tick(self, reason: str = "interval") -> TickReport:
        """Run one full tick. Waits for a tick already in progress to finish first."""
        async with self._lock:
            with bound_contextvars(tick_id=uuid.uuid4().hex[:12], tick_reason=reason):
                report = TickReport(reason=reason, started_at=self._clock())
                snapshot = await self._repository.load()
                try:
                    self._purge(snapshot, report)
                    await self._ensure_levels(report)
                    for poller in self._pollers:
                        report.outcomes.append(await self._run_poller(poller, snapshot))
                finally:
                    await self._repository.save(snapshot)
                    report.saved = True

                report.finished_at = self._clock()
                self._logger.info(
                    "tick_completed",
                    tick_emitted=report.emitted,
                    tick_failed_pollers=report.failed,
                    tick_duration_ms=report.finished_at - report.started_at,
                )
                return report

    async def reset(self) -> Snapshot:
        """Replace the persisted snapshot with empty defaults (cursors and dedupe history included)."""
        async with self._lock:
            snapshot = await self._repository.reset()
            self._logger.warning("snapshot_reset")
            return snapshot

    async def read_snapshot(self) -> Snapshot:
        """Load the persisted snapshot between ticks (read-only view)."""
        async with self._lock:
            return await self._repository.load()

    async def update_snapshot(self, mutate: Callable[[Snapshot], T]) -> T:
        """Apply `mutate` to the persisted snapshot and save it, never during a tick."""
        async with self._lock:
            snapshot = await self._repository.load()
            result = mutate(snapshot)
            await self._repository.save(snapshot)
            return result

    def _purge(self, snapshot: Snapshot, report: TickReport) -> None:
        dedupe = self._settings.dedupe
        now = self._clock()
        for name, dedupe_map in snapshot.dedupe_maps().items():
            report.purged[name] = purge(dedupe_map, now, dedupe.ttl_ms, dedupe.max_keys)
        if any(report.purged.values()):
            self._logger.debug(
                "tick_dedupe_purged",
                **{f"tick_purged_{name}": count for name, count in report.purged.items()},
            )

    async def _ensure_levels(self, report: TickReport) -> None:
        try:
            report.levels_refreshed = await self._levels.ensure_fresh()
        except Exception as e:
            report.levels_error = f"{type(e).__name__}: {e}"
            self._logger.warning(
                "tick_levels_refresh_failed",
                error_type=type(e).__name__,
                error_message=str(e),
            )

    async def _run_poller(self, poller: FeedPoller, snapshot: Snapshot) -> PollOutcome:
        try:
            return await poller.poll(snapshot)
        except Exception as e:
            self._logger.exception(
                "tick_poller_failed",
                tick_poller=poller.name,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return PollOutcome(
                poller=poller.name,
                error_type=type(e).__name__,
                error_message=str(e),
            )
