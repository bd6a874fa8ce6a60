"""Snapshot: the complete persisted state of the ingestion engine.

Loaded once per tick, mutated by the pollers, written back atomically at tick end.
Every field is defaulted independently in from_dict(), so snapshots written by
older versions (missing keys) load without error.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, cast

from kaspa_trade_watcher.utils.dedupe import DedupeMap, coerce_timestamps

MEDIA_SLOTS: tuple[str, ...] = ("listed", "sold", "level", "token", "dex", "bigbuy")
MEDIA_KINDS: frozenset[str] = frozenset({"photo", "animation", "video"})

# ERC-20 decimals is a uint8.
MIN_DECIMALS = 0
MAX_DECIMALS = 255


@dataclass(frozen=True, slots=True)
class MediaRef:
    """Chat media attached to one alert type (Telegram file_id + kind)."""

    kind: str
    """photo, animation or video."""
    file_id: str

    @classmethod
    def from_dict(cls, data: Any) -> MediaRef | None:
        if not isinstance(data, dict):
            return None
        d = cast(dict[str, Any], data)
        kind = d.get("kind")
        file_id = d.get("file_id")
        if kind not in MEDIA_KINDS or not isinstance(file_id, str) or not file_id:
            return None
        return cls(kind=str(kind), file_id=file_id)

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "file_id": self.file_id}


@dataclass(slots=True)
class PairState:
    """Per-DEX pair metadata and scan cursor.

    Created empty; populated once by the pair resolver. last_scanned_block is
    advanced only by the block-range scanner and never decreases.
    """

    pair_address: str | None = None
    token_is_first_slot: bool | None = None
    """True when the tracked token is token0 of the pair."""
    last_scanned_block: int = 0
    token_decimals: int = 18
    quote_decimals: int = 18
    token_symbol: str = ""
    """Empty until resolved or filled from defaults (the configured ticker)."""
    quote_symbol: str = "WKAS"
    token0: str | None = None
    token1: str | None = None
    swap_variant: str | None = None
    """Swap event variant chosen at resolution time (see SwapEventVariant)."""

    def advance_to(self, block: int) -> None:
        """Move the cursor forward; never backwards."""
        if block > self.last_scanned_block:
            self.last_scanned_block = block

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Any, *, defaults: PairState | None = None) -> PairState:
        """Build from persisted data, falling back field by field to `defaults`."""
        base = defaults or cls()
        d = cast(dict[str, Any], data) if isinstance(data, dict) else {}

        def _int(key: str, fallback: int) -> int:
            value = d.get(key)
            if isinstance(value, bool):
                return fallback
            try:
                return int(value) if value is not None else fallback
            except (TypeError, ValueError, OverflowError):
                return fallback

        def _decimals(key: str, fallback: int) -> int:
            value = _int(key, fallback)
            return value if MIN_DECIMALS <= value <= MAX_DECIMALS else fallback

        def _opt_str(key: str, fallback: str | None) -> str | None:
            value = d.get(key, fallback)
            return value if isinstance(value, str) or value is None else fallback

        slot = d.get("token_is_first_slot", base.token_is_first_slot)
        return cls(
            pair_address=_opt_str("pair_address", base.pair_address),
            token_is_first_slot=slot if isinstance(slot, bool) else None,
            last_scanned_block=max(0, _int("last_scanned_block", base.last_scanned_block)),
            token_decimals=_decimals("token_decimals", base.token_decimals),
            quote_decimals=_decimals("quote_decimals", base.quote_decimals),
            token_symbol=_opt_str("token_symbol", base.token_symbol) or base.token_symbol,
            quote_symbol=_opt_str("quote_symbol", base.quote_symbol) or base.quote_symbol,
            token0=_opt_str("token0", base.token0),
            token1=_opt_str("token1", base.token1),
            swap_variant=_opt_str("swap_variant", base.swap_variant),
        )


@dataclass(slots=True)
class Snapshot:
    """Aggregate persisted unit: active listings, dedupe maps, pair states and media side-state."""

    listings: dict[str, bool] = field(default_factory=dict)
    """Active listing set (tokenId -> True)."""
    sales: DedupeMap = field(default_factory=dict)
    token_trades: DedupeMap = field(default_factory=dict)
    dex_trades: DedupeMap = field(default_factory=dict)
    dexes: dict[str, PairState] = field(default_factory=dict)
    """PairState per DEX name."""
    media: dict[str, MediaRef | None] = field(
        default_factory=lambda: {slot: None for slot in MEDIA_SLOTS}
    )
    awaiting: str | None = None
    """Media slot awaiting an upload from the chat, if any."""

    def pair_state(self, dex_name: str, *, defaults: PairState | None = None) -> PairState:
        """Return the PairState for a DEX, creating it from defaults when absent."""
        state = self.dexes.get(dex_name)
        if state is None:
            state = PairState.from_dict({}, defaults=defaults)
            self.dexes[dex_name] = state
        elif defaults is not None:
            state.token_symbol = state.token_symbol or defaults.token_symbol
            state.quote_symbol = state.quote_symbol or defaults.quote_symbol
        return state

    def media_for(self, slot: str) -> MediaRef | None:
        return self.media.get(slot)

    def dedupe_maps(self) -> dict[str, DedupeMap]:
        """Named dedupe maps purged once per tick."""
        return {
            "sales": self.sales,
            "token_trades": self.token_trades,
            "dex_trades": self.dex_trades,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "listings": dict(self.listings),
            "sales": dict(self.sales),
            "token_trades": dict(self.token_trades),
            "dex_trades": dict(self.dex_trades),
            "dexes": {name: state.to_dict() for name, state in self.dexes.items()},
            "media": {
                slot: (ref.to_dict() if ref is not None else None)
                for slot, ref in self.media.items()
            },
            "awaiting": self.awaiting,
        }

    @classmethod
    def from_dict(cls, data: Any, *, now: int) -> Snapshot:
        """Build from persisted data; any missing or malformed field gets its default."""
        d = cast(dict[str, Any], data) if isinstance(data, dict) else {}

        raw_listings = d.get("listings")
        listings: dict[str, bool] = {}
        if isinstance(raw_listings, dict):
            listings = {
                str(k): True for k, v in cast(dict[Any, Any], raw_listings).items() if v
            }

        dexes: dict[str, PairState] = {}
        raw_dexes = d.get("dexes")
        if isinstance(raw_dexes, dict):
            for name, raw_state in cast(dict[Any, Any], raw_dexes).items():
                dexes[str(name)] = PairState.from_dict(raw_state)

        media: dict[str, MediaRef | None] = {slot: None for slot in MEDIA_SLOTS}
        raw_media = d.get("media")
        if isinstance(raw_media, dict):
            for slot, raw_ref in cast(dict[Any, Any], raw_media).items():
                if slot in media:
                    media[slot] = MediaRef.from_dict(raw_ref)

        awaiting = d.get("awaiting")
        return cls(
            listings=listings,
            sales=coerce_timestamps(d.get("sales"), now),
            token_trades=coerce_timestamps(d.get("token_trades"), now),
            dex_trades=coerce_timestamps(d.get("dex_trades"), now),
            dexes=dexes,
            media=media,
            awaiting=awaiting if awaiting in MEDIA_SLOTS else None,
        )
