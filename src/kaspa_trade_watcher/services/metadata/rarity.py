# -*- coding: utf-8 -*-
"""Rarity lookups from a static JSON export ({tokenId: {rank, score, attributes}})."""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, cast

import structlog


@dataclass(frozen=True, slots=True)
class Rarity:
    """Rarity data of one NFT; every field is None when unknown."""

    rank: Any = None
    score: Any = None
    rewards: Any = None
    continent: Any = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def trait_value(attributes: Any, trait_type: str) -> Any:
    """Return the value of the first attribute whose trait_type matches (case-insensitive)."""
    if not isinstance(attributes, list):
        return None
    wanted = trait_type.lower()
    for attr in cast(list[Any], attributes):
        if not isinstance(attr, dict):
            continue
        a = cast(dict[str, Any], attr)
        if str(a.get("trait_type") or "").lower() == wanted:
            return a.get("value")
    return None


class RarityCache:
    """Lazily loaded rarity map. A missing or corrupt file yields an empty map."""

    def __init__(
        self,
        path: str | Path,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        self._path = Path(path)
        self._entries: dict[str, Any] | None = None
        self._loaded_from: Path | None = None
        self._logger = get_logger(logger_name or self.__class__.__name__)

    @property
    def loaded_from(self) -> Path | None:
        """Path the map was read from, or None if the last load failed."""
        return self._loaded_from

    def load_once(self) -> None:
        if self._entries is None:
            self.refresh()

    def refresh(self) -> None:
        """(Re)read the JSON file."""
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            self._entries = {}
            self._loaded_from = None
            self._logger.error(
                "rarity_load_failed",
                rarity_path=str(self._path),
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return
        self._entries = cast(dict[str, Any], raw) if isinstance(raw, dict) else {}
        self._loaded_from = self._path
        self._logger.info(
            "rarity_loaded",
            rarity_path=str(self._path),
            rarity_entries=len(self._entries),
        )

    def get(self, token_id: str | int) -> Rarity:
        self.load_once()
        entry = (self._entries or {}).get(str(token_id))
        if not isinstance(entry, dict):
            return Rarity()
        e = cast(dict[str, Any], entry)
        attributes = e.get("attributes")
        return Rarity(
            rank=e.get("rank"),
            score=e.get("score"),
            rewards=trait_value(attributes, "rewards"),
            continent=trait_value(attributes, "continent"),
        )

    def __len__(self) -> int:
        return len(self._entries or {})
