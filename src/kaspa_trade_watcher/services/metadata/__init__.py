"""Auxiliary NFT metadata (rarity, levels) used to enrich notifications."""

from kaspa_trade_watcher.services.metadata.levels import LevelMap, LevelsCache
from kaspa_trade_watcher.services.metadata.rarity import Rarity, RarityCache

__all__ = ["LevelMap", "LevelsCache", "Rarity", "RarityCache"]
