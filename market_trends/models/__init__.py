"""Roster player and market trend records."""

from .player import PlayerRecord
from .trend import MarketStats, RefreshResult, TrendRecord

__all__ = ["PlayerRecord", "MarketStats", "RefreshResult", "TrendRecord"]
