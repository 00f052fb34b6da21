"""
Market trend cache: owns the scraped dataset and answers trend lookups.

Lifecycle::

    UNINITIALIZED --initialize()--> READY (cache | real | cached_fallback)
                                  +-> FAILED

``initialize()`` serves a persisted snapshot younger than the cache duration
without touching the network.  Otherwise it fetches; a fetch that parses zero
players is a failure (the cache is never replaced with an empty market), and a
transport failure degrades to the existing cache when there is one.
``refresh()`` forces a fetch from any state with the same rules.

The application owns one store instance and passes it to whoever needs it; all
collaborators (HTML fetcher, snapshot storage, clock) are injected.
"""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Tuple

import numpy as np
import requests

from ..config import TrendsConfig
from ..models.trend import (
    FAILURE_NETWORK,
    FAILURE_PARSE,
    SOURCE_ALREADY_INITIALIZED,
    SOURCE_CACHE,
    SOURCE_CACHED_FALLBACK,
    SOURCE_FAILED,
    SOURCE_REAL,
    MarketStats,
    RefreshResult,
    TrendRecord,
)
from .fuzzy import tiered_match
from .normalize import normalize_name, normalize_position
from .scrapers.futbolfantasy import MarketPageFetcher, MarketTrendsParser
from .storage import InMemoryStorage, JsonDirectoryStorage

logger = logging.getLogger(__name__)

STORAGE_KEY = "laliga_market_trends"
LAST_SCRAPE_KEY = "laliga_market_trends_timestamp"

TREND_FILTERS = ("all", "rising", "falling", "stable")
TREND_SORTS = ("value_change", "percentage_change", "current_value")

# transport errors from requests or from a fetcher built on another client
FETCH_ERRORS = (requests.RequestException, OSError)


class StoreState(Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    FAILED = "failed"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _entry_fields(entry: Tuple[str, TrendRecord]) -> Tuple[str, Optional[str], Optional[str], str]:
    key, record = entry
    parts = key.split("|")
    name = parts[0] if parts else ""
    position = parts[1] if len(parts) > 1 else None
    team = parts[2] if len(parts) > 2 else None
    return name, position, team, record.original_name


class TrendStore:
    """
    In-memory market trend map with a persisted snapshot.

    The map is only ever replaced wholesale (never mutated in place), so a
    reader holding a reference to it never sees a partial refresh.
    """

    def __init__(
        self,
        fetcher: Optional[Callable[[], str]] = None,
        storage=None,
        config: Optional[TrendsConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
        parser: Optional[MarketTrendsParser] = None,
    ):
        self.config = config or TrendsConfig()
        self.fetcher = fetcher or MarketPageFetcher(self.config)
        self.storage = storage if storage is not None else JsonDirectoryStorage(self.config.cache_dir)
        self.clock = clock or _utcnow
        self.parser = parser or MarketTrendsParser(clock=self.clock)
        self.cache_duration = timedelta(hours=self.config.cache_duration_hours)

        self.market_values_cache: Dict[str, TrendRecord] = {}
        self.last_market_scrape: Optional[datetime] = None
        self.state = StoreState.UNINITIALIZED
        self.source: Optional[str] = None

        self._swap_lock = threading.Lock()
        self._refresh_lock = threading.Lock()
        self._refresh_generation = 0
        self._last_refresh: Optional[RefreshResult] = None

    @classmethod
    def from_records(
        cls,
        records: Iterable[TrendRecord],
        scraped_at: Optional[datetime] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> "TrendStore":
        """READY store over ``records`` with in-memory storage and no network.

        Meant for tests and offline tooling.
        """

        def _no_network() -> str:
            raise requests.ConnectionError("network access disabled for this store")

        store = cls(fetcher=_no_network, storage=InMemoryStorage(), clock=clock)
        cache = {record.key: record for record in records}
        store._apply(cache, scraped_at or store.clock())
        store.state = StoreState.READY
        store.source = SOURCE_CACHE
        return store

    # ------------------------------------------------------------------
    # Snapshot persistence
    # ------------------------------------------------------------------

    def load(self) -> bool:
        """Load the persisted snapshot into memory.  Returns ``True`` on success.

        The entries and the timestamp are stored under separate keys; if either
        is missing or unreadable there is no valid snapshot.
        """
        raw_entries = self.storage.get(STORAGE_KEY)
        raw_timestamp = self.storage.get(LAST_SCRAPE_KEY)
        if not raw_entries or not raw_timestamp:
            return False

        try:
            pairs = json.loads(raw_entries)
            cache = {str(key): TrendRecord.from_dict(data) for key, data in pairs}
            timestamp = datetime.fromisoformat(raw_timestamp.strip())
        except (ValueError, TypeError, KeyError) as exc:
            logger.warning("Ignoring unreadable market trends snapshot: %s", exc)
            return False

        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)

        with self._swap_lock:
            self.market_values_cache = cache
            self.last_market_scrape = timestamp
        logger.info("Loaded %d market trends from snapshot (%s)", len(cache), timestamp.isoformat())
        return True

    def save(self) -> None:
        """Persist the current map and timestamp together."""
        if self.last_market_scrape is None:
            return
        pairs = [[key, record.to_dict()] for key, record in self.market_values_cache.items()]
        try:
            self.storage.set(STORAGE_KEY, json.dumps(pairs, ensure_ascii=False))
            self.storage.set(LAST_SCRAPE_KEY, self.last_market_scrape.isoformat())
        except OSError as exc:
            logger.warning("Could not persist market trends snapshot: %s", exc)

    def clear_cache(self) -> None:
        """Drop the in-memory map and the persisted snapshot."""
        with self._swap_lock:
            self.market_values_cache = {}
            self.last_market_scrape = None
        self.storage.remove(STORAGE_KEY)
        self.storage.remove(LAST_SCRAPE_KEY)
        self.state = StoreState.UNINITIALIZED
        self.source = None

    def is_cache_stale(self) -> bool:
        if self.last_market_scrape is None:
            return True
        return self.clock() - self.last_market_scrape > self.cache_duration

    def _apply(self, cache: Dict[str, TrendRecord], scraped_at: datetime) -> None:
        with self._swap_lock:
            self.market_values_cache = cache
            self.last_market_scrape = scraped_at
            self.save()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def fetch_market_values(self) -> RefreshResult:
        """Download, parse and install a fresh market snapshot."""
        try:
            html = self.fetcher()
        except FETCH_ERRORS as exc:
            logger.warning("Market trends fetch failed: %s", exc)
            return RefreshResult(
                success=False,
                players_count=0,
                source=SOURCE_FAILED,
                error=str(exc),
                failure=FAILURE_NETWORK,
            )

        new_cache = self.parser.parse(html)
        if not new_cache:
            logger.warning("No players found in market page response")
            return RefreshResult(
                success=False,
                players_count=0,
                source=SOURCE_FAILED,
                error="No players found in HTML response",
                failure=FAILURE_PARSE,
            )

        scraped_at = self.clock()
        self._apply(new_cache, scraped_at)
        logger.info("Market trends cache updated with %d players", len(new_cache))
        return RefreshResult(
            success=True,
            players_count=len(new_cache),
            source=SOURCE_REAL,
            timestamp=scraped_at,
        )

    def _settle(self, result: RefreshResult) -> RefreshResult:
        if result.success:
            self.state = StoreState.READY
            self.source = result.source
            return result

        if result.failure != FAILURE_PARSE and self.market_values_cache:
            logger.warning(
                "Serving %d cached market trends after failed refresh (%s)",
                len(self.market_values_cache),
                result.error,
            )
            self.state = StoreState.READY
            self.source = SOURCE_CACHED_FALLBACK
            return RefreshResult(
                success=True,
                players_count=len(self.market_values_cache),
                source=SOURCE_CACHED_FALLBACK,
                timestamp=self.last_market_scrape,
                error=result.error,
            )

        self.state = StoreState.FAILED
        self.source = SOURCE_FAILED
        return result

    def _fetch_and_settle(self) -> RefreshResult:
        try:
            result = self.fetch_market_values()
        except FETCH_ERRORS as exc:
            result = RefreshResult(
                success=False,
                players_count=0,
                source=SOURCE_FAILED,
                error=str(exc),
                failure=FAILURE_NETWORK,
            )
        return self._settle(result)

    def initialize(self) -> RefreshResult:
        """Serve a fresh snapshot, or fetch; see module docstring for the rules."""
        if self.state is StoreState.READY:
            return RefreshResult(
                success=True,
                players_count=len(self.market_values_cache),
                source=SOURCE_ALREADY_INITIALIZED,
                timestamp=self.last_market_scrape,
            )

        self.load()
        if self.market_values_cache and not self.is_cache_stale():
            self.state = StoreState.READY
            self.source = SOURCE_CACHE
            return RefreshResult(
                success=True,
                players_count=len(self.market_values_cache),
                source=SOURCE_CACHE,
                timestamp=self.last_market_scrape,
            )

        return self.refresh()

    def refresh(self) -> RefreshResult:
        """Force a fetch regardless of staleness.

        Callers that arrive while another refresh is in flight wait for it and
        share its result instead of issuing a second request.
        """
        generation = self._refresh_generation
        with self._refresh_lock:
            if self._refresh_generation != generation and self._last_refresh is not None:
                return self._last_refresh
            result = self._fetch_and_settle()
            self._last_refresh = result
            self._refresh_generation += 1
            return result

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_player_market_trend(
        self,
        player_name: str,
        player_position=None,
        player_team: Optional[str] = None,
    ) -> Optional[TrendRecord]:
        """Trend record for a player, or ``None``.

        Tiers, best first: exact name with same team, exact name, partial name
        (team must agree when both sides know it), main surname.
        """
        if not player_name or self.state is not StoreState.READY:
            return None

        if self.is_cache_stale():
            logger.debug("Market trends cache is stale (last scrape %s)", self.last_market_scrape)

        position = normalize_position(player_position) if player_position else None
        entries = list(self.market_values_cache.items())
        match = tiered_match(player_name, entries, _entry_fields, position=position, team=player_team)
        return match[1] if match is not None else None

    def get_trending_players(
        self,
        filter: str = "all",
        sort_by: str = "value_change",
        limit: int = 50,
        position=None,
    ) -> List[TrendRecord]:
        """Filtered, sorted slice of the cached trends, at most ``limit`` long."""
        players = list(self.market_values_cache.values())

        if position and position != "all":
            target = normalize_position(position)
            players = [p for p in players if p.posicion == target]

        if filter == "rising":
            players = [p for p in players if p.diferencia1 > 0]
        elif filter == "falling":
            players = [p for p in players if p.diferencia1 < 0]
        elif filter == "stable":
            players = [p for p in players if p.diferencia1 == 0]

        if sort_by == "percentage_change":
            players.sort(key=lambda p: abs(p.porcentaje), reverse=True)
        elif sort_by == "current_value":
            players.sort(key=lambda p: p.valor, reverse=True)
        else:
            players.sort(key=lambda p: abs(p.diferencia1), reverse=True)

        return players[: max(int(limit), 0)]

    def get_market_stats(self) -> MarketStats:
        players = list(self.market_values_cache.values())
        if not players:
            return MarketStats(last_update=self.last_market_scrape)

        changes = np.array([p.diferencia1 for p in players], dtype=float)
        total = len(players)
        rising = int((changes > 0).sum())
        falling = int((changes < 0).sum())

        return MarketStats(
            total_players=total,
            rising_players=rising,
            falling_players=falling,
            stable_players=int((changes == 0).sum()),
            average_change=float(changes.mean()),
            last_update=self.last_market_scrape,
            rising_percentage=round(rising / total * 100, 1),
            falling_percentage=round(falling / total * 100, 1),
        )

    def inspect_name(self, search_name: str) -> Dict:
        """Cache entries related to ``search_name`` plus the lookup result, for debugging."""
        normalized_search = normalize_name(search_name)
        raw_search = (search_name or "").lower()
        exact_matches: List[Tuple[str, TrendRecord]] = []
        partial_matches: List[Tuple[str, TrendRecord]] = []

        if normalized_search:
            for key, record in self.market_values_cache.items():
                if (
                    normalized_search in key.lower()
                    or normalized_search in record.nombre
                    or (raw_search and raw_search in record.original_name.lower())
                ):
                    if record.nombre == normalized_search:
                        exact_matches.append((key, record))
                    else:
                        partial_matches.append((key, record))

        return {
            "exact_matches": exact_matches,
            "partial_matches": partial_matches,
            "search_result": self.get_player_market_trend(search_name),
        }
