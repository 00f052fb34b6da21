"""Roster <-> market trend reconciliation.

The two lookups answer one question each.  This module chains them the way
the market, clauses and trends screens need:

* roster-first: "what is this player's market trend?" (``trend_for_player``)
* trend-first:  "which roster player is this trend about?" (``player_for_trend``)

Each chain tries the most specific query first and relaxes one constraint at a
time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional

import pandas as pd

from ..models.player import player_names, player_position_id, player_team_name
from ..models.trend import TrendRecord
from .normalize import (
    guess_position_id,
    map_special_name_for_trends,
    normalize_name,
    normalize_position,
    resolve_position_id,
)
from .player_name_matcher import extract_players, find_player_by_name_and_position
from .trend_store import StoreState, TrendStore

logger = logging.getLogger(__name__)


@dataclass
class Annotation:
    """A roster player paired with its trend; either side may be missing."""

    player: Optional[Any]
    trend: Optional[TrendRecord]

    @property
    def matched(self) -> bool:
        return self.player is not None and self.trend is not None


def _scan_by_position(store: TrendStore, search_name: str, position_id) -> Optional[TrendRecord]:
    target = normalize_position(position_id)
    needle = normalize_name(search_name)
    if not target or not needle or store.state is not StoreState.READY:
        return None
    for record in store.market_values_cache.values():
        if record.posicion != target:
            continue
        cached = normalize_name(record.original_name or record.nombre)
        if cached and (needle in cached or cached in needle):
            return record
    return None


def trend_for_player(store: TrendStore, player) -> Optional[TrendRecord]:
    """Market trend of a roster player, relaxing the lookup step by step.

    Order: display name with team, full name with team, display name without
    team, full name without team, then a containment scan of same-position
    trends.
    """
    nickname, name = player_names(player)
    display = nickname or name
    if not display:
        return None

    position_id = player_position_id(player)
    team = player_team_name(player) or None
    primary = map_special_name_for_trends(display)
    alternate = map_special_name_for_trends(name) if nickname and name and nickname != name else None

    attempts = [(primary, team)]
    if alternate:
        attempts.append((alternate, team))
    attempts.append((primary, None))
    if alternate:
        attempts.append((alternate, None))

    for search_name, search_team in attempts:
        trend = store.get_player_market_trend(search_name, position_id, search_team)
        if trend is not None:
            return trend

    return _scan_by_position(store, display, position_id)


def player_for_trend(trend: TrendRecord, players) -> Optional[Any]:
    """Roster player a trend record refers to.

    Order: original name with position and team, normalized name with position
    and team, both again without position, then original name with position
    but any team.
    """
    roster = extract_players(players)
    if trend is None or not roster:
        return None

    original = map_special_name_for_trends(trend.original_name) if trend.original_name else None
    normalized = map_special_name_for_trends(trend.nombre)
    # scraped labels outside the four canonical ones still narrow the funnel
    position_id = None
    if trend.posicion:
        position_id = resolve_position_id(trend.posicion) or guess_position_id(trend.posicion)

    attempts = [
        (original, position_id, trend.equipo),
        (normalized, position_id, trend.equipo),
        (original, None, trend.equipo),
        (normalized, None, trend.equipo),
        (original, position_id, None),
    ]
    for search_name, position, team in attempts:
        if not search_name:
            continue
        match = find_player_by_name_and_position(search_name, position, roster, team)
        if match is not None:
            return match

    logger.debug("No roster player for trend %s", trend.key)
    return None


def annotate_roster(store: TrendStore, players) -> List[Annotation]:
    """Pair every roster player with its trend (or ``None``)."""
    return [Annotation(player=p, trend=trend_for_player(store, p)) for p in extract_players(players)]


def annotate_trends(
    store: TrendStore,
    players,
    filter: str = "all",
    sort_by: str = "value_change",
    limit: int = 600,
    position=None,
) -> List[Annotation]:
    """Pair trending records with roster players (trend-first displays)."""
    roster = extract_players(players)
    trends = store.get_trending_players(filter=filter, sort_by=sort_by, limit=limit, position=position)
    annotations = [Annotation(player=player_for_trend(t, roster), trend=t) for t in trends]
    unmatched = sum(1 for a in annotations if a.player is None)
    if unmatched:
        logger.info("%d of %d trends have no roster match", unmatched, len(annotations))
    return annotations


def annotations_to_frame(annotations: List[Annotation]) -> pd.DataFrame:
    """Flatten annotations into one row per pair."""
    rows = []
    for a in annotations:
        nickname, name = player_names(a.player) if a.player is not None else ("", "")
        if a.player is None:
            player_id = None
        elif isinstance(a.player, Mapping):
            player_id = a.player.get("id")
        else:
            player_id = getattr(a.player, "id", None)
        t = a.trend
        rows.append(
            {
                "player_id": player_id,
                "player_name": nickname or name or None,
                "player_team": player_team_name(a.player) if a.player is not None else None,
                "position_id": player_position_id(a.player) if a.player is not None else None,
                "trend_name": t.original_name if t else None,
                "trend_team": t.original_team_name if t else None,
                "valor": t.valor if t else None,
                "diferencia1": t.diferencia1 if t else None,
                "porcentaje": t.porcentaje if t else None,
                "tendencia": t.tendencia if t else None,
                "cambio_texto": t.cambio_texto if t else None,
                "matched": a.matched,
            }
        )
    columns = [
        "player_id",
        "player_name",
        "player_team",
        "position_id",
        "trend_name",
        "trend_team",
        "valor",
        "diferencia1",
        "porcentaje",
        "tendencia",
        "cambio_texto",
        "matched",
    ]
    return pd.DataFrame(rows, columns=columns)
