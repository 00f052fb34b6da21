"""
Roster player lookup by (possibly misspelled) name, position and team.

The market page and the league API disagree on spelling, so a plain equality
lookup misses many players.  ``find_player_by_name_and_position`` narrows the
roster in four stages, from most to least precise:

  1. same team + same position   (min quality 0.7, ~6-8 players)
  2. same team                    (min quality 0.6, ~25-30 players)
  3. same position                (min quality 0.5)
  4. whole roster                 (min quality 0.5)

The first stage that produces a match good enough for its threshold wins.
Narrow pools get strict thresholds on purpose: the funnel only gives up
precision once it has run out of context.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence, Tuple

from ..models.player import player_names, player_position_id, player_team_name
from .fuzzy import ranked_fuzzy_match
from .normalize import normalize_name, normalize_team_name, resolve_position_id

logger = logging.getLogger(__name__)

TEAM_POSITION_MIN_QUALITY = 0.7
TEAM_MIN_QUALITY = 0.6
POSITION_MIN_QUALITY = 0.5
ROSTER_MIN_QUALITY = 0.5


def extract_players(payload) -> List[Any]:
    """Roster list from a bare list or a ``{"data": [...]}``/``{"elements": [...]}`` wrapper."""
    if payload is None:
        return []
    if isinstance(payload, (list, tuple)):
        return list(payload)
    if isinstance(payload, dict):
        for key in ("data", "elements"):
            value = payload.get(key)
            if isinstance(value, list):
                return value
    return []


def search_in_player_set(
    normalized_search_name: str,
    player_set: Sequence[Any],
    min_quality: float = 0.5,
) -> Optional[Any]:
    """Best player of ``player_set`` for the name, or ``None`` below ``min_quality``."""
    if not player_set:
        return None
    return ranked_fuzzy_match(normalized_search_name, player_set, player_names, min_quality)


def _stages(
    players: Sequence[Any],
    search_team: str,
    position_id: Optional[int],
) -> List[Tuple[str, List[Any], float]]:
    stages: List[Tuple[str, List[Any], float]] = []
    if search_team:
        team_players = [p for p in players if search_team in normalize_team_name(player_team_name(p))]
        if position_id:
            stages.append(
                (
                    "team+position",
                    [p for p in team_players if player_position_id(p) == position_id],
                    TEAM_POSITION_MIN_QUALITY,
                )
            )
        stages.append(("team", team_players, TEAM_MIN_QUALITY))
    if position_id:
        stages.append(
            (
                "position",
                [p for p in players if player_position_id(p) == position_id],
                POSITION_MIN_QUALITY,
            )
        )
    stages.append(("roster", list(players), ROSTER_MIN_QUALITY))
    return stages


def find_player_by_name_and_position(
    search_name: str,
    search_position,
    players_array,
    search_team: Optional[str] = None,
) -> Optional[Any]:
    """
    Find the roster player a free-text name refers to.

    Args:
        search_name: Name as written by the other source
        search_position: Position code (1-4) or label; optional
        players_array: Roster list, or a ``data``/``elements`` wrapped list
        search_team: Team name as written by the other source; optional

    Returns:
        The matching roster entry (the object passed in), or ``None``.
    """
    players = extract_players(players_array)
    if not players or not search_name:
        return None

    normalized_search_name = normalize_name(search_name)
    if not normalized_search_name:
        return None
    normalized_team = normalize_team_name(search_team)
    position_id = resolve_position_id(search_position)

    for stage, pool, min_quality in _stages(players, normalized_team, position_id):
        match = search_in_player_set(normalized_search_name, pool, min_quality)
        if match is not None:
            logger.debug("Matched %r in %s stage (%d candidates)", search_name, stage, len(pool))
            return match

    logger.debug("No roster match for %r (team=%r, position=%r)", search_name, search_team, search_position)
    return None


def debug_player_match(
    search_name: str,
    search_position,
    players_array,
    search_team: Optional[str] = None,
) -> Tuple[Optional[Any], List[Any]]:
    """Run the funnel and list up to five near candidates when it finds nothing."""
    match = find_player_by_name_and_position(search_name, search_position, players_array, search_team)
    if match is not None:
        return match, []

    normalized_search = normalize_name(search_name)
    near: List[Any] = []
    if not normalized_search:
        return None, near
    for player in extract_players(players_array):
        nickname, name = player_names(player)
        candidate = normalize_name(nickname or name)
        if candidate and (normalized_search in candidate or candidate in normalized_search):
            near.append(player)
            if len(near) == 5:
                break
    return None, near
