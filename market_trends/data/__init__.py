"""Name normalization, player matching and the market trend store."""

from .normalize import extract_main_surname, map_special_name_for_trends, normalize_name, normalize_position
from .player_name_matcher import find_player_by_name_and_position, search_in_player_set
from .reconcile import annotate_roster, annotate_trends, player_for_trend, trend_for_player
from .trend_store import StoreState, TrendStore

__all__ = [
    "extract_main_surname",
    "map_special_name_for_trends",
    "normalize_name",
    "normalize_position",
    "find_player_by_name_and_position",
    "search_in_player_set",
    "annotate_roster",
    "annotate_trends",
    "player_for_trend",
    "trend_for_player",
    "StoreState",
    "TrendStore",
]
