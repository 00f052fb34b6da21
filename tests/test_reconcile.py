"""Tests for pairing roster players with market trends."""

from datetime import datetime, timezone

import pytest

from market_trends.data.normalize import normalize_name, normalize_position, normalize_team_name
from market_trends.data.reconcile import (
    Annotation,
    annotate_roster,
    annotate_trends,
    annotations_to_frame,
    player_for_trend,
    trend_for_player,
)
from market_trends.data.trend_store import TrendStore
from market_trends.models.player import PlayerRecord
from market_trends.models.trend import TrendRecord

NOW = datetime(2025, 9, 20, 12, 0, tzinfo=timezone.utc)


def trend(name, position, team, change=0.0):
    return TrendRecord(
        nombre=normalize_name(name),
        original_name=name,
        posicion=normalize_position(position),
        equipo=normalize_team_name(team),
        original_team_name=team,
        valor=10_000_000,
        diferencia1=float(change),
        porcentaje=0.0,
        is_positive=change > 0,
        is_negative=change < 0,
    )


TRENDS = [
    trend("Vini Jr.", "delantero", "Real Madrid", -1_500_000),
    trend("Óscar Mingueza", "defensa", "Celta", 250_000),
    trend("Nico Williams", "delantero", "Athletic", 900_000),
    trend("Iñaki Williams", "delantero", "Athletic", 0),
    trend("Pedri", "mediocampista", "Barcelona", 500_000),
    trend("Desconocido Total", "portero", "Getafe", 100_000),
]

ROSTER = [
    {
        "id": "vini",
        "nickname": "Vinicius Jr.",
        "name": "Vinícius José Paixão de Oliveira Júnior",
        "positionId": 4,
        "team": {"name": "Real Madrid"},
    },
    {"id": "mingueza", "nickname": "Mingueza", "name": "Óscar Mingueza", "positionId": 2, "team": {"name": "RC Celta"}},
    {"id": "nico", "nickname": "Nico Williams", "name": "Nicholas Williams Arthuer", "positionId": 4, "team": {"name": "Athletic Club"}},
    {"id": "inaki", "nickname": "Iñaki Williams", "name": "Iñaki Williams Arthuer", "positionId": 4, "team": {"name": "Athletic Club"}},
    {"id": "pedri", "nickname": "Pedri González", "name": "", "positionId": 3, "team": {"name": "Getafe"}},
    {"id": "nobody", "nickname": "Zzzyx Qqplorp", "name": "", "positionId": 1, "team": {"name": "Elche"}},
]


@pytest.fixture
def store():
    return TrendStore.from_records(TRENDS, scraped_at=NOW, clock=lambda: NOW)


def _by_id(player_id):
    return next(p for p in ROSTER if p["id"] == player_id)


class TestTrendForPlayer:
    """Tests for trend_for_player()."""

    def test_special_name_alias(self, store):
        assert trend_for_player(store, _by_id("vini")).original_name == "Vini Jr."

    def test_falls_back_to_full_name(self, store):
        # "RC Celta" does not normalize to the market's "celta"
        assert trend_for_player(store, _by_id("mingueza")).original_name == "Óscar Mingueza"

    def test_brothers(self, store):
        assert trend_for_player(store, _by_id("inaki")).original_name == "Iñaki Williams"
        assert trend_for_player(store, _by_id("nico")).original_name == "Nico Williams"

    def test_position_scan_fallback(self, store):
        # wrong team and a longer display name than the market uses
        assert trend_for_player(store, _by_id("pedri")).original_name == "Pedri"

    def test_player_record_input(self, store):
        player = PlayerRecord.from_dict(_by_id("vini"))
        assert trend_for_player(store, player).original_name == "Vini Jr."

    def test_no_trend(self, store):
        assert trend_for_player(store, _by_id("nobody")) is None
        assert trend_for_player(store, {"id": "x", "positionId": 1}) is None


class TestPlayerForTrend:
    """Tests for player_for_trend()."""

    def test_finds_roster_player(self):
        assert player_for_trend(TRENDS[0], ROSTER)["id"] == "vini"
        assert player_for_trend(TRENDS[1], ROSTER)["id"] == "mingueza"
        assert player_for_trend(TRENDS[3], ROSTER)["id"] == "inaki"

    def test_loose_position_label_narrows_search(self):
        roster = [
            {"id": "defender", "nickname": "Pedri", "positionId": 2, "team": {"name": "Getafe"}},
            {"id": "midfielder", "nickname": "Pedri", "positionId": 3, "team": {"name": "Getafe"}},
        ]
        scraped = trend("Pedri", "Medio", "Getafe")

        assert scraped.posicion == "medio"
        assert player_for_trend(scraped, roster)["id"] == "midfielder"

    def test_unknown_trend(self):
        assert player_for_trend(TRENDS[5], ROSTER) is None

    def test_empty_inputs(self):
        assert player_for_trend(TRENDS[0], []) is None
        assert player_for_trend(None, ROSTER) is None


def test_annotate_roster(store):
    annotations = annotate_roster(store, {"data": ROSTER})

    assert len(annotations) == len(ROSTER)
    assert [a.matched for a in annotations] == [True, True, True, True, True, False]


def test_annotate_trends_rising(store):
    annotations = annotate_trends(store, ROSTER, filter="rising")

    assert [a.trend.original_name for a in annotations] == [
        "Nico Williams",
        "Pedri",
        "Óscar Mingueza",
        "Desconocido Total",
    ]
    assert annotations[0].player["id"] == "nico"
    assert annotations[-1].player is None


def test_annotations_to_frame(store):
    frame = annotations_to_frame(annotate_roster(store, ROSTER))

    assert len(frame) == len(ROSTER)
    assert frame["matched"].sum() == 5
    assert frame.loc[0, "player_id"] == "vini"
    assert frame.loc[0, "trend_name"] == "Vini Jr."
    assert frame.loc[0, "player_team"] == "Real Madrid"


def test_annotations_to_frame_empty():
    frame = annotations_to_frame([])
    assert frame.empty
    assert "matched" in frame.columns


def test_annotation_matched_flag():
    assert Annotation(player=None, trend=TRENDS[0]).matched is False
    assert Annotation(player=ROSTER[0], trend=TRENDS[0]).matched is True
