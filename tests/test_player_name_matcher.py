"""Tests for the four-stage roster name matcher."""

from market_trends.data.player_name_matcher import (
    debug_player_match,
    extract_players,
    find_player_by_name_and_position,
    search_in_player_set,
)
from market_trends.models.player import PlayerRecord


ROSTER = [
    {
        "id": "1",
        "nickname": "Vinicius Jr.",
        "name": "Vinícius José Paixão de Oliveira Júnior",
        "positionId": 4,
        "team": {"name": "Real Madrid"},
    },
    {"id": "2", "nickname": "Mbappé", "name": "Kylian Mbappé Lottin", "positionId": 4, "team": {"name": "Real Madrid"}},
    {"id": "3", "nickname": "Mingueza", "name": "Óscar Mingueza", "positionId": 2, "team": {"name": "RC Celta"}},
    {"id": "5", "nickname": "Nico Williams", "name": "Nicholas Williams Arthuer", "positionId": 4, "team": {"name": "Athletic Club"}},
    {"id": "6", "nickname": "Iñaki Williams", "name": "Iñaki Williams Arthuer", "positionId": 4, "team": {"name": "Athletic Club"}},
    {"id": "7", "nickname": "Pedri", "name": "Pedro González López", "positionId": 3, "team": {"name": "FC Barcelona"}},
]


class TestFindPlayerByNameAndPosition:
    """Tests for find_player_by_name_and_position()."""

    def test_vini_jr_abbreviation(self):
        match = find_player_by_name_and_position("Vini Jr", 4, ROSTER, "Real Madrid")
        assert match is ROSTER[0]

    def test_initial_and_surname_in_team_stage(self):
        match = find_player_by_name_and_position("O. Mingueza", 2, ROSTER, "Celta")
        assert match["id"] == "3"

    def test_brothers_resolved_by_first_name(self):
        assert find_player_by_name_and_position("Iñaki Williams", 4, ROSTER, "Athletic")["id"] == "6"
        assert find_player_by_name_and_position("Nico Williams", 4, ROSTER, "Athletic")["id"] == "5"

    def test_team_position_stage_short_circuits(self):
        roster = [
            {"id": "betis", "nickname": "Raúl García", "positionId": 3, "team": {"name": "Real Betis"}},
            {"id": "osasuna", "nickname": "Raúl García de Haro", "positionId": 4, "team": {"name": "CA Osasuna"}},
        ]
        # the whole-roster stage alone would pick the exact nickname
        assert find_player_by_name_and_position("Raul Garcia", None, roster)["id"] == "betis"
        assert find_player_by_name_and_position("Raul Garcia", 4, roster, "Osasuna")["id"] == "osasuna"

    def test_exact_match_bypasses_scoring(self):
        roster = [
            {"id": "long", "nickname": "Pedri Junior Alvarez", "positionId": 3},
            {"id": "exact", "nickname": "Pedri", "positionId": 3},
        ]
        assert find_player_by_name_and_position("Pedri", 3, roster)["id"] == "exact"

    def test_unrelated_name_returns_none(self):
        assert find_player_by_name_and_position("Zzzyx Qqplorp", None, ROSTER) is None
        assert find_player_by_name_and_position("Zzzyx Qqplorp", 4, ROSTER, "Real Madrid") is None

    def test_position_label_accepted(self):
        assert find_player_by_name_and_position("Pedri", "mediocampista", ROSTER)["id"] == "7"

    def test_wrapped_payloads(self):
        assert find_player_by_name_and_position("Pedri", 3, {"data": ROSTER})["id"] == "7"
        assert find_player_by_name_and_position("Pedri", 3, {"elements": ROSTER})["id"] == "7"

    def test_player_records(self):
        roster = [PlayerRecord.from_dict(p) for p in ROSTER]
        match = find_player_by_name_and_position("Mbappe", 4, roster, "Real Madrid")
        assert isinstance(match, PlayerRecord)
        assert match.id == "2"

    def test_empty_inputs(self):
        assert find_player_by_name_and_position("", 3, ROSTER) is None
        assert find_player_by_name_and_position(None, 3, ROSTER) is None
        assert find_player_by_name_and_position("Pedri", 3, []) is None
        assert find_player_by_name_and_position("Pedri", 3, None) is None
        assert find_player_by_name_and_position("...", 3, ROSTER) is None


def test_search_in_player_set_threshold():
    pedri = [ROSTER[5]]
    assert search_in_player_set("gonzalo lopez", pedri, min_quality=0.5) is None
    assert search_in_player_set("gonzalo lopez", pedri, min_quality=0.4) is pedri[0]
    assert search_in_player_set("pedri", [], min_quality=0.1) is None


def test_extract_players():
    assert extract_players(ROSTER) == ROSTER
    assert extract_players({"data": ROSTER}) == ROSTER
    assert extract_players({"elements": ROSTER}) == ROSTER
    assert extract_players({"players": ROSTER}) == []
    assert extract_players(None) == []


def test_debug_player_match():
    match, near = debug_player_match("Vini Jr", 4, ROSTER, "Real Madrid")
    assert match is ROSTER[0]
    assert near == []

    match, near = debug_player_match("Zzzyx Qqplorp", None, ROSTER)
    assert match is None
    assert near == []
