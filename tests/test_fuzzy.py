"""Tests for the shared fuzzy matching primitives."""

from market_trends.data.fuzzy import (
    MatchCandidate,
    match_quality,
    ranked_fuzzy_match,
    score_candidates,
    tiered_match,
)
from market_trends.models.player import player_names


def _entry(name, position, team, original):
    return (name, position, team, original)


def _fields(entry):
    return entry


class TestScoreCandidates:
    """Tests for score_candidates()."""

    def test_exact_nickname_is_immediate(self):
        players = [{"nickname": "Pedri Junior Alvarez"}, {"nickname": "Pedri"}]
        immediate, ranked = score_candidates("Pedri", players, player_names)
        assert immediate is players[1]
        assert ranked == []

    def test_abbreviated_first_name_is_immediate(self):
        players = [{"nickname": "Carreras Jr"}, {"nickname": "A. Carreras"}]
        immediate, _ = score_candidates("Álvaro Carreras", players, player_names)
        assert immediate is players[1]

    def test_unrelated_names_are_dropped(self):
        immediate, ranked = score_candidates("Zzzyx Qqplorp", [{"nickname": "Pedri"}], player_names)
        assert immediate is None
        assert ranked == []

    def test_ranking_prefers_full_containment(self):
        players = [
            {"nickname": "Raúl", "name": "Raúl Fernández"},
            {"nickname": "Raúl García de Haro"},
        ]
        _, ranked = score_candidates("Raul Garcia", players, player_names)
        assert ranked[0].item is players[1]
        assert ranked[0].full_search_contained

    def test_empty_names_are_not_containment(self):
        players = [{"nickname": "", "name": "Rodrygo Goes"}]
        _, ranked = score_candidates("Rodrygo", players, player_names)
        assert ranked[0].nickname_includes is False
        assert ranked[0].name_includes is True


class TestMatchQuality:
    """Tests for match_quality()."""

    def test_exact(self):
        assert match_quality(MatchCandidate(item=None, score=1, exact_name=True, max_score=1)) == 1.0

    def test_full_containment(self):
        assert match_quality(MatchCandidate(item=None, score=5, full_search_contained=True, max_score=2)) == 0.9

    def test_all_tokens(self):
        assert match_quality(MatchCandidate(item=None, score=2, max_score=2)) == 0.8

    def test_partial_containment(self):
        assert match_quality(MatchCandidate(item=None, score=1.5, nickname_includes=True, max_score=3)) == 0.6

    def test_token_ratio(self):
        assert match_quality(MatchCandidate(item=None, score=1, max_score=2)) == 0.4
        assert match_quality(MatchCandidate(item=None, score=1, max_score=4)) == 0.1

    def test_surname_only(self):
        assert match_quality(MatchCandidate(item=None, score=0.5, surname_match=True)) == 0.05


def test_ranked_fuzzy_match_quality_gate():
    players = [{"nickname": "Pedri", "name": "Pedro González López"}]
    assert ranked_fuzzy_match("Gonzalo Lopez", players, player_names, min_quality=0.5) is None
    assert ranked_fuzzy_match("Gonzalo Lopez", players, player_names, min_quality=0.4) is players[0]


class TestTieredMatch:
    """Tests for tiered_match()."""

    ENTRIES = [
        _entry("pedri", "mediocampista", "barcelona", "Pedri"),
        _entry("pedri", "mediocampista", "betis", "Pedri González"),
        _entry("oscar mingueza", "defensa", "celta", "Óscar Mingueza"),
        _entry("mastantuono", "mediocampista", "madrid", "Mastantuono"),
        _entry("franco mastantuono", "mediocampista", "madrid", "Franco Mastantuono"),
    ]

    def test_exact_with_team_wins(self):
        match = tiered_match("Pedri", self.ENTRIES, _fields, team="Barcelona")
        assert match[2] == "barcelona"

    def test_exact_prefers_longest_original_name(self):
        match = tiered_match("Pedri", self.ENTRIES, _fields)
        assert match[3] == "Pedri González"

    def test_exact_beats_partial(self):
        match = tiered_match("Franco Mastantuono", self.ENTRIES, _fields)
        assert match[3] == "Franco Mastantuono"

    def test_partial_with_matching_team(self):
        match = tiered_match("Mingueza", self.ENTRIES, _fields, team="Celta")
        assert match[3] == "Óscar Mingueza"

    def test_partial_with_other_team_is_rejected(self):
        assert tiered_match("Mingueza", self.ENTRIES, _fields, team="Getafe") is None

    def test_partial_without_team_needs_query_inside_name(self):
        assert tiered_match("Mingueza", self.ENTRIES, _fields)[3] == "Óscar Mingueza"
        assert tiered_match("Oscar Mingueza Garcia", self.ENTRIES, _fields) is None

    def test_surname_tier(self):
        match = tiered_match("O. Mingueza", self.ENTRIES, _fields, team="Celta")
        assert match[3] == "Óscar Mingueza"

    def test_position_prefilter(self):
        assert tiered_match("Oscar Mingueza", self.ENTRIES, _fields, position="portero") is None
        assert tiered_match("Oscar Mingueza", self.ENTRIES, _fields, position="defensa") is not None

    def test_empty_query(self):
        assert tiered_match("", self.ENTRIES, _fields) is None
        assert tiered_match(None, self.ENTRIES, _fields) is None
