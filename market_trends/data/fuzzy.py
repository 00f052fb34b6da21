"""
Shared fuzzy name matching for roster players and market-trend records.

Both lookups in this package resolve a free-text player name against a pool of
candidates that spell names differently.  They share the normalization and the
candidate signals defined here and differ only in how they pick a winner:

``ranked_fuzzy_match``
    Scored search with a deterministic ranking and a 0-1 quality gate.  Used
    by the roster funnel (``player_name_matcher``).

``tiered_match``
    Bucketed search (exact with team → exact → partial → surname) over
    ``name|position|team`` keyed entries.  Used by ``TrendStore``.

Callers plug in a key extractor that pulls the comparable fields out of their
own candidate type.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

from .normalize import extract_main_surname, normalize_name, normalize_team_name

# item -> (primary name, secondary name); for roster players (nickname, name)
NameExtractor = Callable[[Any], Tuple[Optional[str], Optional[str]]]

# item -> (name, position, team, original name)
EntryExtractor = Callable[[Any], Tuple[str, Optional[str], Optional[str], str]]

SURNAME_SCORE = 0.5


@dataclass
class MatchCandidate:
    """One scored candidate of a single lookup call."""

    item: Any
    score: float
    exact_nickname: bool = False
    exact_name: bool = False
    nickname_includes: bool = False
    name_includes: bool = False
    full_search_contained: bool = False
    max_score: int = 0
    surname_match: bool = False

    @property
    def all_tokens_matched(self) -> bool:
        return self.max_score > 0 and self.score >= self.max_score

    def sort_key(self) -> Tuple:
        return (
            not self.exact_nickname,
            not self.exact_name,
            not self.full_search_contained,
            not self.all_tokens_matched,
            not self.nickname_includes,
            not self.name_includes,
            -self.score,
        )


def _contains_either(a: str, b: str) -> bool:
    if not a or not b:
        return False
    return b in a or a in b


def _abbreviation_pattern(search_parts: Sequence[str]) -> Optional[re.Pattern]:
    # "alvaro f carreras" -> ^a[^a-z]*\s*carreras$  (matches "a carreras")
    if len(search_parts) < 2:
        return None
    first, last = search_parts[0], search_parts[-1]
    return re.compile(rf"^{re.escape(first[0])}[^a-z]*\s*{re.escape(last)}$", re.IGNORECASE)


def score_candidates(
    query: str,
    candidates: Iterable[Any],
    key_extractor: NameExtractor,
) -> Tuple[Optional[Any], List[MatchCandidate]]:
    """Score every candidate against ``query``.

    Returns ``(immediate, ranked)``.  ``immediate`` is set when a candidate is an
    exact or abbreviated-initial match; it wins outright and ``ranked`` is empty.
    Otherwise ``ranked`` holds the scored candidates in ranking order (best
    first), falling back to surname-only candidates when nothing scored.
    """
    normalized_query = normalize_name(query)
    pool = list(candidates)
    if not normalized_query or not pool:
        return None, []

    search_parts = normalized_query.split()
    abbreviated = _abbreviation_pattern(search_parts)
    scored: List[MatchCandidate] = []
    names: List[Tuple[Any, str, str]] = []

    for item in pool:
        raw_nickname, raw_name = key_extractor(item)
        nickname = normalize_name(raw_nickname or "")
        name = normalize_name(raw_name or "")
        names.append((item, nickname, name))

        if (nickname and nickname == normalized_query) or (name and name == normalized_query):
            return item, []

        full_name = f"{nickname} {name}".strip()
        if abbreviated is not None and abbreviated.match(full_name):
            return item, []

        score: float = sum(1 for part in search_parts if part in full_name)
        full_contained = _contains_either(full_name, normalized_query)
        nickname_contained = _contains_either(nickname, normalized_query)
        name_contained = _contains_either(name, normalized_query)

        if not (score > 0 or full_contained or nickname_contained or name_contained):
            continue

        if full_contained:
            score += 2
        if nickname_contained:
            score += 1.5
        if name_contained:
            score += 1.5

        scored.append(
            MatchCandidate(
                item=item,
                score=score,
                exact_nickname=nickname == normalized_query,
                exact_name=name == normalized_query,
                nickname_includes=bool(nickname) and normalized_query in nickname,
                name_includes=bool(name) and normalized_query in name,
                full_search_contained=full_contained,
                max_score=len(search_parts),
            )
        )

    if not scored:
        surname = extract_main_surname(normalized_query)
        if len(surname) > 2:
            for item, nickname, name in names:
                if (
                    extract_main_surname(nickname) == surname
                    or extract_main_surname(name) == surname
                    or surname in nickname
                    or surname in name
                ):
                    scored.append(MatchCandidate(item=item, score=SURNAME_SCORE, surname_match=True))

    scored.sort(key=MatchCandidate.sort_key)
    return None, scored


def match_quality(candidate: MatchCandidate) -> float:
    """Confidence (0-1) of a ranked winner, derived from its flags."""
    if candidate.exact_nickname or candidate.exact_name:
        return 1.0
    if candidate.full_search_contained:
        return 0.9
    if candidate.all_tokens_matched:
        return 0.8
    if candidate.nickname_includes or candidate.name_includes:
        return 0.6
    if candidate.score > 0 and candidate.max_score > 0:
        ratio = candidate.score / candidate.max_score
        if ratio >= 0.5:
            return 0.4
        return max(0.1, ratio * 0.3)
    return 0.05


def ranked_fuzzy_match(
    query: str,
    candidates: Iterable[Any],
    key_extractor: NameExtractor,
    min_quality: float = 0.5,
) -> Optional[Any]:
    """Best candidate for ``query`` if its quality reaches ``min_quality``."""
    immediate, ranked = score_candidates(query, candidates, key_extractor)
    if immediate is not None:
        return immediate
    if not ranked:
        return None
    winner = ranked[0]
    if match_quality(winner) >= min_quality:
        return winner.item
    return None


def _teams_equal(a: Optional[str], b: Optional[str]) -> bool:
    if not a or not b:
        return False
    return normalize_team_name(a) == normalize_team_name(b)


def tiered_match(
    query: str,
    entries: Iterable[Any],
    key_extractor: EntryExtractor,
    position: Optional[str] = None,
    team: Optional[str] = None,
) -> Optional[Any]:
    """Pick an entry by tier: exact with team, exact, partial, surname.

    ``position`` must already be a canonical label; entries with a different
    position are skipped.  Inside the exact tiers the longest original name
    wins (prefers ``Franco Mastantuono`` over a shortened duplicate).  Partial
    and surname matches must agree on team when both sides know it.
    """
    normalized_query = normalize_name(query)
    if not normalized_query:
        return None

    query_surname = extract_main_surname(normalized_query)
    exact_with_team: List[Tuple[Any, str]] = []
    exact_no_team: List[Tuple[Any, str]] = []
    partial: List[Any] = []
    surname: List[Tuple[Any, bool]] = []

    for entry in entries:
        raw_name, entry_position, entry_team, original_name = key_extractor(entry)
        if position and entry_position != position:
            continue

        name = normalize_name(raw_name)
        if not name:
            continue
        have_both_teams = bool(team) and bool(entry_team)
        same_team = _teams_equal(team, entry_team)

        if name == normalized_query:
            bucket = exact_with_team if same_team else exact_no_team
            bucket.append((entry, original_name or ""))
        elif normalized_query in name or name in normalized_query:
            if have_both_teams:
                if same_team:
                    partial.append(entry)
            elif normalized_query in name:
                partial.append(entry)

        entry_surname = extract_main_surname(name)
        if query_surname and len(query_surname) > 2 and entry_surname == query_surname:
            if have_both_teams:
                if same_team:
                    surname.append((entry, True))
            else:
                surname.append((entry, False))

    for bucket in (exact_with_team, exact_no_team):
        if bucket:
            bucket.sort(key=lambda pair: len(pair[1]), reverse=True)
            return bucket[0][0]
    if partial:
        return partial[0]
    if surname:
        for entry, team_match in surname:
            if team_match:
                return entry
        return surname[0][0]
    return None
