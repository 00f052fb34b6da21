"""Shared player/team/position normalization used by every matcher.

The roster API and the scraped market page spell the same people and clubs
differently (``Óscar Mingueza`` vs ``O. Mingueza``, ``Real Betis`` vs
``Betis``).  Every comparison in this package goes through the functions here so
that both matchers agree on what "equal" means.
"""

from __future__ import annotations

import math
import re
import unicodedata
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

from .aliases import load_alias_tables

POSITION_LABELS = {
    1: "portero",
    2: "defensa",
    3: "mediocampista",
    4: "delantero",
}

_POSITION_WORDS = {
    "portero": "portero",
    "defensa": "defensa",
    "centrocampista": "mediocampista",
    "mediocampista": "mediocampista",
    "delantero": "delantero",
    "goalkeeper": "portero",
    "defender": "defensa",
    "midfielder": "mediocampista",
    "forward": "delantero",
    "gk": "portero",
    "def": "defensa",
    "mid": "mediocampista",
    "att": "delantero",
}

_LABEL_TO_ID = {label: pid for pid, label in POSITION_LABELS.items()}

_TEAM_PREFIX_RE = (
    re.compile(r"^real\s+"),
    re.compile(r"^club\s+"),
    re.compile(r"^cf\s+"),
)
_TEAM_SUFFIX_RE = (
    re.compile(r"\s+cf$"),
    re.compile(r"\s+fc$"),
)
_TEAM_REWRITES = (
    (re.compile(r"athletic\s+club"), "athletic"),
    (re.compile(r"real\s+sociedad"), "sociedad"),
    (re.compile(r"atletico\s+madrid"), "atletico"),
    (re.compile(r"rayo\s+vallecano"), "rayo"),
)


def strip_diacritics(text: str) -> str:
    """NFD-decompose ``text`` and drop combining marks (``é`` → ``e``)."""
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_name(name) -> str:
    """Normalize a player name for comparison.

    Steps:
    1. Strip accents (NFD + drop combining marks)
    2. Lowercase
    3. Drop ``.`` so initials collapse (``O. Mingueza`` → ``o mingueza``)
    4. Drop everything outside ``[a-z0-9\\s]``
    5. Collapse and trim whitespace

    Non-string input returns ``""``.

    Examples::

        >>> normalize_name("Óscar Mingueza")
        'oscar mingueza'
        >>> normalize_name("J. Mastantuono")
        'j mastantuono'
        >>> normalize_name(None)
        ''
    """
    if not name or not isinstance(name, str):
        return ""
    s = strip_diacritics(name.lower().strip()).lower()
    s = s.replace(".", "")
    s = re.sub(r"[^a-z0-9\s]", "", s)
    s = re.sub(r"\s+", " ", s)
    return s.strip()


def extract_main_surname(full_name: str) -> str:
    """Best-effort main surname of an already-normalized name.

    One token → itself; a leading initial → everything after it; two tokens →
    the second; longer names → the last token.  Compound surnames
    (``de la Cruz``) come out wrong.
    """
    if not full_name or not isinstance(full_name, str):
        return ""
    parts = full_name.split()
    if not parts:
        return ""
    if len(parts) == 1:
        return parts[0]
    if len(parts[0]) == 1:
        return " ".join(parts[1:])
    if len(parts) == 2:
        return parts[1]
    return parts[-1]


def normalize_team_name(team_name) -> str:
    """Normalize a La Liga club name for cross-source comparison.

    Examples::

        >>> normalize_team_name("Real Madrid")
        'madrid'
        >>> normalize_team_name("Athletic Club")
        'athletic'
        >>> normalize_team_name("Cádiz CF")
        'cadiz'
    """
    if not team_name or not isinstance(team_name, str):
        return ""
    s = strip_diacritics(team_name).lower().strip()
    s = re.sub(r"\s+", " ", s)
    for pattern in _TEAM_PREFIX_RE + _TEAM_SUFFIX_RE:
        s = pattern.sub("", s, count=1)
    for pattern, replacement in _TEAM_REWRITES:
        s = pattern.sub(replacement, s, count=1)
    return s


def _position_key(position) -> Optional[Union[int, str]]:
    if isinstance(position, bool):
        return None
    if isinstance(position, int):
        return position
    if isinstance(position, float) and position.is_integer():
        return int(position)
    text = str(position).strip().lower()
    if text.isdigit():
        return int(text)
    return text


def normalize_position(position) -> Optional[str]:
    """Canonical Spanish position label, or ``None`` for empty input.

    Unknown input falls through to :func:`normalize_name`.
    """
    if position is None or position == "" or position == 0:
        return None
    key = _position_key(position)
    if key is None:
        return None
    if isinstance(key, int):
        return POSITION_LABELS.get(key) or normalize_name(str(position))
    return _POSITION_WORDS.get(key) or normalize_name(str(position))


def resolve_position_id(position) -> Optional[int]:
    """Strict position id (1-4) for a code or label, ``None`` when unknown."""
    if position is None or position == "":
        return None
    key = _position_key(position)
    if key is None:
        return None
    if isinstance(key, int):
        return key if key in POSITION_LABELS else None
    label = _POSITION_WORDS.get(key)
    return _LABEL_TO_ID.get(label) if label else None


def guess_position_id(label) -> int:
    """Loose position id from free text; unknown labels default to midfielder."""
    pos = str(label).lower() if label else ""
    if "por" in pos or "gk" in pos or "goalkeeper" in pos:
        return 1
    if "def" in pos or "back" in pos:
        return 2
    if "med" in pos or "mid" in pos or "centro" in pos:
        return 3
    if "del" in pos or "forward" in pos or "att" in pos:
        return 4
    return 3


def _alias_key(name: str) -> str:
    s = strip_diacritics(name.lower())
    s = re.sub(r"[^a-z0-9\s.]", "", s)
    return s.strip()


def map_special_name_for_trends(name):
    """Spelling the market page uses for a roster name, if it is a known special case.

    Backed by the ``special_names`` table in ``aliases.json``.  Returns ``name``
    unchanged when there is no entry.
    """
    if not name or not isinstance(name, str):
        return name
    return load_alias_tables().special_names.get(_alias_key(name), name)


def format_amount_short(amount) -> str:
    """Compact currency amount: ``1500000`` → ``1.5M``, ``250000`` → ``250K``."""
    if not amount or not isinstance(amount, (int, float)) or not math.isfinite(amount):
        return "0"
    if amount >= 1_000_000:
        return f"{_round_half_up(amount, 1_000_000, '0.1')}M"
    if amount >= 1_000:
        return f"{_round_half_up(amount, 1_000, '1')}K"
    if float(amount).is_integer():
        return str(int(amount))
    return str(amount)


def _round_half_up(amount, unit: int, step: str) -> Decimal:
    # halves round away from zero (2500 -> 3K), not to even
    return (Decimal(str(amount)) / unit).quantize(Decimal(step), rounding=ROUND_HALF_UP)
