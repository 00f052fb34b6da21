"""
Alias tables for names the fuzzy matchers cannot resolve on their own.

The tables are data, not logic. They live in ``aliases.json`` next to this
module so maintainers can extend them without touching the matching code:

  special_names:   normalized roster spelling -> spelling used by the market page
  fallback_teams:  market page team id -> club name, used when the page's
                   team dropdown is missing
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

DEFAULT_ALIAS_PATH = Path(__file__).with_name("aliases.json")


@dataclass
class AliasTables:
    """Loaded alias data."""

    special_names: Dict[str, str] = field(default_factory=dict)
    fallback_teams: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: Dict) -> "AliasTables":
        return cls(
            special_names={str(k): str(v) for k, v in payload.get("special_names", {}).items()},
            fallback_teams={str(k): str(v) for k, v in payload.get("fallback_teams", {}).items()},
        )

    def to_dict(self) -> Dict:
        return {
            "special_names": dict(self.special_names),
            "fallback_teams": dict(self.fallback_teams),
        }


_DEFAULT_TABLES: Optional[AliasTables] = None


def load_alias_tables(path: Optional[str] = None) -> AliasTables:
    """Load alias tables from ``path`` (defaults to the bundled ``aliases.json``)."""
    global _DEFAULT_TABLES
    if path is None and _DEFAULT_TABLES is not None:
        return _DEFAULT_TABLES

    source = Path(path) if path else DEFAULT_ALIAS_PATH
    with open(source, "r", encoding="utf-8") as f:
        tables = AliasTables.from_dict(json.load(f))

    if path is None:
        _DEFAULT_TABLES = tables
    return tables


def fallback_team_mapping() -> Dict[str, str]:
    """Copy of the hardcoded team id -> club name table."""
    return dict(load_alias_tables().fallback_teams)
