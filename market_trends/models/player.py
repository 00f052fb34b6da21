"""Roster-side player record."""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple


@dataclass
class PlayerRecord:
    """
    A player as returned by the fantasy league API.

    ``id`` is the only authoritative identity.  ``nickname`` is the display name
    and is preferred over ``name`` when matching.
    """

    id: str
    name: str = ""
    nickname: str = ""
    position_id: Optional[int] = None
    team_name: str = ""
    market_value: Optional[int] = None
    points: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PlayerRecord":
        team = data.get("team")
        if isinstance(team, Mapping):
            team_name = team.get("name") or ""
        else:
            team_name = data.get("team_name") or (team if isinstance(team, str) else "")
        position_id = data.get("positionId", data.get("position_id"))
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name") or "",
            nickname=data.get("nickname") or "",
            position_id=_safe_int(position_id),
            team_name=team_name,
            market_value=_safe_int(data.get("marketValue", data.get("market_value"))),
            points=data.get("points"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "nickname": self.nickname,
            "positionId": self.position_id,
            "team": {"name": self.team_name},
            "marketValue": self.market_value,
            "points": self.points,
        }


def _safe_int(value) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def player_names(player) -> Tuple[str, str]:
    """``(nickname, name)`` of an API mapping or a :class:`PlayerRecord`."""
    if isinstance(player, Mapping):
        return player.get("nickname") or "", player.get("name") or ""
    return getattr(player, "nickname", "") or "", getattr(player, "name", "") or ""


def player_team_name(player) -> str:
    if isinstance(player, Mapping):
        team = player.get("team")
        if isinstance(team, Mapping):
            return team.get("name") or ""
        return player.get("team_name") or (team if isinstance(team, str) else "")
    return getattr(player, "team_name", "") or ""


def player_position_id(player) -> Optional[int]:
    if isinstance(player, Mapping):
        return _safe_int(player.get("positionId", player.get("position_id")))
    return _safe_int(getattr(player, "position_id", None))
