"""Market-side trend record and the result types of the trend store."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

RISING_GLYPH = "📈"
FALLING_GLYPH = "📉"
STABLE_GLYPH = "➡️"

RISING_COLOR = "🟢"
FALLING_COLOR = "🔴"
STABLE_COLOR = "⚪"


def trend_glyphs(change: float):
    """``(tendencia, color)`` glyphs for a 24h value change."""
    if change > 0:
        return RISING_GLYPH, RISING_COLOR
    if change < 0:
        return FALLING_GLYPH, FALLING_COLOR
    return STABLE_GLYPH, STABLE_COLOR


@dataclass
class TrendRecord:
    """
    One player's market value and 24h change, as scraped from the market page.

    A trend record has no stable id.  It is identified only by its normalized
    ``nombre``/``posicion``/``equipo`` tuple (see :attr:`key`).
    """

    nombre: str
    original_name: str
    posicion: str
    equipo: str
    original_team_name: str
    valor: int
    diferencia1: float
    porcentaje: float
    equipo_id: Optional[str] = None
    tendencia: str = STABLE_GLYPH
    cambio_texto: str = "0"
    color: str = STABLE_COLOR
    is_positive: bool = False
    is_negative: bool = False
    last_updated: str = ""

    @property
    def key(self) -> str:
        return f"{self.nombre}|{self.posicion}|{self.equipo}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nombre": self.nombre,
            "original_name": self.original_name,
            "posicion": self.posicion,
            "equipo": self.equipo,
            "original_team_name": self.original_team_name,
            "equipo_id": self.equipo_id,
            "valor": self.valor,
            "diferencia1": self.diferencia1,
            "porcentaje": self.porcentaje,
            "tendencia": self.tendencia,
            "cambio_texto": self.cambio_texto,
            "color": self.color,
            "is_positive": self.is_positive,
            "is_negative": self.is_negative,
            "last_updated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrendRecord":
        return cls(
            nombre=data["nombre"],
            original_name=data.get("original_name", data["nombre"]),
            posicion=data["posicion"],
            equipo=data["equipo"],
            original_team_name=data.get("original_team_name", data["equipo"]),
            equipo_id=data.get("equipo_id"),
            valor=int(data["valor"]),
            diferencia1=float(data["diferencia1"]),
            porcentaje=float(data["porcentaje"]),
            tendencia=data.get("tendencia", STABLE_GLYPH),
            cambio_texto=data.get("cambio_texto", "0"),
            color=data.get("color", STABLE_COLOR),
            is_positive=bool(data.get("is_positive", False)),
            is_negative=bool(data.get("is_negative", False)),
            last_updated=data.get("last_updated", ""),
        )


SOURCE_REAL = "real"
SOURCE_CACHE = "cache"
SOURCE_CACHED_FALLBACK = "cached_fallback"
SOURCE_ALREADY_INITIALIZED = "already_initialized"
SOURCE_FAILED = "failed"

FAILURE_NETWORK = "network"
FAILURE_PARSE = "parse"


@dataclass
class RefreshResult:
    """Outcome of ``initialize()``/``refresh()``.  Failures are reported, never raised."""

    success: bool
    players_count: int
    source: str
    timestamp: Optional[datetime] = None
    error: Optional[str] = None
    failure: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "players_count": self.players_count,
            "source": self.source,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "error": self.error,
            "failure": self.failure,
        }


@dataclass
class MarketStats:
    """Rising/falling/stable breakdown of the cached market."""

    total_players: int = 0
    rising_players: int = 0
    falling_players: int = 0
    stable_players: int = 0
    average_change: float = 0.0
    last_update: Optional[datetime] = None
    rising_percentage: float = 0.0
    falling_percentage: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_players": self.total_players,
            "rising_players": self.rising_players,
            "falling_players": self.falling_players,
            "stable_players": self.stable_players,
            "average_change": self.average_change,
            "last_update": self.last_update.isoformat() if self.last_update else None,
            "rising_percentage": self.rising_percentage,
            "falling_percentage": self.falling_percentage,
        }
