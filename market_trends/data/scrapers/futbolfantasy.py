"""
futbolfantasy.com LaLiga Fantasy market scraper.

Fetches the public market analytics page and turns each player card into a
:class:`TrendRecord` keyed by ``name|position|team``.  The parser is bound to
the page's current markup (the ``elemento_jugador`` cards and their ``data-*``
attributes); if the markup changes the parse yields zero records, which the
trend store treats as a failure rather than an empty market.
"""

from __future__ import annotations

import html as _html
import logging
import math
import re
from datetime import datetime, timezone
from typing import Callable, Dict, Optional
from urllib.parse import quote

import requests
from bs4 import BeautifulSoup

from ...config import DEFAULT_ACCEPT, TrendsConfig
from ...models.trend import TrendRecord, trend_glyphs
from ..aliases import fallback_team_mapping
from ..normalize import format_amount_short, normalize_name, normalize_position, normalize_team_name

logger = logging.getLogger(__name__)

PLAYER_MARKER = 'class="elemento elemento_jugador'
UNKNOWN_TEAM = "LaLiga"

_REQUIRED_ATTRS = {
    "nombre": re.compile(r'data-nombre="([^"]+)"'),
    "posicion": re.compile(r'data-posicion="([^"]+)"'),
    "valor": re.compile(r'data-valor="(\d+)"'),
    "diferencia1": re.compile(r'data-diferencia1="([^"]+)"'),
    "diferencia-pct1": re.compile(r'data-diferencia-pct1="([^"]+)"'),
}
_TEAM_ATTR = re.compile(r'data-equipo="([^"]+)"')


class MarketPageFetcher:
    """Downloads the market page HTML."""

    def __init__(self, config: Optional[TrendsConfig] = None, session: Optional[requests.Session] = None):
        self.config = config or TrendsConfig()
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "User-Agent": self.config.user_agent,
                "Accept": DEFAULT_ACCEPT,
                "Accept-Language": self.config.accept_language,
            }
        )

    @property
    def request_url(self) -> str:
        if self.config.proxy_url:
            return f"{self.config.proxy_url}{quote(self.config.market_url, safe='')}"
        return self.config.market_url

    def fetch(self) -> str:
        """GET the market page.  Raises ``requests.RequestException`` on failure."""
        response = self.session.get(self.request_url, timeout=self.config.request_timeout)
        response.raise_for_status()
        return response.text

    def __call__(self) -> str:
        return self.fetch()


def extract_team_mapping(html: str) -> Dict[str, str]:
    """Team id -> club name from the page's ``<select name="equipo">``.

    Page options are merged over the hardcoded fallback table; the
    "all teams" option (``value="0"``) is ignored.
    """
    mapping = fallback_team_mapping()
    if not html:
        return mapping

    soup = BeautifulSoup(html, "lxml")
    select = soup.find("select", {"name": "equipo"})
    if select is None:
        return mapping

    for option in select.find_all("option"):
        team_id = str(option.get("value", "")).strip()
        team_name = option.get_text(strip=True)
        if not team_id.isdigit() or team_id == "0" or not team_name:
            continue
        mapping[team_id] = team_name
    return mapping


class MarketTrendsParser:
    """Parses market page HTML into trend records."""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def parse(self, html: str) -> Dict[str, TrendRecord]:
        records: Dict[str, TrendRecord] = {}
        if not html or not isinstance(html, str):
            return records

        team_mapping = extract_team_mapping(html)
        scraped_at = self.clock().isoformat()
        fragments = html.split(PLAYER_MARKER)
        skipped = 0

        # fragments[0] is everything before the first player card
        for fragment in fragments[1:]:
            record = self._parse_fragment(fragment, team_mapping, scraped_at)
            if record is None:
                skipped += 1
                continue
            records[record.key] = record

        if skipped:
            logger.debug("Skipped %d market fragments with missing or invalid data", skipped)
        logger.info("Parsed %d market trend records", len(records))
        return records

    def _parse_fragment(
        self,
        fragment: str,
        team_mapping: Dict[str, str],
        scraped_at: str,
    ) -> Optional[TrendRecord]:
        values = {}
        for attr, pattern in _REQUIRED_ATTRS.items():
            match = pattern.search(fragment)
            if not match:
                return None
            values[attr] = match.group(1)

        try:
            valor = int(values["valor"])
            diferencia1 = float(values["diferencia1"])
            porcentaje = float(values["diferencia-pct1"])
        except ValueError:
            return None
        if not (math.isfinite(diferencia1) and math.isfinite(porcentaje)):
            return None

        team_match = _TEAM_ATTR.search(fragment)
        equipo_id = team_match.group(1) if team_match else None
        team_name = team_mapping.get(equipo_id, UNKNOWN_TEAM) if equipo_id else UNKNOWN_TEAM

        original_name = _html.unescape(values["nombre"]).strip()
        posicion = values["posicion"].lower().strip()
        tendencia, color = trend_glyphs(diferencia1)

        return TrendRecord(
            nombre=normalize_name(original_name),
            original_name=original_name,
            posicion=normalize_position(posicion) or posicion,
            equipo=normalize_team_name(team_name),
            original_team_name=team_name,
            equipo_id=equipo_id,
            valor=valor,
            diferencia1=diferencia1,
            porcentaje=porcentaje,
            tendencia=tendencia,
            cambio_texto=_change_text(diferencia1),
            color=color,
            is_positive=diferencia1 > 0,
            is_negative=diferencia1 < 0,
            last_updated=scraped_at,
        )


def _change_text(change: float) -> str:
    if change > 0:
        return f"+{format_amount_short(abs(change))}"
    if change < 0:
        return f"-{format_amount_short(abs(change))}"
    return "0"
