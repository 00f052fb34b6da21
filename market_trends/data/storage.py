"""
Key/value storage behind the trend store snapshot.

The store only needs ``get``/``set``/``remove`` of string values, so the
storage medium is swappable: a directory of files for the CLI and long-running
services, a dict for tests.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class InMemoryStorage:
    """Dict-backed storage."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data


class JsonDirectoryStorage:
    """One file per key inside ``cache_dir``."""

    def __init__(self, cache_dir: str):
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        safe_key = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return self.cache_dir / f"{safe_key}.json"

    def get(self, key: str) -> Optional[str]:
        p = self._path(key)
        if not p.exists():
            return None
        try:
            with open(p, "r", encoding="utf-8") as f:
                return f.read()
        except OSError as exc:
            logger.warning("Could not read %s: %s", p, exc)
            return None

    def set(self, key: str, value: str) -> None:
        p = self._path(key)
        tmp = p.with_suffix(".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            f.write(value)
        tmp.replace(p)

    def remove(self, key: str) -> None:
        p = self._path(key)
        if p.exists():
            p.unlink()

    def __contains__(self, key: str) -> bool:
        return self._path(key).exists()
