"""
On-disk JSON cache with TTL-based expiry.

Each key is stored as ``<cache_dir>/<key>.json`` holding
``{"data": <value>, "timestamp": <ISO-8601>}``. Reads never fail: anything
missing, corrupt or expired is a miss.
"""

from __future__ import annotations

import json
import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from .errors import LnrError

logger = logging.getLogger(__name__)

TEAMS_KEY = "teams"
SELECTIONS_KEY = "user-selections"


class CacheError(LnrError):
    """Raised when the cache cannot be written or cleared."""

    def __init__(self, message: str):
        super().__init__("cache_error", message)


def team_key(kind: str, team_id: str) -> str:
    """Cache key for team-scoped data, e.g. ``labels-<teamId>``."""
    return f"{kind}-{team_id}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(raw: Any) -> datetime | None:
    if not isinstance(raw, str):
        return None
    try:
        ts = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


class CacheStore:
    """Key/value store of JSON-serializable values under a per-user directory."""

    def __init__(self, cache_dir: Path, clock: Callable[[], datetime] = _utcnow):
        self._cache_dir = Path(cache_dir)
        self._clock = clock

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    def _path(self, key: str) -> Path:
        return self._cache_dir / f"{key}.json"

    def get(self, key: str, ttl_seconds: float) -> tuple[Any, bool]:
        """
        Look up a cached value.

        Returns:
            ``(value, True)`` for a fresh entry, ``(None, False)`` otherwise.
        """
        path = self._path(key)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("Cache miss for %s: no entry", key)
            return None, False
        except OSError as exc:
            logger.warning("Cannot read cache entry %s: %s", path, exc)
            return None, False

        try:
            entry = json.loads(raw)
        except ValueError as exc:
            logger.warning("Ignoring corrupt cache entry %s: %s", path, exc)
            return None, False

        if not isinstance(entry, dict) or "data" not in entry:
            logger.warning("Ignoring malformed cache entry %s", path)
            return None, False

        written_at = _parse_timestamp(entry.get("timestamp"))
        if written_at is None:
            logger.warning("Ignoring cache entry %s with invalid timestamp", path)
            return None, False

        age = (self._clock() - written_at).total_seconds()
        if age > ttl_seconds:
            logger.debug("Cache miss for %s: expired %.0fs ago", key, age - ttl_seconds)
            return None, False

        logger.debug("Cache hit for %s (age %.0fs)", key, age)
        return entry["data"], True

    def put(self, key: str, value: Any) -> None:
        """
        Write a value, replacing any previous entry for the key.

        Raises:
            CacheError: If the value cannot be serialized or written.
        """
        entry = {"data": value, "timestamp": self._clock().isoformat()}
        path = self._path(key)
        try:
            payload = json.dumps(entry)
            self._cache_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(payload, encoding="utf-8")
        except (OSError, TypeError, ValueError) as exc:
            raise CacheError(f"failed to write cache entry {path}: {exc}") from exc

    def clear(self) -> None:
        """
        Remove every cached entry.

        Raises:
            CacheError: If the cache directory exists but cannot be removed.
        """
        if not self._cache_dir.exists():
            return
        try:
            shutil.rmtree(self._cache_dir)
        except OSError as exc:
            raise CacheError(f"failed to clear cache at {self._cache_dir}: {exc}") from exc
