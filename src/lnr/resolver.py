"""
Reference-data resolution: disk cache first, Linear API on miss.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Protocol

from .cache import SELECTIONS_KEY, TEAMS_KEY, CacheError, CacheStore, team_key
from .client import LinearApiError
from .config import DEFAULT_CACHE_TTL_SECONDS
from .errors import LnrError
from .models import (
    DecodeError,
    Label,
    Team,
    User,
    UserSelections,
    WorkflowState,
    decode_list,
    encode_list,
)

logger = logging.getLogger(__name__)


class ResolutionError(LnrError):
    """Raised when reference data cannot be fetched from Linear."""

    def __init__(self, kind: str, cause: LinearApiError):
        super().__init__("fetch_failed", f"Error fetching {kind}: {cause.message}")
        self.kind = kind
        self.cause = cause


class ReferenceSource(Protocol):
    def list_teams(self) -> list[Team]: ...

    def list_labels(self, team_id: str) -> list[Label]: ...

    def list_users(self, team_id: str) -> list[User]: ...

    def list_states(self, team_id: str) -> list[WorkflowState]: ...


class ReferenceDataResolver:
    """Resolves teams, labels, users and workflow states through the cache."""

    def __init__(
        self,
        cache: CacheStore,
        source: ReferenceSource,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
    ):
        self._cache = cache
        self._source = source
        self._ttl_seconds = ttl_seconds

    def _resolve(
        self,
        key: str,
        kind: str,
        record_type: type,
        fetch: Callable[[], list[Any]],
    ) -> list[Any]:
        payload, found = self._cache.get(key, self._ttl_seconds)
        if found:
            return decode_list(payload, record_type, kind)

        try:
            records = fetch()
        except LinearApiError as exc:
            raise ResolutionError(kind, exc) from exc

        try:
            self._cache.put(key, encode_list(records))
        except CacheError as exc:
            logger.warning("Could not cache %s: %s", kind, exc)
        return records

    def teams(self) -> list[Team]:
        return self._resolve(TEAMS_KEY, "teams", Team, self._source.list_teams)

    def labels(self, team_id: str) -> list[Label]:
        return self._resolve(
            team_key("labels", team_id), "labels", Label, lambda: self._source.list_labels(team_id)
        )

    def users(self, team_id: str) -> list[User]:
        return self._resolve(
            team_key("users", team_id), "users", User, lambda: self._source.list_users(team_id)
        )

    def states(self, team_id: str) -> list[WorkflowState]:
        return self._resolve(
            team_key("states", team_id),
            "workflow states",
            WorkflowState,
            lambda: self._source.list_states(team_id),
        )

    def load_selections(self) -> UserSelections | None:
        payload, found = self._cache.get(SELECTIONS_KEY, self._ttl_seconds)
        if not found:
            return None
        try:
            return UserSelections.from_record(payload)
        except DecodeError as exc:
            logger.warning("Ignoring cached selections: %s", exc.message)
            return None

    def save_selections(self, selections: UserSelections) -> None:
        try:
            self._cache.put(SELECTIONS_KEY, selections.to_record())
        except CacheError as exc:
            logger.warning("Could not save selections: %s", exc)


def choose_cached_team(teams: list[Team], cached_team_id: str) -> str | None:
    """Return the cached team id if it is still among ``teams``, else None."""
    if not cached_team_id:
        return None
    if any(team.id == cached_team_id for team in teams):
        return cached_team_id
    logger.info("Cached team %s no longer exists; asking again", cached_team_id)
    return None
