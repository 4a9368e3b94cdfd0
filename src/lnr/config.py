"""
Runtime configuration for lnr.

Everything is read from the environment once, in ``cli.main``, and handed to
the cache, client and session as explicit values.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ConfigError
from .estimates import DEFAULT_SCALE, SCALES

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.linear.app/graphql"
DEFAULT_CACHE_TTL_SECONDS = 24 * 60 * 60
DEFAULT_HTTP_TIMEOUT_SECONDS = 30.0

API_KEY_ENV = "LINEAR_API_KEY"


def default_cache_dir() -> Path:
    override = os.getenv("LNR_CACHE_DIR")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".cache" / "lnr"


def _parse_float_env(var_name: str, default: float) -> float:
    raw = os.getenv(var_name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s value %r; using %s", var_name, raw, default)
        return default
    if value <= 0:
        logger.warning("Ignoring non-positive %s value %r; using %s", var_name, raw, default)
        return default
    return value


def _parse_scale_env() -> str:
    raw = os.getenv("LNR_ESTIMATE_SCALE", DEFAULT_SCALE).strip().lower()
    if raw not in SCALES:
        logger.warning(
            "Ignoring unknown LNR_ESTIMATE_SCALE %r; expected one of: %s",
            raw,
            ", ".join(SCALES),
        )
        return DEFAULT_SCALE
    return raw


@dataclass(frozen=True)
class Settings:
    api_key: str
    api_url: str = DEFAULT_API_URL
    cache_dir: Path = field(default_factory=default_cache_dir)
    cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS
    http_timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS
    estimate_scale: str = DEFAULT_SCALE

    @classmethod
    def from_env(cls) -> Settings:
        """
        Build settings from environment variables.

        Raises:
            ConfigError: If LINEAR_API_KEY is not set.
        """
        api_key = os.getenv(API_KEY_ENV, "").strip()
        if not api_key:
            raise ConfigError(f"{API_KEY_ENV} environment variable not set")

        return cls(
            api_key=api_key,
            api_url=os.getenv("LINEAR_API_URL", DEFAULT_API_URL),
            cache_dir=default_cache_dir(),
            cache_ttl_seconds=_parse_float_env("LNR_CACHE_TTL_SECONDS", DEFAULT_CACHE_TTL_SECONDS),
            http_timeout_seconds=_parse_float_env("LNR_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT_SECONDS),
            estimate_scale=_parse_scale_env(),
        )
