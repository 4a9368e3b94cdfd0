"""
Command-line entry point for lnr.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys

from rich.console import Console
from rich.markup import escape

from .cache import CacheError, CacheStore
from .client import LinearApiError, LinearClient
from .config import API_KEY_ENV, Settings, default_cache_dir
from .errors import ConfigError, LnrError
from .prompts import PromptCancelled, RichPrompter
from .resolver import ReferenceDataResolver
from .session import TicketSession

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lnr",
        description="Create a Linear issue from an interactive form.",
    )
    parser.add_argument(
        "--clear-cache",
        action="store_true",
        help="clear cached teams, labels, users, states and selections, then exit",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    return parser


def _configure_logging(verbose: bool) -> None:
    level_name = "DEBUG" if verbose else os.getenv("LNR_LOG_LEVEL", "WARNING").upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _clear_cache(console: Console) -> int:
    try:
        CacheStore(default_cache_dir()).clear()
    except CacheError as exc:
        console.print(f"[red]❌ Error clearing cache: {escape(exc.message)}[/red]")
        return 1
    console.print("[green]✅ Cache cleared successfully[/green]")
    return 0


def run(argv: list[str] | None = None, console: Console | None = None) -> int:
    """Parse arguments, run the requested command and return an exit code."""
    args = _build_parser().parse_args(argv)
    console = console or Console()
    _configure_logging(args.verbose)

    if args.clear_cache:
        return _clear_cache(console)

    try:
        settings = Settings.from_env()
    except ConfigError as exc:
        console.print(f"[red]❌ {escape(exc.message)}[/red]")
        console.print("Set this to create tickets in Linear\n\nExample:")
        console.print(f"  export {API_KEY_ENV}='your-api-key'", highlight=False)
        return 1

    cache = CacheStore(settings.cache_dir)
    with LinearClient(
        settings.api_key,
        url=settings.api_url,
        timeout_seconds=settings.http_timeout_seconds,
    ) as client:
        resolver = ReferenceDataResolver(cache, client, ttl_seconds=settings.cache_ttl_seconds)
        session = TicketSession(
            resolver,
            client,
            RichPrompter(console),
            console,
            estimate_scale=settings.estimate_scale,
        )
        try:
            session.run()
        except PromptCancelled:
            console.print("Cancelled.")
            return 1
        except LinearApiError as exc:
            console.print(f"[red]❌ Error creating ticket: {escape(exc.message)}[/red]")
            return 1
        except LnrError as exc:
            console.print(f"[red]❌ {escape(exc.message)}[/red]")
            return 1
    return 0


def main() -> None:
    sys.exit(run())
