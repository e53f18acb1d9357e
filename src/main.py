# src/main.py - v3
"""CLI entry point: inspect and maintain the roadmap cache.

Usage:
    roadmapcache lookup <profile.json>
    roadmapcache generate <user_id> <profile.json>
    roadmapcache invalidate <user_id>
    roadmapcache popular [--limit N] [--min-access N]

The memory tier only lives as long as the process, so from the CLI a lookup
effectively exercises the persistent tiers.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from roadmapcache.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        _setup_logging(verbose=True)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="roadmapcache",
        description=f"roadmapcache v{__version__} - career roadmap cache tools",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--backend", choices=["json", "sqlite", "redis"], default=None,
        help="Store backend (default: STORE_BACKEND from .env)",
    )
    parser.add_argument(
        "--store-root", type=Path, default=None,
        help="Store directory for json/sqlite backends",
    )

    subparsers = parser.add_subparsers(dest="command")

    p_lookup = subparsers.add_parser("lookup", help="Look a profile up in the cache")
    p_lookup.add_argument("profile", type=Path, help="JSON file with the user profile")
    p_lookup.set_defaults(func=_cmd_lookup)

    p_generate = subparsers.add_parser(
        "generate", help="Return a cached roadmap or generate a new one",
    )
    p_generate.add_argument("user_id", help="Owner of the roadmap")
    p_generate.add_argument("profile", type=Path, help="JSON file with the user profile")
    p_generate.set_defaults(func=_cmd_generate)

    p_invalidate = subparsers.add_parser(
        "invalidate", help="Archive all active roadmaps of a user",
    )
    p_invalidate.add_argument("user_id", help="User whose roadmaps to archive")
    p_invalidate.set_defaults(func=_cmd_invalidate)

    p_popular = subparsers.add_parser("popular", help="List the most accessed roadmaps")
    p_popular.add_argument("--limit", type=int, default=None, help="Max rows (default: CACHE_PRELOAD_LIMIT)")
    p_popular.add_argument(
        "--min-access", type=int, default=None,
        help="Minimum access count (default: CACHE_PRELOAD_MIN_ACCESS_COUNT)",
    )
    p_popular.set_defaults(func=_cmd_popular)

    return parser


async def _cmd_lookup(args: argparse.Namespace) -> int:
    """Run a cache lookup for a profile file."""
    from roadmapcache.api.facade import build_cache_service

    profile = _read_profile(args.profile)
    if profile is None:
        return 1

    cache = build_cache_service(_settings(args))
    try:
        result = await cache.lookup_detailed(profile)
    finally:
        cache.store_backend.close()

    print(f"\nCache key: {result.cache_key}")
    if not result.is_hit:
        print("  Result:   miss")
        return 0
    print(f"  Result:   {result.hit_level} hit (score {result.similarity_score:.3f})")
    _print_roadmap(result.artifact)
    return 0


async def _cmd_generate(args: argparse.Namespace) -> int:
    """Cache-first generation for one user."""
    from roadmapcache.api.facade import build_generation_service

    profile = _read_profile(args.profile)
    if profile is None:
        return 1

    service = build_generation_service(_settings(args))
    try:
        roadmap = await service.generate_roadmap(args.user_id, profile)
    finally:
        service.cache.store_backend.close()

    _print_roadmap(roadmap)
    return 0


async def _cmd_invalidate(args: argparse.Namespace) -> int:
    """Archive a user's roadmaps."""
    from roadmapcache.cache.store_factory import create_roadmap_store

    store = create_roadmap_store(_settings(args))
    try:
        archived = await store.mark_archived(args.user_id)
    finally:
        store.close()

    print(f"Archived {archived} roadmap(s) for user {args.user_id}")
    return 0


async def _cmd_popular(args: argparse.Namespace) -> int:
    """List the roadmaps a preload would pick."""
    from roadmapcache.cache.store_factory import create_roadmap_store
    from roadmapcache.core.clock import utc_now

    settings = _settings(args)
    store = create_roadmap_store(settings)
    try:
        popular = await store.find_popular(
            limit=args.limit or settings.cache_preload_limit,
            min_access_count=(
                settings.cache_preload_min_access_count
                if args.min_access is None else args.min_access
            ),
            since=utc_now() - settings.cache_ttl,
        )
    finally:
        store.close()

    print(f"\n{len(popular)} popular roadmap(s):")
    for record in popular:
        print(f"  {record.access_count:5d}  {record.cache_key}  {record.title}")
    return 0


def _settings(args: argparse.Namespace) -> Any:
    from roadmapcache.config.settings import load_settings

    overrides: dict[str, object] = {}
    if args.backend:
        overrides["store_backend"] = args.backend
    if args.store_root:
        overrides["store_root"] = args.store_root
    settings = load_settings(**overrides)
    if not args.verbose:
        # LOG_* settings drive logging unless --verbose forced debug output.
        # stdout stays reserved for command output.
        from roadmapcache.logging.logger import setup_logging_from_settings

        setup_logging_from_settings(settings, stream=sys.stderr)
    return settings


def _read_profile(path: Path) -> dict[str, Any] | None:
    if not path.exists():
        logger.error("File not found: %s", path)
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        logger.error("Invalid JSON in %s: %s", path, e)
        return None
    if not isinstance(data, dict):
        logger.error("Profile file must contain a JSON object: %s", path)
        return None
    return data


def _print_roadmap(roadmap: Any) -> None:
    """Print a short summary of a roadmap record."""
    print(f"  Roadmap:  {getattr(roadmap, 'id', '?')}")
    print(f"  Title:    {getattr(roadmap, 'title', '?')}")
    print(f"  Owner:    {getattr(roadmap, 'user_id', '?')}")
    print(f"  Version:  {getattr(roadmap, 'version', '?')}")
    print(f"  Accesses: {getattr(roadmap, 'access_count', '?')}")


def _setup_logging(verbose: bool) -> None:
    """Configure logging for CLI usage."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
