# src/main.py - v3
"""CLI entry point for cache maintenance.

Usage:
    smartcache clean-expired
    smartcache invalidate <subject_id> [--source SOURCE]
    smartcache show <subject_id> <source>

``clean-expired`` is meant to be scheduled by cron. Configuration is read
from the environment / .env (see config.settings). Every command needs a
shared backend; with STORE_BACKEND=memory they exit 1.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from smartcache.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        from smartcache.config.settings import Settings

        settings = Settings()
        _setup_logging(settings, args.verbose)
        return asyncio.run(_run(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="smartcache",
        description=f"smartcache v{__version__} - TTL read-through cache maintenance",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- clean-expired ---
    p_clean = subparsers.add_parser(
        "clean-expired", help="Delete every entry older than the TTL",
    )
    p_clean.set_defaults(func=_cmd_clean_expired)

    # --- invalidate ---
    p_invalidate = subparsers.add_parser(
        "invalidate", help="Drop cached entries for a subject",
    )
    p_invalidate.add_argument("subject_id", help="Subject identifier (e.g. product id)")
    p_invalidate.add_argument(
        "-s", "--source", default=None,
        help="Only drop this source (default: every source of the subject)",
    )
    p_invalidate.set_defaults(func=_cmd_invalidate)

    # --- show ---
    p_show = subparsers.add_parser(
        "show", help="Print the cached entry for a subject/source pair",
    )
    p_show.add_argument("subject_id", help="Subject identifier")
    p_show.add_argument("source", help="Source namespace")
    p_show.set_defaults(func=_cmd_show)

    return parser


async def _run(args: argparse.Namespace, settings) -> int:
    from smartcache.cache.read_through import create_cache

    if settings.store_backend == "memory":
        # Each CLI process would start with a new, empty store.
        logger.error(
            "STORE_BACKEND=memory holds no data outside the running process; "
            "point STORE_BACKEND at sqlite/redis/supabase to run '%s'",
            args.command,
        )
        return 1

    cache = create_cache(settings)
    async with cache.store:
        return await args.func(args, cache)


async def _cmd_clean_expired(args: argparse.Namespace, cache) -> int:
    """Bulk-delete expired entries."""
    await cache.clean_expired()
    return 0


async def _cmd_invalidate(args: argparse.Namespace, cache) -> int:
    """Invalidate one subject (optionally one source)."""
    await cache.invalidate(args.subject_id, args.source)
    target = args.subject_id if args.source is None else f"{args.subject_id}/{args.source}"
    print(f"Invalidated {target}")
    return 0


async def _cmd_show(args: argparse.Namespace, cache) -> int:
    """Print the authoritative entry as JSON."""
    entry = await cache.peek(args.subject_id, args.source)
    if entry is None:
        logger.error("No cache entry for %s/%s", args.subject_id, args.source)
        return 1

    output = {
        "subject_id": entry.subject_id,
        "source": entry.source,
        "updated_at": entry.updated_at.isoformat(),
        "status": "fresh" if cache.is_fresh(entry) else "stale",
        "payload": entry.payload,
    }
    print(json.dumps(output, indent=2, default=str))
    return 0


def _setup_logging(settings, verbose: bool) -> None:
    """Configure logging from settings; --verbose forces DEBUG."""
    from smartcache.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
