"""Build BTC-quoted spot pair lists for TradingView watchlists.

Writes one `EXCHANGE:BASEQUOTE` symbol per line to `<output>/lists/` plus a
`META.json` record describing the run.
"""
from __future__ import annotations

import argparse
import sys

from pydantic import ValidationError

from watchlist.config.settings import Settings
from watchlist.services.refresh_worker import WatchlistRefreshService


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Build per-exchange spot pair watchlists.")
    parser.add_argument("--sources", help="comma-separated exchange ids, in output order")
    parser.add_argument("--quote", help="settlement asset the pairs must be quoted in")
    parser.add_argument("--output-dir", help="root directory for lists/ and META.json")
    parser.add_argument("--max-workers", type=int, help="exchanges fetched in parallel")
    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    settings = Settings.from_env()
    overrides: dict = {}
    if args.sources:
        overrides["WATCHLIST_SOURCES"] = [s.strip().lower() for s in args.sources.split(",") if s.strip()]
    if args.quote:
        overrides["WATCHLIST_QUOTE"] = args.quote.strip().upper()
    if args.output_dir:
        overrides["WATCHLIST_OUTPUT_DIR"] = args.output_dir
    if args.max_workers is not None:
        overrides["WATCHLIST_MAX_WORKERS"] = args.max_workers
    if not overrides:
        return settings
    return Settings.model_validate({**settings.model_dump(), **overrides})


def main(argv: list[str] | None = None, *, backend=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = load_settings(args)
    except ValidationError as exc:
        print(f"[WATCHLIST][config_error] {exc}", file=sys.stderr, flush=True)
        return 1

    service = WatchlistRefreshService.from_settings(settings, backend=backend)
    try:
        service.refresh_once()
    except OSError as exc:
        print(f"[WATCHLIST][write_error] {exc}", file=sys.stderr, flush=True)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
