"""Command line interface for the LaLiga Fantasy market trends tools."""

import argparse
import json
import logging
import sys
from pathlib import Path

from .config import TrendsConfig
from .data.player_name_matcher import debug_player_match, extract_players
from .data.reconcile import annotate_roster, annotate_trends, annotations_to_frame
from .data.trend_store import TREND_FILTERS, TREND_SORTS, TrendStore


def build_store(args) -> TrendStore:
    """Create a trend store from CLI flags layered over the environment."""
    config = TrendsConfig.from_env(
        cache_dir=args.cache_dir,
        market_url=args.url,
        proxy_url=args.proxy_url,
    )
    return TrendStore(config=config)


def load_roster(path: str) -> list:
    with open(path, "r", encoding="utf-8") as f:
        payload = json.load(f)
    players = extract_players(payload)
    if not players:
        raise ValueError(f"No players found in {path} (expected a list, 'data' or 'elements')")
    return players


def _ensure_ready(store: TrendStore) -> bool:
    result = store.initialize()
    if not result.success:
        print(f"Market trends unavailable: {result.error}")
        return False
    print(f"Market trends ready: {result.players_count} players (source: {result.source})")
    return True


def refresh_trends(args):
    """Force a fresh scrape of the market page."""
    store = build_store(args)
    store.load()
    result = store.refresh()
    print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    return 0 if result.success else 1


def show_stats(args):
    store = build_store(args)
    if not _ensure_ready(store):
        return 1
    print(json.dumps(store.get_market_stats().to_dict(), indent=2))
    return 0


def show_trending(args):
    store = build_store(args)
    if not _ensure_ready(store):
        return 1

    players = store.get_trending_players(
        filter=args.filter,
        sort_by=args.sort_by,
        limit=args.limit,
        position=args.position,
    )
    for record in players:
        print(
            f"{record.tendencia} {record.original_name:<28} {record.original_team_name:<16} "
            f"{record.valor:>12,} {record.cambio_texto:>8} ({record.porcentaje:+.2f}%)"
        )
    return 0


def lookup_trend(args):
    store = build_store(args)
    if not _ensure_ready(store):
        return 1

    if args.debug:
        report = store.inspect_name(args.name)
        print(f"Exact cache entries:   {[key for key, _ in report['exact_matches']]}")
        print(f"Partial cache entries: {[key for key, _ in report['partial_matches']]}")

    record = store.get_player_market_trend(args.name, args.position, args.team)
    if record is None:
        print(f"No market trend found for {args.name!r}")
        return 1
    print(json.dumps(record.to_dict(), indent=2, ensure_ascii=False))
    return 0


def match_player(args):
    """Resolve a name against a roster file, without touching the network."""
    try:
        players = load_roster(args.roster)
    except (OSError, ValueError) as e:
        print(f"Error loading roster: {e}")
        return 1

    match, near = debug_player_match(args.name, args.position, players, args.team)
    if match is None:
        print(f"No roster match for {args.name!r}")
        for candidate in near:
            print(f"  near: {candidate.get('nickname') or candidate.get('name')} (id={candidate.get('id')})")
        return 1
    print(json.dumps(match, indent=2, ensure_ascii=False))
    return 0


def annotate(args):
    """Write roster/trend pairs to CSV or JSON."""
    try:
        players = load_roster(args.roster)
    except (OSError, ValueError) as e:
        print(f"Error loading roster: {e}")
        return 1

    store = build_store(args)
    if not _ensure_ready(store):
        return 1

    if args.mode == "trends":
        annotations = annotate_trends(store, players, limit=args.limit)
    else:
        annotations = annotate_roster(store, players)

    frame = annotations_to_frame(annotations)
    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    if output.suffix.lower() == ".json":
        frame.to_json(output, orient="records", force_ascii=False, indent=2)
    else:
        frame.to_csv(output, index=False)

    matched = int(frame["matched"].sum()) if len(frame) else 0
    print(f"✓ Wrote {len(frame)} rows ({matched} matched) to {output}")
    return 0


def clear_cache(args):
    store = build_store(args)
    store.clear_cache()
    print(f"✓ Cleared market trends snapshot in {store.config.cache_dir}")
    return 0


def _add_store_arguments(parser):
    parser.add_argument("--cache-dir", default=None, help="Snapshot directory (default: $MARKET_TRENDS_CACHE_DIR or data/cache)")
    parser.add_argument("--url", default=None, help="Market page URL override")
    parser.add_argument("--proxy-url", default=None, help="Proxy prefix; the market URL is appended url-encoded")


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="LaLiga Fantasy market trends - scrape value changes and match them to roster players"
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    refresh_parser = subparsers.add_parser("refresh", help="Force a fresh scrape of the market page")
    _add_store_arguments(refresh_parser)

    stats_parser = subparsers.add_parser("stats", help="Rising/falling/stable market summary")
    _add_store_arguments(stats_parser)

    trending_parser = subparsers.add_parser("trending", help="List players by market movement")
    _add_store_arguments(trending_parser)
    trending_parser.add_argument("--filter", choices=TREND_FILTERS, default="all", help="Trend direction filter")
    trending_parser.add_argument("--sort-by", choices=TREND_SORTS, default="value_change", help="Sort order")
    trending_parser.add_argument("--limit", type=int, default=20, help="Maximum rows (default: 20)")
    trending_parser.add_argument("--position", default=None, help="Position code (1-4) or label")

    lookup_parser = subparsers.add_parser("lookup", help="Market trend for one player name")
    _add_store_arguments(lookup_parser)
    lookup_parser.add_argument("name", help="Player name as written by any source")
    lookup_parser.add_argument("--position", default=None, help="Position code (1-4) or label")
    lookup_parser.add_argument("--team", default=None, help="Team name")
    lookup_parser.add_argument("--debug", action="store_true", help="Show related cache entries")

    match_parser = subparsers.add_parser("match", help="Resolve a name against a roster JSON file")
    match_parser.add_argument("name", help="Player name as written by the other source")
    match_parser.add_argument("--roster", "-r", required=True, help="Roster JSON (list, 'data' or 'elements')")
    match_parser.add_argument("--position", default=None, help="Position code (1-4) or label")
    match_parser.add_argument("--team", default=None, help="Team name")

    annotate_parser = subparsers.add_parser("annotate", help="Pair roster players with market trends")
    _add_store_arguments(annotate_parser)
    annotate_parser.add_argument("--roster", "-r", required=True, help="Roster JSON (list, 'data' or 'elements')")
    annotate_parser.add_argument("--output", "-o", default="annotated_roster.csv", help="Output .csv or .json")
    annotate_parser.add_argument(
        "--mode",
        choices=["roster", "trends"],
        default="roster",
        help="roster: one row per roster player; trends: one row per trend record",
    )
    annotate_parser.add_argument("--limit", type=int, default=600, help="Trend rows in trends mode (default: 600)")

    clear_parser = subparsers.add_parser("clear-cache", help="Delete the persisted snapshot")
    _add_store_arguments(clear_parser)

    args = parser.parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

    if args.command == "refresh":
        return refresh_trends(args)
    elif args.command == "stats":
        return show_stats(args)
    elif args.command == "trending":
        return show_trending(args)
    elif args.command == "lookup":
        return lookup_trend(args)
    elif args.command == "match":
        return match_player(args)
    elif args.command == "annotate":
        return annotate(args)
    elif args.command == "clear-cache":
        return clear_cache(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
