"""
placetrail CLI entrypoint.

This CLI is intended for quick local runs over JSON history files.
It delegates all logic to `placetrail.places.pipeline` and `placetrail.history`.
"""

from __future__ import annotations

import argparse
import json
from typing import Any

from placetrail.config.settings import get_settings
from placetrail.core.logging import configure_logging
from placetrail.domain.models import ClusterOptions, PlaceCluster
from placetrail.geocoding.labels import build_cache, label_clusters
from placetrail.history.dedup import merge_new_points
from placetrail.history.loader import load_points, save_points
from placetrail.history.stats import build_history_report
from placetrail.places.pipeline import cluster_places, default_cluster_options


def _place_summary(rank: int, place: PlaceCluster) -> str:
    parts = [f"{rank:>2}. {place.representative_label}  visits={place.visit_count}"]
    if place.visit_dates:
        parts.append(f"days={len(place.visit_dates)} ({place.visit_dates[0]}..{place.visit_dates[-1]})")
    if place.time_range:
        parts.append(f"times={place.time_range.min}-{place.time_range.max}")
    return "  ".join(parts)


def _cmd_places(args: argparse.Namespace) -> int:
    """Handle the `places` subcommand."""
    settings = get_settings()
    points = load_points(args.history)

    updates: dict[str, Any] = {}
    if args.limit is not None:
        updates["limit"] = int(args.limit)
    if args.distance_km is not None:
        updates["distance_threshold_km"] = float(args.distance_km)
    if args.geofence_km is not None:
        updates["geofence_radius_km"] = float(args.geofence_km)
    if args.exclude_top is not None:
        updates["exclude_top_n"] = int(args.exclude_top)
    if args.include_home:
        updates["exclude_home_geofence"] = False
    for name in ("start_date", "end_date", "day"):
        value = getattr(args, name)
        if value:
            updates[name] = value

    # Re-validate so CLI values get the same range checks as config values.
    options = ClusterOptions.model_validate({**default_cluster_options(settings).model_dump(), **updates})

    places = label_clusters(cluster_places(points, options, settings=settings))

    if args.json:
        payload = [p.model_dump(mode="json", exclude={"members"}) for p in places]
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return 0

    if not places:
        print("No places left after excluding home/work.")
        return 0
    print("Most visited places:")
    for i, place in enumerate(places, start=1):
        print(_place_summary(i, place))
    return 0


def _cmd_merge(args: argparse.Namespace) -> int:
    """Handle the `merge` subcommand."""
    settings = get_settings()
    existing = load_points(args.history)
    incoming = load_points(args.incoming)
    source_key = args.source_key or str(args.incoming)

    admitted, report = merge_new_points(
        existing, incoming, source_key, id_length=settings.history.id_length
    )
    if args.output:
        out_path = save_points([*existing, *admitted], args.output)
        print(f"Wrote {report.total_after} points to {out_path}")

    print(json.dumps(report.model_dump(mode="json"), indent=2))
    return 0


def _cmd_stats(args: argparse.Namespace) -> int:
    points = load_points(args.history)
    report = build_history_report(points, routes_limit=int(args.routes))
    print(json.dumps(report, ensure_ascii=False, indent=2))
    return 0


def _cmd_purge_cache(args: argparse.Namespace) -> int:
    settings = get_settings()
    cache = build_cache(settings)
    namespace = settings.geocoding.cache_namespace
    removed = cache.purge_expired(namespace, ttl_seconds=settings.geocoding.cache_ttl_seconds)
    print(f"Removed {removed} expired entries from {cache.base_dir / namespace}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the placetrail CLI."""
    parser = argparse.ArgumentParser(prog="placetrail")
    sub = parser.add_subparsers(dest="command", required=True)

    pl = sub.add_parser("places", help="Most visited places, excluding home/work and surroundings.")
    pl.add_argument("--history", required=True, help="History JSON file.")
    pl.add_argument("--limit", type=int, default=None)
    pl.add_argument("--distance-km", type=float, default=None, help="Clustering distance threshold.")
    pl.add_argument("--geofence-km", type=float, default=None, help="Exclusion radius around home/work.")
    pl.add_argument("--exclude-top", type=int, default=None, help="How many top places count as home/work.")
    pl.add_argument("--include-home", action="store_true", help="Disable home/work exclusion.")
    pl.add_argument("--start-date", dest="start_date", default=None, help="YYYY-MM-DD (inclusive)")
    pl.add_argument("--end-date", dest="end_date", default=None, help="YYYY-MM-DD (inclusive)")
    pl.add_argument("--day", default=None, help="Only this YYYY-MM-DD day (overrides the range)")
    pl.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    pl.set_defaults(func=_cmd_places)

    mg = sub.add_parser("merge", help="Merge newly parsed points into a history file, skipping duplicates.")
    mg.add_argument("--history", required=True, help="Existing history JSON file.")
    mg.add_argument("--incoming", required=True, help="New points JSON file.")
    mg.add_argument("--source-key", default=None, help="Batch identifier (defaults to the incoming path).")
    mg.add_argument("--output", default=None, help="Write the merged history here.")
    mg.set_defaults(func=_cmd_merge)

    st = sub.add_parser("stats", help="History statistics and data quality issues (JSON).")
    st.add_argument("--history", required=True, help="History JSON file.")
    st.add_argument("--routes", type=int, default=5, help="How many busiest days to list.")
    st.set_defaults(func=_cmd_stats)

    pc = sub.add_parser("purge-cache", help="Delete expired reverse-geocoding cache entries.")
    pc.set_defaults(func=_cmd_purge_cache)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m placetrail.cli`."""
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    func: Any = getattr(args, "func")
    return int(func(args))


if __name__ == "__main__":
    raise SystemExit(main())
