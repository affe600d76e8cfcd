from __future__ import annotations

# Orchestrator for "most visited places":
# - optional history filters (day / date range)
# - greedy clustering (placetrail.places.clustering)
# - home/work exclusion + ranking (placetrail.places.geofence)
#
# Everything here is pure and synchronous; the caller owns loading and rendering.

import logging
from typing import Sequence

from placetrail.config.settings import Settings, get_settings
from placetrail.domain.models import ClusterOptions, PlaceCluster, TrackPoint
from placetrail.history.filters import filter_by_date_range, filter_by_day
from placetrail.places.clustering import cluster_points
from placetrail.places.geofence import exclude_home_places, rank_places

logger = logging.getLogger(__name__)


def default_cluster_options(settings: Settings | None = None) -> ClusterOptions:
    """Build `ClusterOptions` from the `places` settings section."""
    settings = settings or get_settings()
    p = settings.places
    return ClusterOptions(
        distance_threshold_km=p.distance_threshold_km,
        limit=p.limit,
        exclude_home_geofence=p.exclude_home_geofence,
        geofence_radius_km=p.geofence_radius_km,
        exclude_top_n=p.exclude_top_n,
    )


def _apply_filters(points: Sequence[TrackPoint], options: ClusterOptions) -> list[TrackPoint]:
    if options.day:
        return filter_by_day(points, options.day)
    if options.start_date or options.end_date:
        return filter_by_date_range(points, options.start_date, options.end_date)
    return list(points)


def cluster_places(
    points: Sequence[TrackPoint],
    options: ClusterOptions | None = None,
    *,
    settings: Settings | None = None,
) -> list[PlaceCluster]:
    """Return the most visited places, excluding home/work and their surroundings."""
    settings = settings or get_settings()
    options = options or default_cluster_options(settings)

    selected = _apply_filters(points, options)
    clusters = cluster_points(selected, distance_threshold_km=options.distance_threshold_km)

    if not options.exclude_home_geofence:
        result = rank_places(clusters, options.limit)
    else:
        result = exclude_home_places(
            clusters,
            exclude_top_n=options.exclude_top_n,
            geofence_radius_km=options.geofence_radius_km,
            merge_radius_km=settings.places.merge_radius_km,
            limit=options.limit,
        )

    logger.info(
        "Most visited places: %d points -> %d clusters -> %d returned",
        len(selected),
        len(clusters),
        len(result),
    )
    return result
