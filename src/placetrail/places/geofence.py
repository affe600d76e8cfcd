"""
Home/work exclusion for ranked place lists.

The most visited places are assumed to be home and work. They are removed outright, and
every other place within a geofence around them is removed too, so the remaining ranking
shows where a person goes *besides* their daily anchors.

Steps:
1. The first `exclude_top_n` clusters of the sorted list are excluded by position.
2. Each excluded cluster with a centroid becomes a `GeofenceCenter` weighted by visit count.
3. Centers within `merge_radius_km` of each other are consolidated in one greedy pass.
4. Remaining clusters with a centroid inside any center's geofence are dropped;
   label-only clusters cannot be located and are never geofenced.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from placetrail.core.geo import GeoPoint, is_within_km
from placetrail.domain.models import PlaceCluster

logger = logging.getLogger(__name__)

MERGE_RADIUS_KM = 0.5


@dataclass(frozen=True)
class GeofenceCenter:
    """Center of one exclusion zone; `weight` is the visit count behind it."""

    lat: float
    lon: float
    weight: int

    @property
    def point(self) -> GeoPoint:
        return GeoPoint(lat=self.lat, lon=self.lon)


def build_geofence_centers(clusters: Sequence[PlaceCluster]) -> list[GeofenceCenter]:
    return [
        GeofenceCenter(lat=c.centroid_lat, lon=c.centroid_lon, weight=c.visit_count)
        for c in clusters
        if c.has_centroid
    ]


def _weighted_center(group: Sequence[GeofenceCenter]) -> GeofenceCenter:
    # Weights are visit counts, so the total is always positive.
    total = sum(c.weight for c in group)
    return GeofenceCenter(
        lat=sum(c.lat * c.weight for c in group) / total,
        lon=sum(c.lon * c.weight for c in group) / total,
        weight=total,
    )


def merge_geofence_centers(
    centers: Sequence[GeofenceCenter],
    merge_radius_km: float = MERGE_RADIUS_KM,
) -> list[GeofenceCenter]:
    """Consolidate nearby centers into visit-weighted centroids.

    Single greedy pass: each unprocessed center collects the later unprocessed centers within
    `merge_radius_km` of *itself*. Groups are final once formed, so two output centers may
    still lie within the merge radius of each other.
    """
    processed: set[int] = set()
    merged: list[GeofenceCenter] = []
    for i, current in enumerate(centers):
        if i in processed:
            continue
        processed.add(i)
        group = [current]
        for j in range(i + 1, len(centers)):
            if j in processed:
                continue
            other = centers[j]
            if is_within_km(current.point, other.point, merge_radius_km):
                group.append(other)
                processed.add(j)
        merged.append(_weighted_center(group) if len(group) > 1 else current)
    return merged


def is_inside_any_geofence(
    cluster: PlaceCluster, centers: Sequence[GeofenceCenter], radius_km: float
) -> bool:
    if not cluster.has_centroid:
        return False
    where = GeoPoint(lat=cluster.centroid_lat, lon=cluster.centroid_lon)
    return any(is_within_km(c.point, where, radius_km) for c in centers)


def rank_places(clusters: Sequence[PlaceCluster], limit: int) -> list[PlaceCluster]:
    """Truncate an already sorted cluster list to `limit` entries."""
    return list(clusters[: max(0, int(limit))])


def exclude_home_places(
    clusters: Sequence[PlaceCluster],
    *,
    exclude_top_n: int = 2,
    geofence_radius_km: float = 0.2,
    merge_radius_km: float = MERGE_RADIUS_KM,
    limit: int = 3,
) -> list[PlaceCluster]:
    """Drop the top-N places and their surroundings, then keep the first `limit`.

    Args:
        clusters: Clusters sorted by descending visit count.
        exclude_top_n: How many of the most visited places to treat as home/work.
        geofence_radius_km: Exclusion radius around each (merged) home/work center.
        merge_radius_km: Centers closer than this are consolidated first.
        limit: Max number of places returned.

    Returns:
        Surviving clusters in their original (descending visit count) order. Empty when
        there are no more clusters than `exclude_top_n`.
    """
    if exclude_top_n >= len(clusters):
        return []

    excluded = clusters[:exclude_top_n]
    centers = merge_geofence_centers(build_geofence_centers(excluded), merge_radius_km)

    survivors: list[PlaceCluster] = []
    fenced = 0
    for cluster in clusters[exclude_top_n:]:
        if is_inside_any_geofence(cluster, centers, geofence_radius_km):
            fenced += 1
            continue
        survivors.append(cluster)

    logger.debug(
        "Home/work exclusion: %d by rank, %d by geofence (%d centers), %d remaining",
        len(excluded),
        fenced,
        len(centers),
        len(survivors),
    )
    return rank_places(survivors, limit)
