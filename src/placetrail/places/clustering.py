from __future__ import annotations

# Greedy place clustering.
#
# Points with coordinates are assigned, in input order, to the first existing cluster whose
# *current* centroid (mean of the members assigned so far) is within the distance threshold;
# otherwise they found a new cluster. Membership therefore depends on input order: the same
# set of points processed in another order can yield different clusters. Callers that need
# reproducible results must keep one authoritative ordering of the history.
#
# Points without coordinates are grouped by their normalized label and never merge with
# coordinate clusters.

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Sequence

from placetrail.core.geo import GeoPoint, is_within_km, mean_point
from placetrail.core.time import is_iso_date, start_time
from placetrail.domain.models import PlaceCluster, TimeRange, TrackPoint

logger = logging.getLogger(__name__)

UNKNOWN_LABEL_BUCKET = "unknown"


@dataclass
class _Bucket:
    key: str
    members: list[TrackPoint] = field(default_factory=list)

    def geo_points(self) -> list[GeoPoint]:
        return [
            GeoPoint(lat=p.latitude, lon=p.longitude)
            for p in self.members
            if p.latitude is not None and p.longitude is not None
        ]

    def centroid(self) -> GeoPoint | None:
        # Recomputed from the current members on every call.
        return mean_point(self.geo_points())


def normalize_label(label: str | None) -> str:
    """Trim + lower-case a label; empty labels share the `unknown` bucket."""
    text = (label or "").strip().lower()
    return text or UNKNOWN_LABEL_BUCKET


def _coordinate_key(lat: float, lon: float) -> str:
    return f"{lat:.6f},{lon:.6f}"


def _unique_key(base: str, index: int, used: set[str]) -> str:
    # A centroid can drift away from its founding point, so a later point at the same
    # coordinates may found another cluster; suffix the creation index in that case.
    key = base if base not in used else f"{base}#{index}"
    used.add(key)
    return key


def _assign_geo_points(points: Sequence[TrackPoint], threshold_km: float) -> list[_Bucket]:
    buckets: list[_Bucket] = []
    used_keys: set[str] = set()
    for p in points:
        here = GeoPoint(lat=p.latitude, lon=p.longitude)
        target: _Bucket | None = None
        for bucket in buckets:
            c = bucket.centroid()
            if c is None:
                continue
            if is_within_km(c, here, threshold_km):
                target = bucket
                break
        if target is None:
            key = _unique_key(_coordinate_key(p.latitude, p.longitude), len(buckets), used_keys)
            buckets.append(_Bucket(key=key, members=[p]))
        else:
            target.members.append(p)
    return buckets


def _assign_label_points(points: Sequence[TrackPoint]) -> list[_Bucket]:
    by_label: dict[str, _Bucket] = {}
    for p in points:
        name = normalize_label(p.label)
        bucket = by_label.get(name)
        if bucket is None:
            bucket = by_label[name] = _Bucket(key=f"name:{name}")
        bucket.members.append(p)
    return list(by_label.values())


def representative_label(members: Sequence[TrackPoint]) -> str | None:
    """Most frequent non-empty label; ties go to the label seen first."""
    labels = [p.label.strip() for p in members if p.label and p.label.strip()]
    if not labels:
        return None
    counts = Counter(labels)
    best = max(counts.values())
    # Counter preserves first-insertion order.
    return next(label for label, n in counts.items() if n == best)


def _finalize(bucket: _Bucket) -> PlaceCluster:
    members = bucket.members
    c = bucket.centroid()

    visit_dates = sorted({p.date.strip() for p in members if is_iso_date(p.date)})
    times = [t for t in (start_time(p.time) for p in members) if t is not None]
    time_range = TimeRange(min=min(times), max=max(times)) if times else None

    return PlaceCluster(
        key=bucket.key,
        centroid_lat=c.lat if c else None,
        centroid_lon=c.lon if c else None,
        representative_label=representative_label(members),
        members=list(members),
        visit_count=len(members),
        visit_dates=visit_dates,
        time_range=time_range,
        all_times=times,
    )


def cluster_points(
    points: Sequence[TrackPoint],
    *,
    distance_threshold_km: float = 0.1,
) -> list[PlaceCluster]:
    """Group track points into places, most visited first.

    Args:
        points: Track points in their authoritative order (order affects membership).
        distance_threshold_km: Max distance from a cluster's current centroid to join it.

    Returns:
        Clusters sorted by descending visit count; ties keep creation order
        (coordinate clusters first, then label buckets).
    """
    if not points:
        return []

    geo_points = [p for p in points if p.is_geolocated]
    label_points = [p for p in points if not p.is_geolocated]

    buckets = _assign_geo_points(geo_points, distance_threshold_km)
    buckets.extend(_assign_label_points(label_points))

    clusters = [_finalize(b) for b in buckets]
    clusters.sort(key=lambda c: -c.visit_count)

    logger.debug(
        "Clustered %d points (%d geolocated) into %d places",
        len(points),
        len(geo_points),
        len(clusters),
    )
    return clusters
