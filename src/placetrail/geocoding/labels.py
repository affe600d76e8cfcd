"""
Readable labels for places.

Reverse geocoding (coordinates -> street address) is provided by a collaborator through the
small `ReverseGeocoder` protocol; no HTTP client ships with this package. This module:
- decides when a stored label is good enough to show as-is,
- wraps any geocoder with an explicit, injected `FileCache` (TTL eviction, stale-if-error),
- falls back to formatted coordinates, then to a fixed placeholder.
"""

from __future__ import annotations

import logging
import re
from typing import Protocol, Sequence

from placetrail.config.settings import GeocodingSettings, Settings
from placetrail.core.cache import FileCache, record_cache_stats
from placetrail.core.env import resolve_project_path
from placetrail.domain.models import PlaceCluster

logger = logging.getLogger(__name__)

UNKNOWN_LOCATION = "Unknown location"

# Labels some exporters write when they have no real name for a point.
PLACEHOLDER_LABELS = frozenset(
    {
        "unknown",
        "unknown location",
        "ubicación sin nombre",
        "ubicación desconocida",
    }
)
_COORDINATE_LABEL_RE = re.compile(r"^-?\d+\.\d+,\s*-?\d+\.\d+$")


class ReverseGeocoder(Protocol):
    def reverse(self, lat: float, lon: float) -> str | None:
        """Return a readable address for the coordinates, or None if unknown."""
        ...


def is_meaningful_label(label: str | None) -> bool:
    text = (label or "").strip()
    if not text:
        return False
    if text.lower() in PLACEHOLDER_LABELS:
        return False
    return not _COORDINATE_LABEL_RE.match(text)


def format_coordinates(lat: float, lon: float, decimals: int = 6) -> str:
    return f"{lat:.{decimals}f}, {lon:.{decimals}f}"


class CachedReverseGeocoder:
    """A `ReverseGeocoder` that memoizes another one in a `FileCache`."""

    def __init__(
        self,
        inner: ReverseGeocoder,
        cache: FileCache,
        settings: GeocodingSettings | None = None,
    ):
        self._inner = inner
        self._cache = cache
        self._settings = settings or GeocodingSettings()

    def _key(self, lat: float, lon: float) -> str:
        d = self._settings.coordinate_decimals
        return f"{lat:.{d}f},{lon:.{d}f}"

    def reverse(self, lat: float, lon: float) -> str | None:
        return self._cache.get_or_set(
            self._settings.cache_namespace,
            self._key(lat, lon),
            lambda: self._inner.reverse(lat, lon),
            ttl_seconds=self._settings.cache_ttl_seconds,
            stale_if_error=self._settings.stale_if_error,
        )

    def purge(self) -> int:
        """Evict expired lookups."""
        return self._cache.purge_expired(
            self._settings.cache_namespace, ttl_seconds=self._settings.cache_ttl_seconds
        )


def build_cache(settings: Settings) -> FileCache:
    # Relative cache dirs are anchored at the project root, not the working directory.
    cache_dir = resolve_project_path(settings.cache.dir)
    return FileCache(
        cache_dir,
        enabled=settings.cache.enabled,
        default_ttl_seconds=settings.cache.default_ttl_seconds,
    )


def build_reverse_geocoder(inner: ReverseGeocoder, settings: Settings) -> CachedReverseGeocoder:
    """Wrap `inner` in the configured on-disk cache."""
    return CachedReverseGeocoder(inner, build_cache(settings), settings.geocoding)


def readable_label(
    label: str | None,
    lat: float | None,
    lon: float | None,
    geocoder: ReverseGeocoder | None = None,
    *,
    decimals: int = 6,
) -> str:
    """Best human-readable name for a point or place.

    Order: meaningful stored label, reverse-geocoded address, formatted coordinates,
    `UNKNOWN_LOCATION`. Geocoder failures are logged and fall through to coordinates.
    """
    if is_meaningful_label(label):
        return label.strip()

    if lat is None or lon is None:
        return UNKNOWN_LOCATION

    if geocoder is not None:
        try:
            address = geocoder.reverse(lat, lon)
        except Exception as exc:
            logger.warning("Reverse geocoding failed for %s: %s", format_coordinates(lat, lon), exc)
            address = None
        if address and address.strip():
            return address.strip()

    return format_coordinates(lat, lon, decimals)


def label_clusters(
    clusters: Sequence[PlaceCluster],
    geocoder: ReverseGeocoder | None = None,
    *,
    decimals: int = 6,
) -> list[PlaceCluster]:
    """Return copies of `clusters` whose `representative_label` is always readable."""
    out: list[PlaceCluster] = []
    with record_cache_stats() as stats:
        for c in clusters:
            name = readable_label(
                c.representative_label, c.centroid_lat, c.centroid_lon, geocoder, decimals=decimals
            )
            out.append(c if name == c.representative_label else c.model_copy(update={"representative_label": name}))
    if geocoder is not None:
        logger.debug("Labeled %d places (geocoding cache: %s)", len(out), stats.as_dict())
    return out
