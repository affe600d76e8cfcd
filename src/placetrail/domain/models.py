"""
Domain models (Pydantic).

These types represent the stable "contract" between the engines and their collaborators:
- parsed location history (`TrackPoint`)
- clustering input knobs (`ClusterOptions`) and output (`PlaceCluster`)
- incremental merge output (`MergeReport`)

Contract violations (e.g. a point with only one coordinate) are rejected here, at
construction time, so the clustering and dedup code can stay exception-free.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

DedupKey = tuple[str, str, float | None, float | None]


class TrackPoint(BaseModel):
    """One observed location event."""

    date: str = ""
    time: str = ""
    label: str = ""
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    source_key: str = ""
    id: str | None = None

    @model_validator(mode="after")
    def _validate_coordinates(self) -> "TrackPoint":
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must both be set or both be missing")
        return self

    @property
    def is_geolocated(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def dedup_key(self) -> DedupKey:
        """Identity of the observation itself, independent of the batch it came from."""
        return (self.date, self.time, self.latitude, self.longitude)


class TimeRange(BaseModel):
    """Earliest and latest visit start time (`HH:MM`)."""

    min: str
    max: str


class PlaceCluster(BaseModel):
    """A group of track points believed to represent one physical place."""

    key: str
    centroid_lat: float | None = None
    centroid_lon: float | None = None
    representative_label: str | None = None
    members: list[TrackPoint] = Field(default_factory=list)
    visit_count: int = 0
    visit_dates: list[str] = Field(default_factory=list)
    time_range: TimeRange | None = None
    all_times: list[str] = Field(default_factory=list)

    @property
    def has_centroid(self) -> bool:
        return self.centroid_lat is not None and self.centroid_lon is not None


class ClusterOptions(BaseModel):
    """Knobs for the most-visited-places pipeline."""

    distance_threshold_km: float = Field(0.1, gt=0)
    limit: int = Field(3, ge=0)
    exclude_home_geofence: bool = True
    geofence_radius_km: float = Field(0.2, ge=0)
    exclude_top_n: int = Field(2, ge=0)

    # Optional history filters applied before clustering.
    start_date: str | None = None
    end_date: str | None = None
    day: str | None = None


class MergeReport(BaseModel):
    """Outcome of merging a batch of new points into the existing history."""

    admitted_count: int = 0
    skipped_count: int = 0
    total_before: int = 0
    total_after: int = 0
