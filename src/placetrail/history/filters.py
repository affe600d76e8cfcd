"""History selection helpers (by day, by date range, by time-of-day window)."""

from __future__ import annotations

from typing import Sequence

from placetrail.core.time import is_iso_date, is_time_in_window, start_time
from placetrail.domain.models import TrackPoint


def filter_by_day(points: Sequence[TrackPoint], day: str) -> list[TrackPoint]:
    """Keep points recorded on exactly `day` (`YYYY-MM-DD`)."""
    return [p for p in points if p.date.strip() == day]


def filter_by_date_range(
    points: Sequence[TrackPoint], start: str | None, end: str | None
) -> list[TrackPoint]:
    """Keep points whose date lies in the inclusive `[start, end]` range.

    With no bounds the input is returned as-is. With any bound set, points without a
    valid `YYYY-MM-DD` date are dropped. ISO dates compare correctly as strings.
    """
    if not start and not end:
        return list(points)

    out: list[TrackPoint] = []
    for p in points:
        if not is_iso_date(p.date):
            continue
        d = p.date.strip()
        if start and d < start:
            continue
        if end and d > end:
            continue
        out.append(p)
    return out


def points_in_time_window(
    points: Sequence[TrackPoint], date: str, window_start: str, window_end: str
) -> list[TrackPoint]:
    """Points of `date` whose start time lies in the inclusive window, sorted by time."""
    hits = [
        p
        for p in points
        if p.date.strip() == date and is_time_in_window(p.time, window_start, window_end)
    ]
    return sorted(hits, key=lambda p: start_time(p.time) or "")
