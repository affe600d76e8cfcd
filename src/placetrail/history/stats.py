"""
Offline history statistics and data quality report.

Goal: a deterministic view of "what is in this history and is it sane?" without touching
the network. Used by the CLI `stats` command.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Any, Sequence

from placetrail.core.time import is_iso_date, start_time
from placetrail.domain.models import TrackPoint


@dataclass(frozen=True)
class Issue:
    severity: str  # "info" | "warning" | "error"
    code: str
    message: str
    count: int = 1
    sample: list[str] | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity,
            "code": self.code,
            "message": self.message,
            "count": int(self.count),
            "sample": list(self.sample or []),
        }


@dataclass(frozen=True)
class DayRoute:
    """All points of one calendar day, treated as that day's route."""

    date: str
    points: int


def history_stats(points: Sequence[TrackPoint]) -> dict[str, Any]:
    dates = sorted({p.date for p in points if p.date})
    labels = {p.label.strip() for p in points if p.label and p.label.strip()}
    geolocated = sum(1 for p in points if p.is_geolocated)
    per_source = Counter(p.source_key or "" for p in points)

    return {
        "total_points": len(points),
        "total_days": len(dates),
        "total_labels": len(labels),
        "date_range": {"start": dates[0], "end": dates[-1]} if dates else None,
        "geolocated_points": geolocated,
        "label_only_points": len(points) - geolocated,
        "points_by_source": dict(sorted(per_source.items(), key=lambda kv: (-kv[1], kv[0]))),
    }


def daily_routes(points: Sequence[TrackPoint], limit: int = 5) -> list[DayRoute]:
    """Days ranked by number of recorded points (ties: earlier date first)."""
    counts = Counter(p.date for p in points if p.date)
    ranked = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    return [DayRoute(date=d, points=n) for d, n in ranked[: max(0, limit)]]


def history_issues(points: Sequence[TrackPoint]) -> list[Issue]:
    issues: list[Issue] = []

    ineligible = [
        i for i, p in enumerate(points) if not p.is_geolocated and not (p.label or "").strip()
    ]
    if ineligible:
        issues.append(
            Issue(
                severity="warning",
                code="POINT_WITHOUT_LOCATION",
                message="Points with neither coordinates nor a label (grouped as 'unknown').",
                count=len(ineligible),
                sample=[str(i) for i in ineligible[:5]],
            )
        )

    bad_dates = sorted({p.date for p in points if p.date and not is_iso_date(p.date)})
    if bad_dates:
        issues.append(
            Issue(
                severity="warning",
                code="INVALID_DATE",
                message="Dates not in YYYY-MM-DD format (ignored for visit dates and date filters).",
                count=len(bad_dates),
                sample=bad_dates[:5],
            )
        )

    missing_dates = sum(1 for p in points if not p.date)
    if missing_dates:
        issues.append(
            Issue(
                severity="info",
                code="MISSING_DATE",
                message="Points without a date.",
                count=missing_dates,
            )
        )

    bad_times = sorted({p.time for p in points if p.time and start_time(p.time) is None})
    if bad_times:
        issues.append(
            Issue(
                severity="warning",
                code="INVALID_TIME",
                message="Times without a parsable HH:MM start (ignored for time ranges).",
                count=len(bad_times),
                sample=bad_times[:5],
            )
        )

    key_counts = Counter(p.dedup_key for p in points)
    dup = {k: n for k, n in key_counts.items() if n > 1}
    if dup:
        issues.append(
            Issue(
                severity="error",
                code="DUPLICATE_OBSERVATION",
                message="Points sharing the same (date, time, latitude, longitude).",
                count=sum(n - 1 for n in dup.values()),
                sample=["|".join("" if v is None else str(v) for v in k) for k in list(dup)[:5]],
            )
        )

    return issues


def build_history_report(points: Sequence[TrackPoint], routes_limit: int = 5) -> dict[str, Any]:
    issues = history_issues(points)
    return {
        "stats": history_stats(points),
        "daily_routes": [{"date": r.date, "points": r.points} for r in daily_routes(points, routes_limit)],
        "issues": [i.as_dict() for i in issues],
        "ok": not any(i.severity == "error" for i in issues),
    }
