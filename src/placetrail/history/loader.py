"""
History file loader.

A history file is a local JSON array of track points. We validate it into typed Pydantic
models so the engines can assume a consistent shape. Two record shapes are accepted:
- flat records: `{"date", "time", "label", "latitude", "longitude", "source_key", "id"}`
- exported history entries: `{"id", "data": {"date", "time", "location", "latitude", "longitude"}}`
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Sequence

from pydantic import TypeAdapter

from placetrail.core.env import resolve_project_path
from placetrail.domain.models import TrackPoint

_POINTS_ADAPTER = TypeAdapter(list[TrackPoint])


def _flatten_entry(record: Any) -> Any:
    if not isinstance(record, dict) or not isinstance(record.get("data"), dict):
        return record
    data = record["data"]
    flat = {
        "date": data.get("date") or "",
        "time": data.get("time") or "",
        "label": data.get("location") or data.get("label") or "",
        "latitude": data.get("latitude"),
        "longitude": data.get("longitude"),
        "source_key": record.get("source_key") or record.get("source") or "",
    }
    if record.get("id"):
        flat["id"] = record["id"]
    return flat


def parse_points(payload: Any) -> list[TrackPoint]:
    """Validate a decoded JSON payload into track points."""
    if not isinstance(payload, list):
        raise ValueError("History payload must be a JSON array of points.")
    return _POINTS_ADAPTER.validate_python([_flatten_entry(r) for r in payload])


def load_points(path: str | Path) -> list[TrackPoint]:
    """Load and validate a history JSON file."""
    resolved = resolve_project_path(path)
    payload = json.loads(resolved.read_text(encoding="utf-8"))
    return parse_points(payload)


def save_points(points: Sequence[TrackPoint], path: str | Path) -> Path:
    """Write points as a flat JSON array (atomic replace)."""
    resolved = resolve_project_path(path)
    resolved.parent.mkdir(parents=True, exist_ok=True)
    tmp = resolved.with_suffix(resolved.suffix + ".tmp")
    payload = [p.model_dump(mode="json") for p in points]
    tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    tmp.replace(resolved)
    return resolved
