"""
Incremental deduplication of track points.

When a new batch of parsed points arrives it is merged into the accumulated history.
A candidate is a duplicate if either identity collides with something already recorded:
- its record ID, a stable hash of (source key, date, time, latitude, longitude), or
- its dedup key, the (date, time, latitude, longitude) tuple.

The working sets grow as candidates are admitted, so duplicates inside one batch are
caught as well. Nothing here validates points; malformed-but-constructible points hash
deterministically and are admitted unless they collide.
"""

from __future__ import annotations

import logging
from hashlib import sha256
from typing import Iterable, Sequence

from placetrail.domain.models import DedupKey, MergeReport, TrackPoint

logger = logging.getLogger(__name__)

DEFAULT_ID_LENGTH = 32


def _fmt(value: float | None) -> str:
    return "" if value is None else repr(float(value))


def record_id(source_key: str, point: TrackPoint, length: int = DEFAULT_ID_LENGTH) -> str:
    """Stable record ID for `point` as read from the batch `source_key`."""
    raw = "_".join(
        [
            source_key or "",
            point.date or "",
            point.time or "",
            _fmt(point.latitude),
            _fmt(point.longitude),
        ]
    )
    return sha256(raw.encode("utf-8")).hexdigest()[:length]


def merge_new_points(
    existing: Sequence[TrackPoint],
    incoming: Sequence[TrackPoint],
    source_key: str,
    *,
    id_length: int = DEFAULT_ID_LENGTH,
) -> tuple[list[TrackPoint], MergeReport]:
    """Decide which incoming points are new.

    Args:
        existing: Accumulated history (points keep the IDs assigned when admitted).
        incoming: Newly parsed points, in input order.
        source_key: Batch identifier; a point's own non-empty `source_key` takes precedence.
        id_length: Length of the generated record IDs.

    Returns:
        `(admitted, report)` where admitted points carry their `id` and `source_key`.
    """
    existing_ids: set[str] = {p.id for p in existing if p.id}
    existing_keys: set[DedupKey] = {p.dedup_key for p in existing}

    admitted: list[TrackPoint] = []
    skipped = 0
    for candidate in incoming:
        key = candidate.source_key or source_key
        rid = record_id(key, candidate, id_length)
        dkey = candidate.dedup_key
        if rid in existing_ids or dkey in existing_keys:
            skipped += 1
            continue
        existing_ids.add(rid)
        existing_keys.add(dkey)
        admitted.append(candidate.model_copy(update={"id": rid, "source_key": key}))

    report = MergeReport(
        admitted_count=len(admitted),
        skipped_count=skipped,
        total_before=len(existing),
        total_after=len(existing) + len(admitted),
    )
    logger.info(
        "Merged batch %r: %d new, %d skipped (%d -> %d)",
        source_key,
        report.admitted_count,
        report.skipped_count,
        report.total_before,
        report.total_after,
    )
    return admitted, report


def merge_batches(
    existing: Sequence[TrackPoint],
    batches: Iterable[tuple[str, Sequence[TrackPoint]]],
    *,
    id_length: int = DEFAULT_ID_LENGTH,
) -> tuple[list[TrackPoint], MergeReport]:
    """Merge several `(source_key, points)` batches in order.

    Each batch is checked against the history plus everything admitted from earlier
    batches. Returns the full updated history and one aggregated report.
    """
    history = list(existing)
    total_before = len(history)
    admitted_total = 0
    skipped_total = 0
    for source_key, points in batches:
        admitted, report = merge_new_points(history, points, source_key, id_length=id_length)
        history.extend(admitted)
        admitted_total += report.admitted_count
        skipped_total += report.skipped_count

    return history, MergeReport(
        admitted_count=admitted_total,
        skipped_count=skipped_total,
        total_before=total_before,
        total_after=len(history),
    )
