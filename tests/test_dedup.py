from placetrail.domain.models import TrackPoint
from placetrail.history.dedup import merge_batches, merge_new_points, record_id


def _batch():
    return [
        TrackPoint(date="2025-01-01", time="08:00", latitude=21.1000, longitude=-101.6000),
        TrackPoint(date="2025-01-01", time="08:05", latitude=21.1001, longitude=-101.6001),
        TrackPoint(date="2025-01-01", time="09:00", latitude=19.0, longitude=-99.0),
    ]


def test_record_id_is_stable_and_fixed_length():
    p = _batch()[0]
    assert record_id("a.kmz", p) == record_id("a.kmz", p)
    assert len(record_id("a.kmz", p)) == 32
    assert len(record_id("a.kmz", p, length=16)) == 16
    assert record_id("a.kmz", p) != record_id("b.kmz", p)


def test_record_id_hashes_missing_fields_deterministically():
    empty = TrackPoint()
    assert record_id("batch", empty) == record_id("batch", TrackPoint())


def test_first_merge_admits_everything_in_order():
    admitted, report = merge_new_points([], _batch(), "day-1.kmz")

    assert [p.time for p in admitted] == ["08:00", "08:05", "09:00"]
    assert all(p.id and p.source_key == "day-1.kmz" for p in admitted)
    assert report.admitted_count == 3
    assert report.skipped_count == 0
    assert report.total_before == 0
    assert report.total_after == 3


def test_merging_the_same_batch_twice_is_idempotent():
    first, _ = merge_new_points([], _batch(), "day-1.kmz")
    second, report = merge_new_points(first, _batch(), "day-1.kmz")

    assert second == []
    assert report.admitted_count == 0
    assert report.skipped_count == 3
    assert report.total_before == 3
    assert report.total_after == 3


def test_same_observation_from_another_source_is_skipped():
    first, _ = merge_new_points([], _batch(), "day-1.kmz")
    again, report = merge_new_points(first, _batch(), "day-1-copy.kmz")
    assert again == []
    assert report.skipped_count == 3


def test_duplicates_inside_one_batch_are_caught():
    incoming = [
        TrackPoint(date="2025-01-01", time="08:00", latitude=21.1, longitude=-101.6, source_key="export.kmz#1"),
        TrackPoint(date="2025-01-01", time="08:00", latitude=21.1, longitude=-101.6, source_key="export.kmz#2"),
    ]
    admitted, report = merge_new_points([], incoming, "export.kmz")

    assert len(admitted) == 1
    assert admitted[0].source_key == "export.kmz#1"
    assert report.admitted_count == 1
    assert report.skipped_count == 1


def test_id_collision_alone_counts_as_duplicate():
    p = TrackPoint(date="2025-01-01", time="08:00", latitude=1.0, longitude=1.0)
    # Stored record with the same ID but (hypothetically) edited content.
    stored = TrackPoint(date="2025-01-01", time="08:01", latitude=1.0, longitude=1.0, id=record_id("k", p))
    admitted, report = merge_new_points([stored], [p], "k")
    assert admitted == []
    assert report.skipped_count == 1


def test_malformed_points_are_admitted_unless_they_collide():
    admitted, report = merge_new_points([], [TrackPoint(), TrackPoint(label="x")], "k")
    # Both share the empty dedup key, so only the first one gets in.
    assert report.admitted_count == 1
    assert report.skipped_count == 1
    assert admitted[0].id == record_id("k", TrackPoint())


def test_existing_points_without_ids_still_block_by_content():
    existing = [TrackPoint(date="2025-01-01", time="09:00", latitude=19.0, longitude=-99.0)]
    admitted, report = merge_new_points(existing, _batch(), "k")
    assert report.admitted_count == 2
    assert report.total_after == 3


def test_merge_batches_aggregates_reports():
    batches = [("a.kmz", _batch()), ("b.kmz", _batch()[:2] + [TrackPoint(date="2025-01-02", label="Cafe")])]
    history, report = merge_batches([], batches)

    assert len(history) == 4
    assert report.admitted_count == 4
    assert report.skipped_count == 2
    assert report.total_before == 0
    assert report.total_after == 4
