from placetrail.domain.models import TrackPoint
from placetrail.history.filters import filter_by_date_range, filter_by_day, points_in_time_window
from placetrail.history.stats import build_history_report, daily_routes, history_issues, history_stats


def _history():
    return [
        TrackPoint(date="2025-01-01", time="08:00", label="Home", latitude=1.0, longitude=1.0, source_key="a"),
        TrackPoint(date="2025-01-01", time="12:30 to 13:10", label="Lunch", latitude=1.1, longitude=1.1, source_key="a"),
        TrackPoint(date="2025-01-02", time="09:15", label="Office", latitude=1.2, longitude=1.2, source_key="b"),
        TrackPoint(date="2025-01-01", time="07:45", label="Gym", source_key="b"),
        TrackPoint(date="", time="", label=""),
    ]


def test_history_stats_counts():
    stats = history_stats(_history())
    assert stats["total_points"] == 5
    assert stats["total_days"] == 2
    assert stats["total_labels"] == 4
    assert stats["date_range"] == {"start": "2025-01-01", "end": "2025-01-02"}
    assert stats["geolocated_points"] == 3
    assert stats["label_only_points"] == 2
    assert stats["points_by_source"] == {"a": 2, "b": 2, "": 1}


def test_history_stats_of_empty_history():
    stats = history_stats([])
    assert stats["total_points"] == 0
    assert stats["date_range"] is None


def test_daily_routes_rank_days_by_points():
    routes = daily_routes(_history())
    assert [(r.date, r.points) for r in routes] == [("2025-01-01", 3), ("2025-01-02", 1)]
    assert daily_routes(_history(), limit=1)[0].date == "2025-01-01"


def test_points_in_time_window_sorted_by_start_time():
    hits = points_in_time_window(_history(), "2025-01-01", "07:00", "12:30")
    assert [p.label for p in hits] == ["Gym", "Home", "Lunch"]


def test_date_filters():
    points = _history() + [TrackPoint(date="03/01/2025", label="Odd date")]
    assert len(filter_by_day(points, "2025-01-02")) == 1
    assert len(filter_by_date_range(points, None, None)) == len(points)
    assert [p.label for p in filter_by_date_range(points, "2025-01-02", None)] == ["Office"]
    assert len(filter_by_date_range(points, None, "2025-01-01")) == 3


def test_history_issues_report_problems():
    points = _history() + [
        TrackPoint(date="2025-01-02", time="09:15", label="Office again", latitude=1.2, longitude=1.2),
        TrackPoint(date="tomorrow", time="soon", label="Typo"),
    ]
    codes = {i.code: i for i in history_issues(points)}

    assert codes["POINT_WITHOUT_LOCATION"].count == 1
    assert codes["INVALID_DATE"].sample == ["tomorrow"]
    assert codes["MISSING_DATE"].count == 1
    assert codes["INVALID_TIME"].sample == ["soon"]
    assert codes["DUPLICATE_OBSERVATION"].count == 1


def test_history_report_is_ok_without_errors():
    report = build_history_report(_history()[:3])
    assert report["ok"] is True
    assert report["issues"] == []
    assert report["stats"]["total_points"] == 3


def test_day_filter_agrees_with_range_on_padded_dates():
    points = [TrackPoint(date=" 2025-01-02", label="Padded"), TrackPoint(date="2025-01-03", label="Next")]
    by_day = filter_by_day(points, "2025-01-02")
    by_range = filter_by_date_range(points, "2025-01-02", "2025-01-02")
    assert [p.label for p in by_day] == ["Padded"]
    assert [p.label for p in by_day] == [p.label for p in by_range]
