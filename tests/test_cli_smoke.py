import json

from placetrail.cli import main
from placetrail.config.settings import get_settings
from placetrail.core.cache import FileCache
from placetrail.history.loader import load_points


def _write(path, records):
    path.write_text(json.dumps(records), encoding="utf-8")
    return path


def _visits(lat, lon, n, label, date="2025-01-01"):
    return [
        {"date": date, "time": f"{8 + i:02d}:00", "label": label, "latitude": lat, "longitude": lon}
        for i in range(n)
    ]


def test_places_command_prints_json(tmp_path, capsys):
    history = _write(
        tmp_path / "history.json",
        _visits(0.0, 0.0, 5, "Home") + _visits(1.0, 1.0, 4, "Work") + _visits(2.0, 2.0, 2, "Beach"),
    )

    assert main(["places", "--history", str(history), "--json"]) == 0
    payload = json.loads(capsys.readouterr().out)

    assert [p["representative_label"] for p in payload] == ["Beach"]
    assert payload[0]["visit_count"] == 2
    assert "members" not in payload[0]


def test_places_command_can_keep_home(tmp_path, capsys):
    history = _write(tmp_path / "history.json", _visits(0.0, 0.0, 2, "Home") + _visits(1.0, 1.0, 1, "Work"))

    assert main(["places", "--history", str(history), "--include-home", "--limit", "5"]) == 0
    out = capsys.readouterr().out
    assert "Home" in out
    assert "Work" in out


def test_merge_command_writes_merged_history(tmp_path, capsys):
    history = _write(tmp_path / "history.json", [])
    incoming = _write(tmp_path / "incoming.json", _visits(0.0, 0.0, 3, "Home"))
    output = tmp_path / "merged.json"

    args = ["merge", "--history", str(history), "--incoming", str(incoming), "--source-key", "day1"]
    assert main([*args, "--output", str(output)]) == 0
    report = json.loads(capsys.readouterr().out.split("\n", 1)[1])
    assert report["admitted_count"] == 3

    assert main(["merge", "--history", str(output), "--incoming", str(incoming), "--source-key", "day1"]) == 0
    report = json.loads(capsys.readouterr().out)
    assert report == {"admitted_count": 0, "skipped_count": 3, "total_before": 3, "total_after": 3}
    assert all(p.id for p in load_points(output))


def test_stats_command(tmp_path, capsys):
    history = _write(tmp_path / "history.json", _visits(0.0, 0.0, 2, "Home") + [{"label": ""}])

    assert main(["stats", "--history", str(history)]) == 0
    report = json.loads(capsys.readouterr().out)
    assert report["stats"]["total_points"] == 3
    assert report["issues"][0]["code"] == "POINT_WITHOUT_LOCATION"


def test_purge_cache_command_uses_configured_cache_dir(monkeypatch, tmp_path, capsys):
    cache_dir = tmp_path / "cache"
    monkeypatch.setenv("PLACETRAIL_CACHE_DIR", str(cache_dir))
    get_settings.cache_clear()
    try:
        cache = FileCache(cache_dir)
        monkeypatch.setattr("placetrail.core.cache.time.time", lambda: 0)
        cache.set("reverse_geocode", "1.000000,2.000000", "Old address")
        monkeypatch.setattr("placetrail.core.cache.time.time", lambda: 10**9)
        cache.set("reverse_geocode", "3.000000,4.000000", "Fresh address")

        assert main(["purge-cache"]) == 0
    finally:
        get_settings.cache_clear()

    out = capsys.readouterr().out
    assert f"Removed 1 expired entries from {cache_dir / 'reverse_geocode'}" in out
    assert len(list((cache_dir / "reverse_geocode").glob("*.json"))) == 1
