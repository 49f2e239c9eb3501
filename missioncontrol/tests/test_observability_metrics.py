import logging

from missioncontrol.logging_config import KeyValueFormatter
from missioncontrol.observability.metrics import InMemoryMetrics


def test_metrics_snapshot_includes_latency_percentiles_and_counts():
    m = InMemoryMetrics(latency_window=10)

    m.observe_request("/api/dashboard", 200, 12.0)
    m.observe_request("/api/dashboard", 200, 24.0)
    m.observe_request("/api/risks/r1/resolve", 502, 200.0)

    snap = m.snapshot()

    assert snap["requests_total"] == 3
    assert snap["status_counts"]["2xx"] == 2
    assert snap["status_counts"]["5xx"] == 1
    assert snap["path_counts"]["/api/dashboard"] == 2
    assert snap["latency_ms"]["samples"] == 3
    assert snap["latency_ms"]["p95"] >= snap["latency_ms"]["p50"]


def test_metrics_track_refresh_outcomes_and_resolutions():
    m = InMemoryMetrics()

    m.observe_refresh("success", 40.0)
    m.observe_refresh("failure", 10.0)
    m.observe_refresh("skipped")
    m.observe_resolution(ok=True)
    m.observe_resolution(ok=False)
    m.observe_resolution(ok=False)

    snap = m.snapshot()

    assert snap["refresh"]["counts"] == {"success": 1, "failure": 1, "skipped": 1}
    assert snap["refresh"]["duration_ms"]["samples"] == 2
    assert snap["resolutions"] == {"success": 1, "failure": 2}


def test_empty_metrics_snapshot():
    snap = InMemoryMetrics().snapshot()
    assert snap["requests_total"] == 0
    assert snap["latency_ms"] == {"samples": 0, "p50": 0.0, "p95": 0.0, "p99": 0.0}


def test_key_value_formatter_appends_context():
    record = logging.LogRecord("missioncontrol.store", logging.WARNING, __file__, 1, "Skipping row", None, None)
    record.collection = "emails"

    line = KeyValueFormatter().format(record)

    assert "WARNING" in line
    assert "missioncontrol.store" in line
    assert "Skipping row" in line
    assert "collection=emails" in line
