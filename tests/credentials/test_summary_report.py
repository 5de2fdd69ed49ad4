"""Tests for SummaryReport and snapshot persistence."""

import json
from datetime import datetime, timezone

from keywarden.credentials import (BalanceUnit, HealthState, KeyReport,
                                   ProbeResult, SummaryReport, save_report)


def _report():
    report = SummaryReport(threshold=1.0, timestamp=datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc))
    report.add(KeyReport.from_probe("venice:a", ProbeResult(balance=12.0, unit=BalanceUnit.DIEM, http_status=200), HealthState.HEALTHY))
    report.add(KeyReport.from_probe("venice:b", ProbeResult(balance=0.0, http_status=402, exhausted=True), HealthState.DEPLETED))
    report.add(KeyReport.from_probe("venice:c", ProbeResult.unknown(error="timed out"), HealthState.UNKNOWN))
    report.disabled.append("venice:b")
    return report


def test_totals():
    report = _report()
    assert (report.total, report.healthy, report.depleted, report.errors) == (3, 1, 1, 1)
    assert report.all_unhealthy is False


def test_to_dict_shape():
    data = _report().to_dict()

    assert data["timestamp"] == "2026-01-02T03:04:05Z"
    assert data["threshold"] == 1.0
    assert data["dry_run"] is False
    assert data["keys"]["venice:a"] == {"balance": 12.0, "unit": "diem", "status": 200, "healthy": True}
    assert data["keys"]["venice:b"]["healthy"] is False
    assert data["keys"]["venice:c"] == {"balance": None, "unit": None, "status": None, "healthy": None}
    assert data["disabled"] == ["venice:b"]
    assert data["recovered"] == []


def test_to_json_is_single_line():
    assert "\n" not in _report().to_json()


def test_empty_report_is_not_all_unhealthy():
    assert SummaryReport(threshold=1).all_unhealthy is False


def test_save_report_replaces_previous(tmp_path):
    path = tmp_path / "nested" / "venice-key-balances.json"
    path.parent.mkdir()
    path.write_text("stale", encoding="utf-8")

    written = save_report(_report(), path)

    assert written == path
    assert json.loads(path.read_text(encoding="utf-8"))["total"] == 3
    assert not (tmp_path / "nested" / "venice-key-balances.json.tmp").exists()
