"""Tests for operation timing, outcome logging and anomaly thresholds."""
import logging
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from conftest import FakeRandomUser, build_client, make_settings
from userfeed.core import observability
from userfeed.core.observability import flag_anomaly, format_fields, observe


class FakeClock:
    def __init__(self, *readings):
        self._readings = list(readings)

    def monotonic(self):
        return self._readings.pop(0)


def _messages(caplog, level=None):
    return [r.getMessage() for r in caplog.records if level is None or r.levelno == level]


def test_format_fields():
    assert format_fields({"rows": 3, "table": "users"}) == "rows=3 table=users"
    assert format_fields({}) == ""


def test_observe_logs_success(caplog, monkeypatch):
    monkeypatch.setattr(observability, "time", FakeClock(10.0, 10.25))
    caplog.set_level(logging.DEBUG, logger="userfeed")

    with observe("list_users", slow_ms=2000, source="test") as op:
        op.fields["rows"] = 3

    assert op.duration_ms == pytest.approx(250)
    assert op.slow is False
    info = _messages(caplog, logging.INFO)
    assert info == ["op.ok operation=list_users duration_ms=250 source=test rows=3"]
    assert _messages(caplog, logging.WARNING) == []


def test_observe_flags_slow_operation(caplog, monkeypatch):
    monkeypatch.setattr(observability, "time", FakeClock(0.0, 1.5))
    caplog.set_level(logging.DEBUG, logger="userfeed")

    with observe("insert_user", slow_ms=1000) as op:
        pass

    assert op.slow is True
    warnings = _messages(caplog, logging.WARNING)
    assert len(warnings) == 1
    assert warnings[0].startswith("op.slow operation=insert_user duration_ms=1500 threshold_ms=1000")


def test_observe_ok_level(caplog, monkeypatch):
    monkeypatch.setattr(observability, "time", FakeClock(0.0, 0.001))
    caplog.set_level(logging.DEBUG, logger="userfeed")

    with observe("insert_user", ok_level=logging.DEBUG):
        pass

    assert _messages(caplog, logging.INFO) == []
    assert _messages(caplog, logging.DEBUG)[0].startswith("op.ok operation=insert_user")


def test_observe_logs_and_reraises_failure(caplog):
    caplog.set_level(logging.DEBUG, logger="userfeed")

    with pytest.raises(RuntimeError, match="boom"):
        with observe("count_users", slow_ms=0):
            raise RuntimeError("boom")

    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert errors[0].getMessage().startswith("op.failed operation=count_users")
    assert "error=RuntimeError" in errors[0].getMessage()
    assert errors[0].exc_info is not None
    assert not any(m.startswith("op.ok") for m in _messages(caplog))


def test_flag_anomaly(caplog):
    caplog.set_level(logging.WARNING, logger="userfeed")

    assert flag_anomaly("count_users", "total", 10001, 10000) is True
    assert flag_anomaly("count_users", "total", 10000, 10000) is False

    assert _messages(caplog) == ["op.anomaly operation=count_users metric=total value=10001 limit=10000"]


def test_thresholds_warn_without_changing_responses(tmp_path, caplog):
    settings = make_settings(
        tmp_path,
        SLOW_INSERT_MS=-1,
        SLOW_QUERY_MS=-1,
        LARGE_RESULT_ROWS=2,
        HIGH_USER_COUNT=2,
    )
    with build_client(settings, FakeRandomUser()) as client:
        caplog.set_level(logging.DEBUG, logger="userfeed")

        assert client.post("/api/fetch-users?count=3").status_code == 200
        r = client.get("/api/users")
        assert r.status_code == 200
        assert len(r.json()) == 3
        r = client.get("/api/user-count")
        assert r.json() == {"total": 3}

    warnings = _messages(caplog, logging.WARNING)
    assert sum(m.startswith("op.slow operation=insert_user") for m in warnings) == 3
    assert any(m.startswith("op.slow operation=list_users") for m in warnings)
    assert any(m.startswith("op.slow operation=count_users") for m in warnings)
    assert "op.anomaly operation=list_users metric=rows value=3 limit=2" in warnings
    assert "op.anomaly operation=count_users metric=total value=3 limit=2" in warnings


def test_failed_fetch_is_logged_once(client, upstream, caplog):
    caplog.set_level(logging.DEBUG, logger="userfeed")
    upstream.status_code = 502

    assert client.post("/api/fetch-users?count=3").status_code == 500

    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert errors[0].getMessage().startswith("op.failed operation=fetch_users")
    assert "error=RandomUserAPIError" in errors[0].getMessage()
    assert errors[0].exc_info[1].status_code == 502


def test_configure_logging_sets_package_level():
    observability.configure_logging("warning")
    assert logging.getLogger("userfeed").level == logging.WARNING
    observability.configure_logging("DEBUG")


def test_storage_failure_is_logged_once(client, caplog):
    caplog.set_level(logging.DEBUG, logger="userfeed")

    assert client.get("/api/trigger-failure").status_code == 500

    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert errors[0].getMessage().startswith("op.failed operation=trigger_failure")
    assert errors[0].exc_info is not None
