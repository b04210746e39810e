import json
from io import StringIO
from unittest import mock

import pytest
from django.core.management import call_command

from core.middleware import current_request_id


def test_healthz(client):
    resp = client.get("/healthz/")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}
    assert resp["X-Request-ID"]
    assert "X-Response-Time-ms" in resp


def test_request_id_is_echoed(client):
    resp = client.get("/healthz/", HTTP_X_REQUEST_ID="req-42")
    assert resp["X-Request-ID"] == "req-42"
    # reset once the request is done
    assert current_request_id() == "-"


@pytest.mark.django_db
def test_deep_health_db_and_cache(client):
    resp = client.get("/api/v1/core/deep-health/", {"db": "1", "cache": "1"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["ok"] is True
    assert set(data["checks"]) == {"db", "cache"}


def test_deep_health_reports_failure(client):
    with mock.patch.dict("core.checks.CHECKS", {"db": mock.Mock(side_effect=RuntimeError("db down"))}):
        resp = client.get("/api/v1/core/deep-health/", {"db": "1"})
    assert resp.status_code == 503
    assert resp.json()["checks"]["db"] == {"ok": False, "error": "db down"}


@pytest.mark.django_db
def test_core_check_command_json():
    out = StringIO()
    call_command("core_check", "--db", "--cache", "--json", stdout=out)
    data = json.loads(out.getvalue())
    assert data["ok"] is True
    assert set(data["checks"]) == {"db", "cache"}


def test_core_check_command_exits_on_failure():
    with mock.patch.dict("core.checks.CHECKS", {"cache": mock.Mock(side_effect=RuntimeError("nope"))}):
        with pytest.raises(SystemExit) as exc:
            call_command("core_check", "--cache", stdout=StringIO())
    assert exc.value.code == 1
