import threading
import time

import pytest
import requests

from app.core.exceptions import ExternalServiceError
from app.services.clock.service import ServerClock
from app.services.external import time_api
from app.utils.timezone import get_ist_today_date

SERVER_MS = 1742030400000


@pytest.fixture
def time_source(monkeypatch):
    calls = {"count": 0, "result": {"source": "TimeAPI.io", "date": "2025-03-15", "timestamp_ms": SERVER_MS}}

    def fake_fetch(timeout, apis=None):
        calls["count"] += 1
        return calls["result"]

    monkeypatch.setattr(time_api, "fetch_first_available", fake_fetch)
    return calls


def test_verified_date_is_cached(time_source):
    clock = ServerClock(cache_seconds=60)

    assert clock.get_verified_date() == "2025-03-15"
    assert clock.get_verified_date() == "2025-03-15"
    assert time_source["count"] == 1
    assert clock.get_status()["status"] == "verified"
    assert clock.get_status()["source"] == "TimeAPI.io"


def test_force_verify_refetches(time_source):
    clock = ServerClock(cache_seconds=60)
    clock.get_verified_date()

    clock.force_verify()

    assert time_source["count"] == 2


def test_falls_back_to_local_ist_date(time_source):
    time_source["result"] = None
    clock = ServerClock(cache_seconds=60)

    assert clock.get_verified_date() == get_ist_today_date().isoformat()
    assert clock.status == "failed"
    assert clock.get_status()["source"] == "local"


def test_failed_lookup_is_reused_within_retry_window(time_source):
    time_source["result"] = None
    clock = ServerClock(cache_seconds=60, retry_seconds=30)

    for _ in range(5):
        clock.get_verified_date()

    assert time_source["count"] == 1


def test_failed_lookup_retries_after_window(time_source):
    time_source["result"] = None
    clock = ServerClock(cache_seconds=60, retry_seconds=0)
    clock.get_verified_date()

    time_source["result"] = {"source": "TimeAPI.io", "date": "2025-03-15", "timestamp_ms": SERVER_MS}

    assert clock.get_verified_date() == "2025-03-15"
    assert clock.status == "verified"
    assert time_source["count"] == 2


def test_failed_lookup_has_no_drift(time_source):
    time_source["result"] = None
    clock = ServerClock()

    result = clock.verify_client_clock(get_ist_today_date().isoformat(), SERVER_MS)

    assert result["time_drift_ms"] == 0
    assert result["is_valid"] is False


def test_client_clock_matches(time_source):
    clock = ServerClock()

    result = clock.verify_client_clock("2025-03-15", SERVER_MS)

    assert result["is_valid"] is True
    assert result["mismatch"] is False
    assert result["manipulated"] is False
    assert result["time_drift_ms"] < 5000


def test_client_date_mismatch_is_manipulation(time_source):
    result = ServerClock().verify_client_clock("2025-03-16")

    assert result["is_valid"] is False
    assert result["mismatch"] is True
    assert result["manipulated"] is True
    assert result["server_date"] == "2025-03-15"


def test_large_drift_is_manipulation(time_source):
    result = ServerClock().verify_client_clock("2025-03-15", SERVER_MS + 10 * 60 * 1000)

    assert result["mismatch"] is False
    assert result["manipulated"] is True


class FakeTimeResponse:
    def __init__(self, payload):
        self._payload = payload

    def raise_for_status(self):
        pass

    def json(self):
        return self._payload


def test_fetch_time_parses_timeapi_io(monkeypatch):
    payload = {"year": 2025, "month": 3, "day": 15, "dateTime": "2025-03-15T14:30:00.1234567"}
    monkeypatch.setattr(time_api.requests, "get", lambda *args, **kwargs: FakeTimeResponse(payload))

    result = time_api.fetch_time(time_api.TIME_APIS[0], timeout=1)

    assert result["source"] == "TimeAPI.io"
    assert result["date"] == "2025-03-15"
    # 14:30 IST is 09:00 UTC
    assert result["timestamp_ms"] == 1742029200000 + 123


def test_fetch_time_wraps_request_errors(monkeypatch):
    def boom(*args, **kwargs):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(time_api.requests, "get", boom)

    with pytest.raises(ExternalServiceError):
        time_api.fetch_time(time_api.TIME_APIS[1], timeout=1)


def test_first_available_prefers_list_order(monkeypatch):
    apis = [{"name": "primary"}, {"name": "secondary"}]

    def fake_fetch_time(api, timeout):
        if api["name"] == "primary":
            raise ExternalServiceError("down")
        return {"source": api["name"], "date": "2025-03-15", "timestamp_ms": SERVER_MS}

    monkeypatch.setattr(time_api, "fetch_time", fake_fetch_time)

    assert time_api.fetch_first_available(1, apis)["source"] == "secondary"


def test_first_available_does_not_wait_for_slower_sources(monkeypatch):
    release = threading.Event()
    apis = [{"name": "fast"}, {"name": "slow"}]

    def fake_fetch_time(api, timeout):
        if api["name"] == "slow":
            release.wait(5)
        return {"source": api["name"], "date": "2025-03-15", "timestamp_ms": SERVER_MS}

    monkeypatch.setattr(time_api, "fetch_time", fake_fetch_time)

    started = time.monotonic()
    result = time_api.fetch_first_available(1, apis)
    elapsed = time.monotonic() - started
    release.set()

    assert result["source"] == "fast"
    assert elapsed < 2


def test_first_available_all_down(monkeypatch):
    def fake_fetch_time(api, timeout):
        raise ExternalServiceError("down")

    monkeypatch.setattr(time_api, "fetch_time", fake_fetch_time)

    assert time_api.fetch_first_available(1, [{"name": "a"}, {"name": "b"}]) is None
