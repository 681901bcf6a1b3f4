import asyncio
import datetime as dt

import httpx

from sources.noaa import fetch_current_kp, parse_time_tag

URL = "https://kp.example.test/noaa-planetary-k-index.json"


def _fetch(handler):
    return asyncio.run(fetch_current_kp(url=URL, timeout=1.0, transport=httpx.MockTransport(handler)))


def test_table_format():
    table = [["time_tag", "Kp", "a_running", "station_count"],
             ["2026-01-19 07:00:00", "2.33", "9", "8"],
             ["2026-01-19 10:00:00", "3.67", "22", "8"]]
    reading = _fetch(lambda request: httpx.Response(200, json=table))
    assert reading.ok
    assert reading.value == 3.67
    assert reading.sample.date == dt.date(2026, 1, 19)
    assert reading.sample.time == dt.time(10, 0)
    assert reading.sample.source == "auto"


def test_object_format():
    rows = [{"time_tag": "2026-01-19T10:00:00", "Kp": 4.0, "a_running": 27}]
    reading = _fetch(lambda request: httpx.Response(200, json=rows))
    assert reading.ok and reading.value == 4.0


def test_http_error_falls_back_to_zero():
    reading = _fetch(lambda request: httpx.Response(503))
    assert not reading.ok
    assert reading.value == 0.0
    assert reading.status == "fallback"
    assert reading.sample is None


def test_network_error_falls_back_to_zero():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)
    reading = _fetch(handler)
    assert reading.status == "fallback" and reading.value == 0.0


def test_garbage_payload_falls_back():
    assert _fetch(lambda request: httpx.Response(200, text="<html>")).status == "fallback"
    assert _fetch(lambda request: httpx.Response(200, json=[["time_tag", "Kp"]])).status == "fallback"
    assert _fetch(lambda request: httpx.Response(200, json=[["2026-01-19 10:00:00", "12"]])).status == "fallback"


def test_parse_time_tag():
    assert parse_time_tag("2026-01-19 10:00:00") == (dt.date(2026, 1, 19), dt.time(10, 0))
    assert parse_time_tag("2026-01-19T10:00:00.000") == (dt.date(2026, 1, 19), dt.time(10, 0))
    d, t = parse_time_tag("not a date")
    assert isinstance(d, dt.date) and isinstance(t, dt.time)
