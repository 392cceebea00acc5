import asyncio
import json

import httpx
import pytest

from econdash.errors import DataFetchError, MalformedValueError
from econdash.loader import FredSeriesLoader, SeriesPoints, normalize_observations, parse_value, to_label


def _obs(*pairs):
    return [{"date": d, "value": v} for d, v in pairs]


def _load(handler, series_id="UNRATE", keep=None):
    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            loader = FredSeriesLoader("http://backend/api/", client=client)
            return await loader.load(series_id, keep)

    return asyncio.run(run())


def test_to_label_truncates_to_year_month():
    assert to_label("2020-04-01") == "2020-04"
    assert to_label("1999-12-31") == "1999-12"


@pytest.mark.parametrize("date", [None, "", "None", 20200101, "2020", "2020-13-01", "01/02/2020"])
def test_to_label_rejects_invalid_dates(date):
    with pytest.raises(MalformedValueError):
        to_label(date)


@pytest.mark.parametrize("raw,expected", [("3.5", 3.5), ("  4 ", 4.0), ("-0.25", -0.25), (7, 7.0)])
def test_parse_value_accepts_numbers(raw, expected):
    assert parse_value(raw) == expected


@pytest.mark.parametrize("raw", [".", "", "n/a", None, "nan", "inf", True])
def test_parse_value_rejects_placeholders(raw):
    with pytest.raises(MalformedValueError):
        parse_value(raw)


def test_normalize_drops_unparseable_points():
    out = normalize_observations(_obs(("2020-01-01", "3.5"), ("2020-02-01", "."), ("2020-03-01", "3.7")))
    assert out == SeriesPoints(labels=("2020-01", "2020-03"), values=(3.5, 3.7))


def test_normalize_drops_points_without_a_valid_date():
    raw = [{"value": "1"}, {"date": None, "value": "2"}, {"date": "2020-01-01", "value": "3"}]
    out = normalize_observations(raw)
    assert out == SeriesPoints(labels=("2020-01",), values=(3.0,))


def test_normalize_skips_entries_that_are_not_objects():
    raw = [None, "2020-01-01", ["2020-02-01", "2"], {"date": "2020-03-01", "value": "3"}]
    assert normalize_observations(raw) == SeriesPoints(labels=("2020-03",), values=(3.0,))


def test_normalize_keeps_trailing_points():
    raw = _obs(*[(f"2020-{m:02d}-01", str(m)) for m in range(1, 13)])
    out = normalize_observations(raw, keep=3)
    assert out.labels == ("2020-10", "2020-11", "2020-12")
    assert out.values == (10.0, 11.0, 12.0)


def test_normalize_keep_counts_valid_points_only():
    raw = _obs(("2020-01-01", "1"), ("2020-02-01", "."), ("2020-03-01", "3"), ("2020-04-01", "4"))
    out = normalize_observations(raw, keep=2)
    assert out.labels == ("2020-03", "2020-04")


def test_normalize_keep_is_noop_for_short_series():
    raw = _obs(("2020-01-01", "1"), ("2020-02-01", "2"))
    assert len(normalize_observations(raw, keep=5)) == 2
    assert len(normalize_observations(raw, keep=None)) == 2


def test_loader_requests_series_from_backend():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        return httpx.Response(200, json={"observations": _obs(("2020-01-01", "3.5"), ("2020-02-01", "."))})

    out = _load(handler)
    assert seen["url"] == "http://backend/api/fred?series_id=UNRATE"
    assert out.labels == ("2020-01",)
    assert out.values == (3.5,)


def test_loader_applies_keep():
    def handler(request):
        return httpx.Response(200, json={"observations": _obs(*[(f"2021-{m:02d}-01", str(m)) for m in range(1, 7)])})

    out = _load(handler, keep=2)
    assert out.labels == ("2021-05", "2021-06")


def test_loader_tolerates_null_observations():
    def handler(request):
        return httpx.Response(200, json={"observations": [None, {"date": "2020-01-01", "value": "3.5"}]})

    assert _load(handler) == SeriesPoints(labels=("2020-01",), values=(3.5,))


def test_loader_closes_its_own_client():
    async def run():
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"observations": []}))
        loader = FredSeriesLoader("http://backend/api", transport=transport)
        async with loader:
            out = await loader.load("UNRATE")
        return loader, out

    loader, out = asyncio.run(run())
    assert len(out) == 0
    assert loader._client.is_closed


def test_loader_raises_on_error_status():
    with pytest.raises(DataFetchError) as info:
        _load(lambda request: httpx.Response(503, json={"error": "down"}), series_id="FEDFUNDS")
    assert info.value.status == 503
    assert info.value.series_id == "FEDFUNDS"
    assert "FEDFUNDS" in str(info.value)


def test_loader_raises_on_invalid_json():
    with pytest.raises(DataFetchError):
        _load(lambda request: httpx.Response(200, content=b"<html>"))


def test_loader_raises_without_observations():
    with pytest.raises(DataFetchError):
        _load(lambda request: httpx.Response(200, content=json.dumps({"error": "x"}).encode()))


def test_loader_wraps_transport_errors():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(DataFetchError) as info:
        _load(handler)
    assert info.value.status is None
