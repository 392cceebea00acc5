import asyncio
from typing import Dict, List, Optional, Union

import pytest

from econdash.errors import DataFetchError
from econdash.loader import SeriesPoints
from econdash.orchestrator import Dashboard
from econdash.sink import ChartStore


def month_labels(start: str, count: int, step: int = 1) -> List[str]:
    year, month = (int(x) for x in start.split("-"))
    out = []
    for _ in range(count):
        out.append(f"{year:04d}-{month:02d}")
        month += step
        while month > 12:
            month -= 12
            year += 1
    return out


def points(start: str, count: int, *, step: int = 1, base: float = 1.0) -> SeriesPoints:
    labels = month_labels(start, count, step)
    return SeriesPoints(labels=tuple(labels), values=tuple(base + i for i in range(count)))


class FakeLoader:
    """Serves canned SeriesPoints (or raises) and records the order of requests."""

    def __init__(self, series: Dict[str, Union[SeriesPoints, Exception]]):
        self.series = series
        self.calls: List[tuple] = []

    async def load(self, series_id: str, keep: Optional[int] = None) -> SeriesPoints:
        self.calls.append((series_id, keep))
        result = self.series[series_id]
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def series_map() -> Dict[str, Union[SeriesPoints, Exception]]:
    return {
        # monthly: unemployment 2020-01..2020-06, fed funds 2020-03..2020-08
        "UNRATE": points("2020-01", 6, base=3.0),
        "FEDFUNDS": points("2020-03", 6, base=0.25),
        "CPIAUCSL": points("2020-01", 8, base=250.0),
        "M2SL": points("2020-02", 7, base=15000.0),
        # quarterly: credit card is the reference timeline
        "DRALACBS": points("2019-01", 10, step=3, base=1.5),
        "DRCLACBS": points("2019-07", 6, step=3, base=2.0),
        "DRCCLACBS": points("2019-04", 8, step=3, base=3.0),
        "DRSFRMACBS": points("2019-04", 9, step=3, base=4.0),
    }


@pytest.fixture
def fake_loader(series_map) -> FakeLoader:
    return FakeLoader(series_map)


@pytest.fixture
def ready_dashboard(fake_loader) -> Dashboard:
    dashboard = Dashboard(fake_loader, ChartStore())
    asyncio.run(dashboard.initialize())
    return dashboard


@pytest.fixture
def failing_loader(series_map) -> FakeLoader:
    series_map = dict(series_map)
    series_map["CPIAUCSL"] = DataFetchError("CPIAUCSL", "backend error", status=500)
    return FakeLoader(series_map)
