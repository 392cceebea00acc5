from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Tuple

import httpx

from econdash.errors import DataFetchError, MalformedValueError

logger = logging.getLogger(__name__)

_LABEL_RE = re.compile(r"\d{4}-(0[1-9]|1[0-2])")  # YYYY-MM prefix


@dataclass(frozen=True)
class SeriesPoints:
    labels: Tuple[str, ...] = ()
    values: Tuple[float, ...] = ()

    def __len__(self) -> int:
        return len(self.labels)


def to_label(date: object) -> str:
    """Reduce an ISO date like 2020-04-01 to its YYYY-MM label.

    Anything that is not a string starting with a valid year and month
    raises :class:`MalformedValueError`.
    """
    if not isinstance(date, str):
        raise MalformedValueError(date)
    match = _LABEL_RE.match(date.strip())
    if match is None:
        raise MalformedValueError(date)
    return match.group(0)


def parse_value(raw: object) -> float:
    if raw is None or isinstance(raw, bool):
        raise MalformedValueError(raw)
    try:
        out = float(str(raw).strip())
    except ValueError:
        raise MalformedValueError(raw) from None
    if not math.isfinite(out):
        raise MalformedValueError(raw)
    return out


def normalize_observations(
    observations: Iterable[Mapping[str, Any]],
    *,
    keep: Optional[int] = None,
    series_id: str = "",
) -> SeriesPoints:
    labels = []
    values = []
    dropped = 0
    for obs in observations:
        if not isinstance(obs, Mapping):
            dropped += 1
            continue
        try:
            label = to_label(obs.get("date"))
            value = parse_value(obs.get("value"))
        except MalformedValueError:
            dropped += 1
            continue
        labels.append(label)
        values.append(value)

    if dropped:
        logger.debug("dropped %d unparseable observations from %s", dropped, series_id or "series")

    if keep and len(labels) > keep:
        start = len(labels) - keep
        labels = labels[start:]
        values = values[start:]
    return SeriesPoints(labels=tuple(labels), values=tuple(values))


class FredSeriesLoader:
    """Fetch named series from the dashboard backend's ``/fred`` endpoint.

    The backend proxies the FRED observations API and answers with
    ``{"observations": [{"date": "2020-01-01", "value": "3.5"}, ...]}``.
    Any non-success status, transport failure or malformed body is raised
    as :class:`DataFetchError`; malformed individual observations are dropped.
    Pass ``transport`` to route the loader's own client through a custom
    httpx transport; an injected ``client`` is never closed by the loader.
    """

    def __init__(
        self,
        base_url: str,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, transport=transport)

    async def __aenter__(self) -> "FredSeriesLoader":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def load(self, series_id: str, keep: Optional[int] = None) -> SeriesPoints:
        url = f"{self.base_url}/fred"
        logger.debug("fetching %s from %s", series_id, url)
        try:
            response = await self._client.get(url, params={"series_id": series_id})
        except httpx.HTTPError as exc:
            raise DataFetchError(series_id, f"request failed ({exc.__class__.__name__})") from exc

        if not response.is_success:
            raise DataFetchError(series_id, "backend error", status=response.status_code)

        try:
            body = response.json()
        except ValueError as exc:
            raise DataFetchError(series_id, "response is not JSON") from exc

        observations = body.get("observations") if isinstance(body, dict) else None
        if not isinstance(observations, list):
            raise DataFetchError(series_id, "response has no observations")

        points = normalize_observations(observations, keep=keep, series_id=series_id)
        logger.debug("loaded %s: %d points", series_id, len(points))
        return points
