from __future__ import annotations

from typing import Optional


class DashboardError(Exception):
    """Base class for dashboard errors."""


class DataFetchError(DashboardError):
    """A series could not be retrieved from the data provider."""

    def __init__(self, series_id: str, message: str, *, status: Optional[int] = None) -> None:
        self.series_id = series_id
        self.status = status
        detail = f"{message} for {series_id}"
        if status is not None:
            detail = f"HTTP {status}: {detail}"
        super().__init__(detail)


class MalformedValueError(DashboardError, ValueError):
    """A single observation could not be parsed (a non-numeric value or an invalid date)."""

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(f"unparseable observation field: {value!r}")
