from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field


class RangeChangeModel(BaseModel):
    surface: str
    range: Union[int, str] = Field(description='Months of history, or "max" for the entire history')


class IndicatorChangeModel(BaseModel):
    indicator: str


class ObservationModel(BaseModel):
    date: str
    value: str


class FredSeriesResponse(BaseModel):
    series_id: str
    observations: List[ObservationModel]


class DatasetModel(BaseModel):
    name: str
    data: List[Optional[float]]


class SurfaceResponse(BaseModel):
    surface: str
    labels: List[str]
    datasets: List[DatasetModel]
    x_title: str
    y_title: str
    spec: Dict[str, Any] = Field(default_factory=dict, description="Vega-Lite chart spec")
