from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, Tuple

import pandas as pd

from econdash.charts import line_chart, to_vega_spec, update_frame, wide_frame
from econdash.timeline import AlignedValue, to_optional


@dataclass(frozen=True)
class Dataset:
    name: str
    data: Tuple[AlignedValue, ...]


@dataclass(frozen=True)
class ChartUpdate:
    """Everything a chart surface needs to redraw: shared labels and parallel datasets."""

    surface: str
    labels: Tuple[str, ...]
    datasets: Tuple[Dataset, ...]
    x_title: str = "Date"
    y_title: str = "Value"

    def __post_init__(self) -> None:
        for dataset in self.datasets:
            if len(dataset.data) != len(self.labels):
                raise ValueError(
                    f"dataset {dataset.name!r} has {len(dataset.data)} points for {len(self.labels)} labels"
                )


class PresentationSink(Protocol):
    def update(self, update: ChartUpdate) -> None:
        ...


class ChartStore:
    """In-memory sink holding the latest update per surface.

    Updates replace the surface's data in place; nothing is rebuilt until a
    spec, frame or payload is requested.
    """

    def __init__(self) -> None:
        self._updates: Dict[str, ChartUpdate] = {}
        self.update_counts: Dict[str, int] = {}

    def update(self, update: ChartUpdate) -> None:
        self._updates[update.surface] = update
        self.update_counts[update.surface] = self.update_counts.get(update.surface, 0) + 1

    def __contains__(self, surface: object) -> bool:
        return surface in self._updates

    @property
    def surfaces(self) -> Tuple[str, ...]:
        return tuple(self._updates)

    def get(self, surface: str) -> Optional[ChartUpdate]:
        return self._updates.get(surface)

    def __getitem__(self, surface: str) -> ChartUpdate:
        return self._updates[surface]

    def frame(self, surface: str) -> pd.DataFrame:
        return update_frame(self[surface])

    def table(self, surface: str) -> pd.DataFrame:
        return wide_frame(self[surface])

    def spec(self, surface: str) -> Dict[str, Any]:
        return to_vega_spec(line_chart(self[surface]))

    def payload(self, surface: str, *, include_spec: bool = False) -> Dict[str, Any]:
        upd = self[surface]
        out: Dict[str, Any] = {
            "surface": upd.surface,
            "labels": list(upd.labels),
            "datasets": [{"name": d.name, "data": to_optional(d.data)} for d in upd.datasets],
            "x_title": upd.x_title,
            "y_title": upd.y_title,
        }
        if include_spec:
            out["spec"] = self.spec(surface)
        return out
