"""Dashboard orchestration.

A :class:`Dashboard` owns every master timeline and aligned series for one
session. It loads the configured indicator groups one series at a time,
reconciles each group onto a single timeline, and from then on answers UI
events (range changes, indicator switches) by re-slicing in-memory data and
pushing one :class:`~econdash.sink.ChartUpdate` per affected surface to the
presentation sink.

Lifecycle::

    UNINITIALIZED -> LOADING -> READY
                             -> FAILED   (any load error; terminal)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Protocol, Tuple, Union

from econdash.errors import DataFetchError
from econdash.indicators import (
    DEFAULT_GROUPS,
    DEFAULT_INDICATOR,
    DEFAULT_SURFACES,
    GroupSpec,
    SurfaceSpec,
)
from econdash.loader import SeriesPoints
from econdash.ranges import normalize_ranges
from econdash.sink import ChartStore, ChartUpdate, Dataset, PresentationSink
from econdash.slicing import RangeSelection, parse_range, slicer_for
from econdash.timeline import AlignedValue, align_to_master, union_sorted

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class SeriesLoader(Protocol):
    async def load(self, series_id: str, keep: Optional[int] = None) -> SeriesPoints:
        ...


@dataclass(frozen=True)
class AlignedSeries:
    key: str
    name: str
    data: Tuple[AlignedValue, ...]


@dataclass(frozen=True)
class IndicatorGroup:
    name: str
    frequency: str
    timeline: Tuple[str, ...]
    series: Mapping[str, AlignedSeries]


@dataclass(frozen=True)
class RangeChanged:
    surface: str
    range: RangeSelection


@dataclass(frozen=True)
class IndicatorChanged:
    indicator: str


DashboardEvent = Union[RangeChanged, IndicatorChanged]


def build_group(spec: GroupSpec, raw: Mapping[str, SeriesPoints]) -> IndicatorGroup:
    """Reconcile one group's raw series onto its master timeline."""
    if spec.master_key is None:
        timeline = union_sorted(raw[key].labels for key in spec.keys)
    else:
        timeline = tuple(raw[spec.master_key].labels)

    series: Dict[str, AlignedSeries] = {}
    for ind in spec.indicators:
        points = raw[ind.key]
        if ind.key == spec.master_key:
            # The reference series defines the timeline; its values are used as-is.
            data = tuple(points.values)
        else:
            data = align_to_master(timeline, points.labels, points.values)
        series[ind.key] = AlignedSeries(key=ind.key, name=ind.name, data=data)
    return IndicatorGroup(name=spec.name, frequency=spec.frequency, timeline=timeline, series=MappingProxyType(series))


class Dashboard:
    def __init__(
        self,
        loader: SeriesLoader,
        sink: Optional[PresentationSink] = None,
        *,
        groups: Tuple[GroupSpec, ...] = DEFAULT_GROUPS,
        surfaces: Tuple[SurfaceSpec, ...] = DEFAULT_SURFACES,
        keep: Optional[Mapping[str, Optional[int]]] = None,
        indicator: str = DEFAULT_INDICATOR,
        ranges: Optional[Mapping[str, object]] = None,
    ) -> None:
        self._loader = loader
        self.sink: PresentationSink = sink if sink is not None else ChartStore()
        self._group_specs = {g.name: g for g in groups}
        self._surfaces = {s.name: s for s in surfaces}
        self._keep = dict(keep or {})
        self._phase = Phase.UNINITIALIZED
        self._error: Optional[Exception] = None
        self._groups: Dict[str, IndicatorGroup] = {}
        self._ranges: Dict[str, RangeSelection] = normalize_ranges(ranges, surfaces)
        self._indicator = indicator

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def error(self) -> Optional[Exception]:
        return self._error

    @property
    def groups(self) -> Mapping[str, IndicatorGroup]:
        return dict(self._groups)

    @property
    def ranges(self) -> Dict[str, RangeSelection]:
        return dict(self._ranges)

    @property
    def current_indicator(self) -> str:
        return self._indicator

    @property
    def surfaces(self) -> Tuple[str, ...]:
        return tuple(self._surfaces)

    async def initialize(self) -> None:
        if self._phase is not Phase.UNINITIALIZED:
            raise RuntimeError(f"dashboard already {self._phase.value}")
        self._phase = Phase.LOADING
        logger.info("loading %d indicator groups", len(self._group_specs))

        try:
            groups = {}
            for spec in self._group_specs.values():
                groups[spec.name] = await self._load_group(spec)
        except Exception as exc:
            self._phase = Phase.FAILED
            self._error = exc
            # Fetch failures are expected; anything else gets a traceback.
            logger.error("dashboard initialization failed: %s", exc, exc_info=not isinstance(exc, DataFetchError))
            raise

        self._groups = groups
        self._phase = Phase.READY
        logger.info(
            "dashboard ready: %s",
            ", ".join(f"{g.name}={len(g.timeline)} labels" for g in groups.values()),
        )
        for surface in self._surfaces:
            self._push(surface)

    async def _load_group(self, spec: GroupSpec) -> IndicatorGroup:
        keep = self._keep.get(spec.frequency)
        raw: Dict[str, SeriesPoints] = {}
        # Sequential on purpose: one fetch in flight at a time.
        for ind in spec.indicators:
            raw[ind.key] = await self._loader.load(ind.series_id, keep)
        return build_group(spec, raw)

    def dispatch(self, event: DashboardEvent) -> ChartUpdate:
        if isinstance(event, RangeChanged):
            return self.select_range(event.surface, event.range)
        if isinstance(event, IndicatorChanged):
            return self.select_indicator(event.indicator)
        raise TypeError(f"unsupported event: {event!r}")

    def select_range(self, surface: str, range_: RangeSelection) -> ChartUpdate:
        self._require_ready()
        if surface not in self._surfaces:
            raise KeyError(surface)
        self._ranges[surface] = parse_range(range_)
        return self._push(surface)

    def select_indicator(self, key: str) -> ChartUpdate:
        self._require_ready()
        main = self._selectable_surface()
        if key not in self._groups[main.group].series:
            raise KeyError(key)
        self._indicator = key
        return self._push(main.name)

    def surface_update(self, surface: str) -> ChartUpdate:
        self._require_ready()
        spec = self._surfaces[surface]
        group = self._groups[spec.group]
        keys = spec.indicator_keys or (self._indicator,)
        slicer = slicer_for(group.frequency)
        range_ = self._ranges[surface]

        labels: Tuple[str, ...] = ()
        datasets = []
        for key in keys:
            series = group.series[key]
            sliced = slicer(group.timeline, series.data, range_)
            labels = sliced.labels
            datasets.append(Dataset(name=series.name, data=sliced.data))
        return ChartUpdate(
            surface=surface,
            labels=labels,
            datasets=tuple(datasets),
            x_title=spec.x_title,
            y_title=spec.y_title,
        )

    def _push(self, surface: str) -> ChartUpdate:
        update = self.surface_update(surface)
        self.sink.update(update)
        return update

    def _selectable_surface(self) -> SurfaceSpec:
        for spec in self._surfaces.values():
            if spec.selectable:
                return spec
        raise KeyError("no single-indicator surface configured")

    def _require_ready(self) -> None:
        if self._phase is not Phase.READY:
            raise RuntimeError(f"dashboard is {self._phase.value}, not ready")
