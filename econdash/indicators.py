"""Indicator catalog: which series are loaded, how they group, and which charts show them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from econdash.slicing import ENTIRE_HISTORY, MONTHLY, QUARTERLY


@dataclass(frozen=True)
class Indicator:
    key: str
    series_id: str
    name: str


@dataclass(frozen=True)
class GroupSpec:
    name: str
    frequency: str
    indicators: Tuple[Indicator, ...]
    # None: the master timeline is the union of all members.
    # Otherwise the named member's own labels are the master timeline.
    master_key: Optional[str] = None

    def indicator(self, key: str) -> Indicator:
        for ind in self.indicators:
            if ind.key == key:
                return ind
        raise KeyError(key)

    @property
    def keys(self) -> Tuple[str, ...]:
        return tuple(ind.key for ind in self.indicators)


@dataclass(frozen=True)
class SurfaceSpec:
    name: str
    group: str
    # Empty for the single-indicator surface, which follows the selected indicator.
    indicator_keys: Tuple[str, ...] = ()
    default_range: str = "12"
    x_title: str = "Date"
    y_title: str = "Value"

    @property
    def selectable(self) -> bool:
        return not self.indicator_keys


MONTHLY_GROUP = GroupSpec(
    name="monthly",
    frequency=MONTHLY,
    indicators=(
        Indicator("unemployment", "UNRATE", "Unemployment Rate (%)"),
        Indicator("fed_funds", "FEDFUNDS", "Fed Funds Rate (%)"),
        Indicator("cpi", "CPIAUCSL", "CPI (Index)"),
        Indicator("m2", "M2SL", "M2 Money Stock (Billions $)"),
    ),
)

# Credit card delinquency is the trusted reference timeline for the quarterly
# group so its history and latest quarters are never cut by another series.
DELINQUENCY_GROUP = GroupSpec(
    name="delinquency",
    frequency=QUARTERLY,
    indicators=(
        Indicator("all_loans", "DRALACBS", "All Loans Delinquency Rate (%)"),
        Indicator("consumer", "DRCLACBS", "Consumer Loans Delinquency Rate (%)"),
        Indicator("credit_card", "DRCCLACBS", "Credit Card Delinquency Rate (%)"),
        Indicator("mortgage", "DRSFRMACBS", "Mortgage Delinquency Rate (%)"),
    ),
    master_key="credit_card",
)

DEFAULT_GROUPS: Tuple[GroupSpec, ...] = (MONTHLY_GROUP, DELINQUENCY_GROUP)

DEFAULT_SURFACES: Tuple[SurfaceSpec, ...] = (
    SurfaceSpec(name="main", group="monthly", default_range="12"),
    SurfaceSpec(
        name="comparison",
        group="monthly",
        indicator_keys=("unemployment", "fed_funds"),
        default_range="12",
    ),
    SurfaceSpec(
        name="delinquency",
        group="delinquency",
        indicator_keys=("all_loans", "mortgage", "consumer", "credit_card"),
        default_range=ENTIRE_HISTORY,
        x_title="Date (Quarterly)",
        y_title="Delinquency Rate (%)",
    ),
)

DEFAULT_INDICATOR = "unemployment"
